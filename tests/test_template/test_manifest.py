"""Unit tests for manifest handling (installation.template.manifest).

Tests cover:
- initial_manifest / write_initial_manifest
- TemplateManifest parsing (aliases, missing sections, extra keys)
- load_template_manifest with and without template.json
- rewrite_scripts_for_yarn
- merge_manifest / apply_template_manifest
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from installation.errors import ManifestMissingError
from installation.template.manifest import (
    TemplateManifest,
    apply_template_manifest,
    initial_manifest,
    load_template_manifest,
    merge_manifest,
    rewrite_scripts_for_yarn,
    write_initial_manifest,
)


class TestInitialManifest:
    @pytest.mark.unit
    def test_contents(self):
        assert initial_manifest("my-app") == {"name": "my-app", "version": "0.0.1", "private": True}

    @pytest.mark.unit
    def test_written_with_trailing_newline(self, tmp_path: Path):
        path = write_initial_manifest(tmp_path, "my-app")
        text = path.read_text()
        assert path == tmp_path / "package.json"
        assert text.endswith("}\n")
        assert '  "name": "my-app"' in text


class TestTemplateManifest:
    @pytest.mark.unit
    def test_dev_dependencies_alias(self):
        manifest = TemplateManifest.model_validate({"devDependencies": {"foo": "*"}})
        assert manifest.dev_dependencies == {"foo": "*"}
        assert manifest.dependencies is None
        assert manifest.scripts is None

    @pytest.mark.unit
    def test_extra_keys_ignored(self):
        manifest = TemplateManifest.model_validate({"name": "x", "scripts": {"start": "node ."}})
        assert manifest.scripts == {"start": "node ."}

    @pytest.mark.unit
    def test_missing_file_is_empty(self, tmp_path: Path):
        manifest = load_template_manifest(tmp_path / "template.json")
        assert manifest == TemplateManifest()

    @pytest.mark.unit
    def test_load_from_file(self, tmp_path: Path):
        path = tmp_path / "template.json"
        path.write_text(json.dumps({"dependencies": {"react": "18.2.0"}}))
        assert load_template_manifest(path).dependencies == {"react": "18.2.0"}

    @pytest.mark.unit
    def test_malformed_file_raises(self, tmp_path: Path):
        path = tmp_path / "template.json"
        path.write_text("{not json")
        with pytest.raises(json.JSONDecodeError):
            load_template_manifest(path)

    @pytest.mark.unit
    def test_non_object_file_raises(self, tmp_path: Path):
        path = tmp_path / "template.json"
        path.write_text('["react"]')
        with pytest.raises(ValueError):
            load_template_manifest(path)


class TestRewriteScripts:
    @pytest.mark.unit
    def test_npm_run(self):
        assert rewrite_scripts_for_yarn({"ci": "npm run lint"}) == {"ci": "yarn lint"}

    @pytest.mark.unit
    def test_plain_npm(self):
        assert rewrite_scripts_for_yarn({"t": "npm test"}) == {"t": "yarn test"}

    @pytest.mark.unit
    def test_only_first_occurrence(self):
        result = rewrite_scripts_for_yarn({"all": "npm run build && npm run test"})
        assert result == {"all": "yarn build && npm run test"}

    @pytest.mark.unit
    def test_untouched(self):
        assert rewrite_scripts_for_yarn({"start": "vite"}) == {"start": "vite"}


class TestMergeManifest:
    @pytest.mark.unit
    def test_scripts_replace_wholesale(self):
        app = {"name": "my-app", "scripts": {"old": "x"}}
        merged = merge_manifest(app, TemplateManifest(scripts={"start": "vite"}), use_yarn=False)
        assert merged["scripts"] == {"start": "vite"}
        assert app["scripts"] == {"old": "x"}

    @pytest.mark.unit
    def test_empty_scripts_replace_existing(self):
        app = {"name": "my-app", "scripts": {"old": "x"}}
        merged = merge_manifest(app, TemplateManifest(scripts={}), use_yarn=True)
        assert merged["scripts"] == {}

    @pytest.mark.unit
    def test_yarn_rewrites_existing_scripts(self):
        app = {"name": "my-app", "scripts": {"b": "npm run build"}}
        merged = merge_manifest(app, TemplateManifest(), use_yarn=True)
        assert merged["scripts"] == {"b": "yarn build"}

    @pytest.mark.unit
    def test_no_scripts_anywhere(self):
        merged = merge_manifest({"name": "my-app"}, TemplateManifest(), use_yarn=True)
        assert "scripts" not in merged

    @pytest.mark.unit
    def test_apply_writes_file(self, tmp_path: Path):
        write_initial_manifest(tmp_path, "my-app")
        apply_template_manifest(tmp_path, TemplateManifest(scripts={"start": "npm run dev"}), use_yarn=True)
        data = json.loads((tmp_path / "package.json").read_text())
        assert data == {
            "name": "my-app",
            "version": "0.0.1",
            "private": True,
            "scripts": {"start": "yarn dev"},
        }

    @pytest.mark.unit
    def test_apply_missing_manifest_raises(self, tmp_path: Path):
        with pytest.raises(ManifestMissingError):
            apply_template_manifest(tmp_path, TemplateManifest(), use_yarn=False)
