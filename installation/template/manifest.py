"""``package.json`` / ``template.json`` handling.

The template package may ship a ``template.json`` next to its ``template/``
directory.  Its ``scripts`` replace the generated project's scripts and its
``devDependencies`` / ``dependencies`` are installed afterwards.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from installation.errors import ManifestMissingError
from installation.utils import read_optional_json, save_json

MANIFEST_NAME = "package.json"
_NPM_RUN_RE = re.compile(r"(npm run |npm )")


class TemplateManifest(BaseModel):
    """Parsed ``template.json``; every section is optional."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    scripts: dict[str, str] | None = None
    dependencies: dict[str, str] | None = None
    dev_dependencies: dict[str, str] | None = Field(default=None, alias="devDependencies")


def initial_manifest(app_name: str) -> dict[str, Any]:
    """The minimal manifest written before anything is installed."""
    return {"name": app_name, "version": "0.0.1", "private": True}


def write_initial_manifest(root: Path, app_name: str) -> Path:
    path = root / MANIFEST_NAME
    save_json(initial_manifest(app_name), path)
    return path


def load_template_manifest(path: Path) -> TemplateManifest:
    """Read ``template.json``; a missing file yields an empty manifest."""
    data = read_optional_json(path)
    if data is None:
        return TemplateManifest()
    return TemplateManifest.model_validate(data)


def rewrite_scripts_for_yarn(scripts: dict[str, str]) -> dict[str, str]:
    """Replace the first ``npm run ``/``npm `` in each script with ``yarn ``."""
    return {key: _NPM_RUN_RE.sub("yarn ", value, count=1) for key, value in scripts.items()}


def merge_manifest(
    app_manifest: dict[str, Any],
    template: TemplateManifest,
    use_yarn: bool,
) -> dict[str, Any]:
    """Return a copy of *app_manifest* with template scripts applied."""
    merged = dict(app_manifest)
    if template.scripts is not None:
        merged["scripts"] = dict(template.scripts)
    if use_yarn and merged.get("scripts"):
        merged["scripts"] = rewrite_scripts_for_yarn(merged["scripts"])
    return merged


def apply_template_manifest(root: Path, template: TemplateManifest, use_yarn: bool) -> dict[str, Any]:
    """Merge *template* into ``<root>/package.json`` on disk.

    Raises:
        ManifestMissingError: If ``package.json`` no longer exists.
    """
    manifest_path = root / MANIFEST_NAME
    app_manifest = read_optional_json(manifest_path)
    if app_manifest is None:
        raise ManifestMissingError(str(manifest_path))

    merged = merge_manifest(app_manifest, template, use_yarn)
    save_json(merged, manifest_path)
    return merged
