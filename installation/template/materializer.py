"""Copy an installed template package's files into the project root.

Layout inside the template package::

    node_modules/<package>/templates/<type>/<language>/
        template/        copied verbatim into the project root
        template.json    optional manifest (scripts, dependencies)

npm strips ``.gitignore`` files from published packages, so templates ship a
plain ``gitignore`` that is renamed (or appended to an existing
``.gitignore``) after copying.
"""

from __future__ import annotations

import shutil
from dataclasses import dataclass
from pathlib import Path

from installation.errors import TemplateNotFoundError

TEMPLATE_DIR_NAME = "template"
TEMPLATE_MANIFEST_NAME = "template.json"


@dataclass(frozen=True)
class TemplateReference:
    """A ``{type, language}`` pair selecting one template in the package."""

    type: str
    language: str

    @property
    def segment(self) -> str:
        return f"{self.type}/{self.language}"

    def base_path(self, root: Path, package_name: str) -> Path:
        """Directory holding ``template/`` and ``template.json``.

        Pure path arithmetic; nothing is checked for existence.
        """
        return root / "node_modules" / package_name / "templates" / self.segment

    def template_dir(self, root: Path, package_name: str) -> Path:
        return self.base_path(root, package_name) / TEMPLATE_DIR_NAME

    def manifest_path(self, root: Path, package_name: str) -> Path:
        return self.base_path(root, package_name) / TEMPLATE_MANIFEST_NAME


def copy_template(template_dir: Path, destination: Path) -> None:
    """Recursively copy *template_dir* into *destination*, overwriting files."""
    if not template_dir.is_dir():
        raise TemplateNotFoundError(str(template_dir))
    shutil.copytree(template_dir, destination, dirs_exist_ok=True)


def install_gitignore(root: Path) -> bool:
    """Turn the copied ``gitignore`` into ``.gitignore``.

    Returns ``False`` when the template had no ``gitignore``.
    """
    source = root / "gitignore"
    if not source.is_file():
        return False

    target = root / ".gitignore"
    if target.exists():
        with target.open("ab") as fh:
            fh.write(source.read_bytes())
        source.unlink()
    else:
        source.rename(target)
    return True


def materialize(root: Path, reference: TemplateReference, package_name: str) -> Path:
    """Copy the referenced template into *root* and fix up ``gitignore``.

    Returns:
        The template directory that was copied.

    Raises:
        TemplateNotFoundError: If the package has no such template.
    """
    template_dir = reference.template_dir(root, package_name)
    copy_template(template_dir, root)
    install_gitignore(root)
    return template_dir
