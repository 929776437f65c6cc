"""Template materialization -- copy template files and merge manifests.

Quick usage::

    from installation.template import TemplateReference, materialize

    reference = TemplateReference(type="web", language="typescript")
    materialize(root, reference, "my-templates")
"""

from installation.template.manifest import (
    MANIFEST_NAME,
    TemplateManifest,
    apply_template_manifest,
    initial_manifest,
    load_template_manifest,
    merge_manifest,
    rewrite_scripts_for_yarn,
    write_initial_manifest,
)
from installation.template.materializer import (
    TemplateReference,
    copy_template,
    install_gitignore,
    materialize,
)

__all__ = [
    "MANIFEST_NAME",
    "TemplateManifest",
    "TemplateReference",
    "apply_template_manifest",
    "copy_template",
    "initial_manifest",
    "install_gitignore",
    "load_template_manifest",
    "materialize",
    "merge_manifest",
    "rewrite_scripts_for_yarn",
    "write_initial_manifest",
]
