"""installation -- create a new project from a template package.

Quick usage::

    import asyncio

    from installation import GenerateConfig, generate_project

    config = GenerateConfig(
        name="my-app",
        type="web",
        language="typescript",
        template_package_name="my-templates",
    )
    result = asyncio.run(generate_project(config))
"""

from installation.config import GenerateConfig, ProbeSettings
from installation.workflow import RunState, ScaffoldResult, ScaffoldWorkflow, generate_project

__all__ = [
    "GenerateConfig",
    "ProbeSettings",
    "RunState",
    "ScaffoldResult",
    "ScaffoldWorkflow",
    "generate_project",
]
