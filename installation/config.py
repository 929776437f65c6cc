"""Installation tool configuration.

Typed configuration for a scaffolding run.  All settings use Pydantic v2
models so they are validated at construction time and can be built from
CLI arguments or environment variables without boiler-plate.
"""

from __future__ import annotations

import os
from typing import Any

from pydantic import BaseModel, Field

# Entries a run may create inside the project root.  Rollback only ever
# deletes names in this set.
KNOWN_GENERATED_FILES: tuple[str, ...] = ("package.json", "yarn.lock", "node_modules")


def _env_flag(name: str) -> bool | None:
    value = os.environ.get(name)
    if value is None or not value.strip():
        return None
    return value.strip().lower() in ("1", "true", "yes", "on")


class ProbeSettings(BaseModel):
    """Constants used by the environment probes."""

    yarn_registry_host: str = Field(default="registry.yarnpkg.com")
    yarn_default_registry: str = Field(default="https://registry.yarnpkg.com")
    min_npm_version: str = Field(default="5.0.0")
    min_yarn_pnp_version: str = Field(default="1.12.0")
    min_node_version: str = Field(default="8.10.0")
    proxy_env_vars: list[str] = Field(
        default=["https_proxy", "HTTPS_PROXY"],
        description="Environment variables checked, in order, for an HTTPS proxy",
    )


class GenerateConfig(BaseModel):
    """Everything a single ``generate_project`` run needs.

    Instances are typically created once by the CLI entry point and then
    passed through the workflow unchanged.
    """

    name: str = Field(..., min_length=1, description="Target directory; its basename is the app name")
    type: str = Field(default="web", min_length=1, description="Template type segment")
    language: str = Field(default="javascript", min_length=1, description="Template language segment")
    use_npm: bool = Field(default=False, description="Force npm even when Yarn is available")
    use_pnp: bool = Field(default=False, description="Ask Yarn for a Plug'n'Play install")
    verbose: bool = Field(default=False)
    app_type: str = Field(default="web", description="Label used in console messages")
    check_app_names: list[str] = Field(
        default_factory=list,
        description="Names the project may not take because they are dependencies",
    )
    template_package_name: str = Field(..., min_length=1)
    probe: ProbeSettings = Field(default_factory=ProbeSettings)

    @property
    def use_typescript(self) -> bool:
        return self.language == "typescript"

    @classmethod
    def from_env(cls, **overrides: Any) -> "GenerateConfig":
        """Build a ``GenerateConfig`` from environment variables.

        Recognised variables (all optional):
            INSTALLATION_NAME, INSTALLATION_TYPE, INSTALLATION_LANGUAGE,
            INSTALLATION_TEMPLATE_PACKAGE, INSTALLATION_APP_TYPE,
            INSTALLATION_USE_NPM, INSTALLATION_USE_PNP, INSTALLATION_VERBOSE,
            INSTALLATION_RESERVED_NAMES (comma-separated).

        Keyword *overrides* win over the environment; ``None`` values are
        ignored so CLI defaults do not mask environment settings.
        """
        kwargs: dict[str, Any] = {}
        for field_name, env_name in (
            ("name", "INSTALLATION_NAME"),
            ("type", "INSTALLATION_TYPE"),
            ("language", "INSTALLATION_LANGUAGE"),
            ("template_package_name", "INSTALLATION_TEMPLATE_PACKAGE"),
            ("app_type", "INSTALLATION_APP_TYPE"),
        ):
            if os.environ.get(env_name):
                kwargs[field_name] = os.environ[env_name]

        for field_name, env_name in (
            ("use_npm", "INSTALLATION_USE_NPM"),
            ("use_pnp", "INSTALLATION_USE_PNP"),
            ("verbose", "INSTALLATION_VERBOSE"),
        ):
            flag = _env_flag(env_name)
            if flag is not None:
                kwargs[field_name] = flag

        reserved = os.environ.get("INSTALLATION_RESERVED_NAMES", "")
        if reserved.strip():
            kwargs["check_app_names"] = [n.strip() for n in reserved.split(",") if n.strip()]

        kwargs.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**kwargs)
