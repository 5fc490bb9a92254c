"""create-grandstack-app configuration.

Two typed models live here:

* ``Settings`` -- runtime knobs (release endpoint, timeouts, tokens) that can
  be overridden from environment variables.
* ``Configuration`` -- the immutable record of choices for one scaffolding
  run, produced by the options resolver and consumed read-only by every step.

Both use Pydantic v2 so they are validated at construction time.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# ---------------------------------------------------------------------------
# Template catalogue
# ---------------------------------------------------------------------------

API_ONLY_TEMPLATE = "API-only"
API_DIR = "api"

# Display name -> generated sub-project directory, in prompt order.
TEMPLATE_DIRS: dict[str, str] = {
    "React": "web-react",
    "React-TS": "web-react-ts",
    "Angular": "web-angular",
    "Flutter": "web-flutter",
    API_ONLY_TEMPLATE: API_DIR,
}

DEFAULT_TEMPLATE = "React"

DEFAULT_NEO4J_URI = "neo4j://localhost:7687"
DEFAULT_NEO4J_USER = "neo4j"
DEFAULT_NEO4J_PASSWORD = "letmein"

DEFAULT_RELEASE_URL = (
    "https://api.github.com/repos/grand-stack/grand-stack-starter/releases"
)
DOCS_URL = "https://grandstack.io/docs"


def templates_to_remove(template: str, template_dirs: dict[str, str] | None = None) -> list[str]:
    """Return the directories to delete when *template* is chosen.

    Every template directory is removed except the chosen one and the API
    directory, which every template needs.
    """
    dirs = template_dirs if template_dirs is not None else TEMPLATE_DIRS
    keep = {dirs[template], API_DIR}
    return [d for d in dirs.values() if d not in keep]


# ---------------------------------------------------------------------------
# Runtime settings
# ---------------------------------------------------------------------------


class Settings(BaseModel):
    """Runtime settings for the collaborators (HTTP, subprocesses)."""

    release_url: str = Field(default=DEFAULT_RELEASE_URL)
    http_timeout: int = Field(default=60, ge=5, description="HTTP timeout in seconds")
    install_timeout: int = Field(
        default=900, ge=60, description="Dependency install timeout in seconds"
    )
    github_token: str | None = Field(default=None)
    node_engine: str = Field(default=">=8", pattern=r"^>=\s*\d+\s*$")

    @property
    def node_min_major(self) -> int:
        """Minimum Node.js major version parsed from ``node_engine``."""
        return int(self.node_engine.lstrip(">=").strip())

    @classmethod
    def from_env(cls) -> "Settings":
        """Build ``Settings`` from environment variables.

        Recognised variables (all optional):
            GRANDSTACK_RELEASE_URL, GRANDSTACK_HTTP_TIMEOUT,
            GRANDSTACK_INSTALL_TIMEOUT, GRANDSTACK_NODE_ENGINE, GITHUB_TOKEN.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("GRANDSTACK_RELEASE_URL"):
            kwargs["release_url"] = os.environ["GRANDSTACK_RELEASE_URL"]
        if os.environ.get("GRANDSTACK_HTTP_TIMEOUT"):
            kwargs["http_timeout"] = int(os.environ["GRANDSTACK_HTTP_TIMEOUT"])
        if os.environ.get("GRANDSTACK_INSTALL_TIMEOUT"):
            kwargs["install_timeout"] = int(os.environ["GRANDSTACK_INSTALL_TIMEOUT"])
        if os.environ.get("GRANDSTACK_NODE_ENGINE"):
            kwargs["node_engine"] = os.environ["GRANDSTACK_NODE_ENGINE"]
        if os.environ.get("GITHUB_TOKEN"):
            kwargs["github_token"] = os.environ["GITHUB_TOKEN"]
        return cls(**kwargs)


# ---------------------------------------------------------------------------
# Resolved configuration
# ---------------------------------------------------------------------------


class Configuration(BaseModel):
    """Resolved, immutable choices for a single scaffolding run.

    Created once by the options resolver; steps read it but never modify it.
    Connection encryption is expressed through the URI scheme
    (``neo4j+s://``, ``bolt+s://``).
    """

    model_config = ConfigDict(frozen=True)

    project_path: str = Field(..., description="Target directory as given on the command line")
    app_dir: Path = Field(..., description="Absolute target directory")
    dir_existed: bool = Field(default=False, description="Whether app_dir existed before the run")
    template: str = Field(default=DEFAULT_TEMPLATE)
    template_dirs: dict[str, str] = Field(default_factory=lambda: dict(TEMPLATE_DIRS))
    rm_templates: list[str] = Field(default_factory=list)
    git_init: bool = False
    run_install: bool = False
    use_npm: bool = False
    skip_prompts: bool = False
    neo4j_uri: str = DEFAULT_NEO4J_URI
    neo4j_user: str = DEFAULT_NEO4J_USER
    neo4j_password: str = DEFAULT_NEO4J_PASSWORD

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def template_dir(self) -> str:
        """Directory name of the chosen template."""
        return self.template_dirs[self.template]

    @property
    def is_api_only(self) -> bool:
        return self.template == API_ONLY_TEMPLATE

    @property
    def api_path(self) -> Path:
        return self.app_dir / API_DIR

    @property
    def dotenv_path(self) -> Path:
        """Path to the generated ``api/.env``."""
        return self.api_path / ".env"

    @property
    def scripts_config_path(self) -> Path:
        """Path to ``scripts/config/index.json``."""
        return self.app_dir / "scripts" / "config" / "index.json"

    @property
    def package_manager(self) -> str:
        """Preferred package manager name used in instructions."""
        return "npm" if self.use_npm else "yarn"

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    @field_validator("neo4j_uri", "neo4j_user", "neo4j_password")
    @classmethod
    def single_line(cls, value: str) -> str:
        if "\n" in value or "\r" in value:
            raise ValueError("connection settings must be a single line")
        return value

    @field_validator("neo4j_uri")
    @classmethod
    def uri_has_scheme(cls, value: str) -> str:
        if "://" not in value:
            raise ValueError(f"Neo4j URI must include a scheme, e.g. {DEFAULT_NEO4J_URI}")
        return value

    @model_validator(mode="after")
    def template_known(self) -> "Configuration":
        if self.template not in self.template_dirs:
            raise ValueError(f"unknown template '{self.template}'")
        if self.template_dir in self.rm_templates or API_DIR in self.rm_templates:
            raise ValueError("the chosen template and the API directory cannot be removed")
        return self
