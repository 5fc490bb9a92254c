"""File-system actions performed on the extracted starter project.

* ``write_dotenv`` -- render ``api/.env`` from the resolved credentials.
* ``parse_dotenv`` -- read such a file back into a mapping.
* ``write_scripts_config`` -- record the chosen template for the starter's
  helper scripts.
* ``remove_templates`` -- delete the frontend directories that were not
  selected.
"""

from __future__ import annotations

import asyncio
import shutil
from pathlib import Path

from create_grandstack_app.config import Configuration
from create_grandstack_app.templates import TemplateRenderer
from create_grandstack_app.utils import save_json

GRAPHQL_SERVER_HOST = "0.0.0.0"
GRAPHQL_SERVER_PORT = 4001
GRAPHQL_SERVER_PATH = "/graphql"


async def write_dotenv(
    config: Configuration, renderer: TemplateRenderer | None = None
) -> Path:
    """Write ``api/.env`` for *config*.

    The ``api`` directory must already exist (it comes from the extracted
    release); a missing directory surfaces as ``FileNotFoundError``.
    """
    if not config.api_path.is_dir():
        raise FileNotFoundError(f"API directory not found: {config.api_path}")

    renderer = renderer or TemplateRenderer()
    context = {
        "neo4j_uri": config.neo4j_uri,
        "neo4j_user": config.neo4j_user,
        "neo4j_password": config.neo4j_password,
        "graphql_host": GRAPHQL_SERVER_HOST,
        "graphql_port": GRAPHQL_SERVER_PORT,
        "graphql_path": GRAPHQL_SERVER_PATH,
    }
    return await renderer.render_to_file("env.j2", config.dotenv_path, context)


def parse_dotenv(text: str) -> dict[str, str]:
    """Parse ``KEY=value`` lines, ignoring blanks and ``#`` comments.

    Values are taken verbatim after the first ``=``, so passwords containing
    ``=`` or ``#`` survive a round-trip.
    """
    values: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = raw_line.lstrip().partition("=")
        values[key.strip()] = value
    return values


async def write_scripts_config(config: Configuration) -> Path:
    """Write ``scripts/config/index.json`` naming the chosen template."""
    target = config.scripts_config_path
    await save_json(
        {
            "templateFileName": config.template_dir,
            "templateName": config.template,
        },
        target,
    )
    return target


async def remove_templates(app_dir: str | Path, rm_templates: list[str]) -> list[Path]:
    """Recursively delete each directory in *rm_templates* under *app_dir*.

    Directories that are already absent are ignored.

    Returns:
        The directories that were actually removed.
    """
    base = Path(app_dir)
    removed: list[Path] = []
    for name in rm_templates:
        target = base / name
        if not target.exists():
            continue
        await asyncio.to_thread(shutil.rmtree, target)
        removed.append(target)
    return removed
