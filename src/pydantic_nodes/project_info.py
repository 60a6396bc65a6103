"""Project information utilities."""

from importlib import metadata
from pathlib import Path
import tomllib

from pydantic import BaseModel

DISTRIBUTION = "pydantic-nodes"
UNKNOWN_VERSION = "0.0.0+unknown"


class ProjectInfo(BaseModel):
    """Name, version and description of the installed catalog."""

    name: str = DISTRIBUTION
    description: str
    version: str


def _from_pyproject(path: Path) -> ProjectInfo | None:
    try:
        with path.open("rb") as f:
            project = tomllib.load(f).get("project", {})
    except (OSError, tomllib.TOMLDecodeError):
        return None
    return ProjectInfo(
        name=project.get("name", DISTRIBUTION),
        description=project.get("description", ""),
        version=project.get("version", UNKNOWN_VERSION),
    )


def get_project_info() -> ProjectInfo:
    """Get project information for the catalog.

    Installed package metadata is preferred; a source checkout falls back to
    the ``pyproject.toml`` at the repository root.

    Returns:
        ProjectInfo: A Pydantic model containing name, description and version.

    """
    try:
        meta = metadata.metadata(DISTRIBUTION)
    except metadata.PackageNotFoundError:
        pyproject = Path(__file__).parent.parent.parent / "pyproject.toml"
        return _from_pyproject(pyproject) or ProjectInfo(
            description="", version=UNKNOWN_VERSION
        )
    return ProjectInfo(
        name=meta["Name"],
        description=meta.get("Summary", ""),
        version=meta["Version"],
    )
