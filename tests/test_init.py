"""Tests for the package entry points and project information."""

from importlib import metadata
from pathlib import Path
import tomllib
from unittest.mock import patch

import pydantic_nodes
from pydantic_nodes import ProjectInfo
from pydantic_nodes import get_project_info
from pydantic_nodes.__main__ import main
from pydantic_nodes.project_info import UNKNOWN_VERSION


def pyproject() -> dict:
    with (Path(__file__).parent.parent / "pyproject.toml").open("rb") as f:
        return tomllib.load(f)["project"]


def test_get_project_info_matches_pyproject():
    """Installed metadata and the source checkout agree on the version."""
    info = get_project_info()

    assert isinstance(info, ProjectInfo)
    assert info.version == pyproject()["version"]
    assert pydantic_nodes.__version__ == info.version


def test_get_project_info_falls_back_to_pyproject():
    """Without installed metadata the checkout's pyproject is read."""
    with patch(
        "pydantic_nodes.project_info.metadata.metadata",
        side_effect=metadata.PackageNotFoundError("pydantic-nodes"),
    ):
        info = get_project_info()

    assert info.name == pyproject()["name"]
    assert info.description == pyproject()["description"]


def test_get_project_info_without_any_source():
    """With no metadata source the version is marked unknown."""
    with (
        patch(
            "pydantic_nodes.project_info.metadata.metadata",
            side_effect=metadata.PackageNotFoundError("pydantic-nodes"),
        ),
        patch("pydantic_nodes.project_info._from_pyproject", return_value=None),
    ):
        info = get_project_info()

    assert info.version == UNKNOWN_VERSION


def test_main_lists_catalog(capsys):
    """The command line prints the catalog grouped by category."""
    main()

    out = capsys.readouterr().out
    assert out.startswith("pydantic-nodes v")
    assert "[flow]" in out
    assert "text_extract" in out
    assert "Text Extract (tool)" in out


def test_public_exports():
    """Every name in __all__ is importable from the package."""
    for name in pydantic_nodes.__all__:
        assert hasattr(pydantic_nodes, name), name
