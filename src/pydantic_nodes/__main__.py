"""List the bundled node catalog when run as a module."""

from pydantic_nodes.project_info import get_project_info
from pydantic_nodes.registry import load_catalog


def main():
    """Print the project version and every node type grouped by category."""
    info = get_project_info()
    print(f"{info.name} v{info.version}: {info.description}")
    for category, configs in sorted(load_catalog().by_category().items()):
        print(f"\n[{category}]")
        for config in configs:
            tool = " (tool)" if config.has_tool() else ""
            print(f"  {config.type:<16} {config.title}{tool}")


if __name__ == "__main__":
    main()
