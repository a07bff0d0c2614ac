"""Resource path resolution for source checkouts and packaged builds.

Typical usage:
    from lmpilot.core.resource_path import get_config_path

    pilot_config = get_config_path("pilot.yaml")
"""

import sys
from pathlib import Path


def is_bundled() -> bool:
    """Check if running from a PyInstaller bundle."""
    return hasattr(sys, "_MEIPASS")


def get_project_root() -> Path:
    """Get the directory that holds config/.

    Returns:
        The bundle directory when frozen, otherwise the repository root
        (three levels above src/lmpilot/core).
    """
    if is_bundled():
        return Path(getattr(sys, "_MEIPASS"))
    return Path(__file__).parent.parent.parent.parent


def get_resource_path(relative_path: str) -> Path:
    """Get absolute path to a resource relative to the project root.

    Examples:
        >>> get_resource_path("config/logging.yaml").name
        'logging.yaml'
    """
    return get_project_root() / relative_path


def get_config_path(config_file: str) -> Path:
    """Get path to a file under config/.

    Args:
        config_file: Config filename, e.g. "pilot.yaml".
    """
    return get_resource_path(f"config/{config_file}")
