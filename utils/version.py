# utils/version.py
"""
Version detection utilities for tcfleet.

Implements fallback chain:
1. installed package metadata
2. pyproject.toml next to the sources
3. git describe --tags
4. hardcoded "0.0.0-dev"
"""
import subprocess
from pathlib import Path

try:
    import tomllib
except ImportError:  # Python < 3.11
    tomllib = None

DIST_NAME = "tcfleet"
REPO_ROOT = Path(__file__).parent.parent


def get_version() -> str:
    """
    Get tcfleet version using fallback chain.

    Returns:
        Version string (e.g., "1.2.3" or "0.0.0-dev")
    """
    # 1. Installed package metadata
    import importlib.metadata
    try:
        version = importlib.metadata.version(DIST_NAME)
        if version:
            return version
    except importlib.metadata.PackageNotFoundError:
        pass

    # 2. pyproject.toml
    pyproject_path = REPO_ROOT / "pyproject.toml"
    if tomllib is not None and pyproject_path.exists():
        try:
            with open(pyproject_path, "rb") as f:
                data = tomllib.load(f)
            if "project" in data and "version" in data["project"]:
                return data["project"]["version"]
        except (OSError, tomllib.TOMLDecodeError):
            pass

    # 3. git describe --tags
    try:
        result = subprocess.run(
            ["git", "describe", "--tags", "--always"],
            cwd=REPO_ROOT,
            capture_output=True,
            text=True,
            timeout=2
        )
        if result.returncode == 0 and result.stdout.strip():
            version = result.stdout.strip()
            if version.startswith("v"):
                version = version[1:]
            return version
    except (OSError, subprocess.SubprocessError):
        pass

    # 4. Fallback
    return "0.0.0-dev"
