import tomllib
from pathlib import Path
from importlib import metadata as importlib_metadata
from typing import Any

DISTRIBUTION_NAME = "crud-data"

# --------------------
# Find pyproject.toml
# --------------------


def find_pyproject(start: Path, max_up: int = 5) -> Path | None:
    p = start
    for _ in range(max_up):
        candidate = p / "pyproject.toml"
        if candidate.exists():
            return candidate
        if p.parent == p:
            break
        p = p.parent
    return None


def get_pyproject_value(key: str, start: str | Path | None = None, max_up: int = 5, default: Any = None) -> Any:
    """
    Return the value for a dot-separated `key` (e.g. "project.version") from the nearest pyproject.toml.

    Returns `default` if the file isn't found, can't be parsed, or the key is missing.
    """
    start_path = Path(start).resolve() if start is not None else Path(__file__).resolve().parent
    pyproject = find_pyproject(start=start_path, max_up=max_up)
    if not pyproject:
        return default

    try:
        with pyproject.open("rb") as f:
            cur = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError):
        return default

    for part in key.split("."):
        if isinstance(cur, dict) and part in cur:
            cur = cur[part]
        else:
            return default
    return cur


def get_project_name(default: str = DISTRIBUTION_NAME) -> str:
    """
    Name used as the `service` field of JSON logs.
    """
    return get_pyproject_value("project.name", default=default)


def get_project_version(default: str = "unknown") -> str:
    """
    Installed distribution version first (useful in containers), then project.version from pyproject.toml.
    """
    try:
        return importlib_metadata.version(DISTRIBUTION_NAME)
    except importlib_metadata.PackageNotFoundError:
        pass

    val = get_pyproject_value("project.version", default=None)
    return val if val is not None else default


__all__ = [
    "find_pyproject",
    "get_pyproject_value",
    "get_project_name",
    "get_project_version",
]
