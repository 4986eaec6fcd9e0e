"""Application version helper.

Installed distributions report their metadata version; a source checkout run
with `PYTHONPATH=src` has none, so the version is read from `pyproject.toml`.
"""

from __future__ import annotations

from functools import lru_cache
from importlib.metadata import PackageNotFoundError, version as _dist_version

import tomllib

from videosync.paths import get_repo_root


@lru_cache(maxsize=None)
def get_app_version(package_name: str = "videosync") -> str:
    try:
        return _dist_version(package_name)
    except PackageNotFoundError:
        pass

    try:
        with (get_repo_root() / "pyproject.toml").open("rb") as f:
            project = tomllib.load(f).get("project", {})
    except (OSError, tomllib.TOMLDecodeError):
        return "0.0.0"
    return str(project.get("version", "0.0.0"))
