"""
CLI configuration from ``regscore.toml``.

    [registry]
    root = ".registry"
    project = "demo"

    [compute]
    jobs = 10
    dry_run = false

The file is found by walking up from the working directory. Relative
paths are resolved against the file's own directory.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .names import LOCATION

CONFIG_FILE = "regscore.toml"
DEFAULT_ROOT = ".registry"
DEFAULT_JOBS = 10


@dataclass(frozen=True)
class Config:
    registry_root: Path
    project: str = ""
    jobs: int = DEFAULT_JOBS
    dry_run: bool = False
    source: Path | None = None


def _coerce_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def find_config(start: Path) -> Path | None:
    """Find ``regscore.toml`` in ``start`` or any parent."""
    cur = start.resolve()
    for p in (cur, *cur.parents):
        candidate = p / CONFIG_FILE
        if candidate.is_file():
            return candidate
    return None


def load_config(path: Path | None) -> Config:
    """Load ``path``, or defaults relative to the working directory when None."""
    if path is None:
        return Config(registry_root=Path.cwd() / DEFAULT_ROOT)

    import tomllib

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise ValueError(f"{path}: {exc}") from exc

    registry = _coerce_dict(data.get("registry"))
    compute = _coerce_dict(data.get("compute"))

    root = Path(str(registry.get("root", DEFAULT_ROOT)))
    if not root.is_absolute():
        root = path.parent / root

    jobs = int(compute.get("jobs", DEFAULT_JOBS))
    if jobs <= 0:
        raise ValueError(f"{path}: compute.jobs must be a positive integer")

    return Config(
        registry_root=root,
        project=str(registry.get("project", "")).strip(),
        jobs=jobs,
        dry_run=bool(compute.get("dry_run", False)),
        source=path,
    )


def qualify(pattern: str, project: str) -> str:
    """Prefix a project-relative pattern (``apis/-/versions/-``) with its project."""
    if pattern.startswith("projects/") or pattern == "projects":
        return pattern
    if not project:
        raise ValueError(f"pattern {pattern!r} is project-relative but no project is configured")
    return f"projects/{project}/locations/{LOCATION}/{pattern.lstrip('/')}"
