from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

_DEFAULT_EXCLUDED_DIRS = "OldVersions,BOUGHT OUT,ALLUSERSPROFILE"


@dataclass(frozen=True)
class Settings:
    model_root: Path
    session_timeout: float
    case_sensitive: bool | None
    excluded_dirs: tuple[str, ...]


def _parse_case_sensitive(raw: str) -> bool | None:
    value = raw.strip().lower()
    if value in ("1", "true", "yes"):
        return True
    if value in ("0", "false", "no"):
        return False
    return None


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Read settings from the environment once per process."""
    excluded = os.getenv("CAD_DOCTREE_EXCLUDED_DIRS", _DEFAULT_EXCLUDED_DIRS)
    return Settings(
        model_root=Path(os.getenv("CAD_DOCTREE_MODEL_ROOT", ".")).resolve(),
        session_timeout=float(os.getenv("CAD_DOCTREE_SESSION_TIMEOUT", "30")),
        case_sensitive=_parse_case_sensitive(os.getenv("CAD_DOCTREE_CASE_SENSITIVE", "auto")),
        excluded_dirs=tuple(d.strip() for d in excluded.split(",") if d.strip()),
    )
