from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, Iterable


def has_access(path: Path) -> bool:
    try:
        return os.access(path, os.R_OK)
    except (OSError, ValueError):
        return False


def probe_paths(root: Path, relative_paths: Iterable[str]) -> Dict[str, bool]:
    """Check each path under `root` independently.

    A path that cannot be accessed is reported as absent; this never raises
    for a single missing or unreadable entry.
    """

    return {rel: has_access(root / rel) for rel in relative_paths}
