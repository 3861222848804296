"""Map installed apps' bundle ids to their data directories.

Two layouts exist:

* iOS 7.1 keeps each app under `data/Applications/<dir>/`, next to a
  `<Name>.app` bundle folder. The folder name without `.app` is the id callers
  use (e.g. `MobileSafari`).
* iOS 8+ buries data directories under `data/Containers/Data/Application/`
  with opaque UUID names. The real bundle id is only recorded in a hidden
  Mobile Container Manager metadata plist inside each directory.

Either way the whole directory is scanned and reduced into one dict; one bad
entry fails the whole scan.
"""

from __future__ import annotations

import logging
import plistlib
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from sim_harness.runtime.ios.errors import BundleDiscoveryError, MetadataReadError
from sim_harness.runtime.ios.platform import LayoutGeneration

logger = logging.getLogger(__name__)

CONTAINER_METADATA_PLIST = ".com.apple.mobile_container_manager.metadata.plist"
CONTAINER_METADATA_ID_KEY = "MCMMetadataIdentifier"

PlistReader = Callable[[Path], Any]


def read_plist(path: Path) -> Any:
    with path.open("rb") as f:
        return plistlib.load(f)


def applications_root(data_dir: Path, generation: LayoutGeneration) -> Path:
    if generation is LayoutGeneration.LEGACY_APPLICATIONS:
        return data_dir / "Applications"
    return data_dir / "Containers" / "Data" / "Application"


def legacy_bundle_id(app_dir: Path) -> str:
    matches = sorted(app_dir.glob("*.app"))
    if not matches:
        raise BundleDiscoveryError(f"no .app bundle found in {app_dir}")
    return matches[0].name[: -len(".app")]


def container_bundle_id(app_dir: Path, *, reader: PlistReader = read_plist) -> str:
    plist_path = app_dir / CONTAINER_METADATA_PLIST
    try:
        metadata = reader(plist_path)
    except FileNotFoundError as e:
        raise MetadataReadError(f"container metadata missing: {plist_path}") from e
    except (OSError, plistlib.InvalidFileException, ValueError) as e:
        raise MetadataReadError(f"unreadable container metadata {plist_path}: {e}") from e

    bundle_id = metadata.get(CONTAINER_METADATA_ID_KEY) if isinstance(metadata, dict) else None
    if not isinstance(bundle_id, str) or not bundle_id:
        raise MetadataReadError(f"{CONTAINER_METADATA_ID_KEY} not found in {plist_path}")
    return bundle_id


def build_bundle_path_map(
    data_dir: Path,
    generation: LayoutGeneration,
    *,
    reader: PlistReader = read_plist,
) -> Optional[Dict[str, Path]]:
    """Scan the app root; None if it does not exist yet (device not populated)."""

    root = applications_root(data_dir, generation)
    if not root.is_dir():
        logger.debug("no application directory at %s", root)
        return None

    pairs: List[Tuple[str, Path]] = []
    for app_dir in sorted(p for p in root.iterdir() if p.is_dir()):
        if generation is LayoutGeneration.LEGACY_APPLICATIONS:
            bundle_id = legacy_bundle_id(app_dir)
        else:
            bundle_id = container_bundle_id(app_dir, reader=reader)
        pairs.append((bundle_id, app_dir))

    # Bundle ids are unique on a device; a duplicate just overwrites.
    bundle_map: Dict[str, Path] = {}
    for bundle_id, app_dir in pairs:
        bundle_map[bundle_id] = app_dir
    logger.debug("found %d app data directories under %s", len(bundle_map), root)
    return bundle_map
