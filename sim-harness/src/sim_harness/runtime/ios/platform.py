"""Platform version lookup and layout generation.

The simctl catalog is grouped by iOS version; a device record does not carry
its own version, so the catalog is flattened and each record is stamped with
the version of the group it came from.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from sim_harness.runtime.ios.errors import DeviceNotFound, UnsupportedPlatformError

_VERSION_RE = re.compile(r"^(\d+)\.(\d+)(?:\.(\d+))?$")


@dataclass(frozen=True)
class DeviceRecord:
    udid: str
    name: str
    state: str
    sdk: str

    @property
    def is_booted(self) -> bool:
        return self.state == "Booted"

    def to_dict(self) -> Dict[str, Any]:
        return {"udid": self.udid, "name": self.name, "state": self.state, "sdk": self.sdk}


class LayoutGeneration(enum.Enum):
    """Where a simulator keeps installed apps' data directories."""

    # iOS 7.x: data/Applications/<dir>/<BundleName>.app
    LEGACY_APPLICATIONS = "legacy_applications"
    # iOS 8+: data/Containers/Data/Application/<UUID>/ + metadata plist
    DATA_CONTAINERS = "data_containers"


def parse_platform_version(version: str) -> Tuple[int, ...]:
    m = _VERSION_RE.match(str(version).strip())
    if not m:
        raise UnsupportedPlatformError(f"unparseable platform version: {version!r}")
    return tuple(int(g) for g in m.groups() if g is not None)


def layout_generation_for(version: str) -> LayoutGeneration:
    major = parse_platform_version(version)[0]
    if major == 7:
        return LayoutGeneration.LEGACY_APPLICATIONS
    if major >= 8:
        return LayoutGeneration.DATA_CONTAINERS
    raise UnsupportedPlatformError(f"platform version {version} predates supported simulators")


def flatten_device_catalog(catalog: Mapping[str, Sequence[Mapping[str, Any]]]) -> List[DeviceRecord]:
    records: List[DeviceRecord] = []
    for sdk, devices in catalog.items():
        for dev in devices:
            records.append(
                DeviceRecord(
                    udid=str(dev.get("udid", "")),
                    name=str(dev.get("name", "")),
                    state=str(dev.get("state", "")),
                    sdk=str(sdk),
                )
            )
    return records


def find_device(records: Sequence[DeviceRecord], udid: str) -> Optional[DeviceRecord]:
    for rec in records:
        if rec.udid == udid:
            return rec
    return None


def resolve_device_record(controller: Any, udid: str) -> DeviceRecord:
    """Query the catalog once and return the record for `udid`.

    Raises DeviceNotFound when the identifier is unknown (invalid or deleted).
    """

    records = flatten_device_catalog(controller.list_devices())
    rec = find_device(records, udid)
    if rec is None:
        raise DeviceNotFound(udid)
    return rec
