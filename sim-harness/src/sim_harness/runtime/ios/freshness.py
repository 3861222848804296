"""First-boot (freshness) heuristic.

simctl has no "has this device ever booted" query. Instead we look for files
the OS only writes during its first boot: if any of them is missing, the
simulator is treated as fresh. The list is not exhaustive, and the result is
a best guess, not device state.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Tuple

from sim_harness.runtime.ios.fs_probe import probe_paths
from sim_harness.runtime.ios.platform import LayoutGeneration

BOOT_ARTIFACTS: Tuple[str, ...] = (
    "Library/ConfigurationProfiles",
    "Library/Cookies",
    "Library/Logs",
    "Library/Preferences/.GlobalPreferences.plist",
    "Library/Preferences/com.apple.springboard.plist",
    "var/run/syslog.pid",
)

LEGACY_BOOT_ARTIFACTS: Tuple[str, ...] = ("Applications",)

CONTAINER_BOOT_ARTIFACTS: Tuple[str, ...] = (
    "Library/DeviceRegistry.state",
    "Library/Preferences/com.apple.Preferences.plist",
)


@dataclass(frozen=True)
class FreshnessReport:
    fresh: bool
    expected: Tuple[str, ...]
    missing: Tuple[str, ...]

    def reasons(self) -> List[str]:
        return [f"missing: {rel}" for rel in self.missing]


def expected_boot_artifacts(generation: LayoutGeneration) -> Tuple[str, ...]:
    if generation is LayoutGeneration.LEGACY_APPLICATIONS:
        return BOOT_ARTIFACTS + LEGACY_BOOT_ARTIFACTS
    return BOOT_ARTIFACTS + CONTAINER_BOOT_ARTIFACTS


def check_freshness(data_dir: Path, generation: LayoutGeneration) -> FreshnessReport:
    expected = expected_boot_artifacts(generation)
    existence = probe_paths(data_dir, expected)
    missing = tuple(rel for rel in expected if not existence[rel])
    return FreshnessReport(fresh=bool(missing), expected=expected, missing=missing)
