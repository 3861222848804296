"""iOS simulator runtime helpers.

Thin wrappers around `xcrun simctl`/instruments plus the on-disk heuristics
needed on top of them:
  * freshness: has this simulator ever been booted?
  * bundles: where does an installed app keep its data?
  * lifecycle: warm a fresh simulator up so the above can answer
"""

from __future__ import annotations

from sim_harness.runtime.ios.errors import (
    BundleDiscoveryError,
    DeviceNotFound,
    LaunchError,
    MetadataReadError,
    SimctlError,
    SimulatorDeletedError,
    SimulatorError,
    UnsupportedPlatformError,
)
from sim_harness.runtime.ios.freshness import FreshnessReport
from sim_harness.runtime.ios.lifecycle import LifecycleController, WarmUpOutcome
from sim_harness.runtime.ios.platform import DeviceRecord, LayoutGeneration
from sim_harness.runtime.ios.simulator import SimulatorHandle

__all__ = [
    "BundleDiscoveryError",
    "DeviceNotFound",
    "DeviceRecord",
    "FreshnessReport",
    "LaunchError",
    "LayoutGeneration",
    "LifecycleController",
    "MetadataReadError",
    "SimctlError",
    "SimulatorDeletedError",
    "SimulatorError",
    "SimulatorHandle",
    "UnsupportedPlatformError",
    "WarmUpOutcome",
]
