"""Per-device handle for an Xcode 6+ style (CoreSimulator) iOS simulator.

A handle is keyed by the device udid. It lazily resolves and caches two
things that are assumed not to change for the handle's lifetime:

* the platform version (from the simctl device list), and
* the bundle id -> app data directory map.

Neither cache is invalidated by `clean()`/`erase()` or by installing and
removing apps. Create a new handle when the device's contents change.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from sim_harness.runtime.ios import bundles
from sim_harness.runtime.ios.errors import SimulatorDeletedError, SimulatorError
from sim_harness.runtime.ios.freshness import FreshnessReport, check_freshness
from sim_harness.runtime.ios.host import InstrumentsLauncher, kill_all_simulators
from sim_harness.runtime.ios.lifecycle import LifecycleController, WarmUpOutcome
from sim_harness.runtime.ios.platform import (
    DeviceRecord,
    LayoutGeneration,
    layout_generation_for,
    resolve_device_record,
)
from sim_harness.runtime.ios.settings import SettingsUpdater
from sim_harness.runtime.ios.simctl import SimctlController

logger = logging.getLogger(__name__)


def default_devices_root() -> Path:
    home = Path(os.path.expanduser("~"))
    return home / "Library" / "Developer" / "CoreSimulator" / "Devices"


class SimulatorHandle:
    def __init__(
        self,
        udid: str,
        xcode_version: Optional[str] = None,
        *,
        devices_root: Path | str | None = None,
        simctl: SimctlController | None = None,
        lifecycle: LifecycleController | None = None,
        settings: SettingsUpdater | None = None,
        plist_reader: bundles.PlistReader = bundles.read_plist,
    ) -> None:
        self._udid = str(udid)
        # Not used for dispatch yet; kept for callers that pick handles by toolchain.
        self._xcode_version = xcode_version
        self._devices_root = (
            Path(devices_root).expanduser() if devices_root is not None else default_devices_root()
        )
        self._simctl = simctl if simctl is not None else SimctlController()
        self._lifecycle = (
            lifecycle
            if lifecycle is not None
            else LifecycleController(
                simctl=self._simctl,
                launcher=InstrumentsLauncher(),
                sweep=kill_all_simulators,
            )
        )
        self._settings = settings
        self._plist_reader = plist_reader

        # Written once, then read-only.
        self._platform_version: Optional[str] = None
        self._bundle_paths: Optional[Dict[str, Path]] = None

        self._deleted = False
        self.last_warm_up: Optional[WarmUpOutcome] = None

    @classmethod
    def from_config(
        cls,
        udid: str,
        xcode_version: Optional[str] = None,
        *,
        config: Any,
        settings: SettingsUpdater | None = None,
    ) -> "SimulatorHandle":
        """Build a handle and its collaborators from a `SimulatorConfig`."""

        simctl = SimctlController(xcrun_path=config.xcrun_path, timeout_s=config.command_timeout_s)
        launcher = InstrumentsLauncher(
            xcrun_path=config.xcrun_path,
            template=config.instruments_template,
            timeout_s=config.launch_timeout_s,
        )
        lifecycle = LifecycleController(
            simctl=simctl,
            launcher=launcher,
            sweep=kill_all_simulators,
            retries=config.warm_up_retries,
            delay_s=config.warm_up_delay_s,
        )
        return cls(
            udid,
            xcode_version,
            devices_root=config.devices_root,
            simctl=simctl,
            lifecycle=lifecycle,
            settings=settings,
        )

    def __repr__(self) -> str:
        return f"SimulatorHandle(udid={self._udid!r}, xcode_version={self._xcode_version!r})"

    @property
    def udid(self) -> str:
        return self._udid

    @property
    def xcode_version(self) -> Optional[str]:
        return self._xcode_version

    @property
    def devices_root(self) -> Path:
        return self._devices_root

    @property
    def data_dir(self) -> Path:
        return self._devices_root / self._udid / "data"

    @property
    def log_dir(self) -> Path:
        return self.data_dir / "Library" / "Logs"

    @property
    def keychain_dir(self) -> Path:
        return self.data_dir / "Library" / "Keychains"

    def _ensure_usable(self) -> None:
        if self._deleted:
            raise SimulatorDeletedError(f"simulator {self._udid} was deleted")

    def stat(self) -> DeviceRecord:
        """Current simctl record (name, state, sdk) for this device."""

        self._ensure_usable()
        return resolve_device_record(self._simctl, self._udid)

    def get_platform_version(self) -> str:
        self._ensure_usable()
        if self._platform_version is None:
            self._platform_version = self.stat().sdk
        return self._platform_version

    def layout_generation(self) -> LayoutGeneration:
        return layout_generation_for(self.get_platform_version())

    def check_freshness(self) -> FreshnessReport:
        return check_freshness(self.data_dir, self.layout_generation())

    def is_fresh(self) -> bool:
        """Best guess at whether this simulator has never been booted."""

        return self.check_freshness().fresh

    def build_bundle_path_map(self) -> Optional[Dict[str, Path]]:
        return bundles.build_bundle_path_map(
            self.data_dir, self.layout_generation(), reader=self._plist_reader
        )

    def bundle_paths(self) -> Dict[str, Path]:
        self._ensure_usable()
        if self._bundle_paths is None:
            bundle_map = self.build_bundle_path_map()
            if bundle_map is None:
                # Not populated yet; retry on the next call instead of caching.
                return {}
            self._bundle_paths = bundle_map
        return self._bundle_paths

    def get_app_data_dir(self, app_id: str) -> Optional[Path]:
        """Data directory for `app_id`, or None if no such app is installed.

        `app_id` is a bundle id (com.apple.mobilesafari) or, on iOS 7.1, the
        app name without `.app` (MobileSafari).

        On a never-booted simulator this boots and shuts the device down
        first so the directories exist.
        """

        if self.is_fresh():
            logger.info(
                "Attempted to get an app path from fresh simulator %s; "
                "quickly launching it to populate its directories",
                self._udid,
            )
            self.launch_and_quit()
        return self.bundle_paths().get(app_id)

    def launch_and_quit(self) -> WarmUpOutcome:
        self._ensure_usable()
        outcome = self._lifecycle.launch_and_quit(self._udid, self.check_freshness)
        self.last_warm_up = outcome
        return outcome

    def clean(self) -> None:
        self._ensure_usable()
        logger.info("Cleaning simulator %s", self._udid)
        self._lifecycle.erase(self._udid)
        if self._bundle_paths is not None:
            logger.debug("bundle path cache for %s may be stale after erase", self._udid)

    def erase(self) -> None:
        self.clean()

    def shutdown(self) -> None:
        self._ensure_usable()
        self._lifecycle.shutdown(self._udid)

    def delete(self) -> None:
        self._ensure_usable()
        self._lifecycle.delete(self._udid)
        self._deleted = True

    def update_location_settings(self, bundle_id: str, authorized: bool):
        self._ensure_usable()
        if self._settings is None:
            raise SimulatorError("no settings updater configured for this simulator")
        return self._settings.update_location_settings(self, bundle_id, authorized)
