from __future__ import annotations


class SimulatorError(RuntimeError):
    """Base class for simulator runtime failures."""


class SimctlError(SimulatorError):
    """Raised when an `xcrun simctl` command fails."""


class LaunchError(SimulatorError):
    """Raised when the instruments quick launch fails."""


class DeviceNotFound(SimulatorError):
    """The device identifier is absent from the simctl device catalog."""

    def __init__(self, udid: str) -> None:
        super().__init__(f"simulator {udid} not found in simctl device list")
        self.udid = udid


class UnsupportedPlatformError(SimulatorError):
    """The platform version does not map to a known app data layout."""


class BundleDiscoveryError(SimulatorError):
    """An application directory has no `.app` bundle (iOS 7.1 layout)."""


class MetadataReadError(SimulatorError):
    """A container metadata plist is missing or malformed (iOS 8+ layout)."""


class SimulatorDeletedError(SimulatorError):
    """The underlying device was deleted through this handle."""
