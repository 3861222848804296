"""`xcrun simctl` wrapper.

This is the device-control side of the iOS runtime: list devices and the
destructive lifecycle calls (erase/shutdown/delete). It deliberately knows
nothing about on-disk simulator state; that lives in `freshness`/`bundles`.
"""

from __future__ import annotations

import json
import logging
import re
import subprocess
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from sim_harness.runtime.ios.errors import SimctlError

logger = logging.getLogger(__name__)

# "com.apple.CoreSimulator.SimRuntime.iOS-8-3" (Xcode 7+) or "iOS 8.3" (Xcode 6).
_IOS_RUNTIME_RE = re.compile(r"\biOS[- ](\d+(?:[-.]\d+)*)\s*$")


@dataclass(frozen=True)
class SimctlResult:
    args: list[str]
    stdout: str
    stderr: str
    returncode: int

    def ok(self) -> bool:
        return self.returncode == 0


def normalize_runtime_key(runtime: str) -> Optional[str]:
    """Map a simctl runtime key to a bare iOS version ("8.3"), or None."""

    m = _IOS_RUNTIME_RE.search(str(runtime).strip())
    if not m:
        return None
    return m.group(1).replace("-", ".")


class SimctlController:
    """Thin wrapper around `xcrun simctl` for a host's simulator fleet."""

    def __init__(self, *, xcrun_path: str = "xcrun", timeout_s: float = 60.0) -> None:
        self._xcrun_path = xcrun_path
        self._timeout_s = timeout_s

    def simctl(self, *args: str, timeout_s: float | None = None, check: bool = True) -> SimctlResult:
        cmd = [self._xcrun_path, "simctl"] + list(args)
        logger.debug("running %s", " ".join(cmd))
        proc = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=self._timeout_s if timeout_s is None else float(timeout_s),
        )
        result = SimctlResult(
            args=cmd,
            stdout=proc.stdout,
            stderr=proc.stderr,
            returncode=proc.returncode,
        )
        if check and not result.ok():
            raise SimctlError(
                f"simctl command failed (rc={result.returncode}): {' '.join(cmd)}\n"
                f"stdout: {result.stdout}\n"
                f"stderr: {result.stderr}"
            )
        return result

    def list_devices(self) -> Dict[str, List[Dict[str, Any]]]:
        """Return the device catalog grouped by iOS version.

        Each entry is the raw simctl device object (`udid`, `name`, `state`, ...).
        Non-iOS runtimes (watchOS, tvOS) are skipped.
        """

        res = self.simctl("list", "devices", "-j")
        try:
            data = json.loads(res.stdout)
        except json.JSONDecodeError as e:
            raise SimctlError(f"simctl list returned invalid JSON: {e}") from e

        devices = data.get("devices") if isinstance(data, dict) else None
        if not isinstance(devices, dict):
            raise SimctlError("simctl list output has no 'devices' object")

        catalog: Dict[str, List[Dict[str, Any]]] = {}
        for runtime, entries in devices.items():
            version = normalize_runtime_key(runtime)
            if version is None or not isinstance(entries, list):
                continue
            catalog.setdefault(version, []).extend(e for e in entries if isinstance(e, dict))
        return catalog

    def erase(self, udid: str) -> None:
        self.simctl("erase", udid)

    def shutdown(self, udid: str) -> None:
        res = self.simctl("shutdown", udid, check=False)
        if res.ok():
            return
        # Shutting down a device that is not booted is fine.
        if "current state: shutdown" in res.stderr.lower():
            logger.debug("simulator %s already shut down", udid)
            return
        raise SimctlError(f"simctl shutdown failed for {udid}: {res.stderr.strip()}")

    def delete(self, udid: str) -> None:
        self.simctl("delete", udid)
