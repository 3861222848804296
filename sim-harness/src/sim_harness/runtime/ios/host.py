"""Host-side collaborators: instruments quick launch and the simulator sweep."""

from __future__ import annotations

import logging
import subprocess
from typing import Sequence

from sim_harness.runtime.ios.errors import LaunchError, SimulatorError

logger = logging.getLogger(__name__)

SIMULATOR_PROCESS_PATTERNS: tuple[str, ...] = (
    "iOS Simulator",
    "Simulator.app",
)


class InstrumentsLauncher:
    """Boot a simulator by pointing instruments at it.

    A short-lived trace is enough to make the OS boot and populate its
    data directory; nothing is installed or recorded.
    """

    def __init__(
        self,
        *,
        xcrun_path: str = "xcrun",
        template: str = "Blank",
        trace_limit_ms: int = 1,
        timeout_s: float = 120.0,
    ) -> None:
        self._xcrun_path = xcrun_path
        self._template = template
        self._trace_limit_ms = int(trace_limit_ms)
        self._timeout_s = timeout_s

    def quick_launch(self, udid: str) -> None:
        cmd = [
            self._xcrun_path,
            "instruments",
            "-w",
            udid,
            "-t",
            self._template,
            "-l",
            str(self._trace_limit_ms),
        ]
        logger.debug("quick launching %s", udid)
        try:
            proc = subprocess.run(cmd, capture_output=True, text=True, timeout=self._timeout_s)
        except subprocess.TimeoutExpired as e:
            raise LaunchError(f"instruments quick launch timed out for {udid}") from e
        if proc.returncode != 0:
            raise LaunchError(
                f"instruments quick launch failed (rc={proc.returncode}) for {udid}\n"
                f"stderr: {proc.stderr}"
            )


def kill_all_simulators(patterns: Sequence[str] = SIMULATOR_PROCESS_PATTERNS) -> None:
    """Kill every simulator host process on this machine.

    This affects all simulators, not just the one being warmed up.
    """

    for pattern in patterns:
        proc = subprocess.run(["pkill", "-9", "-f", pattern], capture_output=True, text=True)
        # pkill: 0 = killed something, 1 = nothing matched.
        if proc.returncode not in (0, 1):
            raise SimulatorError(
                f"pkill failed (rc={proc.returncode}) for {pattern!r}: {proc.stderr.strip()}"
            )
        if proc.returncode == 0:
            logger.info("killed simulator processes matching %r", pattern)
