"""Simulator lifecycle: erase/shutdown/delete and the warm-up sequence.

Warm-up boots a never-booted simulator (via an instruments quick launch) so
the OS populates its data directory, waits for that to happen, then shuts the
simulator down again.

Population latency varies a lot by OS: locally iOS 7.1 needed 6-12 polls,
iOS 8+ needed 0-2. Running out of polls is not an error: we log, report it in
the outcome and keep going.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Tuple

from sim_harness.runtime.ios.freshness import FreshnessReport
from sim_harness.runtime.ios.host import kill_all_simulators

logger = logging.getLogger(__name__)

DEFAULT_WARM_UP_RETRIES = 15
DEFAULT_WARM_UP_DELAY_S = 0.25


@dataclass(frozen=True)
class WarmUpOutcome:
    populated: bool
    polls: int
    missing: Tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {"populated": self.populated, "polls": self.polls, "missing": list(self.missing)}


class LifecycleController:
    def __init__(
        self,
        *,
        simctl: Any,
        launcher: Any,
        sweep: Callable[[], None] = kill_all_simulators,
        retries: int = DEFAULT_WARM_UP_RETRIES,
        delay_s: float = DEFAULT_WARM_UP_DELAY_S,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if retries < 1:
            raise ValueError("retries must be >= 1")
        self._simctl = simctl
        self._launcher = launcher
        self._sweep = sweep
        self._retries = int(retries)
        self._delay_s = float(delay_s)
        self._sleep = sleep

    def erase(self, udid: str) -> None:
        self._simctl.erase(udid)

    def shutdown(self, udid: str) -> None:
        self._simctl.shutdown(udid)

    def delete(self, udid: str) -> None:
        self._simctl.delete(udid)

    def wait_until_populated(self, check: Callable[[], FreshnessReport]) -> WarmUpOutcome:
        report = check()
        polls = 1
        while report.fresh and polls < self._retries:
            logger.debug("Simulator files not fully created (%s). Waiting a bit", report.missing)
            self._sleep(self._delay_s)
            report = check()
            polls += 1

        if report.fresh:
            logger.warning(
                "Simulator files never fully created after %d polls (missing: %s). "
                "Proceeding, but problems may ensue",
                polls,
                ", ".join(report.missing),
            )
        return WarmUpOutcome(populated=not report.fresh, polls=polls, missing=report.missing)

    def launch_and_quit(self, udid: str, check: Callable[[], FreshnessReport]) -> WarmUpOutcome:
        """Boot `udid`, wait for its files, then shut it down.

        Shutdown and the host-wide simulator sweep run whether or not the
        files showed up. The sweep kills every simulator process on the host,
        not only this device's.
        """

        self._launcher.quick_launch(udid)
        try:
            outcome = self.wait_until_populated(check)
        finally:
            try:
                self.shutdown(udid)
            finally:
                self._sweep()
        return outcome
