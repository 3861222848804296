"""Sim-Harness.

Per-instance state and lifecycle management for iOS simulators used in
automated app testing:
- platform version lookup via `simctl`
- first-boot (freshness) detection from on-disk artifacts
- app data directory discovery for both simulator layouts
- launch/poll/quit warm-up of never-booted simulators
"""

__all__ = [
    "cli",
    "config",
    "runtime",
]
