"""Simulator configuration (YAML/JSON + JSON Schema validation)."""

from __future__ import annotations

from sim_harness.config.loader import (
    ConfigError,
    SimulatorConfig,
    load_simulator_config,
)

__all__ = [
    "ConfigError",
    "SimulatorConfig",
    "load_simulator_config",
]
