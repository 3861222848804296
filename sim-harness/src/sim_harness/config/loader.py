from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from jsonschema import Draft202012Validator

from sim_harness.runtime.ios.lifecycle import DEFAULT_WARM_UP_DELAY_S, DEFAULT_WARM_UP_RETRIES

SCHEMA_PATH = Path(__file__).resolve().parent / "schemas" / "simulator_config.schema.json"

ENV_DEVICES_ROOT = "SIM_HARNESS_DEVICES_ROOT"
ENV_XCRUN = "SIM_HARNESS_XCRUN"


class ConfigError(RuntimeError):
    pass


def _default_devices_root() -> str:
    return str(Path("~/Library/Developer/CoreSimulator/Devices").expanduser())


@dataclass(frozen=True)
class SimulatorConfig:
    devices_root: str = field(default_factory=_default_devices_root)
    xcrun_path: str = "xcrun"
    instruments_template: str = "Blank"
    command_timeout_s: float = 60.0
    launch_timeout_s: float = 120.0
    warm_up_retries: int = DEFAULT_WARM_UP_RETRIES
    warm_up_delay_s: float = DEFAULT_WARM_UP_DELAY_S

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SimulatorConfig":
        validate_config(data, where="config")
        known = {f.name for f in fields(cls)}
        kwargs = {k: v for k, v in data.items() if k in known}
        if "devices_root" in kwargs:
            kwargs["devices_root"] = str(Path(kwargs["devices_root"]).expanduser())
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def load_schema(schema_path: Path = SCHEMA_PATH) -> Dict[str, Any]:
    schema = json.loads(schema_path.read_text(encoding="utf-8"))
    if not isinstance(schema, dict):
        raise ConfigError(f"Schema must be an object: {schema_path}")
    return schema


def validate_config(instance: Mapping[str, Any], *, where: str) -> None:
    validator = Draft202012Validator(load_schema())
    errors = sorted(validator.iter_errors(dict(instance)), key=lambda e: list(e.path))
    if errors:
        msgs = []
        for e in errors[:20]:
            loc = "/".join([str(p) for p in e.path])
            msgs.append(f"- {where}:{loc}: {e.message}")
        if len(errors) > 20:
            msgs.append(f"... ({len(errors)-20} more)")
        raise ConfigError("\n".join(msgs))


def load_yaml_or_json(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")

    if path.suffix.lower() in {".yaml", ".yml"}:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    elif path.suffix.lower() == ".json":
        data = json.loads(path.read_text(encoding="utf-8"))
    else:
        raise ConfigError(f"Unsupported config file extension: {path}")

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Top-level config must be an object: {path}")
    return data


def load_simulator_config(
    path: Optional[Path] = None,
    *,
    environ: Optional[Mapping[str, str]] = None,
) -> SimulatorConfig:
    """Load config from `path` (if given), then apply env overrides.

    Env overrides: $SIM_HARNESS_DEVICES_ROOT, $SIM_HARNESS_XCRUN.
    """

    env = os.environ if environ is None else environ
    data: Dict[str, Any] = load_yaml_or_json(path) if path is not None else {}
    if env.get(ENV_DEVICES_ROOT):
        data["devices_root"] = env[ENV_DEVICES_ROOT]
    if env.get(ENV_XCRUN):
        data["xcrun_path"] = env[ENV_XCRUN]
    where = str(path) if path is not None else "config"
    validate_config(data, where=where)
    return SimulatorConfig.from_dict(data)
