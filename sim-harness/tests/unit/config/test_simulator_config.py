from __future__ import annotations

import json
import textwrap

import pytest

from sim_harness.config import ConfigError, SimulatorConfig, load_simulator_config
from sim_harness.runtime.ios.simulator import SimulatorHandle


def test_defaults_without_file() -> None:
    cfg = load_simulator_config(None, environ={})
    assert cfg.xcrun_path == "xcrun"
    assert cfg.warm_up_retries == 15
    assert cfg.warm_up_delay_s == 0.25
    assert cfg.devices_root.endswith("Library/Developer/CoreSimulator/Devices")


def test_yaml_config_and_env_overrides(tmp_path) -> None:
    path = tmp_path / "sim.yaml"
    path.write_text(
        textwrap.dedent(
            """
            devices_root: /tmp/devices
            warm_up_retries: 4
            warm_up_delay_s: 0.5
            instruments_template: Activity Monitor
            """
        ),
        encoding="utf-8",
    )

    cfg = load_simulator_config(path, environ={"SIM_HARNESS_XCRUN": "/opt/xcrun"})

    assert cfg.devices_root == "/tmp/devices"
    assert cfg.warm_up_retries == 4
    assert cfg.warm_up_delay_s == 0.5
    assert cfg.instruments_template == "Activity Monitor"
    assert cfg.xcrun_path == "/opt/xcrun"

    cfg = load_simulator_config(path, environ={"SIM_HARNESS_DEVICES_ROOT": "/var/sims"})
    assert cfg.devices_root == "/var/sims"


def test_json_config(tmp_path) -> None:
    path = tmp_path / "sim.json"
    path.write_text(json.dumps({"command_timeout_s": 5}), encoding="utf-8")
    assert load_simulator_config(path, environ={}).command_timeout_s == 5


def test_empty_yaml_uses_defaults(tmp_path) -> None:
    path = tmp_path / "sim.yml"
    path.write_text("", encoding="utf-8")
    assert load_simulator_config(path, environ={}) == SimulatorConfig(
        devices_root=SimulatorConfig().devices_root
    )


def test_invalid_config_lists_each_problem(tmp_path) -> None:
    path = tmp_path / "sim.yaml"
    path.write_text("warm_up_retries: 0\nbogus: 1\n", encoding="utf-8")

    with pytest.raises(ConfigError) as excinfo:
        load_simulator_config(path, environ={})
    msg = str(excinfo.value)
    assert "warm_up_retries" in msg
    assert "bogus" in msg


def test_non_mapping_config_rejected(tmp_path) -> None:
    path = tmp_path / "sim.yaml"
    path.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_simulator_config(path, environ={})


def test_unsupported_extension(tmp_path) -> None:
    path = tmp_path / "sim.toml"
    path.write_text("x = 1", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_simulator_config(path, environ={})


def test_handle_from_config(tmp_path) -> None:
    cfg = SimulatorConfig(devices_root=str(tmp_path), warm_up_retries=3)
    sim = SimulatorHandle.from_config("ABCD", "6.4", config=cfg)
    assert sim.data_dir == tmp_path / "ABCD" / "data"
    assert sim.xcode_version == "6.4"


def test_missing_config_file_is_a_config_error(tmp_path) -> None:
    with pytest.raises(ConfigError, match="not found"):
        load_simulator_config(tmp_path / "absent.yaml", environ={})
