from __future__ import annotations

import pytest
from fakes import (
    FakeLauncher,
    FakeSimctl,
    FakeSweep,
    add_container_app,
    add_legacy_app,
    catalog_for,
    populate_boot_artifacts,
)

from sim_harness.runtime.ios.errors import SimulatorDeletedError, SimulatorError
from sim_harness.runtime.ios.lifecycle import LifecycleController
from sim_harness.runtime.ios.simulator import SimulatorHandle


def _make(tmp_path, udid: str, sdk: str, *, on_launch=None):
    simctl = FakeSimctl(catalog_for(udid, sdk))
    launcher = FakeLauncher(on_launch=on_launch)
    sweep = FakeSweep()
    lifecycle = LifecycleController(
        simctl=simctl, launcher=launcher, sweep=sweep, sleep=lambda s: None
    )
    sim = SimulatorHandle(
        udid, "6.4", devices_root=tmp_path, simctl=simctl, lifecycle=lifecycle
    )
    return sim, simctl, launcher, sweep


def test_directory_accessors(tmp_path) -> None:
    sim, _, _, _ = _make(tmp_path, "ABCD", "7.1")
    assert sim.data_dir == tmp_path / "ABCD" / "data"
    assert sim.log_dir == tmp_path / "ABCD" / "data" / "Library" / "Logs"
    assert sim.keychain_dir == tmp_path / "ABCD" / "data" / "Library" / "Keychains"
    assert sim.xcode_version == "6.4"


def test_ios71_app_data_dir_by_app_name(tmp_path) -> None:
    sim, _, launcher, _ = _make(tmp_path, "ABCD", "7.1")
    populate_boot_artifacts(sim.data_dir, "7.1")
    safari = add_legacy_app(sim.data_dir, "MobileSafari", "MobileSafari")

    assert sim.get_app_data_dir("MobileSafari") == safari
    assert safari.is_absolute()
    assert launcher.launched == []


def test_ios83_app_data_dir_by_bundle_id(tmp_path) -> None:
    sim, _, launcher, _ = _make(tmp_path, "EFGH", "8.3")
    populate_boot_artifacts(sim.data_dir, "8.3")
    add_container_app(sim.data_dir, "XYZ-UUID", "com.apple.mobilesafari")

    path = sim.get_app_data_dir("com.apple.mobilesafari")
    assert path == tmp_path / "EFGH" / "data" / "Containers" / "Data" / "Application" / "XYZ-UUID"
    assert launcher.launched == []


def test_unknown_app_returns_none(tmp_path) -> None:
    sim, _, _, _ = _make(tmp_path, "EFGH", "8.3")
    populate_boot_artifacts(sim.data_dir, "8.3")
    add_container_app(sim.data_dir, "XYZ-UUID", "com.apple.mobilesafari")

    assert sim.get_app_data_dir("com.example.missing") is None


def test_fresh_device_is_warmed_up_exactly_once(tmp_path) -> None:
    holder: dict = {}

    def boot(udid: str) -> None:
        data_dir = holder["sim"].data_dir
        populate_boot_artifacts(data_dir, "8.3")
        add_container_app(data_dir, "XYZ-UUID", "com.apple.mobilesafari")

    sim, simctl, launcher, sweep = _make(tmp_path, "EFGH", "8.3", on_launch=boot)
    holder["sim"] = sim
    populate_boot_artifacts(sim.data_dir, "8.3", skip=("Library/Logs",))

    assert sim.is_fresh() is True
    path = sim.get_app_data_dir("com.apple.mobilesafari")

    assert path is not None and path.name == "XYZ-UUID"
    assert launcher.launched == ["EFGH"]
    assert simctl.calls == [("shutdown", "EFGH")]
    assert sweep.calls == 1
    assert sim.last_warm_up is not None and sim.last_warm_up.populated is True

    sim.get_app_data_dir("com.apple.mobilesafari")
    assert launcher.launched == ["EFGH"]


def test_bundle_map_is_cached_for_handle_lifetime(tmp_path) -> None:
    sim, _, _, _ = _make(tmp_path, "EFGH", "8.3")
    populate_boot_artifacts(sim.data_dir, "8.3")
    add_container_app(sim.data_dir, "XYZ-UUID", "com.apple.mobilesafari")

    first = sim.bundle_paths()
    add_container_app(sim.data_dir, "NEW-UUID", "com.example.late")

    assert sim.bundle_paths() is first
    assert sim.get_app_data_dir("com.example.late") is None


def test_clean_erases_without_touching_caches(tmp_path) -> None:
    sim, simctl, _, _ = _make(tmp_path, "EFGH", "8.3")
    populate_boot_artifacts(sim.data_dir, "8.3")
    add_container_app(sim.data_dir, "XYZ-UUID", "com.apple.mobilesafari")
    cached = sim.bundle_paths()

    sim.clean()
    sim.erase()

    assert simctl.calls == [("erase", "EFGH"), ("erase", "EFGH")]
    assert sim.bundle_paths() is cached


def test_shutdown_and_delete(tmp_path) -> None:
    sim, simctl, _, _ = _make(tmp_path, "EFGH", "8.3")
    sim.shutdown()
    sim.delete()
    assert simctl.calls == [("shutdown", "EFGH"), ("delete", "EFGH")]

    with pytest.raises(SimulatorDeletedError):
        sim.get_platform_version()
    with pytest.raises(SimulatorDeletedError):
        sim.launch_and_quit()
    with pytest.raises(SimulatorDeletedError):
        sim.delete()
    assert sim.udid == "EFGH"
    assert sim.data_dir == tmp_path / "EFGH" / "data"


def test_location_settings_are_forwarded_untouched(tmp_path) -> None:
    received: list[tuple] = []

    class _Settings:
        def update_location_settings(self, sim, bundle_id, authorized):
            received.append((sim, bundle_id, authorized))
            return "ok"

    simctl = FakeSimctl(catalog_for("EFGH", "8.3"))
    sim = SimulatorHandle(
        "EFGH", devices_root=tmp_path, simctl=simctl, lifecycle=object(), settings=_Settings()
    )

    assert sim.update_location_settings("com.example.app", True) == "ok"
    assert received == [(sim, "com.example.app", True)]


def test_location_settings_without_updater(tmp_path) -> None:
    sim, _, _, _ = _make(tmp_path, "EFGH", "8.3")
    with pytest.raises(SimulatorError):
        sim.update_location_settings("com.example.app", False)


def test_unpopulated_device_is_rescanned_after_exhausted_warm_up(tmp_path) -> None:
    sim, _, launcher, sweep = _make(tmp_path, "EFGH", "8.3")

    assert sim.get_app_data_dir("com.apple.mobilesafari") is None
    assert launcher.launched == ["EFGH"]
    assert sweep.calls == 1
    assert sim.last_warm_up is not None and sim.last_warm_up.populated is False
    assert sim.last_warm_up.polls == 15

    populate_boot_artifacts(sim.data_dir, "8.3")
    safari = add_container_app(sim.data_dir, "XYZ-UUID", "com.apple.mobilesafari")

    assert sim.get_app_data_dir("com.apple.mobilesafari") == safari
    assert launcher.launched == ["EFGH"]
