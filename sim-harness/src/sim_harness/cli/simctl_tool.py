from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Optional, Sequence

from sim_harness.config import ConfigError, load_simulator_config
from sim_harness.runtime.ios import SimulatorError, SimulatorHandle


def _json_dumps(obj: Any) -> str:
    return json.dumps(obj, indent=2, ensure_ascii=False)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Inspect and manage a single iOS simulator (freshness, app data dirs, warm-up)."
    )
    parser.add_argument(
        "--udid",
        type=str,
        default=os.environ.get("SIM_HARNESS_UDID"),
        help="Simulator udid (default: $SIM_HARNESS_UDID).",
    )
    parser.add_argument(
        "--xcode_version",
        type=str,
        default=None,
        help="Xcode version managing this simulator (informational).",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Optional YAML/JSON simulator config.",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging.")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("stat", help="Print the simctl record for the simulator.")
    sub.add_parser("fresh", help="Report whether the simulator looks never-booted.")
    app_dir = sub.add_parser("app-data-dir", help="Print an installed app's data directory.")
    app_dir.add_argument("app_id", help="Bundle id, or app name without .app on iOS 7.1.")
    sub.add_parser("warm-up", help="Boot, wait for first-boot files, then shut down.")
    sub.add_parser("erase", help="Erase all content and settings.")
    sub.add_parser("shutdown", help="Shut the simulator down.")
    sub.add_parser("delete", help="Delete the simulator.")
    return parser


def run(args: argparse.Namespace) -> int:
    cfg = load_simulator_config(args.config)
    sim = SimulatorHandle.from_config(args.udid, args.xcode_version, config=cfg)

    if args.command == "stat":
        print(_json_dumps(sim.stat().to_dict()))
    elif args.command == "fresh":
        report = sim.check_freshness()
        print(_json_dumps({"udid": sim.udid, "fresh": report.fresh, "missing": list(report.missing)}))
    elif args.command == "app-data-dir":
        path = sim.get_app_data_dir(args.app_id)
        if path is None:
            print(f"app not installed: {args.app_id}", file=sys.stderr)
            return 1
        print(str(path))
    elif args.command == "warm-up":
        print(_json_dumps(sim.launch_and_quit().to_dict()))
    elif args.command == "erase":
        sim.clean()
    elif args.command == "shutdown":
        sim.shutdown()
    elif args.command == "delete":
        sim.delete()
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.udid:
        parser.error("--udid (or $SIM_HARNESS_UDID) is required")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(levelname)s] %(name)s: %(message)s",
    )
    try:
        return run(args)
    except (SimulatorError, ConfigError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
