#!/usr/bin/env python3
"""
Build lab from the terminal: pick a preset build (or custom virtues) and print its metrics.
Run from project root: python3 scripts/build_lab.py --build warden-bulwark
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

# Ensure project root on path
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from atlas.build_lab import BuildCatalog, BuildLabSession, BuildMode
from atlas.build_lab.catalog import BUILDS_FILENAME
from atlas.data_admin import DataAdminError, DataAdminService, LocalDataStore

logger = logging.getLogger("build_lab")

_BAR_WIDTH = 20


def _bar(value: float) -> str:
    filled = int(round(value / 5 * _BAR_WIDTH))
    return "#" * filled + "." * (_BAR_WIDTH - filled)


def _print_snapshot(snapshot: dict) -> None:
    v = snapshot["virtues"]
    m = snapshot["metrics"]
    print(f"\n  Build: {snapshot['build_id'] or '-'}  [{snapshot['mode']}]")
    print(f"  Pact:   {snapshot['pact_label']}  ({snapshot['pact_style']})")
    print(f"  Weapon: {snapshot['weapon_label']}  ({snapshot['weapon_style']})")
    print(f"  Virtues: courage {v['courage']:g}%  grace {v['grace']:g}%  spirit {v['spirit']:g}%")
    print("  " + "-" * 40)
    for axis in ("damage", "defense", "mobility", "control"):
        print(f"  {axis:<9} {_bar(m[axis])} {m[axis]:.2f}")
    stars = "★" * m["complexity"] + "☆" * (5 - m["complexity"])
    print(f"  {'complexity':<9} {stars}")


def run(
    data_dir: Path,
    build_id: str | None,
    virtues: dict[str, float] | None,
    pact_id: str | None,
    weapon_id: str | None,
    as_json: bool,
) -> int:
    service = DataAdminService(LocalDataStore(data_dir))
    try:
        catalog = BuildCatalog.from_dict(service.read_data(BUILDS_FILENAME))
    except DataAdminError as e:
        logger.error("Could not load %s from %s: %s", BUILDS_FILENAME, data_dir, e)
        return 1

    session = BuildLabSession.start(catalog)
    if build_id:
        try:
            session.select_build(build_id)
        except KeyError as e:
            logger.error("%s", e.args[0])
            return 1
    if virtues is not None:
        session.set_mode(BuildMode.CUSTOM)
        session.set_virtues(virtues)
    if pact_id:
        session.select_pact(pact_id)
    if weapon_id:
        session.select_weapon(weapon_id)

    snapshot = session.snapshot()
    if as_json:
        print(json.dumps(snapshot, indent=2, ensure_ascii=False))
    else:
        _print_snapshot(snapshot)
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Compute build lab metrics for a preset or custom build.")
    parser.add_argument("--data-dir", type=Path, default=PROJECT_ROOT / "data", help="Directory holding builds.json")
    parser.add_argument("--build", help="Preset build id (default: first build)")
    parser.add_argument("--custom", nargs=3, type=float, metavar=("COURAGE", "GRACE", "SPIRIT"),
                        help="Custom virtue values (0-100 each)")
    parser.add_argument("--pact", help="Override the pact id")
    parser.add_argument("--weapon", help="Override the weapon id")
    parser.add_argument("--json", action="store_true", help="Print the session snapshot as JSON")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    virtues = None
    if args.custom:
        courage, grace, spirit = args.custom
        virtues = {"courage": courage, "grace": grace, "spirit": spirit}
    sys.exit(run(args.data_dir, args.build, virtues, args.pact, args.weapon, args.json))


if __name__ == "__main__":
    main()
