#!/usr/bin/env python3
"""
RibaLOT CLI - LOT identifiers and traceability records for small-scale fishing.

Commands:
  ribalot vessel <config_file>           - Validate and save vessel configuration
  ribalot generate <species>             - Generate a LOT identifier only
  ribalot create <catch_file>            - Create, validate and store a LOT record
  ribalot validate <record_file>         - Validate a record JSON file
  ribalot export <lot_id> --format csv   - Export a stored LOT
  ribalot verify <lot_id>                - Re-check a stored LOT
  ribalot stats [--date DD/MM/YYYY]      - Daily LOT count and totals
  ribalot species [query]                - Search the species catalog
  ribalot zones                          - List Croatian FAO zones
  ribalot demo                           - Run terminal demo
  ribalot --test                         - Emit test receipt
"""

import argparse
import json
import sys
from datetime import date

from ribalot.core import (
    COUNTER_DB_PATH,
    VESSEL_CONFIG_PATH,
    StopRule,
    ValidationError,
    dual_hash,
    emit_receipt,
)
from ribalot.counter import SqliteCounterStore
from ribalot.export import EXPORT_TARGETS
from ribalot.identifier import generate_lot_id
from ribalot.lot import create_lot, daily_stats, export_lot, verify_lot
from ribalot.models import CatchInput, LotPattern, parse_catch_date
from ribalot.reference import CROATIAN_FAO_ZONES, find_species, get_species
from ribalot.validation import validate_record
from ribalot.vessel import create_vessel_config, load_vessel_config, save_vessel_config


def _read_json(path: str) -> dict:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _print_json(data):
    print(json.dumps(data, indent=2, ensure_ascii=False, default=str))


def _require_vessel(path: str):
    vessel = load_vessel_config(path)
    if vessel is None:
        raise StopRule(f"No vessel configuration at {path}. Run 'ribalot vessel <config_file>' first.")
    return vessel


def cmd_test():
    """Emit a test receipt to verify core functions work."""
    receipt = emit_receipt("test", {
        "message": "RibaLOT test receipt",
        "dual_hash_check": dual_hash(b"test"),
    })
    _print_json(receipt)
    return receipt


def cmd_vessel(config_file: str, out: str):
    """Validate a vessel configuration and save it."""
    vessel = create_vessel_config(_read_json(config_file))
    saved = save_vessel_config(vessel, out)
    _print_json(saved)
    return saved


def cmd_generate(species_code: str, vessel_file: str, pattern: str, catch_date: str | None,
                 custom_pattern: str | None, counter_db: str):
    """Print a LOT identifier without building a record."""
    species = get_species(species_code)
    vessel = _require_vessel(vessel_file)
    lot_id = generate_lot_id(
        species,
        vessel,
        pattern=pattern,
        catch_date=parse_catch_date(catch_date) if catch_date else None,
        counter_store=SqliteCounterStore(counter_db),
        custom_pattern=custom_pattern,
    )
    print(lot_id)
    return lot_id


def cmd_create(catch_file: str, vessel_file: str, strict: bool, counter_db: str):
    """Create a LOT from a catch JSON file ({"species": "BSS", "fao_zone": ..., ...})."""
    data = _read_json(catch_file)
    species = get_species(data.get("species") or data.get("fao_code"))
    vessel = _require_vessel(vessel_file)
    catch_input = CatchInput.from_dict(data)

    record = create_lot(
        species,
        vessel,
        catch_input,
        counter_store=SqliteCounterStore(counter_db),
        strict=strict,
    )
    _print_json(record)
    return record


def cmd_validate(record_file: str, strict: bool):
    """Validate a record file. Exit status 1 if invalid."""
    result = validate_record(_read_json(record_file), strict=strict)
    _print_json(result.to_dict())
    if not result.valid:
        sys.exit(1)
    return result


def cmd_export(lot_id: str, target: str):
    output = export_lot(lot_id, target)
    print(output)
    return output


def cmd_verify(lot_id: str, strict: bool):
    """Re-validate a stored LOT and check its fingerprint."""
    result = verify_lot(lot_id, strict=strict)
    _print_json(result)
    if not result["valid"]:
        sys.exit(1)
    return result


def cmd_stats(catch_date: str | None):
    """Print the day's LOT count and totals (today by default)."""
    stats = daily_stats(catch_date or date.today())
    _print_json(stats)
    return stats


def cmd_species(query: str | None):
    for species in find_species(query or ""):
        size = f"{species.min_size_cm:g} cm" if species.min_size_cm else "-"
        print(f"{species.fao_code}  {species.local_name} ({species.scientific_name})  min: {size}")


def cmd_zones():
    for code, description in CROATIAN_FAO_ZONES.items():
        print(f"{code}  {description}")


def cmd_demo():
    """Run the terminal demo."""
    from demo.terminal_demo import run_demo
    run_demo()


def main():
    parser = argparse.ArgumentParser(
        prog="ribalot",
        description="RibaLOT - LOT identifiers and EU 2023/2842 traceability records",
    )

    parser.add_argument("--test", action="store_true", help="Emit a test receipt")

    subparsers = parser.add_subparsers(dest="command")

    # vessel
    vessel_parser = subparsers.add_parser("vessel", help="Validate and save vessel configuration")
    vessel_parser.add_argument("config_file", help="Path to vessel JSON")
    vessel_parser.add_argument("--out", default=VESSEL_CONFIG_PATH, help="Where to save the configuration")

    # generate
    generate_parser = subparsers.add_parser("generate", help="Generate a LOT identifier")
    generate_parser.add_argument("species", help="FAO species code, e.g. BSS")
    generate_parser.add_argument("--pattern", default=LotPattern.WITH_DATE, choices=LotPattern.ALL)
    generate_parser.add_argument("--date", dest="catch_date", help="Catch date (DD/MM/YYYY or YYYY-MM-DD)")
    generate_parser.add_argument("--custom-pattern", help="Template for CUSTOM, e.g. {LOGBOOK}/{SPECIES}/{DATE}")
    generate_parser.add_argument("--vessel", default=VESSEL_CONFIG_PATH, help="Vessel configuration file")
    generate_parser.add_argument("--counter-db", default=COUNTER_DB_PATH, help="Counter database")

    # create
    create_parser = subparsers.add_parser("create", help="Create and store a LOT record")
    create_parser.add_argument("catch_file", help="Path to catch JSON")
    create_parser.add_argument("--vessel", default=VESSEL_CONFIG_PATH, help="Vessel configuration file")
    create_parser.add_argument("--strict", action="store_true", help="Require full traceability chain")
    create_parser.add_argument("--counter-db", default=COUNTER_DB_PATH, help="Counter database")

    # validate
    validate_parser = subparsers.add_parser("validate", help="Validate a record JSON file")
    validate_parser.add_argument("record_file", help="Path to record JSON")
    validate_parser.add_argument("--strict", action="store_true", help="Require full traceability chain")

    # export
    export_parser = subparsers.add_parser("export", help="Export a stored LOT")
    export_parser.add_argument("lot_id", help="LOT identifier")
    export_parser.add_argument("--format", dest="target", default="human_readable", choices=EXPORT_TARGETS)

    # verify
    verify_parser = subparsers.add_parser("verify", help="Re-check a stored LOT")
    verify_parser.add_argument("lot_id", help="LOT identifier")
    verify_parser.add_argument("--strict", action="store_true", help="Require full traceability chain")

    # stats
    stats_parser = subparsers.add_parser("stats", help="Daily LOT count and totals")
    stats_parser.add_argument("--date", dest="catch_date", help="Catch date (DD/MM/YYYY or YYYY-MM-DD), default today")

    # species
    species_parser = subparsers.add_parser("species", help="Search the species catalog")
    species_parser.add_argument("query", nargs="?", help="FAO code or name fragment")

    # zones
    subparsers.add_parser("zones", help="List Croatian FAO zones")

    # demo
    subparsers.add_parser("demo", help="Run terminal demo")

    args = parser.parse_args()

    try:
        if args.test:
            cmd_test()
        elif args.command == "vessel":
            cmd_vessel(args.config_file, args.out)
        elif args.command == "generate":
            cmd_generate(args.species, args.vessel, args.pattern, args.catch_date,
                         args.custom_pattern, args.counter_db)
        elif args.command == "create":
            cmd_create(args.catch_file, args.vessel, args.strict, args.counter_db)
        elif args.command == "validate":
            cmd_validate(args.record_file, args.strict)
        elif args.command == "export":
            cmd_export(args.lot_id, args.target)
        elif args.command == "verify":
            cmd_verify(args.lot_id, args.strict)
        elif args.command == "stats":
            cmd_stats(args.catch_date)
        elif args.command == "species":
            cmd_species(args.query)
        elif args.command == "zones":
            cmd_zones()
        elif args.command == "demo":
            cmd_demo()
        else:
            parser.print_help()
    except ValidationError as e:
        for error in e.errors:
            print(f"  - {error}", file=sys.stderr)
        sys.exit(1)
    except StopRule as e:
        print(str(e), file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
