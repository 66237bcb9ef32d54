#!/usr/bin/env python3
"""
Terminal Demo - RibaLOT

Walks through one fishing day: vessel setup, two LOTs, one rejected
entry, exports and verification. Uses a throw-away ledger.
"""

import os
import sys
import tempfile
from datetime import date, datetime, timezone

# Ensure project root is on path
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from ribalot.core import ValidationError, load_ledger
from ribalot.counter import MemoryCounterStore
from ribalot.export import format_record, marking_guidance, qr_text
from ribalot.lot import create_lot, daily_stats, verify_lot
from ribalot.models import CatchInput, LotPattern, UnitQuantity, WeightQuantity
from ribalot.reference import get_species
from ribalot.vessel import create_vessel_config


def _short_hash(h: str) -> str:
    """Abbreviate a dual hash for display."""
    if ":" in h:
        parts = h.split(":")
        return f"{parts[0][:12]}:{parts[1][:12]}..."
    return h[:24] + "..."


def run_demo():
    """Execute the full terminal demo."""
    demo_ledger = tempfile.mktemp(suffix=".jsonl")
    counters = MemoryCounterStore()
    catch_day = date(2026, 1, 6)
    now = datetime(2026, 1, 6, 14, 30, tzinfo=timezone.utc)

    print()

    # === VESSEL SETUP ===
    vessel = create_vessel_config({
        "cfr_number": "hrv123456789",
        "registration_mark": "ST-1234",
        "logbook_number": "HRVLOG1234567890123",
        "fishing_gear_category": "GNS",
        "vessel_name": "Galeb",
        "fisherman_name": "Ante",
    })

    print("[VESSEL]")
    print(f"CFR: {vessel.cfr_number}")
    print(f"Logbook: {vessel.logbook_number}")
    print(f"Gear: {vessel.fishing_gear_category}")
    print()

    # === LOT 1: sea bass by weight ===
    sea_bass = get_species("BSS")
    first = create_lot(
        sea_bass,
        vessel,
        CatchInput(
            fao_zone="37.2.1",
            catch_date=catch_day,
            catch_time="06:45",
            quantity=WeightQuantity(net_weight_kg=5.0),
        ),
        now=now,
        ledger_path=demo_ledger,
    )

    print("[LOT 1]")
    print(format_record(first, "human_readable"))
    print(f"Fingerprint: {_short_hash(first['fingerprint'])}")
    print()

    # === LOT 2: hake by pieces, counter pattern ===
    hake = get_species("HKE")
    second = create_lot(
        hake,
        vessel,
        CatchInput(
            fao_zone="37.2.1",
            catch_date=catch_day,
            quantity=UnitQuantity(unit_count=50, undersized_present=True, undersized_unit_count=4),
            product_form="svježe",
            purpose_phase="prodaja",
            destination="ribarnica Split",
            lot_pattern=LotPattern.WITH_COUNTER,
        ),
        counter_store=counters,
        strict=True,
        now=now,
        ledger_path=demo_ledger,
    )

    print("[LOT 2]")
    print(format_record(second, "human_readable"))
    print()

    # === REJECTED ENTRY ===
    print("[REJECTED]")
    try:
        create_lot(
            hake,
            vessel,
            CatchInput(
                fao_zone="99.9.9",
                catch_date=catch_day,
                quantity=UnitQuantity(unit_count=50, undersized_present=True, undersized_unit_count=60),
                lot_pattern=LotPattern.WITH_COUNTER,
            ),
            counter_store=counters,
            now=now,
            ledger_path=demo_ledger,
        )
    except ValidationError as e:
        for error in e.errors:
            print(f"  ! {error}")
    print()

    # === EXPORTS ===
    print("[CSV]")
    print(format_record(first, "csv"))
    print()
    print("[QR LABEL]")
    print(qr_text(first, issue_date=catch_day))
    print()
    print("[MARKING]")
    print(marking_guidance(first))
    print()

    # === VERIFICATION ===
    print("[VERIFICATION]")
    for record in (first, second):
        result = verify_lot(record["lot_id"], ledger_path=demo_ledger)
        mark = "✓" if result["valid"] else "✗"
        print(f"{mark} {result['lot_id']}")

    receipts = load_ledger(demo_ledger)
    counts = {}
    for r in receipts:
        counts[r["receipt_type"]] = counts.get(r["receipt_type"], 0) + 1
    print(f"Ledger: {len(receipts)} receipts " + ", ".join(f"{k}={v}" for k, v in sorted(counts.items())))
    stats = daily_stats(catch_day, ledger_path=demo_ledger)
    print(f"Day {stats['date']}: {stats['count']} LOTs, {stats['total_weight_kg']:g} kg, {stats['total_units']} kom")
    print()

    # Cleanup temp ledger
    try:
        os.unlink(demo_ledger)
    except OSError:
        pass

    return first, second


if __name__ == "__main__":
    run_demo()
