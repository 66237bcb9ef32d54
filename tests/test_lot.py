"""Tests for LOT creation and the receipt ledger."""

import json
import os
import tempfile
from datetime import date, datetime, timezone

import pytest

from ribalot.core import PrerequisiteError, StopRule, ValidationError, load_ledger, verify_fingerprint
from ribalot.counter import MemoryCounterStore
from ribalot.lot import create_lot, daily_stats, export_lot, find_lot, list_lots, lot_notices, verify_lot
from ribalot.models import CatchInput, LotPattern, UnitQuantity, VesselConfig, WeightQuantity
from ribalot.record import build_record
from ribalot.reference import get_species

NOW = datetime(2026, 1, 6, 14, 30, tzinfo=timezone.utc)
CATCH_DAY = date(2026, 1, 6)


@pytest.fixture
def ledger():
    path = tempfile.mktemp(suffix=".jsonl")
    yield path
    try:
        os.unlink(path)
    except OSError:
        pass


@pytest.fixture
def vessel():
    return VesselConfig(
        cfr_number="HRV123456789",
        registration_mark="ST-1234",
        logbook_number="HRVLOG1234567890123",
        fishing_gear_category="GNS",
    )


def _catch(**overrides):
    values = {
        "fao_zone": "37.2.1",
        "catch_date": CATCH_DAY,
        "quantity": WeightQuantity(net_weight_kg=5.0),
    }
    values.update(overrides)
    return CatchInput(**values)


class TestCreateLot:
    def test_sea_bass_scenario(self, vessel, ledger):
        record = create_lot(get_species("BSS"), vessel, _catch(), now=NOW, ledger_path=ledger)

        assert record["lot_id"] == "HRVLOG1234567890123-BSS-20260106"
        assert record["production_area"]["description"] == "Jadransko more - srednji dio"
        assert record["fishing"]["catch_date"] == "06/01/2026"
        assert verify_fingerprint(record)

    def test_receipts_written(self, vessel, ledger):
        create_lot(get_species("BSS"), vessel, _catch(), now=NOW, ledger_path=ledger)
        receipts = load_ledger(ledger)

        assert receipts[0]["receipt_type"] == "lot"
        assert receipts[0]["lot_id"] == "HRVLOG1234567890123-BSS-20260106"
        assert receipts[0]["payload_hash"].startswith("SHA256_")
        notices = {r["notice_type"] for r in receipts if r["receipt_type"] == "lot_notice"}
        assert notices == {"SAME_DAY_COLLISION_RISK", "SMALL_QUANTITY_EXEMPTION"}

    def test_counter_pattern(self, vessel, ledger):
        store = MemoryCounterStore()
        first = create_lot(get_species("HKE"), vessel, _catch(lot_pattern=LotPattern.WITH_COUNTER),
                           counter_store=store, now=NOW, ledger_path=ledger)
        second = create_lot(get_species("HKE"), vessel, _catch(lot_pattern=LotPattern.WITH_COUNTER),
                            counter_store=store, now=NOW, ledger_path=ledger)
        assert first["lot_id"] == "HRVLOG1234567890123-HKE-001"
        assert second["lot_id"] == "HRVLOG1234567890123-HKE-002"

    def test_custom_pattern_without_species(self, vessel, ledger):
        catch = _catch(lot_pattern=LotPattern.CUSTOM, custom_pattern_template="{LOGBOOK}-{DATE}-{PORT}",
                       quantity=WeightQuantity(net_weight_kg=40.0))
        record = create_lot(get_species("BSS"), vessel, catch, now=NOW, ledger_path=ledger)

        assert record["lot_id"] == "HRVLOG1234567890123-20260106-{PORT}"
        notices = {r["notice_type"] for r in load_ledger(ledger) if r["receipt_type"] == "lot_notice"}
        assert notices == {"NO_SPECIES_CODE", "UNRESOLVED_PLACEHOLDERS"}

    def test_rejected_written_then_raised(self, vessel, ledger):
        catch = _catch(fao_zone="99.9.9",
                       quantity=UnitQuantity(unit_count=50, undersized_present=True, undersized_unit_count=60))
        with pytest.raises(ValidationError) as exc:
            create_lot(get_species("HKE"), vessel, catch, now=NOW, ledger_path=ledger)

        assert exc.value.errors == [
            "Invalid FAO zone: 99.9.9 (not a Croatian-waters zone)",
            "Undersized unit count cannot exceed total unit count",
        ]
        receipts = load_ledger(ledger)
        assert [r["receipt_type"] for r in receipts] == ["lot_rejected"]
        assert receipts[0]["errors"] == exc.value.errors
        assert receipts[0]["issues"][0]["kind"] == "INVALID_ZONE"

    def test_prerequisites_fail_before_ledger(self, ledger):
        vessel = VesselConfig(cfr_number="", registration_mark="ST-1234", logbook_number="")
        with pytest.raises(PrerequisiteError):
            create_lot(get_species("BSS"), vessel, _catch(), ledger_path=ledger)
        assert load_ledger(ledger) == []

    def test_strict(self, vessel, ledger):
        with pytest.raises(ValidationError, match="Product form is required"):
            create_lot(get_species("BSS"), vessel, _catch(), strict=True, ledger_path=ledger)

        record = create_lot(
            get_species("BSS"), vessel,
            _catch(product_form="svježe", purpose_phase="prodaja", destination="ribarnica"),
            strict=True, ledger_path=ledger,
        )
        assert record["traceability"]["destination"] == "ribarnica"

    def test_notices_for_units_skip_exemption(self, vessel):
        record = build_record("HRVLOG1234567890123-OCC-001", get_species("OCC"), vessel,
                              _catch(quantity=UnitQuantity(unit_count=3)), now=NOW)
        assert lot_notices(record, LotPattern.WITH_COUNTER) == []


class TestLookup:
    def test_find_lot(self, vessel, ledger):
        created = create_lot(get_species("BSS"), vessel, _catch(), now=NOW, ledger_path=ledger)
        assert find_lot(created["lot_id"], ledger_path=ledger) == created
        assert find_lot("HRVLOG0000000000000-XXX", ledger_path=ledger) is None

    def test_list_lots_filters(self, vessel, ledger):
        create_lot(get_species("BSS"), vessel, _catch(), now=NOW, ledger_path=ledger)
        create_lot(get_species("SBG"), vessel, _catch(catch_date=date(2026, 1, 7)), now=NOW, ledger_path=ledger)

        assert len(list_lots(ledger_path=ledger)) == 2
        assert [r["species"]["fao_code"] for r in list_lots(fao_code="SBG", ledger_path=ledger)] == ["SBG"]
        assert [r["species"]["fao_code"] for r in list_lots(catch_date="06/01/2026", ledger_path=ledger)] == ["BSS"]

    def test_export_lot(self, vessel, ledger):
        create_lot(get_species("BSS"), vessel, _catch(), now=NOW, ledger_path=ledger)
        text = export_lot("HRVLOG1234567890123-BSS-20260106", "csv", ledger_path=ledger)
        assert text.startswith('"LOT_ID"')

    def test_export_missing(self, ledger):
        with pytest.raises(StopRule, match="No traceability record found"):
            export_lot("NOPE", "csv", ledger_path=ledger)



class TestDailyStats:
    def test_totals_by_quantity_type(self, vessel, ledger):
        create_lot(get_species("BSS"), vessel, _catch(), now=NOW, ledger_path=ledger)
        create_lot(get_species("SBG"), vessel, _catch(quantity=WeightQuantity(net_weight_kg=12.5)),
                   now=NOW, ledger_path=ledger)
        create_lot(get_species("HKE"), vessel, _catch(quantity=UnitQuantity(unit_count=40)),
                   now=NOW, ledger_path=ledger)
        create_lot(get_species("BSS"), vessel, _catch(catch_date=date(2026, 1, 7)), now=NOW, ledger_path=ledger)

        assert daily_stats(CATCH_DAY, ledger_path=ledger) == {
            "date": "06/01/2026",
            "count": 3,
            "total_weight_kg": 17.5,
            "total_units": 40,
        }

    def test_accepts_text_dates(self, vessel, ledger):
        create_lot(get_species("BSS"), vessel, _catch(), now=NOW, ledger_path=ledger)
        assert daily_stats("2026-01-06", ledger_path=ledger)["count"] == 1
        assert daily_stats("06/01/2026", ledger_path=ledger)["count"] == 1

    def test_rejected_lots_not_counted(self, vessel, ledger):
        with pytest.raises(ValidationError):
            create_lot(get_species("BSS"), vessel, _catch(fao_zone="99.9.9"), now=NOW, ledger_path=ledger)
        assert daily_stats(CATCH_DAY, ledger_path=ledger)["count"] == 0

    def test_empty_day(self, ledger):
        assert daily_stats(date(2026, 2, 1), ledger_path=ledger) == {
            "date": "01/02/2026",
            "count": 0,
            "total_weight_kg": 0.0,
            "total_units": 0,
        }

class TestVerifyLot:
    def test_valid(self, vessel, ledger):
        create_lot(get_species("BSS"), vessel, _catch(), now=NOW, ledger_path=ledger)
        result = verify_lot("HRVLOG1234567890123-BSS-20260106", ledger_path=ledger)
        assert result["found"] is True
        assert result["valid"] is True
        assert result["fingerprint_valid"] is True

    def test_missing(self, ledger):
        result = verify_lot("NOPE", ledger_path=ledger)
        assert result["found"] is False
        assert result["valid"] is False

    def test_tampered(self, vessel, ledger):
        create_lot(get_species("BSS"), vessel, _catch(), now=NOW, ledger_path=ledger)

        with open(ledger, "r", encoding="utf-8") as f:
            lines = [json.loads(line) for line in f if line.strip()]
        lines[0]["record"]["quantity"]["net_weight_kg"] = 50.0
        with open(ledger, "w", encoding="utf-8") as f:
            for line in lines:
                f.write(json.dumps(line, ensure_ascii=False) + "\n")

        result = verify_lot("HRVLOG1234567890123-BSS-20260106", ledger_path=ledger)
        assert result["fingerprint_valid"] is False
        assert result["valid"] is False
        assert "Fingerprint does not match record content" in result["errors"]

    def test_strict_recheck(self, vessel, ledger):
        create_lot(get_species("BSS"), vessel, _catch(), now=NOW, ledger_path=ledger)
        result = verify_lot("HRVLOG1234567890123-BSS-20260106", strict=True, ledger_path=ledger)
        assert result["valid"] is False
        assert "Destination is required" in result["errors"]
