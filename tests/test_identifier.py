"""Tests for LOT identifier generation."""

import threading
from datetime import date

import pytest

from ribalot.core import PrerequisiteError, StopRule
from ribalot.counter import MemoryCounterStore, counter_key
from ribalot.identifier import (
    apply_custom_pattern,
    check_prerequisites,
    contains_species_code,
    generate_lot_id,
    is_reproducible,
    unresolved_placeholders,
)
from ribalot.models import LotPattern, Species, VesselConfig

LOGBOOK = "HRVLOG1234567890123"
CATCH_DAY = date(2026, 1, 6)


@pytest.fixture
def species():
    return Species("BSS", "Dicentrarchus labrax", "Lubin", "fish", 42)


@pytest.fixture
def vessel():
    return VesselConfig(cfr_number="HRV123456789", registration_mark="ST-1234", logbook_number=LOGBOOK)


class TestPrerequisites:
    def test_complete_inputs(self, species, vessel):
        assert check_prerequisites(species, vessel) == []

    def test_missing_species(self, vessel):
        assert check_prerequisites(None, vessel) == ["Species with FAO code is required"]

    def test_all_missing(self):
        errors = check_prerequisites(None, None)
        assert "Species with FAO code is required" in errors
        assert "Vessel logbook number is required" in errors
        assert "Vessel CFR number is required" in errors

    def test_bad_logbook_format(self, species):
        vessel = VesselConfig("HRV123456789", "ST-1234", "HRVLOG123")
        assert check_prerequisites(species, vessel) == [
            "Invalid logbook number format (must be HRVLOG + 13 digits)"
        ]

    def test_generate_raises_with_every_reason(self):
        vessel = VesselConfig("", "ST-1234", "LOG1")
        with pytest.raises(PrerequisiteError) as exc:
            generate_lot_id(None, vessel, catch_date=CATCH_DAY)
        assert len(exc.value.errors) == 3
        assert str(exc.value).startswith("LOT generation failed: ")

    def test_prerequisite_error_is_stoprule(self):
        assert issubclass(PrerequisiteError, StopRule)


class TestPatterns:
    def test_with_date(self, species, vessel):
        lot_id = generate_lot_id(species, vessel, LotPattern.WITH_DATE, catch_date=CATCH_DAY)
        assert lot_id == "HRVLOG1234567890123-BSS-20260106"

    def test_default_pattern_is_with_date(self, species, vessel):
        assert generate_lot_id(species, vessel, catch_date=CATCH_DAY).endswith("-BSS-20260106")

    def test_simple(self, species, vessel):
        assert generate_lot_id(species, vessel, LotPattern.SIMPLE) == "HRVLOG1234567890123-BSS"

    def test_simple_ignores_date(self, species, vessel):
        first = generate_lot_id(species, vessel, LotPattern.SIMPLE, catch_date=CATCH_DAY)
        later = generate_lot_id(species, vessel, LotPattern.SIMPLE, catch_date=date(2026, 3, 1))
        assert first == later

    def test_pattern_name_case_insensitive(self, species, vessel):
        assert generate_lot_id(species, vessel, "simple") == "HRVLOG1234567890123-BSS"

    def test_with_date_is_idempotent(self, species, vessel):
        first = generate_lot_id(species, vessel, LotPattern.WITH_DATE, catch_date=CATCH_DAY)
        second = generate_lot_id(species, vessel, LotPattern.WITH_DATE, catch_date=CATCH_DAY)
        assert first == second

    def test_with_counter(self, species, vessel):
        store = MemoryCounterStore()
        first = generate_lot_id(species, vessel, LotPattern.WITH_COUNTER, catch_date=CATCH_DAY, counter_store=store)
        second = generate_lot_id(species, vessel, LotPattern.WITH_COUNTER, catch_date=CATCH_DAY, counter_store=store)
        assert first == "HRVLOG1234567890123-BSS-001"
        assert second == "HRVLOG1234567890123-BSS-002"

    def test_counter_is_daily(self, species, vessel):
        store = MemoryCounterStore()
        generate_lot_id(species, vessel, LotPattern.WITH_COUNTER, catch_date=CATCH_DAY, counter_store=store)
        next_day = generate_lot_id(species, vessel, LotPattern.WITH_COUNTER,
                                   catch_date=date(2026, 1, 7), counter_store=store)
        assert next_day.endswith("-001")

    def test_counter_not_daily(self, species, vessel):
        store = MemoryCounterStore()
        generate_lot_id(species, vessel, LotPattern.WITH_COUNTER, catch_date=CATCH_DAY,
                        counter_store=store, daily_counter=False)
        lot_id = generate_lot_id(species, vessel, LotPattern.WITH_COUNTER, catch_date=date(2026, 1, 7),
                                 counter_store=store, daily_counter=False)
        assert lot_id.endswith("-002")
        assert store.peek(counter_key(LOGBOOK, "BSS")) == 2

    def test_counter_requires_store(self, species, vessel):
        with pytest.raises(StopRule, match="requires a counter store"):
            generate_lot_id(species, vessel, LotPattern.WITH_COUNTER, catch_date=CATCH_DAY)

    def test_unknown_pattern(self, species, vessel):
        with pytest.raises(StopRule, match="Invalid LOT pattern"):
            generate_lot_id(species, vessel, "WEEKLY")

    def test_counter_monotonic_under_threads(self, species, vessel):
        store = MemoryCounterStore()
        ids = []
        lock = threading.Lock()

        def worker():
            for _ in range(25):
                lot_id = generate_lot_id(species, vessel, LotPattern.WITH_COUNTER,
                                         catch_date=CATCH_DAY, counter_store=store)
                with lock:
                    ids.append(lot_id)

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(ids) == 100
        assert len(set(ids)) == 100
        assert store.peek(counter_key(LOGBOOK, "BSS", CATCH_DAY)) == 100


class TestCustomPattern:
    def test_placeholders_substituted(self, species, vessel):
        lot_id = generate_lot_id(species, vessel, LotPattern.CUSTOM, catch_date=CATCH_DAY,
                                 custom_pattern="{LOGBOOK}/{SPECIES}/{DATE}")
        assert lot_id == "HRVLOG1234567890123/BSS/20260106"

    def test_repeated_placeholder_replaced_everywhere(self, species, vessel):
        lot_id = generate_lot_id(species, vessel, LotPattern.CUSTOM, catch_date=CATCH_DAY,
                                 custom_pattern="{SPECIES}-{DATE}-{SPECIES}")
        assert lot_id == "BSS-20260106-BSS"

    def test_fao_species_alias(self, species, vessel):
        lot_id = generate_lot_id(species, vessel, LotPattern.CUSTOM, catch_date=CATCH_DAY,
                                 custom_pattern="{FAO_SPECIES}")
        assert lot_id == "BSS"

    def test_unknown_placeholder_left_verbatim(self, species, vessel):
        lot_id = generate_lot_id(species, vessel, LotPattern.CUSTOM, catch_date=CATCH_DAY,
                                 custom_pattern="{LOGBOOK}-{PORT}")
        assert lot_id == "HRVLOG1234567890123-{PORT}"
        assert unresolved_placeholders(lot_id) == ["{PORT}"]

    def test_counter_only_advanced_when_used(self, species, vessel):
        store = MemoryCounterStore()
        generate_lot_id(species, vessel, LotPattern.CUSTOM, catch_date=CATCH_DAY,
                        counter_store=store, custom_pattern="{LOGBOOK}-{DATE}")
        assert store.peek(counter_key(LOGBOOK, "BSS", CATCH_DAY)) == 0

        lot_id = generate_lot_id(species, vessel, LotPattern.CUSTOM, catch_date=CATCH_DAY,
                                 counter_store=store, custom_pattern="{SPECIES}-{COUNTER}")
        assert lot_id == "BSS-001"
        assert store.peek(counter_key(LOGBOOK, "BSS", CATCH_DAY)) == 1

    def test_missing_template(self, species, vessel):
        with pytest.raises(StopRule, match="Custom pattern specified but not provided"):
            generate_lot_id(species, vessel, LotPattern.CUSTOM, catch_date=CATCH_DAY)

    def test_apply_custom_pattern(self):
        assert apply_custom_pattern("{A}{B}{A}", {"A": "x", "B": "y"}) == "xyx"


class TestAdvisories:
    def test_contains_species_code(self):
        assert contains_species_code("HRVLOG1234567890123-BSS-20260106", "BSS") is True
        assert contains_species_code("HRVLOG1234567890123-20260106", "BSS") is False

    def test_non_text_ids(self):
        assert contains_species_code(12345, "BSS") is False
        assert contains_species_code("HRVLOG1234567890123-BSS", None) is False
        assert unresolved_placeholders(12345) == []

    def test_reproducible_patterns(self):
        assert is_reproducible(LotPattern.SIMPLE)
        assert is_reproducible(LotPattern.WITH_DATE)
        assert not is_reproducible(LotPattern.WITH_COUNTER)
        assert not is_reproducible(LotPattern.CUSTOM)
