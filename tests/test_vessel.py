"""Tests for vessel configuration setup."""

import json

import pytest

from ribalot.core import ValidationError
from ribalot.vessel import (
    create_vessel_config,
    load_vessel_config,
    normalize_vessel_config,
    save_vessel_config,
    validate_vessel_config,
)


@pytest.fixture
def valid_data():
    return {
        "cfr_number": " hrv123456789 ",
        "registration_mark": "st-1234",
        "logbook_number": "hrvlog1234567890123",
        "fishing_gear_category": "gns",
        "vessel_name": "Galeb",
        "fisherman_name": "Ante",
    }


class TestNormalize:
    def test_upper_and_trim(self, valid_data):
        config = normalize_vessel_config(valid_data)
        assert config["cfr_number"] == "HRV123456789"
        assert config["registration_mark"] == "ST-1234"
        assert config["logbook_number"] == "HRVLOG1234567890123"
        assert config["fishing_gear_category"] == "GNS"

    def test_gear_defaults_to_mixed(self):
        assert normalize_vessel_config({})["fishing_gear_category"] == "MIXED"


class TestValidate:
    def test_valid(self, valid_data):
        assert validate_vessel_config(normalize_vessel_config(valid_data)) == []

    def test_empty(self):
        errors = validate_vessel_config(normalize_vessel_config({}))
        assert errors == [
            "CFR number is mandatory",
            "Vessel registration mark is mandatory",
            "Logbook number is mandatory",
        ]

    def test_bad_formats(self, valid_data):
        valid_data.update({
            "cfr_number": "HR12",
            "registration_mark": "S",
            "logbook_number": "HRVLOG1",
            "fishing_gear_category": "NET",
            "fisherman_name": "A",
        })
        errors = validate_vessel_config(normalize_vessel_config(valid_data))
        assert errors == [
            "CFR number must be 3 letters + 9-12 digits (e.g. HRV000000000)",
            "Registration mark too short",
            "Logbook number must be HRVLOG + 13 digits",
            "Unknown fishing gear category: NET",
            "Fisherman name must have at least 2 characters",
        ]


class TestCreateAndPersist:
    def test_create(self, valid_data):
        vessel = create_vessel_config(valid_data)
        assert vessel.cfr_number == "HRV123456789"
        assert vessel.vessel_name == "Galeb"

    def test_create_invalid(self):
        with pytest.raises(ValidationError) as exc:
            create_vessel_config({"cfr_number": "HRV123456789"})
        assert "Logbook number is mandatory" in exc.value.errors

    def test_save_and_load(self, valid_data, tmp_path):
        path = str(tmp_path / "vessel.json")
        vessel = create_vessel_config(valid_data)
        saved = save_vessel_config(vessel, path)
        assert saved["created_timestamp"] == saved["updated_timestamp"]
        assert load_vessel_config(path) == vessel

    def test_resave_keeps_created(self, valid_data, tmp_path):
        path = str(tmp_path / "vessel.json")
        vessel = create_vessel_config(valid_data)
        first = save_vessel_config(vessel, path)
        second = save_vessel_config(vessel, path)
        assert second["created_timestamp"] == first["created_timestamp"]
        with open(path, encoding="utf-8") as f:
            assert json.load(f)["cfr_number"] == "HRV123456789"

    def test_load_missing(self, tmp_path):
        assert load_vessel_config(str(tmp_path / "missing.json")) is None
