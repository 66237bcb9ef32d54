"""
Vessel configuration: one-time setup, validated and stored as JSON.

The engine only reads the configuration; this module is the setup flow
that produces it.
"""

import json
import os
from datetime import datetime, timezone

from .core import CFR_PATTERN, LOGBOOK_PATTERN, ValidationError
from .models import VesselConfig
from .reference import GEAR_CATEGORIES

DEFAULT_GEAR_CATEGORY = "MIXED"


def normalize_vessel_config(data: dict) -> dict:
    """Trim and upper-case identifiers before validation."""
    return {
        "cfr_number": (data.get("cfr_number") or "").strip().upper(),
        "registration_mark": (data.get("registration_mark") or "").strip().upper(),
        "logbook_number": (data.get("logbook_number") or "").strip().upper(),
        "fishing_gear_category": (data.get("fishing_gear_category") or DEFAULT_GEAR_CATEGORY).strip().upper(),
        "vessel_name": (data.get("vessel_name") or "").strip() or None,
        "fisherman_name": (data.get("fisherman_name") or "").strip() or None,
    }


def validate_vessel_config(config: dict) -> list[str]:
    """Return all problems with a (normalized) vessel configuration."""
    errors = []

    cfr = config.get("cfr_number")
    if not cfr:
        errors.append("CFR number is mandatory")
    elif not CFR_PATTERN.match(cfr):
        errors.append("CFR number must be 3 letters + 9-12 digits (e.g. HRV000000000)")

    mark = config.get("registration_mark")
    if not mark:
        errors.append("Vessel registration mark is mandatory")
    elif len(mark) < 2:
        errors.append("Registration mark too short")

    logbook = config.get("logbook_number")
    if not logbook:
        errors.append("Logbook number is mandatory")
    elif not LOGBOOK_PATTERN.match(logbook):
        errors.append("Logbook number must be HRVLOG + 13 digits")

    gear = config.get("fishing_gear_category")
    if gear and gear not in GEAR_CATEGORIES:
        errors.append(f"Unknown fishing gear category: {gear}")

    name = config.get("fisherman_name")
    if name is not None and len(name) < 2:
        errors.append("Fisherman name must have at least 2 characters")

    return errors


def create_vessel_config(data: dict) -> VesselConfig:
    """Normalize, validate and freeze a vessel configuration.

    Raises:
        ValidationError: With every problem found.
    """
    config = normalize_vessel_config(data)
    errors = validate_vessel_config(config)
    if errors:
        raise ValidationError(errors)
    return VesselConfig.from_dict(config)


def save_vessel_config(config: VesselConfig, path: str) -> dict:
    """Write the configuration to a JSON file, keeping the original creation time."""
    now = datetime.now(timezone.utc).isoformat()
    created = now
    if os.path.exists(path):
        with open(path, "r", encoding="utf-8") as f:
            created = json.load(f).get("created_timestamp", now)

    data = config.to_dict()
    data["created_timestamp"] = created
    data["updated_timestamp"] = now

    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)
    return data


def load_vessel_config(path: str) -> VesselConfig | None:
    if not os.path.exists(path):
        return None
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    return create_vessel_config(data)
