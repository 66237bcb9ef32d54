"""
Traceability record builder.

Assembles the Art. 58 record from a LOT id, reference data and the catch
facts, then validates it. A record that comes out of build_record() is
always compliant; anything else is a ValidationError.
"""

from datetime import date, datetime, timezone

from .core import COMPLIANCE_STANDARD, RECORD_VERSION, ValidationError
from .models import (
    CatchInput,
    Species,
    VesselConfig,
    format_catch_date,
    parse_catch_date,
)
from .reference import zone_description
from .validation import validate_record


def build_record(
    lot_id: str,
    species: Species,
    vessel: VesselConfig,
    catch_input: CatchInput,
    strict: bool = False,
    now: datetime | None = None,
) -> dict:
    """Build and validate a traceability record.

    Args:
        lot_id: Identifier from generate_lot_id().
        species: Species reference entry (min_size_cm is not copied).
        vessel: Vessel configuration.
        catch_input: Per-LOT catch facts.
        strict: Require the full product form / purpose / destination chain.
        now: Creation timestamp override (defaults to current UTC time).

    Returns:
        Record dict. Quantity keys for the unused quantity type are present
        and set to None.

    Raises:
        ValidationError: With every violated rule.
    """
    created = (now or datetime.now(timezone.utc)).isoformat()

    record = {
        "lot_id": lot_id,
        "species": {
            "fao_code": species.fao_code,
            "scientific_name": species.scientific_name,
            "local_name": species.local_name,
        },
        "production_area": {
            "type": catch_input.production_area_type,
            "fao_zone": catch_input.fao_zone,
            "description": zone_description(catch_input.fao_zone) if catch_input.fao_zone else "",
        },
        "fishing": {
            "catch_date": format_catch_date(catch_input.catch_date),
            "catch_time": catch_input.catch_time,
            "fishing_gear_category": vessel.fishing_gear_category,
        },
        "vessel": {
            "cfr_number": vessel.cfr_number,
            "registration_mark": vessel.registration_mark,
            "logbook_number": vessel.logbook_number,
            "vessel_name": vessel.vessel_name,
        },
        "quantity": catch_input.quantity.as_record_fields(),
        "traceability": {
            "product_form": catch_input.product_form,
            "purpose_phase": catch_input.purpose_phase,
            "destination": catch_input.destination,
        },
        "metadata": {
            "created_timestamp": created,
            "record_version": RECORD_VERSION,
            "compliance_standard": COMPLIANCE_STANDARD,
        },
    }

    result = validate_record(record, strict=strict)
    if not result.valid:
        raise ValidationError(result.errors, result.issues)

    return record


def record_catch_date(record: dict) -> date:
    """Recover the calendar date from a record's DD/MM/YYYY display field."""
    return parse_catch_date(record["fishing"]["catch_date"])


def correct_record(
    record: dict,
    new_lot_id: str,
    species: Species,
    vessel: VesselConfig,
    catch_input: CatchInput,
    strict: bool = False,
    now: datetime | None = None,
) -> dict:
    """Build a replacement record for a wrong one.

    Records are never edited in place: the correction gets its own LOT id
    and points back at the record it supersedes.

    Raises:
        ValidationError: If the correction itself is invalid, or reuses the
            old LOT id.
    """
    old_lot_id = record.get("lot_id")
    if new_lot_id == old_lot_id:
        raise ValidationError([f"Correction must use a new LOT ID, not {old_lot_id}"])

    corrected = build_record(new_lot_id, species, vessel, catch_input, strict=strict, now=now)
    corrected["metadata"]["supersedes"] = old_lot_id
    return corrected
