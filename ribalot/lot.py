"""
LOT creation: generate id -> build record -> fingerprint -> ledger.

This is the only layer that writes receipts. Each created LOT becomes a
`lot` receipt; rejected attempts become `lot_rejected`; informational
flags become `lot_notice` receipts next to the LOT they describe.
"""

from datetime import datetime

from .core import (
    SMALL_QUANTITY_EXEMPTION_KG,
    StopRule,
    ValidationError,
    emit_receipt,
    find_receipt,
    load_ledger,
    record_fingerprint,
    verify_fingerprint,
)
from .counter import CounterStore
from .export import format_record
from .identifier import (
    contains_species_code,
    generate_lot_id,
    is_reproducible,
    unresolved_placeholders,
)
from .models import CatchInput, Species, VesselConfig, format_catch_date, parse_catch_date
from .record import build_record
from .validation import validate_record


def lot_notices(record: dict, pattern: str) -> list[dict]:
    """Informational flags for a freshly built record.

    Args:
        record: Built traceability record.
        pattern: LOT pattern used to generate its id.

    Returns:
        List of notice dicts (notice_type, severity, message).
    """
    lot_id = record["lot_id"]
    fao_code = record["species"]["fao_code"]
    notices = []

    if not contains_species_code(lot_id, fao_code):
        notices.append({
            "notice_type": "NO_SPECIES_CODE",
            "severity": "INFO",
            "message": f"LOT ID {lot_id} does not contain species code {fao_code} (allowed per regulation)",
        })

    leftovers = unresolved_placeholders(lot_id)
    if leftovers:
        notices.append({
            "notice_type": "UNRESOLVED_PLACEHOLDERS",
            "severity": "WARNING",
            "message": f"Custom pattern left placeholders unresolved: {', '.join(leftovers)}",
        })

    if is_reproducible(pattern):
        notices.append({
            "notice_type": "SAME_DAY_COLLISION_RISK",
            "severity": "INFO",
            "message": (
                f"Pattern {pattern} repeats for the same species, vessel and day; "
                "a second catch needs a counter or custom pattern to stay unique"
            ),
        })

    quantity = record["quantity"]
    net = quantity.get("net_weight_kg")
    if quantity["quantity_type"] == "WEIGHT" and net is not None and 0 < net <= SMALL_QUANTITY_EXEMPTION_KG:
        notices.append({
            "notice_type": "SMALL_QUANTITY_EXEMPTION",
            "severity": "INFO",
            "message": f"{net} kg sold directly to consumers may be exempt from traceability (Art. 58.8)",
        })

    return notices


def create_lot(
    species: Species,
    vessel: VesselConfig,
    catch_input: CatchInput,
    counter_store: CounterStore | None = None,
    strict: bool = False,
    now: datetime | None = None,
    tenant_id: str | None = None,
    ledger_path: str | None = None,
) -> dict:
    """Generate a LOT id, build the record and store it in the ledger.

    Args:
        species: Species reference entry.
        vessel: Vessel configuration.
        catch_input: Per-LOT catch facts, including the LOT pattern.
        counter_store: Needed for counter-based patterns.
        strict: Ministry submission profile (full traceability chain).
        now: Creation timestamp override.
        tenant_id: Tenant identifier.
        ledger_path: Override ledger path.

    Returns:
        The built record with its fingerprint.

    Raises:
        PrerequisiteError: Species or vessel data missing.
        ValidationError: Record rejected; a lot_rejected receipt is written first.
    """
    lot_id = generate_lot_id(
        species,
        vessel,
        pattern=catch_input.lot_pattern,
        catch_date=catch_input.catch_date,
        counter_store=counter_store,
        custom_pattern=catch_input.custom_pattern_template,
    )

    try:
        record = build_record(lot_id, species, vessel, catch_input, strict=strict, now=now)
    except ValidationError as e:
        emit_receipt("lot_rejected", {
            "lot_id": lot_id,
            "errors": e.errors,
            "issues": [i.to_dict() for i in e.issues],
        }, tenant_id=tenant_id, ledger_path=ledger_path)
        raise

    record["fingerprint"] = record_fingerprint(record)

    emit_receipt("lot", {
        "lot_id": lot_id,
        "lot_pattern": catch_input.lot_pattern,
        "strict": strict,
        "record": record,
    }, tenant_id=tenant_id, ledger_path=ledger_path)

    for notice in lot_notices(record, catch_input.lot_pattern):
        emit_receipt("lot_notice", {"lot_id": lot_id, **notice},
                     tenant_id=tenant_id, ledger_path=ledger_path)

    return record


def find_lot(lot_id: str, ledger_path: str | None = None) -> dict | None:
    """Return the stored record for a LOT id, or None."""
    receipt = find_receipt("lot", "lot_id", lot_id, ledger_path=ledger_path)
    if receipt is None:
        return None
    return receipt["record"]


def list_lots(catch_date: str | None = None, fao_code: str | None = None,
              ledger_path: str | None = None) -> list[dict]:
    """All stored records, optionally filtered by DD/MM/YYYY date or species."""
    records = []
    for receipt in load_ledger(ledger_path):
        if receipt.get("receipt_type") != "lot":
            continue
        record = receipt["record"]
        if catch_date and record["fishing"]["catch_date"] != catch_date:
            continue
        if fao_code and record["species"]["fao_code"] != fao_code:
            continue
        records.append(record)
    return records


def daily_stats(catch_date, ledger_path: str | None = None) -> dict:
    """Totals for one catch day: LOT count, kilograms and pieces.

    Args:
        catch_date: date, DD/MM/YYYY or YYYY-MM-DD.
        ledger_path: Override ledger path.
    """
    day = format_catch_date(parse_catch_date(catch_date))
    records = list_lots(catch_date=day, ledger_path=ledger_path)

    total_weight = 0.0
    total_units = 0
    for record in records:
        quantity = record["quantity"]
        if quantity["quantity_type"] == "UNITS":
            total_units += quantity.get("unit_count") or 0
        else:
            total_weight += quantity.get("net_weight_kg") or 0

    return {
        "date": day,
        "count": len(records),
        "total_weight_kg": round(total_weight, 3),
        "total_units": total_units,
    }


def export_lot(lot_id: str, target: str = "human_readable", ledger_path: str | None = None) -> str:
    """Render a stored LOT.

    Raises:
        StopRule: No record for this LOT id.
        FormatError: Unsupported target.
    """
    record = find_lot(lot_id, ledger_path=ledger_path)
    if record is None:
        raise StopRule(f"No traceability record found for LOT {lot_id}")
    return format_record(record, target)


def verify_lot(lot_id: str, strict: bool = False, ledger_path: str | None = None) -> dict:
    """Re-check a stored record: rules still pass and content is untouched.

    Returns:
        Dict with lot_id, found, valid, fingerprint_valid, errors, warnings.
    """
    record = find_lot(lot_id, ledger_path=ledger_path)
    if record is None:
        return {
            "lot_id": lot_id,
            "found": False,
            "valid": False,
            "fingerprint_valid": False,
            "errors": [f"No traceability record found for LOT {lot_id}"],
            "warnings": [],
        }

    body = {k: v for k, v in record.items() if k != "fingerprint"}
    result = validate_record(body, strict=strict)
    fingerprint_ok = verify_fingerprint(record)

    errors = list(result.errors)
    if not fingerprint_ok:
        errors.append("Fingerprint does not match record content")

    return {
        "lot_id": lot_id,
        "found": True,
        "valid": result.valid and fingerprint_ok,
        "fingerprint_valid": fingerprint_ok,
        "errors": errors,
        "warnings": result.warnings,
    }
