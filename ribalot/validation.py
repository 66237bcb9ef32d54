"""
Traceability record validation (EU 2023/2842, Art. 58).

validate_record() never raises for bad data. It collects every violated
rule so the fisherman can fix everything in one pass, and keeps advisory
notes (exemptions, informational flags) in a separate warnings list that
never affects validity.
"""

import math
from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum

from .core import CFR_PATTERN, LOGBOOK_PATTERN, SMALL_QUANTITY_EXEMPTION_KG, dedupe
from .identifier import contains_species_code, unresolved_placeholders
from .models import QUANTITY_TYPES
from .reference import PRODUCTION_AREA_TYPES, is_croatian_zone, is_known_gear


class ErrorKind(str, Enum):
    MISSING_FIELD = "MISSING_FIELD"
    INVALID_FORMAT = "INVALID_FORMAT"
    INVALID_ZONE = "INVALID_ZONE"
    QUANTITY = "QUANTITY"
    UNDERSIZED = "UNDERSIZED"
    TRACEABILITY_CHAIN = "TRACEABILITY_CHAIN"


@dataclass(frozen=True)
class ValidationIssue:
    kind: ErrorKind
    field: str
    message: str

    def to_dict(self) -> dict:
        data = asdict(self)
        data["kind"] = self.kind.value
        return data


@dataclass
class ValidationResult:
    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    issues: list[ValidationIssue] = field(default_factory=list)
    exempt_eligible: bool = False

    def errors_of(self, kind: ErrorKind) -> list[str]:
        return [i.message for i in self.issues if i.kind == kind]

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "issues": [i.to_dict() for i in self.issues],
            "exempt_eligible": self.exempt_eligible,
        }


def _section(record: dict, name: str) -> dict:
    value = record.get(name)
    return value if isinstance(value, dict) else {}


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _positive(value) -> bool:
    return _is_number(value) and value > 0


class _Collector:
    def __init__(self):
        self.issues: list[ValidationIssue] = []
        self.warnings: list[str] = []

    def error(self, kind: ErrorKind, field_name: str, message: str):
        self.issues.append(ValidationIssue(kind, field_name, message))

    def warn(self, message: str):
        self.warnings.append(message)

    def text(self, value, field_name: str, label: str) -> bool:
        """Flag a present but non-text value. True when value is usable text."""
        if isinstance(value, str):
            return True
        self.error(ErrorKind.INVALID_FORMAT, field_name,
                   f"{label} must be text, got {type(value).__name__}")
        return False


def _check_identity(record: dict, out: _Collector):
    lot_id = record.get("lot_id")
    if not lot_id:
        out.error(ErrorKind.MISSING_FIELD, "lot_id", "LOT ID is required")
    else:
        out.text(lot_id, "lot_id", "LOT ID")

    species = _section(record, "species")
    fao_code = species.get("fao_code")
    if not fao_code:
        out.error(ErrorKind.MISSING_FIELD, "species.fao_code", "Species FAO code is required")
    else:
        out.text(fao_code, "species.fao_code", "Species FAO code")

    vessel = _section(record, "vessel")
    cfr = vessel.get("cfr_number")
    if not cfr:
        out.error(ErrorKind.MISSING_FIELD, "vessel.cfr_number", "CFR number is required")
    elif not CFR_PATTERN.match(str(cfr)):
        out.warn(f"CFR number {cfr} does not match the EU format (3 letters + 9-12 digits)")

    logbook = vessel.get("logbook_number")
    if not logbook:
        out.error(ErrorKind.MISSING_FIELD, "vessel.logbook_number", "Logbook number is required")
    elif not LOGBOOK_PATTERN.match(str(logbook)):
        out.error(ErrorKind.INVALID_FORMAT, "vessel.logbook_number",
                  "Logbook number must be HRVLOG + 13 digits")


def _check_area_and_fishing(record: dict, out: _Collector):
    area = _section(record, "production_area")
    zone = area.get("fao_zone")
    if not zone:
        out.error(ErrorKind.MISSING_FIELD, "production_area.fao_zone", "FAO fishing zone is required")
    elif out.text(zone, "production_area.fao_zone", "FAO fishing zone") and not is_croatian_zone(zone):
        out.error(ErrorKind.INVALID_ZONE, "production_area.fao_zone",
                  f"Invalid FAO zone: {zone} (not a Croatian-waters zone)")
    if not area.get("description"):
        out.error(ErrorKind.MISSING_FIELD, "production_area.description",
                  "Production area description is required")
    area_type = area.get("type")
    if area_type and (not isinstance(area_type, str) or area_type not in PRODUCTION_AREA_TYPES):
        out.warn(f"Unknown production area type: {area_type}")

    fishing = _section(record, "fishing")
    catch_date = fishing.get("catch_date")
    if not catch_date:
        out.error(ErrorKind.MISSING_FIELD, "fishing.catch_date", "Catch date is required")
    else:
        try:
            datetime.strptime(str(catch_date), "%d/%m/%Y")
        except ValueError:
            out.error(ErrorKind.INVALID_FORMAT, "fishing.catch_date",
                      f"Catch date must be in DD/MM/YYYY format, got {catch_date}")

    gear = fishing.get("fishing_gear_category")
    if not gear:
        out.error(ErrorKind.MISSING_FIELD, "fishing.fishing_gear_category",
                  "Fishing gear category is required")
    elif out.text(gear, "fishing.fishing_gear_category", "Fishing gear category") and not is_known_gear(gear):
        out.warn(f"Fishing gear category {gear} is not in the known gear list")


def _check_quantity(record: dict, out: _Collector):
    quantity = _section(record, "quantity")
    quantity_type = quantity.get("quantity_type")
    if quantity_type not in QUANTITY_TYPES:
        out.error(ErrorKind.QUANTITY, "quantity.quantity_type", "Quantity type must be WEIGHT or UNITS")
        return

    if quantity_type == "WEIGHT":
        total_field = "net_weight_kg"
        other_field = "unit_count"
        under_field, under_label = "undersized_weight_kg", "Undersized weight"
        other_under_field = "undersized_unit_count"
        total_msg = "Net weight must be greater than 0 kg"
        exceed_msg = "Undersized weight cannot exceed total net weight"
    else:
        total_field = "unit_count"
        other_field = "net_weight_kg"
        under_field, under_label = "undersized_unit_count", "Undersized unit count"
        other_under_field = "undersized_weight_kg"
        total_msg = "Unit count must be greater than 0"
        exceed_msg = "Undersized unit count cannot exceed total unit count"

    total = quantity.get(total_field)
    if not _positive(total):
        out.error(ErrorKind.QUANTITY, f"quantity.{total_field}", total_msg)
    elif quantity_type == "UNITS" and not float(total).is_integer():
        out.error(ErrorKind.QUANTITY, "quantity.unit_count", "Unit count must be a whole number")

    if quantity.get(other_field) is not None:
        out.error(ErrorKind.QUANTITY, f"quantity.{other_field}",
                  f"{other_field} must be empty when quantity type is {quantity_type}")
    if quantity.get(other_under_field) is not None:
        out.error(ErrorKind.UNDERSIZED, f"quantity.{other_under_field}",
                  f"{other_under_field} must be empty when quantity type is {quantity_type}")

    undersized = quantity.get(under_field)
    if quantity.get("undersized_catch_present") is True:
        if not _positive(undersized):
            out.error(ErrorKind.UNDERSIZED, f"quantity.{under_field}",
                      f"{under_label} is required when undersized catch is present")
        elif _is_number(total) and undersized > total:
            out.error(ErrorKind.UNDERSIZED, f"quantity.{under_field}", exceed_msg)
    elif undersized is not None:
        out.error(ErrorKind.UNDERSIZED, f"quantity.{under_field}",
                  f"{under_label} not allowed when undersized catch is not present")

    if quantity_type == "WEIGHT" and _positive(total) and total <= SMALL_QUANTITY_EXEMPTION_KG:
        out.warn(
            f"Quantities of {SMALL_QUANTITY_EXEMPTION_KG} kg or less sold directly to consumers "
            "may be exempt from traceability (Art. 58.8)"
        )


def _check_traceability(record: dict, strict: bool, out: _Collector):
    trace = _section(record, "traceability")
    product_form = trace.get("product_form")
    purpose_phase = trace.get("purpose_phase")
    destination = trace.get("destination")

    if strict:
        if not product_form:
            out.error(ErrorKind.TRACEABILITY_CHAIN, "traceability.product_form", "Product form is required")
        if not purpose_phase:
            out.error(ErrorKind.TRACEABILITY_CHAIN, "traceability.purpose_phase", "Purpose/phase is required")
        if not destination:
            out.error(ErrorKind.TRACEABILITY_CHAIN, "traceability.destination", "Destination is required")
        return

    if product_form and not purpose_phase:
        out.error(ErrorKind.TRACEABILITY_CHAIN, "traceability.purpose_phase",
                  "Purpose/phase is required when product form is set")
    if purpose_phase and not destination:
        out.error(ErrorKind.TRACEABILITY_CHAIN, "traceability.destination",
                  "Destination is required when purpose/phase is set")


def _check_lot_id_advisories(record: dict, out: _Collector):
    lot_id = record.get("lot_id")
    fao_code = _section(record, "species").get("fao_code")
    if not isinstance(lot_id, str) or not isinstance(fao_code, str) or not lot_id or not fao_code:
        return
    if not contains_species_code(lot_id, fao_code):
        out.warn(f"LOT ID {lot_id} does not contain species code {fao_code} (allowed by the regulation)")
    leftovers = unresolved_placeholders(lot_id)
    if leftovers:
        out.warn(f"LOT ID {lot_id} contains unresolved placeholders: {', '.join(leftovers)}")


def validate_record(record: dict, strict: bool = False) -> ValidationResult:
    """Validate a traceability record against the mandatory-field rules.

    Args:
        record: Record dict as produced by build_record().
        strict: Ministry submission profile; product form, purpose/phase and
            destination all become mandatory. Otherwise they are only
            checked as a forward chain.

    Returns:
        ValidationResult with all errors (de-duplicated, in rule order) and
        advisory warnings.

    Raises:
        TypeError: If record is not a dict.
    """
    if not isinstance(record, dict):
        raise TypeError(f"record must be a dict, got {type(record).__name__}")

    out = _Collector()
    _check_identity(record, out)
    _check_area_and_fishing(record, out)
    _check_quantity(record, out)
    _check_traceability(record, strict, out)
    _check_lot_id_advisories(record, out)

    errors = dedupe(i.message for i in out.issues)
    quantity = _section(record, "quantity")
    net = quantity.get("net_weight_kg")
    exempt = quantity.get("quantity_type") == "WEIGHT" and _positive(net) and net <= SMALL_QUANTITY_EXEMPTION_KG

    return ValidationResult(
        valid=not errors,
        errors=errors,
        warnings=dedupe(out.warnings),
        issues=out.issues,
        exempt_eligible=exempt,
    )
