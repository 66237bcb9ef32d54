"""Data model for LOT generation.

Species and vessel configuration are reference inputs; CatchInput holds the
per-LOT facts supplied by the fisherman. Quantity is a tagged variant so a
catch is recorded either by weight or by unit count, never both.
"""
from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from datetime import date, datetime, time

from .core import StopRule, ValidationError

SPECIES_CATEGORIES = {
    "fish",
    "cephalopod",
    "cartilaginous",
    "crustacean",
    "mollusk",
    "echinoderm",
    "sponge",
    "cnidarian",
    "worm",
    "gastropod",
    "tunicate",
    "other",
}

QUANTITY_TYPES = ("WEIGHT", "UNITS")


class LotPattern:
    SIMPLE = "SIMPLE"
    WITH_DATE = "WITH_DATE"
    WITH_COUNTER = "WITH_COUNTER"
    CUSTOM = "CUSTOM"

    ALL = (SIMPLE, WITH_DATE, WITH_COUNTER, CUSTOM)


@dataclass(frozen=True)
class Species:
    fao_code: str
    scientific_name: str
    local_name: str
    category: str = "fish"
    min_size_cm: float = 0.0

    def __post_init__(self):
        if self.category not in SPECIES_CATEGORIES:
            raise StopRule(f"Unknown species category: {self.category}")
        if self.min_size_cm < 0:
            raise StopRule(f"Minimum size cannot be negative: {self.min_size_cm}")

    @classmethod
    def from_dict(cls, data: dict) -> Species:
        return cls(
            fao_code=data.get("fao_code", ""),
            scientific_name=data.get("scientific_name", ""),
            local_name=data.get("local_name", ""),
            category=data.get("category", "fish"),
            min_size_cm=float(data.get("min_size_cm") or 0),
        )


@dataclass(frozen=True)
class VesselConfig:
    cfr_number: str
    registration_mark: str
    logbook_number: str
    fishing_gear_category: str = "MIXED"
    vessel_name: str | None = None
    fisherman_name: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> VesselConfig:
        return cls(
            cfr_number=data.get("cfr_number", ""),
            registration_mark=data.get("registration_mark", ""),
            logbook_number=data.get("logbook_number", ""),
            fishing_gear_category=data.get("fishing_gear_category") or "MIXED",
            vessel_name=data.get("vessel_name") or None,
            fisherman_name=data.get("fisherman_name") or None,
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class WeightQuantity:
    """Catch recorded in kilograms."""

    net_weight_kg: float | None
    undersized_present: bool = False
    undersized_weight_kg: float | None = None

    quantity_type = "WEIGHT"

    @property
    def total(self) -> float | None:
        return self.net_weight_kg

    def as_record_fields(self) -> dict:
        return {
            "quantity_type": self.quantity_type,
            "net_weight_kg": self.net_weight_kg,
            "unit_count": None,
            "undersized_catch_present": bool(self.undersized_present),
            # undersized amount only exists alongside the flag
            "undersized_weight_kg": self.undersized_weight_kg if self.undersized_present else None,
            "undersized_unit_count": None,
        }


@dataclass(frozen=True)
class UnitQuantity:
    """Catch recorded as a number of pieces."""

    unit_count: int | None
    undersized_present: bool = False
    undersized_unit_count: int | None = None

    quantity_type = "UNITS"

    @property
    def total(self) -> int | None:
        return self.unit_count

    def as_record_fields(self) -> dict:
        return {
            "quantity_type": self.quantity_type,
            "net_weight_kg": None,
            "unit_count": self.unit_count,
            "undersized_catch_present": bool(self.undersized_present),
            "undersized_weight_kg": None,
            "undersized_unit_count": self.undersized_unit_count if self.undersized_present else None,
        }


Quantity = WeightQuantity | UnitQuantity


@dataclass(frozen=True)
class CatchInput:
    fao_zone: str
    catch_date: date
    quantity: Quantity
    catch_time: str | None = None
    product_form: str | None = None
    purpose_phase: str | None = None
    destination: str | None = None
    lot_pattern: str = LotPattern.WITH_DATE
    custom_pattern_template: str | None = None
    production_area_type: str = "FAO_ZONE"

    @property
    def quantity_type(self) -> str:
        return self.quantity.quantity_type

    @classmethod
    def from_dict(cls, data: dict) -> CatchInput:
        """Build from the flat JSON shape used by the CLI and tool server."""
        return cls(
            fao_zone=(data.get("fao_zone") or "").strip(),
            catch_date=parse_catch_date(data.get("catch_date")),
            quantity=quantity_from_dict(data),
            catch_time=format_catch_time(data.get("catch_time")),
            product_form=data.get("product_form") or None,
            purpose_phase=data.get("purpose_phase") or None,
            destination=data.get("destination") or None,
            lot_pattern=(data.get("lot_pattern") or LotPattern.WITH_DATE).upper(),
            custom_pattern_template=data.get("custom_pattern_template"),
            production_area_type=data.get("production_area_type") or "FAO_ZONE",
        )


def _number(value, kind, name: str):
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValidationError([f"{name} must be a number, got {value!r}"])
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise ValidationError([f"{name} must be a number, got {value!r}"]) from e
    if not math.isfinite(number):
        raise ValidationError([f"{name} must be a finite number, got {value!r}"])
    if kind is int:
        if not number.is_integer():
            raise ValidationError([f"{name} must be a whole number, got {value!r}"])
        return value if isinstance(value, int) else int(number)
    return number


def _flag(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "da", "1")
    return bool(value)


def quantity_from_dict(data: dict) -> Quantity:
    """Pick the quantity variant from a flat dict keyed by quantity_type."""
    quantity_type = (data.get("quantity_type") or "WEIGHT").upper()
    undersized = _flag(data.get("undersized_present", data.get("undersized_catch_present", False)))

    if quantity_type == "WEIGHT":
        return WeightQuantity(
            net_weight_kg=_number(data.get("net_weight_kg"), float, "net_weight_kg"),
            undersized_present=undersized,
            undersized_weight_kg=_number(data.get("undersized_weight_kg"), float, "undersized_weight_kg"),
        )
    if quantity_type == "UNITS":
        return UnitQuantity(
            unit_count=_number(data.get("unit_count"), int, "unit_count"),
            undersized_present=undersized,
            undersized_unit_count=_number(data.get("undersized_unit_count"), int, "undersized_unit_count"),
        )
    raise ValidationError([f"Quantity type must be WEIGHT or UNITS, got {quantity_type}"])


def format_catch_date(value: date) -> str:
    """DD/MM/YYYY, the display form used in records and exports."""
    return value.strftime("%d/%m/%Y")


def lot_date(value: date) -> str:
    """YYYYMMDD, used only inside generated LOT identifiers."""
    return value.strftime("%Y%m%d")


def parse_catch_date(value) -> date:
    """Accept a date, datetime, 'DD/MM/YYYY' or ISO 'YYYY-MM-DD'."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value:
        raise ValidationError(["Catch date is required"])

    text = str(value).strip()
    for fmt in ("%d/%m/%Y", "%Y-%m-%d", "%Y%m%d"):
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    raise ValidationError([f"Catch date must be DD/MM/YYYY or YYYY-MM-DD, got {text}"])


def format_catch_time(value) -> str | None:
    if value is None or value == "":
        return None
    if isinstance(value, (time, datetime)):
        return value.strftime("%H:%M")
    return str(value).strip()
