"""
LOT identifier generation (EU 2023/2842, Art. 58).

Identifier = logbook number + FAO species code, optionally followed by the
catch date or a counter. Dates always come from the catch, never the wall
clock, so a backfilled entry gets the same id it would have had on the day.
"""

import re
from datetime import date

from .core import LOGBOOK_PATTERN, PrerequisiteError, StopRule
from .counter import CounterStore, counter_key
from .models import LotPattern, Species, VesselConfig, lot_date

PLACEHOLDER_RE = re.compile(r"\{[A-Z_]+\}")

# SIMPLE and WITH_DATE give the same id for the same species/vessel/day
REPRODUCIBLE_PATTERNS = {LotPattern.SIMPLE, LotPattern.WITH_DATE}


def check_prerequisites(species: Species | None, vessel: VesselConfig | None) -> list[str]:
    """Return every reason a LOT id cannot be generated (empty if none)."""
    errors = []

    if species is None or not getattr(species, "fao_code", None):
        errors.append("Species with FAO code is required")

    logbook = getattr(vessel, "logbook_number", None) if vessel is not None else None
    if not logbook:
        errors.append("Vessel logbook number is required")

    if vessel is None or not getattr(vessel, "cfr_number", None):
        errors.append("Vessel CFR number is required")

    if logbook and not LOGBOOK_PATTERN.match(logbook):
        errors.append("Invalid logbook number format (must be HRVLOG + 13 digits)")

    return errors


def apply_custom_pattern(template: str, values: dict[str, str]) -> str:
    """Substitute {NAME} placeholders; unknown ones are left as written."""
    result = template
    for name, value in values.items():
        result = result.replace("{" + name + "}", value)
    return result


def unresolved_placeholders(lot_id: str) -> list[str]:
    if not isinstance(lot_id, str):
        return []
    return PLACEHOLDER_RE.findall(lot_id)


def contains_species_code(lot_id: str, fao_code: str) -> bool:
    """Informational only: the regulation allows ids without the species code."""
    if not isinstance(lot_id, str) or not isinstance(fao_code, str):
        return False
    return bool(fao_code) and fao_code in lot_id


def is_reproducible(pattern: str) -> bool:
    return pattern in REPRODUCIBLE_PATTERNS


def _next_counter(store: CounterStore | None, logbook: str, fao_code: str,
                  catch_date: date, daily: bool) -> str:
    if store is None:
        raise StopRule("Counter pattern requires a counter store")
    key = counter_key(logbook, fao_code, catch_date if daily else None)
    return f"{store.increment_and_get(key):03d}"


def generate_lot_id(
    species: Species,
    vessel: VesselConfig,
    pattern: str = LotPattern.WITH_DATE,
    catch_date: date | None = None,
    counter_store: CounterStore | None = None,
    custom_pattern: str | None = None,
    daily_counter: bool = True,
) -> str:
    """Generate a LOT identifier.

    Args:
        species: Species being landed (only fao_code is used).
        vessel: Vessel configuration (logbook and CFR are required).
        pattern: SIMPLE, WITH_DATE, WITH_COUNTER or CUSTOM.
        catch_date: Date of the catch. Defaults to today.
        counter_store: Required for WITH_COUNTER and for CUSTOM templates
            that use {COUNTER}.
        custom_pattern: Template for CUSTOM, e.g. "{LOGBOOK}/{SPECIES}/{DATE}".
        daily_counter: Key the counter by catch date as well.

    Returns:
        The LOT identifier.

    Raises:
        PrerequisiteError: Species or vessel data missing (all reasons listed).
        StopRule: Unknown pattern, or pattern options missing.
    """
    errors = check_prerequisites(species, vessel)
    if errors:
        raise PrerequisiteError(errors)

    pattern = (pattern or LotPattern.WITH_DATE).upper()
    if pattern not in LotPattern.ALL:
        raise StopRule(f"Invalid LOT pattern: {pattern}")

    catch_date = catch_date or date.today()
    logbook = vessel.logbook_number
    fao_code = species.fao_code

    if pattern == LotPattern.SIMPLE:
        return f"{logbook}-{fao_code}"

    if pattern == LotPattern.WITH_DATE:
        return f"{logbook}-{fao_code}-{lot_date(catch_date)}"

    if pattern == LotPattern.WITH_COUNTER:
        counter = _next_counter(counter_store, logbook, fao_code, catch_date, daily_counter)
        return f"{logbook}-{fao_code}-{counter}"

    if not custom_pattern:
        raise StopRule("Custom pattern specified but not provided")

    values = {
        "LOGBOOK": logbook,
        "SPECIES": fao_code,
        "FAO_SPECIES": fao_code,
        "DATE": lot_date(catch_date),
    }
    # Only touch the counter when the template actually asks for it
    if "{COUNTER}" in custom_pattern:
        values["COUNTER"] = _next_counter(counter_store, logbook, fao_code, catch_date, daily_counter)

    return apply_custom_pattern(custom_pattern, values)
