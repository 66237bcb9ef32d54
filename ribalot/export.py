"""
Export formats for traceability records.

Pure rendering: no validation, no I/O. Every mandatory field the validator
checks appears in every format.

Targets: csv, xml, xml_authorities (Croatian element names),
human_readable (emoji summary shown in the app), json.
"""

import csv
import io
import json
from datetime import date
from xml.sax.saxutils import escape

from .core import FormatError
from .models import parse_catch_date

EXPORT_TARGETS = ("csv", "xml", "xml_authorities", "human_readable", "json")

_EXTENSIONS = {
    "csv": "csv",
    "xml": "xml",
    "xml_authorities": "xml",
    "human_readable": "txt",
    "json": "json",
}

CSV_HEADER = [
    "LOT_ID",
    "CATCH_DATE",
    "SPECIES_FAO",
    "SPECIES_NAME",
    "PRODUCTION_AREA_TYPE",
    "FAO_ZONE",
    "AREA_DESCRIPTION",
    "QUANTITY_TYPE",
    "NET_WEIGHT_KG",
    "UNIT_COUNT",
    "GEAR_CATEGORY",
    "CFR_NUMBER",
    "LOGBOOK_NUMBER",
    "UNDERSIZED_PRESENT",
    "UNDERSIZED_WEIGHT_KG",
    "UNDERSIZED_UNIT_COUNT",
    "PRODUCT_FORM",
    "PURPOSE_PHASE",
    "DESTINATION",
]

# (section, generic tag, Croatian tag, [(key, generic tag, Croatian tag)])
XML_LAYOUT = [
    ("species", "species", "vrsta", [
        ("fao_code", "fao_code", "fao_oznaka"),
        ("scientific_name", "scientific_name", "znanstveni_naziv"),
        ("local_name", "local_name", "lokalni_naziv"),
    ]),
    ("production_area", "production_area", "podrucje_ulova", [
        ("type", "type", "vrsta_podrucja"),
        ("fao_zone", "fao_zone", "fao_zona"),
        ("description", "description", "opis"),
    ]),
    ("fishing", "fishing", "ribolov", [
        ("catch_date", "catch_date", "datum_ulova"),
        ("catch_time", "catch_time", "vrijeme_ulova"),
        ("fishing_gear_category", "fishing_gear_category", "kategorija_ribolovnog_alata"),
    ]),
    ("vessel", "vessel", "plovilo", [
        ("cfr_number", "cfr_number", "cfr_broj"),
        ("registration_mark", "registration_mark", "registarska_oznaka"),
        ("logbook_number", "logbook_number", "broj_ocevidnika"),
        ("vessel_name", "vessel_name", "naziv_plovila"),
    ]),
    ("quantity", "quantity", "kolicina", [
        ("quantity_type", "quantity_type", "vrsta_kolicine"),
        ("net_weight_kg", "net_weight_kg", "neto_masa_kg"),
        ("unit_count", "unit_count", "broj_komada"),
        ("undersized_catch_present", "undersized_catch_present", "ulov_ispod_min_velicine"),
        ("undersized_weight_kg", "undersized_weight_kg", "masa_ispod_min_velicine_kg"),
        ("undersized_unit_count", "undersized_unit_count", "komada_ispod_min_velicine"),
    ]),
    ("traceability", "traceability", "sljedivost", [
        ("product_form", "product_form", "oblik_proizvoda"),
        ("purpose_phase", "purpose_phase", "namjena_faza"),
        ("destination", "destination", "odrediste"),
    ]),
    ("metadata", "metadata", "metapodaci", [
        ("created_timestamp", "created_timestamp", "vrijeme_izrade"),
        ("record_version", "record_version", "verzija_zapisa"),
        ("compliance_standard", "compliance_standard", "propis"),
        ("supersedes", "supersedes", "zamjenjuje"),
    ]),
]

# Only rendered when the record actually carries them
_OPTIONAL_KEYS = {"supersedes"}

_XML_ENTITIES = {'"': "&quot;", "'": "&apos;"}


def _section(record: dict, name: str) -> dict:
    return record.get(name) or {}


def _cell(value) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _amount(value) -> str:
    if isinstance(value, float):
        return f"{value:g}"
    return _cell(value)


def csv_row(record: dict) -> list[str]:
    species = _section(record, "species")
    area = _section(record, "production_area")
    fishing = _section(record, "fishing")
    vessel = _section(record, "vessel")
    quantity = _section(record, "quantity")
    trace = _section(record, "traceability")

    values = [
        record.get("lot_id"),
        fishing.get("catch_date"),
        species.get("fao_code"),
        species.get("local_name"),
        area.get("type"),
        area.get("fao_zone"),
        area.get("description"),
        quantity.get("quantity_type"),
        quantity.get("net_weight_kg"),
        quantity.get("unit_count"),
        fishing.get("fishing_gear_category"),
        vessel.get("cfr_number"),
        vessel.get("logbook_number"),
        quantity.get("undersized_catch_present"),
        quantity.get("undersized_weight_kg"),
        quantity.get("undersized_unit_count"),
        trace.get("product_form"),
        trace.get("purpose_phase"),
        trace.get("destination"),
    ]
    return [_cell(v) for v in values]


def format_batch_csv(records: list[dict]) -> str:
    """One header row, then one row per record. All fields are quoted."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for record in records:
        writer.writerow(csv_row(record))
    return buffer.getvalue().rstrip("\n")


def format_csv(record: dict) -> str:
    return format_batch_csv([record])


def xml_escape(text: str) -> str:
    """Escape & < > " ' for element content."""
    return escape(text, _XML_ENTITIES)


def _xml_value(value, authorities: bool) -> str:
    if isinstance(value, bool) and authorities:
        return "DA" if value else "NE"
    return xml_escape(_cell(value))


def _format_xml(record: dict, authorities: bool) -> str:
    root = "zapis_sljedivosti" if authorities else "traceability_record"
    lot_tag = "oznaka_lota" if authorities else "lot_id"

    lines = ['<?xml version="1.0" encoding="UTF-8"?>', f"<{root}>"]
    lines.append(f"  <{lot_tag}>{_xml_value(record.get('lot_id'), authorities)}</{lot_tag}>")

    for section_key, generic_tag, hr_tag, fields in XML_LAYOUT:
        section = _section(record, section_key)
        section_tag = hr_tag if authorities else generic_tag
        lines.append(f"  <{section_tag}>")
        for key, generic_field, hr_field in fields:
            if key in _OPTIONAL_KEYS and key not in section:
                continue
            tag = hr_field if authorities else generic_field
            value = section.get(key)
            if value is None:
                lines.append(f"    <{tag}/>")
            else:
                lines.append(f"    <{tag}>{_xml_value(value, authorities)}</{tag}>")
        lines.append(f"  </{section_tag}>")

    lines.append(f"</{root}>")
    return "\n".join(lines)


def format_xml(record: dict) -> str:
    return _format_xml(record, authorities=False)


def format_xml_authorities(record: dict) -> str:
    return _format_xml(record, authorities=True)


def quantity_display(quantity: dict) -> str:
    if quantity.get("quantity_type") == "UNITS":
        return f"{_amount(quantity.get('unit_count'))} kom"
    return f"{_amount(quantity.get('net_weight_kg'))} kg"


def undersized_display(quantity: dict) -> str:
    if not quantity.get("undersized_catch_present"):
        return "Ne"
    if quantity.get("quantity_type") == "UNITS":
        return f"Da ({_amount(quantity.get('undersized_unit_count'))} kom)"
    return f"Da ({_amount(quantity.get('undersized_weight_kg'))} kg)"


def format_human_readable(record: dict) -> str:
    species = _section(record, "species")
    area = _section(record, "production_area")
    fishing = _section(record, "fishing")
    vessel = _section(record, "vessel")
    quantity = _section(record, "quantity")
    trace = _section(record, "traceability")

    when = _cell(fishing.get("catch_date"))
    if fishing.get("catch_time"):
        when += f" {fishing['catch_time']}"

    lines = [
        f"LOT {_cell(record.get('lot_id'))}",
        f"📅 Datum: {when}",
        f"🐟 Vrsta: {_cell(species.get('local_name'))} ({_cell(species.get('fao_code'))})"
        f" - {_cell(species.get('scientific_name'))}",
        f"📍 Zona: {_cell(area.get('fao_zone'))} - {_cell(area.get('description'))}",
        f"⚖️ Količina: {quantity_display(quantity)}",
        f"🎣 Alat: {_cell(fishing.get('fishing_gear_category'))}",
        f"🚢 CFR: {_cell(vessel.get('cfr_number'))}",
        f"📋 Očevidnik: {_cell(vessel.get('logbook_number'))}",
        f"⚠️ Ispod min.: {undersized_display(quantity)}",
        f"📦 Oblik: {trace.get('product_form') or '-'}",
        f"🎯 Namjena: {trace.get('purpose_phase') or '-'}",
        f"🏁 Odredište: {trace.get('destination') or '-'}",
    ]
    return "\n".join(lines)


def format_json(record: dict) -> str:
    return json.dumps(record, indent=2, ensure_ascii=False)


_FORMATTERS = {
    "csv": format_csv,
    "xml": format_xml,
    "xml_authorities": format_xml_authorities,
    "human_readable": format_human_readable,
    "json": format_json,
}


def format_record(record: dict, target: str) -> str:
    """Render a record for the given export target.

    Raises:
        FormatError: If the target is not one of EXPORT_TARGETS.
    """
    formatter = _FORMATTERS.get((target or "").lower())
    if formatter is None:
        raise FormatError(f"Unsupported export format: {target}. Valid: {', '.join(EXPORT_TARGETS)}")
    return formatter(record)


def file_extension(target: str) -> str:
    key = (target or "").lower()
    if key not in _EXTENSIONS:
        raise FormatError(f"Unsupported export format: {target}")
    return _EXTENSIONS[key]


def qr_text(record: dict, issue_date: date | None = None) -> str:
    """Croatian label text for the LOT's QR code.

    Only the text payload; drawing the symbol is left to the caller.
    """
    species = _section(record, "species")
    area = _section(record, "production_area")
    fishing = _section(record, "fishing")
    vessel = _section(record, "vessel")
    quantity = _section(record, "quantity")

    def hr_date(value: date) -> str:
        return value.strftime("%d.%m.%Y.")

    catch_date = parse_catch_date(fishing.get("catch_date"))
    issued = issue_date or date.today()

    lines = [
        f"Naziv proizvoda: {_cell(species.get('local_name'))} ({_cell(species.get('scientific_name'))})",
        f"LOT broj/serija: {_cell(record.get('lot_id'))}",
        f"Područje ulova: {_cell(area.get('fao_zone'))}, {_cell(area.get('description'))}",
        f"Datum ulova: {hr_date(catch_date)}",
        f"Kategorija ribolovnog alata: {_cell(fishing.get('fishing_gear_category'))}",
        f"Količina: {quantity_display(quantity)}",
        f"Plovilo (CFR): {_cell(vessel.get('cfr_number'))}",
        f"Datum izdavanja: {hr_date(issued)}",
    ]
    return "\n".join(lines)


MARKING_METHODS = (
    "Naljepnica s LOT brojem",
    "Direktno pisanje/štampanje na ambalažu",
    "Etiketiranje s LOT brojem i QR kodom",
    "Utiskivanje LOT broja na plastičnu ambalažu",
)

MARKING_DEADLINE = "Obvezno od 10. siječnja 2026. godine"


def marking_guidance(record: dict) -> str:
    """Croatian instructions for marking the LOT number on packaging."""
    lot_id = _cell(record.get("lot_id"))
    lines = [
        "OBVEZNO FIZIČKO OZNAČAVANJE AMBALAŽE",
        "Prema propisu EU 2023/2842, članak 58.",
        "",
        f"LOT broj: {lot_id}",
        "LOT broj mora biti fizički označen i vidljiv na ambalaži proizvoda.",
        f'Primjer: Nalijepite/označite "{lot_id}" na ambalažu',
        "",
        "Preporučeno: QR kod s dodatnim informacijama o proizvodu.",
        "",
        "Načini označavanja:",
    ]
    lines.extend(f"  - {method}" for method in MARKING_METHODS)
    lines.append("")
    lines.append(f"Zakonska obveza: {MARKING_DEADLINE}")
    return "\n".join(lines)
