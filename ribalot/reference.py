"""
Reference data: Croatian FAO zones, gear categories, Adriatic species.

Read-only lookups. Species minimum sizes are used at runtime only
(undersized defaults); they are never copied into a traceability record.
"""

from .core import StopRule
from .models import Species

# Croatian-waters subset of FAO area 37 (Mediterranean)
CROATIAN_FAO_ZONES = {
    "37.2.1": "Jadransko more - srednji dio",
    "37.2.2": "Jadransko more - južni dio",
    "37.1.1": "Jadransko more - sjeverni dio",
    "37.1.2": "Jadransko more - sjeverni dio (obalni)",
    "37.1.3": "Kvarnerski zaljev",
    "37.3.1": "Jonsko more - sjeverni dio",
    "37.3.2": "Jonsko more - srednji dio",
}

GEAR_CATEGORIES = {
    "MIXED": "Mixed gear types",
    "GNS": "Set gillnets (anchored)",
    "GND": "Driftnets",
    "GTR": "Trammel nets",
    "LLS": "Set longlines",
    "LLD": "Drifting longlines",
    "LHP": "Handlines and pole-lines (hand operated)",
    "LHM": "Handlines and pole-lines (mechanized)",
    "FPO": "Pots",
    "PS1": "Purse seines",
    "OTB": "Bottom otter trawls",
    "PTB": "Bottom pair trawls",
    "TBN": "Bottom trawls nei",
}

PRODUCTION_AREA_TYPES = {"FAO_ZONE", "AQUACULTURE_LOCATION"}

# (fao_code, scientific_name, local_name, category, min_size_cm)
_SPECIES_ROWS = [
    ("PAC", "Pagellus erythrinus", "Arbun", "fish", 12),
    ("BOG", "Boops boops", "Bukva", "fish", 11),
    ("CTB", "Diplodus vulgaris", "Fratar", "fish", 18),
    ("SPC", "Spicara smaris", "Gira oblica", "fish", 11),
    ("MNZ", "Lophius spp", "Grdobina", "fish", 30),
    ("SBG", "Sparus aurata", "Komarča", "fish", 20),
    ("JOD", "Zeus faber", "Kovač", "fish", 30),
    ("DOL", "Coryphaena hippurus", "Lampuga", "fish", 0),
    ("SOL", "Solea solea", "List", "fish", 20),
    ("BSS", "Dicentrarchus labrax", "Lubin", "fish", 42),
    ("HKE", "Merluccius merluccius", "Oslić", "fish", 20),
    ("RPG", "Pagrus pagrus", "Pagar", "fish", 18),
    ("SRK", "Serranus scriba", "Pirka", "fish", 12),
    ("SWA", "Diplodus sargus", "Šarag", "fish", 15),
    ("RSE", "Scorpaena scrofa", "Škrpina", "fish", 15),
    ("MUT", "Mullus barbatus", "Trlja blatarica", "fish", 11),
    ("MUR", "Mullus surmuletus", "Trlja kamenjarka", "fish", 11),
    ("COE", "Conger conger", "Ugor", "fish", 58),
    ("DNT", "Dentex dentex", "Zubatac", "fish", 15),
    ("ANE", "Engraulis encrasicolus", "Inćun", "fish", 9),
    ("SPR", "Sprattus sprattus", "Papalina", "fish", 7),
    ("MAC", "Scomber scombrus", "Skuša", "fish", 18),
    ("PIL", "Sardina pilchardus", "Srdela", "fish", 11),
    ("HOM", "Trachurus trachurus", "Šarun", "fish", 15),
    ("BON", "Sarda sarda", "Palamida", "fish", 18),
    ("BFT", "Thunnus thynnus", "Tuna plavoperajna", "fish", 115),
    ("SWO", "Xiphias gladius", "Iglun", "fish", 0),
    ("OCC", "Octopus vulgaris", "Hobotnica", "cephalopod", 0),
    ("SQR", "Loligo vulgaris", "Lignja", "cephalopod", 0),
    ("CTC", "Sepia officinalis", "Sipa", "cephalopod", 0),
    ("SYC", "Scyliorhinus canicula", "Mačka bljedica", "cartilaginous", 0),
    ("DGS", "Squalus acanthias", "Pas kostelj", "cartilaginous", 0),
    ("RJC", "Raja clavata", "Raža kamenica", "cartilaginous", 0),
    ("LBE", "Homarus gammarus", "Hlap", "crustacean", 24),
    ("SLO", "Palinurus elephas", "Jastog", "crustacean", 9),
    ("MTS", "Squilla mantis", "Kanoća", "crustacean", 0),
    ("DPS", "Parapenaeus longirostris", "Kozica", "crustacean", 0),
    ("NEP", "Nephrops norvegicus", "Škamp", "crustacean", 20),
    ("SCR", "Maja squinado", "Rakovica", "crustacean", 12),
    ("MSM", "Mytilus galloprovincialis", "Dagnja", "mollusk", 0),
    ("OYF", "Ostrea edulis", "Kamenica", "mollusk", 0),
    ("SJA", "Pecten jacobaeus", "Jakovljeva kapica", "mollusk", 10),
    ("SVE", "Chamelea gallina", "Kokoš", "mollusk", 2.5),
    ("VEV", "Venus verrucosa", "Prnjavica, Brbavica", "mollusk", 2.5),
    ("URM", "Paracentrotus lividus", "Ježinac hridinski", "echinoderm", 0),
    ("HFT", "Holothuria tubulosa", "Trp obični", "echinoderm", 0),
    ("QGO", "Spongia officinalis", "Spužva obična", "sponge", 0),
    ("COL", "Corallium rubrum", "Crveni koralj", "cnidarian", 0),
    ("WOR", "Polychaeta", "Morski crvi", "worm", 0),
    ("MUE", "Murex spp", "Volci", "gastropod", 0),
    ("SSG", "Microcosmus vulgaris", "Morska jaja", "tunicate", 0),
    ("SIU", "Sipunculus nudus", "Bibi (morski štrcaljac)", "other", 0),
]

SPECIES_CATALOG = {
    row[0]: Species(
        fao_code=row[0],
        scientific_name=row[1],
        local_name=row[2],
        category=row[3],
        min_size_cm=float(row[4]),
    )
    for row in _SPECIES_ROWS
}


def get_species(fao_code: str) -> Species:
    """Look up a species by FAO code.

    Raises:
        StopRule: If the code is not in the catalog.
    """
    code = (fao_code or "").strip().upper()
    species = SPECIES_CATALOG.get(code)
    if species is None:
        raise StopRule(f"Species with FAO code {fao_code} not found")
    return species


def find_species(query: str) -> list[Species]:
    """Case-insensitive search over FAO code, local and scientific name."""
    needle = (query or "").strip().lower()
    if not needle:
        return list(SPECIES_CATALOG.values())
    return [
        s for s in SPECIES_CATALOG.values()
        if needle in s.fao_code.lower()
        or needle in s.local_name.lower()
        or needle in s.scientific_name.lower()
    ]


def is_croatian_zone(code: str | None) -> bool:
    return isinstance(code, str) and code in CROATIAN_FAO_ZONES


def zone_description(code: str) -> str:
    """Human-readable zone name, with a generic fallback for unknown codes."""
    return CROATIAN_FAO_ZONES.get(code, f"FAO zona {code}")


def is_known_gear(code: str | None) -> bool:
    return isinstance(code, str) and code in GEAR_CATEGORIES


def is_undersized(species: Species, length_cm: float) -> bool:
    """True if a specimen is below the species' minimum landing size.

    A minimum of 0 means the species has no minimum size.
    """
    if species.min_size_cm <= 0:
        return False
    return length_cm < species.min_size_cm
