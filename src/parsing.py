"""GEDCOM input: read individuals and families into a FamilyGraph."""

import logging
import re
from collections.abc import Callable
from datetime import date
from pathlib import Path

from ged4py import GedcomReader

from errors import FamilyTreeError
from family import FamilyGraph
from models import Person, years_between

logger = logging.getLogger(__name__)


# Month name mappings (handle abbreviations and full names)
MONTH_MAP = {
    "JAN": 1,
    "JANUARY": 1,
    "FEB": 2,
    "FEBRUARY": 2,
    "MAR": 3,
    "MARCH": 3,
    "APR": 4,
    "APRIL": 4,
    "MAY": 5,
    "JUN": 6,
    "JUNE": 6,
    "JUL": 7,
    "JULY": 7,
    "AUG": 8,
    "AUGUST": 8,
    "SEP": 9,
    "SEPT": 9,
    "SEPTEMBER": 9,
    "OCT": 10,
    "OCTOBER": 10,
    "NOV": 11,
    "NOVEMBER": 11,
    "DEC": 12,
    "DECEMBER": 12,
}

QUALIFIERS = re.compile(
    r"^(ABT\.?|ABOUT|BEF\.?|BEFORE|AFT\.?|AFTER|EST\.?|CAL\.?|FROM|TO|BET\.?|CIRCA|CA\.?):?\s*",
    flags=re.IGNORECASE,
)


def extract_numeric_id(xref_id: str) -> int:
    """Extract numeric part from GEDCOM xref_id like '@I_347421849@' or 'I674624289'."""
    digits = re.sub(r"[^0-9]", "", xref_id)
    if not digits:
        raise ValueError(f"No numeric ID found in: {xref_id}")
    return int(digits)


def parse_date_string(date_str: str | None) -> date | None:
    """
    Parse a GEDCOM date string into a date.
    Returns None if the date cannot be parsed.

    Handles "25 NOV 1954", "NOV 1954", "1954" and "1954-11-25", with
    qualifiers such as ABT or BEF stripped. Missing day or month default to 1.
    """
    if not date_str:
        return None

    s = QUALIFIERS.sub("", date_str.strip().strip("()").rstrip("?")).strip()
    if not s:
        return None

    # ISO "1839-08-29"
    match = re.match(r"^(\d{4})-(\d{2})-(\d{2})$", s)
    if match:
        year, month, day = (int(g) for g in match.groups())
        return _safe_date(year, month or 1, day or 1)

    # "25 NOV 1954" or "25 Nov. 1954"
    match = re.match(r"^(\d{1,2})\s+([A-Za-z]+)\.?\s*(\d{4})$", s)
    if match:
        month = MONTH_MAP.get(match.group(2).upper())
        if month:
            return _safe_date(int(match.group(3)), month, int(match.group(1)))

    # "NOV 1954"
    match = re.match(r"^([A-Za-z]+)\.?,?\s*(\d{4})$", s)
    if match:
        month = MONTH_MAP.get(match.group(1).upper())
        if month:
            return _safe_date(int(match.group(2)), month, 1)

    # "1954"
    match = re.match(r"^(\d{4})$", s)
    if match:
        return date(int(match.group(1)), 1, 1)

    return None


def _safe_date(year: int, month: int, day: int) -> date | None:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_coordinate(value: str | None) -> float | None:
    """Parse a GEDCOM LATI/LONG value such as 'N51.5072' or 'W0.1276'."""
    if not value:
        return None
    s = str(value).strip().upper()
    sign = 1.0
    if s[:1] in ("N", "S", "E", "W"):
        if s[0] in ("S", "W"):
            sign = -1.0
        s = s[1:]
    try:
        return sign * float(s)
    except ValueError:
        return None


def extract_name(indi) -> str:
    """Extract the full name from an individual record."""
    name_rec = indi.sub_tag("NAME")
    if name_rec is None or name_rec.value is None:
        return "Unknown"

    # ged4py returns NAME as tuple: (given, surname, suffix)
    name_value = name_rec.value
    if isinstance(name_value, tuple):
        parts = [p for p in name_value if p]
        return " ".join(parts) if parts else "Unknown"

    # Fallback: string format "Given /Surname/"
    return " ".join(str(name_value).replace("/", " ").split()) or "Unknown"


def extract_event_date(indi, tag: str) -> tuple[bool, date | None]:
    """Return whether the event is present and its parsed date."""
    event = indi.sub_tag(tag)
    if event is None:
        return (False, None)

    # ged4py may return DateValue objects
    date_rec = event.sub_tag("DATE")
    if date_rec is None or not date_rec.value:
        return (True, None)
    return (True, parse_date_string(str(date_rec.value)))


def extract_coordinates(indi) -> tuple[float, float]:
    """Residence coordinates from RESI (or BIRT) PLAC/MAP, (0, 0) when absent."""
    for tag in ("RESI", "BIRT"):
        place = indi.sub_tag(f"{tag}/PLAC")
        if place is None:
            continue
        lat_rec = place.sub_tag("MAP/LATI")
        lon_rec = place.sub_tag("MAP/LONG")
        lat = parse_coordinate(lat_rec.value if lat_rec else None)
        lon = parse_coordinate(lon_rec.value if lon_rec else None)
        if lat is not None and lon is not None:
            return (lat, lon)
    return (0.0, 0.0)


def extract_person(indi) -> Person:
    _, birth_date = extract_event_date(indi, "BIRT")
    died, death_date = extract_event_date(indi, "DEAT")
    latitude, longitude = extract_coordinates(indi)

    age = None
    if died and birth_date and death_date:
        age = years_between(birth_date, death_date)

    return Person(
        id=extract_numeric_id(indi.xref_id),
        name=extract_name(indi),
        birth_date=birth_date,
        alive=not died,
        age=age,
        latitude=latitude,
        longitude=longitude,
    )


def _apply(warnings: list[str], description: str, operation: Callable, *args) -> None:
    try:
        operation(*args, reconcile=False)
    except FamilyTreeError as exc:
        message = f"Skipped {description}: {exc}"
        logger.warning(message)
        warnings.append(message)


def load_gedcom(filepath: Path) -> tuple[FamilyGraph, list[str]]:
    """
    Build a FamilyGraph from a GEDCOM file.

    Individuals become persons; each family record assigns spouse, father and
    mother links through the registry, so records that contradict earlier
    ones are skipped and reported rather than breaking invariants. The graph
    is reconciled once everything is loaded.

    Returns the graph and a list of warning messages.
    """
    family = FamilyGraph()
    warnings: list[str] = []

    with GedcomReader(str(filepath)) as reader:
        # First pass: individuals
        for rec in reader.records0("INDI"):
            if rec.xref_id is None:
                continue
            person = extract_person(rec)
            try:
                family.add_person(person)
            except FamilyTreeError as exc:
                message = f"Skipped individual {rec.xref_id}: {exc}"
                logger.warning(message)
                warnings.append(message)

        # Second pass: families
        for rec in reader.records0("FAM"):
            husb = rec.sub_tag("HUSB")
            wife = rec.sub_tag("WIFE")

            husb_id = extract_numeric_id(husb.xref_id) if husb and husb.xref_id else None
            wife_id = extract_numeric_id(wife.xref_id) if wife and wife.xref_id else None

            if husb_id is not None and wife_id is not None:
                _apply(warnings, f"spouses in {rec.xref_id}", family.assign_spouse, husb_id, wife_id)

            for child in rec.sub_tags("CHIL"):
                if not child.xref_id:
                    continue
                child_id = extract_numeric_id(child.xref_id)
                if husb_id is not None:
                    _apply(warnings, f"father in {rec.xref_id}", family.assign_father, child_id, husb_id)
                if wife_id is not None:
                    _apply(warnings, f"mother in {rec.xref_id}", family.assign_mother, child_id, wife_id)

    rounds = family.reconcile_all()
    logger.info("Loaded %d people from %s (%d reconciliation rounds)", len(family), filepath, rounds)
    return family, warnings
