"""
Prescription entity extraction for HealthSpeak API.

Pattern-based recognition of the four entity kinds found in a
prescription "Sig" line:
- drug names (dosage-form prefix or known drug-name suffix)
- doses (number followed by a unit)
- frequencies (TDS, BD, q8h, "every 6 hours", ...)
- routes (p.o, IV, SC, topical, ...)

Each kind has its own pure matcher returning a duplicate-free list in
first-seen order.
"""

import re
from dataclasses import dataclass
from typing import Callable, Iterable, List

from app.utils.logger import get_logger

logger = get_logger("entity_extractor")


DOSAGE_FORMS = ("Tab", "Cap", "Syrup", "Inj", "Oint", "Cream")
DRUG_SUFFIXES = ("cillin", "mycin", "prazole", "formin", "caine", "pine", "zole")

# "<form> <DrugName>" with an optional second capitalized word on the same line
FORM_DRUG_PATTERN = re.compile(
    r"\b(?:" + "|".join(DOSAGE_FORMS) + r")\s+"
    r"([A-Z][a-z]{3,}(?:[ \t]+[A-Z][a-z]+)?)"
)

# Capitalized word ending in a drug suffix
SUFFIX_DRUG_PATTERN = re.compile(
    r"\b([A-Z][a-z]*(?:" + "|".join(DRUG_SUFFIXES) + r"))\b"
)

DOSE_PATTERN = re.compile(
    r"\b\d+(?:\.\d+)?\s?(?:mg|mcg|g|ml|units?|IU)\b",
    re.IGNORECASE | re.ASCII
)

FREQUENCY_PATTERN = re.compile(
    r"\b(?:TDS|OD|BD|QID|PRN|SOS|q\d+h|every\s+\d+\s+hours?)\b",
    re.IGNORECASE | re.ASCII
)

ROUTE_PATTERN = re.compile(
    r"\b(?:p\.?o\.?|IV|IM|SC|SL|PR|PV|topical|inhaled)\b",
    re.IGNORECASE
)


@dataclass(frozen=True)
class EntitySet:
    """Entities found in one prescription text."""

    drug: tuple[str, ...] = ()
    dose: tuple[str, ...] = ()
    freq: tuple[str, ...] = ()
    route: tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.drug or self.dose or self.freq or self.route)

    def to_dict(self) -> dict[str, list[str]]:
        return {
            "drug": list(self.drug),
            "dose": list(self.dose),
            "freq": list(self.freq),
            "route": list(self.route),
        }


def _collapse(value: str) -> str:
    return " ".join(value.split()).casefold()


def _compact(value: str) -> str:
    return "".join(value.split()).casefold()


def _route_key(value: str) -> str:
    return _compact(value).replace(".", "")


def dedupe(values: Iterable[str], key: Callable[[str], str] = _collapse) -> List[str]:
    """Drop repeats (compared through ``key``), keeping the first spelling seen."""
    seen = set()
    unique = []
    for value in values:
        marker = key(value)
        if marker not in seen:
            seen.add(marker)
            unique.append(value)
    return unique


def find_drugs(text: str) -> List[str]:
    """Drug names from "<form> <Name>" mentions, then from drug-name suffixes."""
    candidates = [m.group(1) for m in FORM_DRUG_PATTERN.finditer(text)]
    candidates += [m.group(1) for m in SUFFIX_DRUG_PATTERN.finditer(text)]
    return dedupe(candidates)


def find_doses(text: str) -> List[str]:
    """Doses such as "500mg", "2.5 ml", "10 units"."""
    return dedupe((m.group(0) for m in DOSE_PATTERN.finditer(text)), key=_compact)


def find_frequencies(text: str) -> List[str]:
    """Frequency shorthand (TDS, BD, q8h) and "every N hours" phrases."""
    return dedupe(m.group(0) for m in FREQUENCY_PATTERN.finditer(text))


def find_routes(text: str) -> List[str]:
    """Administration routes; "p.o", "po" and "P.O." count as one route."""
    return dedupe((m.group(0) for m in ROUTE_PATTERN.finditer(text)), key=_route_key)


def extract(text: str) -> EntitySet:
    """
    Extract drug, dose, frequency and route entities from prescription text.

    Never fails: a kind with no matches is an empty tuple.

    Args:
        text: Raw prescription text

    Returns:
        EntitySet with each kind in first-seen order
    """
    entities = EntitySet(
        drug=tuple(find_drugs(text)),
        dose=tuple(find_doses(text)),
        freq=tuple(find_frequencies(text)),
        route=tuple(find_routes(text)),
    )

    logger.debug(
        "Entities extracted",
        drugs=len(entities.drug),
        doses=len(entities.dose),
        frequencies=len(entities.freq),
        routes=len(entities.route)
    )

    return entities
