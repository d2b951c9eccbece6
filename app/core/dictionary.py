"""
Prescription terminology dictionary for HealthSpeak API.

Maps clinical abbreviations (dosing frequency, route, dosage form and
unit shorthand) to the plain-language phrase a patient would use.
The dictionary is built once at import time and never mutated; it is
passed explicitly into the normalizer and composer.
"""

import re
from collections.abc import Iterator, Mapping
from types import MappingProxyType
from typing import Optional


# Expansions must not contain any key as a whole word, otherwise
# normalizing already-normalized text would expand them again.
PRESCRIPTION_TERMS: dict[str, str] = {
    # Frequency / timing
    "TDS": "three times a day",
    "OD": "once daily",
    "BD": "twice a day",
    "QID": "four times a day",
    "PRN": "as needed",
    "SOS": "if necessary",
    "q12h": "every 12 hours",
    "q8h": "every 8 hours",
    "q6h": "every 6 hours",
    "HS": "at bedtime",
    "AC": "before meals",
    "PC": "after meals",

    # Routes
    "po": "by mouth",
    "p.o": "by mouth",
    "IV": "intravenously",
    "IM": "intramuscularly",
    "SC": "subcutaneously",
    "SL": "under the tongue",
    "PR": "rectally",
    "PV": "vaginally",

    # Dosage forms
    "Tab": "Tablet",
    "Cap": "Capsule",
    "Syrup": "Liquid medicine",
    "Inj": "Injection",
    "Oint": "Ointment",
    "Cream": "Topical skin medicine",

    # Units and limits
    "mg": "milligrams",
    "ml": "milliliters",
    "mcg": "micrograms",
    "IU": "international units",
    "max": "maximum",
    "min": "minimum",
}


class TerminologyDictionary(Mapping):
    """
    Read-only, case-insensitive abbreviation lookup.

    Iteration yields keys in the order they were given, which is the
    order the normalizer applies them in.
    """

    def __init__(self, entries: Mapping[str, str]):
        self._entries = MappingProxyType(dict(entries))
        self._folded = MappingProxyType(
            {key.casefold(): value for key, value in self._entries.items()}
        )
        self._patterns = tuple(
            (re.compile(r"\b" + re.escape(key) + r"\b", re.IGNORECASE), value)
            for key, value in self._entries.items()
        )

    def __getitem__(self, key: str) -> str:
        return self._entries[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def expand(self, token: str) -> Optional[str]:
        """Return the plain-language phrase for an abbreviation, or None."""
        return self._folded.get(token.casefold())

    @property
    def patterns(self) -> tuple[tuple[re.Pattern, str], ...]:
        """Whole-word, case-insensitive matcher for each key, in key order."""
        return self._patterns


DEFAULT_DICTIONARY = TerminologyDictionary(PRESCRIPTION_TERMS)
