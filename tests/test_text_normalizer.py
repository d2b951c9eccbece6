"""
Tests for the terminology dictionary and text normalizer.
"""

import re

import pytest

from app.core.dictionary import DEFAULT_DICTIONARY, PRESCRIPTION_TERMS, TerminologyDictionary
from app.core.text_normalizer import normalize


class TestTerminologyDictionary:
    """Test suite for TerminologyDictionary."""

    def test_expand_is_case_insensitive(self):
        """Lookups ignore case."""
        assert DEFAULT_DICTIONARY.expand("TDS") == "three times a day"
        assert DEFAULT_DICTIONARY.expand("tds") == "three times a day"
        assert DEFAULT_DICTIONARY.expand("Q8H") == "every 8 hours"

    def test_unknown_token(self):
        """Unknown tokens have no expansion."""
        assert DEFAULT_DICTIONARY.expand("XYZ") is None

    def test_oral_route_keys(self):
        """Both spellings of the oral route are known."""
        assert DEFAULT_DICTIONARY.expand("po") == "by mouth"
        assert DEFAULT_DICTIONARY.expand("p.o") == "by mouth"

    def test_read_only(self):
        """The dictionary cannot be modified."""
        with pytest.raises(TypeError):
            DEFAULT_DICTIONARY["TDS"] = "never"

    def test_independent_of_source_mapping(self):
        """Changing the source dict does not change a built dictionary."""
        source = {"BD": "twice a day"}
        dictionary = TerminologyDictionary(source)
        source["BD"] = "changed"

        assert dictionary.expand("BD") == "twice a day"

    def test_iteration_order(self):
        """Keys iterate in the order given."""
        assert list(DEFAULT_DICTIONARY) == list(PRESCRIPTION_TERMS)
        assert len(DEFAULT_DICTIONARY) == len(PRESCRIPTION_TERMS)


class TestNormalize:
    """Test suite for normalize()."""

    def test_amoxicillin_prescription(self):
        """Form, frequency and route shorthand are expanded."""
        result = normalize("Tab Amoxicillin 500mg TDS p.o after meals")
        assert result == "Tablet Amoxicillin 500mg three times a day by mouth after meals"

    def test_case_insensitive(self):
        """Lower-case abbreviations are expanded too."""
        assert normalize("take 1 tab bd") == "take 1 Tablet twice a day"

    def test_units_inside_numbers_kept(self):
        """Units attached to a number are not whole words."""
        assert normalize("500mg") == "500mg"

    def test_standalone_unit(self):
        """A standalone unit is expanded."""
        assert normalize("500 mg") == "500 milligrams"

    def test_unknown_text_unchanged(self):
        """Text without abbreviations is returned as is."""
        text = "Take with a full glass of water."
        assert normalize(text) == text

    def test_empty_text(self):
        """Empty text stays empty."""
        assert normalize("") == ""

    def test_custom_dictionary(self):
        """An injected dictionary is used instead of the default."""
        dictionary = TerminologyDictionary({"stat": "immediately"})
        assert normalize("Give STAT, then TDS", dictionary) == "Give immediately, then TDS"

    @pytest.mark.parametrize("text", [
        "Tab Amoxicillin 500mg TDS p.o after meals",
        "Cream Clotrimazole apply BD",
        "Syrup Paracetamol 250mg/5ml TDS PRN for fever, max 4 doses/day",
        "Inj Insulin Glargine 10 units SC OD at bedtime",
    ])
    def test_idempotent(self, text):
        """Normalizing normalized text changes nothing."""
        once = normalize(text)
        assert normalize(once) == once

    @pytest.mark.parametrize("key", list(PRESCRIPTION_TERMS))
    def test_every_key_expanded(self, key):
        """An isolated abbreviation is replaced by its expansion."""
        result = normalize(f"take {key} now")

        assert PRESCRIPTION_TERMS[key] in result
        assert not re.search(r"\b" + re.escape(key) + r"\b", result, re.IGNORECASE)
