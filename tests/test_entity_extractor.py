"""
Tests for prescription entity extraction.
"""

import dataclasses

import pytest

from app.core.entity_extractor import (
    EntitySet,
    dedupe,
    extract,
    find_doses,
    find_drugs,
    find_frequencies,
    find_routes,
)


class TestExtract:
    """Test suite for extract()."""

    def test_amoxicillin_prescription(self):
        """A typical Sig line yields one entity of each kind."""
        entities = extract("Tab Amoxicillin 500mg TDS p.o after meals")

        assert entities.drug == ("Amoxicillin",)
        assert entities.dose == ("500mg",)
        assert entities.freq == ("TDS",)
        assert entities.route == ("p.o",)

    def test_insulin_prescription(self):
        """Two-word drug names and unit doses are recognised."""
        entities = extract("Inj Insulin Glargine 10 units SC OD at bedtime")

        assert entities.drug == ("Insulin Glargine",)
        assert entities.dose == ("10 units",)
        assert entities.freq == ("OD",)
        assert entities.route == ("SC",)

    def test_syrup_with_compound_dose(self):
        """Doses on both sides of a slash are listed in order."""
        entities = extract("Syrup Paracetamol 250mg/5ml TDS PRN for fever")

        assert entities.drug == ("Paracetamol",)
        assert entities.dose == ("250mg", "5ml")
        assert entities.freq == ("TDS", "PRN")

    def test_no_entities(self):
        """Text without prescription shorthand gives empty collections."""
        entities = extract("Drink plenty of water and rest.")

        assert entities == EntitySet()
        assert entities.is_empty

    def test_entity_set_is_immutable(self):
        """Extraction results cannot be modified."""
        entities = extract("Tab Amoxicillin 500mg")

        with pytest.raises(dataclasses.FrozenInstanceError):
            entities.drug = ("Other",)

    def test_to_dict(self):
        """Wire form uses lists keyed by kind."""
        data = extract("Tab Amoxicillin 500mg TDS p.o").to_dict()

        assert data == {
            "drug": ["Amoxicillin"],
            "dose": ["500mg"],
            "freq": ["TDS"],
            "route": ["p.o"],
        }


class TestDrugs:
    """Test drug name detection."""

    def test_form_keyword_is_stripped(self):
        """Only the name after the dosage form is kept."""
        assert find_drugs("Cap Omeprazole 20mg OD") == ["Omeprazole"]

    def test_suffix_rule(self):
        """Capitalized words with a known drug suffix are drugs."""
        assert find_drugs("Continue Omeprazole and Azithromycin") == [
            "Omeprazole",
            "Azithromycin",
        ]

    def test_suffix_rule_without_form(self):
        """Metformin is found without a dosage form in front."""
        assert find_drugs("Metformin 500mg BD with meals") == ["Metformin"]

    def test_form_matches_come_first(self):
        """Dosage-form matches are listed before suffix-only matches."""
        drugs = find_drugs("Lidocaine gel, then Tab Paracetamol 500mg")
        assert drugs == ["Paracetamol", "Lidocaine"]

    def test_both_rules_deduplicated(self):
        """A drug caught by both rules appears once."""
        assert find_drugs("Tab Amoxicillin 500mg, Amoxicillin again") == ["Amoxicillin"]

    def test_lowercase_not_detected(self):
        """Drug names must be capitalized."""
        assert find_drugs("tab amoxicillin 500mg") == []

    def test_second_word_stays_on_line(self):
        """The optional second name word is not taken from the next line."""
        assert find_drugs("Tab Paracetamol\nSig: take one") == ["Paracetamol"]


class TestDosesFrequenciesRoutes:
    """Test dose, frequency and route detection."""

    def test_dose_units(self):
        """All supported units are matched, with or without a space."""
        doses = find_doses("500mg, 2.5 ml, 100 mcg, 1g, 10 units, 1 unit, 400 IU")
        assert doses == ["500mg", "2.5 ml", "100 mcg", "1g", "10 units", "1 unit", "400 IU"]

    def test_dose_case_and_spacing_deduplicated(self):
        """500mg, 500 MG and 500Mg are the same dose."""
        assert find_doses("500mg then 500 MG then 500Mg") == ["500mg"]

    def test_non_ascii_digits_ignored(self):
        """Only ASCII digits count in doses and q-hour frequencies."""
        assert find_doses("٥٠٠mg") == []
        assert find_frequencies("q٨h, every ٦ hours") == []

    def test_frequency_tokens(self):
        """Shorthand, q-hour and every-N-hours forms are matched."""
        freqs = find_frequencies("OD, BD, QID, SOS, q8h and every 6 hours")
        assert freqs == ["OD", "BD", "QID", "SOS", "q8h", "every 6 hours"]

    def test_frequency_case_insensitive_dedup(self):
        """Repeated tokens in different case appear once, first spelling kept."""
        assert find_frequencies("TDS for a week, then tds") == ["TDS"]

    def test_frequency_inside_word_ignored(self):
        """Tokens must be whole words."""
        assert find_frequencies("GOOD BDAY") == []

    def test_routes(self):
        """Route shorthand and words are matched."""
        routes = find_routes("IV then IM, SL, PR, PV, topical, inhaled")
        assert routes == ["IV", "IM", "SL", "PR", "PV", "topical", "inhaled"]

    def test_oral_route_variants_deduplicated(self):
        """p.o, po and P.O. are one route."""
        assert find_routes("p.o now, po later, P.O. tomorrow") == ["p.o"]


class TestDedupe:
    """Test the order-preserving dedupe helper."""

    def test_keeps_first_spelling(self):
        assert dedupe(["BD", "bd", "OD"]) == ["BD", "OD"]

    def test_custom_key(self):
        assert dedupe(["a.b", "ab"], key=lambda v: v.replace(".", "")) == ["a.b"]
