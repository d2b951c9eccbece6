"""
Tests for instruction step and warning composition.
"""

from app.core.entity_extractor import EntitySet
from app.core.explanation_composer import (
    BLEEDING_WARNING,
    COURSE_WARNING,
    FOOD_WARNING,
    REMINDER_STEP,
    compose,
    compose_steps,
    compose_warnings,
)


def step_titles(steps):
    return [step.title for step in steps]


class TestComposeSteps:
    """Test step generation."""

    def test_full_prescription(self):
        """Every entity kind produces a step, in fixed order."""
        entities = EntitySet(
            drug=("Amoxicillin",),
            dose=("500mg",),
            freq=("TDS",),
            route=("p.o",),
        )
        steps = compose_steps(entities)

        assert step_titles(steps) == [
            "Medication",
            "Dosage",
            "When to Take",
            "How to Take",
            "Important Reminders",
        ]
        assert "Amoxicillin" in steps[0].body
        assert "500mg" in steps[1].body
        assert "three times a day" in steps[2].body
        assert "by mouth" in steps[3].body

    def test_empty_entities(self):
        """Only the reminder step is produced when nothing was found."""
        assert compose_steps(EntitySet()) == [REMINDER_STEP]

    def test_missing_kinds_skipped(self):
        """Kinds without entities produce no step."""
        steps = compose_steps(EntitySet(freq=("BD",)))

        assert step_titles(steps) == ["When to Take", "Important Reminders"]
        assert "twice a day" in steps[0].body

    def test_drugs_comma_joined(self):
        """All drugs are named in one step."""
        steps = compose_steps(EntitySet(drug=("Metformin", "Aspirin")))
        assert "Metformin, Aspirin" in steps[0].body

    def test_unknown_frequency_kept_raw(self):
        """Frequencies without an expansion are shown as written."""
        steps = compose_steps(EntitySet(freq=("q4h", "every 6 hours")))
        assert "q4h, every 6 hours" in steps[0].body

    def test_route_trailing_period_stripped(self):
        """A trailing period does not block the route lookup."""
        steps = compose_steps(EntitySet(route=("p.o.", "IV.")))
        assert "by mouth, intravenously" in steps[0].body

    def test_unknown_route_kept_raw(self):
        """Routes without an expansion are shown as written."""
        steps = compose_steps(EntitySet(route=("topical",)))
        assert "Take this medication topical." in steps[0].body

    def test_deterministic(self):
        """The same entities always give the same steps."""
        entities = EntitySet(drug=("Omeprazole",), dose=("20mg",), freq=("OD",))
        assert compose_steps(entities) == compose_steps(entities)


class TestComposeWarnings:
    """Test warning generation."""

    def test_no_drugs(self):
        assert compose_warnings(EntitySet()) == []

    def test_antibiotic_course(self):
        """Penicillin-family drugs trigger the course warning."""
        assert compose_warnings(EntitySet(drug=("Amoxicillin",))) == [COURSE_WARNING]

    def test_metformin_food_tip(self):
        assert compose_warnings(EntitySet(drug=("Metformin",))) == [FOOD_WARNING]

    def test_each_rule_fires_once(self):
        """Two blood thinners give one bleeding warning."""
        warnings = compose_warnings(EntitySet(drug=("Warfarin", "Aspirin")))
        assert warnings == [BLEEDING_WARNING]

    def test_fixed_order(self):
        """Warnings follow rule order, not drug order."""
        warnings = compose_warnings(EntitySet(drug=("Amoxicillin", "Metformin", "Warfarin")))
        assert warnings == [BLEEDING_WARNING, FOOD_WARNING, COURSE_WARNING]

    def test_unrelated_drug(self):
        assert compose_warnings(EntitySet(drug=("Omeprazole",))) == []


class TestCompose:
    """Test the combined compose()."""

    def test_returns_steps_and_warnings(self):
        entities = EntitySet(drug=("Metformin",), freq=("BD",))
        steps, warnings = compose(entities, "Metformin twice a day")

        assert step_titles(steps) == ["Medication", "When to Take", "Important Reminders"]
        assert warnings == [FOOD_WARNING]
