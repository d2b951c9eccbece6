"""
Explanation composition for HealthSpeak API.

Turns extracted prescription entities into patient-facing instruction
steps and medication-specific warnings. Step order is fixed:
medication, dosage, timing, route, then the standing reminder.
"""

from dataclasses import dataclass
from typing import List, Tuple

from app.core.dictionary import DEFAULT_DICTIONARY, TerminologyDictionary
from app.core.entity_extractor import EntitySet


@dataclass(frozen=True)
class InstructionStep:
    """One titled instruction shown to the patient."""

    title: str
    body: str

    def to_dict(self) -> dict[str, str]:
        return {"title": self.title, "body": self.body}


REMINDER_TITLE = "Important Reminders"

REMINDER_STEP = InstructionStep(
    title=REMINDER_TITLE,
    body=(
        "Complete the full course even if you feel better. Contact your doctor "
        "if you experience any unusual side effects or if your condition doesn't improve."
    )
)

BLEEDING_WARNING = "Blood thinning medication - monitor for unusual bleeding"
FOOD_WARNING = "Take with food to reduce stomach upset"
COURSE_WARNING = "Complete the full antibiotic course even if you feel better"

# (keywords matched against lower-cased drug names, warning)
WARNING_RULES: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("warfarin", "aspirin"), BLEEDING_WARNING),
    (("metformin",), FOOD_WARNING),
    (("antibiotic", "cillin"), COURSE_WARNING),
)


def _expand_all(tokens, dictionary: TerminologyDictionary, strip: str = "") -> str:
    phrases = []
    for token in tokens:
        lookup = token.rstrip(strip) if strip else token
        phrases.append(dictionary.expand(lookup) or token)
    return ", ".join(phrases)


def compose_steps(
    entities: EntitySet,
    dictionary: TerminologyDictionary = DEFAULT_DICTIONARY
) -> List[InstructionStep]:
    """Build instruction steps for the entity kinds that were found."""
    steps = []

    if entities.drug:
        steps.append(InstructionStep(
            title="Medication",
            body=(
                f"You have been prescribed {', '.join(entities.drug)}. This medication "
                "will help treat your condition as determined by your doctor."
            )
        ))

    if entities.dose:
        steps.append(InstructionStep(
            title="Dosage",
            body=(
                f"Take {', '.join(entities.dose)} as prescribed. Do not exceed this amount "
                "unless instructed by your healthcare provider."
            )
        ))

    if entities.freq:
        steps.append(InstructionStep(
            title="When to Take",
            body=(
                f"Take this medication {_expand_all(entities.freq, dictionary)}. Try to take "
                "it at the same times each day to maintain consistent levels in your body."
            )
        ))

    if entities.route:
        steps.append(InstructionStep(
            title="How to Take",
            body=(
                f"Take this medication {_expand_all(entities.route, dictionary, strip='.')}. "
                "Follow any specific instructions about food, water, or timing."
            )
        ))

    steps.append(REMINDER_STEP)
    return steps


def compose_warnings(entities: EntitySet) -> List[str]:
    """Warnings triggered by the drug names; each rule fires at most once."""
    drugs = [drug.lower() for drug in entities.drug]
    return [
        warning
        for keywords, warning in WARNING_RULES
        if any(keyword in drug for drug in drugs for keyword in keywords)
    ]


def compose(
    entities: EntitySet,
    normalized_text: str,
    dictionary: TerminologyDictionary = DEFAULT_DICTIONARY
) -> Tuple[List[InstructionStep], List[str]]:
    """
    Compose the patient explanation for a prescription.

    Args:
        entities: Entities extracted from the raw text
        normalized_text: Plain-language text of the prescription
            (unused by the current rules, which work from entities)
        dictionary: Abbreviation mapping used to expand timing and route

    Returns:
        Tuple of (instruction steps, warnings)
    """
    return compose_steps(entities, dictionary), compose_warnings(entities)
