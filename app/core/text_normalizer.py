"""
Plain-language rewriting of prescription text.

Replaces every whole-word abbreviation known to the terminology
dictionary with its expansion. Nothing else in the text is touched.
"""

from app.core.dictionary import DEFAULT_DICTIONARY, TerminologyDictionary


def normalize(
    text: str,
    dictionary: TerminologyDictionary = DEFAULT_DICTIONARY
) -> str:
    """
    Expand dictionary abbreviations in text.

    Keys are applied one pass each, in dictionary order. Matching is
    case-insensitive and limited to whole words, so "500mg" keeps its
    unit while a standalone "mg" becomes "milligrams".

    Args:
        text: Raw prescription text
        dictionary: Abbreviation mapping to apply

    Returns:
        Text with abbreviations replaced by plain-language phrases
    """
    for pattern, expansion in dictionary.patterns:
        # Callable replacement keeps the expansion literal (no backslash escapes)
        text = pattern.sub(lambda _match, phrase=expansion: phrase, text)
    return text
