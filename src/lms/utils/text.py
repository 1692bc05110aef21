"""Text helpers for user-facing messages."""


def to_sentence_case(word: str | None) -> str:
    """
    Capitalize the first letter and lowercase the rest.

    >>> to_sentence_case("pRONOUNS")
    'Pronouns'
    """
    if not word:
        return ""
    return word[0].upper() + word[1:].lower()
