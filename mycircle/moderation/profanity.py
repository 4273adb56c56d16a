"""Local profanity filter, checked before any AI moderation call."""

import re

BAD_WORDS = (
    "abuse",
    "harass",
    "hate",
    "violence",
    "stupid",
    "idiot",
    "damn",
    "hell",
    "ass",
    "bitch",
    "fuck",
    "shit",
)

# Whole words only: "hello" and "class" must pass
_PATTERN = re.compile(r"\b(?:" + "|".join(BAD_WORDS) + r")\w*", re.IGNORECASE)


def contains_profanity(text: str | None) -> bool:
    if not text:
        return False
    for match in _PATTERN.finditer(text):
        word = match.group(0).lower()
        if any(word == bad or (len(bad) > 4 and word.startswith(bad)) for bad in BAD_WORDS):
            return True
    return False
