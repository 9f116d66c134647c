"""Krovetz-style light stemmer.

KStem removes inflectional endings (plurals, past tense, progressive) and a
handful of derivational endings (-ly, -ness, -ity, -ment) while trying to
leave a readable word behind. Unlike Porter it never strips -ion, -ation,
-ize or -ive, so "detection" and "interface" survive unchanged.

Krovetz's algorithm consults a full English lexicon. This implementation
uses an exception table plus spelling heuristics (undoubling, silent-e
restoration), which is enough for collection-scale experiments.
"""

from __future__ import annotations

_VOWELS = frozenset("aeiou")

_IRREGULAR: dict[str, str] = {
    "children": "child",
    "men": "man",
    "women": "woman",
    "mice": "mouse",
    "feet": "foot",
    "teeth": "tooth",
    "geese": "goose",
    "data": "datum",
    "indices": "index",
    "matrices": "matrix",
    "vertices": "vertex",
    "analyses": "analysis",
    "does": "do",
    "did": "do",
    "done": "do",
    "went": "go",
    "was": "be",
    "were": "be",
    "been": "be",
    "has": "have",
    "had": "have",
}

# Words that look inflected but are not.
_INVARIANT = frozenset(
    {
        "news",
        "series",
        "species",
        "analysis",
        "basis",
        "thesis",
        "crisis",
        "axis",
        "this",
        "his",
        "gas",
        "bus",
        "yes",
        "always",
        "perhaps",
        "physics",
        "mathematics",
        "economics",
        "politics",
        "thing",
        "nothing",
        "something",
        "anything",
        "everything",
        "morning",
        "evening",
        "during",
        "ceiling",
        "wedding",
        "bed",
        "red",
        "need",
        "feed",
        "seed",
        "speed",
        "hundred",
        "sacred",
        "only",
        "family",
        "early",
        "reply",
        "apply",
        "supply",
        "july",
        "italy",
        "deed",
        "weed",
        "heed",
        "breed",
        "greed",
        "bleed",
        "creed",
        "indeed",
        "exceed",
        "proceed",
        "succeed",
    }
)

# Words whose derivational-looking ending belongs to the root ("document" is
# not "docu" + "-ment", "business" is not "busy" + "-ness").
_DERIVATIONAL_ROOTS = frozenset(
    {
        "document",
        "argument",
        "instrument",
        "experiment",
        "implement",
        "supplement",
        "complement",
        "compliment",
        "element",
        "department",
        "environment",
        "sentiment",
        "ornament",
        "parliament",
        "business",
        "witness",
        "wilderness",
        "harness",
        "assembly",
        "butterfly",
        "multiply",
        "comply",
        "anomaly",
        "monopoly",
    }
)

# Stem endings after which a dropped silent "e" is restored ("manag" -> "manage").
_RESTORE_E_ENDINGS: tuple[str, ...] = ("at", "bl", "iz", "ur", "dg", "ag", "c", "v", "z", "uc", "ut")
_NO_UNDOUBLE = frozenset("lsz")

_ITY_RULES: tuple[tuple[str, str], ...] = (
    ("bility", "ble"),
    ("ivity", "ive"),
    ("ality", "al"),
    ("osity", "ous"),
)
# A bare -ity is only removed from adjective-shaped stems ("electric", "similar").
_ITY_STEM_ENDINGS: tuple[str, ...] = ("ic", "ar", "id", "ex")


def _is_consonant(word: str, index: int) -> bool:
    char = word[index]
    if char in _VOWELS:
        return False
    if char == "y":
        return index == 0 or not _is_consonant(word, index - 1)
    return True


def _has_vowel(stem: str) -> bool:
    return any(not _is_consonant(stem, idx) for idx in range(len(stem)))


def _is_short_cvc(stem: str) -> bool:
    if len(stem) < 3 or len(stem) > 4:
        return False
    return (
        _is_consonant(stem, len(stem) - 3)
        and not _is_consonant(stem, len(stem) - 2)
        and _is_consonant(stem, len(stem) - 1)
        and stem[-1] not in "wxy"
    )


def _is_plausible_root(stem: str) -> bool:
    """A stem left by a derivational rule must still look like a word."""

    return len(stem) >= 4 and _has_vowel(stem) and stem[-1] not in "aiou"


def _repair_stem(stem: str) -> str:
    """Undo spelling changes made when a suffix was attached."""

    if len(stem) == 2:
        # "us" -> "use", "ag" -> "age"
        if not _is_consonant(stem, 0) and _is_consonant(stem, 1):
            return stem + "e"
        return stem
    if len(stem) >= 3 and stem[-1] == stem[-2] and _is_consonant(stem, len(stem) - 1):
        if stem[-1] not in _NO_UNDOUBLE:
            return stem[:-1]
        return stem
    if stem.endswith(_RESTORE_E_ENDINGS) or _is_short_cvc(stem):
        return stem + "e"
    return stem


def _strip_plural(word: str) -> str:
    if not word.endswith("s") or word.endswith(("ss", "us", "is")):
        return word
    if word.endswith("ies") and len(word) > 4:
        return word[:-3] + "y"
    if word.endswith(("sses", "xes", "zes", "ches", "shes", "oes")) and len(word) > 4:
        return word[:-2]
    return word[:-1]


def _strip_past(word: str) -> str:
    if not word.endswith("ed") or len(word) < 4:
        return word
    if word.endswith("ied"):
        return word[:-3] + "y"
    if word.endswith("eed"):
        return word[:-1]
    stem = word[:-2]
    if not _has_vowel(stem):
        return word
    return _repair_stem(stem)


def _strip_progressive(word: str) -> str:
    if not word.endswith("ing") or len(word) < 6:
        return word
    stem = word[:-3]
    if not _has_vowel(stem):
        return word
    return _repair_stem(stem)


def _strip_derivational(word: str) -> str:
    if word in _DERIVATIONAL_ROOTS:
        return word
    if word.endswith(("ably", "ibly")) and len(word) > 6:
        return word[:-1] + "e"
    if word.endswith("ily") and len(word) > 5:
        return word[:-3] + "y"
    if word.endswith("ly") and _is_plausible_root(word[:-2]):
        return word[:-2]
    if word.endswith("iness") and len(word) > 7:
        return word[:-5] + "y"
    if word.endswith("ness") and _is_plausible_root(word[:-4]):
        return word[:-4]
    if word.endswith("ment") and _is_plausible_root(word[:-4]):
        return word[:-4]
    for suffix, replacement in _ITY_RULES:
        if word.endswith(suffix) and len(word) - len(suffix) >= 3:
            return word[: -len(suffix)] + replacement
    if word.endswith("ity") and word[:-3].endswith(_ITY_STEM_ENDINGS) and len(word) > 6:
        return word[:-3]
    return word


def kstem(word: str) -> str:
    """Reduce ``word`` to its KStem root. Input is expected to be lowercased."""

    if word in _IRREGULAR:
        return _IRREGULAR[word]
    if len(word) <= 3 or not word.isalpha():
        return word
    if word in _INVARIANT:
        return word

    stem = _strip_plural(word)
    if stem == word:
        stem = _strip_past(word)
    if stem == word:
        stem = _strip_progressive(word)
    return _strip_derivational(stem)
