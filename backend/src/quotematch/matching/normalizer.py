"""Text normalization for line item and catalog text.

Every scorer compares normalized strings only. normalize_text is pure and
idempotent: normalize_text(normalize_text(x)) == normalize_text(x).
"""

import re
from functools import lru_cache
from typing import Dict, Optional

# Multi-word fixes, applied before single-token abbreviations
PHRASE_FIXES: Dict[str, str] = {
    "st steel": "stainless steel",
    "stainless st": "stainless steel",
    "zinc pl": "zinc plated",
}

# Hardware/fastener shorthand seen on vendor quotes
ABBREVIATIONS: Dict[str, str] = {
    "hx": "hex",
    "hd": "head",
    "scr": "screw",
    "gr": "grade",
    "zp": "zinc plated",
    "ss": "stainless steel",
    "sst": "stainless steel",
    "alum": "aluminum",
    "galv": "galvanized",
    "wsh": "washer",
    "thd": "thread",
    "flg": "flange",
    "soc": "socket",
}

# A token boundary is string start/end or any char outside [a-z0-9./]
_BOUNDARY_BEFORE = r"(?<![a-z0-9./])"
_BOUNDARY_AFTER = r"(?![a-z0-9./])"


def _token_pattern(keys) -> "re.Pattern[str]":
    # Longest first so "sst" is never shadowed by "ss"
    alternation = "|".join(re.escape(k) for k in sorted(keys, key=len, reverse=True))
    return re.compile(_BOUNDARY_BEFORE + r"(" + alternation + r")\.?" + _BOUNDARY_AFTER)


_PHRASE_RE = _token_pattern(PHRASE_FIXES)
_ABBREV_RE = _token_pattern(ABBREVIATIONS)
_WHITESPACE_RE = re.compile(r"\s+")
_REPEATED_SEPARATOR_RE = re.compile(r"([-/.])\1+")
_WITH_RE = re.compile(_BOUNDARY_BEFORE + r"w/")
_DISALLOWED_RE = re.compile(r"[^a-z0-9 ./]")


def _collapse(text: str) -> str:
    text = _WHITESPACE_RE.sub(" ", text)
    return _REPEATED_SEPARATOR_RE.sub(r"\1", text).strip()


def _expand(text: str) -> str:
    text = _PHRASE_RE.sub(lambda m: PHRASE_FIXES[m.group(1)], text)
    return _ABBREV_RE.sub(lambda m: ABBREVIATIONS[m.group(1)], text)


@lru_cache(maxsize=4096)
def _normalize(raw: str) -> str:
    text = _expand(_collapse(raw.lower()))

    text = text.replace("&", " and ")
    while True:
        replaced = _WITH_RE.sub("with ", text)
        if replaced == text:
            break
        # "w/" glued to the next token hid it from the previous expansion
        text = _expand(replaced)

    text = _REPEATED_SEPARATOR_RE.sub(r"\1", text)
    text = _DISALLOWED_RE.sub(" ", text)

    return _WHITESPACE_RE.sub(" ", text).strip()


def normalize_text(raw: Optional[str]) -> str:
    """Normalize free text for matching.

    Steps, in order:
    1. Lower-case
    2. Collapse whitespace and repeated separators (-, /, .), trim
    3. Expand known abbreviations on whole-token boundaries
       (e.g. "hx" -> "hex", "gr." -> "grade")
    4. Substitute symbol conjunctions ("&" -> "and", "w/" -> "with") and
       expand abbreviations the substitution separated ("w/ss" -> "with
       stainless steel")
    5. Collapse repeated separators
    6. Replace every char outside [a-z0-9 ./] with a space
    7. Collapse whitespace and trim

    Args:
        raw: Raw text (None allowed)

    Returns:
        str: Normalized text, "" for empty or None input

    Examples:
        >>> normalize_text("GR. 8 HX HD CAP SCR 5/16-18X2-1/2")
        'grade 8 hex head cap screw 5/16 18x2 1/2'
        >>> normalize_text("Washer & Nut w/ Lock")
        'washer and nut with lock'
    """
    if not raw:
        return ""
    return _normalize(str(raw))
