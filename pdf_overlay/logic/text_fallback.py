"""
ASCII-safe substitution for characters outside the base font's repertoire.

The standard PDF fonts (Helvetica & Co.) only cover WinAnsi (cp1252); reportlab
does not complain about other characters, it silently draws missing glyphs.
"""
from __future__ import annotations

# Turkish first, then the usual Central/Eastern European suspects
_FALLBACK = str.maketrans({
    "ğ": "g", "Ğ": "G",
    "ü": "u", "Ü": "U",
    "ş": "s", "Ş": "S",
    "ı": "i", "İ": "I",
    "ö": "o", "Ö": "O",
    "ç": "c", "Ç": "C",
    "ł": "l", "Ł": "L",
    "ő": "o", "Ő": "O",
    "ű": "u", "Ű": "U",
    "ș": "s", "Ș": "S",
    "ț": "t", "Ț": "T",
    "ă": "a", "Ă": "A",
    "ą": "a", "Ą": "A",
    "ę": "e", "Ę": "E",
    "ć": "c", "Ć": "C",
    "ń": "n", "Ń": "N",
    "ś": "s", "Ś": "S",
    "ź": "z", "Ź": "Z",
    "ż": "z", "Ż": "Z",
    "č": "c", "Č": "C",
    "ď": "d", "Ď": "D",
    "ě": "e", "Ě": "E",
    "ň": "n", "Ň": "N",
    "ř": "r", "Ř": "R",
    "ť": "t", "Ť": "T",
    "ů": "u", "Ů": "U",
    "−": "-",      # minus sign
})


def is_encodable(text: str, encoding: str = "cp1252") -> bool:
    try:
        text.encode(encoding)
    except UnicodeEncodeError:
        return False
    return True


def ascii_fallback(text: str) -> str:
    """Deterministic replacement of known accented characters; others are kept."""
    return text.translate(_FALLBACK)
