"""Freeform address normalization and cache-key hashing.

Normalization folds case, punctuation, spacing, and common street-type and
directional spellings so that differently formatted inputs for the same place
share one cache key.
"""

import hashlib
import re

from geocode_api.lib.geocoder.base import InvalidAddressError

# Common street type abbreviations (USPS Pub 28 plus frequent French forms)
STREET_TYPE_MAP: dict[str, str] = {
    "alley": "aly",
    "avenue": "ave",
    "boulevard": "blvd",
    "circle": "cir",
    "court": "ct",
    "drive": "dr",
    "expressway": "expy",
    "freeway": "fwy",
    "highway": "hwy",
    "lane": "ln",
    "parkway": "pkwy",
    "place": "pl",
    "road": "rd",
    "square": "sq",
    "street": "st",
    "terrace": "ter",
    "trail": "trl",
    "turnpike": "tpke",
    "chemin": "ch",
}

DIRECTIONAL_MAP: dict[str, str] = {
    "north": "n",
    "south": "s",
    "east": "e",
    "west": "w",
    "northeast": "ne",
    "northwest": "nw",
    "southeast": "se",
    "southwest": "sw",
}

# Longest words first so "northeast" is replaced before "north"
_WORD_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(rf"\b{re.escape(word)}\b"), abbrev)
    for word, abbrev in sorted({**STREET_TYPE_MAP, **DIRECTIONAL_MAP}.items(), key=lambda x: -len(x[0]))
]

_DISALLOWED_CHARS = re.compile(r"[^\w\s,#/-]")
_COMMA_SPACING = re.compile(r"\s*,[\s,]*")
_HYPHEN_SPACING = re.compile(r"\s*-\s*")
_WHITESPACE = re.compile(r"\s+")


def normalize_address(address: str) -> str:
    """Normalize a freeform address string into its canonical cache form.

    Lowercases, trims, drops punctuation other than commas, hyphens, ``#`` and
    ``/``, normalizes comma and hyphen spacing, collapses whitespace, and
    abbreviates street types and directionals on word boundaries.

    Args:
        address: Raw freeform address string.

    Returns:
        Normalized address string.

    Raises:
        TypeError: If ``address`` is not a string.
        InvalidAddressError: If nothing addressable remains after normalization.
    """
    if not isinstance(address, str):
        msg = f"address must be a string, got {type(address).__name__}"
        raise TypeError(msg)

    result = address.lower().strip()
    result = _DISALLOWED_CHARS.sub("", result)
    result = _COMMA_SPACING.sub(", ", result)
    result = _HYPHEN_SPACING.sub("-", result)
    result = _WHITESPACE.sub(" ", result)
    result = result.strip(" ,")

    # Underscores survive \w but carry no address meaning
    if not result.replace("_", "").strip(" ,-#/"):
        msg = "Address must not be empty or whitespace-only."
        raise InvalidAddressError(msg)

    for pattern, replacement in _WORD_PATTERNS:
        result = pattern.sub(replacement, result)

    return result


def address_hash(normalized_address: str) -> str:
    """Return the SHA-256 hex digest used as the cache key for a normalized address."""
    return hashlib.sha256(normalized_address.encode("utf-8")).hexdigest()
