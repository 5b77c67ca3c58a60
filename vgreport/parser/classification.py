"""
Classification
==============
Maps memcheck <kind> tags to DefectKind.

Classification Strategy:
    1. EXPLICIT TABLE FIRST — exact tag lookup
    2. CASE-INSENSITIVE TABLE SECOND — tolerates tag spelling drift
    3. NEVER fail: anything else becomes DefectKind.other(tag)

The table is the only place where the wire vocabulary meets the domain model.
New memcheck tags only need an entry here.
"""
import logging
from typing import Optional

from vgreport.models.defect import DefectCategory, DefectKind, LeakKind

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# 1. Explicit Tag Table
# ---------------------------------------------------------------------------
_TAG_MAP: dict[str, DefectKind] = {
    # Leaks
    "Leak_DefinitelyLost":  DefectKind.leak(LeakKind.DEFINITE),
    "Leak_PossiblyLost":    DefectKind.leak(LeakKind.POSSIBLE),
    "Leak_IndirectlyLost":  DefectKind.leak(LeakKind.INDIRECT),
    "Leak_StillReachable":  DefectKind.leak(LeakKind.REACHABLE),

    # Invalid accesses
    "InvalidRead":          DefectKind(category=DefectCategory.INVALID_READ),
    "InvalidWrite":         DefectKind(category=DefectCategory.INVALID_WRITE),
    "InvalidFree":          DefectKind(category=DefectCategory.INVALID_FREE),
    "MismatchedFree":       DefectKind(category=DefectCategory.INVALID_FREE),

    # Uninitialised values
    "UninitValue":          DefectKind(category=DefectCategory.UNINITIALIZED_USE),
    "UninitCondition":      DefectKind(category=DefectCategory.UNINITIALIZED_USE),

    # Overlapping src/dst in memcpy-like calls
    "Overlap":              DefectKind(category=DefectCategory.OVERLAP),
}

# ---------------------------------------------------------------------------
# 2. Case-insensitive fallback
# ---------------------------------------------------------------------------
_FOLDED_TAG_MAP: dict[str, DefectKind] = {
    tag.lower().replace("_", ""): kind for tag, kind in _TAG_MAP.items()
}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def classify_kind(tag: Optional[str]) -> DefectKind:
    """
    Classify a memcheck <kind> tag.

    Parameters
    ----------
    tag : str | None
        Text of the entry's <kind> element. None or blank when absent.

    Returns
    -------
    DefectKind
        The mapped kind; DefectKind.other(tag) for unknown tags and
        DefectKind.other(None) when there is no tag at all.
    """
    if tag is None or not tag.strip():
        return DefectKind.other(None)

    tag = tag.strip()

    # --- Pass 1: exact ---
    kind = _TAG_MAP.get(tag)
    if kind is not None:
        return kind

    # --- Pass 2: folded ---
    kind = _FOLDED_TAG_MAP.get(tag.lower().replace("_", ""))
    if kind is not None:
        return kind

    # --- Fallback ---
    logger.debug("Unrecognised memcheck kind %r, keeping as OTHER", tag)
    return DefectKind.other(tag)


def known_tags() -> list[str]:
    """Return the memcheck tags with a dedicated mapping, sorted."""
    return sorted(_TAG_MAP)
