"""
Stack Fingerprint Utility
=========================
Generates stable fingerprints for call stacks to merge duplicate findings.

A fingerprint combines, for up to the first `depth` frames:
    - the function name, or
    - the hex address when the frame is unsymbolised

File and line are deliberately left out: the same leak reached from a
rebuilt binary keeps its fingerprint.

Empty stacks fingerprint the DefectKind alone, so every stackless finding
of one kind collapses into a single group.
"""
import hashlib
from typing import Sequence

from vgreport.core.config import FINGERPRINT_DEPTH
from vgreport.models.defect import DefectKind, StackFrame


def frame_token(frame: StackFrame) -> str:
    """Return the identity token of one frame."""
    return frame.function or f"0x{frame.address:x}"


def generate_stack_fingerprint(
    kind: DefectKind,
    stack: Sequence[StackFrame],
    depth: int = FINGERPRINT_DEPTH,
) -> str:
    """
    Generate a stable fingerprint for a call stack.

    Parameters
    ----------
    kind : DefectKind
        Kind of the finding; used only when the stack is empty.
    stack : Sequence[StackFrame]
        Frames in emitted order.
    depth : int
        Number of leading frames that contribute.

    Returns
    -------
    str
        16-character hex digest.
    """
    if depth < 1:
        raise ValueError(f"depth must be >= 1, got {depth}")

    if not stack:
        raw = f"kind:{kind.key}"
    else:
        raw = "|".join(frame_token(f) for f in stack[:depth])

    return hashlib.sha256(raw.encode("utf-8")).hexdigest()[:16]
