"""
Defect Record Model
===================
Pydantic models for one memcheck finding.
This is the shared vocabulary between the Report Parser and the Aggregator.

Types:
    DefectCategory  — closed set of defect families
    LeakKind        — definite / possible / indirect / reachable
    DefectKind      — category + payload (leak kind, or raw tag for OTHER)
    StackFrame      — one frame of a call stack, address always present
    DefectRecord    — one finding: kind, stack, byte count, messages

All models are frozen: created once by the parser, never mutated.
"""
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field


class DefectCategory(str, Enum):
    MEMORY_LEAK = "MEMORY_LEAK"
    INVALID_READ = "INVALID_READ"
    INVALID_WRITE = "INVALID_WRITE"
    INVALID_FREE = "INVALID_FREE"
    UNINITIALIZED_USE = "UNINITIALIZED_USE"
    OVERLAP = "OVERLAP"
    OTHER = "OTHER"


class LeakKind(str, Enum):
    DEFINITE = "definite"
    POSSIBLE = "possible"
    INDIRECT = "indirect"
    REACHABLE = "reachable"


# Human labels used by the renderer
_CATEGORY_LABELS: dict[DefectCategory, str] = {
    DefectCategory.MEMORY_LEAK:       "Leak",
    DefectCategory.INVALID_READ:      "Invalid read",
    DefectCategory.INVALID_WRITE:     "Invalid write",
    DefectCategory.INVALID_FREE:      "Invalid free",
    DefectCategory.UNINITIALIZED_USE: "Uninitialised value",
    DefectCategory.OVERLAP:           "Overlap",
    DefectCategory.OTHER:             "Other",
}

# Categories whose byte count carries meaning (bytes lost / bytes touched)
_BYTE_TRACKING: frozenset[DefectCategory] = frozenset({
    DefectCategory.MEMORY_LEAK,
    DefectCategory.INVALID_READ,
    DefectCategory.INVALID_WRITE,
})


class DefectKind(BaseModel):
    """
    The kind of a finding.

    `leak_kind` is set only for MEMORY_LEAK; `raw_tag` only for OTHER, where
    it keeps the upstream tag (None when the entry carried no usable tag).
    Two kinds are equal iff category and payload are equal.
    """
    model_config = ConfigDict(frozen=True)

    category: DefectCategory
    leak_kind: Optional[LeakKind] = None
    raw_tag: Optional[str] = None

    @classmethod
    def leak(cls, leak_kind: LeakKind) -> "DefectKind":
        return cls(category=DefectCategory.MEMORY_LEAK, leak_kind=leak_kind)

    @classmethod
    def other(cls, raw_tag: Optional[str]) -> "DefectKind":
        return cls(category=DefectCategory.OTHER, raw_tag=raw_tag)

    @property
    def is_leak(self) -> bool:
        return self.category is DefectCategory.MEMORY_LEAK

    @property
    def tracks_bytes(self) -> bool:
        return self.category in _BYTE_TRACKING

    @property
    def key(self) -> str:
        """Stable string identity, e.g. "MEMORY_LEAK:definite" or "OTHER:SyscallParam"."""
        if self.leak_kind is not None:
            return f"{self.category.value}:{self.leak_kind.value}"
        if self.category is DefectCategory.OTHER:
            return f"{self.category.value}:{self.raw_tag or ''}"
        return self.category.value

    @computed_field
    @property
    def label(self) -> str:
        base = _CATEGORY_LABELS[self.category]
        if self.leak_kind is not None:
            return f"{base} ({self.leak_kind.value})"
        if self.category is DefectCategory.OTHER:
            return f"{base} ({self.raw_tag or 'uninterpretable'})"
        return base


class StackFrame(BaseModel):
    model_config = ConfigDict(frozen=True)

    address: int = Field(ge=0)
    function: Optional[str] = None
    file: Optional[str] = None
    line: Optional[int] = None
    object_path: Optional[str] = None

    def describe(self) -> str:
        """One-line description, e.g. "main (main.c:12)" or "0x4005D4 (in /bin/app)"."""
        name = self.function or f"0x{self.address:X}"
        if self.file:
            location = f"{self.file}:{self.line}" if self.line is not None else self.file
            return f"{name} ({location})"
        if self.object_path:
            return f"{name} (in {self.object_path})"
        return name


class DefectRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: DefectKind
    stack: tuple[StackFrame, ...] = ()
    byte_count: Optional[int] = None  # None = unknown, distinct from 0
    message: Optional[str] = None
    auxiliary: Optional[str] = None
    degraded: bool = False
