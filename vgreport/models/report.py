"""
Report Model
============
Pydantic models for the aggregated result of one run.

Fields (Report):
    groups          — GroupedFinding list, first-seen order
    leak_count      — occurrences of leak kinds
    error_count     — occurrences of every other kind (OTHER included)
    leaked_bytes    — bytes summed over leak kinds
    error_bytes     — bytes summed over non-leak kinds
    degraded_count  — records whose detail was partly dropped while parsing
    clean           — True iff the run produced no records at all

Used by:
    - Report Renderer to build the console text
    - CLI to pick the exit code (clean → 0)
    - HTTP API as the JSON payload
"""
from pydantic import BaseModel, ConfigDict, Field

from .defect import DefectKind, StackFrame


class GroupedFinding(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: DefectKind
    fingerprint: str
    count: int = Field(ge=1)
    total_bytes: int = 0
    representative_stack: tuple[StackFrame, ...] = ()
    representative_message: str = ""


class Report(BaseModel):
    model_config = ConfigDict(frozen=True)

    groups: tuple[GroupedFinding, ...] = ()
    leak_count: int = 0
    error_count: int = 0
    leaked_bytes: int = 0
    error_bytes: int = 0
    degraded_count: int = 0
    clean: bool = True

    @property
    def total_occurrences(self) -> int:
        return self.leak_count + self.error_count

    def total_bytes(self, kind: DefectKind) -> int:
        """Bytes summed over every record of exactly `kind`."""
        return sum(g.total_bytes for g in self.groups if g.kind == kind)
