"""
Unit Tests — Kind Classification
================================
Tag table lookups, case folding, and the OTHER fallback.
"""
import pytest

from vgreport.models.defect import DefectCategory, DefectKind, LeakKind
from vgreport.parser.classification import classify_kind, known_tags


class TestClassification:

    @pytest.mark.parametrize("tag,category", [
        ("InvalidRead", DefectCategory.INVALID_READ),
        ("InvalidWrite", DefectCategory.INVALID_WRITE),
        ("InvalidFree", DefectCategory.INVALID_FREE),
        ("MismatchedFree", DefectCategory.INVALID_FREE),
        ("UninitValue", DefectCategory.UNINITIALIZED_USE),
        ("UninitCondition", DefectCategory.UNINITIALIZED_USE),
        ("Overlap", DefectCategory.OVERLAP),
    ])
    def test_error_tags(self, tag, category):
        assert classify_kind(tag).category is category

    def test_leak_tags(self):
        assert classify_kind("Leak_DefinitelyLost") == DefectKind.leak(LeakKind.DEFINITE)
        assert classify_kind("Leak_PossiblyLost") == DefectKind.leak(LeakKind.POSSIBLE)
        assert classify_kind("Leak_IndirectlyLost") == DefectKind.leak(LeakKind.INDIRECT)
        assert classify_kind("Leak_StillReachable") == DefectKind.leak(LeakKind.REACHABLE)

    def test_surrounding_whitespace_ignored(self):
        assert classify_kind("  InvalidRead\n").category is DefectCategory.INVALID_READ

    def test_case_drift_tolerated(self):
        assert classify_kind("invalidread").category is DefectCategory.INVALID_READ
        assert classify_kind("LEAK_DEFINITELYLOST") == DefectKind.leak(LeakKind.DEFINITE)

    def test_unknown_tag_kept_as_other(self):
        kind = classify_kind("SyscallParam")
        assert kind == DefectKind.other("SyscallParam")
        assert kind.label == "Other (SyscallParam)"

    def test_missing_tag(self):
        assert classify_kind(None) == DefectKind.other(None)
        assert classify_kind("   ") == DefectKind.other(None)

    def test_known_tags_sorted(self):
        tags = known_tags()
        assert tags == sorted(tags)
        assert "Leak_DefinitelyLost" in tags
        assert "SyscallParam" not in tags

    def test_deterministic(self):
        assert classify_kind("InvalidWrite") == classify_kind("InvalidWrite")


class TestDefectKind:

    def test_labels(self):
        assert DefectKind.leak(LeakKind.DEFINITE).label == "Leak (definite)"
        assert DefectKind(category=DefectCategory.INVALID_READ).label == "Invalid read"
        assert DefectKind.other(None).label == "Other (uninterpretable)"

    def test_tracks_bytes(self):
        assert DefectKind.leak(LeakKind.POSSIBLE).tracks_bytes is True
        assert DefectKind(category=DefectCategory.INVALID_WRITE).tracks_bytes is True
        assert DefectKind(category=DefectCategory.INVALID_FREE).tracks_bytes is False
        assert DefectKind.other("SyscallParam").tracks_bytes is False

    def test_hashable_and_equal_by_value(self):
        kinds = {DefectKind.leak(LeakKind.DEFINITE), DefectKind.leak(LeakKind.DEFINITE)}
        assert len(kinds) == 1

    def test_leak_kinds_differ(self):
        assert DefectKind.leak(LeakKind.DEFINITE) != DefectKind.leak(LeakKind.POSSIBLE)

    def test_keys(self):
        assert DefectKind.leak(LeakKind.INDIRECT).key == "MEMORY_LEAK:indirect"
        assert DefectKind.other("FishyValue").key == "OTHER:FishyValue"
        assert DefectKind(category=DefectCategory.OVERLAP).key == "OVERLAP"

    def test_label_serialised(self):
        dumped = DefectKind.leak(LeakKind.DEFINITE).model_dump()
        assert dumped["label"] == "Leak (definite)"
