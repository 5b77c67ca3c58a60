"""
Unit Tests — Aggregator & Stack Fingerprint
===========================================
Grouping by (kind, fingerprint), first-seen order, totals, and the
end-to-end scenarios parse → aggregate.
"""
import pytest

from vgreport.models.defect import DefectCategory, DefectKind, DefectRecord, LeakKind, StackFrame
from vgreport.parser.report_parser import parse
from vgreport.services.aggregator import aggregate
from vgreport.utils.stack_fingerprint import frame_token, generate_stack_fingerprint

from xml_samples import document, error, frame, leak

DEFINITE = DefectKind.leak(LeakKind.DEFINITE)
POSSIBLE = DefectKind.leak(LeakKind.POSSIBLE)
INVALID_READ = DefectKind(category=DefectCategory.INVALID_READ)


def _stack(*names: str) -> tuple[StackFrame, ...]:
    return tuple(StackFrame(address=0x1000 + i, function=n) for i, n in enumerate(names))


def _record(kind=DEFINITE, stack=(), nbytes=None, degraded=False) -> DefectRecord:
    return DefectRecord(kind=kind, stack=stack, byte_count=nbytes, degraded=degraded)


# ===========================================================================
# 1. Stack Fingerprint
# ===========================================================================
class TestStackFingerprint:

    def test_same_stack_same_fingerprint(self):
        a = generate_stack_fingerprint(DEFINITE, _stack("malloc", "main"))
        b = generate_stack_fingerprint(DEFINITE, _stack("malloc", "main"))
        assert a == b
        assert len(a) == 16

    def test_function_name_beats_address(self):
        s1 = (StackFrame(address=0x10, function="f"),)
        s2 = (StackFrame(address=0x20, function="f"),)
        assert generate_stack_fingerprint(DEFINITE, s1) == generate_stack_fingerprint(DEFINITE, s2)

    def test_address_used_when_unsymbolised(self):
        s1 = (StackFrame(address=0x10),)
        s2 = (StackFrame(address=0x20),)
        assert frame_token(s1[0]) == "0x10"
        assert generate_stack_fingerprint(DEFINITE, s1) != generate_stack_fingerprint(DEFINITE, s2)

    def test_file_and_line_ignored(self):
        s1 = (StackFrame(address=1, function="f", file="a.c", line=1),)
        s2 = (StackFrame(address=1, function="f", file="b.c", line=9),)
        assert generate_stack_fingerprint(DEFINITE, s1) == generate_stack_fingerprint(DEFINITE, s2)

    def test_only_first_depth_frames_count(self):
        a = _stack("malloc", "alloc", "caller_a")
        b = _stack("malloc", "alloc", "caller_b")
        assert generate_stack_fingerprint(DEFINITE, a, depth=2) == generate_stack_fingerprint(DEFINITE, b, depth=2)
        assert generate_stack_fingerprint(DEFINITE, a, depth=3) != generate_stack_fingerprint(DEFINITE, b, depth=3)

    def test_empty_stack_depends_on_kind_only(self):
        assert generate_stack_fingerprint(DEFINITE, ()) == generate_stack_fingerprint(DEFINITE, ())
        assert generate_stack_fingerprint(DEFINITE, ()) != generate_stack_fingerprint(POSSIBLE, ())

    def test_invalid_depth(self):
        with pytest.raises(ValueError):
            generate_stack_fingerprint(DEFINITE, _stack("f"), depth=0)


# ===========================================================================
# 2. Grouping
# ===========================================================================
class TestGrouping:

    def test_empty_input_is_clean(self):
        report = aggregate([])
        assert report.clean is True
        assert report.groups == ()
        assert report.total_occurrences == 0

    def test_stackless_same_kind_merge(self):
        records = [_record(nbytes=n) for n in (8, 16, None, 32)]
        report = aggregate(records)
        assert len(report.groups) == 1
        assert report.groups[0].count == 4
        assert report.groups[0].total_bytes == 56

    def test_same_stack_different_kind_do_not_merge(self):
        stack = _stack("malloc", "main")
        report = aggregate([_record(DEFINITE, stack), _record(POSSIBLE, stack)])
        assert len(report.groups) == 2

    def test_first_seen_order(self):
        a, b, c = _stack("a"), _stack("b"), _stack("c")
        records = [
            _record(INVALID_READ, b),
            _record(DEFINITE, a),
            _record(INVALID_READ, b),
            _record(DEFINITE, c),
            _record(DEFINITE, a),
        ]
        report = aggregate(records)
        assert [(g.kind, g.representative_stack[0].function) for g in report.groups] == [
            (INVALID_READ, "b"),
            (DEFINITE, "a"),
            (DEFINITE, "c"),
        ]
        assert [g.count for g in report.groups] == [2, 2, 1]

    def test_representative_is_first_member(self):
        first = (StackFrame(address=1, function="f", file="first.c", line=1),)
        second = (StackFrame(address=2, function="f", file="second.c", line=2),)
        report = aggregate([_record(stack=first), _record(stack=second)])
        assert report.groups[0].representative_stack[0].file == "first.c"

    def test_other_kind_groups_and_counts_as_error(self):
        other = DefectKind.other("SyscallParam")
        report = aggregate([_record(other), _record(other)])
        assert len(report.groups) == 1
        assert report.groups[0].count == 2
        assert report.error_count == 2
        assert report.leak_count == 0

    def test_inputs_not_mutated(self):
        records = [_record(nbytes=1), _record(nbytes=2)]
        snapshot = list(records)
        aggregate(records)
        assert records == snapshot


# ===========================================================================
# 3. Totals
# ===========================================================================
class TestTotals:

    def test_leak_and_error_totals(self):
        records = [
            _record(DEFINITE, nbytes=100),
            _record(POSSIBLE, nbytes=50),
            _record(INVALID_READ, _stack("f"), nbytes=4),
        ]
        report = aggregate(records)
        assert report.leak_count == 2
        assert report.leaked_bytes == 150
        assert report.error_count == 1
        assert report.error_bytes == 4
        assert report.total_occurrences == 3

    def test_total_bytes_per_kind(self):
        records = [
            _record(DEFINITE, _stack("a"), nbytes=10),
            _record(DEFINITE, _stack("b"), nbytes=20),
            _record(POSSIBLE, nbytes=5),
        ]
        report = aggregate(records)
        assert report.total_bytes(DEFINITE) == 30
        assert report.total_bytes(POSSIBLE) == 5
        assert report.total_bytes(INVALID_READ) == 0

    def test_degraded_count(self):
        report = aggregate([_record(degraded=True), _record(), _record(degraded=True)])
        assert report.degraded_count == 2

    def test_reaggregation_is_stable(self):
        records = [
            _record(DEFINITE, _stack("a"), nbytes=10),
            _record(INVALID_READ, _stack("b"), nbytes=4),
            _record(DEFINITE, _stack("a"), nbytes=6),
        ]
        assert aggregate(records) == aggregate(records)

    def test_report_is_immutable(self):
        report = aggregate([_record()])
        with pytest.raises(Exception):
            report.clean = True


# ===========================================================================
# 4. End-to-End Scenarios
# ===========================================================================
class TestScenarios:

    def test_identical_definite_leaks_merge(self):
        report = aggregate(parse(document(leak(nbytes="64"), leak(nbytes="128", unique="0x1"))))
        assert len(report.groups) == 1
        group = report.groups[0]
        assert group.kind == DEFINITE
        assert group.count == 2
        assert group.total_bytes == 192

    def test_unknown_tag_scenario(self):
        report = aggregate(parse(document(error("SyscallParam", "Syscall param write(buf) points to uninitialised byte(s)"))))
        assert report.clean is False
        assert report.groups[0].kind == DefectKind.other("SyscallParam")
        assert report.groups[0].count == 1

    def test_empty_document_scenario(self):
        report = aggregate(parse(document()))
        assert report.clean is True
        assert report.groups == ()

    def test_different_callers_stay_apart(self):
        a = [frame("0x1", "malloc"), frame("0x2", "parse_config")]
        b = [frame("0x1", "malloc"), frame("0x3", "load_cache")]
        report = aggregate(parse(document(leak(frames=a), leak(frames=b))))
        assert len(report.groups) == 2
