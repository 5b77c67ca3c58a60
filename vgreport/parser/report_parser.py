"""
Report Parser
=============
Converts raw memcheck XML output (--xml=yes) into DefectRecord objects.

Pipeline:
    1. Feed the whole buffer to an incremental XML parser
    2. Check the container: a single <valgrindoutput> root
    3. Decide between a malformed and a truncated stream on failure
    4. Map every <error> child to a DefectRecord, in document order
    5. Skip informational children (<preamble>, <status>, <errorcounts>, ...)

Contract:
    - Only container-level failures raise (MalformedReportError,
      TruncatedReportError). Entry-level issues degrade the record instead.
    - One record per <error> entry: the record count always equals what
      the tool reported, only detail may be lost.
    - Pure: no I/O besides logging.
"""
import re
import logging
import xml.etree.ElementTree as ET
from typing import Optional, Union

from vgreport.core.constants import XML_ENTRY_TAG, XML_ROOT_TAG
from vgreport.core.errors import MalformedReportError, TruncatedReportError
from vgreport.models.defect import DefectRecord, StackFrame
from vgreport.parser.classification import classify_kind

logger = logging.getLogger(__name__)


# "Invalid read of size 4" / "Invalid write of size 8"
_ACCESS_SIZE = re.compile(r"\bof size (\d+)\b", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Container Level
# ---------------------------------------------------------------------------
def _load_root(raw: Union[bytes, str]) -> ET.Element:
    """
    Parse the buffer and return the <valgrindoutput> root element.

    Syntax errors reported while the data is fed are malformed input. Errors
    reported only when the stream is closed mean the document stopped inside
    an open element, i.e. the tool died mid-write.
    """
    if not raw or not raw.strip():
        raise MalformedReportError("empty output")

    parser = ET.XMLPullParser(events=("start", "end"))
    root: Optional[ET.Element] = None
    depth = 0

    def drain() -> None:
        nonlocal root, depth
        for event, elem in parser.read_events():
            if event == "start":
                if root is None:
                    root = elem
                depth += 1
            else:
                depth -= 1

    try:
        parser.feed(raw)
        drain()
    except ET.ParseError as e:
        raise MalformedReportError(str(e)) from e

    close_error: Optional[ET.ParseError] = None
    try:
        parser.close()
    except ET.ParseError as e:
        close_error = e

    # Elements completed by the final flush are queued even when close() fails
    try:
        drain()
    except ET.ParseError as e:
        raise MalformedReportError(str(e)) from e

    if close_error is not None:
        if root is None:
            raise MalformedReportError(f"no root element ({close_error})") from close_error
        raise TruncatedReportError(
            f"<{root.tag}> still open at end of stream, {depth} element(s) unclosed"
        ) from close_error

    if root is None:
        raise MalformedReportError("no root element")
    if root.tag != XML_ROOT_TAG:
        raise MalformedReportError(f"unexpected root element <{root.tag}>")
    return root


# ---------------------------------------------------------------------------
# Entry Level Helpers
# ---------------------------------------------------------------------------
def _text(elem: Optional[ET.Element], path: str) -> Optional[str]:
    """Return stripped text of the child at `path`, or None if absent/blank."""
    if elem is None:
        return None
    child = elem.find(path)
    if child is None or child.text is None:
        return None
    value = child.text.strip()
    return value or None


def _parse_address(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        address = int(value, 16) if value.lower().startswith("0x") else int(value)
    except ValueError:
        return None
    return address if address >= 0 else None


def _parse_frame(frame: ET.Element) -> tuple[Optional[StackFrame], bool]:
    """
    Parse one <frame>.

    Returns (frame, degraded). frame is None when the address is missing or
    unparsable; the caller drops it from the stack.
    """
    address = _parse_address(_text(frame, "ip"))
    if address is None:
        return None, True

    degraded = False
    line: Optional[int] = None
    raw_line = _text(frame, "line")
    if raw_line is not None:
        try:
            line = int(raw_line)
        except ValueError:
            degraded = True

    return StackFrame(
        address=address,
        function=_text(frame, "fn"),
        file=_text(frame, "file"),
        line=line,
        object_path=_text(frame, "obj"),
    ), degraded


def _parse_stack(entry: ET.Element, index: int) -> tuple[tuple[StackFrame, ...], bool]:
    """Parse the first <stack> of an entry. Auxiliary stacks are ignored."""
    stack = entry.find("stack")
    if stack is None:
        return (), False

    frames: list[StackFrame] = []
    degraded = False
    for position, frame_elem in enumerate(stack.findall("frame")):
        frame, frame_degraded = _parse_frame(frame_elem)
        degraded = degraded or frame_degraded
        if frame is None:
            logger.warning(
                "Entry %d: dropping frame %d without a usable address", index, position
            )
            continue
        frames.append(frame)
    return tuple(frames), degraded


def _parse_byte_count(entry: ET.Element, message: Optional[str], is_leak: bool) -> tuple[Optional[int], bool]:
    """
    Leaks declare <xwhat><leakedbytes>; invalid accesses only state the size
    in their message. Returns (byte_count, degraded).
    """
    if is_leak:
        raw = _text(entry, "xwhat/leakedbytes")
        if raw is None:
            return None, False
        try:
            return int(raw), False
        except ValueError:
            return None, True

    if message:
        m = _ACCESS_SIZE.search(message)
        if m:
            return int(m.group(1)), False
    return None, False


def _parse_entry(entry: ET.Element, index: int) -> DefectRecord:
    """Map one <error> element to a DefectRecord. Never raises."""
    tag = _text(entry, "kind")
    kind = classify_kind(tag)
    degraded = tag is None
    if degraded:
        logger.warning("Entry %d has no <kind>, counted as uninterpretable", index)

    message = _text(entry, "what") or _text(entry, "xwhat/text")
    auxiliary_lines = [
        aux.text.strip() for aux in entry.findall("auxwhat") if aux.text and aux.text.strip()
    ]

    stack, stack_degraded = _parse_stack(entry, index)
    byte_count, bytes_degraded = _parse_byte_count(entry, message, kind.is_leak)
    if kind.tracks_bytes and not kind.is_leak and byte_count is None:
        logger.debug("Entry %d (%s): access size unknown", index, kind.label)

    return DefectRecord(
        kind=kind,
        stack=stack,
        byte_count=byte_count if kind.tracks_bytes else None,
        message=message,
        auxiliary="\n".join(auxiliary_lines) or None,
        degraded=degraded or stack_degraded or bytes_degraded,
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def parse(raw: Union[bytes, str]) -> list[DefectRecord]:
    """
    Parse memcheck XML output into DefectRecord objects.

    Parameters
    ----------
    raw : bytes | str
        The complete XML output of one valgrind run.

    Returns
    -------
    list[DefectRecord]
        One record per <error> entry, in document order. Empty list when the
        run reported no errors.

    Raises
    ------
    MalformedReportError
        The output is empty, not XML, or not a <valgrindoutput> document.
    TruncatedReportError
        The output stops before the document is closed.
    """
    root = _load_root(raw)

    records: list[DefectRecord] = []
    skipped = 0
    for child in root:
        if child.tag != XML_ENTRY_TAG:
            skipped += 1
            continue
        records.append(_parse_entry(child, len(records)))

    degraded = sum(1 for r in records if r.degraded)
    logger.info(
        "Parsed %d defect record(s) (%d degraded, %d informational element(s) skipped)",
        len(records), degraded, skipped,
    )
    return records
