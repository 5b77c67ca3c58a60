"""
Valgrind Runner
===============
Runs a binary under valgrind memcheck with XML output forced on.
Returns the complete XML buffer, never a partial one.

BOUNDARY RULES:
    - Runner ONLY executes and captures.
    - Runner NEVER parses the XML — that is the Report Parser's job.
    - Runner NEVER decides success/failure of the analysis — a non-zero
      exit code of the analysed program is recorded, not raised.

XML is written to a temporary file (--xml-file) so that the program's own
stdout/stderr cannot interleave with the report.
"""
import os
import logging
import subprocess
import tempfile
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence

from vgreport.core.config import VALGRIND_BIN, VALGRIND_EXTRA_ARGS, VALGRIND_TIMEOUT
from vgreport.core.constants import VALGRIND_BASE_ARGS
from vgreport.core.errors import ValgrindLaunchError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Run Result (handed to the Report Parser)
# ---------------------------------------------------------------------------
@dataclass
class ValgrindRun:
    """
    Captured output of one valgrind invocation.

    Fields
    ------
    xml : bytes
        Complete memcheck XML report.
    exit_code : int
        Exit code of valgrind (the analysed program's, unless valgrind failed).
    stderr : str
        Program stderr, undecodable bytes replaced (valgrind's text log is
        suppressed by --xml-file).
    command : list[str]
        The command line that was executed.
    execution_time_seconds : float
        Wall clock duration.
    """
    xml: bytes = b""
    exit_code: int = -1
    stderr: str = ""
    command: list[str] = field(default_factory=list)
    execution_time_seconds: float = 0.0


def build_command(
    binary: Path,
    xml_path: Path,
    args: Sequence[str] = (),
    valgrind_bin: str = VALGRIND_BIN,
    extra_args: Sequence[str] = tuple(VALGRIND_EXTRA_ARGS),
) -> list[str]:
    """Assemble the valgrind command line."""
    return [
        valgrind_bin,
        *VALGRIND_BASE_ARGS,
        f"--xml-file={xml_path}",
        *extra_args,
        str(binary),
        *args,
    ]


def run_valgrind(
    binary: Path,
    args: Sequence[str] = (),
    timeout: int = VALGRIND_TIMEOUT,
    valgrind_bin: str = VALGRIND_BIN,
    extra_args: Optional[Sequence[str]] = None,
) -> ValgrindRun:
    """
    Run `binary` under valgrind and collect the XML report.

    Parameters
    ----------
    binary : Path
        Executable to analyse.
    args : Sequence[str]
        Arguments forwarded to the executable.
    timeout : int
        Seconds before the run is killed.
    valgrind_bin : str
        valgrind executable.
    extra_args : Sequence[str] | None
        Extra valgrind flags; defaults to VALGRIND_EXTRA_ARGS.

    Returns
    -------
    ValgrindRun
        Always complete: the XML file is read only after valgrind exited.

    Raises
    ------
    ValgrindLaunchError
        valgrind could not be started, timed out, or wrote no XML.
    """
    if extra_args is None:
        extra_args = VALGRIND_EXTRA_ARGS

    fd, tmp_name = tempfile.mkstemp(prefix="vgreport-", suffix=".xml")
    os.close(fd)
    xml_path = Path(tmp_name)
    command = build_command(binary, xml_path, args, valgrind_bin, extra_args)

    try:
        logger.info("Executing: %s", " ".join(command))
        start_time = time.time()
        try:
            completed = subprocess.run(
                command,
                capture_output=True,
                text=True,
                errors="replace",
                timeout=timeout,
            )
        except FileNotFoundError as e:
            raise ValgrindLaunchError(f"valgrind not found: {valgrind_bin}") from e
        except subprocess.TimeoutExpired as e:
            raise ValgrindLaunchError(f"valgrind timed out after {timeout}s") from e

        elapsed = time.time() - start_time
        xml = xml_path.read_bytes() if xml_path.exists() else b""
        if not xml.strip():
            msg = completed.stderr.strip().splitlines()[-1] if completed.stderr.strip() else ""
            raise ValgrindLaunchError(
                f"valgrind produced no XML report (exit code {completed.returncode})"
                + (f": {msg}" if msg else "")
            )

        logger.info(
            "valgrind finished in %.2fs with exit code %d (%d bytes of XML)",
            elapsed, completed.returncode, len(xml),
        )
        return ValgrindRun(
            xml=xml,
            exit_code=completed.returncode,
            stderr=completed.stderr,
            command=command,
            execution_time_seconds=elapsed,
        )
    finally:
        xml_path.unlink(missing_ok=True)
