"""
Error Taxonomy
==============
Exceptions that cross module boundaries.

    VgReportError
    ├── ReportParseError          — container-level failure, run is inconclusive
    │   ├── MalformedReportError  — output cannot be split into entries at all
    │   └── TruncatedReportError  — output ended inside an open element
    ├── ValgrindLaunchError       — valgrind missing, timed out, or wrote no XML
    └── CargoError                — cargo metadata / build / target selection failed

Entry-level problems (unknown kind, bad frame, missing field) are never raised;
the parser degrades the record instead.
"""


class VgReportError(Exception):
    """Base class for every error raised by this package."""


class ReportParseError(VgReportError):
    """The tool's output could not be understood. Never means "no defects"."""


class MalformedReportError(ReportParseError):
    def __init__(self, context: str) -> None:
        super().__init__(f"Malformed valgrind output: {context}")
        self.context = context


class TruncatedReportError(ReportParseError):
    def __init__(self, context: str = "output ended mid-entry") -> None:
        super().__init__(f"Truncated valgrind output: {context}")
        self.context = context


class ValgrindLaunchError(VgReportError):
    pass


class CargoError(VgReportError):
    pass
