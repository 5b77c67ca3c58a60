"""
POST /api/analyze-report
========================
Accepts a raw memcheck XML report as the request body, runs the pure
parse → aggregate → render pipeline, and returns the Report as JSON.

Parse failures are HTTP 422 with a machine-readable `detail.error`:
    "malformed"  — the body is not a valgrind XML report
    "truncated"  — the report stops mid-document (tool crashed)
A clean report is never returned for a body that failed to parse.
"""
import logging
from typing import List

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from vgreport.core.errors import ReportParseError, TruncatedReportError
from vgreport.core.report_renderer import RenderStyle, Verbosity, render
from vgreport.models.report import GroupedFinding
from vgreport.parser.report_parser import parse
from vgreport.services.aggregator import aggregate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Report API"])


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------
class Totals(BaseModel):
    groups: int
    occurrences: int
    leak_count: int
    error_count: int
    leaked_bytes: int
    error_bytes: int
    degraded_count: int


class AnalyzeReportResponse(BaseModel):
    clean: bool
    groups: List[GroupedFinding]
    totals: Totals
    rendered: str


@router.post("/analyze-report", response_model=AnalyzeReportResponse)
async def analyze_report(
    request: Request,
    verbosity: Verbosity = Verbosity.FULL,
    colorize: bool = False,
) -> AnalyzeReportResponse:
    body = await request.body()

    try:
        records = parse(body)
    except ReportParseError as e:
        error = "truncated" if isinstance(e, TruncatedReportError) else "malformed"
        logger.warning("Rejected report (%s): %s", error, e)
        raise HTTPException(status_code=422, detail={"error": error, "message": str(e)})

    report = aggregate(records)
    return AnalyzeReportResponse(
        clean=report.clean,
        groups=list(report.groups),
        totals=Totals(
            groups=len(report.groups),
            occurrences=report.total_occurrences,
            leak_count=report.leak_count,
            error_count=report.error_count,
            leaked_bytes=report.leaked_bytes,
            error_bytes=report.error_bytes,
            degraded_count=report.degraded_count,
        ),
        rendered=render(report, RenderStyle(colorize=colorize, verbosity=verbosity)),
    )
