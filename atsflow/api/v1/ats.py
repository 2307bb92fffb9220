from pathlib import Path

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Request, UploadFile, status
from fastapi.responses import Response

from atsflow.analyzer import ATSScanner, ScanInputError
from atsflow.analyzer.export import EXPORT_FORMATS, MEDIA_TYPES
from atsflow.core.config import settings
from atsflow.core.rate_limit import rate_limit
from atsflow.core.scan_rate_limit import ScanRateLimitExceeded, enforce_scan_rate_limit
from atsflow.parsing.models import SUPPORTED_SOURCE_TYPES
from atsflow.schemas.analysis import (
    AnalysisReport,
    ComparisonResult,
    HistoryStatistics,
    PathToScore,
    QuickScanResult,
    ScanError,
    ScanHistoryEntry,
    ScannerInfo,
    ScoreTrend,
)
from atsflow.schemas.requests import CompareRequest, PathToScoreRequest, ScanRequest, ScanTextRequest
from atsflow.schemas.resume import ScanOptions
from atsflow.services.scanner_service import get_scanner, scan_text, scan_upload

UPLOAD_CHUNK_BYTES = 64 * 1024
EXPORT_EXTENSIONS = {"json": "json", "csv": "csv", "html": "html", "summary": "txt"}


def _client_key(request: Request) -> str:
    forwarded_for = request.headers.get("x-forwarded-for", "").strip()
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def scan_rate_limit(request: Request) -> None:
    try:
        enforce_scan_rate_limit(client_key=_client_key(request), route_key=request.url.path)
    except ScanRateLimitExceeded as exc:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many requests. Please wait a minute and try again.",
        ) from exc


def _bad_request(exc: Exception) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


def _scan_or_400(scanner: ATSScanner, payload: ScanRequest) -> AnalysisReport:
    result = scanner.scan(payload.document, payload.options)
    if isinstance(result, ScanError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=result.message)
    return result


router = APIRouter(prefix="/ats")
limited = [Depends(scan_rate_limit)]


@router.get("/info", response_model=ScannerInfo)
@rate_limit()
async def ats_info(request: Request, scanner: ATSScanner = Depends(get_scanner)):
    return scanner.info()


@router.post("/scan", response_model=AnalysisReport, dependencies=limited)
async def ats_scan(payload: ScanRequest, scanner: ATSScanner = Depends(get_scanner)):
    return _scan_or_400(scanner, payload)


@router.post("/quick-scan", response_model=QuickScanResult, dependencies=limited)
async def ats_quick_scan(payload: ScanRequest, scanner: ATSScanner = Depends(get_scanner)):
    try:
        return scanner.quick_scan(payload.document, payload.options)
    except ScanInputError as exc:
        raise _bad_request(exc) from exc


@router.post("/compare", response_model=ComparisonResult, dependencies=limited)
async def ats_compare(payload: CompareRequest, scanner: ATSScanner = Depends(get_scanner)):
    try:
        return scanner.compare_resumes(payload.resume_a, payload.resume_b, payload.options)
    except ScanInputError as exc:
        raise _bad_request(exc) from exc


@router.post("/path-to-score", response_model=PathToScore, dependencies=limited)
async def ats_path_to_score(payload: PathToScoreRequest, scanner: ATSScanner = Depends(get_scanner)):
    report = _scan_or_400(scanner, payload)
    try:
        return scanner.get_path_to_score(report, payload.target_score)
    except ScanInputError as exc:
        raise _bad_request(exc) from exc


@router.post("/export", dependencies=limited)
async def ats_export(
    payload: ScanRequest,
    export_format: str = Query("json", alias="format"),
    scanner: ATSScanner = Depends(get_scanner),
):
    fmt = export_format.strip().lower()
    if fmt not in EXPORT_FORMATS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unsupported export format '{export_format}'. Allowed: {', '.join(EXPORT_FORMATS)}.",
        )
    report = _scan_or_400(scanner, payload)
    return Response(
        content=scanner.export_results(report, fmt),
        media_type=MEDIA_TYPES[fmt],
        headers={"Content-Disposition": f'attachment; filename="ats-report.{EXPORT_EXTENSIONS[fmt]}"'},
    )


@router.post("/scan-text", response_model=AnalysisReport, dependencies=limited)
async def ats_scan_text(payload: ScanTextRequest, scanner: ATSScanner = Depends(get_scanner)):
    try:
        return scan_text(scanner, payload.resume_text, payload.options)
    except ScanInputError as exc:
        raise _bad_request(exc) from exc


@router.post("/scan-file", response_model=AnalysisReport, dependencies=limited)
async def ats_scan_file(
    file: UploadFile = File(...),
    industry: str | None = Form(default=None),
    scanner: ATSScanner = Depends(get_scanner),
):
    filename = file.filename or ""
    ext = Path(filename).suffix.lower().lstrip(".")
    if ext not in SUPPORTED_SOURCE_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unsupported file type '.{ext}'. Allowed: {', '.join(sorted(SUPPORTED_SOURCE_TYPES))}.",
        )

    max_bytes = settings.max_upload_mb * 1024 * 1024
    chunks: list[bytes] = []
    total = 0
    while True:
        chunk = await file.read(UPLOAD_CHUNK_BYTES)
        if not chunk:
            break
        total += len(chunk)
        if total > max_bytes:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail=f"File too large. Maximum allowed size is {settings.max_upload_mb} MB.",
            )
        chunks.append(chunk)

    try:
        return scan_upload(scanner, filename, b"".join(chunks), ScanOptions(industry=industry))
    except ScanInputError as exc:
        raise _bad_request(exc) from exc


@router.get("/history", response_model=list[ScanHistoryEntry])
@rate_limit()
async def ats_history(request: Request, scanner: ATSScanner = Depends(get_scanner)):
    return scanner.history_entries()


@router.get("/history/stats", response_model=HistoryStatistics)
@rate_limit()
async def ats_history_stats(request: Request, scanner: ATSScanner = Depends(get_scanner)):
    return scanner.history_statistics()


@router.get("/history/trend", response_model=ScoreTrend)
@rate_limit()
async def ats_history_trend(request: Request, scanner: ATSScanner = Depends(get_scanner)):
    return scanner.score_trend()
