"""Calendar export endpoints."""

import asyncio
import logging
import time
from collections.abc import Callable

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import Response

from api.dependencies import verify_api_key
from api.logging import RequestLog, log_request
from api.models.responses import ErrorCodes, MonthExportRequest, OrganizedExportRequest
from core.config import ORGANIZATION_NAME
from models.events import DateBucket
from services.exports import (
    RenderedExport,
    render_grid_workbook,
    render_organized_pdf,
    render_visual_pdf,
)
from services.filters import filter_event_list
from services.normalizer import flatten_bucket, is_date_bucket, normalize_events
from services.reports import format_month_label

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1")

PDF_MEDIA_TYPE = "application/pdf"
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def get_client_ip(request: Request) -> str:
    """Extract client IP from request, handling proxies."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def normalize_payload(payload) -> DateBucket:
    """
    Normalize a raw backend payload into a date bucket.

    Raises:
        HTTPException: 422 if the payload could not be normalized
    """
    bucket = normalize_events(payload)
    if not is_date_bucket(bucket):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={
                "error": "Events payload could not be normalized",
                "code": ErrorCodes.VALIDATION_ERROR,
                "details": [f"Received: {type(payload).__name__}"],
            },
        )
    return bucket


async def run_export(
    request_log: RequestLog,
    render: Callable[[], RenderedExport],
    media_type: str,
) -> Response:
    """
    Render an export in the thread pool and return it as a download.

    Every outcome is written to the request log.
    """
    start_time = time.time()

    try:
        rendered = await asyncio.to_thread(render)

        request_log.status_code = 200
        request_log.event_count = rendered.event_count
        request_log.page_count = rendered.page_count
        request_log.processing_time_ms = int((time.time() - start_time) * 1000)

        return Response(
            content=rendered.content,
            media_type=media_type,
            headers={"Content-Disposition": f'attachment; filename="{rendered.filename}"'},
        )

    except HTTPException as e:
        request_log.status_code = e.status_code
        if isinstance(e.detail, dict):
            request_log.error_code = e.detail.get("code")
            request_log.error_message = e.detail.get("error")
            for detail in e.detail.get("details", []):
                request_log.details.append(("validation_error", detail))
        else:
            request_log.error_message = str(e.detail)
        request_log.processing_time_ms = int((time.time() - start_time) * 1000)
        raise

    except Exception as e:
        logger.exception("%s export failed", request_log.export_type)
        error_msg = str(e) or "Unknown error occurred"
        request_log.status_code = 500
        request_log.error_code = ErrorCodes.EXPORT_FAILED
        request_log.error_message = error_msg
        request_log.processing_time_ms = int((time.time() - start_time) * 1000)

        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "Export failed",
                "code": ErrorCodes.EXPORT_FAILED,
                "details": [error_msg],
            },
        )

    finally:
        try:
            log_request(request_log)
        except Exception as e:
            logger.warning("Request log write failed: %s", e)


def _start_log(request: Request, export_type: str, period_label: str) -> RequestLog:
    return RequestLog(
        endpoint=request.url.path,
        method=request.method,
        client_ip=get_client_ip(request),
        export_type=export_type,
        period_label=period_label,
    )


@router.post("/exports/visual")
async def export_visual_endpoint(
    request: Request,
    body: MonthExportRequest,
    _api_key: str = Depends(verify_api_key),
):
    """
    Export the month grid as a single-page A4 landscape PDF.

    Returns calendar-<month>-<year>.pdf.
    """
    request_log = _start_log(request, "visual", format_month_label(body.year, body.month_index))
    filters = body.filters.to_filters() if body.filters else None

    def render() -> RenderedExport:
        bucket = normalize_payload(body.payload)
        return render_visual_pdf(
            bucket,
            body.year,
            body.month_index,
            body.organization_name or ORGANIZATION_NAME,
            filters,
        )

    return await run_export(request_log, render, PDF_MEDIA_TYPE)


@router.post("/exports/workbook")
async def export_workbook_endpoint(
    request: Request,
    body: MonthExportRequest,
    _api_key: str = Depends(verify_api_key),
):
    """Export the month grid as an Excel workbook with formula totals."""
    request_log = _start_log(request, "workbook", format_month_label(body.year, body.month_index))
    filters = body.filters.to_filters() if body.filters else None

    def render() -> RenderedExport:
        bucket = normalize_payload(body.payload)
        return render_grid_workbook(
            bucket,
            body.year,
            body.month_index,
            body.organization_name or ORGANIZATION_NAME,
            filters,
        )

    return await run_export(request_log, render, XLSX_MEDIA_TYPE)


@router.post("/exports/organized")
async def export_organized_endpoint(
    request: Request,
    body: OrganizedExportRequest,
    _api_key: str = Depends(verify_api_key),
):
    """
    Export events of a period as a paginated, date-grouped PDF list.

    Events are restricted to start_date..end_date (inclusive) when given.
    """
    request_log = _start_log(request, "organized", body.label)
    filters = body.filters.to_filters() if body.filters else None

    def render() -> RenderedExport:
        bucket = normalize_payload(body.payload)
        events = filter_event_list(flatten_bucket(bucket, body.start_date, body.end_date), filters)
        return render_organized_pdf(events, body.label, body.filename)

    return await run_export(request_log, render, PDF_MEDIA_TYPE)
