"""SQLite request log for export API calls."""

import sqlite3
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from core.config import DB_PATH

# api_requests columns, in insert order (see scripts/init_db.py)
REQUEST_COLUMNS = (
    "request_id",
    "timestamp",
    "endpoint",
    "method",
    "client_ip",
    "export_type",
    "period_label",
    "status_code",
    "error_code",
    "error_message",
    "processing_time_ms",
    "event_count",
    "page_count",
)


@dataclass
class RequestLog:
    """One export request and its outcome."""

    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
    endpoint: str = ""
    method: str = ""
    client_ip: str | None = None
    export_type: str | None = None  # "visual", "organized", "workbook"
    period_label: str | None = None  # e.g. "March 2025"
    status_code: int = 0
    error_code: str | None = None
    error_message: str | None = None
    processing_time_ms: int = 0
    event_count: int | None = None
    page_count: int | None = None  # PDFs only
    details: list[tuple[str, str]] = field(default_factory=list)  # (type, message)

    def row(self) -> tuple:
        values = asdict(self)
        return tuple(values[column] for column in REQUEST_COLUMNS)


def log_request(log: RequestLog, db_path: Path | None = None) -> None:
    """Insert the request and its detail rows in one transaction."""
    placeholders = ", ".join("?" for _ in REQUEST_COLUMNS)
    conn = sqlite3.connect(db_path or DB_PATH)
    try:
        with conn:
            conn.execute(
                f"INSERT INTO api_requests ({', '.join(REQUEST_COLUMNS)}) VALUES ({placeholders})",
                log.row(),
            )
            conn.executemany(
                "INSERT INTO api_request_details (request_id, detail_type, message) VALUES (?, ?, ?)",
                [(log.request_id, detail_type, message) for detail_type, message in log.details],
            )
    finally:
        conn.close()
