"""Rendering of cleaning results as JSON, XML, CSV or HTML reports."""

from __future__ import annotations

import csv
import html
import io
import json
import logging
import xml.etree.ElementTree as ET
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

from reclaim.models.results import CleaningResult, ServiceResult
from reclaim.utils import bytes_to_human

log = logging.getLogger(__name__)

_CSV_HEADER = (
    "Service Name",
    "Success",
    "Error Message",
    "Files Processed",
    "Space Freed (bytes)",
    "Start Time",
    "End Time",
)

_HTML_STYLE = """\
    body { font-family: sans-serif; margin: 20px; }
    table { border-collapse: collapse; width: 100%; }
    th, td { border: 1px solid #ddd; padding: 8px; text-align: left; }
    th { background-color: #f2f2f2; }
    .success { color: green; }
    .error { color: red; }"""


class ReportFormat(str, Enum):
    JSON = "json"
    XML = "xml"
    CSV = "csv"
    HTML = "html"


def _iso(dt: datetime | None) -> str:
    return dt.isoformat(timespec="seconds") if dt else ""


def _service_dict(service: ServiceResult) -> dict[str, Any]:
    return {
        "cleaner_id": service.cleaner_id,
        "name": service.name,
        "success": service.success,
        "error": service.error,
        "files_processed": service.files_processed,
        "bytes_freed": service.bytes_freed,
        "started_at": _iso(service.started_at),
        "finished_at": _iso(service.finished_at),
    }


def result_to_dict(result: CleaningResult) -> dict[str, Any]:
    """JSON-ready representation of *result*."""
    return {
        "started_at": _iso(result.started_at),
        "finished_at": _iso(result.finished_at),
        "duration_seconds": round(result.duration.total_seconds(), 3),
        "success": result.success,
        "total_files_processed": result.total_files_processed,
        "total_bytes_freed": result.total_bytes_freed,
        "service_results": [_service_dict(s) for s in result.service_results],
    }


def _render_json(result: CleaningResult) -> str:
    return json.dumps(result_to_dict(result), indent=2) + "\n"


def _render_xml(result: CleaningResult) -> str:
    root = ET.Element("CleaningReport")
    ET.SubElement(root, "StartTime").text = _iso(result.started_at)
    ET.SubElement(root, "EndTime").text = _iso(result.finished_at)
    ET.SubElement(root, "Duration").text = str(result.duration)
    ET.SubElement(root, "TotalFilesProcessed").text = str(result.total_files_processed)
    ET.SubElement(root, "TotalSpaceFreed").text = str(result.total_bytes_freed)

    services = ET.SubElement(root, "ServiceResults")
    for service in result.service_results:
        node = ET.SubElement(services, "ServiceResult", id=service.cleaner_id)
        ET.SubElement(node, "ServiceName").text = service.name
        ET.SubElement(node, "Success").text = str(service.success).lower()
        ET.SubElement(node, "ErrorMessage").text = service.error or ""
        ET.SubElement(node, "FilesProcessed").text = str(service.files_processed)
        ET.SubElement(node, "SpaceFreed").text = str(service.bytes_freed)
        ET.SubElement(node, "StartTime").text = _iso(service.started_at)
        ET.SubElement(node, "EndTime").text = _iso(service.finished_at)

    ET.indent(root)
    return '<?xml version="1.0" encoding="utf-8"?>\n' + ET.tostring(root, encoding="unicode") + "\n"


def _render_csv(result: CleaningResult) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(_CSV_HEADER)
    for service in result.service_results:
        writer.writerow(
            (
                service.name,
                service.success,
                service.error or "",
                service.files_processed,
                service.bytes_freed,
                _iso(service.started_at),
                _iso(service.finished_at),
            )
        )
    return buf.getvalue()


def _render_html(result: CleaningResult) -> str:
    rows = []
    for service in result.service_results:
        status_class, status_text = ("success", "Success") if service.success else ("error", "Failed")
        rows.append(
            "    <tr>"
            f"<td>{html.escape(service.name)}</td>"
            f'<td class="{status_class}">{status_text}</td>'
            f"<td>{html.escape(service.error or '')}</td>"
            f"<td>{service.files_processed}</td>"
            f"<td>{bytes_to_human(service.bytes_freed)}</td>"
            f"<td>{_iso(service.started_at)}</td>"
            f"<td>{_iso(service.finished_at)}</td>"
            "</tr>"
        )

    lines = [
        "<!DOCTYPE html>",
        "<html>",
        "<head>",
        '  <meta charset="utf-8">',
        "  <title>Cleaning Report</title>",
        "  <style>",
        _HTML_STYLE,
        "  </style>",
        "</head>",
        "<body>",
        "  <h1>Cleaning Report</h1>",
        f"  <p><strong>Total Files Processed:</strong> {result.total_files_processed}</p>",
        f"  <p><strong>Total Space Freed:</strong> {bytes_to_human(result.total_bytes_freed)}</p>",
        f"  <p><strong>Duration:</strong> {result.duration}</p>",
        "  <table>",
        "    <tr><th>Service Name</th><th>Status</th><th>Error Message</th><th>Files Processed</th>"
        "<th>Space Freed</th><th>Start Time</th><th>End Time</th></tr>",
        *rows,
        "  </table>",
        "</body>",
        "</html>",
    ]
    return "\n".join(lines) + "\n"


_RENDERERS = {
    ReportFormat.JSON: _render_json,
    ReportFormat.XML: _render_xml,
    ReportFormat.CSV: _render_csv,
    ReportFormat.HTML: _render_html,
}


def render_report(result: CleaningResult, fmt: ReportFormat | str) -> str:
    """Render *result* in *fmt*.

    Raises:
        ValueError: for an unsupported format.
    """
    if not isinstance(fmt, ReportFormat):
        try:
            fmt = ReportFormat(fmt.lower())
        except ValueError:
            raise ValueError(f"Unsupported report format: {fmt}") from None
    content = _RENDERERS[fmt](result)
    log.info("Generated %s report with %d files processed", fmt.value, result.total_files_processed)
    return content


def write_report(result: CleaningResult, fmt: ReportFormat | str, path: Path | str) -> Path:
    """Render *result* and write it to *path*."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_report(result, fmt), encoding="utf-8")
    log.info("Report written to %s", path)
    return path
