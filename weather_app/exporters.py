"""
Export helpers.

Every exporter takes a list of record dicts (see main.record_to_dict):
- JSON: pretty printed, human-readable dates
- CSV: one row per record, the weather columns only
- XML: <weatherRecords><record>...</record></weatherRecords>
- Markdown: one section per record
- PDF: one A4 page per record (reportlab)
"""

from __future__ import annotations

import csv
import io
import json
import logging
import xml.etree.ElementTree as ET
from datetime import date, datetime
from typing import Any, Callable, Dict, List, NamedTuple, Tuple, Union

from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

logger = logging.getLogger(__name__)

CSV_FIELDS = [
    "location",
    "start_date",
    "end_date",
    "temperature_celsius",
    "temperature_fahrenheit",
    "description",
    "humidity",
    "wind_speed",
]


def format_date(value: Any) -> str:
    """date/datetime/ISO string -> "Jan 5, 2025". Unparseable values are returned as-is."""
    if isinstance(value, str):
        try:
            value = date.fromisoformat(value[:10])
        except ValueError:
            return value
    if isinstance(value, (date, datetime)):
        return f"{value:%b} {value.day}, {value.year}"
    return "" if value is None else str(value)


def _na(value: Any) -> str:
    return "N/A" if value is None or value == "" else str(value)


def export_json(records: List[Dict[str, Any]]) -> str:
    """Export list of records as pretty JSON."""
    formatted = [
        {
            **r,
            "start_date": format_date(r.get("start_date")),
            "end_date": format_date(r.get("end_date")),
            "created_at": format_date(r.get("created_at")),
            "updated_at": format_date(r.get("updated_at")),
        }
        for r in records
    ]
    return json.dumps(formatted, indent=2, default=str)


def export_csv(records: List[Dict[str, Any]]) -> str:
    """Export list of records as CSV (ISO dates)."""
    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=CSV_FIELDS, extrasaction="ignore")
    writer.writeheader()
    for r in records:
        writer.writerow({k: r.get(k, "") for k in CSV_FIELDS})
    return output.getvalue()


def export_xml(records: List[Dict[str, Any]]) -> str:
    """Export records as an indented XML document."""
    root = ET.Element("weatherRecords")
    for r in records:
        el = ET.SubElement(root, "record")
        for field in CSV_FIELDS:
            value = r.get(field)
            if field in ("start_date", "end_date"):
                value = format_date(value)
            ET.SubElement(el, _camel(field)).text = "" if value is None else str(value)

    ET.indent(root, space="  ")
    return '<?xml version="1.0" encoding="utf-8"?>\n' + ET.tostring(root, encoding="unicode")


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(p.title() for p in rest)


def export_markdown(records: List[Dict[str, Any]]) -> str:
    """Export a Markdown report, one section per record."""
    lines = ["# Weather Records", ""]
    if not records:
        lines += ["_No records._", ""]

    for i, r in enumerate(records, start=1):
        lines += [
            f"## Record {i}",
            "",
            f"- Location: {r.get('location')}",
            f"- Date Range: {format_date(r.get('start_date'))} - {format_date(r.get('end_date'))}",
            f"- Temperature: {r.get('temperature_celsius')}°C / {r.get('temperature_fahrenheit')}°F",
            f"- Description: {r.get('description')}",
            f"- Humidity: {r.get('humidity')}%",
            f"- Wind Speed: {r.get('wind_speed')} m/s",
            "",
        ]

    return "\n".join(lines)


def export_pdf(records: List[Dict[str, Any]]) -> bytes:
    """
    Render one A4 page per record with a "Page X of Y" footer.
    The first page carries the document title.
    """
    buf = io.BytesIO()
    pdf = canvas.Canvas(buf, pagesize=A4)
    pdf.setTitle("Weather Records")
    width, height = A4
    margin = 50
    total = max(len(records), 1)

    if not records:
        pdf.setFont("Helvetica-Bold", 24)
        pdf.drawCentredString(width / 2, height - margin - 24, "Weather Records")
        pdf.setFont("Helvetica", 12)
        pdf.drawString(margin, height - margin - 70, "No records.")
        _footer(pdf, width, 1, total)
        pdf.showPage()

    for i, r in enumerate(records, start=1):
        y = height - margin
        if i == 1:
            pdf.setFont("Helvetica-Bold", 24)
            pdf.drawCentredString(width / 2, y - 24, "Weather Records")
            y -= 60

        pdf.setFont("Helvetica-Bold", 16)
        heading = f"Record {i}"
        pdf.drawString(margin, y - 16, heading)
        pdf.line(margin, y - 19, margin + pdf.stringWidth(heading, "Helvetica-Bold", 16), y - 19)
        y -= 40

        pdf.setFont("Helvetica", 12)
        for text in (
            f"Location: {_na(r.get('location'))}",
            f"Date Range: {format_date(r.get('start_date'))} - {format_date(r.get('end_date'))}",
            f"Temperature: {_na(r.get('temperature_celsius'))}°C / {_na(r.get('temperature_fahrenheit'))}°F",
            f"Description: {_na(r.get('description'))}",
            f"Humidity: {_na(r.get('humidity'))}%",
            f"Wind Speed: {_na(r.get('wind_speed'))} m/s",
        ):
            pdf.drawString(margin, y, text)
            y -= 17

        _footer(pdf, width, i, total)
        pdf.showPage()

    pdf.save()
    return buf.getvalue()


def _footer(pdf: canvas.Canvas, width: float, page: int, total: int) -> None:
    pdf.setFont("Helvetica", 10)
    pdf.drawCentredString(width / 2, 30, f"Page {page} of {total}")


class ExportFormat(NamedTuple):
    render: Callable[[List[Dict[str, Any]]], Union[str, bytes]]
    media_type: str
    filename: str


EXPORT_FORMATS: Dict[str, ExportFormat] = {
    "json": ExportFormat(export_json, "application/json", "weather-records.json"),
    "csv": ExportFormat(export_csv, "text/csv", "weather-records.csv"),
    "xml": ExportFormat(export_xml, "application/xml", "weather-records.xml"),
    "markdown": ExportFormat(export_markdown, "text/markdown", "weather-records.md"),
    "md": ExportFormat(export_markdown, "text/markdown", "weather-records.md"),
    "pdf": ExportFormat(export_pdf, "application/pdf", "weather-records.pdf"),
}


def export_records(records: List[Dict[str, Any]], fmt: str) -> Tuple[Union[str, bytes], str, str]:
    """Render `records` in `fmt`. Returns (content, media_type, filename)."""
    spec = EXPORT_FORMATS.get(fmt.lower())
    if spec is None:
        raise ValueError(f"Unsupported export format: {fmt}")

    logger.info("Exporting %d records as %s", len(records), fmt)
    return spec.render(records), spec.media_type, spec.filename
