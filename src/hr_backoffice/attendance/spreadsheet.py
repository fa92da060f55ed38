"""Excel I/O for attendance: scanner uploads and recaps in, reports out."""

from __future__ import annotations

import io
import logging
from datetime import datetime, time
from typing import IO, List, Optional, Sequence

import pandas as pd
from openpyxl.styles import Font, PatternFill

from ..common.datetime_utils import day_first
from ..core.exceptions import ValidationError
from .model import ExportRow, RekapItem, RekapRow, ScannerRow

logger = logging.getLogger(__name__)

EXPORT_SHEET = "Attendance"
EXPORT_COLUMNS = ["Date", "NIK", "Name", "Clock-in", "Status", "Source", "Note", "Remark"]
EXPORT_WIDTHS = {"A": 12, "B": 15, "C": 25, "D": 12, "E": 20, "F": 12, "G": 30, "H": 10}
XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _cell_text(value) -> str:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return ""
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M:%S")
    if isinstance(value, time):
        return value.strftime("%H:%M:%S")
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _badge(value) -> int:
    try:
        return int(float(_cell_text(value) or 0))
    except ValueError:
        return 0


def read_scanner_rows(stream: IO[bytes]) -> List[ScannerRow]:
    """Parse the first sheet of a scanner export.

    Columns: A badge number, B national id, C name, D time, E status.
    The first row is a header. Rows without a positive badge number are skipped.
    """
    try:
        df = pd.read_excel(stream, sheet_name=0, header=None, dtype=object, engine="openpyxl")
    except Exception as e:
        logger.error("Failed to read scanner file: %s", e)
        raise ValidationError("Could not read the Excel file. Check that it is a valid .xlsx export") from e

    rows: List[ScannerRow] = []
    for values in df.iloc[1:].itertuples(index=False, name=None):
        cells = list(values) + [None] * (5 - len(values))
        if not _cell_text(cells[0]):
            continue
        row = ScannerRow(
            badge_number=_badge(cells[0]),
            national_id=_cell_text(cells[1]),
            name=_cell_text(cells[2]),
            time=_cell_text(cells[3]),
            status=_cell_text(cells[4]),
        )
        if row.badge_number > 0:
            rows.append(row)

    logger.info("Scanner file parsed: rows=%d", len(rows))
    return rows


def write_attendance_export(rows: Sequence[ExportRow]) -> bytes:
    df = pd.DataFrame(
        [
            [
                r.work_date.isoformat(),
                r.national_id,
                r.name,
                r.clock_in,
                r.status,
                r.source,
                r.note,
                r.remark,
            ]
            for r in rows
        ],
        columns=EXPORT_COLUMNS,
    )

    output = io.BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name=EXPORT_SHEET)
        sheet = writer.sheets[EXPORT_SHEET]
        for column, width in EXPORT_WIDTHS.items():
            sheet.column_dimensions[column].width = width

    return output.getvalue()


REKAP_COLUMNS = 11
REKAP_SHEET = "Rekap Absensi"
REKAP_EXPORT_COLUMNS = ["No.", "Name", "Date", "In", "Out", "Note"]
REKAP_WIDTHS = {"A": 5, "B": 28, "C": 14, "D": 12, "E": 12, "F": 30}
HEADER_FILL = PatternFill(fill_type="solid", fgColor="FF2F75B6")
STRIPE_FILL = PatternFill(fill_type="solid", fgColor="FFF2F2F2")
UNMATCHED_FILL = PatternFill(fill_type="solid", fgColor="FFFFF2CC")


def read_rekap_rows(stream: IO[bytes]) -> List[RekapRow]:
    """Parse the first sheet of a period recap.

    Columns: A emp no, B badge number, C national id, D name, E auto-assign,
    F date, G work hours, H clock-in, I clock-out, J scan in, K scan out.
    The first row is a header; rows without an emp no are skipped.
    """
    try:
        df = pd.read_excel(stream, sheet_name=0, header=None, dtype=object, engine="openpyxl")
    except Exception as e:
        logger.error("Failed to read recap file: %s", e)
        raise ValidationError("Could not read the Excel file. Check that it is a valid .xlsx recap") from e

    rows: List[RekapRow] = []
    for values in df.iloc[1:].itertuples(index=False, name=None):
        cells = [_cell_text(v) for v in values] + [""] * (REKAP_COLUMNS - len(values))
        if not cells[0]:
            continue
        rows.append(RekapRow(*cells[:REKAP_COLUMNS]))

    logger.info("Recap file parsed: rows=%d", len(rows))
    return rows


def write_rekap_export(items: Sequence[RekapItem], period_label: Optional[str] = None) -> bytes:
    df = pd.DataFrame(
        [
            [
                i,
                item.name,
                day_first(item.work_date),
                item.scan_in or "-",
                item.scan_out or "-",
                item.note or "",
            ]
            for i, item in enumerate(items, start=1)
        ],
        columns=REKAP_EXPORT_COLUMNS,
    )

    output = io.BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name=REKAP_SHEET)
        sheet = writer.sheets[REKAP_SHEET]
        for column, width in REKAP_WIDTHS.items():
            sheet.column_dimensions[column].width = width
        for cell in sheet[1]:
            cell.font = Font(bold=True, color="FFFFFFFF")
            cell.fill = HEADER_FILL
        # unmatched rows are highlighted over the zebra stripe
        for offset, item in enumerate(items):
            fill = UNMATCHED_FILL if not item.matched else STRIPE_FILL if offset % 2 == 1 else None
            if fill is None:
                continue
            for cell in sheet[offset + 2]:
                cell.fill = fill
        sheet.freeze_panes = "A2"
        if period_label:
            sheet.oddHeader.center.text = period_label

    logger.info("Recap exported: rows=%d period=%s", len(items), period_label or "-")
    return output.getvalue()
