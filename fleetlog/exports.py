from __future__ import annotations

import csv
import io
from typing import Iterable, List

from openpyxl import Workbook

from .schemas import WorkLog

EXPORT_HEADERS = [
    "Date",
    "Operator",
    "Tractor",
    "Service",
    "Service Description",
    "Start Horimeter",
    "End Horimeter",
    "Hours",
    "Fuel (L)",
    "Notes",
]


def _row(log: WorkLog) -> List[object]:
    return [
        log.date,
        log.operator_name,
        log.tractor_name,
        log.service_name,
        log.service_description or "",
        log.start_horimeter,
        log.end_horimeter,
        round(log.total_hours, 1),
        log.fuel_liters,
        log.notes or "",
    ]


def export_logs_csv(logs: Iterable[WorkLog]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(EXPORT_HEADERS)
    for log in logs:
        row = _row(log)
        row[7] = f"{log.total_hours:.1f}"
        writer.writerow(row)
    return buffer.getvalue()


def export_logs_xlsx(logs: Iterable[WorkLog]) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = "Work logs"
    ws.append(EXPORT_HEADERS)
    for log in logs:
        ws.append(_row(log))
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


__all__ = ["EXPORT_HEADERS", "export_logs_csv", "export_logs_xlsx"]
