"""Выгрузка обращений в CSV/XLSX и передача файла пользователю."""

from __future__ import annotations

import csv
import datetime
import logging
import os
import tempfile
from decimal import Decimal
from pathlib import Path
from typing import TYPE_CHECKING, Any, Iterable

import pandas as pd

from config import get_settings
from utils.money import format_currency
from utils.time_utils import today_iso

if TYPE_CHECKING:
    from infrastructure.share_gateway import ShareGateway
    from services.enquiries.dto import ExportRow

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = [
    "Company Name",
    "Contact Name",
    "Contact Email",
    "Contact Phone",
    "Status",
    "Product Interest",
    "Estimated Value",
    "Enquiry Date",
    "Next Follow-up",
    "Notes",
    "Owner",
]
SUPPORTED_FORMATS = ("csv", "xlsx")
XLSX_SHEET_NAME = "Enquiries"
EMPTY_CELL = "-"


def _cell(value: Any) -> str:
    if value is None:
        return EMPTY_CELL
    if isinstance(value, Decimal):
        return format_currency(value)
    if isinstance(value, (datetime.date, datetime.datetime)):
        return value.isoformat()
    text = str(value).strip()
    return text or EMPTY_CELL


def format_for_export(rows: Iterable[ExportRow]) -> list[list[str]]:
    """Строки таблицы в порядке :data:`EXPORT_COLUMNS`; пустые значения → ``-``."""
    table = []
    for row in rows:
        table.append(
            [
                _cell(row.company_name),
                _cell(row.contact_name),
                _cell(row.contact_email),
                _cell(row.contact_phone),
                _cell(row.status),
                _cell(row.product_interest),
                _cell(row.estimated_value),
                _cell(row.enquiry_date),
                _cell(row.next_follow_up),
                _cell(row.notes),
                _cell(row.owner),
            ]
        )
    return table


def default_filename(fmt: str, today: datetime.date | None = None) -> str:
    return f"enquiries_{today_iso(today)}.{fmt}"


def write_csv(path: str | os.PathLike[str], rows: list[list[str]]) -> None:
    with open(path, "w", newline="", encoding="utf-8-sig") as f:
        writer = csv.writer(f)
        writer.writerow(EXPORT_COLUMNS)
        writer.writerows(rows)


def write_xlsx(path: str | os.PathLike[str], rows: list[list[str]]) -> None:
    frame = pd.DataFrame(rows, columns=EXPORT_COLUMNS)
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        frame.to_excel(writer, index=False, sheet_name=XLSX_SHEET_NAME)


_WRITERS = {"csv": write_csv, "xlsx": write_xlsx}


def _share(path: Path, gateway: "ShareGateway | None") -> None:
    if gateway is None:
        return
    try:
        if not gateway.is_available():
            logger.info("Передача файла недоступна на этой платформе")
            return
        gateway.share(path)
    except Exception:
        logger.warning("⚠️ Не удалось передать файл %s", path, exc_info=True)


def export_enquiries(
    rows: Iterable[ExportRow],
    fmt: str = "csv",
    filename: str | None = None,
    *,
    export_dir: str | os.PathLike[str] | None = None,
    share_gateway: "ShareGateway | None" = None,
    share: bool = True,
) -> Path:
    """Записать файл выгрузки и предложить его пользователю.

    Файл сначала пишется во временный в той же папке и затем атомарно
    заменяет целевой, поэтому при ошибке частичного файла не остаётся.
    Возвращает путь к готовому файлу.
    """
    fmt = (fmt or "").lower()
    if fmt not in SUPPORTED_FORMATS:
        raise ValueError(f"Unsupported export format: {fmt}")

    target_dir = Path(export_dir or get_settings().export_dir)
    target_dir.mkdir(parents=True, exist_ok=True)
    target = target_dir / (filename or default_filename(fmt))
    table = format_for_export(rows)

    fd, tmp_name = tempfile.mkstemp(
        prefix=".export-", suffix=f".{fmt}", dir=target_dir
    )
    os.close(fd)
    try:
        _WRITERS[fmt](tmp_name, table)
        os.replace(tmp_name, target)
    except Exception:
        logger.error("❌ Ошибка выгрузки обращений в %s", target, exc_info=True)
        if os.path.exists(tmp_name):
            os.remove(tmp_name)
        raise
    logger.info("📄 Выгружено %d обращений в %s", len(table), target)

    if share:
        _share(target, share_gateway)
    return target


__all__ = [
    "EXPORT_COLUMNS",
    "SUPPORTED_FORMATS",
    "default_filename",
    "export_enquiries",
    "format_for_export",
    "write_csv",
    "write_xlsx",
]
