"""Hilfsfunktionen für das Lesen und Schreiben von Excel-Arbeitsmappen."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import TypedDict, cast

import pandas as pd
from openpyxl import load_workbook
from openpyxl.workbook import Workbook
from openpyxl.worksheet.worksheet import Worksheet

from .utils.logging_setup import get_logger

LOGGER = get_logger("excel_io")


class RowData(TypedDict, total=False):
    """Representation einer gelesenen Tabellenzeile."""

    index: int
    vat: str
    country: str | None


class CheckRecord(TypedDict, total=False):
    """Ergebnis einer Prüfung, wie es in Tabelle und Bericht landet."""

    row: int
    input: str
    identifier: str
    valid: str
    error_code: int
    error: str
    name: str
    address: str
    checked: str


REPORT_COLUMNS = [
    "row",
    "input",
    "identifier",
    "valid",
    "error_code",
    "error",
    "name",
    "address",
    "checked",
]

_WORKBOOK_CACHE: dict[str, Workbook] = {}


def _get_or_load_workbook(excel_path: str) -> Workbook:
    """Gibt eine zwischengespeicherte Arbeitsmappe zurück."""

    workbook = _WORKBOOK_CACHE.get(excel_path)
    if workbook is None:
        LOGGER.debug("Lade Arbeitsmappe: %s", excel_path)
        workbook = load_workbook(excel_path)
        _WORKBOOK_CACHE[excel_path] = workbook
    return workbook


def _normalise_column(column: str | None) -> str | None:
    if column is None:
        return None
    column = column.strip().upper()
    return column or None


def _cell_to_string(value: object) -> str | None:
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        # Zahlen-Zellen ohne Ländercode, z. B. 123456789.0
        value_str = str(int(value))
    else:
        value_str = str(value).strip()
    return value_str or None


def _read_cell(worksheet: Worksheet, column: str | None, row_index: int) -> str | None:
    column = _normalise_column(column)
    if not column:
        return None
    cell = worksheet[f"{column}{row_index}"]
    return _cell_to_string(cell.value)


def _find_last_row_with_value(worksheet: Worksheet, column: str, start_row: int) -> int:
    max_row = worksheet.max_row
    for row_idx in range(max_row, start_row - 1, -1):
        if _read_cell(worksheet, column, row_idx) is not None:
            return row_idx
    return start_row - 1


def _get_worksheet(workbook: Workbook, sheet: str | None) -> Worksheet:
    if sheet:
        try:
            return workbook[sheet]
        except KeyError as exc:
            raise ValueError(f"Arbeitsblatt '{sheet}' wurde nicht gefunden") from exc
    return cast(Worksheet, workbook.active)


def iter_rows(
    excel_path: str,
    sheet: str | None,
    start: int,
    end: int | None,
    vat_col: str,
    country_col: str | None = None,
) -> Iterator[RowData]:
    """Liest USt-IdNr.-Zeilen aus der Arbeitsmappe und liefert bereinigte Werte."""

    workbook = _get_or_load_workbook(excel_path)
    worksheet = _get_worksheet(workbook, sheet)
    normalised_vat_col = _normalise_column(vat_col)
    if not normalised_vat_col:
        raise ValueError("VAT column must be provided")

    stop = (
        end if end is not None else _find_last_row_with_value(worksheet, normalised_vat_col, start)
    )

    LOGGER.info("Lese Zeilen %s-%s aus Blatt '%s' (%s)", start, stop, sheet, excel_path)

    def _generator() -> Iterator[RowData]:
        yielded = 0
        if stop < start:
            LOGGER.info("Keine Datenzeilen in Blatt '%s' (%s) gefunden", sheet, excel_path)
            return

        for row_idx in range(start, stop + 1):
            vat_value = _read_cell(worksheet, normalised_vat_col, row_idx)
            if vat_value is None:
                continue
            yielded += 1
            yield RowData(
                index=row_idx,
                vat=vat_value,
                country=_read_cell(worksheet, country_col, row_idx),
            )

        LOGGER.info(
            "Verarbeitete Zeilen in Blatt '%s' (%s): %s",
            sheet,
            excel_path,
            yielded,
        )

    return _generator()


def write_result(
    excel_path: str,
    sheet: str | None,
    row_index: int,
    record: CheckRecord,
    mapping: dict[str, str],
) -> None:
    """Schreibt Daten aus *record* in die gemappten Spalten."""

    workbook = _get_or_load_workbook(excel_path)
    worksheet = _get_worksheet(workbook, sheet)

    LOGGER.debug(
        "Schreibe Ergebnis für Zeile %s in Blatt '%s' (%s)",
        row_index,
        sheet,
        excel_path,
    )

    record_dict = cast(dict[str, object | None], record)

    for key, column in mapping.items():
        column_letter = _normalise_column(column)
        if not column_letter or key not in record_dict:
            continue
        value = record_dict.get(key)
        if value is None:
            cell_value: object = ""
        elif isinstance(value, str | int):
            cell_value = value
        else:
            cell_value = str(value)
        worksheet[f"{column_letter}{row_index}"] = cell_value


def write_report(records: Iterable[CheckRecord], path: str | Path) -> int:
    """Schreibt alle Prüfergebnisse als CSV-Bericht und liefert die Zeilenzahl."""

    frame = pd.DataFrame(list(records), columns=REPORT_COLUMNS)
    frame.to_csv(path, index=False, encoding="utf-8")
    LOGGER.info("Bericht mit %s Einträgen geschrieben: %s", len(frame), path)
    return len(frame)


def save(excel_path: str) -> None:
    """Persistiert Änderungen auf die Festplatte."""

    workbook = _WORKBOOK_CACHE.get(excel_path)
    if workbook is None:
        LOGGER.debug("Keine Arbeitsmappe im Cache für Pfad: %s", excel_path)
        return
    LOGGER.info("Speichere Arbeitsmappe: %s", excel_path)
    workbook.save(excel_path)


def reset() -> None:
    """Leert den Arbeitsmappen-Cache (hauptsächlich für Tests)."""

    LOGGER.debug("Leere Arbeitsmappen-Cache")
    _WORKBOOK_CACHE.clear()


__all__ = [
    "CheckRecord",
    "REPORT_COLUMNS",
    "RowData",
    "iter_rows",
    "save",
    "reset",
    "write_report",
    "write_result",
]
