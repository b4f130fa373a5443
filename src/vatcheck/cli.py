"""Command line entry point for checking VAT numbers."""

from __future__ import annotations

import argparse
import json
import logging
import time
from collections.abc import Callable, Mapping, MutableMapping, Sequence
from datetime import date
from pathlib import Path

import yaml
from dotenv import load_dotenv
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_result,
    stop_after_attempt,
    wait_exponential,
)

from . import excel_io
from .config import ValidatorConfig, load_config
from .errors import VatCheckError, is_transient
from .excel_io import CheckRecord
from .normalizer import normalize
from .utils.logging_setup import get_logger, setup_logger
from .validator import VatValidator

logger = get_logger("cli")

DEFAULT_MAPPING: dict[str, str] = {
    "identifier": "C",
    "valid": "D",
    "error_code": "E",
    "error": "F",
    "name": "G",
    "address": "H",
    "checked": "I",
}

_RETRY_WAIT = wait_exponential(multiplier=0.5, min=0.5, max=10)

EXIT_OK = 0
EXIT_INVALID = 1
EXIT_USAGE = 2
EXIT_TRANSIENT = 4


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="vatcheck",
        description="EU/UK VAT number validation against VIES and HMRC",
    )
    parser.add_argument("numbers", nargs="*", help="VAT numbers, e.g. BE0123456789")
    parser.add_argument("--country", help="Country code for all given numbers (e.g. DE, EL, XI)")
    parser.add_argument(
        "--local", action="store_true", help="Only check the syntax, no remote lookup"
    )
    parser.add_argument("--config", help="YAML file with baseurl/hmrc_baseurl/proxy/timeout")
    parser.add_argument(
        "--retries",
        type=int,
        default=3,
        help="Retries for transient errors (codes > 16). Default: 3.",
    )
    parser.add_argument("--report", help="Write a CSV report to this path")
    parser.add_argument("--excel", help="Pfad zur Excel-Arbeitsmappe")
    parser.add_argument("--sheet", help="Tabellenblatt-Name")
    parser.add_argument(
        "--start", type=int, default=2, help="Startzeile (1-basiert). Standard: 2."
    )
    parser.add_argument("--end", type=int, help="Endzeile (1-basiert, inklusiv)")
    parser.add_argument(
        "--vat-col", default="A", help="Spalte mit USt-IdNr. (Standard: A)"
    )
    parser.add_argument(
        "--country-col", default=None, help="Spalte mit Ländercode (optional)"
    )
    parser.add_argument(
        "--mapping-yaml",
        help="YAML mit Mapping zwischen Ergebnisfeldern und Spalten",
    )
    parser.add_argument(
        "--verbose", action="store_true", help="Ausführliche Log-Ausgabe aktivieren"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Nur Prüfung, keine Schreiboperationen in die Arbeitsmappe",
    )
    return parser.parse_args(argv)


def _configure_logging(verbose: bool) -> None:
    setup_logger(logging.DEBUG if verbose else None)


def _validate_column(column: str | None) -> str | None:
    if column is None:
        return None
    column = column.strip().upper()
    if not column:
        return None
    if not column.isalpha():
        raise ValueError(f"Ungültiger Spaltenwert: {column}")
    return column


def _load_mapping(path: str | None) -> dict[str, str]:
    mapping: MutableMapping[str, str] = dict(DEFAULT_MAPPING)
    if not path:
        return dict(mapping)

    mapping_path = Path(path)
    if not mapping_path.exists():
        raise FileNotFoundError(f"Mapping-Datei nicht gefunden: {mapping_path}")

    data = yaml.safe_load(mapping_path.read_text(encoding="utf-8"))
    if data is None:
        return dict(mapping)
    if not isinstance(data, Mapping):
        raise ValueError("Mapping YAML muss ein Dictionary enthalten")

    for key, value in data.items():
        str_key = str(key)
        if str_key not in excel_io.REPORT_COLUMNS:
            raise ValueError(f"Unbekanntes Ergebnisfeld im Mapping: {str_key}")
        if value is None:
            mapping.pop(str_key, None)
            continue
        str_value = _validate_column(str(value))
        if str_value is None:
            mapping.pop(str_key, None)
            continue
        mapping[str_key] = str_value

    return dict(mapping)


def _log_retry(retry_state: RetryCallState) -> None:
    retry_obj = retry_state.retry_object
    max_attempts = "?"
    if isinstance(retry_obj, Retrying):
        stop = getattr(retry_obj, "stop", None)
        max_attempts = getattr(stop, "max_attempt_number", "?")
    validator = retry_state.args[0] if retry_state.args else None
    code = validator.get_last_error_code() if isinstance(validator, VatValidator) else "?"
    logger.warning(
        "Erneute Prüfung (Versuch %s/%s) nach Fehlercode %s",
        retry_state.attempt_number + 1,
        max_attempts,
        code,
    )


def _last_result(retry_state: RetryCallState) -> str | bool:
    if retry_state.outcome is None:
        return False
    return retry_state.outcome.result()


def check_with_retry(
    validator: VatValidator,
    vat_number: str,
    country_code: str | None = None,
    *,
    retries: int = 3,
) -> str | bool:
    """Call ``validator.check`` again while the last error is transient."""

    if retries <= 0:
        return validator.check(vat_number, country_code)

    def _is_transient_failure(result: str | bool) -> bool:
        return result is False and is_transient(validator.get_last_error_code())

    def _check(instance: VatValidator, number: str, country: str | None) -> str | bool:
        return instance.check(number, country)

    retrying = Retrying(
        stop=stop_after_attempt(retries + 1),
        wait=_RETRY_WAIT,
        retry=retry_if_result(_is_transient_failure),
        before_sleep=_log_retry,
        retry_error_callback=_last_result,
    )
    return retrying(_check, validator, vat_number, country_code)


def _run_one(
    validator: VatValidator,
    vat_number: str,
    country_code: str | None,
    *,
    local: bool,
    retries: int,
) -> CheckRecord:
    record = CheckRecord(input=vat_number, checked=date.today().strftime("%d.%m.%Y"))

    if local:
        ok = validator.local_check(vat_number, country_code)
        if ok:
            record["identifier"] = normalize(vat_number, country_code).identifier
    else:
        try:
            result = check_with_retry(validator, vat_number, country_code, retries=retries)
        except VatCheckError as exc:
            logger.error("Prüfung von %s abgebrochen: %s", vat_number, exc.message)
            result = False
        ok = bool(result)
        if isinstance(result, str):
            record["identifier"] = result

    record["valid"] = "yes" if ok else "no"
    record["error_code"] = validator.get_last_error_code()
    record["error"] = validator.get_last_error()
    name = validator.information("name")
    if name:
        record["name"] = name
    address = validator.information("address")
    if address:
        record["address"] = address
    return record


def _summarise(records: Sequence[CheckRecord]) -> int:
    transient = sum(
        1 for r in records if r.get("valid") != "yes" and is_transient(r.get("error_code", 0))
    )
    invalid = sum(1 for r in records if r.get("valid") != "yes") - transient
    if transient:
        return EXIT_TRANSIENT
    if invalid:
        return EXIT_INVALID
    return EXIT_OK


def _build_validator(config_path: str | None) -> VatValidator:
    config = load_config(config_path) if config_path else ValidatorConfig.from_env()
    logger.debug("VIES: %s, HMRC: %s", config.baseurl, config.hmrc_baseurl)
    return VatValidator.from_config(config)


def _process_excel(
    args: argparse.Namespace,
    run: Callable[[str, str | None], CheckRecord],
) -> list[CheckRecord] | None:
    try:
        vat_column = _validate_column(args.vat_col)
        country_column = _validate_column(args.country_col)
        mapping = _load_mapping(args.mapping_yaml)
    except (ValueError, FileNotFoundError) as exc:
        logger.error("%s", exc)
        return None
    if not vat_column:
        logger.error("Spalte für USt-IdNr. darf nicht leer sein")
        return None

    try:
        rows = list(
            excel_io.iter_rows(
                excel_path=args.excel,
                sheet=args.sheet,
                start=args.start,
                end=args.end,
                vat_col=vat_column,
                country_col=country_column,
            )
        )
    except (ValueError, FileNotFoundError) as exc:
        logger.error("%s", exc)
        return None

    records: list[CheckRecord] = []
    for row in rows:
        record = run(row["vat"], args.country or row.get("country"))
        record["row"] = row["index"]
        records.append(record)
        if not args.dry_run:
            excel_io.write_result(
                excel_path=args.excel,
                sheet=args.sheet,
                row_index=row["index"],
                record=record,
                mapping=mapping,
            )

    if not args.dry_run:
        excel_io.save(args.excel)
    return records


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    _configure_logging(args.verbose)

    dotenv_path = Path(".env")
    if dotenv_path.exists():
        load_dotenv(dotenv_path=dotenv_path)

    if not args.numbers and not args.excel:
        logger.error("Bitte USt-IdNr. oder --excel angeben")
        return EXIT_USAGE
    if args.retries < 0:
        logger.error("--retries darf nicht negativ sein")
        return EXIT_USAGE

    try:
        validator = _build_validator(args.config)
    except (ValueError, FileNotFoundError) as exc:
        logger.error("Konfiguration unvollständig: %s", exc)
        return EXIT_USAGE

    def run(vat_number: str, country_code: str | None) -> CheckRecord:
        return _run_one(
            validator,
            vat_number,
            country_code,
            local=args.local,
            retries=args.retries,
        )

    start_time = time.perf_counter()
    records: list[CheckRecord] = []

    if args.excel:
        excel_records = _process_excel(args, run)
        if excel_records is None:
            return EXIT_USAGE
        records.extend(excel_records)

    for vat_number in args.numbers:
        record = run(vat_number, args.country)
        records.append(record)
        print(json.dumps(record, ensure_ascii=False, sort_keys=True))

    if args.report:
        excel_io.write_report(records, args.report)

    exit_code = _summarise(records)
    duration = time.perf_counter() - start_time
    logger.info(
        "Prüfung abgeschlossen: processed=%s valid=%s failed=%s duration=%.2fs",
        len(records),
        sum(1 for r in records if r.get("valid") == "yes"),
        sum(1 for r in records if r.get("valid") != "yes"),
        duration,
    )
    return exit_code


if __name__ == "__main__":
    raise SystemExit(main())
