"""Simple live smoke test against VIES and HMRC."""

from __future__ import annotations

import json
import sys
from pathlib import Path

from dotenv import load_dotenv

from vatcheck import ValidatorConfig, VatValidator, is_transient


def main() -> int:
    dotenv_path = Path(".env")
    if dotenv_path.exists():
        load_dotenv(dotenv_path=dotenv_path)

    try:
        validator = VatValidator.from_config(ValidatorConfig.from_env())
    except ValueError as exc:
        print(f"Konfiguration unvollständig: {exc}", file=sys.stderr)
        return 2

    numbers = sys.argv[1:] or ["BE0403170701", "GB553557881"]
    exit_code = 0
    for number in numbers:
        result = validator.check(number)
        print(
            json.dumps(
                {
                    "input": number,
                    "result": result,
                    "code": validator.get_last_error_code(),
                    "error": validator.get_last_error(),
                    "information": validator.information(),
                },
                indent=2,
                ensure_ascii=False,
            )
        )
        if not result:
            exit_code = 2 if is_transient(validator.get_last_error_code()) else 1

    return exit_code


if __name__ == "__main__":
    sys.exit(main())
