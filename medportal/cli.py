"""
Command-line tools for checking Egyptian national IDs.

    medportal-cli decode 30103150101234 29912310123456
    medportal-cli batch patients.csv --column national_id --out report.csv
"""

import argparse
import sys
from datetime import date
from typing import List, Optional

import pandas as pd

from medportal.config import DEFAULT_ID_COLUMN
from medportal.national_id import calculate_age, decode

REPORT_COLUMNS = ["valid", "birth_date", "age", "sex", "governorate_code", "governorate"]


def describe(national_id: str, today: Optional[date] = None) -> str:
    result = decode(national_id)
    if not result.valid:
        return f"{national_id}: invalid"
    governorate = result.governorate or "Unknown"
    age = calculate_age(result.birth_date, today)
    return (
        f"{national_id}: born {result.birth_date.isoformat()} (age {age}), "
        f"{result.sex}, governorate {result.governorate_code} ({governorate})"
    )


def build_report(df: pd.DataFrame, column: str = DEFAULT_ID_COLUMN,
                 today: Optional[date] = None) -> pd.DataFrame:
    """Return *df* with one decoded column per field of the national ID."""
    if column not in df.columns:
        raise ValueError(f"Column '{column}' not found; available: {', '.join(map(str, df.columns))}")

    rows = []
    for raw in df[column]:
        result = decode("" if pd.isna(raw) else str(raw).strip())
        rows.append({
            "valid": result.valid,
            "birth_date": result.birth_date.isoformat() if result.valid else None,
            "age": calculate_age(result.birth_date, today) if result.valid else None,
            "sex": result.sex,
            "governorate_code": result.governorate_code,
            "governorate": result.governorate,
        })

    decoded = pd.DataFrame(rows, columns=REPORT_COLUMNS, index=df.index)
    return pd.concat([df, decoded], axis=1)


def run_batch(path: str, column: str, out: Optional[str]) -> int:
    # Read as text so IDs keep every digit.
    try:
        df = pd.read_csv(path, dtype=str)
    except (OSError, pd.errors.ParserError) as e:
        print(f"[ERROR] Could not read {path}: {e}", file=sys.stderr)
        return 1

    try:
        report = build_report(df, column)
    except ValueError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 1

    valid = int(report["valid"].sum())
    print(f"[batch] {len(report)} rows, {valid} valid, {len(report) - valid} invalid")

    if out:
        report.to_csv(out, index=False)
        print(f"[batch] Report written to {out}")
    else:
        print(report.to_string(index=False))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="medportal-cli", description=__doc__.strip().splitlines()[0])
    sub = parser.add_subparsers(dest="command", required=True)

    p_decode = sub.add_parser("decode", help="decode one or more national IDs")
    p_decode.add_argument("ids", nargs="+")

    p_batch = sub.add_parser("batch", help="decode a CSV column of national IDs")
    p_batch.add_argument("csv")
    p_batch.add_argument("--column", default=DEFAULT_ID_COLUMN)
    p_batch.add_argument("--out")

    args = parser.parse_args(argv)

    if args.command == "decode":
        for national_id in args.ids:
            print(describe(national_id))
        return 0 if all(decode(i).valid for i in args.ids) else 1

    return run_batch(args.csv, args.column, args.out)


if __name__ == "__main__":
    sys.exit(main())
