"""CSV upload parsing.

Expected header: ``date,description,amount,type,category`` (description and
category optional). Dates are ISO ``YYYY-MM-DD``; positive expense amounts are
stored negative.
"""
import csv
import io
import math
from datetime import date
from typing import List

from errors import DataValidationError
from models import TransactionType
from schemas import TransactionRecord

REQUIRED_COLUMNS = ("date", "amount", "type")
DEFAULT_CATEGORY = "uncategorized"
# keeps per-week sums far from float overflow
MAX_ABS_AMOUNT = 1e12


def parse_csv(content: bytes) -> List[TransactionRecord]:
    """Parse an uploaded CSV; any malformed row rejects the whole file."""
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise DataValidationError("File is not valid UTF-8 text") from e

    reader = csv.DictReader(io.StringIO(text), skipinitialspace=True)
    header = [h.strip().lower() for h in (reader.fieldnames or [])]
    missing = [c for c in REQUIRED_COLUMNS if c not in header]
    if missing:
        raise DataValidationError(f"Missing required column(s): {', '.join(missing)}")
    reader.fieldnames = header
    has_category = "category" in header

    records = []
    # line 1 is the header
    for line_no, row in enumerate(reader, start=2):
        if not any((v or "").strip() for k, v in row.items() if k is not None):
            continue
        records.append(_parse_row(row, line_no, has_category))
    return records


def _parse_row(row: dict, line_no: int, has_category: bool) -> TransactionRecord:
    raw_date = (row.get("date") or "").strip()
    try:
        day = date.fromisoformat(raw_date)
    except ValueError:
        raise DataValidationError(f"Row {line_no}: invalid date '{raw_date}' (expected YYYY-MM-DD)") from None

    raw_type = (row.get("type") or "").strip().upper()
    if raw_type not in (TransactionType.INCOME.value, TransactionType.EXPENSE.value):
        raise DataValidationError(f"Row {line_no}: type must be INCOME or EXPENSE, got '{raw_type}'")

    raw_amount = (row.get("amount") or "").strip()
    try:
        amount = float(raw_amount)
    except ValueError:
        raise DataValidationError(f"Row {line_no}: invalid amount '{raw_amount}'") from None
    if not math.isfinite(amount):
        raise DataValidationError(f"Row {line_no}: amount must be a finite number")
    if abs(amount) > MAX_ABS_AMOUNT:
        raise DataValidationError(f"Row {line_no}: amount exceeds {MAX_ABS_AMOUNT:,.0f} in magnitude")

    if raw_type == TransactionType.EXPENSE.value and amount > 0:
        amount = -amount

    category = (row.get("category") or "").strip() if has_category else DEFAULT_CATEGORY
    return TransactionRecord(date=day, amount=amount, type=raw_type, category=category)
