"""
Per-field value coercion for raw billing cells.

Every coercer is total: blank, malformed or unexpected input degrades to a
safe default (0, empty string or the untouched value) and never raises.
Billing exports routinely carry incomplete rows, and one bad cell must not
fail the whole file.
"""
import math
import re
from datetime import date, datetime
from enum import Enum
from numbers import Real
from typing import Any, Dict

import pandas as pd


class FieldRole(str, Enum):
    """Semantic role of a source column, selects the coercer to apply."""
    DATE = "date"
    USAGE_CLASS = "usage_class"
    METER_STATUS = "meter_status"
    AFORO = "aforo"
    NUMBER = "number"
    PASSTHROUGH = "passthrough"


DAY_FIRST_PATTERN = re.compile(r"^(\d{1,2})([-/.])(\d{1,2})\2(\d{4}|\d{2})$")
YEAR_FIRST_PATTERN = re.compile(r"^(\d{4})[-/](\d{1,2})[-/](\d{1,2})(?:[ T][\d:.]*)?$")

# Spreadsheet serial day numbers (1900 date system) accepted as dates
EXCEL_EPOCH = "1899-12-30"
EXCEL_MAX_SERIAL = 2958465

METER_STATES: Dict[str, int] = {
    "1": 1,
    "0": 0,
    "SI": 1,
    "SÍ": 1,
    "NO": 0,
    "INSTALADO": 1,
    "FUNCIONANDO": 1,
    "ACTIVO": 1,
    "CON MEDIDOR": 1,
    "NO INSTALADO": 0,
    "RETIRADO": 0,
    "SIN MEDIDOR": 0,
    "INACTIVO": 0,
}
"""Exact meter-status vocabulary (upper-cased, trimmed)"""

UNMATCHED_METER_STATE = 1
"""Value for non-empty meter states outside the vocabulary: assume installed"""

AFORO_YES = frozenset({"SI", "SÍ", "S", "1"})
AFORO_NO = frozenset({"NO", "N", "0"})

CURRENCY_NOISE = re.compile(r"[^\d,.\-]")


def is_missing(value: Any) -> bool:
    """True for None and NaN-like cells (NaN, NaT, pd.NA)."""
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def _clean_text(value: Any) -> str:
    """Trimmed text form of a cell; integral floats lose their '.0'."""
    if is_missing(value):
        return ""
    if _is_number(value) and float(value).is_integer():
        return str(int(value))
    return str(value).strip()


def format_date(value: Any) -> Any:
    """
    Normalize a date cell to zero-padded DD-MM-YYYY.

    Accepts day-month-year strings ('-', '/' or '.' separated, two- or
    four-digit year; two-digit years pivot like strftime's %y), year-month-day
    strings with an optional time part, datetime values, spreadsheet serial
    numbers and anything pandas can parse (day first when ambiguous). Blank
    input yields ''. Strings that match no known form are returned unchanged.

    Example:
        >>> format_date("2024-03-05")
        '05-03-2024'
        >>> format_date("5/3/2024")
        '05-03-2024'
    """
    if is_missing(value):
        return ""

    if isinstance(value, (datetime, date)):
        return value.strftime("%d-%m-%Y")

    if _is_number(value):
        if 0 < value <= EXCEL_MAX_SERIAL:
            serial = pd.to_datetime(value, unit="D", origin=EXCEL_EPOCH)
            return serial.strftime("%d-%m-%Y")
        return str(value)

    text = str(value).strip()
    if not text:
        return ""

    match = DAY_FIRST_PATTERN.match(text)
    if match:
        day, _, month, year = match.groups()
        if len(year) == 2:
            year = str(datetime.strptime(year, "%y").year)
        return f"{int(day):02d}-{int(month):02d}-{year}"

    match = YEAR_FIRST_PATTERN.match(text)
    if match:
        year, month, day = match.groups()
        return f"{int(day):02d}-{int(month):02d}-{year}"

    # Generic fallback (e.g. "March 5, 2024", "5 mar 2024")
    parsed = pd.to_datetime(text, errors="coerce", dayfirst=True)
    if pd.isna(parsed):
        return text
    return parsed.strftime("%d-%m-%Y")


def to_usage_class(value: Any) -> int:
    """Numeric usage class code; non-numeric or blank input yields 0."""
    if is_missing(value):
        return 0
    if _is_number(value):
        return int(value) if math.isfinite(value) else 0
    try:
        number = float(str(value).strip())
    except ValueError:
        return 0
    return int(number) if math.isfinite(number) else 0


def convert_medidor_state(value: Any, unmatched_default: int = UNMATCHED_METER_STATE) -> int:
    """
    Map a textual or numeric meter status to 1 (installed) or 0.

    Exact vocabulary first, then substring rules: INSTALADO without NO
    means installed, NO INSTALADO or RETIRADO means not installed. Any
    other non-empty value yields ``unmatched_default``; blank yields 0.
    """
    state = _clean_text(value).upper()
    if not state:
        return 0

    if state in METER_STATES:
        return METER_STATES[state]

    if "INSTALADO" in state and "NO" not in state:
        return 1
    if "NO INSTALADO" in state or "RETIRADO" in state:
        return 0

    return unmatched_default


def convert_aforo(value: Any) -> int:
    """Map the 'billed with aforo' flag: SI/SÍ/S/1 -> 1, everything else -> 0."""
    flag = _clean_text(value).upper()
    if flag in AFORO_YES:
        return 1
    return 0


def parse_number(value: Any) -> float:
    """
    Parse a locale-formatted number or currency amount.

    Separator rules:
    - both ',' and '.': the one appearing last is the decimal separator
      ('1,234.56' and '1.234,56' are both 1234.56)
    - only ',': decimal when at most two digits follow the last comma
      ('12,5' -> 12.5), thousands otherwise ('1,234' -> 1234)
    - several '.' and no ',': thousands separators ('1.234.567')

    Returns 0.0 for blank or unparseable input.

    Example:
        >>> parse_number("$ 45.00")
        45.0
    """
    if is_missing(value):
        return 0.0
    if _is_number(value):
        number = float(value)
        return number if math.isfinite(number) else 0.0

    text = CURRENCY_NOISE.sub("", str(value))
    if not text:
        return 0.0

    has_comma = "," in text
    has_dot = "." in text

    if has_comma and has_dot:
        if text.rfind(",") > text.rfind("."):
            text = text.replace(".", "").replace(",", ".")
        else:
            text = text.replace(",", "")
    elif has_comma:
        integer_part, _, fraction = text.rpartition(",")
        if len(fraction) <= 2:
            text = integer_part.replace(",", "") + "." + fraction
        else:
            text = text.replace(",", "")
    elif text.count(".") > 1:
        text = text.replace(".", "")

    try:
        number = float(text)
    except ValueError:
        return 0.0
    return number if math.isfinite(number) else 0.0


def coerce_value(role: FieldRole, value: Any, meter_state_default: int = UNMATCHED_METER_STATE) -> Any:
    """Apply the coercer registered for a source column role."""
    if role == FieldRole.DATE:
        return format_date(value)
    if role == FieldRole.USAGE_CLASS:
        return to_usage_class(value)
    if role == FieldRole.METER_STATUS:
        return convert_medidor_state(value, meter_state_default)
    if role == FieldRole.AFORO:
        return convert_aforo(value)
    if role == FieldRole.NUMBER:
        return parse_number(value)
    return value
