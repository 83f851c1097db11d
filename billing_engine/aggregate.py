"""
Aggregation of canonical billing records into period reports.

Records are bucketed by (period, usage class). Monthly reports count users
and meters per bucket directly. Annual reports first count per calendar
month and then average those counts over the months that had records,
so a class billed in three months of a year is not divided by twelve.
"""
import logging
import math
from enum import Enum
from typing import Any, Dict, List, Sequence

import pandas as pd

from .canonical_fields import CanonicalField, ReportField
from .mappings import ServiceSchema, ServiceType, get_schema
from .schemas import to_canonical_frame

logger = logging.getLogger(__name__)

ReportRow = Dict[str, Any]


class ReportMode(str, Enum):
    """Aggregation granularity."""
    MONTHLY = "monthly"
    ANNUAL = "annual"


DATE_PARTS = r"^(?P<day>\d{2})-(?P<month>\d{2})-(?P<year>\d{4})$"
UNDATED_PERIOD = ""

_YEAR = "_year"
_MONTH = "_month"
_METERED = "_metered"
_USERS = "_users"
_METERS = "_meters"


def round_half_up(value: float, digits: int = 0) -> float:
    """
    Round halves toward positive infinity (2.5 -> 3, 0.125 -> 0.13, -2.5 -> -2).

    Same convention as JavaScript Math.round: negative halves such as
    refunds in collected totals round up, -0.25 -> -0.2 at one digit.
    """
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def _bucket_keys(mode: ReportMode) -> List[str]:
    if mode == ReportMode.MONTHLY:
        return [_YEAR, _MONTH, CanonicalField.USAGE_CLASS.value]
    return [_YEAR, CanonicalField.USAGE_CLASS.value]


def _prepare_frame(records: Sequence, schema: ServiceSchema) -> pd.DataFrame:
    """Typed record frame with year/month/metered helper columns ('' when undated)."""
    df = to_canonical_frame(records, schema)
    if df.empty:
        return df

    parts = df[CanonicalField.DATE.value].str.extract(DATE_PARTS)
    undated = parts["year"].isna().to_numpy(dtype=bool)

    if undated.any():
        logger.warning(
            f"[AGGREGATE] {int(undated.sum())} records without a DD-MM-YYYY date "
            f"are reported under an empty period; "
            f"sample: {df.loc[undated, CanonicalField.DATE.value].head().tolist()}"
        )

    df = df.copy()
    df[_YEAR] = parts["year"].fillna("").astype(str).to_numpy()
    df[_MONTH] = parts["month"].fillna("").astype(str).to_numpy()
    df[_METERED] = (df[CanonicalField.METERING_FLAG.value] == 1).astype("int64")
    return df


def _count_users_and_meters(df: pd.DataFrame, keys: List[str]) -> pd.DataFrame:
    return df.groupby(keys, sort=True).agg(
        **{_USERS: (_METERED, "size"), _METERS: (_METERED, "sum")}
    )


def aggregate(records: Sequence, mode=ReportMode.MONTHLY, schema=ServiceType.ACUEDUCTO) -> List[ReportRow]:
    """
    Aggregate canonical records into report rows.

    Args:
        records: Canonical record dicts (or a canonical DataFrame)
        mode: ReportMode or its string value ('monthly' / 'annual')
        schema: ServiceSchema or service type key; selects which measures are
            summed and which are averaged

    Returns:
        One dict per (period, usage class) bucket keyed by ReportField values,
        ordered by the period string (lexicographically, so '01-2025' sorts
        before '12-2024') then usage class. Records without a usable date are
        still counted, under an empty period that sorts first. Sums are
        rounded to 2 decimals only here, never during accumulation.

    Raises:
        ValueError: If mode is not a known ReportMode

    Example:
        >>> aggregate([{"date": "05-01-2024", "usage_class": 1, "metering_flag": 1,
        ...             "consumption": 10}])[0]["periodo"]
        '01-2024'
    """
    mode = ReportMode(mode)
    schema = get_schema(schema)

    df = _prepare_frame(records, schema)
    if df.empty:
        return []

    keys = _bucket_keys(mode)
    grouped = df.groupby(keys, sort=True)
    summary = _count_users_and_meters(df, keys)

    if mode == ReportMode.ANNUAL:
        # Average the per-month counts over months that have records
        monthly = _count_users_and_meters(df, keys + [_MONTH])
        averages = monthly.groupby(level=list(range(len(keys)))).mean()
        summary[_USERS] = averages[_USERS].reindex(summary.index)
        summary[_METERS] = averages[_METERS].reindex(summary.index)

    for canonical, report in schema.summed_fields:
        summary[report.value] = grouped[canonical.value].sum()

    for canonical, report in schema.averaged_fields:
        samples = df[df[canonical.value] > 0]
        if samples.empty:
            summary[report.value] = 0.0
            continue
        means = samples.groupby(keys, sort=True)[canonical.value].mean()
        summary[report.value] = means.reindex(summary.index).fillna(0.0)

    rows = []
    for key, bucket in summary.iterrows():
        if mode == ReportMode.MONTHLY:
            year, month, usage_class = key
            period = f"{month}-{year}" if year else UNDATED_PERIOD
        else:
            year, usage_class = key
            period = year or UNDATED_PERIOD

        values = {
            ReportField.PERIOD: period,
            ReportField.USAGE_CLASS: int(usage_class),
            ReportField.USERS: int(round_half_up(float(bucket[_USERS]))),
            ReportField.METERS: int(round_half_up(float(bucket[_METERS]))),
        }
        for _, report in schema.summed_fields + schema.averaged_fields:
            values[report] = round_half_up(float(bucket[report.value]), 2)

        rows.append({field.value: values[field] for field in schema.report_fields})

    rows.sort(key=lambda r: (r[ReportField.PERIOD.value], r[ReportField.USAGE_CLASS.value]))

    logger.info(f"[AGGREGATE] {schema.name} {mode.value}: {len(df)} records -> {len(rows)} rows")
    return rows
