"""
Canonical record frames for the billing report engine.

Builds pandas DataFrames from canonical records and enforces the canonical
data types, so the aggregator can rely on numeric columns holding numbers.
"""
from typing import Dict, Optional, Sequence

import pandas as pd

from .canonical_fields import CanonicalField, NUMERIC_FIELDS, INTEGER_FIELDS
from .coercers import parse_number, to_usage_class, format_date
from .mappings import ServiceSchema


def get_default_dtype_map() -> Dict[CanonicalField, str]:
    """
    Get default canonical field dtype mappings.

    Returns:
        Dictionary mapping CanonicalField to pandas dtype strings
    """
    dtype_map = {CanonicalField.DATE: "string"}

    for field in NUMERIC_FIELDS:
        dtype_map[field] = "float64"

    for field in INTEGER_FIELDS:
        dtype_map[field] = "int64"

    return dtype_map


def enforce_dtypes(
    df: pd.DataFrame,
    dtype_map: Optional[Dict[CanonicalField, str]] = None,
) -> pd.DataFrame:
    """
    Enforce canonical data types on DataFrame columns.

    Cells are run through the same total coercers the normalizer uses, so
    records assembled by hand (or missing values) never break the cast.

    Args:
        df: DataFrame to process
        dtype_map: Optional mapping of fields to dtypes. If None, uses default map.

    Returns:
        DataFrame with enforced dtypes
    """
    df = df.copy()

    if dtype_map is None:
        dtype_map = get_default_dtype_map()

    for field, dtype in dtype_map.items():
        col_name = field.value

        if col_name not in df.columns:
            continue

        if dtype == "float64":
            df[col_name] = df[col_name].map(parse_number).astype("float64")
        elif dtype == "int64":
            df[col_name] = df[col_name].map(to_usage_class).astype("int64")
        elif dtype == "string":
            df[col_name] = df[col_name].map(format_date).astype(str).astype("string")
        else:
            df[col_name] = df[col_name].astype(dtype)

    return df


def to_canonical_frame(records: Sequence, schema: ServiceSchema) -> pd.DataFrame:
    """
    Build a typed DataFrame from canonical records.

    Accepts a list of record dicts or an existing DataFrame. Fields the
    records lack are filled with the schema defaults; missing cells become
    the field default as well.

    Example:
        >>> frame = to_canonical_frame([{"date": "05-01-2024"}], get_schema("acueducto"))
        >>> frame["consumption"].tolist()
        [0.0]
    """
    if isinstance(records, pd.DataFrame):
        df = records.copy()
    else:
        df = pd.DataFrame.from_records(list(records))

    columns = [f.value for f in schema.record_fields]
    for field in schema.record_fields:
        default = schema.defaults[field]
        if field.value not in df.columns:
            df[field.value] = default
        else:
            df[field.value] = df[field.value].astype(object).where(df[field.value].notna(), default)

    return enforce_dtypes(df[columns])
