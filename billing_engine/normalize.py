"""
Normalization logic for billing exports.
Converts raw rows into canonical records.
"""
import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .coercers import UNMATCHED_METER_STATE, coerce_value, is_missing
from .columns import resolve_columns
from .mappings import ServiceSchema, get_schema

logger = logging.getLogger(__name__)

RawRow = Mapping[str, Any]
CanonicalRecord = Dict[str, Any]


def normalize_row(
    raw_row: RawRow,
    schema,
    resolved: Optional[Mapping[str, str]] = None,
    meter_state_default: int = UNMATCHED_METER_STATE,
) -> CanonicalRecord:
    """
    Normalize one raw row to a canonical record.

    Every canonical field of the schema is seeded with its default, then each
    mapped source column that resolves in the row and holds a value is passed
    through the coercer for its role. Unresolved columns keep the default.

    Args:
        raw_row: Header -> cell value, as produced by a source loader
        schema: ServiceSchema or service type key
        resolved: Source column -> actual header; resolved from the row keys
            when omitted (pass it when normalizing many rows of one file)
        meter_state_default: Value for unrecognized non-empty meter states

    Example:
        >>> normalize_row({"Fecha de expedición de la factura": "2024-01-05",
        ...                "Código de clase o uso": "2"}, "aseo")["date"]
        '05-01-2024'
    """
    schema: ServiceSchema = get_schema(schema)
    if resolved is None:
        resolved = resolve_columns(
            (t.source_column for t in schema.column_transforms), list(raw_row.keys())
        )

    record = schema.default_record()
    for transform in schema.column_transforms:
        header = resolved.get(transform.source_column)
        if header is None or header not in raw_row:
            continue
        value = raw_row[header]
        if is_missing(value):
            continue
        record[transform.canonical_field.value] = coerce_value(
            transform.role, value, meter_state_default
        )
    return record


def normalize_records(
    raw_rows: Sequence[RawRow],
    schema,
    available_columns: Optional[Sequence[str]] = None,
    meter_state_default: int = UNMATCHED_METER_STATE,
) -> List[CanonicalRecord]:
    """
    Normalize a batch of rows from one file, preserving row order.

    Columns are resolved once against ``available_columns`` (or the keys of
    the first row) instead of per row.
    """
    schema = get_schema(schema)
    if not raw_rows:
        return []

    if available_columns is None:
        available_columns = list(raw_rows[0].keys())
    resolved = resolve_columns(
        (t.source_column for t in schema.column_transforms), available_columns
    )

    unresolved = [t.source_column for t in schema.column_transforms if t.source_column not in resolved]
    if unresolved:
        logger.info(f"[MAPPING] {schema.name}: columns not in file, using defaults: {unresolved}")

    records = [
        normalize_row(row, schema, resolved, meter_state_default)
        for row in raw_rows
    ]
    logger.info(f"[MAPPING] {schema.name}: normalized {len(records)} rows")
    return records
