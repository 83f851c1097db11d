"""
Billing Engine - Core normalization and report aggregation modules.
"""
from .io import (
    DataSourceLoader,
    CsvSourceLoader,
    ExcelSourceLoader,
    LoadedSource,
    SourceReadError,
    EmptySourceError,
    load_source,
    validate_upload,
)
from .canonical_fields import CanonicalField, ReportField
from .mappings import ServiceType, ServiceSchema, get_schema, list_schemas
from .columns import (
    MissingColumnsError,
    ColumnValidation,
    normalize_column_name,
    resolve_column,
    validate_columns,
)
from .coercers import (
    format_date,
    to_usage_class,
    convert_medidor_state,
    convert_aforo,
    parse_number,
)
from .normalize import normalize_row, normalize_records
from .schemas import to_canonical_frame, enforce_dtypes
from .aggregate import ReportMode, aggregate
from .session import ReportSession, build_report

__all__ = [
    "DataSourceLoader",
    "CsvSourceLoader",
    "ExcelSourceLoader",
    "LoadedSource",
    "SourceReadError",
    "EmptySourceError",
    "load_source",
    "validate_upload",
    "CanonicalField",
    "ReportField",
    "ServiceType",
    "ServiceSchema",
    "get_schema",
    "list_schemas",
    "MissingColumnsError",
    "ColumnValidation",
    "normalize_column_name",
    "resolve_column",
    "validate_columns",
    "format_date",
    "to_usage_class",
    "convert_medidor_state",
    "convert_aforo",
    "parse_number",
    "normalize_row",
    "normalize_records",
    "to_canonical_frame",
    "enforce_dtypes",
    "ReportMode",
    "aggregate",
    "ReportSession",
    "build_report",
]
