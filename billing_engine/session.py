"""
Report session: the caller-owned state of one uploaded file.

A session holds the service schema, what was learned about the file and the
normalized records, so reports in either mode can be produced repeatedly
without reading the file again.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from config import config
from .aggregate import ReportMode, ReportRow, aggregate
from .columns import validate_columns
from .io import LoadedSource
from .mappings import ServiceSchema, get_schema
from .normalize import CanonicalRecord, normalize_records

logger = logging.getLogger(__name__)


@dataclass
class ReportSession:
    """
    Normalized dataset of one upload.

    Attributes:
        schema: Service schema the file was validated against
        records: Canonical records, in file row order
        file_type: 'csv' or 'xlsx'
        filename: Original upload name
        available_columns: Header of the file
        resolved_columns: Required source column -> header actually used

    Example:
        >>> session = ReportSession.open(load_source("export.csv"), "acueducto")
        >>> session.report("annual")
    """

    schema: ServiceSchema
    records: List[CanonicalRecord]
    file_type: Optional[str] = None
    filename: Optional[str] = None
    available_columns: List[str] = field(default_factory=list)
    resolved_columns: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def open(cls, source: LoadedSource, service_type, meter_state_default: Optional[int] = None) -> "ReportSession":
        """
        Validate a loaded file against a service and normalize its rows.

        Raises:
            MissingColumnsError: Required columns are missing (or the service
                type is unknown); raised before any row is normalized
        """
        validation = validate_columns(source.available_columns if source.rows else [], service_type)
        validation.raise_for_missing(str(getattr(service_type, "value", service_type)))

        if meter_state_default is None:
            meter_state_default = config.report.unmatched_meter_state

        schema = get_schema(service_type)
        records = normalize_records(
            source.rows,
            schema,
            available_columns=source.available_columns,
            meter_state_default=meter_state_default,
        )
        return cls(
            schema=schema,
            records=records,
            file_type=source.file_type,
            filename=source.filename,
            available_columns=list(source.available_columns),
            resolved_columns=validation.resolved,
        )

    @property
    def row_count(self) -> int:
        return len(self.records)

    def report(self, mode=None) -> List[ReportRow]:
        """Aggregate the session's records; mode defaults to the configured one."""
        mode = ReportMode(mode or config.report.default_mode)
        return aggregate(self.records, mode, self.schema)

    def summary(self) -> Dict[str, Any]:
        """Metadata suitable for an API response."""
        return {
            "service_type": self.schema.key,
            "service_name": self.schema.name,
            "file_type": self.file_type,
            "filename": self.filename,
            "row_count": self.row_count,
            "available_columns": self.available_columns,
            "resolved_columns": self.resolved_columns,
        }

    def to_dict(self) -> Dict[str, Any]:
        """Serializable form, used to cache the session between requests."""
        d = self.summary()
        d["records"] = [dict(r) for r in self.records]
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ReportSession":
        return cls(
            schema=get_schema(d["service_type"]),
            records=list(d["records"]),
            file_type=d.get("file_type"),
            filename=d.get("filename"),
            available_columns=list(d.get("available_columns", [])),
            resolved_columns=dict(d.get("resolved_columns", {})),
        )


def build_report(source: LoadedSource, service_type, mode=None) -> List[ReportRow]:
    """Validate, normalize and aggregate one loaded file."""
    return ReportSession.open(source, service_type).report(mode)
