"""
Centralized configuration for the Utility Billing Report application.
Upload limits, reader settings and report defaults are defined here.
"""
from dataclasses import dataclass, field
from typing import Tuple
import os


@dataclass
class UploadConfig:
    """Limits for uploaded billing exports."""
    max_file_size: int = field(default_factory=lambda: int(os.getenv('MAX_UPLOAD_BYTES', 5 * 1024 * 1024)))
    allowed_extensions: Tuple[str, ...] = ("csv", "xlsx")
    valid_mime_types: Tuple[str, ...] = (
        "text/csv",
        "application/vnd.ms-excel",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )
    # Sent by clients that cannot identify the file; the extension decides
    generic_mime_types: Tuple[str, ...] = ("application/octet-stream",)


@dataclass
class ReaderConfig:
    """Settings for decoding and parsing delimited text exports."""
    encoding: str = "utf-8"
    # Exports from legacy billing systems are written in a Windows Latin-1 codepage
    fallback_encoding: str = field(default_factory=lambda: os.getenv('FALLBACK_ENCODING', 'cp1252'))
    csv_delimiters: Tuple[str, ...] = (",", ";", "\t", "|")


@dataclass
class ReportConfig:
    """Report defaults and business-rule policies."""
    default_mode: str = "monthly"
    default_service_type: str = field(default_factory=lambda: os.getenv('DEFAULT_SERVICE_TYPE', 'acueducto'))
    # Meter status text outside the known vocabulary counts as installed
    unmatched_meter_state: int = field(default_factory=lambda: int(os.getenv('UNMATCHED_METER_STATE', '1')))
    session_timeout: int = field(default_factory=lambda: int(os.getenv('SESSION_CACHE_TIMEOUT', '1800')))


@dataclass
class AppConfig:
    """Main configuration container."""
    upload: UploadConfig = field(default_factory=UploadConfig)
    reader: ReaderConfig = field(default_factory=ReaderConfig)
    report: ReportConfig = field(default_factory=ReportConfig)


# Global configuration instance
config = AppConfig()
