"""
Data source abstraction and CSV/Excel loading.

Loaders turn an uploaded file into raw rows (header -> cell) plus the list of
available headers. A read either completes or raises; no partial results.
"""
import io
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import pandas as pd

from config import ReaderConfig, UploadConfig, config

logger = logging.getLogger(__name__)

REPLACEMENT_CHAR = "\ufffd"

XLSX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


class SourceReadError(ValueError):
    """The uploaded file could not be read."""


class EmptySourceError(SourceReadError):
    """The uploaded file holds no data rows."""


@dataclass
class LoadedSource:
    """Raw rows of one uploaded file."""
    rows: List[Dict[str, Any]]
    available_columns: List[str]
    file_type: str
    filename: Optional[str] = None
    encoding: Optional[str] = None

    def __len__(self) -> int:
        return len(self.rows)


def detect_file_type(filename: Optional[str], mimetype: Optional[str] = None) -> str:
    """'xlsx' for spreadsheet uploads, 'csv' for everything else."""
    extension = Path(filename or "").suffix.lower().lstrip(".")
    if extension == "xlsx" or mimetype == XLSX_MIME_TYPE:
        return "xlsx"
    return "csv"


def validate_upload(
    filename: Optional[str],
    size: int,
    mimetype: Optional[str] = None,
    upload_config: Optional[UploadConfig] = None,
) -> None:
    """
    Reject uploads with a disallowed extension, MIME type or size.

    An empty or generic MIME type (as sent by clients that cannot identify
    the file) is accepted and the extension decides.

    Raises:
        SourceReadError: With a user-facing message
    """
    upload_config = upload_config or config.upload

    if not filename:
        raise SourceReadError("No se seleccionó ningún archivo")

    extension = Path(filename).suffix.lower().lstrip(".")
    if extension not in upload_config.allowed_extensions:
        raise SourceReadError(
            f"Formato no soportado '.{extension}'. "
            f"Formatos permitidos: {', '.join(upload_config.allowed_extensions)}"
        )

    if size > upload_config.max_file_size:
        limit_mb = upload_config.max_file_size / (1024 * 1024)
        raise SourceReadError(f"El archivo excede el tamaño máximo permitido de {limit_mb:g}MB")

    content_type = (mimetype or "").split(";")[0].strip().lower()
    if content_type and content_type not in upload_config.valid_mime_types + upload_config.generic_mime_types:
        raise SourceReadError(f"Tipo de archivo no válido ({content_type}). Seleccione un archivo CSV o XLSX")


def _drop_blank_rows(df: pd.DataFrame) -> pd.DataFrame:
    """Blank cells become '' and rows with no value at all are dropped."""
    df = df.astype(object).where(pd.notna(df), "")
    blank = df.apply(lambda col: col.map(lambda v: isinstance(v, str) and not v.strip())).all(axis=1)
    return df.loc[~blank].reset_index(drop=True)


class DataSourceLoader(ABC):
    """Abstract base for data source loaders."""

    file_type: str = ""
    last_encoding: Optional[str] = None

    def __init__(self, reader_config: Optional[ReaderConfig] = None):
        self.reader_config = reader_config or config.reader

    @abstractmethod
    def read_frame(self, data: bytes) -> pd.DataFrame:
        """Parse file bytes into a DataFrame with the header row as columns."""
        pass

    def load(self, data: bytes, filename: Optional[str] = None) -> LoadedSource:
        """Load raw rows and available headers from file bytes."""
        if not data:
            raise EmptySourceError("El archivo está vacío")

        df = self.read_frame(data)
        df = df.loc[:, [not self._is_blank_header(c) for c in df.columns]]
        if len(df.columns) == 0:
            raise EmptySourceError("El archivo no tiene encabezados")
        df = _drop_blank_rows(df)

        if df.empty:
            raise EmptySourceError("No hay datos válidos en el archivo")

        available = [str(c) for c in df.columns]
        df.columns = available
        logger.info(f"[IO] Loaded {len(df)} rows from {filename or self.file_type}, columns: {available[:10]}")

        return LoadedSource(
            rows=df.to_dict("records"),
            available_columns=available,
            file_type=self.file_type,
            filename=filename,
            encoding=self.last_encoding,
        )

    @staticmethod
    def _is_blank_header(name) -> bool:
        if name is None:
            return True
        text = str(name).strip()
        return not text or text.startswith("Unnamed:")


class CsvSourceLoader(DataSourceLoader):
    """Load delimited text exports."""

    file_type = "csv"

    def decode(self, data: bytes) -> str:
        """
        Decode as UTF-8; when that produces replacement characters the export
        came from a Latin-1 family codepage and is decoded again with it.
        """
        text = data.decode(self.reader_config.encoding, errors="replace")
        self.last_encoding = self.reader_config.encoding
        if REPLACEMENT_CHAR in text:
            logger.info(f"[IO] UTF-8 decode produced replacement characters; using {self.reader_config.fallback_encoding}")
            text = data.decode(self.reader_config.fallback_encoding, errors="replace")
            self.last_encoding = self.reader_config.fallback_encoding
        return text.lstrip("\ufeff")

    def detect_delimiter(self, text: str) -> str:
        """Candidate delimiter occurring most often in the header line."""
        header = text.splitlines()[0] if text else ""
        counts = {d: header.count(d) for d in self.reader_config.csv_delimiters}
        best = max(counts, key=counts.get)
        return best if counts[best] else self.reader_config.csv_delimiters[0]

    def read_frame(self, data: bytes) -> pd.DataFrame:
        text = self.decode(data)
        if not text.strip():
            raise EmptySourceError("El archivo está vacío")

        try:
            return pd.read_csv(
                io.StringIO(text),
                sep=self.detect_delimiter(text),
                dtype=str,
                keep_default_na=False,
                skip_blank_lines=True,
            )
        except pd.errors.EmptyDataError as e:
            raise EmptySourceError("El archivo está vacío") from e
        except pd.errors.ParserError as e:
            raise SourceReadError(f"Error al procesar el archivo CSV: {e}") from e


class ExcelSourceLoader(DataSourceLoader):
    """Load the first sheet of an Excel workbook."""

    file_type = "xlsx"

    def read_frame(self, data: bytes) -> pd.DataFrame:
        try:
            return pd.read_excel(io.BytesIO(data), sheet_name=0, dtype=object)
        except Exception as e:
            raise SourceReadError(f"Error al procesar el archivo XLSX: {e}") from e


LOADERS = {
    CsvSourceLoader.file_type: CsvSourceLoader,
    ExcelSourceLoader.file_type: ExcelSourceLoader,
}


def load_source(
    source: Union[bytes, str, Path],
    filename: Optional[str] = None,
    mimetype: Optional[str] = None,
    reader_config: Optional[ReaderConfig] = None,
) -> LoadedSource:
    """
    Read an uploaded file (bytes or a path) with the loader for its type.

    Raises:
        SourceReadError: File unreadable or not parseable
        EmptySourceError: File empty or without data rows
    """
    if isinstance(source, (str, Path)):
        path = Path(source)
        filename = filename or path.name
        try:
            source = path.read_bytes()
        except OSError as e:
            raise SourceReadError(f"Error al leer el archivo: {e}") from e

    file_type = detect_file_type(filename, mimetype)
    loader = LOADERS[file_type](reader_config)
    return loader.load(source, filename)
