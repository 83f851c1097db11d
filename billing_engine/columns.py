"""
Column resolution against uploaded file headers.

Exports are typed by hand often enough that a required header may arrive
with different accents, casing or spacing ("Fecha  de Expedicion" vs
"FECHA DE EXPEDICIÓN"). Matching is exact first, then on a normalized form.
"""
import logging
import re
import unicodedata
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from .mappings import ServiceSchema, get_schema

logger = logging.getLogger(__name__)

INVALID_SERVICE_MESSAGE = "Tipo de servicio no válido"
NO_DATA_MESSAGE = "No hay datos para validar"

_WHITESPACE = re.compile(r"\s+")


class MissingColumnsError(ValueError):
    """Required columns could not be resolved in the file header."""

    def __init__(self, missing: List[str], service_type: Optional[str] = None):
        self.missing = list(missing)
        self.service_type = service_type
        super().__init__(f"Columnas faltantes: {', '.join(self.missing)}")


@dataclass
class ColumnValidation:
    """Result of validating a header against a service schema."""
    valid: bool
    missing: List[str] = field(default_factory=list)
    resolved: Dict[str, str] = field(default_factory=dict)

    def raise_for_missing(self, service_type: Optional[str] = None) -> None:
        if not self.valid:
            raise MissingColumnsError(self.missing, service_type)


def normalize_column_name(name) -> str:
    """
    Comparison key for a header: accents stripped, case-folded, whitespace
    runs collapsed to one space and trimmed.

    Example:
        >>> normalize_column_name("  Fecha  de Expedición ")
        'fecha de expedicion'
    """
    decomposed = unicodedata.normalize("NFD", str(name))
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _WHITESPACE.sub(" ", stripped.casefold()).strip()


def resolve_column(required_name: str, available_names: Sequence[str]) -> Optional[str]:
    """
    Find the header in ``available_names`` that matches ``required_name``.

    An exact match wins; otherwise the first header whose normalized form
    equals the normalized required name. Returns None when nothing matches.
    """
    if required_name in available_names:
        return required_name

    target = normalize_column_name(required_name)
    for name in available_names:
        if normalize_column_name(name) == target:
            return name
    return None


def resolve_columns(source_columns: Iterable[str], available_names: Sequence[str]) -> Dict[str, str]:
    """Map each resolvable source column to the header actually present."""
    available = [name for name in available_names if name is not None]
    resolved = {}
    for source_column in source_columns:
        match = resolve_column(source_column, available)
        if match is not None:
            resolved[source_column] = match
    return resolved


def validate_columns(available_names: Sequence[str], service_type) -> ColumnValidation:
    """
    Check that every required column of a service resolves in a header.

    An empty header or an unknown service type is reported as invalid with a
    user-facing message in ``missing`` instead of column names.

    Example:
        >>> validate_columns(["Fecha de expedición de la factura"], "aseo").missing
        ['Código de clase o uso']
    """
    if not available_names:
        return ColumnValidation(valid=False, missing=[NO_DATA_MESSAGE])

    try:
        schema: ServiceSchema = get_schema(service_type)
    except KeyError:
        logger.warning(f"[COLUMNS] Unknown service type: {service_type!r}")
        return ColumnValidation(valid=False, missing=[INVALID_SERVICE_MESSAGE])

    resolved = resolve_columns(
        (t.source_column for t in schema.column_transforms), available_names
    )
    missing = [col for col in schema.required_source_columns if col not in resolved]

    if missing:
        logger.info(f"[COLUMNS] {schema.name}: missing {missing}; available {list(available_names)}")

    return ColumnValidation(valid=not missing, missing=missing, resolved=resolved)
