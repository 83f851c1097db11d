"""
Source-to-canonical field mappings for the billing report engine.

This module is the ONLY place where raw export column names should appear.
All other modules use CanonicalField enums exclusively.

Each supported service type gets one ServiceSchema:
1. Required source columns (validated before normalization)
2. Column mapping (raw -> canonical) with the coercion role of each column
3. Default values for canonical fields the export does not provide
4. The report fields it emits and how its measures aggregate
"""
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Tuple, Union

from .canonical_fields import (
    CanonicalField,
    ReportField,
    BILLING_RECORD_FIELDS,
    WASTE_RECORD_FIELDS,
    BILLING_REPORT_FIELDS,
    WASTE_REPORT_FIELDS,
)
from .coercers import FieldRole


class ServiceType(str, Enum):
    """Supported public utility services."""
    ACUEDUCTO = "acueducto"
    ALCANTARILLADO = "alcantarillado"
    ASEO = "aseo"


# ==================== Raw Source Column Names ====================
# These are the ONLY references to raw export column names in the codebase

class AcueductoSourceColumns:
    """Raw column names from the water-supply billing export."""
    INVOICE_DATE = "FECHA DE EXPEDICIÓN DE LA FACTURA"
    USAGE_CLASS = "CÓDIGO CLASE DE USO"
    METER_STATUS = "ESTADO DE MEDIDOR"
    CONSUMPTION = "CONSUMO DEL PERÍODO EN METROS CÚBICOS"
    TOTAL_BILLED = "VALOR TOTAL FACTURADO"
    # Header misspelling is part of the regulatory export format
    PAYMENTS = "PAGOS DEL USUARIO RECIBIDOS DURANTE EL MES DE REPOPRTE"


class AlcantarilladoSourceColumns:
    """Raw column names from the sewage billing export."""
    INVOICE_DATE = "FECHA DE EXPEDICIÓN DE LA FACTURA"
    USAGE_CLASS = "CÓDIGO CLASE DE USO"
    AFORO = "USUARIO FACTURADO CON AFORO"
    DISCHARGE = "VERTIMIENTO DEL PERIOD EN METROS CUBICOS"
    TOTAL_BILLED = "VALOR TOTAL FACTURADO"
    PAYMENTS = "PAGOS DEL CLIENTE DURANTE EL PERÍODO FACTURADO"


class AseoSourceColumns:
    """Raw column names from the waste-collection billing export."""
    INVOICE_DATE = "Fecha de expedición de la factura"
    USAGE_CLASS = "Código de clase o uso"
    # Optional: not every waste export carries the applied tariff
    TARIFF = "Tarifa aplicada"


# ==================== Schema Configuration ====================

@dataclass(frozen=True)
class ColumnTransform:
    """Maps one source column onto a canonical field through a coercion role."""
    source_column: str
    canonical_field: CanonicalField
    role: FieldRole = FieldRole.PASSTHROUGH


@dataclass(frozen=True)
class ServiceSchema:
    """
    Complete mapping configuration for one service export.

    Attributes:
        service_type: Registry key
        name: Human-readable service name
        required_source_columns: Columns that must resolve in the file header
        column_transforms: Source column -> canonical field mappings
        defaults: Value of every canonical field when its column is absent/blank
        report_fields: Report row fields, in output order
        summed_fields: Measures accumulated as sums per bucket
        averaged_fields: Measures reported as the mean of non-zero samples

    Example:
        >>> schema = get_schema("acueducto")
        >>> schema.column_mapping["ESTADO DE MEDIDOR"]
        <CanonicalField.METERING_FLAG: 'metering_flag'>
    """

    service_type: ServiceType
    name: str
    required_source_columns: Tuple[str, ...]
    column_transforms: Tuple[ColumnTransform, ...]
    defaults: Mapping[CanonicalField, Any]
    report_fields: Tuple[ReportField, ...]
    summed_fields: Tuple[Tuple[CanonicalField, ReportField], ...] = ()
    averaged_fields: Tuple[Tuple[CanonicalField, ReportField], ...] = ()
    record_fields: Tuple[CanonicalField, ...] = field(default=BILLING_RECORD_FIELDS)

    def __post_init__(self):
        sources = [t.source_column for t in self.column_transforms]
        if len(sources) != len(set(sources)):
            raise ValueError(f"Duplicate source columns in schema '{self.service_type.value}'")
        missing = [f.value for f in self.record_fields if f not in self.defaults]
        if missing:
            raise ValueError(
                f"Schema '{self.service_type.value}' has no default for fields: {missing}"
            )

    @property
    def key(self) -> str:
        return self.service_type.value

    @property
    def column_mapping(self) -> Dict[str, CanonicalField]:
        """Source column name -> canonical field."""
        return {t.source_column: t.canonical_field for t in self.column_transforms}

    def default_record(self) -> Dict[str, Any]:
        """A record with every canonical field set to its default."""
        return {f.value: self.defaults[f] for f in self.record_fields}


_BILLING_DEFAULTS = MappingProxyType({
    CanonicalField.DATE: "",
    CanonicalField.USAGE_CLASS: 0,
    CanonicalField.METERING_FLAG: 0,
    CanonicalField.CONSUMPTION: 0.0,
    CanonicalField.BILLED_TOTAL: 0.0,
    CanonicalField.COLLECTED_TOTAL: 0.0,
})

_BILLING_SUMS = (
    (CanonicalField.CONSUMPTION, ReportField.TOTAL_CONSUMPTION),
    (CanonicalField.BILLED_TOTAL, ReportField.TOTAL_BILLED),
    (CanonicalField.COLLECTED_TOTAL, ReportField.TOTAL_COLLECTED),
)


ACUEDUCTO_SCHEMA = ServiceSchema(
    service_type=ServiceType.ACUEDUCTO,
    name="Acueducto",
    required_source_columns=(
        AcueductoSourceColumns.INVOICE_DATE,
        AcueductoSourceColumns.USAGE_CLASS,
        AcueductoSourceColumns.METER_STATUS,
        AcueductoSourceColumns.CONSUMPTION,
        AcueductoSourceColumns.TOTAL_BILLED,
        AcueductoSourceColumns.PAYMENTS,
    ),
    column_transforms=(
        ColumnTransform(AcueductoSourceColumns.INVOICE_DATE, CanonicalField.DATE, FieldRole.DATE),
        ColumnTransform(AcueductoSourceColumns.USAGE_CLASS, CanonicalField.USAGE_CLASS, FieldRole.USAGE_CLASS),
        ColumnTransform(AcueductoSourceColumns.METER_STATUS, CanonicalField.METERING_FLAG, FieldRole.METER_STATUS),
        ColumnTransform(AcueductoSourceColumns.CONSUMPTION, CanonicalField.CONSUMPTION, FieldRole.NUMBER),
        ColumnTransform(AcueductoSourceColumns.TOTAL_BILLED, CanonicalField.BILLED_TOTAL, FieldRole.NUMBER),
        ColumnTransform(AcueductoSourceColumns.PAYMENTS, CanonicalField.COLLECTED_TOTAL, FieldRole.NUMBER),
    ),
    defaults=_BILLING_DEFAULTS,
    report_fields=BILLING_REPORT_FIELDS,
    summed_fields=_BILLING_SUMS,
)


ALCANTARILLADO_SCHEMA = ServiceSchema(
    service_type=ServiceType.ALCANTARILLADO,
    name="Alcantarillado",
    required_source_columns=(
        AlcantarilladoSourceColumns.INVOICE_DATE,
        AlcantarilladoSourceColumns.USAGE_CLASS,
        AlcantarilladoSourceColumns.AFORO,
        AlcantarilladoSourceColumns.DISCHARGE,
        AlcantarilladoSourceColumns.TOTAL_BILLED,
        AlcantarilladoSourceColumns.PAYMENTS,
    ),
    column_transforms=(
        ColumnTransform(AlcantarilladoSourceColumns.INVOICE_DATE, CanonicalField.DATE, FieldRole.DATE),
        ColumnTransform(AlcantarilladoSourceColumns.USAGE_CLASS, CanonicalField.USAGE_CLASS, FieldRole.USAGE_CLASS),
        ColumnTransform(AlcantarilladoSourceColumns.AFORO, CanonicalField.METERING_FLAG, FieldRole.AFORO),
        ColumnTransform(AlcantarilladoSourceColumns.DISCHARGE, CanonicalField.CONSUMPTION, FieldRole.NUMBER),
        ColumnTransform(AlcantarilladoSourceColumns.TOTAL_BILLED, CanonicalField.BILLED_TOTAL, FieldRole.NUMBER),
        ColumnTransform(AlcantarilladoSourceColumns.PAYMENTS, CanonicalField.COLLECTED_TOTAL, FieldRole.NUMBER),
    ),
    defaults=_BILLING_DEFAULTS,
    report_fields=BILLING_REPORT_FIELDS,
    summed_fields=_BILLING_SUMS,
)


# Waste collection has no meters and no consumption: those fields stay at
# their defaults and the report carries the average tariff instead
ASEO_SCHEMA = ServiceSchema(
    service_type=ServiceType.ASEO,
    name="Aseo",
    required_source_columns=(
        AseoSourceColumns.INVOICE_DATE,
        AseoSourceColumns.USAGE_CLASS,
    ),
    column_transforms=(
        ColumnTransform(AseoSourceColumns.INVOICE_DATE, CanonicalField.DATE, FieldRole.DATE),
        ColumnTransform(AseoSourceColumns.USAGE_CLASS, CanonicalField.USAGE_CLASS, FieldRole.USAGE_CLASS),
        ColumnTransform(AseoSourceColumns.TARIFF, CanonicalField.TARIFF, FieldRole.NUMBER),
    ),
    defaults=MappingProxyType({**_BILLING_DEFAULTS, CanonicalField.TARIFF: 0.0}),
    report_fields=WASTE_REPORT_FIELDS,
    averaged_fields=((CanonicalField.TARIFF, ReportField.TARIFF),),
    record_fields=WASTE_RECORD_FIELDS,
)


SERVICE_SCHEMAS: Mapping[ServiceType, ServiceSchema] = MappingProxyType({
    ServiceType.ACUEDUCTO: ACUEDUCTO_SCHEMA,
    ServiceType.ALCANTARILLADO: ALCANTARILLADO_SCHEMA,
    ServiceType.ASEO: ASEO_SCHEMA,
})


def get_schema(service_type: Union[ServiceType, ServiceSchema, str]) -> ServiceSchema:
    """
    Look up a service schema by enum or string key.

    Raises:
        KeyError: If the service type is not registered
    """
    if isinstance(service_type, ServiceSchema):
        return service_type
    if not isinstance(service_type, ServiceType):
        try:
            service_type = ServiceType(str(service_type).strip().lower())
        except ValueError:
            raise KeyError(f"Unknown service type: {service_type!r}") from None
    return SERVICE_SCHEMAS[service_type]


def list_schemas() -> List[ServiceSchema]:
    """All registered schemas, in declaration order."""
    return list(SERVICE_SCHEMAS.values())
