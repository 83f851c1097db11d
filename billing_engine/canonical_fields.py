"""
Canonical field definitions for the billing report engine.

This module is the single source of truth for the field names used by the
normalizer, the aggregator and the HTTP layer. Raw export column names should
NEVER be referenced outside of mappings.py.

Report field values are the downstream contract with the report writer and
must not be renamed.
"""
from enum import Enum
from typing import Tuple, FrozenSet


class CanonicalField(str, Enum):
    """
    Canonical record fields.

    Inheriting from str makes these usable as dictionary keys and
    compatible with pandas DataFrame column operations.
    """

    DATE = "date"
    """Invoice issue date, zero-padded DD-MM-YYYY"""

    USAGE_CLASS = "usage_class"
    """Integer code of the customer/property category"""

    METERING_FLAG = "metering_flag"
    """1 when the user has a working meter (or is billed with aforo), else 0"""

    CONSUMPTION = "consumption"
    """Consumption (water) or discharge (sewage) in cubic meters"""

    BILLED_TOTAL = "billed_total"
    """Total amount billed"""

    COLLECTED_TOTAL = "collected_total"
    """Payments received from the user"""

    TARIFF = "tariff"
    """Tariff applied to the user (waste collection)"""


class ReportField(str, Enum):
    """Field names of an aggregate report row."""

    PERIOD = "periodo"
    USAGE_CLASS = "claseUso"
    USERS = "numeroUsuarios"
    METERS = "numeroMedidores"
    TOTAL_CONSUMPTION = "totalConsumo"
    TOTAL_BILLED = "totalFacturado"
    TOTAL_COLLECTED = "totalRecaudo"
    TARIFF = "tarifa"


# ==================== Field Groups ====================

NUMERIC_FIELDS: FrozenSet[CanonicalField] = frozenset({
    CanonicalField.CONSUMPTION,
    CanonicalField.BILLED_TOTAL,
    CanonicalField.COLLECTED_TOTAL,
    CanonicalField.TARIFF,
})
"""Float-valued fields; blank or unparseable values become 0.0"""

INTEGER_FIELDS: FrozenSet[CanonicalField] = frozenset({
    CanonicalField.USAGE_CLASS,
    CanonicalField.METERING_FLAG,
})
"""Integer-valued fields"""

BILLING_RECORD_FIELDS: Tuple[CanonicalField, ...] = (
    CanonicalField.DATE,
    CanonicalField.USAGE_CLASS,
    CanonicalField.METERING_FLAG,
    CanonicalField.CONSUMPTION,
    CanonicalField.BILLED_TOTAL,
    CanonicalField.COLLECTED_TOTAL,
)
"""Fields carried by every water-supply and sewage record"""

WASTE_RECORD_FIELDS: Tuple[CanonicalField, ...] = BILLING_RECORD_FIELDS + (
    CanonicalField.TARIFF,
)
"""Fields carried by every waste-collection record"""

BILLING_REPORT_FIELDS: Tuple[ReportField, ...] = (
    ReportField.PERIOD,
    ReportField.USAGE_CLASS,
    ReportField.USERS,
    ReportField.METERS,
    ReportField.TOTAL_CONSUMPTION,
    ReportField.TOTAL_BILLED,
    ReportField.TOTAL_COLLECTED,
)

WASTE_REPORT_FIELDS: Tuple[ReportField, ...] = (
    ReportField.PERIOD,
    ReportField.USAGE_CLASS,
    ReportField.USERS,
    ReportField.METERS,
    ReportField.TARIFF,
)


def get_field_names(fields) -> Tuple[str, ...]:
    """
    Convert a group of field enums to a tuple of string names.

    Example:
        >>> get_field_names(BILLING_RECORD_FIELDS)[:2]
        ('date', 'usage_class')
    """
    return tuple(f.value for f in fields)
