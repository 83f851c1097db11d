"""
Tests for header resolution and service column validation.
"""
import pytest

from billing_engine.columns import (
    INVALID_SERVICE_MESSAGE,
    NO_DATA_MESSAGE,
    MissingColumnsError,
    normalize_column_name,
    resolve_column,
    resolve_columns,
    validate_columns,
)
from billing_engine.mappings import ServiceType, get_schema, list_schemas


class TestResolveColumn:
    """Exact and accent/case/whitespace tolerant matching"""

    def test_exact_match_short_circuits(self):
        available = ["fecha de expedicion", "FECHA DE EXPEDICIÓN"]
        assert resolve_column("FECHA DE EXPEDICIÓN", available) == "FECHA DE EXPEDICIÓN"

    def test_fuzzy_match(self):
        available = ["Clase", "Fecha  de Expedición"]
        assert resolve_column("FECHA DE EXPEDICIÓN", available) == "Fecha  de Expedición"

    def test_accent_only_difference(self):
        assert resolve_column("CÓDIGO CLASE DE USO", ["CODIGO CLASE DE USO"]) == "CODIGO CLASE DE USO"

    def test_first_equivalent_header_wins(self):
        available = ["fecha", " FECHA ", "Fécha"]
        assert resolve_column("FECHA", available) == "fecha"

    def test_not_found(self):
        assert resolve_column("VALOR TOTAL FACTURADO", ["VALOR FACTURADO"]) is None

    def test_normalized_form(self):
        assert normalize_column_name("  Período\tDe  Consumo ") == "periodo de consumo"

    def test_resolve_columns_skips_unmatched(self):
        resolved = resolve_columns(["A", "B"], ["a", None, "c"])
        assert resolved == {"A": "a"}


class TestValidateColumns:

    @pytest.mark.parametrize("schema", list_schemas(), ids=lambda s: s.key)
    def test_exact_required_columns_are_valid(self, schema):
        result = validate_columns(list(schema.required_source_columns), schema.service_type)
        assert result.valid is True
        assert result.missing == []

    def test_variant_spelling_is_valid(self):
        header = [
            "fecha de expedicion de la factura",
            "Codigo Clase de Uso",
            "Estado  de Medidor",
            "consumo del periodo en metros cubicos",
            "Valor Total Facturado",
            "PAGOS DEL USUARIO RECIBIDOS DURANTE EL MES DE REPOPRTE ",
        ]
        result = validate_columns(header, "acueducto")
        assert result.valid
        assert result.resolved["ESTADO DE MEDIDOR"] == "Estado  de Medidor"

    def test_missing_columns_are_listed_in_schema_order(self):
        result = validate_columns(["FECHA DE EXPEDICIÓN DE LA FACTURA"], ServiceType.ALCANTARILLADO)
        assert not result.valid
        assert result.missing == list(get_schema("alcantarillado").required_source_columns[1:])

    def test_optional_columns_do_not_fail_validation(self):
        header = ["Fecha de expedición de la factura", "Código de clase o uso"]
        assert validate_columns(header, "aseo").valid

    def test_unknown_service_returns_sentinel(self):
        result = validate_columns(["X"], "energia")
        assert result.valid is False
        assert result.missing == [INVALID_SERVICE_MESSAGE]

    def test_empty_header_is_invalid(self):
        result = validate_columns([], "acueducto")
        assert result.valid is False
        assert result.missing == [NO_DATA_MESSAGE]

    def test_raise_for_missing(self):
        result = validate_columns(["X"], "aseo")
        with pytest.raises(MissingColumnsError) as excinfo:
            result.raise_for_missing("aseo")
        assert excinfo.value.missing == list(get_schema("aseo").required_source_columns)
        assert "Fecha de expedición de la factura" in str(excinfo.value)
