"""
Tests for ReportSession: validate, normalize once, report many times.
"""
import pytest

from billing_engine.columns import INVALID_SERVICE_MESSAGE, MissingColumnsError
from billing_engine.io import LoadedSource, load_source
from billing_engine.session import ReportSession, build_report


@pytest.fixture
def acueducto_source(acueducto_csv_bytes):
    return load_source(acueducto_csv_bytes, filename="export.csv")


class TestReportSession:

    def test_open_normalizes_rows(self, acueducto_source):
        session = ReportSession.open(acueducto_source, "acueducto")
        assert session.row_count == 3
        assert session.schema.key == "acueducto"
        assert session.records[2]["billed_total"] == 12000.5
        assert session.records[1]["metering_flag"] == 0

    def test_monthly_report(self, acueducto_source):
        rows = ReportSession.open(acueducto_source, "acueducto").report("monthly")
        assert rows == [
            {
                "periodo": "01-2024",
                "claseUso": 1,
                "numeroUsuarios": 2,
                "numeroMedidores": 1,
                "totalConsumo": 15,
                "totalFacturado": 75000,
                "totalRecaudo": 70000,
            },
            {
                "periodo": "02-2024",
                "claseUso": 2,
                "numeroUsuarios": 1,
                "numeroMedidores": 1,
                "totalConsumo": 3.5,
                "totalFacturado": 12000.5,
                "totalRecaudo": 12000.5,
            },
        ]

    def test_annual_report_reuses_records(self, acueducto_source):
        session = ReportSession.open(acueducto_source, "acueducto")
        monthly = session.report("monthly")
        annual = session.report("annual")
        assert [(r["periodo"], r["claseUso"]) for r in annual] == [("2024", 1), ("2024", 2)]
        assert session.report("monthly") == monthly

    def test_default_mode_is_monthly(self, acueducto_source):
        session = ReportSession.open(acueducto_source, "acueducto")
        assert session.report() == session.report("monthly")

    def test_missing_columns_raise_before_normalizing(self):
        source = LoadedSource(
            rows=[{"FECHA DE EXPEDICIÓN DE LA FACTURA": "2024-01-01"}],
            available_columns=["FECHA DE EXPEDICIÓN DE LA FACTURA"],
            file_type="csv",
        )
        with pytest.raises(MissingColumnsError) as excinfo:
            ReportSession.open(source, "acueducto")
        assert "ESTADO DE MEDIDOR" in excinfo.value.missing
        assert excinfo.value.service_type == "acueducto"

    def test_unknown_service(self, acueducto_source):
        with pytest.raises(MissingColumnsError) as excinfo:
            ReportSession.open(acueducto_source, "energia")
        assert excinfo.value.missing == [INVALID_SERVICE_MESSAGE]

    def test_meter_state_default_override(self):
        source = LoadedSource(
            rows=[{
                "FECHA DE EXPEDICIÓN DE LA FACTURA": "2024-01-01",
                "CÓDIGO CLASE DE USO": "1",
                "ESTADO DE MEDIDOR": "EN REVISION",
                "CONSUMO DEL PERÍODO EN METROS CÚBICOS": "1",
                "VALOR TOTAL FACTURADO": "1",
                "PAGOS DEL USUARIO RECIBIDOS DURANTE EL MES DE REPOPRTE": "1",
            }],
            available_columns=[
                "FECHA DE EXPEDICIÓN DE LA FACTURA",
                "CÓDIGO CLASE DE USO",
                "ESTADO DE MEDIDOR",
                "CONSUMO DEL PERÍODO EN METROS CÚBICOS",
                "VALOR TOTAL FACTURADO",
                "PAGOS DEL USUARIO RECIBIDOS DURANTE EL MES DE REPOPRTE",
            ],
            file_type="csv",
        )
        assert ReportSession.open(source, "acueducto").records[0]["metering_flag"] == 1
        assert ReportSession.open(source, "acueducto", meter_state_default=0).records[0]["metering_flag"] == 0

    def test_dict_round_trip(self, acueducto_source):
        session = ReportSession.open(acueducto_source, "acueducto")
        restored = ReportSession.from_dict(session.to_dict())
        assert restored.schema is session.schema
        assert restored.records == session.records
        assert restored.report("annual") == session.report("annual")

    def test_summary(self, acueducto_source):
        summary = ReportSession.open(acueducto_source, "acueducto").summary()
        assert summary["row_count"] == 3
        assert summary["filename"] == "export.csv"
        assert summary["resolved_columns"]["ESTADO DE MEDIDOR"] == "ESTADO DE MEDIDOR"


def test_build_report(acueducto_source):
    rows = build_report(acueducto_source, "acueducto", "annual")
    assert rows[0]["numeroUsuarios"] == 2
    assert rows[0]["totalConsumo"] == 15
