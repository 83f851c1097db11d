"""
Shared fixtures for the billing engine tests.
"""
import pytest

from billing_engine.mappings import AcueductoSourceColumns as AC
from billing_engine.mappings import AlcantarilladoSourceColumns as AL
from billing_engine.mappings import AseoSourceColumns as AS


ACUEDUCTO_HEADER = [
    AC.INVOICE_DATE,
    AC.USAGE_CLASS,
    AC.METER_STATUS,
    AC.CONSUMPTION,
    AC.TOTAL_BILLED,
    AC.PAYMENTS,
]


@pytest.fixture
def acueducto_rows():
    """Water-supply export rows with mixed date and number formats."""
    return [
        {
            AC.INVOICE_DATE: "2024-01-05",
            AC.USAGE_CLASS: "1",
            AC.METER_STATUS: "INSTALADO",
            AC.CONSUMPTION: "10",
            AC.TOTAL_BILLED: "$ 50.000,00",
            AC.PAYMENTS: "50000",
        },
        {
            AC.INVOICE_DATE: "20/01/2024",
            AC.USAGE_CLASS: "1",
            AC.METER_STATUS: "NO INSTALADO",
            AC.CONSUMPTION: "5",
            AC.TOTAL_BILLED: "25,000",
            AC.PAYMENTS: "20.000,00",
        },
        {
            AC.INVOICE_DATE: "03-02-2024",
            AC.USAGE_CLASS: "2",
            AC.METER_STATUS: "RETIRADO",
            AC.CONSUMPTION: "7,5",
            AC.TOTAL_BILLED: "1,234.56",
            AC.PAYMENTS: "",
        },
    ]


@pytest.fixture
def alcantarillado_rows():
    return [
        {
            AL.INVOICE_DATE: "05/03/2024",
            AL.USAGE_CLASS: "3",
            AL.AFORO: "SI",
            AL.DISCHARGE: "12",
            AL.TOTAL_BILLED: "30000",
            AL.PAYMENTS: "30000",
        },
        {
            AL.INVOICE_DATE: "06/03/2024",
            AL.USAGE_CLASS: "3",
            AL.AFORO: "N",
            AL.DISCHARGE: "8",
            AL.TOTAL_BILLED: "20000",
            AL.PAYMENTS: "0",
        },
    ]


@pytest.fixture
def aseo_rows():
    return [
        {AS.INVOICE_DATE: "2024-01-10", AS.USAGE_CLASS: "1", AS.TARIFF: "15000"},
        {AS.INVOICE_DATE: "2024-01-11", AS.USAGE_CLASS: "1", AS.TARIFF: "17500"},
        {AS.INVOICE_DATE: "2024-01-12", AS.USAGE_CLASS: "1", AS.TARIFF: ""},
    ]


@pytest.fixture
def acueducto_csv_bytes():
    """A semicolon-delimited water-supply export encoded as UTF-8."""
    lines = [
        ";".join(ACUEDUCTO_HEADER),
        "05/01/2024;1;INSTALADO;10;50000;50000",
        "20/01/2024;1;NO INSTALADO;5;25000;20000",
        ";;;;;",
        "10/02/2024;2;INSTALADO;3,5;12.000,50;12.000,50",
    ]
    return ("\n".join(lines) + "\n").encode("utf-8")
