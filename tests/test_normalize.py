import math

import pandas as pd
import pytest

from core.normalize import (
    CATALOGO_COLS,
    CLIENTES_COLS,
    normalizar_catalogo,
    normalizar_clientes,
    normalizar_metas,
    normalize_text,
    num,
    parse_number,
    to_number,
)


@pytest.mark.parametrize(
    "raw, expected",
    [(None, 0.0), ("", 0.0), ("abc", 0.0), ("12.5", 12.5), (7, 7.0), (float("nan"), 0.0), (float("inf"), 0.0)],
)
def test_num(raw, expected):
    assert num(raw) == expected


@pytest.mark.parametrize(
    "raw, expected",
    [("$1.234,5", 1234.5), ("1.234.567", 1234567.0), ("12,5", 12.5), ("-3.000", -3000.0), ("n/a", 0.0), (42, 42.0)],
)
def test_to_number_es_cl(raw, expected):
    assert to_number(raw) == expected


def test_parse_number_strips_symbols():
    assert parse_number("$ 1500") == 1500.0
    assert parse_number("") == 0.0
    assert parse_number("-250") == -250.0


def test_normalize_text():
    assert normalize_text("Cámara FRÍA Ñandú") == "camara fria nandu"
    assert normalize_text(None) == ""


def test_normalizar_clientes_maps_erp_columns():
    raw = pd.DataFrame(
        {
            "CardCode": ["C001"],
            "CardName": [" Hotel Los Andes "],
            "RUT": ["76.111.222-3"],
            "Dirección Despacho": ["Av. Siempre Viva 123"],
            "Despacho Comuna": [""],
            "Despacho Ciudad": ["Santiago"],
            "Condicion pago": ["30 días"],
            "Giro": ["Hotelería"],
        }
    )
    df = normalizar_clientes(raw)
    assert list(df.columns) == CLIENTES_COLS
    row = df.iloc[0]
    assert row["RazonSocial"] == "Hotel Los Andes"
    assert row["CodigoCliente"] == "C001"
    assert row["Direccion"] == "Av. Siempre Viva 123, Santiago"
    assert row["CondicionPago"] == "30 días"


def test_normalizar_clientes_missing_columns_are_blank():
    df = normalizar_clientes(pd.DataFrame({"CardName": ["Solo nombre"]}))
    assert df.loc[0, "RUT"] == ""
    assert df.loc[0, "Direccion"] == ""


def test_normalizar_catalogo_header_variants_and_duplicates():
    raw = pd.DataFrame(
        {
            "Code": [" ab-1 ", "", "zz-9", "AB-1"],
            "Producto": ["Viejo", "sin código", "Zeta", "Nuevo"],
            "Precio Lista": ["$1.500", "10", "2.000,5", "1.800"],
            "Costo": ["900", "", "", "1.000"],
        }
    )
    df = normalizar_catalogo(raw)
    assert list(df.columns) == CATALOGO_COLS
    assert df["Codigo"].tolist() == ["AB-1", "ZZ-9"]
    ab = df.iloc[0]
    assert ab["Nombre"] == "Nuevo"
    assert ab["PrecioLista"] == 1800.0
    assert ab["Costo"] == 1000.0
    assert df.iloc[1]["PrecioLista"] == 2000.5
    # sin columna de kilos -> NaN
    assert math.isnan(ab["Kilos"])


def test_normalizar_catalogo_without_cost_column():
    df = normalizar_catalogo(pd.DataFrame({"code": ["x1"], "name": ["Uno"], "price_list": ["100"], "kilos": ["5"]}))
    assert math.isnan(df.loc[0, "Costo"])
    assert df.loc[0, "Kilos"] == 5.0


def test_normalizar_catalogo_without_code_column_is_empty():
    assert normalizar_catalogo(pd.DataFrame({"Nombre": ["x"]})).empty


def test_normalizar_metas_by_position():
    raw = pd.DataFrame(
        [
            ["", "FB Norte", "", "", "", "", "$ 800", "", "1000", "-200"],
            ["", "HC", "", "", "", "", "50", "", "100", "-50"],
        ]
    )
    df = normalizar_metas(raw)
    assert df.to_dict("records")[0] == {"Gerencia": "FB Norte", "Ventas": 800.0, "Meta": 1000.0, "Cumplimiento": -200.0}


def test_normalizar_metas_short_rows():
    df = normalizar_metas(pd.DataFrame([["a", "FB"]]))
    assert df.loc[0, "Meta"] == 0.0
