from datetime import date

import pandas as pd
import pytest

from core.quote import (
    ITEM_COLUMNS,
    STATE_COLUMNS,
    autocompletar_items,
    build_items_dataframe,
    buscar_clientes,
    buscar_en_catalogo,
    cliente_desde_fila,
    documento_inicial,
    etiqueta_producto,
    item_desde_catalogo,
    numero_documento,
    totales,
)


@pytest.fixture
def clientes():
    return pd.DataFrame(
        {
            "RazonSocial": ["Clínica Santa María", "Hotel Andes", "Panadería El Trigo"],
            "RUT": ["76.111.111-1", "77.222.222-2", "78.333.333-3"],
            "CodigoCliente": ["C1", "C2", "C3"],
            "Direccion": ["Av. Uno 1, Santiago", "", "Calle Tres 3"],
            "CondicionPago": ["30 días", "Contado", ""],
            "Giro": ["Salud", "Hotelería", "Alimentos"],
        }
    )


def test_numero_y_documento_inicial():
    assert numero_documento("CTZ", 2025, 1) == "CTZ-2025-00001"
    doc = documento_inicial("nota_venta", date(2026, 3, 2))
    assert doc["number"] == "NV-2026-00001"
    assert doc["tax_pct"] == 19.0
    assert doc["validity"] == "10 días"
    assert doc["issuer_address"] == "Alameda 1001, Santiago"


def test_item_arithmetic_and_totals():
    raw = pd.DataFrame(
        [
            {"codigo": "A", "descripcion": "x", "kilos": 5, "cantidad": 2, "precio_kg": 1000, "descuento_pct": 10},
            {"codigo": "B", "descripcion": "y", "kilos": 1, "cantidad": 3, "precio_kg": 500, "descuento_pct": 0},
        ]
    )
    items = build_items_dataframe(raw)
    assert items["precio_venta"].tolist() == pytest.approx([900, 500])
    assert items["total"].tolist() == pytest.approx([9000, 1500])
    t = totales(items)
    assert t["subtotal"] == pytest.approx(10500)
    assert t["iva"] == pytest.approx(1995)
    assert t["total"] == pytest.approx(12495)


def test_totales_empty_and_custom_tax():
    assert totales(pd.DataFrame(columns=ITEM_COLUMNS)) == {"subtotal": 0.0, "iva": 0.0, "total": 0.0}
    raw = pd.DataFrame([{"codigo": "A", "descripcion": "", "kilos": 1, "cantidad": 1, "precio_kg": 100, "descuento_pct": 0}])
    assert totales(raw, 0)["total"] == pytest.approx(100)


def test_build_items_tolerates_garbage():
    items = build_items_dataframe(pd.DataFrame({"codigo": ["A"], "cantidad": ["dos"]}))
    assert items.loc[0, "cantidad"] == 0
    assert items.loc[0, "total"] == 0


def test_buscar_clientes_min_chars_and_accents(clientes):
    assert buscar_clientes(clientes, "c").empty
    assert buscar_clientes(clientes, "clinica")["CodigoCliente"].tolist() == ["C1"]
    assert buscar_clientes(clientes, "77.222")["CodigoCliente"].tolist() == ["C2"]
    assert buscar_clientes(clientes, "PANADERIA")["CodigoCliente"].tolist() == ["C3"]


def test_buscar_clientes_limit():
    df = pd.DataFrame(
        {"RazonSocial": [f"Cliente {i}" for i in range(80)], "RUT": [str(i) for i in range(80)]}
    )
    assert len(buscar_clientes(df, "cliente")) == 50


def test_cliente_desde_fila(clientes):
    data = cliente_desde_fila(clientes.iloc[1])
    assert data == {
        "name": "Hotel Andes",
        "rut": "77.222.222-2",
        "client_code": "C2",
        "address": "",
        "condicion_pago": "Contado",
        "giro": "Hotelería",
    }


def test_buscar_en_catalogo_cascade(catalogo):
    assert buscar_en_catalogo(catalogo, "det-20")["Codigo"] == "DET-20"
    assert buscar_en_catalogo(catalogo, "detergente citrico")["Codigo"] == "DET-20"
    assert buscar_en_catalogo(catalogo, "AB")["Codigo"] == "AB-100"
    assert buscar_en_catalogo(catalogo, "dosif")["Codigo"] == "EQ-1"
    assert buscar_en_catalogo(catalogo, "mural")["Codigo"] == "EQ-1"
    assert buscar_en_catalogo(catalogo, etiqueta_producto(catalogo.iloc[2]))["Codigo"] == "EQ-1"
    assert buscar_en_catalogo(catalogo, "no existe") is None
    assert buscar_en_catalogo(catalogo, "  ") is None


def test_item_desde_catalogo(catalogo):
    item = item_desde_catalogo(catalogo.iloc[0], cantidad=3)
    assert item == {
        "codigo": "AB-100",
        "descripcion": "Desengrasante Alcalino",
        "kilos": 5.0,
        "cantidad": 3.0,
        "precio_kg": 2500.0,
        "descuento_pct": 0.0,
        "codigo_auto": "AB-100",
    }
    assert item_desde_catalogo(catalogo.iloc[1])["kilos"] == 0.0


def test_autocompletar_items(catalogo):
    raw = pd.DataFrame(
        [
            {"codigo": "ab-100", "descripcion": "", "kilos": 0, "cantidad": 4, "precio_kg": 0, "descuento_pct": 0},
            {"codigo": "X", "descripcion": "a mano", "kilos": 1, "cantidad": 1, "precio_kg": 700, "descuento_pct": 0},
            {"codigo": "zzz", "descripcion": "", "kilos": 0, "cantidad": 1, "precio_kg": 0, "descuento_pct": 0},
        ]
    )
    out = autocompletar_items(raw, catalogo)
    assert out.loc[0, "descripcion"] == "Desengrasante Alcalino"
    assert out.loc[0, "cantidad"] == 4
    assert out.loc[0, "total"] == pytest.approx(5 * 4 * 2500)
    assert out.loc[1, "precio_kg"] == 700
    assert out.loc[2, "descripcion"] == ""
    # idempotente
    assert autocompletar_items(out, catalogo).equals(out)


def test_autocompletar_items_refills_when_code_changes(catalogo):
    raw = pd.DataFrame([{"codigo": "ab-100", "descripcion": "", "kilos": 0, "cantidad": 2, "precio_kg": 0, "descuento_pct": 0}])
    out = autocompletar_items(raw, catalogo)
    assert out.loc[0, "descripcion"] == "Desengrasante Alcalino"

    out.loc[0, "codigo"] = "DET-20"
    out = autocompletar_items(out[STATE_COLUMNS], catalogo)
    assert out.loc[0, "descripcion"] == "Detergente Cítrico"
    assert out.loc[0, "precio_kg"] == 1800
    assert out.loc[0, "cantidad"] == 2


def test_autocompletar_items_keeps_manual_edits(catalogo):
    out = autocompletar_items(
        pd.DataFrame([{"codigo": "AB-100", "descripcion": "", "kilos": 0, "cantidad": 1, "precio_kg": 0, "descuento_pct": 0}]),
        catalogo,
    )
    out.loc[0, "descripcion"] = "Desengrasante (bidón especial)"
    out.loc[0, "precio_kg"] = 2300.0
    again = autocompletar_items(out[STATE_COLUMNS], catalogo)
    assert again.loc[0, "descripcion"] == "Desengrasante (bidón especial)"
    assert again.loc[0, "precio_kg"] == 2300.0


def test_autocompletar_items_by_description_only(catalogo):
    raw = pd.DataFrame([{"codigo": "", "descripcion": "dosificador", "kilos": 0, "cantidad": 1, "precio_kg": 0, "descuento_pct": 0}])
    out = autocompletar_items(raw, catalogo)
    assert out.loc[0, "codigo"] == "EQ-1"
    assert out.loc[0, "codigo_auto"] == "EQ-1"
    assert autocompletar_items(out[STATE_COLUMNS], catalogo).equals(out)
