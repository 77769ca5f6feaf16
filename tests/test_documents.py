from datetime import date
from io import BytesIO

import pandas as pd
import pytest
from docx import Document
from openpyxl import load_workbook

from commissions import COM_COLUMNS, SALE_COLUMNS, evaluar_negocio
from core.quote import build_items_dataframe, totales
from documents import (
    build_evaluation_docx,
    build_evaluation_html,
    build_quote_excel,
    build_quote_html,
    evaluation_filename,
    logo_data_url,
    mailto_aprobacion,
    quote_filename,
)
from tests.conftest import FakeResponse, FakeSession


@pytest.fixture
def evaluacion():
    sales = pd.DataFrame([["AB-100", "Desengrasante", 5, 10, 2000, 2500, 1200]], columns=SALE_COLUMNS)
    com = pd.DataFrame([["EQ-1", "Dosificador", 240000, 1]], columns=COM_COLUMNS)
    return evaluar_negocio(sales, com, 24, 0.105), com


@pytest.fixture
def items():
    raw = pd.DataFrame(
        [{"codigo": "AB-100", "descripcion": "Desengrasante", "kilos": 5, "cantidad": 2, "precio_kg": 1000, "descuento_pct": 10}]
    )
    return build_items_dataframe(raw)


CLIENTE_EVAL = {"fecha": date(2025, 1, 5), "nombre": "ACME", "rut": "1-9", "direccion": "", "ejecutivo": "Ana"}


def test_evaluation_filename():
    assert evaluation_filename("Clínica Sta. María", date(2025, 1, 5)) == "Evaluacion_Cl_nica_Sta_Mar_a_2025-01-05.pdf"
    assert evaluation_filename("  ", "2025-01-05") == "Evaluacion_Cliente_2025-01-05.pdf"


def test_quote_filename():
    assert quote_filename("CTZ-2025-00001", "Hotel Andes") == "CTZ-2025-00001_Hotel_Andes.pdf"
    assert quote_filename("NV-2025-00002", "", "xlsx") == "NV-2025-00002.xlsx"


def test_mailto_aprobacion():
    url = mailto_aprobacion("ACME", "jefa@example.com")
    assert url.startswith("mailto:jefa@example.com?subject=")
    assert "Evaluaci%C3%B3n%20de%20Negocio%20%E2%80%94%20ACME" in url
    assert url.endswith("&body=Estimada%2C%20se%20solicita%20gestionar%20VB%20a%20comodato.%20Saludos.")
    assert "%E2%80%94%20Cliente&" in mailto_aprobacion("", "x@y.cl")


def test_logo_data_url():
    data = "data:image/png;base64,AAAA"
    assert logo_data_url(data) == data
    assert logo_data_url("") == ""
    ok = FakeSession({"logo.png": FakeResponse(content=b"\x89PNG", headers={"Content-Type": "image/png"})})
    assert logo_data_url("https://cdn.example.com/logo.png", session=ok) == "data:image/png;base64,iVBORw=="
    broken = FakeSession({"logo.png": FakeResponse(status=500)})
    assert logo_data_url("https://cdn.example.com/logo.png", session=broken) == ""


def test_build_quote_html(items):
    tot = totales(items)
    html = build_quote_html(
        "COTIZACIÓN",
        "CTZ-2025-00001",
        date(2025, 1, 5),
        "10 días",
        {"name": "<ACME & Co>", "rut": "1-9"},
        {"name": "Spartan de Chile Ltda.", "address": "Cerro Santa Lucia 9873, Quilicura"},
        items,
        tot,
        cuenta="25013084",
    )
    assert 'id="quote-root"' in html
    assert "&lt;ACME &amp; Co&gt;" in html
    assert "N° CTZ-2025-00001" in html
    assert "$9.000" in html          # total del ítem
    assert "$10.710" in html         # total con IVA
    assert "25013084" in html
    assert "Firma y timbre" in html


def test_build_quote_html_without_items():
    html = build_quote_html("NOTA DE VENTA", "NV-1", "", "", {}, {}, build_items_dataframe(None), totales(None))
    assert "Sin ítems." in html


def test_build_evaluation_html(evaluacion):
    ev, com = evaluacion
    html = build_evaluation_html(ev, CLIENTE_EVAL, com, 24, 0.105)
    assert "Evaluación de Negocio" in html
    assert "Estado: Viable" in html
    assert "#16a34a" in html
    assert "$240.000" in html
    assert "10,5 %" in html


def test_build_evaluation_docx(evaluacion):
    ev, com = evaluacion
    doc = Document(BytesIO(build_evaluation_docx(ev, CLIENTE_EVAL, com, 24, 0.105)))
    text = "\n".join(p.text for p in doc.paragraphs)
    assert "Estado: Viable" in text
    assert len(doc.tables) == 4
    assert doc.tables[0].cell(1, 1).text == "ACME"
    assert doc.tables[2].cell(1, 0).text == "AB-100"


def test_build_quote_excel(items):
    data = build_quote_excel("COTIZACIÓN", "CTZ-2025-00001", date(2025, 1, 5), {"name": "ACME", "rut": "1-9"}, items, totales(items))
    ws = load_workbook(BytesIO(data)).active
    assert ws["A1"].value == "COTIZACIÓN"
    assert ws["B2"].value == "CTZ-2025-00001"
    assert ws.cell(row=8, column=2).value == "Desengrasante"
    assert ws.cell(row=8, column=8).value == pytest.approx(9000)
    assert ws.cell(row=12, column=7).value == "Total"
    assert ws.cell(row=12, column=8).value == pytest.approx(10710)
