# =========================
# documents.py
# Documentos imprimibles: Cotización / Nota de Venta y Evaluación de Negocio
# - HTML + exportación a PDF en el navegador (html2canvas + jsPDF)
# - Word (python-docx) y Excel (openpyxl)
# =========================

from __future__ import annotations

import base64
import html
import re
from datetime import date
from io import BytesIO
from typing import Dict, Optional
from urllib.parse import quote

import pandas as pd
import requests
import streamlit.components.v1 as components
from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.shared import Pt, RGBColor
from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side

from commissions import Evaluacion
from core.config import APPROVAL_EMAIL, BRAND, HTTP_TIMEOUT, TRANSFERENCIA
from core.formatting import miles, money, pct
from core.logging_config import get_logger

log = get_logger("documents")

BLUE = BRAND["blue"]
GREEN = "#16a34a"
RED = "#dc2626"

INTRO_COTIZACION = (
    "De acuerdo a lo solicitado, tenemos el agrado de cotizar algunos de los productos que "
    f"{BRAND['name']} fabrica y distribuye en el país, y/o maquinaria / accesorios de limpieza industrial."
)
MAIL_BODY_APROBACION = "Estimada, se solicita gestionar VB a comodato. Saludos."


# ---- Helpers ----
def _e(value) -> str:
    return html.escape(str(value if value is not None else ""))


def _or_dash(value) -> str:
    text = str(value or "").strip()
    return _e(text) if text else "—"


def _fecha(value) -> str:
    if isinstance(value, date):
        return value.isoformat()
    return str(value or "")


def logo_data_url(url: str, session: Optional[requests.Session] = None) -> str:
    """
    Logo embebido como data URL (html2canvas no dibuja imágenes de otros dominios sin CORS).
    data: pasa tal cual; http(s) se descarga; cualquier error -> "".
    """
    url = (url or "").strip()
    if not url:
        return ""
    if re.match(r"^data:image/(png|jpeg|jpg);base64,", url, flags=re.IGNORECASE):
        return url
    try:
        resp = (session or requests).get(url, timeout=HTTP_TIMEOUT)
        resp.raise_for_status()
    except requests.RequestException as exc:
        log.warning("No se pudo descargar el logo %s (%s).", url, exc)
        return ""
    mime = "image/png" if "png" in resp.headers.get("Content-Type", "").lower() else "image/jpeg"
    return f"data:{mime};base64,{base64.b64encode(resp.content).decode()}"


def evaluation_filename(cliente: str, fecha) -> str:
    nombre = re.sub(r"[^A-Za-z0-9_-]+", "_", (cliente or "").strip() or "Cliente")
    return f"Evaluacion_{nombre}_{_fecha(fecha)}.pdf"


def quote_filename(numero: str, cliente: str = "", ext: str = "pdf") -> str:
    base = re.sub(r"[^A-Za-z0-9_-]+", "_", (numero or "").strip() or "COTIZACION")
    suffix = re.sub(r"[^A-Za-z0-9_-]+", "_", (cliente or "").strip()).strip("_")
    return f"{base}_{suffix}.{ext}" if suffix else f"{base}.{ext}"


def mailto_aprobacion(cliente: str, to: str = APPROVAL_EMAIL) -> str:
    """Enlace mailto para pedir VB del comodato (solo se ofrece si la evaluación es viable)."""
    subject = quote(f"Evaluación de Negocio — {(cliente or '').strip() or 'Cliente'}", safe="")
    body = quote(MAIL_BODY_APROBACION, safe="")
    return f"mailto:{to}?subject={subject}&body={body}"


# ---- HTML: Cotización / Nota de Venta ----
_DOC_CSS = f"""
<style>
  .quote-page {{ width: 794px; padding: 32px 36px; background: #fff; color: #1e293b;
                font-family: 'Helvetica Neue', Arial, sans-serif; font-size: 12px; box-sizing: border-box; }}
  .quote-page h1 {{ color: {BLUE}; font-size: 20px; margin: 0; }}
  .doc-head {{ display: flex; justify-content: space-between; align-items: center;
              border-bottom: 1px solid #e2e8f0; padding-bottom: 8px; margin-bottom: 14px; }}
  .doc-head img {{ height: 60px; }}
  .doc-meta {{ background: #f1f5f9; border-radius: 6px; padding: 6px 10px; text-align: right; font-size: 11px; }}
  .cards {{ display: grid; grid-template-columns: 1fr 1fr; gap: 18px; margin-bottom: 14px; }}
  .card h3 {{ background: {BLUE}; color: #fff; font-size: 12px; margin: 0 0 6px 0; padding: 4px 8px; border-radius: 4px; }}
  .field {{ margin-bottom: 4px; }}
  .field .lbl {{ font-size: 9px; text-transform: uppercase; color: #64748b; }}
  .section-title {{ background: {BLUE}; color: #fff; padding: 4px 10px; border-radius: 4px; font-weight: 700; margin: 12px 0 6px; }}
  table.items {{ width: 100%; border-collapse: collapse; font-size: 11px; }}
  table.items th {{ background: {BLUE}; color: #fff; padding: 4px; text-align: left; }}
  table.items td {{ border-bottom: 1px solid #e2e8f0; padding: 4px; }}
  table.items td.num, table.items th.num {{ text-align: right; }}
  .totals {{ width: 260px; margin: 12px 0 0 auto; background: #eff6ff; border: 1px solid #bfdbfe; border-radius: 6px; padding: 8px 10px; }}
  .totals div {{ display: flex; justify-content: space-between; }}
  .totals .grand {{ font-weight: 700; color: #1e40af; }}
  .transfer {{ position: relative; margin-top: 16px; border: 1px solid #e2e8f0; border-radius: 6px; background: #f8fafc; padding: 10px; font-size: 11px; }}
  .transfer img {{ position: absolute; top: 8px; right: 8px; }}
  .transfer h4 {{ color: {BLUE}; margin: 0 0 6px; }}
  .transfer p {{ margin: 2px 0; }}
  .signature {{ margin-top: 40px; width: 240px; text-align: center; border-top: 1px solid #94a3b8; padding-top: 4px; color: #64748b; }}
  .kv {{ width: 100%; border-collapse: collapse; }}
  .kv td {{ border-top: 1px solid #e5e7eb; padding: 3px 4px; }}
  .kv td.k {{ font-weight: 700; width: 150px; }}
  .badge {{ display: inline-block; color: #fff; font-weight: 700; font-size: 14px; padding: 6px 12px; border-radius: 4px; margin: 10px 0; }}
  .eval-banner {{ background: {BLUE}; color: #fff; display: flex; align-items: center; gap: 24px; padding: 18px 24px; margin: -32px -36px 12px; }}
  .eval-banner img {{ max-height: 40px; max-width: 160px; }}
  .eval-banner h1 {{ color: #fff; }}
</style>
"""


def _field(label: str, value) -> str:
    return f'<div class="field"><div class="lbl">{_e(label)}</div><div>{_or_dash(value)}</div></div>'


def build_quote_html(
    titulo: str,
    numero: str,
    fecha,
    validez: str,
    cliente: Dict[str, str],
    emisor: Dict[str, str],
    items: pd.DataFrame,
    totales: Dict[str, float],
    logo_src: str = "",
    cuenta: str = "",
) -> str:
    """HTML imprimible de la cotización / nota de venta (raíz #quote-root)."""
    filas = []
    for _, it in items.iterrows():
        filas.append(
            "<tr>"
            f"<td>{_e(it.get('codigo', ''))}</td>"
            f"<td>{_e(it.get('descripcion', ''))}</td>"
            f"<td class='num'>{miles(it.get('kilos', 0))}</td>"
            f"<td class='num'>{miles(it.get('cantidad', 0))}</td>"
            f"<td class='num'>{money(it.get('precio_kg', 0))}</td>"
            f"<td class='num'>{miles(it.get('descuento_pct', 0))}%</td>"
            f"<td class='num'>{money(it.get('precio_venta', 0))}</td>"
            f"<td class='num'>{money(it.get('total', 0))}</td>"
            "</tr>"
        )
    if not filas:
        filas.append("<tr><td colspan='8' style='text-align:center;color:#94a3b8'>Sin ítems.</td></tr>")

    qr = f"https://api.qrserver.com/v1/create-qr-code/?size=100x100&data={quote(BRAND['website'], safe='')}"
    logo = f'<img src="{_e(logo_src)}" alt="Logo"/>' if logo_src else "<span></span>"

    return f"""
{_DOC_CSS}
<div id="quote-root" class="quote-page">
  <div class="doc-head">
    {logo}
    <h1>{_e(titulo)}</h1>
    <div class="doc-meta"><div>N° {_e(numero)}</div><div>{_e(_fecha(fecha))}</div><div>{_e(validez)}</div></div>
  </div>
  <div class="cards">
    <div class="card">
      <h3>Cliente</h3>
      {_field("Razón Social", cliente.get("name"))}
      {_field("RUT", cliente.get("rut"))}
      {_field("Código Cliente", cliente.get("client_code"))}
      {_field("Dirección", cliente.get("address"))}
      {_field("Condición Pago", cliente.get("condicion_pago"))}
      {_field("Giro", cliente.get("giro"))}
    </div>
    <div class="card">
      <h3>Emisor</h3>
      {_field("Empresa", emisor.get("name"))}
      {_field("RUT", emisor.get("rut"))}
      {_field("Dirección", emisor.get("address"))}
      {_field("Ejecutivo", emisor.get("contact"))}
      {_field("Email", emisor.get("email"))}
      {_field("Celular", emisor.get("phone"))}
      {_field("Forma de Pago", emisor.get("payment_terms"))}
    </div>
  </div>
  <p>{_e(INTRO_COTIZACION)}</p>
  <div class="section-title">Productos Cotizados</div>
  <table class="items">
    <thead><tr><th>Código</th><th>Descripción</th><th class="num">Kilos</th><th class="num">Cantidad</th>
      <th class="num">$/Kg</th><th class="num">Desc %</th><th class="num">Precio Venta</th><th class="num">Total</th></tr></thead>
    <tbody>{''.join(filas)}</tbody>
  </table>
  <div class="totals">
    <div><span>Subtotal</span><span>{money(totales.get("subtotal", 0))}</span></div>
    <div><span>IVA</span><span>{money(totales.get("iva", 0))}</span></div>
    <div class="grand"><span>Total</span><span>{money(totales.get("total", 0))}</span></div>
  </div>
  <div class="transfer">
    <img src="{qr}" alt="QR" width="90" height="90"/>
    <h4>Datos de Transferencia</h4>
    <p>Banco: {_e(TRANSFERENCIA["banco"])}</p>
    <p>Titular: {_e(TRANSFERENCIA["titular"])}</p>
    <p>RUT: {_e(TRANSFERENCIA["rut"])}</p>
    <p>N° Cuenta: {_e(cuenta)}</p>
    <p>Tipo de cuenta: {_e(TRANSFERENCIA["tipo_cuenta"])}</p>
    <p>Email comprobantes: {_e(TRANSFERENCIA["email_comprobantes"])}</p>
  </div>
  <div class="signature">Firma y timbre</div>
</div>
"""


# ---- HTML: Evaluación de Negocio ----
def _kv_table(rows) -> str:
    body = "".join(f'<tr><td class="k">{_e(k)}</td><td>{_or_dash(v)}</td></tr>' for k, v in rows)
    return f'<table class="kv">{body}</table>'


def _evaluation_sections(
    evaluacion: Evaluacion,
    cliente: Dict[str, str],
    comodatos: pd.DataFrame,
    months: float,
    commission_pct: float,
) -> dict:
    """Contenido común de la evaluación (HTML y Word usan las mismas filas)."""
    datos_cliente = [
        ("Fecha", _fecha(cliente.get("fecha"))),
        ("Cliente", cliente.get("nombre")),
        ("RUT", cliente.get("rut")),
        ("Dirección", cliente.get("direccion")),
        ("Ejecutivo", cliente.get("ejecutivo")),
    ]
    kpis = [
        ("Venta mensual", money(evaluacion.venta_total)),
        ("Comodato mensual", money(evaluacion.comodato_mensual)),
        ("Meses contrato", miles(months, 0)),
        ("% Comisión base", pct(commission_pct)),
        ("% Relación cdto/vta", pct(evaluacion.rel)),
        ("% Comisión final", pct(evaluacion.com_final_pct)),
    ]
    productos = [
        [r["code"], r["name"], miles(r["qty"]), money(r["price_kg"]), money(r["price_list_kg"]), money(r["venta"])]
        for _, r in evaluacion.lines.iterrows()
    ]
    equipos = [
        [r["code"], r["name"], money(r["price_contract"]), miles(r["qty"]), money(r["price_contract"] * r["qty"])]
        for _, r in comodatos.iterrows()
    ]
    return {"cliente": datos_cliente, "kpis": kpis, "productos": productos, "equipos": equipos}


PRODUCT_HEADERS = ["Código", "Descripción", "Cant.", "Precio venta $/kg", "Precio lista $/kg", "Subtotal"]
EQUIPO_HEADERS = ["Código", "Descripción", "Precio $/contrato", "Cant.", "Total contrato"]


def _simple_table(headers, rows) -> str:
    head = "".join(f"<th>{_e(h)}</th>" for h in headers)
    body = "".join("<tr>" + "".join(f"<td>{_e(c)}</td>" for c in r) + "</tr>" for r in rows)
    if not rows:
        body = f"<tr><td colspan='{len(headers)}' style='color:#94a3b8'>Sin registros.</td></tr>"
    return f'<table class="items"><thead><tr>{head}</tr></thead><tbody>{body}</tbody></table>'


def build_evaluation_html(
    evaluacion: Evaluacion,
    cliente: Dict[str, str],
    comodatos: pd.DataFrame,
    months: float,
    commission_pct: float,
    logo_src: str = "",
) -> str:
    """Informe de Evaluación de Negocio (raíz #quote-root, mismo exportador PDF)."""
    s = _evaluation_sections(evaluacion, cliente, comodatos, months, commission_pct)
    color = GREEN if evaluacion.es_viable else RED
    logo = f'<img src="{_e(logo_src)}" alt="Logo"/>' if logo_src else ""
    return f"""
{_DOC_CSS}
<div id="quote-root" class="quote-page">
  <div class="eval-banner">{logo}<h1>Evaluación de Negocio</h1></div>
  <div class="section-title">Datos del cliente</div>
  {_kv_table(s["cliente"])}
  <div class="section-title">KPIs</div>
  {_kv_table(s["kpis"])}
  <div class="badge" style="background:{color}">Estado: {_e(evaluacion.estado)}</div>
  <div class="section-title">Productos (venta mensual)</div>
  {_simple_table(PRODUCT_HEADERS, s["productos"])}
  <div class="section-title">Equipos en comodato (contrato)</div>
  {_simple_table(EQUIPO_HEADERS, s["equipos"])}
  <p><b>Comodato contrato total: {money(evaluacion.total_comodato)}</b>
     &nbsp;&nbsp;&nbsp; <b>Comodato mensual: {money(evaluacion.comodato_mensual)}</b></p>
</div>
"""


# ---- Word: Evaluación ----
def build_evaluation_docx(
    evaluacion: Evaluacion,
    cliente: Dict[str, str],
    comodatos: pd.DataFrame,
    months: float,
    commission_pct: float,
) -> bytes:
    s = _evaluation_sections(evaluacion, cliente, comodatos, months, commission_pct)
    doc = Document()
    style = doc.styles["Normal"]
    style.font.name = "Calibri"
    style.font.size = Pt(10)

    title = doc.add_heading("Evaluación de Negocio", level=0)
    title.alignment = WD_ALIGN_PARAGRAPH.LEFT

    def kv(heading: str, rows) -> None:
        doc.add_heading(heading, level=2)
        table = doc.add_table(rows=0, cols=2)
        table.style = "Table Grid"
        for k, v in rows:
            cells = table.add_row().cells
            cells[0].text = k
            cells[1].text = str(v or "").strip() or "—"
            for run in cells[0].paragraphs[0].runs:
                run.bold = True

    def grid(heading: str, headers, rows) -> None:
        doc.add_heading(heading, level=2)
        table = doc.add_table(rows=1, cols=len(headers))
        table.style = "Table Grid"
        for cell, h in zip(table.rows[0].cells, headers):
            cell.text = h
            for run in cell.paragraphs[0].runs:
                run.bold = True
        for r in rows:
            for cell, value in zip(table.add_row().cells, r):
                cell.text = str(value)

    kv("Datos del cliente", s["cliente"])
    kv("KPIs", s["kpis"])

    estado = doc.add_paragraph()
    run = estado.add_run(f"Estado: {evaluacion.estado}")
    run.bold = True
    run.font.size = Pt(14)
    run.font.color.rgb = RGBColor.from_string((GREEN if evaluacion.es_viable else RED).lstrip("#").upper())

    grid("Productos (venta mensual)", PRODUCT_HEADERS, s["productos"])
    grid("Equipos en comodato (contrato)", EQUIPO_HEADERS, s["equipos"])

    totales = doc.add_paragraph()
    totales.add_run(
        f"Comodato contrato total: {money(evaluacion.total_comodato)}    "
        f"Comodato mensual: {money(evaluacion.comodato_mensual)}"
    ).bold = True

    buffer = BytesIO()
    doc.save(buffer)
    return buffer.getvalue()


# ---- Excel: Cotización ----
def build_quote_excel(
    titulo: str,
    numero: str,
    fecha,
    cliente: Dict[str, str],
    items: pd.DataFrame,
    totales: Dict[str, float],
) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = titulo[:31] or "Documento"

    bold = Font(bold=True)
    white_bold = Font(bold=True, color="FFFFFF")
    header_fill = PatternFill("solid", fgColor=BLUE.lstrip("#").upper())
    thin = Side(style="thin", color="D0D7E2")
    border = Border(left=thin, right=thin, top=thin, bottom=thin)

    ws["A1"] = titulo
    ws["A1"].font = Font(bold=True, size=14)
    ws["A2"], ws["B2"] = "N°", numero
    ws["A3"], ws["B3"] = "Fecha", _fecha(fecha)
    ws["A4"], ws["B4"] = "Cliente", cliente.get("name", "")
    ws["A5"], ws["B5"] = "RUT", cliente.get("rut", "")
    for row in range(2, 6):
        ws.cell(row=row, column=1).font = bold

    headers = ["Código", "Descripción", "Kilos", "Cantidad", "$/Kg", "Desc %", "Precio Venta", "Total"]
    cols = ["codigo", "descripcion", "kilos", "cantidad", "precio_kg", "descuento_pct", "precio_venta", "total"]
    start = 7
    for j, h in enumerate(headers, start=1):
        c = ws.cell(row=start, column=j, value=h)
        c.font = white_bold
        c.fill = header_fill
        c.border = border
        c.alignment = Alignment(horizontal="center")

    r = start
    for r, (_, it) in enumerate(items.iterrows(), start=start + 1):
        for j, col in enumerate(cols, start=1):
            value = it.get(col, "")
            c = ws.cell(row=r, column=j, value=float(value) if j > 2 else str(value))
            c.border = border
            if col in ("precio_kg", "precio_venta", "total"):
                c.number_format = '"$"#,##0'

    r += 2
    for label, key in (("Subtotal", "subtotal"), ("IVA", "iva"), ("Total", "total")):
        ws.cell(row=r, column=7, value=label).font = bold
        c = ws.cell(row=r, column=8, value=float(totales.get(key, 0.0)))
        c.number_format = '"$"#,##0'
        r += 1

    for letter, width in zip("ABCDEFGH", (14, 42, 10, 10, 12, 9, 14, 14)):
        ws.column_dimensions[letter].width = width

    buffer = BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


# ---- Exportación a PDF en el navegador ----
def render_pdf_component(
    html_body: str,
    filename: str,
    preview_scale: float = 0.75,
    jpeg_quality: float = 0.85,
    preview_height: int = 1400,
    button_label: str = "Descargar PDF",
    after_download_href: str = "",
    preview: bool = True,
) -> None:
    """
    Renderiza la vista previa y un botón JS para exportar a PDF usando html2canvas + jsPDF.
    Si `after_download_href` viene (p.ej. un mailto:), se abre después de guardar el PDF.
    Con preview=False solo se dibuja el botón (el documento queda oculto).
    """
    component_html = f"""
    <style>
      html, body {{ margin: 0; padding: 0; background: #ffffff; }}
      .preview-shell {{ width: 100%; display: flex; justify-content: center; overflow: auto; background: #ffffff; }}
      .preview-scale {{ display: inline-block; overflow: hidden; }}
      .preview-scale .quote-page {{ transform: scale({preview_scale}); transform-origin: top left; }}
    </style>
    <div style="margin: 10px 0 16px 0;">
      <button id="btn-download" style="
        background: linear-gradient(135deg, #1f4ed8, #38bdf8);
        color: white; border: none; padding: 10px 14px; border-radius: 10px;
        font-weight: 700; cursor: pointer; box-shadow: 0 8px 24px rgba(31,78,216,0.25);
      ">{_e(button_label)}</button>
    </div>
    <div class="preview-shell" style="{"" if preview else "display: none;"}">
      <div class="preview-scale">{html_body}</div>
    </div>
    <div id="pdf-clone-host" style="position: fixed; left: -100000px; top: 0;"></div>
    <script src="https://cdnjs.cloudflare.com/ajax/libs/html2canvas/1.4.1/html2canvas.min.js"></script>
    <script src="https://cdnjs.cloudflare.com/ajax/libs/jspdf/2.5.1/jspdf.umd.min.js"></script>
    <script>
      const previewScale = {preview_scale};
      const jpegQuality = {jpeg_quality};
      const afterHref = {_js_string(after_download_href)};
      const previewWrapper = document.querySelector(".preview-scale");
      const previewQuote = document.querySelector(".preview-scale .quote-page");
      const syncPreviewSize = () => {{
        if (!previewWrapper || !previewQuote) return;
        previewWrapper.style.width = (previewQuote.offsetWidth * previewScale) + "px";
        previewWrapper.style.height = (previewQuote.offsetHeight * previewScale) + "px";
      }};
      window.requestAnimationFrame(syncPreviewSize);
      const btn = document.getElementById("btn-download");
      btn?.addEventListener("click", () => {{
        const root = document.getElementById("quote-root");
        const host = document.getElementById("pdf-clone-host");
        if (!root || !host) return;

        const clone = root.cloneNode(true);
        clone.removeAttribute("id");
        clone.style.transform = "none";
        host.innerHTML = "";
        host.appendChild(clone);

        const render = () => {{
          html2canvas(clone, {{ scale: 2, useCORS: true, backgroundColor: "#ffffff" }}).then(canvas => {{
            const imgData = canvas.toDataURL("image/jpeg", jpegQuality);
            const pdf = new jspdf.jsPDF("p", "pt", "a4");
            const pageWidth = pdf.internal.pageSize.getWidth();
            const pageHeight = pdf.internal.pageSize.getHeight();
            const imgHeight = canvas.height * (pageWidth / canvas.width);
            let heightLeft = imgHeight;
            let position = 0;

            pdf.addImage(imgData, "JPEG", 0, position, pageWidth, imgHeight);
            heightLeft -= pageHeight;
            while (heightLeft > 0) {{
              position -= pageHeight;
              pdf.addPage();
              pdf.addImage(imgData, "JPEG", 0, position, pageWidth, imgHeight);
              heightLeft -= pageHeight;
            }}
            pdf.save({_js_string(filename)});
            host.innerHTML = "";
            if (afterHref) {{ window.top.location.href = afterHref; }}
          }});
        }};

        if (document.fonts && document.fonts.ready) {{
          document.fonts.ready.then(render);
        }} else {{
          render();
        }}
      }});
    </script>
    """
    components.html(component_html, height=preview_height if preview else 70, scrolling=preview)


def _js_string(value: str) -> str:
    """Literal JS seguro para incrustar en <script>."""
    escaped = (value or "").replace("\\", "\\\\").replace('"', '\\"').replace("</", "<\\/")
    return f'"{escaped}"'
