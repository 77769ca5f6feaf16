from __future__ import annotations

from datetime import date

import pandas as pd
import streamlit as st

from charts import chart_margenes_por_linea
from commissions import (
    COM_COLUMNS,
    COM_STATE_COLUMNS,
    SALE_COLUMNS,
    SALE_STATE_COLUMNS,
    completar_desde_catalogo,
    evaluar_negocio,
    nueva_linea_comodato,
    nueva_linea_venta,
    preparar_comodatos,
    preparar_ventas,
)
from core.config import CATALOG_URL, COMISION_BASE_DEFAULT, LOGO_DOCUMENTOS_URL, MESES_CONTRATO_DEFAULT
from core.formatting import miles, money, pct
from core.state import ensure_defaults, reset_keys
from documents import (
    build_evaluation_docx,
    build_evaluation_html,
    evaluation_filename,
    logo_data_url,
    mailto_aprobacion,
    render_pdf_component,
)
from entities import get_catalogo
from ui.auth import admin_level, require_login, role_name
from ui.kpis import render_kpis_evaluacion
from ui.theme import apply_global_theme, render_header

st.set_page_config(page_title="Evaluación de Negocio", page_icon="📈", layout="wide")
apply_global_theme()

# ---- Guard ----
require_login("evaluacion")


# ---- Borrador (sobrevive a reruns y cambio de página) ----
DEFAULTS = {
    "eval.fecha": date.today(),
    "eval.cliente": "",
    "eval.rut": "",
    "eval.direccion": "",
    "eval.ejecutivo": "",
    "eval.months": MESES_CONTRATO_DEFAULT,
    "eval.commission": COMISION_BASE_DEFAULT,
    "eval.sales": pd.DataFrame([nueva_linea_venta()], columns=SALE_STATE_COLUMNS),
    "eval.comodatos": pd.DataFrame([nueva_linea_comodato()], columns=COM_STATE_COLUMNS),
    "eval.catalog_url": CATALOG_URL,
    "eval.logo_url": LOGO_DOCUMENTOS_URL,
}
CLEAR_KEYS = [
    "eval.cliente", "eval.rut", "eval.direccion", "eval.ejecutivo",
    "eval.sales", "eval.comodatos", "eval.sales_editor", "eval.comodatos_editor",
]
ensure_defaults(st.session_state, DEFAULTS)
# Streamlit borra el estado de widgets no dibujados al cambiar de página; reasignar lo conserva
for _key in DEFAULTS:
    st.session_state[_key] = st.session_state[_key]


def _limpiar() -> None:
    reset_keys(st.session_state, DEFAULTS, CLEAR_KEYS)


@st.cache_data(ttl=3600, show_spinner=False)
def _logo_src(url: str) -> str:
    return logo_data_url(url)


def _editor_con_autocompletado(state_key: str, editor_key: str, df_catalogo: pd.DataFrame, *, comodato: bool, column_config: dict) -> pd.DataFrame:
    """
    Grilla editable; cuando cambia un código y el catálogo lo conoce, se completa la fila
    (nombre, precio, kilos, costo), se guarda en el borrador y se redibuja.
    """
    edited = st.data_editor(
        st.session_state[state_key],
        key=editor_key,
        num_rows="dynamic",
        use_container_width=True,
        hide_index=True,
        column_order=COM_COLUMNS if comodato else SALE_COLUMNS,
        column_config=column_config,
    )
    preparar = preparar_comodatos if comodato else preparar_ventas
    base = preparar(edited)
    completo = preparar(completar_desde_catalogo(base, df_catalogo, comodato=comodato))
    if not base.empty and not completo.equals(base):
        st.session_state[state_key] = completo
        st.session_state.pop(editor_key, None)
        st.rerun()
    return base


# ---- Encabezado ----
nivel = admin_level()
render_header("Evaluación de Negocio", "Propuesta con comodato: margen, comisión y viabilidad")
if nivel > 0:
    st.markdown(f'<span class="role-badge">{role_name(nivel)}</span>', unsafe_allow_html=True)

df_catalogo = get_catalogo(st.session_state["eval.catalog_url"])
if st.session_state.get("catalogo_error"):
    st.error(st.session_state["catalogo_error"])
else:
    st.caption(f"Catálogo: {len(df_catalogo)} productos.")

# ---- Configuración (solo Administradora) ----
config_box = st.expander("⚙️ Configuración", expanded=False) if nivel == 2 else None
if config_box is not None:
    with config_box:
        st.text_input("Catálogo (URL de Google Sheets)", key="eval.catalog_url")
        st.text_input("Logo PDF (URL o data:)", key="eval.logo_url")

# ---- Parámetros y Cliente ----
st.markdown("### 📊 Parámetros y Cliente")
c1, c2, c3 = st.columns([1, 1, 2])
with c1:
    st.date_input("Fecha", key="eval.fecha", format="DD/MM/YYYY")
    st.number_input("Meses contrato", min_value=1, step=1, key="eval.months")
with c2:
    st.text_input("RUT", key="eval.rut")
    st.number_input("% Comisión base", min_value=0.0, max_value=1.0, step=0.001, format="%.3f", key="eval.commission")
with c3:
    st.text_input("Cliente", key="eval.cliente")
    st.text_input("Dirección", key="eval.direccion")
    st.text_input("Ejecutivo", key="eval.ejecutivo")
st.button("Limpiar", on_click=_limpiar)

# ---- Productos ----
st.markdown("### 📦 Productos — Venta mensual")
st.caption("Escribe el código del catálogo: se completan descripción, kilos, precio lista y costo.")
sales = _editor_con_autocompletado(
    "eval.sales", "eval.sales_editor", df_catalogo, comodato=False,
    column_config={
        "code": st.column_config.TextColumn("Código"),
        "name": st.column_config.TextColumn("Descripción", width="large"),
        "kilos": st.column_config.NumberColumn("Kg formato", min_value=0.0, step=0.1),
        "qty": st.column_config.NumberColumn("Cantidad/mes", min_value=0.0, step=1.0),
        "price_kg": st.column_config.NumberColumn("Precio venta $/kg", min_value=0.0, format="$%d"),
        "price_list_kg": st.column_config.NumberColumn("Precio lista $/kg", disabled=True, format="$%d"),
        "cost_kg": st.column_config.NumberColumn("Costo $/kg", disabled=True, format="$%d"),
    },
)

# ---- Comodatos ----
st.markdown("### 🧰 Equipos en comodato — Contrato")
comodatos = _editor_con_autocompletado(
    "eval.comodatos", "eval.comodatos_editor", df_catalogo, comodato=True,
    column_config={
        "code": st.column_config.TextColumn("Código"),
        "name": st.column_config.TextColumn("Descripción", width="large"),
        "price_contract": st.column_config.NumberColumn("Precio $/contrato", min_value=0.0, format="$%d"),
        "qty": st.column_config.NumberColumn("Cantidad", min_value=0.0, step=1.0),
    },
)

# ---- Cálculo ----
months = float(st.session_state["eval.months"])
commission = float(st.session_state["eval.commission"])
ev = evaluar_negocio(sales, comodatos, months, commission)

st.markdown("### Resultado")
render_kpis_evaluacion(ev, months)
color = "#16a34a" if ev.es_viable else "#dc2626"
st.markdown(
    f'<div style="display:inline-block;background:{color};color:#fff;font-weight:800;'
    f'font-size:1.3rem;padding:8px 18px;border-radius:12px">{ev.estado}</div>',
    unsafe_allow_html=True,
)

if not ev.lines.empty:
    st.altair_chart(chart_margenes_por_linea(ev.lines), use_container_width=True)

# Subcálculos por producto (solo Administradora)
if config_box is not None:
    with config_box:
        st.markdown("#### 🔎 Subcálculos por producto")
        if ev.lines.empty:
            st.caption("Sin productos.")
        else:
            sub = pd.DataFrame(
                {
                    "Producto": [f"{c} — {n}" for c, n in zip(ev.lines["code"], ev.lines["name"])],
                    "Kilos/mes": ev.lines["kilos_mes"].map(miles),
                    "Costo total": ev.lines["costo"].map(money),
                    "Mgn dir %": ev.lines["mgn_dir_pct"].map(pct),
                    "Cdto asignado": ev.lines["cdto_asignado"].map(money),
                    "Mgn (2) %": ev.lines["mgn2_pct"].map(pct),
                    "Mgn final %": ev.lines["mgn3_pct"].map(pct),
                }
            )
            st.dataframe(sub, use_container_width=True, hide_index=True)

# ---- Documentos ----
cliente = {
    "fecha": st.session_state["eval.fecha"],
    "nombre": st.session_state["eval.cliente"],
    "rut": st.session_state["eval.rut"],
    "direccion": st.session_state["eval.direccion"],
    "ejecutivo": st.session_state["eval.ejecutivo"],
}
com_df = preparar_comodatos(comodatos)
pdf_name = evaluation_filename(cliente["nombre"], cliente["fecha"])
html_body = build_evaluation_html(ev, cliente, com_df, months, commission, _logo_src(st.session_state["eval.logo_url"]))

st.markdown("### 📄 Documentos")
col_word, col_send = st.columns([1, 1])
with col_word:
    st.download_button(
        "Descargar Word",
        data=build_evaluation_docx(ev, cliente, com_df, months, commission),
        file_name=pdf_name.replace(".pdf", ".docx"),
        mime="application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    )
with col_send:
    if ev.es_viable:
        render_pdf_component(
            html_body,
            pdf_name,
            button_label="Descargar y enviar",
            after_download_href=mailto_aprobacion(cliente["nombre"]),
            preview=False,
        )
    else:
        st.caption("“Descargar y enviar” disponible solo cuando la evaluación es Viable.")

render_pdf_component(html_body, pdf_name)
