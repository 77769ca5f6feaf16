# ui/quote_form.py
# Formulario compartido de Cotización y Nota de Venta (cambian título, prefijo y emisor).

from __future__ import annotations

import pandas as pd
import streamlit as st

from core.config import BRAND, CATALOG_URL, LOGO_DOCUMENTOS_URL
from core.formatting import money
from core.quote import (
    CLIENTE_VACIO,
    ITEM_COLUMNS,
    STATE_COLUMNS,
    TIPOS_DOCUMENTO,
    autocompletar_items,
    build_items_dataframe,
    buscar_clientes,
    cliente_desde_fila,
    documento_inicial,
    empty_items,
    etiqueta_cliente,
    etiqueta_producto,
    item_desde_catalogo,
    totales,
)
from core.state import ensure_defaults
from documents import build_quote_excel, build_quote_html, logo_data_url, quote_filename, render_pdf_component
from entities import get_catalogo, get_clientes, last_update, refresh_data

CLIENT_FIELDS = [
    ("name", "Razón Social"),
    ("rut", "RUT"),
    ("client_code", "Código Cliente"),
    ("address", "Dirección"),
    ("condicion_pago", "Condición Pago"),
    ("giro", "Giro"),
]
ISSUER_FIELDS = [
    ("contact", "Ejecutivo"),
    ("email", "Email"),
    ("phone", "Celular"),
    ("payment_terms", "Forma de Pago"),
]


@st.cache_data(ttl=3600, show_spinner=False)
def _logo_src(url: str) -> str:
    return logo_data_url(url)


def _defaults(tipo: str) -> dict:
    doc = documento_inicial(tipo)
    out = {
        f"{tipo}.number": doc["number"],
        f"{tipo}.date": doc["date"],
        f"{tipo}.validity": doc["validity"],
        f"{tipo}.tax_pct": doc["tax_pct"],
        f"{tipo}.modo_cliente": "Cliente existente",
        f"{tipo}.busqueda": "",
        f"{tipo}.items": empty_items(),
        f"{tipo}.issuer.contact": "",
        f"{tipo}.issuer.email": "",
        f"{tipo}.issuer.phone": "",
        f"{tipo}.issuer.payment_terms": doc["payment_terms"],
    }
    for key, _ in CLIENT_FIELDS:
        out[f"{tipo}.cliente.{key}"] = CLIENTE_VACIO[key]
    return out


def _aplicar_cliente(tipo: str, df_sugerencias: pd.DataFrame) -> None:
    """Callback del selector: copia la fila elegida a los campos del cliente."""
    label = st.session_state.get(f"{tipo}.sugerencia")
    if not label:
        return
    hits = df_sugerencias.loc[df_sugerencias.apply(etiqueta_cliente, axis=1) == label]
    if hits.empty:
        return
    for key, value in cliente_desde_fila(hits.iloc[0]).items():
        st.session_state[f"{tipo}.cliente.{key}"] = value


def _limpiar_cliente(tipo: str) -> None:
    for key, _ in CLIENT_FIELDS:
        st.session_state[f"{tipo}.cliente.{key}"] = CLIENTE_VACIO[key]
    st.session_state[f"{tipo}.busqueda"] = ""


def _agregar_producto(tipo: str, df_catalogo: pd.DataFrame) -> None:
    label = st.session_state.get(f"{tipo}.producto")
    if not label:
        return
    hits = df_catalogo.loc[df_catalogo.apply(etiqueta_producto, axis=1) == label]
    if hits.empty:
        return
    items = build_items_dataframe(st.session_state[f"{tipo}.items"])[STATE_COLUMNS]
    nuevo = pd.DataFrame([item_desde_catalogo(hits.iloc[0])], columns=STATE_COLUMNS)
    st.session_state[f"{tipo}.items"] = pd.concat([items, nuevo], ignore_index=True)
    st.session_state.pop(f"{tipo}.items_editor", None)
    st.session_state[f"{tipo}.producto"] = ""


def render_quote_page(tipo: str) -> None:
    cfg = TIPOS_DOCUMENTO[tipo]
    defaults = _defaults(tipo)
    ensure_defaults(st.session_state, defaults)
    # conservar el borrador al cambiar de página
    for key in defaults:
        st.session_state[key] = st.session_state[key]

    df_clientes = get_clientes()
    df_catalogo = get_catalogo(CATALOG_URL)

    # ---- Barra de estado ----
    col_status, col_btn = st.columns([4, 1])
    with col_status:
        errores = " · ".join(e for e in (st.session_state.get("clientes_error"), st.session_state.get("catalogo_error")) if e)
        st.markdown(
            f'<div class="status-bar">Clientes: {len(df_clientes)} · Productos: {len(df_catalogo)}'
            f' · Última actualización: {last_update():%d-%m-%Y %H:%M}</div>',
            unsafe_allow_html=True,
        )
        if errores:
            st.caption(f":red[{errores}]")
    with col_btn:
        st.button("Actualizar datos", on_click=refresh_data, help="Volver a leer Clientes y Catálogo desde Sheets", key=f"{tipo}.refresh")

    # ---- Encabezado del documento ----
    h1, h2, h3, h4 = st.columns([1.4, 1, 1, 0.8])
    with h1:
        st.text_input("N°", key=f"{tipo}.number")
    with h2:
        st.date_input("Fecha", key=f"{tipo}.date", format="DD/MM/YYYY")
    with h3:
        st.text_input("Validez", key=f"{tipo}.validity")
    with h4:
        st.number_input("IVA %", min_value=0.0, max_value=100.0, step=1.0, key=f"{tipo}.tax_pct")

    # ---- Cliente y Emisor ----
    col_cli, col_emi = st.columns(2)
    with col_cli:
        st.markdown("#### Cliente")
        modo = st.radio(
            "Modo", ["Cliente existente", "Cliente nuevo"], horizontal=True,
            key=f"{tipo}.modo_cliente", label_visibility="collapsed",
            on_change=_limpiar_cliente, args=(tipo,),
        )
        existente = modo == "Cliente existente"
        if existente:
            token = st.text_input("Buscar cliente", key=f"{tipo}.busqueda", placeholder="Escriba RUT o Nombre… (mín. 2 letras)")
            sugerencias = buscar_clientes(df_clientes, token)
            if len((token or "").strip()) >= 2:
                if sugerencias.empty:
                    st.caption("Sin coincidencias.")
                else:
                    st.selectbox(
                        "Coincidencias",
                        [""] + [etiqueta_cliente(r) for _, r in sugerencias.iterrows()],
                        key=f"{tipo}.sugerencia",
                        on_change=_aplicar_cliente, args=(tipo, sugerencias),
                    )
        else:
            st.info("Modo “Cliente nuevo” activo: completa todos los campos del cliente.")
        for key, label in CLIENT_FIELDS:
            st.text_input(label, key=f"{tipo}.cliente.{key}")

    with col_emi:
        st.markdown("#### Emisor")
        st.text_input("Empresa", value=BRAND["name"], disabled=True, key=f"{tipo}.issuer.name_ro")
        st.text_input("RUT", value=BRAND["rut"], disabled=True, key=f"{tipo}.issuer.rut_ro")
        st.text_input("Dirección", value=cfg["direccion_emisor"], disabled=True, key=f"{tipo}.issuer.address_ro")
        for key, label in ISSUER_FIELDS:
            st.text_input(label, key=f"{tipo}.issuer.{key}")

    # ---- Ítems ----
    st.markdown("#### 📦 Productos")
    col_prod, col_add = st.columns([4, 1])
    with col_prod:
        st.selectbox(
            "Agregar desde catálogo",
            [""] + [etiqueta_producto(r) for _, r in df_catalogo.iterrows()],
            key=f"{tipo}.producto",
        )
    with col_add:
        st.button("Agregar", on_click=_agregar_producto, args=(tipo, df_catalogo), key=f"{tipo}.agregar")

    edited = st.data_editor(
        build_items_dataframe(st.session_state[f"{tipo}.items"]),
        key=f"{tipo}.items_editor",
        num_rows="dynamic",
        use_container_width=True,
        hide_index=True,
        column_order=ITEM_COLUMNS + ["precio_venta", "total"],
        column_config={
            "codigo": st.column_config.TextColumn("Código"),
            "descripcion": st.column_config.TextColumn("Descripción", width="large"),
            "kilos": st.column_config.NumberColumn("Kilos", min_value=0.0),
            "cantidad": st.column_config.NumberColumn("Cantidad", min_value=0.0, step=1.0),
            "precio_kg": st.column_config.NumberColumn("$/Kg", min_value=0.0, format="$%d"),
            "descuento_pct": st.column_config.NumberColumn("Desc %", min_value=0.0, max_value=100.0),
            "precio_venta": st.column_config.NumberColumn("Precio Venta", disabled=True, format="$%d"),
            "total": st.column_config.NumberColumn("Total", disabled=True, format="$%d"),
        },
    )
    base = build_items_dataframe(edited[STATE_COLUMNS])
    completo = autocompletar_items(base, df_catalogo)
    if not completo.equals(base):
        st.session_state[f"{tipo}.items"] = completo[STATE_COLUMNS]
        st.session_state.pop(f"{tipo}.items_editor", None)
        st.rerun()
    items = base

    # ---- Totales ----
    tot = totales(items, float(st.session_state[f"{tipo}.tax_pct"]))
    t1, t2, t3 = st.columns(3)
    t1.metric("Subtotal", money(tot["subtotal"]))
    t2.metric(f"IVA ({st.session_state[f'{tipo}.tax_pct']:g}%)", money(tot["iva"]))
    t3.metric("Total", money(tot["total"]))

    # ---- Documento ----
    cliente = {key: st.session_state[f"{tipo}.cliente.{key}"] for key, _ in CLIENT_FIELDS}
    emisor = {
        "name": BRAND["name"],
        "rut": BRAND["rut"],
        "address": cfg["direccion_emisor"],
        **{key: st.session_state[f"{tipo}.issuer.{key}"] for key, _ in ISSUER_FIELDS},
    }
    numero = st.session_state[f"{tipo}.number"]
    fecha = st.session_state[f"{tipo}.date"]

    st.download_button(
        "Descargar Excel",
        data=build_quote_excel(cfg["titulo"], numero, fecha, cliente, items, tot),
        file_name=quote_filename(numero, cliente["name"], "xlsx"),
        mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        key=f"{tipo}.excel",
    )

    html_body = build_quote_html(
        cfg["titulo"],
        numero,
        fecha,
        st.session_state[f"{tipo}.validity"],
        cliente,
        emisor,
        items,
        tot,
        logo_src=_logo_src(LOGO_DOCUMENTOS_URL),
        cuenta=cfg["cuenta"],
    )
    render_pdf_component(html_body, quote_filename(numero, cliente["name"]))
