# ============================================================
# entities.py
# Datos maestros del panel, cacheados 2 minutos:
# - Clientes (export del ERP)
# - Catálogo de productos (URL configurable por la Administradora)
# - Metas de ventas (Inicio)
# Los errores de carga no rompen la página: DataFrame vacío + mensaje en session_state.
# ============================================================

from __future__ import annotations

from datetime import datetime
from typing import Tuple

import pandas as pd
import streamlit as st

from core.config import CLIENTES_GID, CLIENTES_SHEET_ID, METAS_GID, METAS_SHEET_ID
from core.logging_config import get_logger
from core.normalize import (
    CATALOGO_COLS,
    CLIENTES_COLS,
    METAS_COLS,
    normalizar_catalogo,
    normalizar_clientes,
    normalizar_metas,
)
from sheets import SheetLoadError, get_client_or_none, get_session, load_sheet, load_sheet_from_url

log = get_logger("entities")


@st.cache_resource(show_spinner=False)
def _gspread_client():
    return get_client_or_none()


@st.cache_resource(show_spinner=False)
def _http_session():
    return get_session()


# -------------------- Carga con cache --------------------
# Devuelven (df, error). El error viaja como texto para que la cache lo conserve.
@st.cache_data(ttl=120, show_spinner=False)
def _load_clientes() -> Tuple[pd.DataFrame, str]:
    try:
        raw = load_sheet(
            CLIENTES_SHEET_ID, CLIENTES_GID, "Clientes",
            client=_gspread_client(), session=_http_session(),
        )
    except SheetLoadError as exc:
        return pd.DataFrame(columns=CLIENTES_COLS), str(exc)
    df = normalizar_clientes(raw)
    log.info("Clientes cargados: %d filas.", len(df))
    return df, ""


@st.cache_data(ttl=120, show_spinner=False)
def _load_catalogo(url: str) -> Tuple[pd.DataFrame, str]:
    try:
        raw = load_sheet_from_url(url, "Catálogo", client=_gspread_client(), session=_http_session())
    except SheetLoadError as exc:
        return pd.DataFrame(columns=CATALOGO_COLS), str(exc)
    df = normalizar_catalogo(raw)
    log.info("Catálogo cargado: %d productos.", len(df))
    return df, ""


@st.cache_data(ttl=120, show_spinner=False)
def _load_metas() -> Tuple[pd.DataFrame, str]:
    try:
        raw = load_sheet(
            METAS_SHEET_ID, METAS_GID, "Metas",
            client=_gspread_client(), session=_http_session(),
        )
    except SheetLoadError as exc:
        return pd.DataFrame(columns=METAS_COLS), str(exc)
    return normalizar_metas(raw), ""


# -------------------- API para las páginas --------------------
def get_clientes() -> pd.DataFrame:
    df, err = _load_clientes()
    st.session_state["clientes_error"] = err
    return df


def get_catalogo(url: str) -> pd.DataFrame:
    df, err = _load_catalogo((url or "").strip())
    st.session_state["catalogo_error"] = err
    return df


def get_metas() -> pd.DataFrame:
    df, err = _load_metas()
    st.session_state["metas_error"] = err
    return df


def refresh_data() -> None:
    """Botón 'Actualizar datos': invalida la cache y marca la hora de recarga."""
    _load_clientes.clear()
    _load_catalogo.clear()
    _load_metas.clear()
    st.session_state["datos_actualizados"] = datetime.now()


def last_update() -> datetime:
    return st.session_state.setdefault("datos_actualizados", datetime.now())
