# ===========================
# sheets.py
# Lectura de Google Sheets: cuenta de servicio (opcional) -> export CSV público -> GViz JSON
# ===========================

# Importa gspread para hojas privadas (solo si hay cuenta de servicio)
import gspread  # Cliente para Google Sheets
# Importa pandas para manipular DataFrames
import pandas as pd  # DataFrame y utilidades
# Creador de credenciales para cuentas de servicio
from google.oauth2.service_account import Credentials  # Credenciales (service account)
# Streamlit para leer secretos desde .streamlit/secrets.toml
import streamlit as st  # st.secrets
import time, requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry
from gspread.exceptions import APIError

import io
import json
import re
from dataclasses import dataclass

from core.config import HTTP_TIMEOUT, SERVICE_ACCOUNT_FILE
from core.logging_config import get_logger

log = get_logger("sheets")

# Scopes de solo lectura: el panel nunca escribe en las hojas
SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets.readonly",
    "https://www.googleapis.com/auth/drive.readonly",
]

_SHEETS_BASE = "https://docs.google.com/spreadsheets/d"


class SheetLoadError(RuntimeError):
    """Ninguna de las fuentes (cuenta de servicio, CSV, GViz) pudo leerse."""


@dataclass(frozen=True)
class SheetRef:
    id: str
    gid: str
    csv_url: str


# -------------------- URLs --------------------
def csv_export_url(sheet_id: str, gid: str | int) -> str:
    return f"{_SHEETS_BASE}/{sheet_id}/export?format=csv&gid={gid}"


def gviz_url(sheet_id: str, gid: str | int) -> str:
    return f"{_SHEETS_BASE}/{sheet_id}/gviz/tq?tqx=out:json&gid={gid}"


def normalize_sheet_url(url: str) -> SheetRef:
    """
    Extrae id y gid de cualquier enlace de Google Sheets (edit, export, gviz).
    gid por defecto "0". Si no hay id, csv_url queda vacío.
    """
    url = url or ""
    m = re.search(r"spreadsheets/d/([a-zA-Z0-9-_]+)", url)
    sheet_id = m.group(1) if m else ""
    g = re.search(r"[?&#]gid=([0-9]+)", url)
    gid = g.group(1) if g else "0"
    return SheetRef(sheet_id, gid, csv_export_url(sheet_id, gid) if sheet_id else "")


# -------------------- HTTP --------------------
_session: requests.Session | None = None


def get_session() -> requests.Session:
    """Sesión HTTP compartida con reintentos a nivel transporte (429/5xx)."""
    global _session
    if _session is None:
        retry = Retry(
            total=3,
            backoff_factor=0.5,
            status_forcelist=(429, 500, 502, 503, 504),
            allowed_methods=frozenset(["GET"]),
            raise_on_status=False,
        )
        s = requests.Session()
        s.mount("https://", HTTPAdapter(max_retries=retry))
        s.mount("http://", HTTPAdapter(max_retries=retry))
        _session = s
    return _session


def _get_text(url: str, session: requests.Session | None = None) -> str:
    """GET sin caché (parámetro ts) -> texto UTF-8. Lanza en status no-2xx."""
    s = session or get_session()
    resp = s.get(url, params={"ts": int(time.time() * 1000)}, timeout=HTTP_TIMEOUT)
    resp.raise_for_status()
    resp.encoding = "utf-8"
    return resp.text


# -------------------- Parsers --------------------
def _make_unique_headers(raw_headers: list[str]) -> list[str]:
    unique, seen = [], {}
    for idx, header in enumerate(raw_headers):
        name = str(header or "").strip() or f"col_{idx+1}"
        if name in seen:
            seen[name] += 1
            name = f"{name}_{seen[name]}"
        else:
            seen[name] = 0
        unique.append(name)
    return unique


def _rows_to_frame(values: list[list]) -> pd.DataFrame:
    """Primera fila = encabezados; resto = datos (rellenadas/recortadas al ancho del encabezado)."""
    if not values:
        return pd.DataFrame()
    headers = _make_unique_headers(values[0])
    width = len(headers)
    data_rows = [list(row[:width]) + [""] * (width - len(row)) for row in values[1:]]
    df = pd.DataFrame(data_rows, columns=headers)
    if df.empty:
        return df
    # Filas completamente vacías no cuentan
    blank = df.apply(lambda r: all(str(c).strip() == "" for c in r), axis=1)
    return df.loc[~blank].reset_index(drop=True)


def parse_csv(text: str) -> pd.DataFrame:
    """
    CSV (export de Sheets) -> DataFrame de strings.
    Soporta comas y saltos de línea dentro de comillas, comillas escapadas ("") y CRLF.
    Filas cortas se rellenan con ""; celdas sobrantes (más allá del encabezado) se ignoran.
    """
    if not text or not text.strip():
        return pd.DataFrame()
    opts = dict(header=None, engine="python", dtype=str, keep_default_na=False, na_filter=False, skip_blank_lines=True)
    width = pd.read_csv(io.StringIO(text), nrows=1, **opts).shape[1]
    raw = pd.read_csv(
        io.StringIO(text),
        on_bad_lines=lambda bad: bad[:width],
        **opts,
    )
    raw = raw.fillna("").apply(lambda s: s.astype(str).str.strip())
    return _rows_to_frame(raw.values.tolist())


def parse_gviz(text: str) -> pd.DataFrame:
    """
    Respuesta GViz (`google.visualization.Query.setResponse({...});`) -> DataFrame.
    Encabezado = label, si no id. Celda = v, si no f, si no "".
    """
    m = re.search(r"setResponse\(([\s\S]*?)\);?\s*$", text or "")
    if not m:
        raise ValueError("GViz: formato inesperado.")
    try:
        payload = json.loads(m.group(1))
    except json.JSONDecodeError:
        start, end = text.find("{"), text.rfind("}")
        payload = json.loads(text[start:end + 1])

    table = payload["table"]
    headers = _make_unique_headers([
        (c.get("label") or c.get("id") or "col").strip() for c in table.get("cols", [])
    ])
    rows = []
    for r in table.get("rows", []):
        cells = r.get("c") or []
        row = []
        for i in range(len(headers)):
            cell = cells[i] if i < len(cells) else None
            if not cell:
                row.append("")
            elif cell.get("v") is not None:
                row.append(cell["v"])
            elif cell.get("f") is not None:
                row.append(cell["f"])
            else:
                row.append("")
        rows.append(row)
    return pd.DataFrame(rows, columns=headers)


# -------------------- Fuentes públicas --------------------
def fetch_csv(sheet_id: str, gid: str | int, session: requests.Session | None = None) -> pd.DataFrame:
    df = parse_csv(_get_text(csv_export_url(sheet_id, gid), session))
    if df.empty:
        raise ValueError("CSV vacío")
    return df


def fetch_gviz(sheet_id: str, gid: str | int, session: requests.Session | None = None) -> pd.DataFrame:
    df = parse_gviz(_get_text(gviz_url(sheet_id, gid), session))
    if df.empty:
        raise ValueError("GViz vacío")
    return df


# -------------------- Cuenta de servicio (opcional) --------------------
def get_client():
    # 1) Intentar credenciales desde st.secrets
    info = None
    try:
        info = dict(st.secrets["google_service_account"])
    except Exception:
        # Sin secrets.toml o sin el bloque: seguimos con el archivo local
        pass

    # 2) Fallback a archivo local
    if info is None:
        path = SERVICE_ACCOUNT_FILE
        if path and path.exists():
            with open(path, "r", encoding="utf-8") as fh:
                info = json.load(fh)
        else:
            raise RuntimeError(
                "No encontramos credenciales de Google Sheets. "
                "Configura st.secrets['google_service_account'] o la variable PANEL_SERVICE_ACCOUNT_FILE."
            )

    # Arreglar saltos de línea del private_key si vienen escapados
    pk = info.get("private_key", "")
    if "\\n" in pk and "\n" not in pk:
        info["private_key"] = pk.replace("\\n", "\n")

    creds = Credentials.from_service_account_info(info, scopes=SCOPES)
    return gspread.authorize(creds)


def get_client_or_none():
    """Cliente gspread si hay credenciales; None para trabajar solo con hojas públicas."""
    try:
        return get_client()
    except RuntimeError:
        log.debug("Sin cuenta de servicio: se usará solo el export público.")
        return None
    except (ValueError, KeyError) as exc:
        # JSON mal formado o bloque de secrets incompleto (p.ej. sin private_key)
        log.warning("Credenciales de cuenta de servicio inválidas (%s): se usará solo el export público.", exc)
        return None


def _retry(fn, tries=4, base_sleep=0.5, max_sleep=8.0):
    """Ejecuta fn() con reintentos exponenciales ante cuotas/errores 5xx de la API."""
    last = None
    for attempt in range(tries):
        try:
            return fn()
        except APIError as api_err:
            status = getattr(getattr(api_err, "response", None), "status_code", None)
            last = api_err
            if status not in (429, 500, 503):
                break
            time.sleep(min(max_sleep, base_sleep * (2 ** attempt)))
    raise last


def read_worksheet_by_gid(client: gspread.Client, sheet_id: str, gid: str | int) -> pd.DataFrame:
    sh = client.open_by_key(sheet_id)
    ws = sh.get_worksheet_by_id(int(gid))
    return _rows_to_frame(_retry(ws.get_all_values))


# -------------------- Orquestador --------------------
def load_sheet(
    sheet_id: str,
    gid: str | int,
    label: str,
    *,
    client=None,
    session: requests.Session | None = None,
) -> pd.DataFrame:
    """
    Lee una pestaña probando en orden: cuenta de servicio (si `client`), CSV público, GViz.
    Lanza SheetLoadError si ninguna funciona.
    """
    if client is not None:
        try:
            df = read_worksheet_by_gid(client, sheet_id, gid)
            if not df.empty:
                return df
            log.warning("%s: la hoja privada vino vacía, probando export público.", label)
        except (gspread.exceptions.GSpreadException, PermissionError, requests.RequestException, ValueError) as exc:
            # open_by_key: PermissionError (403) o SpreadsheetNotFound (404) si la hoja no está compartida
            log.warning("%s: lectura con cuenta de servicio falló (%s).", label, exc)

    try:
        return fetch_csv(sheet_id, gid, session)
    except (requests.RequestException, ValueError, pd.errors.ParserError) as exc:
        log.warning("%s: CSV falló (%s), probando GViz.", label, exc)

    try:
        return fetch_gviz(sheet_id, gid, session)
    except (requests.RequestException, ValueError, KeyError, TypeError) as exc:
        log.error("%s: GViz falló (%s).", label, exc)

    raise SheetLoadError(f"{label}: no se pudo leer (revisa permisos y gid).")


def load_sheet_from_url(url: str, label: str, **kwargs) -> pd.DataFrame:
    ref = normalize_sheet_url(url)
    if not ref.id:
        raise SheetLoadError(f"{label}: URL inválida.")
    return load_sheet(ref.id, ref.gid, label, **kwargs)


def load_sheet_or_empty(sheet_id: str, gid: str | int, label: str, **kwargs) -> pd.DataFrame:
    """Como load_sheet, pero degrada a DataFrame vacío (el error queda en el log)."""
    try:
        return load_sheet(sheet_id, gid, label, **kwargs)
    except SheetLoadError as exc:
        log.error("%s", exc)
        return pd.DataFrame()
