# core/quote.py
# Aritmética y búsquedas de Cotización / Nota de Venta.

from __future__ import annotations

from datetime import date
from typing import Optional

import pandas as pd

from core.config import FORMA_PAGO_DEFAULT, IMPUESTO_PCT, VALIDEZ_DEFAULT
from core.normalize import normalize_text, to_number

ITEM_COLUMNS = ["codigo", "descripcion", "kilos", "cantidad", "precio_kg", "descuento_pct"]
_ITEM_NUMERIC = ["kilos", "cantidad", "precio_kg", "descuento_pct"]
# Columna oculta de la grilla: último código completado desde el catálogo
AUTO_COLUMN = "codigo_auto"
STATE_COLUMNS = ITEM_COLUMNS + [AUTO_COLUMN]

MIN_CHARS_BUSQUEDA = 2
LIMITE_SUGERENCIAS = 50

# Tipos de documento de venta: comparten formulario, cambian título, prefijo y datos del emisor
TIPOS_DOCUMENTO = {
    "cotizacion": {
        "titulo": "COTIZACIÓN",
        "prefijo": "CTZ",
        "direccion_emisor": "Cerro Santa Lucia 9873, Quilicura",
        "cuenta": "25013084",
    },
    "nota_venta": {
        "titulo": "NOTA DE VENTA",
        "prefijo": "NV",
        "direccion_emisor": "Alameda 1001, Santiago",
        "cuenta": "25067894",
    },
}

CLIENTE_VACIO = {
    "name": "",
    "rut": "",
    "client_code": "",
    "address": "",
    "condicion_pago": "",
    "giro": "",
}


def numero_documento(prefijo: str, anio: int, secuencia: int) -> str:
    return f"{prefijo}-{anio}-{secuencia:05d}"


def documento_inicial(tipo: str, hoy: Optional[date] = None) -> dict:
    """Encabezado por defecto de un documento nuevo (número 00001 del año en curso)."""
    hoy = hoy or date.today()
    cfg = TIPOS_DOCUMENTO[tipo]
    return {
        "number": numero_documento(cfg["prefijo"], hoy.year, 1),
        "date": hoy,
        "validity": VALIDEZ_DEFAULT,
        "tax_pct": IMPUESTO_PCT,
        "issuer_address": cfg["direccion_emisor"],
        "payment_terms": FORMA_PAGO_DEFAULT,
    }


def empty_items() -> pd.DataFrame:
    return pd.DataFrame(columns=STATE_COLUMNS)


def build_items_dataframe(raw: pd.DataFrame) -> pd.DataFrame:
    """
    Normaliza la grilla de ítems y calcula:
      precio_venta = precio_kg * (1 - descuento_pct/100)
      total        = kilos * cantidad * precio_venta
    """
    df = raw.copy() if raw is not None else empty_items()
    for col in STATE_COLUMNS:
        if col not in df.columns:
            df[col] = "" if col in ("codigo", "descripcion", AUTO_COLUMN) else 0.0
    for col in _ITEM_NUMERIC:
        df[col] = pd.to_numeric(df[col], errors="coerce").fillna(0.0)
    df["codigo"] = df["codigo"].fillna("").astype(str)
    df["descripcion"] = df["descripcion"].fillna("").astype(str)
    df[AUTO_COLUMN] = df[AUTO_COLUMN].fillna("").astype(str)
    df["precio_venta"] = df["precio_kg"] * (1 - df["descuento_pct"] / 100.0)
    df["total"] = df["kilos"] * df["cantidad"] * df["precio_venta"]
    return df.reset_index(drop=True)


def totales(items: pd.DataFrame, impuesto_pct: float = IMPUESTO_PCT) -> dict:
    """Subtotal, IVA y total del documento."""
    if items is None or items.empty:
        subtotal = 0.0
    else:
        if "total" not in items.columns:
            items = build_items_dataframe(items)
        subtotal = float(items["total"].sum())
    iva = subtotal * (impuesto_pct / 100.0)
    return {"subtotal": subtotal, "iva": iva, "total": subtotal + iva}


# -------------------- Clientes --------------------
def buscar_clientes(df_clientes: pd.DataFrame, token: str, limite: int = LIMITE_SUGERENCIAS) -> pd.DataFrame:
    """Coincidencia parcial por RUT o razón social (sin tildes ni mayúsculas). Mínimo 2 caracteres."""
    token = (token or "").strip()
    if df_clientes is None or df_clientes.empty or len(token) < MIN_CHARS_BUSQUEDA:
        return df_clientes.iloc[0:0] if df_clientes is not None else pd.DataFrame()
    q = normalize_text(token)
    rut = df_clientes["RUT"].map(normalize_text)
    nombre = df_clientes["RazonSocial"].map(normalize_text)
    mask = rut.str.contains(q, regex=False) | nombre.str.contains(q, regex=False)
    return df_clientes.loc[mask].head(limite)


def cliente_desde_fila(row) -> dict:
    """Fila canónica de clientes -> datos del cliente en el documento."""
    return {
        "name": str(row.get("RazonSocial", "") or ""),
        "rut": str(row.get("RUT", "") or ""),
        "client_code": str(row.get("CodigoCliente", "") or ""),
        "address": str(row.get("Direccion", "") or ""),
        "condicion_pago": str(row.get("CondicionPago", "") or ""),
        "giro": str(row.get("Giro", "") or ""),
    }


def etiqueta_cliente(row) -> str:
    return f"{row.get('RUT', '')} — {row.get('RazonSocial', '')}"


# -------------------- Catálogo --------------------
def etiqueta_producto(row) -> str:
    return f"{row.get('Codigo', '')} — {row.get('Nombre', '')}"


def buscar_en_catalogo(df_catalogo: pd.DataFrame, token: str) -> Optional[pd.Series]:
    """
    Busca un producto a partir de lo escrito en la grilla (código, nombre o "CÓDIGO — Nombre").
    Orden: código exacto, nombre exacto, código empieza con, nombre empieza con, contiene.
    """
    raw = (token or "").strip()
    if not raw or df_catalogo is None or df_catalogo.empty:
        return None
    codigo_token = raw.split("—")[0].strip() if "—" in raw else raw

    q = normalize_text(raw)
    q_cod = normalize_text(codigo_token)
    codigos = df_catalogo["Codigo"].map(normalize_text)
    nombres = df_catalogo["Nombre"].map(normalize_text)

    criterios = [
        codigos == q_cod,
        nombres == q,
        codigos.str.startswith(q),
        nombres.str.startswith(q),
        codigos.str.contains(q, regex=False) | nombres.str.contains(q, regex=False),
    ]
    for mask in criterios:
        hits = df_catalogo.loc[mask]
        if not hits.empty:
            return hits.iloc[0]
    return None


def item_desde_catalogo(row, cantidad: float = 1.0) -> dict:
    """Producto del catálogo -> ítem (conserva la cantidad ya ingresada; descuento en 0)."""
    return {
        "codigo": str(row.get("Codigo", "") or ""),
        "descripcion": str(row.get("Nombre", "") or ""),
        "kilos": to_number(row.get("Kilos")) if pd.notna(row.get("Kilos")) else 0.0,
        "cantidad": float(cantidad),
        "precio_kg": to_number(row.get("PrecioLista")),
        "descuento_pct": 0.0,
        AUTO_COLUMN: str(row.get("Codigo", "") or ""),
    }


def _pide_autocompletado(r) -> bool:
    """
    Un código distinto al último completado dispara el relleno; sin código, basta una
    descripción en una fila nunca completada. Ediciones posteriores (precio, descripción) se respetan.
    """
    codigo = normalize_text(r["codigo"]).strip()
    if codigo:
        return codigo != normalize_text(r[AUTO_COLUMN]).strip()
    return bool(r["descripcion"].strip()) and not r[AUTO_COLUMN]


def autocompletar_items(items: pd.DataFrame, df_catalogo: pd.DataFrame) -> pd.DataFrame:
    """
    Completa desde el catálogo cada fila cuyo código cambió (o que solo trae descripción).
    La cantidad ya ingresada se conserva. Filas sin coincidencia quedan como están.
    """
    df = build_items_dataframe(items)
    if df.empty or df_catalogo is None or df_catalogo.empty:
        return df
    for i, r in df.iterrows():
        if not _pide_autocompletado(r):
            continue
        hit = buscar_en_catalogo(df_catalogo, r["codigo"] or r["descripcion"])
        if hit is None:
            continue
        item = item_desde_catalogo(hit, cantidad=r["cantidad"])
        for k, v in item.items():
            df.at[i, k] = v
    return build_items_dataframe(df[STATE_COLUMNS])
