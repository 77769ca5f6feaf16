# core/normalize.py

# Importamos pandas para manipular DataFrames
import pandas as pd  # Tablas y transformación de datos
import math
import re
import unicodedata

# Esquemas canónicos (lo que el resto de la app espera siempre)
CLIENTES_COLS = ["RazonSocial", "RUT", "CodigoCliente", "Direccion", "CondicionPago", "Giro"]
CATALOGO_COLS = ["Codigo", "Nombre", "PrecioLista", "Costo", "Kilos"]
METAS_COLS = ["Gerencia", "Ventas", "Meta", "Cumplimiento"]

# Encabezados aceptados en el catálogo (la hoja ha cambiado de formato varias veces)
_CAT_CODIGO = ["code", "Code", "Codigo", "Código"]
_CAT_NOMBRE = ["name", "Nombre", "Producto"]
_CAT_PRECIO = ["price_list", "PrecioLista", "Precio Lista", "Precio"]
_CAT_COSTO = ["cost", "Costo"]
_CAT_KILOS = ["kilos", "Kilos"]

# Posiciones de columnas en la pestaña Metas
_METAS_POS = {"Gerencia": 1, "Ventas": 6, "Meta": 8, "Cumplimiento": 9}


# -------------------- Números --------------------
def _is_number(x) -> bool:
    return isinstance(x, (int, float)) and not isinstance(x, bool)


def num(x) -> float:
    """Número finito o 0 (None, '', 'abc', NaN -> 0)."""
    if x is None:
        return 0.0
    if _is_number(x):
        v = float(x)
    else:
        s = str(x).strip()
        if not s:
            return 0.0
        try:
            v = float(s)
        except ValueError:
            return 0.0
    return v if math.isfinite(v) else 0.0


def parse_number(x) -> float:
    """
    Limpia todo lo que no sea dígito, '.' o '-' y convierte ("$ 1500" -> 1500).
    Pensado para la hoja Metas, que exporta montos con símbolo.
    """
    if x is None or x == "":
        return 0.0
    if _is_number(x):
        return num(x)
    cleaned = re.sub(r"[^0-9.\-]+", "", str(x))
    return num(cleaned)


def to_number(x) -> float:
    """
    Convierte texto con formato es-CL a float:
      "$1.234,5" -> 1234.5   |  "1.234.567" -> 1234567   |  "12,5" -> 12.5
    Valores inválidos -> 0.
    """
    if x is None:
        return 0.0
    if _is_number(x):
        return num(x)
    s = re.sub(r"[^0-9,.\-]", "", str(x))
    s = re.sub(r"\.(?=\d{3}(\D|$))", "", s)   # puntos de miles
    s = s.replace(",", ".", 1)                 # coma decimal
    return num(s)


# -------------------- Texto --------------------
def normalize_text(s) -> str:
    """Minúsculas y sin tildes ('Cámara' -> 'camara')."""
    raw = "" if s is None else str(s)
    decomposed = unicodedata.normalize("NFD", raw)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch)).lower()


def _clean_str(series: pd.Series) -> pd.Series:
    return series.fillna("").astype(str).str.strip()


def _first_column(df: pd.DataFrame, candidates: list[str]) -> pd.Series | None:
    for c in candidates:
        if c in df.columns:
            return df[c]
    return None


# -------------------- Clientes --------------------
def normalizar_clientes(df: pd.DataFrame) -> pd.DataFrame:
    """
    Hoja de clientes (export del ERP) -> esquema canónico CLIENTES_COLS.
    Dirección = despacho + comuna + ciudad (solo partes no vacías, separadas por ", ").
    """
    if df is None or df.empty:
        return pd.DataFrame(columns=CLIENTES_COLS)

    src = df.copy()

    def col(*names: str) -> pd.Series:
        found = _first_column(src, list(names))
        if found is None:
            return pd.Series([""] * len(src), index=src.index)
        return _clean_str(found)

    out = pd.DataFrame(index=src.index)
    out["RazonSocial"] = col("CardName")
    out["RUT"] = col("RUT")
    out["CodigoCliente"] = col("CardCode")

    partes = pd.concat(
        [col("Direccion Despacho", "Dirección Despacho"), col("Despacho Comuna"), col("Despacho Ciudad")],
        axis=1,
    )
    out["Direccion"] = partes.apply(lambda r: ", ".join(p for p in r if p), axis=1)
    out["CondicionPago"] = col("Condicion pago")
    out["Giro"] = col("Giro")

    return out[CLIENTES_COLS].reset_index(drop=True)


# -------------------- Catálogo --------------------
def normalizar_catalogo(df: pd.DataFrame) -> pd.DataFrame:
    """
    Catálogo de productos -> CATALOGO_COLS.
    - Codigo en mayúsculas; filas sin código se descartan; si un código se repite gana la última fila.
    - Costo / Kilos quedan NaN solo cuando la hoja no trae esa columna.
    """
    if df is None or df.empty:
        return pd.DataFrame(columns=CATALOGO_COLS)

    codigo = _first_column(df, _CAT_CODIGO)
    if codigo is None:
        return pd.DataFrame(columns=CATALOGO_COLS)

    out = pd.DataFrame(index=df.index)
    out["Codigo"] = _clean_str(codigo).str.upper()

    nombre = _first_column(df, _CAT_NOMBRE)
    out["Nombre"] = _clean_str(nombre) if nombre is not None else ""

    precio = _first_column(df, _CAT_PRECIO)
    out["PrecioLista"] = precio.apply(to_number) if precio is not None else 0.0

    costo = _first_column(df, _CAT_COSTO)
    out["Costo"] = costo.apply(to_number) if costo is not None else float("nan")

    kilos = _first_column(df, _CAT_KILOS)
    out["Kilos"] = kilos.apply(to_number) if kilos is not None else float("nan")

    out = out[out["Codigo"] != ""]
    out = out.drop_duplicates(subset=["Codigo"], keep="last").sort_values("Codigo")
    return out[CATALOGO_COLS].reset_index(drop=True)


# -------------------- Metas --------------------
def normalizar_metas(df: pd.DataFrame) -> pd.DataFrame:
    """
    Pestaña Metas (sin encabezados confiables): se lee por posición.
      col 1 = Gerencia, col 6 = Ventas, col 8 = Meta, col 9 = Cumplimiento $
    """
    if df is None or df.empty:
        return pd.DataFrame(columns=METAS_COLS)

    out = pd.DataFrame(index=df.index)
    for name, pos in _METAS_POS.items():
        if pos < df.shape[1]:
            serie = df.iloc[:, pos]
        else:
            serie = pd.Series([""] * len(df), index=df.index)
        if name == "Gerencia":
            out[name] = _clean_str(serie)
        else:
            out[name] = serie.apply(parse_number)

    return out[METAS_COLS].reset_index(drop=True)
