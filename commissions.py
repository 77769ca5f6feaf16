# commissions.py
# ============================================================
# Evaluación de Negocio con comodato (equipos en préstamo).
# Reglas:
#  - Venta mensual por producto = $/kg cliente * kilos/mes (kilos/mes = cantidad * kilos del formato).
#  - Comodato mensual = total del contrato / meses.
#  - Relación cdto/venta = comodato mensual / venta total.
#  - El comodato mensual se reparte entre productos según sus kilos/mes.
#  - Comisión final por producto = comisión base * (1 - relación) * venta del producto.
#  - Mgn (2) = margen directo - comodato asignado;  Mgn final (3) = Mgn (2) - comisión.
#  - Viable si Mgn final total / venta total >= 0,50%.
# ============================================================

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

import pandas as pd

from core.config import COMISION_BASE_DEFAULT, MESES_CONTRATO_DEFAULT, VIABILITY_THRESHOLD

# ---------- Columnas esperadas ----------
SALE_COLUMNS = ["code", "name", "kilos", "qty", "price_kg", "price_list_kg", "cost_kg"]
COM_COLUMNS = ["code", "name", "price_contract", "qty"]
# Columna oculta de la grilla: último código completado desde el catálogo
AUTO_COLUMN = "code_auto"
SALE_STATE_COLUMNS = SALE_COLUMNS + [AUTO_COLUMN]
COM_STATE_COLUMNS = COM_COLUMNS + [AUTO_COLUMN]

SALE_DEFAULTS = {"code": "", "name": "", "kilos": 1.0, "qty": 1.0, "price_kg": 0.0, "price_list_kg": 0.0, "cost_kg": float("nan"), AUTO_COLUMN: ""}
COM_DEFAULTS = {"code": "", "name": "", "price_contract": 0.0, "qty": 1.0, AUTO_COLUMN: ""}


# ---------- Utilidades "blandas" (no rompen si faltan columnas) ----------
def ensure_min_columns(df: pd.DataFrame, columns_with_defaults: dict) -> pd.DataFrame:
    """
    Asegura que el DataFrame tenga las columnas clave. Si no existen, las crea con default.
    """
    df = pd.DataFrame(columns=list(columns_with_defaults)) if df is None else df.copy()
    for col, default in columns_with_defaults.items():
        if col not in df.columns:
            df[col] = default
    return df


def _ratio(a: float, b: float) -> float:
    return a / b if b > 0 else 0.0


def nueva_linea_venta() -> dict:
    return dict(SALE_DEFAULTS)


def nueva_linea_comodato() -> dict:
    return dict(COM_DEFAULTS)


def preparar_ventas(sales: pd.DataFrame) -> pd.DataFrame:
    df = ensure_min_columns(sales, SALE_DEFAULTS)[SALE_STATE_COLUMNS]
    for col in ("kilos", "qty", "price_kg", "price_list_kg"):
        df[col] = pd.to_numeric(df[col], errors="coerce").fillna(0.0)
    # costo vacío = "sin costo" (se trata como 0 en el cálculo, pero se distingue al mostrar)
    df["cost_kg"] = pd.to_numeric(df["cost_kg"], errors="coerce")
    df["code"] = df["code"].fillna("").astype(str)
    df["name"] = df["name"].fillna("").astype(str)
    df[AUTO_COLUMN] = df[AUTO_COLUMN].fillna("").astype(str)
    return df.reset_index(drop=True)


def preparar_comodatos(comodatos: pd.DataFrame) -> pd.DataFrame:
    df = ensure_min_columns(comodatos, COM_DEFAULTS)[COM_STATE_COLUMNS]
    for col in ("price_contract", "qty"):
        df[col] = pd.to_numeric(df[col], errors="coerce").fillna(0.0)
    df["code"] = df["code"].fillna("").astype(str)
    df["name"] = df["name"].fillna("").astype(str)
    df[AUTO_COLUMN] = df[AUTO_COLUMN].fillna("").astype(str)
    return df.reset_index(drop=True)


# ---------- Cálculos base ----------
def calc_lineas_venta(sales: pd.DataFrame) -> pd.DataFrame:
    """
    Métricas directas por producto:
      kilos_mes, venta, costo, mgn_directo, mgn_dir_pct
    Un formato sin kilos (0 o vacío) cuenta como 1 kg.
    """
    df = preparar_ventas(sales)
    kilos_formato = df["kilos"].where(df["kilos"] != 0, 1.0)
    df["kilos_mes"] = df["qty"] * kilos_formato
    df["venta"] = df["price_kg"] * df["kilos_mes"]
    df["costo"] = df["cost_kg"].fillna(0.0) * df["kilos_mes"]
    df["mgn_directo"] = df["venta"] - df["costo"]
    df["mgn_dir_pct"] = [_ratio(m, v) for m, v in zip(df["mgn_directo"], df["venta"])]
    return df


def calc_total_comodato(comodatos: pd.DataFrame) -> float:
    """Total del contrato = suma de precio $/contrato * cantidad."""
    df = preparar_comodatos(comodatos)
    return float((df["price_contract"] * df["qty"]).sum())


def calc_comodato_mensual(total_comodato: float, months: float) -> float:
    return total_comodato / months if months > 0 else 0.0


def asignar_comodato(lines: pd.DataFrame, comodato_mensual: float) -> pd.Series:
    """Reparte el comodato mensual entre productos en proporción a kilos/mes."""
    total_kilos = float(lines["kilos_mes"].sum()) if not lines.empty else 0.0
    if total_kilos <= 0:
        return pd.Series(0.0, index=lines.index)
    return lines["kilos_mes"] / total_kilos * comodato_mensual


# ---------- Resultado ----------
@dataclass
class Evaluacion:
    lines: pd.DataFrame
    venta_total: float
    total_comodato: float
    comodato_mensual: float
    rel: float
    mgn_final_pct: float
    com_final_pct: float
    threshold: float = VIABILITY_THRESHOLD

    @property
    def es_viable(self) -> bool:
        return self.mgn_final_pct >= self.threshold

    @property
    def estado(self) -> str:
        return "Viable" if self.es_viable else "No viable"


def evaluar_negocio(
    sales: pd.DataFrame,
    comodatos: pd.DataFrame,
    months: float = MESES_CONTRATO_DEFAULT,
    commission_pct: float = COMISION_BASE_DEFAULT,
    threshold: float = VIABILITY_THRESHOLD,
) -> Evaluacion:
    """
    Orquesta el cálculo completo de la evaluación.
    - sales:     líneas de venta mensual (SALE_COLUMNS)
    - comodatos: equipos del contrato (COM_COLUMNS)
    - months:    meses del contrato
    - commission_pct: comisión base como proporción (0.105 = 10,5%)
    """
    lines = calc_lineas_venta(sales)
    venta_total = float(lines["venta"].sum())

    total_comodato = calc_total_comodato(comodatos)
    comodato_mensual = calc_comodato_mensual(total_comodato, months)
    rel = _ratio(comodato_mensual, venta_total)

    lines["cdto_asignado"] = asignar_comodato(lines, comodato_mensual)
    lines["comision"] = commission_pct * (1 - rel) * lines["venta"]
    lines["mgn2"] = lines["mgn_directo"] - lines["cdto_asignado"]
    lines["mgn2_pct"] = [_ratio(m, v) for m, v in zip(lines["mgn2"], lines["venta"])]
    lines["mgn3"] = lines["mgn2"] - lines["comision"]
    lines["mgn3_pct"] = [_ratio(m, v) for m, v in zip(lines["mgn3"], lines["venta"])]

    return Evaluacion(
        lines=lines,
        venta_total=venta_total,
        total_comodato=total_comodato,
        comodato_mensual=comodato_mensual,
        rel=rel,
        mgn_final_pct=_ratio(float(lines["mgn3"].sum()), venta_total),
        com_final_pct=_ratio(float(lines["comision"].sum()), venta_total),
        threshold=threshold,
    )


# ---------- Autocompletado desde catálogo ----------
def _buscar_codigo(df_catalogo: pd.DataFrame, code: str) -> Optional[pd.Series]:
    if df_catalogo is None or df_catalogo.empty:
        return None
    key = str(code or "").strip().upper()
    if not key:
        return None
    hit = df_catalogo.loc[df_catalogo["Codigo"] == key]
    return None if hit.empty else hit.iloc[0]


def _codigo_nuevo(line: dict) -> bool:
    """True si el código cambió desde el último completado (las ediciones manuales se respetan)."""
    code = str(line.get("code") or "").strip().upper()
    return bool(code) and code != str(line.get(AUTO_COLUMN) or "").strip().upper()


def completar_linea_venta(line: dict, df_catalogo: pd.DataFrame) -> dict:
    """
    Completa una línea de venta con el catálogo (búsqueda por código, sin distinguir mayúsculas):
      - nombre, kilos del formato (1 si no trae), precio lista
      - precio venta $/kg solo si aún está en 0
      - costo $/kg solo si el catálogo lo informa
    Solo actúa cuando el código cambió desde el último completado.
    Código desconocido -> la línea queda igual.
    """
    if not _codigo_nuevo(line):
        return dict(line)
    row = _buscar_codigo(df_catalogo, line.get("code", ""))
    if row is None:
        return dict(line)
    out = dict(line)
    precio = float(row.get("PrecioLista") or 0.0)
    kilos = row.get("Kilos")
    out["code"] = out[AUTO_COLUMN] = row["Codigo"]
    out["name"] = row.get("Nombre", "")
    out["kilos"] = float(kilos) if pd.notna(kilos) and kilos else 1.0
    out["price_list_kg"] = precio
    if not float(out.get("price_kg") or 0.0):
        out["price_kg"] = precio
    if pd.notna(row.get("Costo")):
        out["cost_kg"] = float(row["Costo"])
    return out


def completar_linea_comodato(line: dict, df_catalogo: pd.DataFrame) -> dict:
    """Equipo en comodato: nombre desde catálogo y precio $/contrato solo si está en 0."""
    if not _codigo_nuevo(line):
        return dict(line)
    row = _buscar_codigo(df_catalogo, line.get("code", ""))
    if row is None:
        return dict(line)
    out = dict(line)
    out["code"] = out[AUTO_COLUMN] = row["Codigo"]
    out["name"] = row.get("Nombre", "")
    if not float(out.get("price_contract") or 0.0):
        out["price_contract"] = float(row.get("PrecioLista") or 0.0)
    return out


def completar_desde_catalogo(df: pd.DataFrame, df_catalogo: pd.DataFrame, *, comodato: bool = False) -> pd.DataFrame:
    """Aplica el autocompletado a toda la grilla (ventas o comodatos)."""
    prepared = preparar_comodatos(df) if comodato else preparar_ventas(df)
    fn = completar_linea_comodato if comodato else completar_linea_venta
    rows = [fn(r, df_catalogo) for r in prepared.to_dict("records")]
    cols = COM_STATE_COLUMNS if comodato else SALE_STATE_COLUMNS
    return pd.DataFrame(rows, columns=cols)
