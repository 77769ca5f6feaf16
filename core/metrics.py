# core/metrics.py

import pandas as pd  # Cálculos tabulares

from core.config import GERENCIA_METAS

COLOR_OK = "#4CAF50"      # ventas >= meta
COLOR_CERCA = "#F9D423"   # ventas >= 80% de la meta
COLOR_BAJO = "#FF4E50"


def resumen_metas(df_metas: pd.DataFrame, prefijo: str = GERENCIA_METAS) -> dict:
    """
    KPIs de la pestaña Metas para una gerencia (por defecto FB = Food):
      - total_meta, total_ventas, total_cumplimiento
      - progreso_pct (ventas / meta * 100; 0 si no hay meta)
    Espera columnas ya normalizadas: ['Gerencia','Ventas','Meta','Cumplimiento'].
    """
    if df_metas is None or df_metas.empty or "Gerencia" not in df_metas.columns:
        return {"total_meta": 0.0, "total_ventas": 0.0, "total_cumplimiento": 0.0, "progreso_pct": 0.0}

    m = df_metas["Gerencia"].astype(str).str.startswith(prefijo)
    sub = df_metas.loc[m]

    total_meta = float(sub["Meta"].sum())
    total_ventas = float(sub["Ventas"].sum())
    total_cumplimiento = float(sub["Cumplimiento"].sum())
    progreso = (total_ventas / total_meta * 100.0) if total_meta > 0 else 0.0

    return {
        "total_meta": total_meta,
        "total_ventas": total_ventas,
        "total_cumplimiento": total_cumplimiento,
        "progreso_pct": progreso,
    }


def color_avance(ventas: float, meta: float) -> str:
    """Semáforo del odómetro: verde si cumple, amarillo desde 80%, rojo bajo eso."""
    if ventas >= meta:
        return COLOR_OK
    if ventas >= meta * 0.8:
        return COLOR_CERCA
    return COLOR_BAJO
