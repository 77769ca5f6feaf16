# =========================
# charts.py
# Gráficos del panel (Altair)
# =========================

import pandas as pd  # DataFrames
import altair as alt # Gráficas declarativas

from core.metrics import color_avance


def chart_gauge_avance(ventas: float, meta: float, height: int = 220) -> alt.LayerChart:
    """
    Odómetro de avance de ventas vs meta (semicírculo).
    Color según color_avance: verde si cumple, amarillo desde 80%, rojo bajo eso.
    """
    meta = float(meta or 0.0)
    ventas = float(ventas or 0.0)
    ratio = min(max(ventas / meta, 0.0), 1.0) if meta > 0 else 0.0
    color = color_avance(ventas, meta)

    df = pd.DataFrame(
        {
            "Tramo": ["Avance", "Restante"],
            "Valor": [ratio, 1.0 - ratio],
            "Color": [color, "#e5e7eb"],
        }
    )

    arc = (
        alt.Chart(df)
        .mark_arc(innerRadius=70, outerRadius=105)
        .encode(
            theta=alt.Theta("Valor:Q", stack=True, scale=alt.Scale(range=[-1.5708, 1.5708])),
            color=alt.Color("Color:N", scale=None, legend=None),
            order=alt.Order("Tramo:N", sort="ascending"),
            tooltip=[alt.Tooltip("Tramo:N"), alt.Tooltip("Valor:Q", format=".1%")],
        )
    )

    label = (
        alt.Chart(pd.DataFrame({"txt": [f"{ratio * 100:.1f}%"]}))
        .mark_text(fontSize=22, fontWeight="bold", dy=-10, color="#1e293b")
        .encode(text="txt:N")
    )

    return (arc + label).properties(height=height)


def chart_margenes_por_linea(lines: pd.DataFrame) -> alt.Chart:
    """
    Barras horizontales del margen final (Mgn 3) por producto: verde >= 0, rojo < 0.
    Espera columnas: ['code','name','mgn3'].
    """
    needed = {"code", "name", "mgn3"}
    if lines is None or lines.empty or not needed.issubset(lines.columns):
        return alt.Chart(pd.DataFrame({"Producto": [], "Margen": []})).mark_bar()

    df = pd.DataFrame(
        {
            "Producto": [
                (f"{c} — {n}" if n else c) or f"Línea {i + 1}"
                for i, (c, n) in enumerate(zip(lines["code"], lines["name"]))
            ],
            "Margen": lines["mgn3"].astype(float),
        }
    )

    return (
        alt.Chart(df)
        .mark_bar()
        .encode(
            x=alt.X("Margen:Q", title="Mgn final ($/mes)"),
            y=alt.Y("Producto:N", sort="-x", title=None),
            color=alt.condition("datum.Margen >= 0", alt.value("#16a34a"), alt.value("#dc2626")),
            tooltip=[
                alt.Tooltip("Producto:N"),
                alt.Tooltip("Margen:Q", title="Mgn final", format=",.0f"),
            ],
        )
        .properties(height=max(120, 32 * len(df)))
    )
