# ui/kpis.py

# Importamos Streamlit para renderizar UI
import streamlit as st  # Componentes visuales

from commissions import Evaluacion
from core.formatting import money, pct


def _card(label: str, value: str, color: str = "") -> str:
    style = f' style="color:{color}"' if color else ""
    return (
        f'<div class="kpi-card"><p class="kpi-label">{label}</p>'
        f'<p class="kpi-value"{style}>{value}</p></div>'
    )


def render_kpis_metas(resumen: dict):
    """
    Tres tarjetas de la pestaña Metas: Meta total, Total ventas y Cumplimiento $.
    El cumplimiento va en verde si es >= 0 y en rojo si es negativo.
    """
    k1, k2, k3 = st.columns(3)

    with k1:
        st.markdown(_card("Meta total", money(resumen["total_meta"])), unsafe_allow_html=True)

    with k2:
        st.markdown(_card("Total ventas", money(resumen["total_ventas"])), unsafe_allow_html=True)

    with k3:
        cumplimiento = resumen["total_cumplimiento"]
        color = "#16a34a" if cumplimiento >= 0 else "#dc2626"
        st.markdown(_card("Cumplimiento $", money(cumplimiento), color), unsafe_allow_html=True)


def render_kpis_evaluacion(ev: Evaluacion, months: float):
    """Franja de KPIs de la evaluación (venta, comodato, relación, comisión, margen final)."""
    cols = st.columns(6)
    datos = [
        ("Venta mensual", money(ev.venta_total), ""),
        ("Comodato contrato", money(ev.total_comodato), ""),
        (f"Comodato mensual ({int(months)} m)", money(ev.comodato_mensual), ""),
        ("% Relación cdto/vta", pct(ev.rel), ""),
        ("% Comisión final", pct(ev.com_final_pct), ""),
        ("% Mgn final", pct(ev.mgn_final_pct), "#16a34a" if ev.es_viable else "#dc2626"),
    ]
    for col, (label, value, color) in zip(cols, datos):
        with col:
            st.markdown(_card(label, value, color), unsafe_allow_html=True)
