# Inicio.py — Login + resumen de metas del área FOOD
import streamlit as st

from charts import chart_gauge_avance
from core.config import GERENCIA_METAS, LOG_LEVEL, WHATSAPP_URL
from core.logging_config import setup_logging
from core.metrics import resumen_metas
from entities import get_metas
from ui.auth import admin_level, login_form
from ui.kpis import render_kpis_metas
from ui.theme import apply_global_theme, render_header

st.set_page_config(page_title="Panel Spartan", page_icon="🏠", layout="wide")
setup_logging(LOG_LEVEL)
apply_global_theme()

# ======= LOGIN =======
status = login_form()

if status is False:
    st.error("Usuario/contraseña inválidos")
    st.stop()
if status is not True:
    # status is None -> aún no se han enviado credenciales
    st.info("Introduce tus credenciales")
    st.stop()

render_header("Panel Principal", f"Bienvenido, {st.session_state.get('name', '')} 👋")

# ======= RESUMEN METAS =======
st.subheader("Resumen Metas Área FOOD")

df_metas = get_metas()
if st.session_state.get("metas_error"):
    st.error(st.session_state["metas_error"])

resumen = resumen_metas(df_metas, GERENCIA_METAS)
render_kpis_metas(resumen)

st.markdown("#### Avance de Ventas vs Meta")
col_gauge, col_pct = st.columns([2, 1])
with col_gauge:
    st.altair_chart(
        chart_gauge_avance(resumen["total_ventas"], resumen["total_meta"]),
        use_container_width=True,
    )
with col_pct:
    st.markdown(
        f'<p style="font-size:2.2rem;font-weight:700;color:#334155;margin-top:60px">'
        f'{resumen["progreso_pct"]:.1f} %</p>',
        unsafe_allow_html=True,
    )

# ======= MÓDULOS =======
st.markdown("### Módulos")
m1, m2, m3, m4 = st.columns(4)
with m1:
    st.page_link("pages/evaluacion_negocio.py", label="Evaluación de Negocio", icon="📈")
    st.caption("Arma la propuesta con comodato, calcula margen y comisión, genera PDF/Word.")
with m2:
    st.page_link("pages/catalogo_equipos.py", label="Catálogo de Equipos", icon="📚")
    st.caption("Visualiza el catálogo (PDF) desde Google Drive con visor embebido.")
with m3:
    st.page_link("pages/cotizacion.py", label="Cotización", icon="🧾")
    st.caption("Cotización con clientes y productos del catálogo, PDF y Excel.")
with m4:
    st.page_link("pages/nota_venta.py", label="Nota de Venta", icon="📝")
    st.caption("Nota de venta con el mismo formulario de la cotización.")

# Accesos útiles solo admin
if admin_level() >= 1:
    with st.container(border=True):
        st.markdown("⚙️ **Accesos rápidos para administración**")
        st.markdown("- Configurar conexión de datos\n- Actualizar fuentes de Comodatos")

st.markdown(f"[💬 Escríbenos por WhatsApp]({WHATSAPP_URL})")
