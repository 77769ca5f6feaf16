import html

import streamlit as st
import streamlit.components.v1 as components

from core.config import CATALOGO_PDF_URL
from core.drive_links import embed_src, extract_drive_id, open_href
from core.state import ensure_defaults
from ui.auth import require_login
from ui.theme import apply_global_theme, render_header

st.set_page_config(page_title="Catálogo de Equipos", page_icon="📚", layout="wide")
apply_global_theme()

# ---- Guard ----
require_login("catalogo")

ensure_defaults(st.session_state, {"catalogo.pdf_url": CATALOGO_PDF_URL, "catalogo.visor_google": True})
st.session_state["catalogo.pdf_url"] = st.session_state["catalogo.pdf_url"]

render_header("Catálogo de Equipos")
st.markdown("### 📄 Fuente del catálogo (PDF)")

col_url, col_toggle, col_link = st.columns([3, 1, 1])
with col_url:
    pdf_url = st.text_input(
        "URL del PDF (público)",
        key="catalogo.pdf_url",
        placeholder="Pega aquí el enlace al PDF (Drive o directo)",
    )
es_drive = extract_drive_id(pdf_url) is not None
with col_toggle:
    usar_visor = st.checkbox(
        "Usar visor de Google",
        key="catalogo.visor_google",
        disabled=es_drive,
        help=(
            "Para archivos de Google Drive se usa el visor nativo de Drive."
            if es_drive
            else "Alterna entre el visor nativo del navegador y el visor de Google."
        ),
    )
with col_link:
    st.link_button("Abrir en nueva pestaña", open_href(pdf_url), disabled=not pdf_url.strip())

src = embed_src(pdf_url, usar_visor)
if not src:
    st.info("Pega una URL de PDF pública para visualizar el catálogo.")
else:
    components.html(
        f'<iframe title="Catálogo de Equipos" src="{html.escape(src)}" '
        'style="width:100%;height:780px;border:1px solid #dbe4f3;border-radius:12px;background:#fff" '
        'allow="fullscreen"></iframe>',
        height=800,
    )

st.caption(
    "Tip: si el archivo está en Google Drive, asegúrate de que el enlace sea público "
    "(o “cualquiera con el enlace”). Para Drive, el visor nativo (/preview) es el más compatible."
)
