from __future__ import annotations

import html

import streamlit as st

from core.config import BRAND, LOGO_URL


def apply_global_theme() -> None:
    """Inyecta el tema claro azul Spartan para todas las páginas."""
    st.markdown(
        f"""
<style>
@import url('https://fonts.googleapis.com/css2?family=Manrope:wght@400;600;700&display=swap');
:root {{
  --sp-bg: #f5f8ff;
  --sp-surface: #ffffff;
  --sp-border: #dbe4f3;
  --sp-blue: {BRAND["blue"]};
  --sp-accent: {BRAND["accent"]};
  --sp-text: #1e293b;
  --sp-muted: #64748b;
}}
.stApp {{
  background: linear-gradient(180deg, #eef4ff 0%, var(--sp-bg) 35%, #ffffff 100%);
  color: var(--sp-text);
  font-family: 'Manrope', system-ui, -apple-system, sans-serif;
}}
.block-container {{ padding-top: 1.1rem; max-width: 1200px; }}
h1, h2, h3, h4 {{ color: var(--sp-blue); letter-spacing: -0.015em; }}
label {{ color: #334155 !important; font-weight: 600; }}
[data-testid="stMarkdown"] a {{ color: var(--sp-accent); text-decoration: none; }}
[data-testid="stMarkdown"] a:hover {{ text-decoration: underline; }}

div.stButton>button,
div.stDownloadButton>button,
[data-testid="stForm"] button,
[data-testid="stFormSubmitButton"] button {{
  background: linear-gradient(135deg, var(--sp-blue), var(--sp-accent));
  color: #ffffff; border: none;
  border-radius: 10px; padding: 0.45rem 0.85rem; font-weight: 700;
  box-shadow: 0 8px 24px rgba(31,78,216,0.18);
}}
div.stButton>button:hover,
div.stDownloadButton>button:hover {{ transform: translateY(-1px); }}

div[data-testid="stExpander"] {{ background: var(--sp-surface); border: 1px solid var(--sp-border); border-radius: 14px; }}
div[data-testid="stExpander"] summary {{ color: var(--sp-blue); font-weight: 700; }}

.kpi-card {{ background: var(--sp-surface); border: 1px solid var(--sp-border); border-radius: 14px;
             padding: 10px 14px; box-shadow: 0 4px 14px rgba(31,78,216,0.06); margin-bottom: 8px; }}
.kpi-label {{ color: var(--sp-muted); font-size: 0.78rem; margin: 0; text-transform: uppercase; }}
.kpi-value {{ color: var(--sp-text); font-size: 1.35rem; font-weight: 700; margin: 0; }}
.role-badge {{ display: inline-block; background: #e0e7ff; color: var(--sp-blue); border-radius: 999px;
               padding: 2px 10px; font-size: 0.8rem; font-weight: 700; }}
.status-bar {{ background: var(--sp-surface); border: 1px solid var(--sp-border); border-radius: 10px;
               padding: 6px 12px; font-size: 0.85rem; color: var(--sp-muted); }}
.sp-banner {{ background: var(--sp-blue); border-radius: 14px; padding: 14px 22px; display: flex;
              align-items: center; gap: 22px; margin-bottom: 14px; }}
.sp-banner img {{ max-height: 42px; }}
.sp-banner h1 {{ color: #ffffff; margin: 0; font-size: 1.6rem; }}
.sp-banner p {{ color: #dbeafe; margin: 0; }}
</style>
""",
        unsafe_allow_html=True,
    )


def render_header(titulo: str, subtitulo: str = "") -> None:
    """Banner azul con logo blanco y título de la página."""
    sub = f"<p>{html.escape(subtitulo)}</p>" if subtitulo else ""
    st.markdown(
        f'<div class="sp-banner"><img src="{html.escape(LOGO_URL)}" alt="Spartan"/>'
        f"<div><h1>{html.escape(titulo)}</h1>{sub}</div></div>",
        unsafe_allow_html=True,
    )
