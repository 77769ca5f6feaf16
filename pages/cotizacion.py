import streamlit as st

from ui.auth import require_login
from ui.quote_form import render_quote_page
from ui.theme import apply_global_theme, render_header

st.set_page_config(page_title="Cotización", page_icon="🧾", layout="wide")
apply_global_theme()

# ---- Guard ----
require_login("cotizacion")

render_header("Cotización", "Clientes y productos desde Google Sheets")
render_quote_page("cotizacion")
