import streamlit as st

from ui.auth import require_login
from ui.quote_form import render_quote_page
from ui.theme import apply_global_theme, render_header

st.set_page_config(page_title="Nota de Venta", page_icon="📝", layout="wide")
apply_global_theme()

# ---- Guard ----
require_login("nota_venta")

render_header("Nota de Venta", "Clientes y productos desde Google Sheets")
render_quote_page("nota_venta")
