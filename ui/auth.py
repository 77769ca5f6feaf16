# ui/auth.py
# Login compartido (streamlit-authenticator 0.4.x) + nivel de rol por query param.

from __future__ import annotations

import bcrypt
import streamlit as st
import streamlit_authenticator as stauth

from core.config import LOG_LEVEL
from core.logging_config import get_logger, setup_logging

log = get_logger("auth")

# Usa estos DOS valores IGUALES en TODAS las páginas del multipage
COOKIE_NAME = "panel_spartan_auth"
COOKIE_KEY = "panel_spartan_key_2025"
COOKIE_DAYS = 30

# ========= Credenciales DEMO (se hashean en runtime) =========
DEMO_USERS = {
    "ventas": ("Ejecutivo Ventas", "Spartan-2025"),
    "gerencia": ("Gerencia Comercial", "Spartan-2025"),
}

ROLES = {0: "Usuario", 1: "Gerencia", 2: "Administradora"}


def _hash(pw: str) -> str:
    return bcrypt.hashpw(pw.encode(), bcrypt.gensalt()).decode()


def _users_from_secrets() -> dict | None:
    """{usuario: (nombre, clave)} desde st.secrets['auth']['users'] o None si no hay bloque."""
    try:
        raw = st.secrets["auth"]["users"]
    except Exception:
        # Sin secrets.toml o sin el bloque [auth.users]
        return None
    users = {}
    for user, data in dict(raw).items():
        users[str(user)] = (str(data.get("name", user)), str(data.get("password", "")))
    return users or None


def build_credentials(users: dict | None = None) -> dict:
    """
    Credenciales en el formato de streamlit-authenticator.
    Claves ya hasheadas (empiezan con "$2") se respetan tal cual.
    """
    users = users if users is not None else (_users_from_secrets() or DEMO_USERS)
    credentials = {"usernames": {}}
    for user, (name, plain) in users.items():
        password = plain if plain.startswith("$2") else _hash(plain)
        credentials["usernames"][user] = {"name": name, "password": password}
    return credentials


@st.cache_data(show_spinner=False)
def _credentials() -> dict:
    # bcrypt es lento: se hashea una vez; cache_data entrega una copia por sesión
    return build_credentials()


def get_authenticator() -> stauth.Authenticate:
    return stauth.Authenticate(_credentials(), COOKIE_NAME, COOKIE_KEY, COOKIE_DAYS)


def login_form() -> bool | None:
    """Formulario de login (solo en Inicio.py). Devuelve el authentication_status."""
    authenticator = get_authenticator()
    authenticator.login(
        location="main",
        fields={
            "Form name": "Login",
            "Username": "Usuario",
            "Password": "Contraseña",
            "Login": "Entrar",
        },
    )
    status = st.session_state.get("authentication_status", None)
    if status is True:
        authenticator.logout("Cerrar sesión", location="sidebar")
    elif status is False:
        log.warning("Login fallido para %s.", st.session_state.get("username"))
    return status


def require_login(page_key: str) -> None:
    """
    Guard de páginas: rehidrata la sesión desde la cookie y, si no hay sesión,
    redirige a Inicio.py.
    """
    # una sesión puede entrar directo a la página sin pasar por Inicio.py
    setup_logging(LOG_LEVEL)
    authenticator = get_authenticator()
    # en versiones actuales, login() rellena session_state si la cookie es válida
    authenticator.login(location="unrendered", key=f"auth_{page_key}_silent")

    if st.session_state.get("authentication_status") is not True:
        st.switch_page("Inicio.py")

    authenticator.logout("Cerrar sesión", location="sidebar", key=f"logout_{page_key}")


# -------------------- Roles --------------------
def parse_admin_level(raw) -> int:
    """'?admin=' -> 0..2 (2 = Administradora, 1 = Gerencia). No numérico -> 0."""
    if isinstance(raw, (list, tuple)):
        raw = raw[0] if raw else None
    try:
        level = int(str(raw).strip())
    except (TypeError, ValueError):
        return 0
    return max(0, min(2, level))


def admin_level() -> int:
    return parse_admin_level(st.query_params.get("admin"))


def role_name(level: int) -> str:
    return ROLES.get(level, ROLES[0])
