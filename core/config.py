"""Configuración base compartida por distintas páginas del panel."""

from os import environ
from pathlib import Path


def _str_from_env(var_name: str, default: str) -> str:
	"""Lee una env var de texto; vacía o ausente -> default."""
	raw = environ.get(var_name, "").strip()
	return raw or default


def _float_from_env(var_name: str, default: float) -> float:
	raw = environ.get(var_name, "").strip()
	try:
		return float(raw) if raw else default
	except ValueError:
		return default


def _path_from_env(var_name: str) -> Path | None:
	"""Resuelve rutas desde env vars, expandiendo `~` y convirtiendo a Path."""
	raw = environ.get(var_name)
	return Path(raw).expanduser() if raw else None


# ---- Fuentes de datos (Google Sheets públicos) ----
METAS_SHEET_ID = _str_from_env("PANEL_METAS_SHEET_ID", "1GASOV0vl85q5STfvDn5hdZFD0Mwcj2SzXM6IqvgI50A")
METAS_GID = _str_from_env("PANEL_METAS_GID", "1307924129")  # pestaña Metas

CLIENTES_SHEET_ID = _str_from_env("PANEL_CLIENTES_SHEET_ID", "1kF0INEtwYDXhQCBPTVhU8NQI2URKoi99Hs43DTSO02I")
CLIENTES_GID = _str_from_env("PANEL_CLIENTES_GID", "161671364")

CATALOG_URL = _str_from_env(
	"PANEL_CATALOG_URL",
	"https://docs.google.com/spreadsheets/d/1UXVAxwzg-Kh7AWCPnPbxbEpzXnRPR2pDBKrRUFNZKZo/edit?gid=0#gid=0",
)
CATALOGO_PDF_URL = _str_from_env(
	"PANEL_CATALOGO_PDF_URL",
	"https://drive.google.com/file/d/1t7Zu1rQK2KoMtA91oGevel_7cYFCrt-7/view?usp=sharing",
)

LOGO_URL = _str_from_env(
	"PANEL_LOGO_URL",
	"https://assets.jumpseller.com/store/spartan-de-chile/themes/317202/options/27648963/Logo-spartan-white.png?1600810625",
)
LOGO_DOCUMENTOS_URL = _str_from_env(
	"PANEL_LOGO_DOCUMENTOS_URL",
	"https://images.jumpseller.com/store/spartan-de-chile/store/logo/Spartan_Logo_-_copia.jpg?0",
)

APPROVAL_EMAIL = _str_from_env("PANEL_APPROVAL_EMAIL", "patricia.acuna@spartan.cl")
WHATSAPP_URL = "https://wa.me/56075290961?text=Hola%20Silvana,%20necesito%20más%20información"

# Cuenta de servicio opcional (hojas privadas). Sin ella se usa solo el export público.
SERVICE_ACCOUNT_FILE = _path_from_env("PANEL_SERVICE_ACCOUNT_FILE") or _path_from_env("GOOGLE_APPLICATION_CREDENTIALS")

HTTP_TIMEOUT = _float_from_env("PANEL_HTTP_TIMEOUT", 20.0)
LOG_LEVEL = _str_from_env("PANEL_LOG_LEVEL", "INFO").upper()


# ---- Emisor ----
BRAND = {
	"name": "Spartan de Chile Ltda.",
	"rut": "76.333.980-7",
	"website": "https://www.spartan.cl",
	"blue": "#1f4ed8",
	"accent": "#2B6CFF",
}

TRANSFERENCIA = {
	"banco": "Crédito e Inversiones",
	"titular": BRAND["name"],
	"rut": BRAND["rut"],
	"tipo_cuenta": "Cta. Cte.",
	"email_comprobantes": "horacio.pavez@spartan.cl",
}


# ---- Parámetros de negocio ----
IMPUESTO_PCT = 19.0            # IVA
VALIDEZ_DEFAULT = "10 días"
FORMA_PAGO_DEFAULT = "30 días • Transferencia"
MESES_CONTRATO_DEFAULT = 24
COMISION_BASE_DEFAULT = 0.105
VIABILITY_THRESHOLD = 0.005    # 0,50%
GERENCIA_METAS = "FB"          # Food


__all__ = [
	"METAS_SHEET_ID",
	"METAS_GID",
	"CLIENTES_SHEET_ID",
	"CLIENTES_GID",
	"CATALOG_URL",
	"CATALOGO_PDF_URL",
	"LOGO_URL",
	"LOGO_DOCUMENTOS_URL",
	"APPROVAL_EMAIL",
	"WHATSAPP_URL",
	"SERVICE_ACCOUNT_FILE",
	"HTTP_TIMEOUT",
	"LOG_LEVEL",
	"BRAND",
	"TRANSFERENCIA",
	"IMPUESTO_PCT",
	"VALIDEZ_DEFAULT",
	"FORMA_PAGO_DEFAULT",
	"MESES_CONTRATO_DEFAULT",
	"COMISION_BASE_DEFAULT",
	"VIABILITY_THRESHOLD",
	"GERENCIA_METAS",
]
