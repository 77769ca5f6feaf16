# core/drive_links.py
# Enlaces para el visor del catálogo de equipos (PDF en Google Drive o URL directa).

import re
from urllib.parse import quote

_DRIVE_ID = re.compile(r"/d/([a-zA-Z0-9_-]+)")


def extract_drive_id(url: str) -> str | None:
    m = _DRIVE_ID.search(url or "")
    return m.group(1) if m else None


def drive_preview_url(file_id: str) -> str:
    # Visor nativo de Drive, el más compatible para <iframe>
    return f"https://drive.google.com/file/d/{file_id}/preview"


def drive_download_url(file_id: str) -> str:
    return f"https://drive.google.com/uc?export=download&id={file_id}"


def drive_view_url(file_id: str) -> str:
    return f"https://drive.google.com/file/d/{file_id}/view"


def google_viewer_url(url: str) -> str:
    return f"https://docs.google.com/gview?embedded=1&url={quote(url, safe='')}"


def embed_src(url: str, usar_visor_google: bool = True) -> str:
    """
    URL para el iframe:
      - Drive       -> /preview (ignora el toggle)
      - Otro PDF    -> visor de Google o la URL tal cual
      - Vacío       -> ""
    """
    url = (url or "").strip()
    if not url:
        return ""
    file_id = extract_drive_id(url)
    if file_id:
        return drive_preview_url(file_id)
    return google_viewer_url(url) if usar_visor_google else url


def open_href(url: str) -> str:
    """Enlace 'Abrir en nueva pestaña'."""
    url = (url or "").strip()
    if not url:
        return "#"
    file_id = extract_drive_id(url)
    return drive_view_url(file_id) if file_id else url
