import pandas as pd
import pytest
import requests


class FakeResponse:
    def __init__(self, text="", status=200, content=b"", headers=None):
        self.text = text
        self.status_code = status
        self.content = content
        self.headers = headers or {}
        self.encoding = None

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")


class FakeSession:
    """Responde según un fragmento de la URL; registra las URLs pedidas."""

    def __init__(self, routes):
        self.routes = routes
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append(url)
        for fragment, response in self.routes.items():
            if fragment in url:
                if isinstance(response, Exception):
                    raise response
                return response
        return FakeResponse(status=404)


@pytest.fixture
def catalogo():
    return pd.DataFrame(
        {
            "Codigo": ["AB-100", "DET-20", "EQ-1"],
            "Nombre": ["Desengrasante Alcalino", "Detergente Cítrico", "Dosificador Mural"],
            "PrecioLista": [2500.0, 1800.0, 120000.0],
            "Costo": [1200.0, float("nan"), 80000.0],
            "Kilos": [5.0, float("nan"), float("nan")],
        }
    )
