# core/state.py
# Borradores de formularios en st.session_state (sobreviven a los reruns y al cambio de página).

from __future__ import annotations

import copy
from typing import Any, Iterable, MutableMapping


def ensure_defaults(state: MutableMapping[str, Any], defaults: dict) -> None:
    """Carga valores por defecto solo para claves que aún no existen."""
    for key, value in defaults.items():
        if key not in state:
            state[key] = copy.deepcopy(value)


def reset_keys(state: MutableMapping[str, Any], defaults: dict, keys: Iterable[str] | None = None) -> None:
    """Vuelve a los valores por defecto (todas las claves de `defaults` o solo `keys`)."""
    for key in (keys if keys is not None else defaults.keys()):
        if key in defaults:
            state[key] = copy.deepcopy(defaults[key])
        else:
            state.pop(key, None)
