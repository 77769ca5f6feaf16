# core/formatting.py
# Formatos es-CL usados en pantallas y documentos.

from decimal import Decimal, ROUND_HALF_UP

from core.normalize import num


def _agrupar(entero: str) -> str:
    """'1234567' -> '1.234.567'."""
    return f"{int(entero):,}".replace(",", ".")


def money(n) -> str:
    """Pesos chilenos sin decimales: 1234567 -> '$1.234.567', -1234 -> '-$1.234'."""
    v = Decimal(str(num(n))).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    signo = "-" if v < 0 else ""
    return f"{signo}${_agrupar(str(abs(v)))}"


def pct(ratio) -> str:
    """Proporción -> porcentaje con 1 decimal: 0.105 -> '10,5 %'."""
    v = Decimal(str(num(ratio) * 100)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
    signo = "-" if v < 0 else ""
    entero, _, dec = str(abs(v)).partition(".")
    return f"{signo}{_agrupar(entero)},{dec or '0'} %"


def miles(n, decimales: int = 2) -> str:
    """Separador de miles es-CL y hasta `decimales` decimales sin ceros sobrantes: 1234.5 -> '1.234,5'."""
    q = Decimal(1).scaleb(-decimales) if decimales > 0 else Decimal("1")
    v = Decimal(str(num(n))).quantize(q, rounding=ROUND_HALF_UP)
    signo = "-" if v < 0 else ""
    entero, _, dec = str(abs(v)).partition(".")
    dec = dec.rstrip("0")
    return f"{signo}{_agrupar(entero)}" + (f",{dec}" if dec else "")
