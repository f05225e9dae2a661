"""
builtins.py — tabele funkcji wbudowanych i arytmetyka w konwencji IEEE 754.

Python rzuca ZeroDivisionError / ValueError / OverflowError tam, gdzie
arytmetyka zmiennoprzecinkowa daje ±inf lub NaN. Formuły nie traktują tego
jako błędu — wynik specjalny propaguje się do wywołującego.

Trzy rozłączne tabele, rozwiązywane w czasie parsowania:
  UNARY_FUNCTIONS   — dokładnie jeden argument
  MULTI_FUNCTIONS   — minimalna arność; za mało argumentów → pierwszy argument
  RANDOM_INTRINSICS — rand(max), randf(max), random()
"""
from __future__ import annotations

import math
from typing import Callable

_INF = math.inf
_NAN = math.nan

# Tolerancja dla == i != (dryf zmiennoprzecinkowy)
EQUALITY_EPSILON = 1e-4


# ──────────────────────────────────────────────────────────────────────────────
# Arytmetyka IEEE
# ──────────────────────────────────────────────────────────────────────────────

def ieee_div(a: float, b: float) -> float:
    try:
        return a / b
    except ZeroDivisionError:
        if a == 0 or math.isnan(a):
            return _NAN
        return math.copysign(_INF, a) * math.copysign(1.0, b)


def ieee_mod(a: float, b: float) -> float:
    """Reszta z dzielenia ze znakiem dzielnej (jak fmod w C)."""
    try:
        return math.fmod(a, b)
    except ValueError:
        return _NAN


def _is_odd_integer(x: float) -> bool:
    return math.isfinite(x) and x.is_integer() and x % 2 == 1


def ieee_pow(base: float, exponent: float) -> float:
    try:
        return math.pow(base, exponent)
    except OverflowError:
        if base < 0 and _is_odd_integer(exponent):
            return -_INF
        return _INF
    except ValueError:
        if base == 0:
            # 0 ** ujemny wykładnik
            if _is_odd_integer(exponent):
                return math.copysign(_INF, base)
            return _INF
        return _NAN


# ──────────────────────────────────────────────────────────────────────────────
# Funkcje jednoargumentowe
# ──────────────────────────────────────────────────────────────────────────────

def _guarded(fn: Callable[[float], float]) -> Callable[[float], float]:
    """Błąd dziedziny → NaN, przepełnienie → +inf."""
    def call(x: float) -> float:
        try:
            return fn(x)
        except ValueError:
            return _NAN
        except OverflowError:
            return _INF
    call.__name__ = fn.__name__
    return call


def _integral(fn: Callable[[float], int]) -> Callable[[float], float]:
    """floor/ceil/round zwracają int i nie przyjmują inf/NaN."""
    def call(x: float) -> float:
        if not math.isfinite(x):
            return x
        return float(fn(x))
    call.__name__ = fn.__name__
    return call


def _log(x: float) -> float:
    if x == 0:
        return -_INF
    if x < 0 or math.isnan(x):
        return _NAN
    return math.log(x)


def _clamp01(x: float) -> float:
    if x < 0:
        return 0.0
    if x > 1:
        return 1.0
    return x


def _sign(x: float) -> float:
    return 1.0 if x >= 0 else -1.0


UNARY_FUNCTIONS: dict[str, Callable[[float], float]] = {
    "sqrt": _guarded(math.sqrt),
    "abs": abs,
    "floor": _integral(math.floor),
    "ceil": _integral(math.ceil),
    "round": _integral(round),      # round half to even
    "sin": _guarded(math.sin),
    "cos": _guarded(math.cos),
    "tan": _guarded(math.tan),
    "log": _log,
    "exp": _guarded(math.exp),
    "clamp01": _clamp01,
    "sign": _sign,
    "negative": lambda x: -x,
    "acos": _guarded(math.acos),
    "asin": _guarded(math.asin),
    "atan": _guarded(math.atan),
}


# ──────────────────────────────────────────────────────────────────────────────
# Funkcje wieloargumentowe: nazwa → (minimalna arność, funkcja)
# ──────────────────────────────────────────────────────────────────────────────

def _min(args: list[float]) -> float:
    a, b = args[0], args[1]
    return a if a < b else b


def _max(args: list[float]) -> float:
    a, b = args[0], args[1]
    return a if a > b else b


def _clamp(args: list[float]) -> float:
    value, lo, hi = args[0], args[1], args[2]
    if value < lo:
        return lo
    if value > hi:
        return hi
    return value


def _lerp(args: list[float]) -> float:
    a, b, t = args[0], args[1], args[2]
    return a + (b - a) * _clamp01(t)


def _pow(args: list[float]) -> float:
    return ieee_pow(args[0], args[1])


MULTI_FUNCTIONS: dict[str, tuple[int, Callable[[list[float]], float]]] = {
    "min": (2, _min),
    "max": (2, _max),
    "clamp": (3, _clamp),
    "lerp": (3, _lerp),
    "pow": (2, _pow),
}


def call_multi(name: str, args: list[float]) -> float:
    """Wywołanie z degradacją: za mało argumentów → pierwszy argument (lub 0)."""
    min_arity, fn = MULTI_FUNCTIONS[name]
    if len(args) < min_arity:
        return args[0] if args else 0.0
    return fn(args)


# nazwa → wymagana liczba argumentów
RANDOM_INTRINSICS: dict[str, int] = {
    "rand": 1,
    "randf": 1,
    "random": 0,
}
