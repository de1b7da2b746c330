"""
Política de redondeo de notas.

Todas las agregaciones (componente, periodo, año) y la clasificación de
desempeño redondean a un decimal con la misma regla. La regla vive aquí y se
inyecta en cada agregador; ningún agregador la reimplementa.

Las sumas intermedias se hacen en ``Decimal`` a partir de la representación
decimal de cada nota, así ``(3.8 * 50 + 3.9 * 50) / 100`` da exactamente
``3.85`` y redondea a ``3.9`` en vez de arrastrar ruido binario.
"""
import math
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, Iterable, Optional, Tuple, Union

Number = Union[int, float, Decimal]
RoundingPolicy = Callable[[Number], float]

_ONE_DECIMAL = Decimal("0.1")


def to_decimal(value: Number) -> Decimal:
    """Convierte una nota a ``Decimal`` usando su representación decimal."""
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise ValueError(f"Cannot use non-finite grade value: {value!r}")
        return value
    if isinstance(value, bool) or value is None:
        raise ValueError(f"Invalid grade value: {value!r}")
    if isinstance(value, int):
        return Decimal(value)
    value = float(value)
    if not math.isfinite(value):
        raise ValueError(f"Cannot use non-finite grade value: {value!r}")
    return Decimal(repr(value))


def round_to_one_decimal(value: Number) -> float:
    """
    Redondea a un decimal, mitades hacia arriba (``4.45 -> 4.5``).

    Raises:
        ValueError: Si el valor no es un número finito
    """
    return float(to_decimal(value).quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP))


def mean(values: Iterable[Number], policy: RoundingPolicy = round_to_one_decimal) -> Optional[float]:
    """Media aritmética redondeada, o ``None`` si no hay valores."""
    decimals = [to_decimal(v) for v in values]
    if not decimals:
        return None
    return policy(sum(decimals) / len(decimals))


def weighted_mean(
    pairs: Iterable[Tuple[Optional[Number], Number]],
    policy: RoundingPolicy = round_to_one_decimal,
) -> Optional[float]:
    """
    Promedio ponderado renormalizado sobre los pesos presentes.

    ``pairs`` es un iterable de ``(valor, peso)``. Los valores ``None`` se
    descartan antes de sumar, de modo que el peso faltante se redistribuye
    proporcionalmente entre los que sí tienen nota (no se divide por 100 fijo).
    Retorna ``None`` si no queda ningún valor o si la suma de pesos válidos
    es cero.
    """
    valid = [(to_decimal(value), to_decimal(weight)) for value, weight in pairs if value is not None]
    if not valid:
        return None

    total_weight = sum(weight for _, weight in valid)
    if total_weight <= 0:
        return None

    weighted_sum = sum(value * weight for value, weight in valid)
    return policy(weighted_sum / total_weight)
