"""
Constantes compartidas del motor de calificaciones.

Centraliza los valores que antes estaban dispersos por los servicios
(rangos de nota, umbral de riesgo por defecto, tamaños de cache).
"""
from datetime import datetime, timezone

# Escala de notas institucional
MIN_SCORE = 1.0
MAX_SCORE = 5.0

# Los pesos de plan y de cortes se expresan en porcentaje entero
TOTAL_WEIGHT_PERCENTAGE = 100

# Umbral usado cuando el corte preventivo se ejecuta con fecha explícita
# y no existe configuración para el periodo
DEFAULT_RISK_THRESHOLD = 3.0

# Cache de notas de periodo (deshabilitado por defecto)
DEFAULT_TERM_CACHE_MAX_SIZE = 5000


def utc_now() -> datetime:
    """Timestamp UTC sin zona horaria, igual a como lo devuelven las columnas DateTime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
