"""
Métricas Prometheus del motor de calificaciones.

Se registran en el registry por defecto de ``prometheus_client`` y se
exponen en ``GET /metrics``.
"""
from prometheus_client import Counter, Histogram

grades_written_total = Counter(
    "gradebook_grades_written_total",
    "Notas guardadas (alta o sobrescritura)",
    ["source"],
)

grade_rows_failed_total = Counter(
    "gradebook_grade_rows_failed_total",
    "Filas de carga masiva que no se pudieron guardar",
)

evaluation_plans_rejected_total = Counter(
    "gradebook_evaluation_plans_rejected_total",
    "Planes de evaluación rechazados por pesos inválidos",
)

preventive_cuts_executed_total = Counter(
    "gradebook_preventive_cuts_executed_total",
    "Ejecuciones de corte preventivo",
)

preventive_cut_duration_seconds = Histogram(
    "gradebook_preventive_cut_duration_seconds",
    "Duración de una ejecución de corte preventivo",
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

alerts_written_total = Counter(
    "gradebook_alerts_written_total",
    "Alertas preventivas escritas por el motor, por estado resultante",
    ["status"],
)

cache_hits = Counter(
    "gradebook_term_cache_hits_total",
    "Aciertos del cache de notas de periodo",
)

cache_misses = Counter(
    "gradebook_term_cache_misses_total",
    "Fallos del cache de notas de periodo",
)
