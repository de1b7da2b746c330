"""
Endpoint de Prometheus Metrics.

Endpoint:
- GET /metrics - Métricas en formato Prometheus
"""

import logging
from fastapi import APIRouter, Response
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Monitoring"])


@router.get(
    "/metrics",
    summary="Prometheus Metrics",
    description="""
    Expone métricas del motor en formato Prometheus.

    **Métricas disponibles**:
    - `gradebook_grades_written_total` - Notas guardadas (single / bulk)
    - `gradebook_grade_rows_failed_total` - Filas de carga masiva rechazadas
    - `gradebook_evaluation_plans_rejected_total` - Planes con pesos inválidos
    - `gradebook_preventive_cuts_executed_total` - Cortes preventivos ejecutados
    - `gradebook_preventive_cut_duration_seconds` - Duración de los cortes
    - `gradebook_alerts_written_total` - Alertas escritas por estado
    - `gradebook_term_cache_hits_total` / `gradebook_term_cache_misses_total`
    """,
    response_class=Response,
)
def get_metrics() -> Response:
    metrics_output = generate_latest()
    logger.debug("Exported Prometheus metrics", extra={"size_bytes": len(metrics_output)})
    return Response(content=metrics_output, media_type=CONTENT_TYPE_LATEST)
