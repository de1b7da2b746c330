"""
Configuración de logging.

Los módulos usan ``logging.getLogger(__name__)``; aquí solo se fija el
formato y el nivel del logger raíz una vez al arrancar la aplicación.
"""
import logging
from typing import Optional

from .settings import get_settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    """
    Configura el logger raíz.

    Args:
        level: Nivel explícito; por defecto ``GRADEBOOK_LOG_LEVEL``
    """
    level_name = (level or get_settings().log_level).upper()
    numeric_level = getattr(logging, level_name, None)
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    logging.basicConfig(level=numeric_level, format=LOG_FORMAT)
    logging.getLogger().setLevel(numeric_level)
    # SQL is logged by the engine itself when GRADEBOOK_DB_ECHO is set
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
