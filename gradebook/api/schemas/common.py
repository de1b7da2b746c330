"""
Schemas comunes de la API
"""
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    Base de todos los schemas: camelCase en JSON, snake_case en Python.

    Acepta tanto el alias como el nombre del campo al validar, y objetos ORM
    (``from_attributes``).
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ErrorDetail(BaseModel):
    code: str
    message: str
    extra: Optional[Dict[str, Any]] = None


class ErrorResponse(BaseModel):
    """Cuerpo de todas las respuestas de error"""
    success: bool = False
    error: ErrorDetail


class HealthResponse(BaseModel):
    status: str
    version: str
