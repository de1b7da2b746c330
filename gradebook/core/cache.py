"""
Term Grade Cache - Memoización opcional de notas de periodo

La nota se recalcula siempre desde las notas crudas; este cache solo evita
repetir el cálculo cuando está habilitado (``GRADEBOOK_TERM_CACHE_ENABLED``).

Invalidación:
- Guardar una nota invalida todas las entradas de (matrícula, periodo).
- Guardar un plan invalida todas las entradas del periodo.

Es un cache en memoria por proceso. Con varios workers cada uno tiene el suyo,
por eso está deshabilitado por defecto.
"""
import logging
import threading
from collections import OrderedDict
from datetime import date
from typing import Any, Dict, Optional, Tuple

from .constants import DEFAULT_TERM_CACHE_MAX_SIZE
from .metrics import cache_hits, cache_misses

logger = logging.getLogger(__name__)

CacheKey = Tuple[str, str, str, Optional[date]]


class LRUCache:
    """
    LRU (Least Recently Used) Cache implementation.

    Mantiene un límite de tamaño y elimina las entradas menos
    recientemente usadas cuando se alcanza la capacidad máxima.
    """

    def __init__(self, max_size: int = 1000):
        self.max_size = max_size
        self.cache: OrderedDict = OrderedDict()
        self._hits = 0
        self._misses = 0
        self._lock = threading.Lock()

    def get(self, key: Any) -> Optional[Any]:
        """
        Obtiene un valor del cache y lo mueve al final (más reciente).
        Thread-safe.

        Returns:
            El valor si existe, None si no existe
        """
        with self._lock:
            if key not in self.cache:
                self._misses += 1
                return None

            self.cache.move_to_end(key)
            self._hits += 1
            return self.cache[key]

    def set(self, key: Any, value: Any) -> None:
        """
        Guarda un valor en el cache. Thread-safe.

        Si el cache está lleno, elimina la entrada menos recientemente usada.
        """
        with self._lock:
            if key in self.cache:
                self.cache.move_to_end(key)
            elif len(self.cache) >= self.max_size:
                oldest_key = next(iter(self.cache))
                del self.cache[oldest_key]
                logger.debug("LRU cache evicted oldest entry", extra={"key": str(oldest_key)})

            self.cache[key] = value

    def discard_where(self, predicate) -> int:
        """Elimina las entradas cuya clave cumple ``predicate``. Retorna cuántas."""
        with self._lock:
            stale = [key for key in self.cache if predicate(key)]
            for key in stale:
                del self.cache[key]
            return len(stale)

    def clear(self) -> None:
        """Limpia todo el cache. Thread-safe."""
        with self._lock:
            self.cache.clear()
            self._hits = 0
            self._misses = 0

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            total = self._hits + self._misses
            hit_rate = (self._hits / total * 100) if total > 0 else 0

            return {
                "hits": self._hits,
                "misses": self._misses,
                "total_requests": total,
                "hit_rate_percent": round(hit_rate, 2),
                "current_size": len(self.cache),
                "max_size": self.max_size,
            }


class TermGradeCache:
    """
    Cache de resultados de ``TermGradeAggregator.compute``.

    Clave: ``(enrollment_id, assignment_id, term_id, cutoff_date)``.
    Con ``enabled=False`` todas las operaciones son no-op.
    """

    def __init__(self, max_entries: int = DEFAULT_TERM_CACHE_MAX_SIZE, enabled: bool = False):
        self.enabled = enabled
        self._cache = LRUCache(max_size=max_entries)

        logger.info(
            "TermGradeCache initialized",
            extra={"enabled": enabled, "max_entries": max_entries},
        )

    @staticmethod
    def make_key(
        student_enrollment_id: str,
        teacher_assignment_id: str,
        academic_term_id: str,
        cutoff_date: Optional[date] = None,
    ) -> CacheKey:
        return (student_enrollment_id, teacher_assignment_id, academic_term_id, cutoff_date)

    def get(self, key: CacheKey) -> Optional[Any]:
        if not self.enabled:
            return None

        value = self._cache.get(key)
        if value is None:
            cache_misses.inc()
        else:
            cache_hits.inc()
        return value

    def set(self, key: CacheKey, value: Any) -> None:
        if self.enabled:
            self._cache.set(key, value)

    def invalidate_enrollment_term(self, student_enrollment_id: str, academic_term_id: str) -> int:
        """Invalida las entradas de una matrícula en un periodo (tras guardar una nota)."""
        if not self.enabled:
            return 0
        removed = self._cache.discard_where(
            lambda key: key[0] == student_enrollment_id and key[2] == academic_term_id
        )
        logger.debug(
            "Term cache invalidated for enrollment",
            extra={
                "student_enrollment_id": student_enrollment_id,
                "academic_term_id": academic_term_id,
                "removed": removed,
            },
        )
        return removed

    def invalidate_term(self, academic_term_id: str) -> int:
        """Invalida todas las entradas de un periodo (tras cambiar un plan)."""
        if not self.enabled:
            return 0
        removed = self._cache.discard_where(lambda key: key[2] == academic_term_id)
        logger.debug(
            "Term cache invalidated for term",
            extra={"academic_term_id": academic_term_id, "removed": removed},
        )
        return removed

    def clear(self) -> None:
        self._cache.clear()

    def get_stats(self) -> Dict[str, Any]:
        stats = self._cache.get_stats()
        stats["enabled"] = self.enabled
        return stats


_term_grade_cache: Optional[TermGradeCache] = None
_cache_lock = threading.Lock()


def get_term_grade_cache() -> TermGradeCache:
    """Instancia global del cache, configurada desde ``AppSettings``."""
    global _term_grade_cache
    if _term_grade_cache is None:
        with _cache_lock:
            if _term_grade_cache is None:
                from .settings import get_settings

                settings = get_settings()
                _term_grade_cache = TermGradeCache(
                    max_entries=settings.term_cache_max_size,
                    enabled=settings.term_cache_enabled,
                )
    return _term_grade_cache


def reset_term_grade_cache() -> None:
    """Descarta la instancia global (tests y recarga de configuración)."""
    global _term_grade_cache
    with _cache_lock:
        _term_grade_cache = None
