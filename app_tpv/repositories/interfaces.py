# ==============================================================================
# INTERFACES DE REPOSITORIOS
# ==============================================================================
# Los servicios dependen de estos protocolos, no de los archivos JSON.
# Una implementación en memoria (tests) o en base de datos solo tiene
# que cumplir el mismo contrato.
# ==============================================================================

from typing import Any, Callable, Dict, List, Protocol, Tuple, TypeVar, runtime_checkable

from app_tpv.models import AppState

T = TypeVar('T')


@runtime_checkable
class IStateRepository(Protocol):
    """
    Interfaz del documento de estado del negocio.

    apply() es la única vía de escritura que usan los servicios:
    recibe una transición pura (estado -> (nuevo_estado, resultado)),
    la ejecuta en exclusión mutua y guarda solo si no lanzó excepción.
    """

    def load(self) -> AppState:
        """Carga el estado completo."""
        ...

    def save(self, state: AppState) -> None:
        """Reemplaza el estado completo."""
        ...

    def apply(self, transition: Callable[[AppState], Tuple[AppState, T]]) -> T:
        """Ejecuta una transición atómica y retorna su resultado."""
        ...


@runtime_checkable
class IActivityRepository(Protocol):
    """Interfaz del registro de actividad."""

    def load(self) -> List[Dict[str, Any]]:
        """Carga todos los eventos (más recientes primero)."""
        ...

    def log(
        self,
        log_type: str,
        user: str,
        message: str,
        related_id: str = '',
        details: Dict[str, Any] = None
    ) -> None:
        """Registra un evento."""
        ...

    def get_recent_logs(self, limit: int = 100) -> List[Dict[str, Any]]:
        """Obtiene los eventos más recientes."""
        ...
