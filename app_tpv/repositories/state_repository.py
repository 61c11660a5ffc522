# ==============================================================================
# REPOSITORIO DE ESTADO
# ==============================================================================
# Encapsula todo el acceso a state.json.
# El estado se guarda como un único documento (reemplazo completo).
# ==============================================================================

import os
from typing import Any, Callable, Dict, Tuple, TypeVar

from app_tpv.models import AppState
from .base import BaseRepository

T = TypeVar('T')


class StateRepository(BaseRepository):
    """
    Repositorio del documento de estado del negocio.

    Formato de datos en state.json:
    {
        "products": [...],
        "reports": [...],
        "transaction_log": [...],
        "investment_balance": 0.0,
        "worker_payout_balance": 0.0,
        ...
    }
    """

    FILE_NAME = 'state.json'

    def __init__(self, base_path: str):
        """
        Args:
            base_path: Directorio de datos
        """
        file_path = os.path.join(base_path, self.FILE_NAME)
        super().__init__(file_path)

    def _empty_data(self) -> Dict[str, Any]:
        return AppState().to_dict()

    def load(self) -> AppState:
        """Carga el estado completo desde el archivo."""
        return AppState.from_dict(self._read_raw())

    def save(self, state: AppState) -> None:
        """Guarda el estado completo (escritura atómica)."""
        self._write_raw(state.to_dict())

    def apply(self, transition: Callable[[AppState], Tuple[AppState, T]]) -> T:
        """
        Ejecuta una transición de estado como sección crítica.

        Carga el estado, calcula el siguiente con `transition` y lo
        instala. Si la transición lanza una excepción no se escribe nada.
        Si retorna el mismo objeto de estado tampoco se escribe.

        Args:
            transition: Función pura estado -> (nuevo_estado, resultado)

        Returns:
            El resultado producido por la transición
        """
        with self._file_lock:
            state = self.load()
            new_state, result = transition(state)
            if new_state is not state:
                self.save(new_state)
            return result
