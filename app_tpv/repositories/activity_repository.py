# ==============================================================================
# REPOSITORIO DE ACTIVIDAD
# ==============================================================================
# Encapsula todo el acceso a activity.json
# La actividad se almacena como lista: [{evento1}, {evento2}, ...]
# ==============================================================================

import os
from typing import Any, Dict, List
from datetime import datetime
from .base import ListRepository


class ActivityRepository(ListRepository):
    """
    Repositorio del registro de actividad del negocio.

    Formato de datos en activity.json:
    [
        {
            "type": "VENTA",
            "user": "Ana",
            "message": "Venta #12 registrada por Ana - Total: 150.00 CUP",
            "timestamp": "2024-01-01 10:00:00",
            "related_id": "12",
            "details": {...}
        }
    ]
    """

    # Límite de registros para evitar archivos muy grandes
    MAX_LOGS = 10000

    FILE_NAME = 'activity.json'

    def __init__(self, base_path: str):
        file_path = os.path.join(base_path, self.FILE_NAME)
        super().__init__(file_path)

    def load(self) -> List[Dict[str, Any]]:
        """
        Carga todos los eventos.

        Returns:
            Lista de eventos (más recientes primero)
        """
        logs = self.get_all()
        return sorted(logs, key=lambda x: x.get('timestamp', ''), reverse=True)

    def save(self, logs: List[Dict[str, Any]]) -> None:
        """Guarda todos los eventos aplicando el límite MAX_LOGS."""
        if len(logs) > self.MAX_LOGS:
            logs = logs[:self.MAX_LOGS]
        self.save_all(logs)

    def log(
        self,
        log_type: str,
        user: str,
        message: str,
        related_id: str = '',
        details: Dict[str, Any] = None
    ) -> None:
        """
        Registra un nuevo evento.

        Args:
            log_type: Tipo de evento (VENTA, COMPRA, CAJA, NOMINA, SALDO, DEUDA, SISTEMA)
            user: Trabajador que realizó la acción
            message: Mensaje descriptivo humanizado
            related_id: ID relacionado (venta, compra, cierre...)
            details: Detalles adicionales
        """
        log_entry = {
            'type': log_type,
            'user': user or 'sistema',
            'message': message,
            'timestamp': datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
            'related_id': related_id,
            'details': details or {}
        }

        with self._file_lock:
            logs = self.get_all()
            logs.insert(0, log_entry)  # Más reciente primero
            self.save(logs)

    def get_logs_by_type(self, log_type: str) -> List[Dict[str, Any]]:
        """Filtra eventos por tipo."""
        return self.find_all_by('type', log_type)

    def get_recent_logs(self, limit: int = 100) -> List[Dict[str, Any]]:
        """Obtiene los eventos más recientes."""
        return self.load()[:limit]
