# ==============================================================================
# CAPA DE REPOSITORIOS - Acceso a datos
# ==============================================================================
# Esta capa encapsula todo el acceso a la persistencia (archivos JSON).
#
# ESTRUCTURA:
# ├── interfaces.py           → Protocolos (contratos para otros almacenamientos)
# ├── base.py                 → Clases base para JSON
# ├── state_repository.py     → Acceso a state.json (documento de estado)
# └── activity_repository.py  → Acceso a activity.json (registro de actividad)
# ==============================================================================

from .interfaces import IStateRepository, IActivityRepository
from .base import BaseRepository, ListRepository
from .state_repository import StateRepository
from .activity_repository import ActivityRepository

__all__ = [
    # Interfaces
    'IStateRepository',
    'IActivityRepository',

    # Clases base
    'BaseRepository',
    'ListRepository',

    # Implementaciones JSON
    'StateRepository',
    'ActivityRepository',
]
