# ==============================================================================
# CONTENEDOR DE DEPENDENCIAS - Inyección de servicios
# ==============================================================================
# Punto único para obtener repositorios y servicios. Facilita:
#   - Inyección de dependencias
#   - Testing (se puede apuntar a un directorio temporal)
#   - Cambiar el almacenamiento sin tocar los servicios
# ==============================================================================

import os
from typing import Optional

from app_tpv.repositories import ActivityRepository, StateRepository
from app_tpv.services import (
    ActivityService,
    CashAuditService,
    ConfigService,
    DebtService,
    LedgerService,
    PayrollService,
    PurchaseService,
    SalesService,
    StatsService,
)


class AppContainer:
    """
    Contenedor de dependencias de la aplicación (singleton).

    Uso:
        container = AppContainer(base_path='/ruta/datos')
        result = container.sales_service.create_sale(payload, worker)
    """

    _instance: Optional['AppContainer'] = None

    def __new__(cls, base_path: str = None):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self, base_path: str = None):
        """
        Args:
            base_path: Directorio de datos (state.json, activity.json).
                       Por defecto TPV_DATA_DIR o el directorio del paquete.
        """
        if self._initialized:
            return

        self._base_path = (
            base_path
            or os.environ.get('TPV_DATA_DIR')
            or os.path.dirname(os.path.abspath(__file__))
        )

        self._state_repo: Optional[StateRepository] = None
        self._activity_repo: Optional[ActivityRepository] = None

        self._activity_service: Optional[ActivityService] = None
        self._ledger_service: Optional[LedgerService] = None
        self._sales_service: Optional[SalesService] = None
        self._purchase_service: Optional[PurchaseService] = None
        self._cash_audit_service: Optional[CashAuditService] = None
        self._payroll_service: Optional[PayrollService] = None
        self._debt_service: Optional[DebtService] = None
        self._config_service: Optional[ConfigService] = None
        self._stats_service: Optional[StatsService] = None

        self._initialized = True

    @property
    def base_path(self) -> str:
        return self._base_path

    # =========================================================================
    # REPOSITORIOS
    # =========================================================================

    @property
    def state_repo(self) -> StateRepository:
        """Repositorio del estado del negocio (singleton)."""
        if self._state_repo is None:
            self._state_repo = StateRepository(self._base_path)
        return self._state_repo

    @property
    def activity_repo(self) -> ActivityRepository:
        """Repositorio de actividad (singleton)."""
        if self._activity_repo is None:
            self._activity_repo = ActivityRepository(self._base_path)
        return self._activity_repo

    # =========================================================================
    # SERVICIOS
    # =========================================================================

    @property
    def activity_service(self) -> ActivityService:
        if self._activity_service is None:
            self._activity_service = ActivityService(self.activity_repo)
        return self._activity_service

    @property
    def ledger_service(self) -> LedgerService:
        if self._ledger_service is None:
            self._ledger_service = LedgerService(self.state_repo, self.activity_service)
        return self._ledger_service

    @property
    def sales_service(self) -> SalesService:
        if self._sales_service is None:
            self._sales_service = SalesService(self.state_repo, self.activity_service)
        return self._sales_service

    @property
    def purchase_service(self) -> PurchaseService:
        if self._purchase_service is None:
            self._purchase_service = PurchaseService(self.state_repo, self.activity_service)
        return self._purchase_service

    @property
    def cash_audit_service(self) -> CashAuditService:
        if self._cash_audit_service is None:
            self._cash_audit_service = CashAuditService(self.state_repo, self.activity_service)
        return self._cash_audit_service

    @property
    def payroll_service(self) -> PayrollService:
        if self._payroll_service is None:
            self._payroll_service = PayrollService(self.state_repo, self.activity_service)
        return self._payroll_service

    @property
    def debt_service(self) -> DebtService:
        if self._debt_service is None:
            self._debt_service = DebtService(self.state_repo, self.activity_service)
        return self._debt_service

    @property
    def config_service(self) -> ConfigService:
        if self._config_service is None:
            self._config_service = ConfigService(self.state_repo, self.activity_service)
        return self._config_service

    @property
    def stats_service(self) -> StatsService:
        if self._stats_service is None:
            self._stats_service = StatsService(self.state_repo)
        return self._stats_service

    # =========================================================================
    # UTILIDADES
    # =========================================================================

    def reset(self) -> None:
        """Reinicia todas las instancias (útil para testing)."""
        self._state_repo = None
        self._activity_repo = None

        self._activity_service = None
        self._ledger_service = None
        self._sales_service = None
        self._purchase_service = None
        self._cash_audit_service = None
        self._payroll_service = None
        self._debt_service = None
        self._config_service = None
        self._stats_service = None

    @classmethod
    def get_instance(cls, base_path: str = None) -> 'AppContainer':
        if cls._instance is None:
            return cls(base_path)
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Elimina la instancia singleton (útil para tests)."""
        if cls._instance is not None:
            cls._instance.reset()
            cls._instance = None


def get_container(base_path: str = None) -> AppContainer:
    """
    Obtiene el contenedor de dependencias global.

    Args:
        base_path: Directorio de datos (solo se usa en la primera llamada)
    """
    return AppContainer.get_instance(base_path)
