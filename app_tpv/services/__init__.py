# ==============================================================================
# CAPA DE SERVICIOS - Lógica de negocio
# ==============================================================================
# Cada módulo tiene dos niveles:
#   - Transiciones puras (settle_sale, settle_purchase, close_register...)
#     que reciben el estado y devuelven uno nuevo o lanzan TPVError
#   - Una clase *Service que las ejecuta con StateRepository.apply()
#     y responde {'ok': True, ...} / {'ok': False, 'error': ...}
# ==============================================================================

from .errors import TPVError, ValidationError, BusinessRuleError
from .activity_service import ActivityService
from .ledger_service import LedgerService
from .sales_service import SalesService
from .purchase_service import PurchaseService
from .cash_audit_service import CashAuditService
from .payroll_service import PayrollService
from .debt_service import DebtService
from .config_service import ConfigService
from .stats_service import StatsService

__all__ = [
    # Errores
    'TPVError',
    'ValidationError',
    'BusinessRuleError',

    # Servicios
    'ActivityService',
    'LedgerService',
    'SalesService',
    'PurchaseService',
    'CashAuditService',
    'PayrollService',
    'DebtService',
    'ConfigService',
    'StatsService',
]
