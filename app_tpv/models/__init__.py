# ==============================================================================
# MODELOS DEL DOMINIO
# ==============================================================================
# Dataclasses que representan el estado del negocio (catálogo, ventas,
# compras, libro de transacciones, cierres, nóminas y deudas).
# ==============================================================================

from .entities import (
    WorkerRole,
    Currency,
    TransactionType,
    DebtStatus,
    PaymentMethod,
    Category,
    Product,
    Worker,
    SaleItem,
    SalePayment,
    SaleReport,
    PurchaseItem,
    PurchaseReport,
    LedgerEntry,
    AuditReport,
    PayrollDetail,
    PayrollReport,
    Debtor,
    Debt,
    DebtPayment,
    ExchangeRates,
    Config,
    AppState,
)

__all__ = [
    # Enumeraciones
    'WorkerRole',
    'Currency',
    'TransactionType',
    'DebtStatus',
    'PaymentMethod',

    # Entidades
    'Category',
    'Product',
    'Worker',
    'SaleItem',
    'SalePayment',
    'SaleReport',
    'PurchaseItem',
    'PurchaseReport',
    'LedgerEntry',
    'AuditReport',
    'PayrollDetail',
    'PayrollReport',
    'Debtor',
    'Debt',
    'DebtPayment',
    'ExchangeRates',
    'Config',
    'AppState',
]
