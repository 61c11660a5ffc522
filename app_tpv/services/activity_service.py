# ==============================================================================
# SERVICIO DE ACTIVIDAD
# ==============================================================================
# Centraliza el registro de eventos del negocio con mensajes humanizados.
# No confundir con el cierre de caja (cash_audit_service) ni con el
# libro de transacciones (ledger_service): esto es solo bitácora.
# ==============================================================================

from typing import Any, Dict, List

from app_tpv.repositories.activity_repository import ActivityRepository


class ActivityService:
    """
    Servicio para registro y consulta de actividad.

    La regla de oro: toda operación que mueve dinero deja un evento.
    """

    # Tipos de eventos
    TYPE_VENTA = 'VENTA'
    TYPE_COMPRA = 'COMPRA'
    TYPE_CAJA = 'CAJA'
    TYPE_NOMINA = 'NOMINA'
    TYPE_SALDO = 'SALDO'
    TYPE_DEUDA = 'DEUDA'
    TYPE_SISTEMA = 'SISTEMA'

    def __init__(self, activity_repo: ActivityRepository):
        self.activity_repo = activity_repo

    # =========================================================================
    # REGISTRO DE EVENTOS
    # =========================================================================

    def log(
        self,
        log_type: str,
        user: str,
        message: str,
        related_id: str = '',
        details: Dict[str, Any] = None
    ) -> None:
        """
        Registra un evento genérico.

        Args:
            log_type: Tipo de evento (VENTA, COMPRA, CAJA, etc.)
            user: Trabajador que realizó la acción
            message: Mensaje descriptivo humanizado
            related_id: ID relacionado
            details: Detalles adicionales
        """
        self.activity_repo.log(log_type, user, message, related_id, details)

    def log_sale(
        self,
        user: str,
        sale_id: int,
        total: float,
        currency: str,
        items_count: int,
        is_credit: bool = False
    ) -> None:
        credit_info = " - A CRÉDITO" if is_credit else ""
        message = (
            f"Venta #{sale_id} registrada por {user} - Total: {total:.2f} CUP - "
            f"{items_count} unidades - Pago en {currency}{credit_info}"
        )
        self.log(
            self.TYPE_VENTA, user, message, str(sale_id),
            {'total': total, 'currency': currency, 'items_count': items_count, 'is_credit': is_credit}
        )

    def log_purchase(self, user: str, purchase_id: int, total_cost: float, items_count: int) -> None:
        message = f"Compra #{purchase_id} registrada por {user} - Costo: {total_cost:.2f} CUP - {items_count} unidades"
        self.log(
            self.TYPE_COMPRA, user, message, str(purchase_id),
            {'total_cost': total_cost, 'items_count': items_count}
        )

    def log_register_close(self, user: str, report_id: int, diff_cup: float) -> None:
        """
        Registra un cierre de caja.

        Args:
            user: Trabajador que cerró
            report_id: Número de cierre
            diff_cup: Diferencia en CUP (negativa = faltante)
        """
        if diff_cup < 0:
            result = f"FALTANTE de {abs(diff_cup):.2f} CUP"
        elif diff_cup > 0:
            result = f"Sobrante de {diff_cup:.2f} CUP"
        else:
            result = "Caja cuadrada"
        message = f"Cierre de caja #{report_id} por {user} - {result}"
        self.log(self.TYPE_CAJA, user, message, str(report_id), {'diff_cup': diff_cup})

    def log_payroll(self, user: str, payroll_id: int, fund: float) -> None:
        message = f"Nómina #{payroll_id} procesada por {user} - Fondo repartido: {fund:.2f} CUP"
        self.log(self.TYPE_NOMINA, user, message, str(payroll_id), {'fund': fund})

    def log_balance_adjustment(self, user: str, entry_id: int, delta: float, new_balance: float) -> None:
        message = (
            f"Ajuste manual del saldo de inversión por {user}: "
            f"{delta:+.2f} CUP - Nuevo saldo: {new_balance:.2f} CUP"
        )
        self.log(
            self.TYPE_SALDO, user, message, str(entry_id),
            {'delta': delta, 'new_balance': new_balance}
        )

    def log_debt_payment(
        self,
        user: str,
        debt_id: int,
        debtor_name: str,
        amount: float,
        method: str,
        pending_after: float
    ) -> None:
        """Registra un abono. Si entra dinero, siempre se llama esta función."""
        message = f"Abono a deuda #{debt_id} de {debtor_name}: {amount:.2f} CUP ({method}) - Recibido por {user}"
        if pending_after <= 0:
            message += " - PAGADO COMPLETO"
        else:
            message += f" - Pendiente: {pending_after:.2f} CUP"
        self.log(
            self.TYPE_DEUDA, user, message, str(debt_id),
            {'amount': amount, 'method': method, 'pending_after': pending_after}
        )

    def log_rates_change(self, user: str, mlc_to_cup: float, usd_to_cup: float) -> None:
        message = f"Tasas de cambio actualizadas por {user}: 1 MLC = {mlc_to_cup:.2f} CUP, 1 USD = {usd_to_cup:.2f} CUP"
        self.log(
            self.TYPE_SISTEMA, user, message, '',
            {'mlc_to_cup': mlc_to_cup, 'usd_to_cup': usd_to_cup}
        )

    # =========================================================================
    # CONSULTAS
    # =========================================================================

    def get_recent(self, limit: int = 100) -> List[Dict[str, Any]]:
        return self.activity_repo.get_recent_logs(max(0, limit))

    def get_by_type(self, log_type: str) -> List[Dict[str, Any]]:
        return self.activity_repo.get_logs_by_type(log_type)
