# ==============================================================================
# SERVICIO DE DEUDAS - Abonos de clientes a crédito
# ==============================================================================
# Las deudas nacen en las ventas a crédito (ver sales_service).
# Aquí solo se registran abonos y se consultan vencidas.
# Los abonos NO generan asientos: el dinero ya se contabilizó al vender.
# OVERDUE no se guarda: se deriva al leer comparando el vencimiento.
# ==============================================================================

import math
from dataclasses import replace
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from app_tpv.models import AppState, Debt, DebtPayment, DebtStatus, PaymentMethod, Worker
from .errors import BusinessRuleError, TPVError, ValidationError
from .ledger_service import next_id
from .periods import parse_ts, to_iso

OPEN_STATUSES = (DebtStatus.PENDING, DebtStatus.PARTIAL, DebtStatus.OVERDUE)


def register_debt_payment(
    state: AppState,
    debt_id: int,
    amount: float,
    method: str,
    worker: Worker,
    now: datetime
) -> Tuple[AppState, Tuple[Debt, DebtPayment]]:
    """
    Registra un abono a una deuda.

    Raises:
        ValidationError: Monto o método inválido
        BusinessRuleError: Deuda inexistente, cerrada, o abono mayor al pendiente
    """
    if isinstance(amount, bool) or not isinstance(amount, (int, float)) or not math.isfinite(amount) or amount <= 0:
        raise ValidationError("El monto del abono debe ser mayor a 0.")
    try:
        payment_method = PaymentMethod(method)
    except ValueError:
        raise ValidationError(f"Método de pago inválido: {method}")

    debt = state.get_debt(debt_id)
    if debt is None:
        raise BusinessRuleError(f"Deuda #{debt_id} no encontrada.")
    if debt.status in (DebtStatus.PAID, DebtStatus.CANCELLED):
        raise BusinessRuleError(f"La deuda #{debt_id} ya está cerrada.")
    if amount > debt.amount:
        raise BusinessRuleError(
            f"El abono ({amount:.2f}) supera el monto pendiente ({debt.amount:.2f})."
        )

    date = to_iso(now)
    remaining = round(debt.amount - amount, 2)
    updated = replace(
        debt,
        amount=remaining,
        status=DebtStatus.PAID if remaining <= 0 else DebtStatus.PARTIAL,
        updated_at=date
    )
    payment = DebtPayment(
        id=next_id(state.debt_payments),
        debt_id=debt.id,
        amount=amount,
        payment_date=date,
        payment_method=payment_method,
        received_by_worker_id=worker.id,
        received_by_worker_name=worker.name
    )

    new_state = replace(
        state,
        debts=[updated if d.id == debt.id else d for d in state.debts],
        debtors=[
            replace(d, total_debt=max(0.0, round(d.total_debt - amount, 2))) if d.id == debt.debtor_id else d
            for d in state.debtors
        ],
        debt_payments=state.debt_payments + [payment]
    )
    return new_state, (updated, payment)


def effective_status(debt: Debt, now: datetime) -> DebtStatus:
    """
    Estado de la deuda a la fecha `now`.

    OVERDUE no se guarda: una deuda abierta cuyo vencimiento ya pasó se
    reporta como vencida al leerla.
    """
    if debt.status not in OPEN_STATUSES:
        return debt.status
    due = parse_ts(debt.due_date)
    if due is not None and due < now:
        return DebtStatus.OVERDUE
    return debt.status


def overdue_debts(state: AppState, now: datetime) -> List[Debt]:
    """Deudas abiertas cuya fecha de vencimiento ya pasó, marcadas OVERDUE."""
    return [
        replace(debt, status=DebtStatus.OVERDUE)
        for debt in state.debts
        if effective_status(debt, now) == DebtStatus.OVERDUE
    ]


class DebtService:
    """Servicio de deudas y abonos."""

    def __init__(self, state_repo, activity_service=None):
        self.state_repo = state_repo
        self.activity_service = activity_service

    def register_payment(self, debt_id: int, data: Dict[str, Any], worker: Worker) -> Dict[str, Any]:
        """
        Registra un abono.

        Args:
            debt_id: ID de la deuda
            data: {"amount": 50, "method": "CASH"}
            worker: Trabajador que recibe el dinero

        Returns:
            {'ok': True, 'debt': {...}, 'payment': {...}} o {'ok': False, 'error': str}
        """
        try:
            amount = float(data.get('amount'))
        except (TypeError, ValueError):
            return {'ok': False, 'error': "El monto del abono debe ser mayor a 0."}
        method = str(data.get('method', PaymentMethod.CASH.value)).upper()

        now = datetime.now()
        try:
            debt, payment = self.state_repo.apply(
                lambda state: register_debt_payment(state, debt_id, amount, method, worker, now)
            )
        except TPVError as e:
            return {'ok': False, 'error': e.message}

        if self.activity_service:
            self.activity_service.log_debt_payment(
                worker.name, debt.id, debt.debtor_name, payment.amount,
                payment.payment_method.value, debt.amount
            )

        return {'ok': True, 'debt': debt.to_dict(), 'payment': payment.to_dict()}

    def list_debts(self, status: Optional[str] = None, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
        """Lista las deudas con su estado a la fecha (incluye OVERDUE)."""
        now = now or datetime.now()
        debts = [replace(d, status=effective_status(d, now)) for d in self.state_repo.load().debts]
        if status:
            debts = [d for d in debts if d.status.value == status.upper()]
        return [d.to_dict() for d in debts]

    def list_overdue(self, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
        return [d.to_dict() for d in overdue_debts(self.state_repo.load(), now or datetime.now())]
