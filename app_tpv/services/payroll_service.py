# ==============================================================================
# SERVICIO DE NÓMINA - Reparto del fondo de pago
# ==============================================================================
# Período: todo lo registrado DESPUÉS de la última nómina, por orden del
# libro (IDs de venta y de asiento), no por reloj. La primera nómina
# toma todo el historial.
#
#   Fondo = saldo actual del fondo de pago
#   Admin: 30% del fondo, repartido en partes iguales entre los Admin
#   Resto: 70% del fondo, proporcional a la contribución de cada uno
#          (40% de la ganancia de sus ventas) menos sus faltantes
#
# Procesar deja el fondo en cero con un asiento PAYOUT_RESET.
# ==============================================================================

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from app_tpv.constants import PAYROLL_ADMIN_SHARE, PAYROLL_WORKER_SHARE, PROFIT_SHARE_PAYOUT
from app_tpv.models import (
    AppState,
    LedgerEntry,
    PayrollDetail,
    PayrollReport,
    TransactionType,
    Worker,
)
from app_tpv.performance_logger import profile_function
from .errors import BusinessRuleError, TPVError
from .ledger_service import LedgerWriter, next_id
from .periods import EPOCH, parse_ts, to_iso

EMPTY_FUND_MSG = "El fondo de pago está en cero. No hay nada que procesar."


@dataclass
class PayrollCalculation:
    """Vista previa de una nómina (no registra nada)."""
    period_start_date: str
    period_end_date: str
    total_payout_fund: float
    admin_share: float
    worker_share: float
    details: List[PayrollDetail] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'period_start_date': self.period_start_date,
            'period_end_date': self.period_end_date,
            'total_payout_fund': self.total_payout_fund,
            'admin_share': self.admin_share,
            'worker_share': self.worker_share,
            'details': [d.to_dict() for d in self.details],
        }


def last_payroll_date(state: AppState) -> datetime:
    """Fecha de la última nómina procesada, o 1970-01-01 si no hay."""
    if not state.payroll_reports:
        return EPOCH
    return parse_ts(state.payroll_reports[-1].date) or EPOCH


def _after_last_payroll(record_id: int, record_date: str, last_id: Optional[int], start: datetime) -> bool:
    """
    Indica si un registro pertenece al período abierto.

    Con marca de ID se compara por orden del libro. Las nóminas guardadas
    sin marca se comparan por fecha.
    """
    if last_id is not None:
        return record_id > last_id
    record_date = parse_ts(record_date)
    return record_date is not None and record_date > start


def calculate_payroll(state: AppState, now: datetime) -> PayrollCalculation:
    """
    Calcula la nómina del período actual.

    Los montos NO se redondean: así la suma de pagos finales nunca
    supera la parte de trabajadores.
    """
    start = last_payroll_date(state)
    last = state.payroll_reports[-1] if state.payroll_reports else None

    contributions: Dict[int, float] = {}
    for sale in state.reports:
        if not _after_last_payroll(sale.id, sale.date, last and last.last_sale_id, start):
            continue
        profit = sum((item.price - item.cost_price) * item.quantity for item in sale.items)
        worker_id = sale.sold_by_worker_id
        contributions[worker_id] = contributions.get(worker_id, 0.0) + profit * PROFIT_SHARE_PAYOUT

    shortages: Dict[int, float] = {}
    for entry in state.transaction_log:
        if entry.type != TransactionType.CASH_SHORTAGE or entry.worker_id is None:
            continue
        if not _after_last_payroll(entry.id, entry.date, last and last.last_entry_id, start):
            continue
        shortages[entry.worker_id] = shortages.get(entry.worker_id, 0.0) + entry.amount

    fund = state.worker_payout_balance
    admin_share = fund * PAYROLL_ADMIN_SHARE
    worker_share = fund * PAYROLL_WORKER_SHARE

    admins = [w for w in state.workers if w.is_admin()]
    others = [w for w in state.workers if not w.is_admin()]
    total_contributions = sum(contributions.get(w.id, 0.0) for w in others)

    details = []
    for worker in others:
        contribution = contributions.get(worker.id, 0.0)
        ratio = contribution / total_contributions if total_contributions > 0 else 0.0
        gross = worker_share * ratio
        deduction = abs(shortages.get(worker.id, 0.0))
        details.append(PayrollDetail(
            worker_id=worker.id,
            worker_name=worker.name,
            role=worker.role,
            sales_contribution=contribution,
            gross_pay=gross,
            shortage_deductions=deduction,
            final_pay=max(0.0, gross - deduction)
        ))

    per_admin = admin_share / len(admins) if admins else admin_share
    for admin in admins:
        details.append(PayrollDetail(
            worker_id=admin.id,
            worker_name=admin.name,
            role=admin.role,
            sales_contribution=contributions.get(admin.id, 0.0),
            gross_pay=per_admin,
            shortage_deductions=0.0,
            final_pay=per_admin
        ))

    return PayrollCalculation(
        period_start_date=to_iso(start),
        period_end_date=to_iso(now),
        total_payout_fund=fund,
        admin_share=admin_share,
        worker_share=worker_share,
        details=sorted(details, key=lambda d: d.final_pay, reverse=True)
    )


def process_payroll(
    state: AppState,
    worker: Worker,
    now: datetime
) -> Tuple[AppState, Tuple[PayrollReport, LedgerEntry]]:
    """
    Registra la nómina y vacía el fondo de pago.

    Raises:
        BusinessRuleError: Si el fondo es cero o negativo
    """
    if state.worker_payout_balance <= 0:
        raise BusinessRuleError(EMPTY_FUND_MSG)

    calc = calculate_payroll(state, now)
    payroll_id = next_id(state.payroll_reports)
    date = to_iso(now)

    writer = LedgerWriter(state)
    entry = writer.append(
        TransactionType.PAYOUT_RESET, -calc.total_payout_fund,
        f"Pago de nómina #{payroll_id} procesado.", date, worker_id=worker.id
    )

    report = PayrollReport(
        id=payroll_id,
        date=date,
        processed_by_worker_name=worker.name,
        period_start_date=calc.period_start_date,
        period_end_date=calc.period_end_date,
        total_payout_fund=calc.total_payout_fund,
        admin_share=calc.admin_share,
        worker_share=calc.worker_share,
        details=calc.details,
        last_sale_id=next_id(state.reports) - 1,
        last_entry_id=entry.id
    )
    new_state = writer.commit(state, payroll_reports=state.payroll_reports + [report])
    return new_state, (report, entry)


class PayrollService:
    """Servicio de nómina: vista previa y procesamiento."""

    def __init__(self, state_repo, activity_service=None):
        self.state_repo = state_repo
        self.activity_service = activity_service

    def preview(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        calc = calculate_payroll(self.state_repo.load(), now or datetime.now())
        return {'ok': True, 'payroll': calc.to_dict()}

    @profile_function(name="Procesar nómina")
    def process(self, worker: Worker) -> Dict[str, Any]:
        """
        Procesa la nómina del período.

        Returns:
            {'ok': True, 'payroll': {...}, 'entry': {...}}
            o {'ok': False, 'error': str}
        """
        now = datetime.now()
        try:
            report, entry = self.state_repo.apply(lambda state: process_payroll(state, worker, now))
        except TPVError as e:
            return {'ok': False, 'error': e.message}

        if self.activity_service:
            self.activity_service.log_payroll(worker.name, report.id, report.total_payout_fund)

        return {'ok': True, 'payroll': report.to_dict(), 'entry': entry.to_dict()}

    def history(self) -> List[Dict[str, Any]]:
        return [r.to_dict() for r in reversed(self.state_repo.load().payroll_reports)]
