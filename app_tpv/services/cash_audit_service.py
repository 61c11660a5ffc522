# ==============================================================================
# SERVICIO DE CIERRE DE CAJA - Conciliación diaria
# ==============================================================================
# Compara lo que el sistema espera en caja (ventas de HOY) contra lo
# contado físicamente:
#   CUP → monto entregado - vuelto
#   MLC → monto entregado
#   USD → monto entregado
#
# Diferencia = contado - esperado. Si falta CUP se asienta un
# CASH_SHORTAGE a nombre de quien cierra (no mueve saldos; se descuenta
# en la nómina).
# ==============================================================================

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from app_tpv.constants import CUP_DENOMINATIONS
from app_tpv.models import (
    AppState,
    AuditReport,
    Currency,
    LedgerEntry,
    SaleReport,
    TransactionType,
    Worker,
)
from app_tpv.performance_logger import profile_function
from .errors import TPVError, ValidationError
from .ledger_service import LedgerWriter, next_id
from .periods import day_bounds, in_range, to_iso

NO_SALES_MSG = "No se han registrado ventas hoy. No hay caja que cerrar."


@dataclass(frozen=True)
class DaySummary:
    """Totales esperados en caja para el día."""
    sales_count: int
    total_sales_in_cup: float
    expected_cup: float
    expected_mlc: float
    expected_usd: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'sales_count': self.sales_count,
            'total_sales_in_cup': self.total_sales_in_cup,
            'expected_cup': self.expected_cup,
            'expected_mlc': self.expected_mlc,
            'expected_usd': self.expected_usd,
        }


def todays_sales(state: AppState, now: datetime) -> List[SaleReport]:
    start, end = day_bounds(now)
    return [s for s in state.reports if in_range(s.date, start, end)]


def summarize_day(sales: List[SaleReport]) -> Optional[DaySummary]:
    """
    Calcula los totales esperados por moneda.

    Returns:
        DaySummary, o None si no hay ventas (no se ofrece conciliación)
    """
    if not sales:
        return None

    expected = {Currency.CUP: 0.0, Currency.MLC: 0.0, Currency.USD: 0.0}
    total = 0.0
    for sale in sales:
        total += sale.total
        payment = sale.payment
        if payment.currency == Currency.CUP:
            expected[Currency.CUP] += payment.amount_paid - payment.change_in_cup
        else:
            expected[payment.currency] += payment.amount_paid

    return DaySummary(
        sales_count=len(sales),
        total_sales_in_cup=round(total, 2),
        expected_cup=round(expected[Currency.CUP], 2),
        expected_mlc=round(expected[Currency.MLC], 2),
        expected_usd=round(expected[Currency.USD], 2)
    )


def count_cash(cash_count: Dict[Any, Any]) -> Tuple[float, Dict[str, int]]:
    """
    Suma el conteo de billetes CUP.

    Args:
        cash_count: {denominación: cantidad}; las claves pueden ser texto

    Returns:
        Tupla (total_contado, detalle normalizado con todas las denominaciones)

    Raises:
        ValidationError: Denominación desconocida o cantidad no entera/negativa
    """
    if cash_count is None:
        cash_count = {}
    if not isinstance(cash_count, dict):
        raise ValidationError("El conteo de caja debe ser un mapa denominación -> cantidad.")

    details = {str(d): 0 for d in CUP_DENOMINATIONS}
    for raw_denomination, quantity in cash_count.items():
        try:
            denomination = int(raw_denomination)
        except (TypeError, ValueError):
            raise ValidationError(f"Denominación inválida: {raw_denomination}")
        if denomination not in CUP_DENOMINATIONS or str(raw_denomination).strip() != str(denomination):
            raise ValidationError(f"Denominación inválida: {raw_denomination}")
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 0:
            raise ValidationError(f"Cantidad inválida para billetes de {denomination}: {quantity}")
        details[str(denomination)] = quantity

    counted = sum(int(d) * q for d, q in details.items())
    return float(counted), details


def _counted_amount(value: Any, currency: str) -> float:
    if value is None:
        return 0.0
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value) or value < 0:
        raise ValidationError(f"El monto contado en {currency} debe ser un número válido y positivo.")
    return float(value)


def close_register(
    state: AppState,
    cash_count: Dict[Any, Any],
    counted_mlc: Any,
    counted_usd: Any,
    worker: Worker,
    now: datetime
) -> Tuple[AppState, Optional[Tuple[AuditReport, Optional[LedgerEntry]]]]:
    """
    Cierra la caja del día.

    Returns:
        (nuevo_estado, (reporte, asiento_faltante|None)), o
        (mismo_estado, None) si hoy no hubo ventas

    Raises:
        ValidationError: Conteo inválido
    """
    counted_cup, details = count_cash(cash_count)
    counted_mlc = _counted_amount(counted_mlc, 'MLC')
    counted_usd = _counted_amount(counted_usd, 'USD')

    summary = summarize_day(todays_sales(state, now))
    if summary is None:
        return state, None

    diff_cup = round(counted_cup - summary.expected_cup, 2)
    diff_mlc = round(counted_mlc - summary.expected_mlc, 2)
    diff_usd = round(counted_usd - summary.expected_usd, 2)
    date = to_iso(now)

    writer = LedgerWriter(state)
    shortage = None
    if diff_cup < 0:
        shortage = writer.append(
            TransactionType.CASH_SHORTAGE, diff_cup,
            f"Faltante de caja por {worker.name}.", date, worker_id=worker.id
        )

    report = AuditReport(
        id=next_id(state.audit_reports),
        date=date,
        closed_by_worker_id=worker.id,
        closed_by_worker_name=worker.name,
        system_totals={
            'total_sales_in_cup': summary.total_sales_in_cup,
            'expected_cup': summary.expected_cup,
            'expected_mlc': summary.expected_mlc,
            'expected_usd': summary.expected_usd,
        },
        counted_totals={
            'counted_cup': counted_cup,
            'counted_mlc': counted_mlc,
            'counted_usd': counted_usd,
        },
        discrepancies={
            'diff_cup': diff_cup,
            'diff_mlc': diff_mlc,
            'diff_usd': diff_usd,
        },
        cash_count_details=details
    )
    new_state = writer.commit(state, audit_reports=state.audit_reports + [report])
    return new_state, (report, shortage)


class CashAuditService:
    """
    Servicio de cierre de caja.

    Responsabilidades:
    - Resumen esperado del día (sin registrar nada)
    - Vista previa de diferencias para un conteo
    - Cierre definitivo con reporte y faltante
    """

    def __init__(self, state_repo, activity_service=None):
        self.state_repo = state_repo
        self.activity_service = activity_service

    def get_day_summary(self, now: datetime = None) -> Dict[str, Any]:
        now = now or datetime.now()
        summary = summarize_day(todays_sales(self.state_repo.load(), now))
        if summary is None:
            return {'ok': True, 'has_sales': False, 'message': NO_SALES_MSG}
        return {'ok': True, 'has_sales': True, 'summary': summary.to_dict()}

    def preview(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Calcula las diferencias de un conteo sin cerrar la caja."""
        now = datetime.now()
        try:
            counted_cup, details = count_cash(data.get('cash_count'))
            counted_mlc = _counted_amount(data.get('counted_mlc'), 'MLC')
            counted_usd = _counted_amount(data.get('counted_usd'), 'USD')
        except TPVError as e:
            return {'ok': False, 'error': e.message}

        summary = summarize_day(todays_sales(self.state_repo.load(), now))
        if summary is None:
            return {'ok': True, 'has_sales': False, 'message': NO_SALES_MSG}

        return {
            'ok': True,
            'has_sales': True,
            'summary': summary.to_dict(),
            'counted_totals': {
                'counted_cup': counted_cup,
                'counted_mlc': counted_mlc,
                'counted_usd': counted_usd,
            },
            'discrepancies': {
                'diff_cup': round(counted_cup - summary.expected_cup, 2),
                'diff_mlc': round(counted_mlc - summary.expected_mlc, 2),
                'diff_usd': round(counted_usd - summary.expected_usd, 2),
            },
            'cash_count_details': details,
        }

    @profile_function(name="Cerrar caja")
    def close(self, data: Dict[str, Any], worker: Worker) -> Dict[str, Any]:
        """
        Cierra la caja con el conteo indicado.

        Args:
            data: {"cash_count": {"1000": 2, ...}, "counted_mlc": 0, "counted_usd": 0}
            worker: Trabajador que cierra

        Returns:
            {'ok': True, 'closed': True, 'report': {...}, 'shortage': {...}|None}
            {'ok': True, 'closed': False, 'message': str} si no hubo ventas
            o {'ok': False, 'error': str}
        """
        now = datetime.now()
        try:
            result = self.state_repo.apply(
                lambda state: close_register(
                    state, data.get('cash_count'), data.get('counted_mlc'),
                    data.get('counted_usd'), worker, now
                )
            )
        except TPVError as e:
            return {'ok': False, 'error': e.message}

        if result is None:
            return {'ok': True, 'closed': False, 'message': NO_SALES_MSG}

        report, shortage = result
        if self.activity_service:
            self.activity_service.log_register_close(
                worker.name, report.id, report.discrepancies.get('diff_cup', 0.0)
            )

        return {
            'ok': True,
            'closed': True,
            'report': report.to_dict(),
            'shortage': shortage.to_dict() if shortage else None,
        }
