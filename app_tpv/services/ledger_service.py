# ==============================================================================
# SERVICIO DEL LIBRO DE TRANSACCIONES
# ==============================================================================
# Dos saldos (inversión y fondo de pago) y un libro de solo-agregar.
#
# REGLA DE ORO: ningún saldo cambia sin su asiento en el libro.
# Cada asiento guarda los dos saldos tal como quedaron después de él,
# así que repetir los montos desde cero reproduce los saldos vivos.
# ==============================================================================

import math
from dataclasses import replace
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from app_tpv.models import AppState, LedgerEntry, TransactionType, Worker
from app_tpv.performance_logger import profile_function
from .errors import TPVError, ValidationError
from .periods import to_iso


# Saldo afectado por cada tipo de movimiento
INVESTMENT = 'investment'
PAYOUT = 'payout'

TYPE_TARGET = {
    TransactionType.REIMBURSEMENT: INVESTMENT,
    TransactionType.PROFIT_SHARE_INVEST: INVESTMENT,
    TransactionType.PURCHASE: INVESTMENT,
    TransactionType.MANUAL_UPDATE: INVESTMENT,
    TransactionType.PROFIT_SHARE_PAYOUT: PAYOUT,
    TransactionType.PAYOUT_RESET: PAYOUT,
    TransactionType.CASH_SHORTAGE: None,  # Informativo: no mueve saldos
}

# Etiquetas legibles para listados
TRANSACTION_LABELS = {
    TransactionType.REIMBURSEMENT: 'Reembolso',
    TransactionType.PROFIT_SHARE_INVEST: 'Ganancia a Inversión',
    TransactionType.PROFIT_SHARE_PAYOUT: 'Ganancia a Pagos',
    TransactionType.PURCHASE: 'Compra',
    TransactionType.MANUAL_UPDATE: 'Ajuste Manual',
    TransactionType.PAYOUT_RESET: 'Pago de Nómina',
    TransactionType.CASH_SHORTAGE: 'Faltante de Caja',
}

INVALID_BALANCE_MSG = "El saldo debe ser un número válido y positivo."


def apply_amount(balance: float, amount: float) -> float:
    """Suma un monto a un saldo redondeando a centavos."""
    return round(balance + amount, 2)


def next_id(records: Iterable[Any]) -> int:
    """Siguiente ID: máximo existente + 1, o 1 si no hay registros."""
    return max((r.id for r in records), default=0) + 1


# ==============================================================================
# ESCRITOR DE ASIENTOS (local a una transición)
# ==============================================================================

class LedgerWriter:
    """
    Acumula asientos pendientes dentro de UNA transición.

    Lleva los saldos en curso y el siguiente ID, de modo que varios
    asientos de la misma operación reciben IDs consecutivos y
    snapshots correctos sin tocar el estado original.

    Uso:
        writer = LedgerWriter(state)
        writer.append(TransactionType.PURCHASE, -40.0, "Compra...", date)
        new_state = writer.commit(state, purchases=[...])
    """

    def __init__(self, state: AppState):
        self.investment_balance = state.investment_balance
        self.worker_payout_balance = state.worker_payout_balance
        self._next_id = next_id(state.transaction_log)
        self.entries: List[LedgerEntry] = []

    def append(
        self,
        kind: TransactionType,
        amount: float,
        description: str,
        date: str,
        sale_id: Optional[int] = None,
        purchase_id: Optional[int] = None,
        worker_id: Optional[int] = None
    ) -> LedgerEntry:
        """
        Aplica el monto al saldo del tipo y agrega el asiento.

        Returns:
            El asiento creado (con los saldos posteriores)
        """
        if kind == TransactionType.CASH_SHORTAGE and worker_id is None:
            raise ValidationError("Un faltante de caja debe indicar el trabajador responsable.")

        target = TYPE_TARGET[kind]
        if target == INVESTMENT:
            self.investment_balance = apply_amount(self.investment_balance, amount)
        elif target == PAYOUT:
            self.worker_payout_balance = apply_amount(self.worker_payout_balance, amount)

        entry = LedgerEntry(
            id=self._next_id,
            date=date,
            type=kind,
            description=description,
            amount=amount,
            investment_balance_after=self.investment_balance,
            worker_payout_balance_after=self.worker_payout_balance,
            sale_id=sale_id,
            purchase_id=purchase_id,
            worker_id=worker_id
        )
        self._next_id += 1
        self.entries.append(entry)
        return entry

    def commit(self, state: AppState, **changes) -> AppState:
        """Construye el nuevo estado con los asientos y saldos en curso."""
        return replace(
            state,
            transaction_log=state.transaction_log + self.entries,
            investment_balance=self.investment_balance,
            worker_payout_balance=self.worker_payout_balance,
            **changes
        )


# ==============================================================================
# VERIFICACIÓN DEL LIBRO
# ==============================================================================

def replay_balances(log: Iterable[LedgerEntry]) -> Tuple[float, float]:
    """
    Repite todos los asientos desde saldos cero.

    Returns:
        Tupla (saldo_inversion, fondo_pago)
    """
    investment, payout = 0.0, 0.0
    for entry in log:
        target = TYPE_TARGET[entry.type]
        if target == INVESTMENT:
            investment = apply_amount(investment, entry.amount)
        elif target == PAYOUT:
            payout = apply_amount(payout, entry.amount)
    return investment, payout


def verify_ledger(state: AppState) -> List[str]:
    """
    Revisa la consistencia del libro contra los saldos vivos.

    Returns:
        Lista de inconsistencias (vacía si el libro está correcto)
    """
    issues = []
    investment, payout = 0.0, 0.0
    last_id = 0

    for entry in state.transaction_log:
        if entry.id <= last_id:
            issues.append(f"Asiento #{entry.id}: ID repetido o fuera de orden (anterior #{last_id}).")
        last_id = max(last_id, entry.id)

        target = TYPE_TARGET[entry.type]
        if target == INVESTMENT:
            investment = apply_amount(investment, entry.amount)
        elif target == PAYOUT:
            payout = apply_amount(payout, entry.amount)

        if entry.investment_balance_after != investment:
            issues.append(
                f"Asiento #{entry.id}: saldo de inversión registrado {entry.investment_balance_after:.2f}, "
                f"esperado {investment:.2f}."
            )
        if entry.worker_payout_balance_after != payout:
            issues.append(
                f"Asiento #{entry.id}: fondo de pago registrado {entry.worker_payout_balance_after:.2f}, "
                f"esperado {payout:.2f}."
            )

    if investment != state.investment_balance:
        issues.append(
            f"Saldo de inversión {state.investment_balance:.2f} no coincide con el libro ({investment:.2f})."
        )
    if payout != state.worker_payout_balance:
        issues.append(
            f"Fondo de pago {state.worker_payout_balance:.2f} no coincide con el libro ({payout:.2f})."
        )
    return issues


# ==============================================================================
# AJUSTE MANUAL DEL SALDO DE INVERSIÓN
# ==============================================================================

def adjust_investment_balance(
    state: AppState,
    new_balance: float,
    now: datetime,
    worker: Optional[Worker] = None
) -> Tuple[AppState, LedgerEntry]:
    """
    Fija el saldo de inversión en `new_balance`.
    El asiento MANUAL_UPDATE lleva la diferencia con el saldo actual.

    Raises:
        ValidationError: Si el valor no es un número finito >= 0
    """
    if isinstance(new_balance, bool) or not isinstance(new_balance, (int, float)):
        raise ValidationError(INVALID_BALANCE_MSG)
    if not math.isfinite(new_balance) or new_balance < 0:
        raise ValidationError(INVALID_BALANCE_MSG)

    target = round(float(new_balance), 2)
    writer = LedgerWriter(state)
    entry = writer.append(
        TransactionType.MANUAL_UPDATE,
        round(target - state.investment_balance, 2),
        "Ajuste manual de saldo de inversión.",
        to_iso(now),
        worker_id=worker.id if worker else None
    )
    return writer.commit(state), entry


# ==============================================================================
# SERVICIO
# ==============================================================================

class LedgerService:
    """
    Servicio de consulta del libro y ajuste manual de saldo.

    Responsabilidades:
    - Listar asientos (con filtro por tipo)
    - Verificar la consistencia libro/saldos
    - Ajustar manualmente el saldo de inversión
    """

    def __init__(self, state_repo, activity_service=None):
        """
        Args:
            state_repo: Repositorio del estado (IStateRepository)
            activity_service: Registro de actividad (opcional)
        """
        self.state_repo = state_repo
        self.activity_service = activity_service

    def get_balances(self) -> Dict[str, float]:
        state = self.state_repo.load()
        return {
            'investment_balance': state.investment_balance,
            'worker_payout_balance': state.worker_payout_balance,
        }

    def list_transactions(self, kind: Optional[str] = None, limit: Optional[int] = None) -> Dict[str, Any]:
        """
        Lista los asientos, más recientes primero.

        Args:
            kind: Tipo de movimiento a filtrar (opcional)
            limit: Máximo de asientos a devolver (opcional)
        """
        entries = list(reversed(self.state_repo.load().transaction_log))
        if kind:
            try:
                wanted = TransactionType(kind)
            except ValueError:
                return {'ok': False, 'error': f"Tipo de transacción inválido: {kind}"}
            entries = [e for e in entries if e.type == wanted]
        if limit is not None:
            entries = entries[:max(0, limit)]

        rows = []
        for entry in entries:
            row = entry.to_dict()
            row['label'] = TRANSACTION_LABELS[entry.type]
            rows.append(row)
        return {'ok': True, 'transactions': rows, 'count': len(rows)}

    def verify(self) -> Dict[str, Any]:
        issues = verify_ledger(self.state_repo.load())
        return {'ok': True, 'consistent': not issues, 'issues': issues}

    @profile_function(name="Ajuste manual de saldo")
    def set_investment_balance(self, value: Any, worker: Worker) -> Dict[str, Any]:
        """
        Ajusta el saldo de inversión al valor indicado.

        Args:
            value: Nuevo saldo (número o texto numérico)
            worker: Trabajador que hace el ajuste

        Returns:
            {'ok': True, 'entry': {...}, 'investment_balance': float}
            o {'ok': False, 'error': str}
        """
        try:
            new_balance = float(value)
        except (TypeError, ValueError):
            return {'ok': False, 'error': INVALID_BALANCE_MSG}

        now = datetime.now()
        try:
            entry = self.state_repo.apply(
                lambda state: adjust_investment_balance(state, new_balance, now, worker)
            )
        except TPVError as e:
            return {'ok': False, 'error': e.message}

        if self.activity_service:
            self.activity_service.log_balance_adjustment(
                worker.name, entry.id, entry.amount, entry.investment_balance_after
            )

        return {
            'ok': True,
            'entry': entry.to_dict(),
            'investment_balance': entry.investment_balance_after,
        }
