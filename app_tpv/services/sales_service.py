# ==============================================================================
# SERVICIO DE VENTAS - Liquidación de una venta
# ==============================================================================
# Una venta confirmada, en una sola transición:
#   1. Descuenta stock y suma unidades vendidas
#   2. Crea el registro de venta (precios y costos COPIADOS)
#   3. Asienta REEMBOLSO (+costo), 60% de ganancia a inversión y
#      40% de ganancia al fondo de pago
#   4. Si es a crédito, crea la deuda por lo no pagado
#
# Si cualquier validación falla no cambia NADA.
# ==============================================================================

import math
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

from app_tpv.constants import DEFAULT_CREDIT_DAYS, PROFIT_SHARE_INVESTMENT
from app_tpv.models import (
    AppState,
    Currency,
    Debt,
    DebtStatus,
    LedgerEntry,
    SaleItem,
    SalePayment,
    SaleReport,
    TransactionType,
    Worker,
)
from app_tpv.performance_logger import profile_function
from .errors import BusinessRuleError, TPVError, ValidationError
from .ledger_service import LedgerWriter, next_id
from .periods import to_iso


@dataclass(frozen=True)
class SaleLine:
    """Producto y cantidad pedidos en el carrito."""
    product_id: int
    quantity: int


@dataclass(frozen=True)
class SaleCommand:
    """Intención de venta tal como llega de la caja."""
    items: Tuple[SaleLine, ...]
    currency: str
    amount_paid: float
    is_credit: bool = False
    debtor_id: Optional[int] = None


@dataclass
class SaleSettlement:
    """Resultado de una venta liquidada."""
    sale: SaleReport
    entries: List[LedgerEntry] = field(default_factory=list)
    debt: Optional[Debt] = None


def _aggregate_lines(lines: Tuple[SaleLine, ...]) -> Dict[int, int]:
    """Agrupa cantidades por producto respetando el orden de aparición."""
    totals: Dict[int, int] = {}
    for line in lines:
        qty = line.quantity
        if isinstance(qty, bool) or not isinstance(qty, int) or qty <= 0:
            raise ValidationError(f"Cantidad inválida para el producto #{line.product_id}.")
        totals[line.product_id] = totals.get(line.product_id, 0) + qty
    return totals


def settle_sale(
    state: AppState,
    command: SaleCommand,
    worker: Worker,
    now: datetime
) -> Tuple[AppState, SaleSettlement]:
    """
    Liquida una venta sobre `state` y devuelve el nuevo estado.

    Args:
        state: Estado actual (no se modifica)
        command: Carrito, moneda, monto entregado y datos de crédito
        worker: Vendedor
        now: Momento de la venta

    Returns:
        Tupla (nuevo_estado, SaleSettlement)

    Raises:
        ValidationError: Carrito vacío, cantidad/moneda/monto inválidos,
            producto inexistente o pago a crédito que cubre el total
        BusinessRuleError: Stock o pago insuficiente, deudor inexistente
    """
    if not command.items:
        raise ValidationError("El carrito está vacío.")

    try:
        currency = Currency(command.currency)
    except ValueError:
        raise ValidationError(f"Moneda inválida: {command.currency}")

    paid = command.amount_paid
    if isinstance(paid, bool) or not isinstance(paid, (int, float)) or not math.isfinite(paid) or paid < 0:
        raise ValidationError("El monto entregado debe ser un número válido y positivo.")

    quantities = _aggregate_lines(command.items)

    # Validar existencia y stock contra la cantidad TOTAL por producto
    items: List[SaleItem] = []
    for product_id, qty in quantities.items():
        product = state.get_product(product_id)
        if product is None:
            raise ValidationError(f"Producto #{product_id} no encontrado.")
        if qty > product.stock:
            raise BusinessRuleError(
                f"Stock insuficiente para {product.name}. Disponible: {product.stock}, solicitado: {qty}."
            )
        items.append(SaleItem(
            product_id=product.id,
            sku=product.sku,
            name=product.name,
            quantity=qty,
            price=product.price,
            cost_price=product.cost_price,
            category_id=product.category_id
        ))

    total = round(sum(item.line_total for item in items), 2)
    cost = round(sum(item.line_cost for item in items), 2)
    profit = round(total - cost, 2)

    paid_in_cup = round(state.config.exchange_rates.to_cup(currency, paid), 2)

    debtor = None
    if command.is_credit:
        debtor = state.get_debtor(command.debtor_id) if command.debtor_id is not None else None
        if debtor is None:
            raise BusinessRuleError("Debe seleccionar un deudor válido para la venta a crédito.")
        if not debtor.is_active:
            raise BusinessRuleError(f"El deudor {debtor.name} está inactivo y no puede comprar a crédito.")
        if paid_in_cup >= total:
            raise ValidationError("El pago cubre el total de la venta. Regístrela como venta al contado.")
        change_in_cup = 0.0
    else:
        if paid_in_cup < total:
            raise BusinessRuleError(
                f"Pago insuficiente. Total: {total:.2f} CUP, recibido: {paid_in_cup:.2f} CUP."
            )
        change_in_cup = round(paid_in_cup - total, 2)

    # ── Todo validado: construir el nuevo estado ──
    date = to_iso(now)
    sale_id = next_id(state.reports)

    products = []
    for product in state.products:
        qty = quantities.get(product.id)
        if qty:
            product = replace(product, stock=product.stock - qty, sales=product.sales + qty)
        products.append(product)

    sale = SaleReport(
        id=sale_id,
        date=date,
        sold_by_worker_id=worker.id,
        items=items,
        items_count=sum(quantities.values()),
        total=total,
        payment=SalePayment(currency=currency, amount_paid=paid, change_in_cup=change_in_cup)
    )

    writer = LedgerWriter(state)
    to_investment = round(profit * PROFIT_SHARE_INVESTMENT, 2)
    writer.append(
        TransactionType.REIMBURSEMENT, cost,
        f"Reembolso de costo de Venta #{sale_id}", date, sale_id=sale_id
    )
    writer.append(
        TransactionType.PROFIT_SHARE_INVEST, to_investment,
        f"60% ganancia de Venta #{sale_id} a inversión", date, sale_id=sale_id
    )
    writer.append(
        TransactionType.PROFIT_SHARE_PAYOUT, round(profit - to_investment, 2),
        f"40% ganancia de Venta #{sale_id} a pagos", date, sale_id=sale_id
    )

    changes: Dict[str, Any] = {'products': products}
    debt = None
    if debtor is not None:
        remaining = round(total - paid_in_cup, 2)
        debt = Debt(
            id=next_id(state.debts),
            debtor_id=debtor.id,
            debtor_name=debtor.name,
            amount=remaining,
            original_amount=remaining,
            description=f"Venta a crédito #{sale_id}",
            due_date=to_iso(now + timedelta(days=DEFAULT_CREDIT_DAYS)),
            status=DebtStatus.PENDING,
            sale_id=sale_id,
            created_at=date,
            updated_at=date
        )
        sale = replace(sale, debtor_id=debtor.id, debt_id=debt.id)
        changes['debts'] = state.debts + [debt]
        changes['debtors'] = [
            replace(d, total_debt=round(d.total_debt + remaining, 2)) if d.id == debtor.id else d
            for d in state.debtors
        ]

    changes['reports'] = state.reports + [sale]
    new_state = writer.commit(state, **changes)
    return new_state, SaleSettlement(sale=sale, entries=writer.entries, debt=debt)


def parse_sale_command(data: Dict[str, Any]) -> SaleCommand:
    """
    Construye un SaleCommand desde un payload JSON.

    Formato:
        {
            "items": [{"product_id": 1, "quantity": 2}],
            "currency": "CUP",
            "amount_paid": 100,
            "is_credit": false,
            "debtor_id": null
        }
    """
    raw_items = data.get('items')
    if not isinstance(raw_items, list):
        raise ValidationError("El carrito está vacío.")

    lines = []
    for raw in raw_items:
        if not isinstance(raw, dict):
            raise ValidationError("Formato de línea de venta inválido.")
        try:
            product_id = int(raw.get('product_id'))
        except (TypeError, ValueError):
            raise ValidationError("ID de producto inválido.")
        lines.append(SaleLine(product_id=product_id, quantity=raw.get('quantity')))

    try:
        amount_paid = float(data.get('amount_paid', 0))
    except (TypeError, ValueError):
        raise ValidationError("El monto entregado debe ser un número válido y positivo.")

    is_credit = data.get('is_credit', False)
    if not isinstance(is_credit, bool):
        raise ValidationError("El campo is_credit debe ser true o false.")

    debtor_id = data.get('debtor_id')
    if debtor_id is not None:
        try:
            debtor_id = int(debtor_id)
        except (TypeError, ValueError):
            raise ValidationError("ID de deudor inválido.")

    return SaleCommand(
        items=tuple(lines),
        currency=str(data.get('currency', 'CUP')).upper(),
        amount_paid=amount_paid,
        is_credit=is_credit,
        debtor_id=debtor_id
    )


class SalesService:
    """
    Servicio de ventas.

    Orquesta: payload -> comando -> transición atómica -> registro de actividad.
    """

    def __init__(self, state_repo, activity_service=None):
        self.state_repo = state_repo
        self.activity_service = activity_service

    @profile_function(name="Liquidar venta")
    def create_sale(self, data: Dict[str, Any], worker: Worker) -> Dict[str, Any]:
        """
        Registra una venta.

        Args:
            data: Payload de la venta (ver parse_sale_command)
            worker: Vendedor

        Returns:
            {'ok': True, 'sale': {...}, 'change_in_cup': float, 'entries': [...], 'debt': {...}|None}
            o {'ok': False, 'error': str}
        """
        now = datetime.now()
        try:
            command = parse_sale_command(data)
            result = self.state_repo.apply(lambda state: settle_sale(state, command, worker, now))
        except TPVError as e:
            return {'ok': False, 'error': e.message}

        sale = result.sale
        if self.activity_service:
            self.activity_service.log_sale(
                worker.name, sale.id, sale.total, sale.payment.currency.value,
                sale.items_count, is_credit=sale.is_credit
            )

        return {
            'ok': True,
            'sale': sale.to_dict(),
            'change_in_cup': sale.payment.change_in_cup,
            'entries': [e.to_dict() for e in result.entries],
            'debt': result.debt.to_dict() if result.debt else None,
        }

    def get_sale(self, sale_id: int) -> Optional[Dict[str, Any]]:
        for sale in self.state_repo.load().reports:
            if sale.id == sale_id:
                return sale.to_dict()
        return None
