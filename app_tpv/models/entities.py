# ==============================================================================
# ENTIDADES DEL DOMINIO - Definiciones de dataclasses
# ==============================================================================
# Cada entidad representa un concepto del negocio del TPV.
# Diseñadas para ser independientes del mecanismo de persistencia.
#
# REGLA: los registros históricos (ventas, compras, cierres, nóminas y
# transacciones) COPIAN los precios en el momento de la operación.
# Nunca se recalculan desde el catálogo vivo.
# ==============================================================================

from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any
from enum import Enum

from app_tpv.constants import DEFAULT_MLC_TO_CUP, DEFAULT_USD_TO_CUP


# ==============================================================================
# ENUMERACIONES - Estados y tipos válidos
# ==============================================================================

class WorkerRole(str, Enum):
    """Roles de trabajador disponibles en el sistema."""
    ADMIN = "Admin"
    GERENTE = "Gerente"
    VENDEDOR = "Vendedor"


class Currency(str, Enum):
    """Monedas aceptadas en caja."""
    CUP = "CUP"   # Efectivo en pesos cubanos
    MLC = "MLC"   # Tarjeta en moneda libremente convertible
    USD = "USD"   # Dólares en efectivo


class TransactionType(str, Enum):
    """Tipos de movimiento del libro de transacciones."""
    REIMBURSEMENT = "REIMBURSEMENT"              # Reembolso del costo de una venta
    PROFIT_SHARE_INVEST = "PROFIT_SHARE_INVEST"  # 60% de ganancia a inversión
    PROFIT_SHARE_PAYOUT = "PROFIT_SHARE_PAYOUT"  # 40% de ganancia a pagos
    PURCHASE = "PURCHASE"                        # Compra de inventario
    MANUAL_UPDATE = "MANUAL_UPDATE"              # Ajuste manual del saldo
    PAYOUT_RESET = "PAYOUT_RESET"                # Pago de nómina
    CASH_SHORTAGE = "CASH_SHORTAGE"              # Faltante de caja


class DebtStatus(str, Enum):
    """Estados posibles de una deuda."""
    PENDING = "PENDING"
    PARTIAL = "PARTIAL"
    PAID = "PAID"
    OVERDUE = "OVERDUE"
    CANCELLED = "CANCELLED"


class PaymentMethod(str, Enum):
    """Métodos aceptados para abonar una deuda."""
    CASH = "CASH"
    MLC = "MLC"
    USD = "USD"
    TRANSFER = "TRANSFER"
    OTHER = "OTHER"


def _enum_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


# ==============================================================================
# CATÁLOGO
# ==============================================================================

@dataclass
class Category:
    """Categoría de productos (el nombre da el prefijo del SKU)."""
    id: int
    name: str
    icon: str = "📦"

    def to_dict(self) -> Dict[str, Any]:
        return {'id': self.id, 'name': self.name, 'icon': self.icon}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Category':
        return cls(
            id=data.get('id', 0),
            name=data.get('name', ''),
            icon=data.get('icon', "📦")
        )


@dataclass
class Product:
    """
    Producto del catálogo.

    Attributes:
        id: Identificador único del producto
        sku: Código SKU (PREFIJO-NNN)
        name: Nombre del producto
        price: Precio de venta en CUP
        cost_price: Costo unitario de la última compra
        stock: Unidades disponibles
        sales: Unidades vendidas en toda la vida del producto
        category_id: Categoría a la que pertenece
    """
    id: int
    sku: str
    name: str
    price: float = 0.0
    cost_price: float = 0.0
    stock: int = 0
    sales: int = 0
    category_id: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convierte a diccionario para persistencia."""
        return {
            'id': self.id,
            'sku': self.sku,
            'name': self.name,
            'price': self.price,
            'cost_price': self.cost_price,
            'stock': self.stock,
            'sales': self.sales,
            'category_id': self.category_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Product':
        """Crea instancia desde diccionario."""
        return cls(
            id=data.get('id', 0),
            sku=data.get('sku', ''),
            name=data.get('name', ''),
            price=data.get('price', 0.0),
            cost_price=data.get('cost_price', 0.0),
            stock=data.get('stock', 0),
            sales=data.get('sales', 0),
            category_id=data.get('category_id', 0)
        )


# ==============================================================================
# TRABAJADORES
# ==============================================================================

@dataclass
class Worker:
    """
    Trabajador del negocio.
    El núcleo solo lee id, nombre y rol; nunca modifica el directorio.
    """
    id: int
    name: str
    role: WorkerRole = WorkerRole.VENDEDOR

    def is_admin(self) -> bool:
        """Verifica si recibe la parte de administración en la nómina."""
        return self.role == WorkerRole.ADMIN

    def to_dict(self) -> Dict[str, Any]:
        return {'id': self.id, 'name': self.name, 'role': _enum_value(self.role)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Worker':
        try:
            role = WorkerRole(data.get('role', 'Vendedor'))
        except ValueError:
            role = WorkerRole.VENDEDOR
        return cls(id=data.get('id', 0), name=data.get('name', ''), role=role)


# ==============================================================================
# VENTAS
# ==============================================================================

@dataclass
class SaleItem:
    """
    Línea de una venta. Copia del producto en el momento de vender.

    Attributes:
        product_id: ID del producto vendido
        sku: SKU en el momento de la venta
        name: Nombre en el momento de la venta
        category_id: Categoría en el momento de la venta
        quantity: Unidades vendidas
        price: Precio unitario de venta
        cost_price: Costo unitario capturado al vender
    """
    product_id: int
    sku: str
    name: str
    quantity: int
    price: float
    cost_price: float
    category_id: int = 0

    @property
    def line_total(self) -> float:
        return self.price * self.quantity

    @property
    def line_cost(self) -> float:
        return self.cost_price * self.quantity

    @property
    def line_profit(self) -> float:
        return (self.price - self.cost_price) * self.quantity

    def to_dict(self) -> Dict[str, Any]:
        return {
            'product_id': self.product_id,
            'sku': self.sku,
            'name': self.name,
            'quantity': self.quantity,
            'price': self.price,
            'cost_price': self.cost_price,
            'category_id': self.category_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SaleItem':
        return cls(
            product_id=data.get('product_id', 0),
            sku=data.get('sku', ''),
            name=data.get('name', ''),
            quantity=data.get('quantity', 0),
            price=data.get('price', 0.0),
            cost_price=data.get('cost_price', 0.0),
            category_id=data.get('category_id', 0)
        )


@dataclass
class SalePayment:
    """
    Pago recibido en una venta.

    Attributes:
        currency: Moneda usada (una sola por venta)
        amount_paid: Monto entregado en esa moneda
        change_in_cup: Vuelto devuelto en CUP
    """
    currency: Currency = Currency.CUP
    amount_paid: float = 0.0
    change_in_cup: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'currency': _enum_value(self.currency),
            'amount_paid': self.amount_paid,
            'change_in_cup': self.change_in_cup,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SalePayment':
        return cls(
            currency=Currency(data.get('currency', 'CUP')),
            amount_paid=data.get('amount_paid', 0.0),
            change_in_cup=data.get('change_in_cup', 0.0)
        )


@dataclass
class SaleReport:
    """
    Registro inmutable de una venta finalizada.

    Attributes:
        id: Número de venta (creciente)
        date: Timestamp ISO de la venta
        sold_by_worker_id: Vendedor
        items: Líneas vendidas (con precios copiados)
        items_count: Total de unidades
        total: Total en CUP
        payment: Moneda, monto entregado y vuelto
        debtor_id: Deudor si fue venta a crédito
        debt_id: Deuda generada por la venta a crédito
    """
    id: int
    date: str
    sold_by_worker_id: int
    items: List[SaleItem] = field(default_factory=list)
    items_count: int = 0
    total: float = 0.0
    payment: SalePayment = field(default_factory=SalePayment)
    debtor_id: Optional[int] = None
    debt_id: Optional[int] = None

    @property
    def cost_total(self) -> float:
        """Costo de la mercancía vendida (precios capturados)."""
        return sum(item.line_cost for item in self.items)

    @property
    def profit(self) -> float:
        """Ganancia de la venta: suma de (precio - costo) * cantidad."""
        return sum(item.line_profit for item in self.items)

    @property
    def is_credit(self) -> bool:
        return self.debtor_id is not None

    def to_dict(self) -> Dict[str, Any]:
        d = {
            'id': self.id,
            'date': self.date,
            'sold_by_worker_id': self.sold_by_worker_id,
            'items': [item.to_dict() for item in self.items],
            'items_count': self.items_count,
            'total': self.total,
            'payment': self.payment.to_dict(),
        }
        if self.debtor_id is not None:
            d['debtor_id'] = self.debtor_id
        if self.debt_id is not None:
            d['debt_id'] = self.debt_id
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SaleReport':
        return cls(
            id=data.get('id', 0),
            date=data.get('date', ''),
            sold_by_worker_id=data.get('sold_by_worker_id', 0),
            items=[SaleItem.from_dict(i) for i in data.get('items', [])],
            items_count=data.get('items_count', 0),
            total=data.get('total', 0.0),
            payment=SalePayment.from_dict(data.get('payment', {})),
            debtor_id=data.get('debtor_id'),
            debt_id=data.get('debt_id')
        )


# ==============================================================================
# COMPRAS
# ==============================================================================

@dataclass
class PurchaseItem:
    """Línea de una compra de inventario."""
    product_id: int
    name: str
    quantity: int
    cost_price: float
    selling_price: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'product_id': self.product_id,
            'name': self.name,
            'quantity': self.quantity,
            'cost_price': self.cost_price,
            'selling_price': self.selling_price,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PurchaseItem':
        return cls(
            product_id=data.get('product_id', 0),
            name=data.get('name', ''),
            quantity=data.get('quantity', 0),
            cost_price=data.get('cost_price', 0.0),
            selling_price=data.get('selling_price', 0.0)
        )


@dataclass
class PurchaseReport:
    """Registro inmutable de una compra."""
    id: int
    date: str
    items: List[PurchaseItem] = field(default_factory=list)
    items_count: int = 0
    total_cost: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'date': self.date,
            'items': [item.to_dict() for item in self.items],
            'items_count': self.items_count,
            'total_cost': self.total_cost,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PurchaseReport':
        return cls(
            id=data.get('id', 0),
            date=data.get('date', ''),
            items=[PurchaseItem.from_dict(i) for i in data.get('items', [])],
            items_count=data.get('items_count', 0),
            total_cost=data.get('total_cost', 0.0)
        )


# ==============================================================================
# LIBRO DE TRANSACCIONES
# ==============================================================================

@dataclass(frozen=True)
class LedgerEntry:
    """
    Movimiento monetario del libro de transacciones.
    Inmutable: se crea una sola vez y nunca se edita ni se borra.

    Attributes:
        id: Identificador creciente (nunca se reutiliza)
        date: Timestamp ISO
        type: Tipo de movimiento
        description: Descripción legible
        amount: Monto con signo (CUP)
        sale_id: Venta relacionada (opcional)
        purchase_id: Compra relacionada (opcional)
        worker_id: Trabajador (obligatorio en faltantes de caja)
        investment_balance_after: Saldo de inversión tras el movimiento
        worker_payout_balance_after: Fondo de pago tras el movimiento
    """
    id: int
    date: str
    type: TransactionType
    description: str
    amount: float
    investment_balance_after: float
    worker_payout_balance_after: float
    sale_id: Optional[int] = None
    purchase_id: Optional[int] = None
    worker_id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        d = {
            'id': self.id,
            'date': self.date,
            'type': _enum_value(self.type),
            'description': self.description,
            'amount': self.amount,
            'investment_balance_after': self.investment_balance_after,
            'worker_payout_balance_after': self.worker_payout_balance_after,
        }
        if self.sale_id is not None:
            d['sale_id'] = self.sale_id
        if self.purchase_id is not None:
            d['purchase_id'] = self.purchase_id
        if self.worker_id is not None:
            d['worker_id'] = self.worker_id
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LedgerEntry':
        return cls(
            id=data.get('id', 0),
            date=data.get('date', ''),
            type=TransactionType(data.get('type')),
            description=data.get('description', ''),
            amount=data.get('amount', 0.0),
            investment_balance_after=data.get('investment_balance_after', 0.0),
            worker_payout_balance_after=data.get('worker_payout_balance_after', 0.0),
            sale_id=data.get('sale_id'),
            purchase_id=data.get('purchase_id'),
            worker_id=data.get('worker_id')
        )


# ==============================================================================
# CIERRES DE CAJA
# ==============================================================================

@dataclass
class AuditReport:
    """
    Cierre de caja (auditoría diaria).

    Attributes:
        id: Número de cierre
        date: Timestamp ISO del cierre
        closed_by_worker_id: Trabajador que cerró la caja
        closed_by_worker_name: Nombre del trabajador
        system_totals: total_sales_in_cup, expected_cup, expected_mlc, expected_usd
        counted_totals: counted_cup, counted_mlc, counted_usd
        discrepancies: diff_cup, diff_mlc, diff_usd (contado - esperado)
        cash_count_details: {denominación: cantidad}
    """
    id: int
    date: str
    closed_by_worker_id: int
    closed_by_worker_name: str
    system_totals: Dict[str, float] = field(default_factory=dict)
    counted_totals: Dict[str, float] = field(default_factory=dict)
    discrepancies: Dict[str, float] = field(default_factory=dict)
    cash_count_details: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'date': self.date,
            'closed_by_worker_id': self.closed_by_worker_id,
            'closed_by_worker_name': self.closed_by_worker_name,
            'system_totals': dict(self.system_totals),
            'counted_totals': dict(self.counted_totals),
            'discrepancies': dict(self.discrepancies),
            'cash_count_details': dict(self.cash_count_details),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AuditReport':
        return cls(
            id=data.get('id', 0),
            date=data.get('date', ''),
            closed_by_worker_id=data.get('closed_by_worker_id', 0),
            closed_by_worker_name=data.get('closed_by_worker_name', ''),
            system_totals=data.get('system_totals', {}),
            counted_totals=data.get('counted_totals', {}),
            discrepancies=data.get('discrepancies', {}),
            cash_count_details=data.get('cash_count_details', {})
        )


# ==============================================================================
# NÓMINA
# ==============================================================================

@dataclass
class PayrollDetail:
    """Fila de la nómina para un trabajador."""
    worker_id: int
    worker_name: str
    role: WorkerRole
    sales_contribution: float = 0.0
    gross_pay: float = 0.0
    shortage_deductions: float = 0.0
    final_pay: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'worker_id': self.worker_id,
            'worker_name': self.worker_name,
            'role': _enum_value(self.role),
            'sales_contribution': self.sales_contribution,
            'gross_pay': self.gross_pay,
            'shortage_deductions': self.shortage_deductions,
            'final_pay': self.final_pay,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PayrollDetail':
        return cls(
            worker_id=data.get('worker_id', 0),
            worker_name=data.get('worker_name', ''),
            role=WorkerRole(data.get('role', 'Vendedor')),
            sales_contribution=data.get('sales_contribution', 0.0),
            gross_pay=data.get('gross_pay', 0.0),
            shortage_deductions=data.get('shortage_deductions', 0.0),
            final_pay=data.get('final_pay', 0.0)
        )


@dataclass
class PayrollReport:
    """
    Nómina procesada.

    Attributes:
        id: Número de nómina
        date: Timestamp ISO del procesamiento (inicio del siguiente período)
        processed_by_worker_name: Quién la procesó
        period_start_date: Inicio del período (exclusivo)
        period_end_date: Fin del período (inclusivo)
        total_payout_fund: Fondo total distribuido
        admin_share: 30% del fondo
        worker_share: 70% del fondo
        details: Desglose por trabajador
        last_sale_id: Última venta incluida; el siguiente período empieza después
        last_entry_id: Asiento PAYOUT_RESET de esta nómina
    """
    id: int
    date: str
    processed_by_worker_name: str
    period_start_date: str
    period_end_date: str
    total_payout_fund: float
    admin_share: float
    worker_share: float
    details: List[PayrollDetail] = field(default_factory=list)
    last_sale_id: Optional[int] = None
    last_entry_id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'date': self.date,
            'processed_by_worker_name': self.processed_by_worker_name,
            'period_start_date': self.period_start_date,
            'period_end_date': self.period_end_date,
            'total_payout_fund': self.total_payout_fund,
            'admin_share': self.admin_share,
            'worker_share': self.worker_share,
            'details': [d.to_dict() for d in self.details],
            'last_sale_id': self.last_sale_id,
            'last_entry_id': self.last_entry_id,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PayrollReport':
        return cls(
            id=data.get('id', 0),
            date=data.get('date', ''),
            processed_by_worker_name=data.get('processed_by_worker_name', ''),
            period_start_date=data.get('period_start_date', ''),
            period_end_date=data.get('period_end_date', ''),
            total_payout_fund=data.get('total_payout_fund', 0.0),
            admin_share=data.get('admin_share', 0.0),
            worker_share=data.get('worker_share', 0.0),
            details=[PayrollDetail.from_dict(d) for d in data.get('details', [])],
            last_sale_id=data.get('last_sale_id'),
            last_entry_id=data.get('last_entry_id')
        )


# ==============================================================================
# DEUDORES Y DEUDAS
# ==============================================================================

@dataclass
class Debtor:
    """Cliente con crédito en el negocio."""
    id: int
    name: str
    phone: str = ''
    credit_limit: float = 0.0
    total_debt: float = 0.0
    is_active: bool = True
    created_at: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'phone': self.phone,
            'credit_limit': self.credit_limit,
            'total_debt': self.total_debt,
            'is_active': self.is_active,
            'created_at': self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Debtor':
        return cls(
            id=data.get('id', 0),
            name=data.get('name', ''),
            phone=data.get('phone', ''),
            credit_limit=data.get('credit_limit', 0.0),
            total_debt=data.get('total_debt', 0.0),
            is_active=data.get('is_active', True),
            created_at=data.get('created_at', '')
        )


@dataclass
class Debt:
    """
    Deuda de un cliente.

    Attributes:
        id: Identificador de la deuda
        debtor_id: Deudor
        debtor_name: Nombre del deudor (para mostrar sin join)
        amount: Monto pendiente
        original_amount: Monto original
        description: Motivo
        due_date: Fecha de vencimiento ISO
        status: Estado actual
        sale_id: Venta que la originó (si aplica)
    """
    id: int
    debtor_id: int
    debtor_name: str
    amount: float
    original_amount: float
    description: str = ''
    due_date: str = ''
    status: DebtStatus = DebtStatus.PENDING
    sale_id: Optional[int] = None
    created_at: str = ''
    updated_at: str = ''

    def to_dict(self) -> Dict[str, Any]:
        d = {
            'id': self.id,
            'debtor_id': self.debtor_id,
            'debtor_name': self.debtor_name,
            'amount': self.amount,
            'original_amount': self.original_amount,
            'description': self.description,
            'due_date': self.due_date,
            'status': _enum_value(self.status),
            'created_at': self.created_at,
            'updated_at': self.updated_at,
        }
        if self.sale_id is not None:
            d['sale_id'] = self.sale_id
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Debt':
        return cls(
            id=data.get('id', 0),
            debtor_id=data.get('debtor_id', 0),
            debtor_name=data.get('debtor_name', ''),
            amount=data.get('amount', 0.0),
            original_amount=data.get('original_amount', 0.0),
            description=data.get('description', ''),
            due_date=data.get('due_date', ''),
            status=DebtStatus(data.get('status', 'PENDING')),
            sale_id=data.get('sale_id'),
            created_at=data.get('created_at', ''),
            updated_at=data.get('updated_at', '')
        )


@dataclass
class DebtPayment:
    """Abono a una deuda."""
    id: int
    debt_id: int
    amount: float
    payment_date: str
    payment_method: PaymentMethod = PaymentMethod.CASH
    received_by_worker_id: int = 0
    received_by_worker_name: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'debt_id': self.debt_id,
            'amount': self.amount,
            'payment_date': self.payment_date,
            'payment_method': _enum_value(self.payment_method),
            'received_by_worker_id': self.received_by_worker_id,
            'received_by_worker_name': self.received_by_worker_name,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DebtPayment':
        return cls(
            id=data.get('id', 0),
            debt_id=data.get('debt_id', 0),
            amount=data.get('amount', 0.0),
            payment_date=data.get('payment_date', ''),
            payment_method=PaymentMethod(data.get('payment_method', 'CASH')),
            received_by_worker_id=data.get('received_by_worker_id', 0),
            received_by_worker_name=data.get('received_by_worker_name', '')
        )


# ==============================================================================
# CONFIGURACIÓN
# ==============================================================================

@dataclass
class ExchangeRates:
    """Tasas de cambio (1 unidad de la moneda -> CUP)."""
    mlc_to_cup: float = DEFAULT_MLC_TO_CUP
    usd_to_cup: float = DEFAULT_USD_TO_CUP

    def to_cup(self, currency: Currency, amount: float) -> float:
        """Convierte un monto en la moneda indicada a CUP."""
        if currency == Currency.MLC:
            return amount * self.mlc_to_cup
        if currency == Currency.USD:
            return amount * self.usd_to_cup
        return amount

    def to_dict(self) -> Dict[str, Any]:
        return {'mlc_to_cup': self.mlc_to_cup, 'usd_to_cup': self.usd_to_cup}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ExchangeRates':
        return cls(
            mlc_to_cup=data.get('mlc_to_cup', DEFAULT_MLC_TO_CUP),
            usd_to_cup=data.get('usd_to_cup', DEFAULT_USD_TO_CUP)
        )


@dataclass
class Config:
    exchange_rates: ExchangeRates = field(default_factory=ExchangeRates)

    def to_dict(self) -> Dict[str, Any]:
        return {'exchange_rates': self.exchange_rates.to_dict()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Config':
        return cls(exchange_rates=ExchangeRates.from_dict(data.get('exchange_rates', {})))


# ==============================================================================
# ESTADO DE LA APLICACIÓN
# ==============================================================================

@dataclass
class AppState:
    """
    Documento único con todo el estado del negocio.

    Los servicios nunca lo modifican en sitio: cada operación construye
    un estado nuevo a partir del anterior (ver services/).
    """
    products: List[Product] = field(default_factory=list)
    categories: List[Category] = field(default_factory=list)
    reports: List[SaleReport] = field(default_factory=list)
    purchases: List[PurchaseReport] = field(default_factory=list)
    config: Config = field(default_factory=Config)
    investment_balance: float = 0.0
    worker_payout_balance: float = 0.0
    transaction_log: List[LedgerEntry] = field(default_factory=list)
    workers: List[Worker] = field(default_factory=list)
    audit_reports: List[AuditReport] = field(default_factory=list)
    payroll_reports: List[PayrollReport] = field(default_factory=list)
    debtors: List[Debtor] = field(default_factory=list)
    debts: List[Debt] = field(default_factory=list)
    debt_payments: List[DebtPayment] = field(default_factory=list)

    def get_product(self, product_id: int) -> Optional[Product]:
        for product in self.products:
            if product.id == product_id:
                return product
        return None

    def get_category(self, category_id: int) -> Optional[Category]:
        for category in self.categories:
            if category.id == category_id:
                return category
        return None

    def get_worker(self, worker_id: int) -> Optional[Worker]:
        for worker in self.workers:
            if worker.id == worker_id:
                return worker
        return None

    def get_debtor(self, debtor_id: int) -> Optional[Debtor]:
        for debtor in self.debtors:
            if debtor.id == debtor_id:
                return debtor
        return None

    def get_debt(self, debt_id: int) -> Optional[Debt]:
        for debt in self.debts:
            if debt.id == debt_id:
                return debt
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convierte a diccionario para persistencia JSON."""
        return {
            'products': [p.to_dict() for p in self.products],
            'categories': [c.to_dict() for c in self.categories],
            'reports': [r.to_dict() for r in self.reports],
            'purchases': [p.to_dict() for p in self.purchases],
            'config': self.config.to_dict(),
            'investment_balance': self.investment_balance,
            'worker_payout_balance': self.worker_payout_balance,
            'transaction_log': [t.to_dict() for t in self.transaction_log],
            'workers': [w.to_dict() for w in self.workers],
            'audit_reports': [a.to_dict() for a in self.audit_reports],
            'payroll_reports': [p.to_dict() for p in self.payroll_reports],
            'debtors': [d.to_dict() for d in self.debtors],
            'debts': [d.to_dict() for d in self.debts],
            'debt_payments': [p.to_dict() for p in self.debt_payments],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AppState':
        """Crea instancia desde diccionario (formato JSON)."""
        return cls(
            products=[Product.from_dict(p) for p in data.get('products', [])],
            categories=[Category.from_dict(c) for c in data.get('categories', [])],
            reports=[SaleReport.from_dict(r) for r in data.get('reports', [])],
            purchases=[PurchaseReport.from_dict(p) for p in data.get('purchases', [])],
            config=Config.from_dict(data.get('config', {})),
            investment_balance=data.get('investment_balance', 0.0),
            worker_payout_balance=data.get('worker_payout_balance', 0.0),
            transaction_log=[LedgerEntry.from_dict(t) for t in data.get('transaction_log', [])],
            workers=[Worker.from_dict(w) for w in data.get('workers', [])],
            audit_reports=[AuditReport.from_dict(a) for a in data.get('audit_reports', [])],
            payroll_reports=[PayrollReport.from_dict(p) for p in data.get('payroll_reports', [])],
            debtors=[Debtor.from_dict(d) for d in data.get('debtors', [])],
            debts=[Debt.from_dict(d) for d in data.get('debts', [])],
            debt_payments=[DebtPayment.from_dict(p) for p in data.get('debt_payments', [])]
        )
