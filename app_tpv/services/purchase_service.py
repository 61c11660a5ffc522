# ==============================================================================
# SERVICIO DE COMPRAS - Reposición de inventario
# ==============================================================================
# Una compra se paga con el saldo de inversión:
#   - Producto existente → suma stock y sobrescribe costo y precio
#   - Producto nuevo     → se crea con SKU generado desde la categoría
#   - Un solo asiento PURCHASE por el costo total (negativo)
#
# Modos de línea:
#   'package' → paquetes × unidades/paquete, costo por paquete
#   'unit'    → unidades sueltas, costo unitario
# ==============================================================================

import math
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from app_tpv.constants import DEFAULT_SKU_PREFIX, LOW_PROFIT_MARGIN, SUGGESTED_MARKUP
from app_tpv.models import (
    AppState,
    LedgerEntry,
    Product,
    PurchaseItem,
    PurchaseReport,
    TransactionType,
    Worker,
)
from app_tpv.performance_logger import profile_function
from .errors import BusinessRuleError, TPVError, ValidationError
from .ledger_service import LedgerWriter, next_id
from .periods import to_iso

MODE_PACKAGE = 'package'
MODE_UNIT = 'unit'

INVALID_CART_MSG = "Revise los campos requeridos en el carrito."
INSUFFICIENT_FUNDS_MSG = "Saldo insuficiente para esta compra."


@dataclass(frozen=True)
class PurchaseLine:
    """
    Línea del carrito de compras.

    product_id = None indica un producto NUEVO (requiere name y category_id).
    """
    mode: str
    selling_price: Any
    product_id: Optional[int] = None
    name: str = ''
    category_id: Optional[int] = None
    package_quantity: Any = None
    units_per_package: Any = None
    package_cost: Any = None
    unit_quantity: Any = None
    unit_cost: Any = None

    @property
    def is_new(self) -> bool:
        return self.product_id is None


@dataclass(frozen=True)
class PurchaseLineCalc:
    """Cálculos derivados de una línea de compra."""
    total_units: int
    unit_cost: float
    line_cost: float
    suggested_selling_price: float
    has_low_profit: bool
    errors: Tuple[str, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total_units': self.total_units,
            'unit_cost': self.unit_cost,
            'line_cost': self.line_cost,
            'suggested_selling_price': self.suggested_selling_price,
            'has_low_profit': self.has_low_profit,
            'is_valid': self.is_valid,
            'errors': list(self.errors),
        }


def _positive_int(value: Any) -> Optional[int]:
    """Entero > 0 (acepta 5.0 pero no 5.5 ni booleanos)."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, float) and math.isfinite(value) and value.is_integer() and value > 0:
        return int(value)
    return None


def _positive_number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value) or value <= 0:
        return None
    return float(value)


def calculate_purchase_line(line: PurchaseLine) -> PurchaseLineCalc:
    """
    Calcula unidades, costo unitario, costo de línea, precio sugerido
    (costo unitario × 1.3) y alerta de margen bajo (< 30%).

    Nunca lanza excepciones: los problemas se devuelven en `errors`.
    """
    errors = []

    if line.mode == MODE_PACKAGE:
        packages = _positive_int(line.package_quantity)
        per_package = _positive_int(line.units_per_package)
        package_cost = _positive_number(line.package_cost)
        if packages is None:
            errors.append("La cantidad de paquetes debe ser un entero mayor a 0.")
        if per_package is None:
            errors.append("Las unidades por paquete deben ser un entero mayor a 0.")
        if package_cost is None:
            errors.append("El costo del paquete debe ser mayor a 0.")
        total_units = (packages or 0) * (per_package or 0)
        unit_cost = (package_cost or 0.0) / per_package if per_package else 0.0
        line_cost = (packages or 0) * (package_cost or 0.0)
    elif line.mode == MODE_UNIT:
        units = _positive_int(line.unit_quantity)
        unit_cost = _positive_number(line.unit_cost)
        if units is None:
            errors.append("La cantidad de unidades debe ser un entero mayor a 0.")
        if unit_cost is None:
            errors.append("El costo unitario debe ser mayor a 0.")
        total_units = units or 0
        unit_cost = unit_cost or 0.0
        line_cost = total_units * unit_cost
    else:
        errors.append(f"Modo de compra inválido: {line.mode}")
        total_units, unit_cost, line_cost = 0, 0.0, 0.0

    selling_price = _positive_number(line.selling_price)
    if selling_price is None:
        errors.append("El precio de venta debe ser mayor a 0.")

    if line.is_new and not (line.name or '').strip():
        errors.append("El producto nuevo necesita un nombre.")

    suggested = round(unit_cost * SUGGESTED_MARKUP, 2) if unit_cost > 0 else 0.0
    has_low_profit = False
    if selling_price and unit_cost > 0:
        has_low_profit = (selling_price - unit_cost) / unit_cost < LOW_PROFIT_MARGIN

    return PurchaseLineCalc(
        total_units=total_units,
        unit_cost=unit_cost,
        line_cost=round(line_cost, 2),
        suggested_selling_price=suggested,
        has_low_profit=has_low_profit,
        errors=tuple(errors)
    )


def generate_sku(category_name: Optional[str], products: List[Product]) -> str:
    """
    Genera el siguiente SKU para una categoría.

    Prefijo: primeras 3 letras del nombre en mayúsculas ('GEN' si no hay
    categoría). Número: máximo existente con ese prefijo + 1, a 3 dígitos.

    Ejemplo: categoría "Bebidas" con BEB-001 y BEB-004 -> "BEB-005"
    """
    prefix = category_name[:3].upper() if category_name else DEFAULT_SKU_PREFIX
    last_number = 0
    for product in products:
        if not product.sku.startswith(prefix):
            continue
        parts = product.sku.split('-')
        if len(parts) > 1 and parts[1].isdigit():
            last_number = max(last_number, int(parts[1]))
    return f"{prefix}-{last_number + 1:03d}"


def settle_purchase(
    state: AppState,
    lines: List[PurchaseLine],
    now: datetime
) -> Tuple[AppState, Tuple[PurchaseReport, LedgerEntry]]:
    """
    Liquida una compra sobre `state`.

    Raises:
        ValidationError: Carrito vacío o alguna línea inválida
        BusinessRuleError: Costo total mayor al saldo de inversión
    """
    if not lines:
        raise ValidationError("El carrito de compras está vacío.")

    calcs = []
    seen_products = set()
    for line in lines:
        calc = calculate_purchase_line(line)
        if not calc.is_valid:
            raise ValidationError(f"{INVALID_CART_MSG} {calc.errors[0]}")
        if line.is_new:
            if line.category_id is None or state.get_category(line.category_id) is None:
                raise ValidationError(f"{INVALID_CART_MSG} Categoría inexistente para {line.name}.")
        else:
            if state.get_product(line.product_id) is None:
                raise ValidationError(f"{INVALID_CART_MSG} Producto #{line.product_id} no encontrado.")
            if line.product_id in seen_products:
                raise ValidationError(
                    f"{INVALID_CART_MSG} El producto #{line.product_id} aparece más de una vez."
                )
            seen_products.add(line.product_id)
        calcs.append(calc)

    total_cost = round(sum(c.line_cost for c in calcs), 2)
    if total_cost > state.investment_balance:
        raise BusinessRuleError(INSUFFICIENT_FUNDS_MSG)

    # ── Todo validado: aplicar al catálogo ──
    date = to_iso(now)
    purchase_id = next_id(state.purchases)
    restocks = {line.product_id: (line, calc) for line, calc in zip(lines, calcs) if not line.is_new}

    products = []
    for product in state.products:
        if product.id in restocks:
            line, calc = restocks[product.id]
            product = replace(
                product,
                stock=product.stock + calc.total_units,
                cost_price=calc.unit_cost,
                price=float(line.selling_price)
            )
        products.append(product)

    items = []
    for line, calc in zip(lines, calcs):
        if line.is_new:
            category = state.get_category(line.category_id)
            product = Product(
                id=next_id(products),
                sku=generate_sku(category.name if category else None, products),
                name=line.name.strip(),
                price=float(line.selling_price),
                cost_price=calc.unit_cost,
                stock=calc.total_units,
                sales=0,
                category_id=line.category_id
            )
            products.append(product)
        else:
            product = next(p for p in products if p.id == line.product_id)
        items.append(PurchaseItem(
            product_id=product.id,
            name=product.name,
            quantity=calc.total_units,
            cost_price=calc.unit_cost,
            selling_price=float(line.selling_price)
        ))

    purchase = PurchaseReport(
        id=purchase_id,
        date=date,
        items=items,
        items_count=sum(c.total_units for c in calcs),
        total_cost=total_cost
    )

    writer = LedgerWriter(state)
    entry = writer.append(
        TransactionType.PURCHASE, -total_cost,
        f"Compra de inventario #{purchase_id}", date, purchase_id=purchase_id
    )
    new_state = writer.commit(state, products=products, purchases=state.purchases + [purchase])
    return new_state, (purchase, entry)


def parse_purchase_line(raw: Dict[str, Any]) -> PurchaseLine:
    """
    Construye una PurchaseLine desde un payload JSON.

    Formato:
        {"product_id": 3, "mode": "unit", "unit_quantity": 10, "unit_cost": 5, "selling_price": 8}
        {"name": "Jugo", "category_id": 1, "mode": "package",
         "package_quantity": 2, "units_per_package": 24, "package_cost": 240, "selling_price": 15}
    """
    if not isinstance(raw, dict):
        raise ValidationError(INVALID_CART_MSG)

    product_id = raw.get('product_id')
    category_id = raw.get('category_id')
    try:
        product_id = int(product_id) if product_id is not None else None
        category_id = int(category_id) if category_id is not None else None
    except (TypeError, ValueError):
        raise ValidationError(INVALID_CART_MSG)

    return PurchaseLine(
        mode=raw.get('mode', MODE_UNIT),
        selling_price=raw.get('selling_price'),
        product_id=product_id,
        name=str(raw.get('name') or ''),
        category_id=category_id,
        package_quantity=raw.get('package_quantity'),
        units_per_package=raw.get('units_per_package'),
        package_cost=raw.get('package_cost'),
        unit_quantity=raw.get('unit_quantity'),
        unit_cost=raw.get('unit_cost')
    )


class PurchaseService:
    """Servicio de compras de inventario."""

    def __init__(self, state_repo, activity_service=None):
        self.state_repo = state_repo
        self.activity_service = activity_service

    def preview_line(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Calcula una línea sin registrar nada (para la pantalla de compras)."""
        try:
            line = parse_purchase_line(data)
        except TPVError as e:
            return {'ok': False, 'error': e.message}
        return {'ok': True, 'calculation': calculate_purchase_line(line).to_dict()}

    @profile_function(name="Liquidar compra")
    def create_purchase(self, data: Dict[str, Any], worker: Worker) -> Dict[str, Any]:
        """
        Registra una compra.

        Args:
            data: {"items": [línea, ...]}
            worker: Trabajador que registra la compra

        Returns:
            {'ok': True, 'purchase': {...}, 'entry': {...}, 'investment_balance': float}
            o {'ok': False, 'error': str}
        """
        now = datetime.now()
        try:
            raw_items = data.get('items')
            if not isinstance(raw_items, list):
                raise ValidationError("El carrito de compras está vacío.")
            lines = [parse_purchase_line(raw) for raw in raw_items]
            purchase, entry = self.state_repo.apply(lambda state: settle_purchase(state, lines, now))
        except TPVError as e:
            return {'ok': False, 'error': e.message}

        if self.activity_service:
            self.activity_service.log_purchase(
                worker.name, purchase.id, purchase.total_cost, purchase.items_count
            )

        return {
            'ok': True,
            'purchase': purchase.to_dict(),
            'entry': entry.to_dict(),
            'investment_balance': entry.investment_balance_after,
        }
