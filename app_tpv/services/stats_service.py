# ==============================================================================
# SERVICIO DE ESTADÍSTICAS - Ganancias y capital
# ==============================================================================
# Solo lectura. La ganancia se calcula con los costos COPIADOS en cada
# venta, nunca con el costo actual del catálogo.
# ==============================================================================

from collections import defaultdict
from datetime import datetime
from typing import Any, Dict, Optional

from app_tpv.models import AppState, TransactionType
from .errors import TPVError
from .periods import in_range, parse_ts, period_range, to_iso


def profit_summary(state: AppState, period: str, now: datetime) -> Dict[str, Any]:
    """
    Calcula ingresos, costo y ganancia de las ventas del período.

    Args:
        state: Estado del negocio
        period: 'today', 'week', 'month' o 'year'
        now: Momento de referencia

    Returns:
        {
            'period': str,
            'date_range': {'start': str, 'end': str},
            'summary': {'sales_count', 'items_sold', 'revenue', 'cost', 'profit'},
            'daily_breakdown': [{'date', 'revenue', 'cost', 'profit'}]
        }

    Raises:
        ValidationError: Período inválido
    """
    start, end = period_range(period, now)

    sales_count = 0
    items_sold = 0
    revenue = 0.0
    cost = 0.0
    daily = defaultdict(lambda: {'revenue': 0.0, 'cost': 0.0})

    for sale in state.reports:
        if not in_range(sale.date, start, end):
            continue
        sales_count += 1
        items_sold += sale.items_count
        sale_cost = sale.cost_total
        revenue += sale.total
        cost += sale_cost

        day = parse_ts(sale.date).strftime('%Y-%m-%d')
        daily[day]['revenue'] += sale.total
        daily[day]['cost'] += sale_cost

    breakdown = []
    for day in sorted(daily):
        data = daily[day]
        breakdown.append({
            'date': day,
            'revenue': round(data['revenue'], 2),
            'cost': round(data['cost'], 2),
            'profit': round(data['revenue'] - data['cost'], 2),
        })

    return {
        'period': period,
        'date_range': {'start': to_iso(start), 'end': to_iso(end)},
        'summary': {
            'sales_count': sales_count,
            'items_sold': items_sold,
            'revenue': round(revenue, 2),
            'cost': round(cost, 2),
            'profit': round(revenue - cost, 2),
        },
        'daily_breakdown': breakdown,
    }


def capital_summary(state: AppState) -> Dict[str, Any]:
    """
    Resumen del capital invertido.

    Returns:
        {
            'total_purchase_cost': float,     # Todo lo gastado en compras
            'total_reinvested_profit': float, # Suma de PROFIT_SHARE_INVEST
            'investment_balance': float,      # Saldo actual
            'balance_history': [{'date': 'YYYY-MM-DD', 'investment_balance': float}]
        }
    """
    total_purchases = sum(p.total_cost for p in state.purchases)
    reinvested = sum(
        e.amount for e in state.transaction_log
        if e.type == TransactionType.PROFIT_SHARE_INVEST
    )

    # Último saldo de inversión de cada día
    by_day: Dict[str, float] = {}
    for entry in state.transaction_log:
        entry_date = parse_ts(entry.date)
        if entry_date is None:
            continue
        by_day[entry_date.strftime('%Y-%m-%d')] = entry.investment_balance_after

    return {
        'total_purchase_cost': round(total_purchases, 2),
        'total_reinvested_profit': round(reinvested, 2),
        'investment_balance': state.investment_balance,
        'balance_history': [
            {'date': day, 'investment_balance': by_day[day]} for day in sorted(by_day)
        ],
    }


class StatsService:
    """
    Servicio de estadísticas financieras.

    Preparado para cualquier almacenamiento: solo lee el estado.
    """

    def __init__(self, state_repo):
        self.state_repo = state_repo

    def get_profit_stats(self, period: str = 'today', now: Optional[datetime] = None) -> Dict[str, Any]:
        try:
            stats = profit_summary(self.state_repo.load(), period, now or datetime.now())
        except TPVError as e:
            return {'ok': False, 'error': e.message}
        return {'ok': True, **stats}

    def get_capital_stats(self) -> Dict[str, Any]:
        return {'ok': True, **capital_summary(self.state_repo.load())}
