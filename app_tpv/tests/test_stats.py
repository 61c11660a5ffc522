# -*- coding: utf-8 -*-
"""
Tests de reportes (ganancias por período, capital) y de tasas de cambio.
"""
from datetime import datetime

import pytest

from app_tpv.services.config_service import ConfigService, update_exchange_rates
from app_tpv.services.errors import ValidationError
from app_tpv.services.periods import period_range
from app_tpv.services.purchase_service import PurchaseLine, settle_purchase
from app_tpv.services.sales_service import SaleCommand, SaleLine, settle_sale
from app_tpv.services.stats_service import StatsService, capital_summary, profit_summary


def sell(state, worker, when, product_id, qty, paid):
    command = SaleCommand(items=(SaleLine(product_id, qty),), currency='CUP', amount_paid=paid)
    new_state, _ = settle_sale(state, command, worker, when)
    return new_state


@pytest.fixture
def history(state, seller):
    s = sell(state, seller, datetime(2023, 12, 1, 10, 0), 2, 1, 5.0)
    s = sell(s, seller, datetime(2024, 4, 20, 10, 0), 2, 4, 20.0)
    s = sell(s, seller, datetime(2024, 5, 7, 10, 0), 3, 1, 100.0)
    s = sell(s, seller, datetime(2024, 5, 10, 9, 0), 1, 2, 40.0)
    return s


# ==============================================================================
# PERÍODOS
# ==============================================================================

def test_period_ranges(now):
    assert period_range('today', now)[0] == datetime(2024, 5, 10)
    assert period_range('week', now)[0] == datetime(2024, 5, 6)
    assert period_range('month', now)[0] == datetime(2024, 5, 1)
    assert period_range('year', now)[0] == datetime(2024, 1, 1)
    assert period_range('year', now)[1] == datetime(2024, 5, 10, 23, 59, 59, 999000)

    with pytest.raises(ValidationError):
        period_range('decade', now)


# ==============================================================================
# GANANCIAS
# ==============================================================================

def test_profit_today(history, now):
    stats = profit_summary(history, 'today', now)
    assert stats['summary'] == {
        'sales_count': 1, 'items_sold': 2, 'revenue': 40.0, 'cost': 20.0, 'profit': 20.0
    }
    assert stats['daily_breakdown'] == [{'date': '2024-05-10', 'revenue': 40.0, 'cost': 20.0, 'profit': 20.0}]


def test_profit_week_and_month(history, now):
    week = profit_summary(history, 'week', now)
    assert week['summary']['revenue'] == 140.0
    assert week['summary']['profit'] == 60.0
    assert [d['date'] for d in week['daily_breakdown']] == ['2024-05-07', '2024-05-10']

    month = profit_summary(history, 'month', now)
    assert month['summary'] == week['summary']


def test_profit_year(history, now):
    stats = profit_summary(history, 'year', now)
    assert stats['summary']['sales_count'] == 3
    assert stats['summary']['revenue'] == 160.0
    assert stats['summary']['cost'] == 88.0
    assert stats['summary']['profit'] == 72.0
    assert stats['date_range']['start'] == '2024-01-01T00:00:00.000'


def test_profit_uses_captured_cost(history, now):
    from dataclasses import replace

    repriced = replace(history, products=[replace(p, cost_price=1.0) for p in history.products])
    assert profit_summary(repriced, 'today', now)['summary']['cost'] == 20.0


def test_service_rejects_invalid_period(state_repo):
    result = StatsService(state_repo).get_profit_stats('siempre')
    assert result['ok'] is False
    assert 'Período inválido' in result['error']


# ==============================================================================
# CAPITAL
# ==============================================================================

def test_capital_summary(history, now):
    restock = PurchaseLine(mode='unit', product_id=1, unit_quantity=4, unit_cost=10.0, selling_price=20.0)
    s, _ = settle_purchase(history, [restock], now)

    capital = capital_summary(s)
    assert capital['total_purchase_cost'] == 40.0
    # 60% de la ganancia de cada venta: 1.8 + 7.2 + 24 + 12
    assert capital['total_reinvested_profit'] == 45.0
    assert capital['investment_balance'] == s.investment_balance

    history_days = [h['date'] for h in capital['balance_history']]
    assert history_days == ['2023-12-01', '2024-04-20', '2024-05-01', '2024-05-07', '2024-05-10']
    assert capital['balance_history'][-1]['investment_balance'] == s.investment_balance


def test_capital_service(state_repo):
    result = StatsService(state_repo).get_capital_stats()
    assert result['ok'] is True
    assert result['investment_balance'] == 1000.0
    assert result['total_purchase_cost'] == 0.0


# ==============================================================================
# TASAS DE CAMBIO
# ==============================================================================

def test_update_exchange_rates(state):
    new_state, rates = update_exchange_rates(state, mlc_to_cup=250)
    assert rates.mlc_to_cup == 250.0
    assert rates.usd_to_cup == 380.0
    assert new_state.config.exchange_rates == rates
    assert state.config.exchange_rates.mlc_to_cup == 235.0


@pytest.mark.parametrize('kwargs', [{'mlc_to_cup': -1}, {'usd_to_cup': 'alto'}, {'usd_to_cup': True}])
def test_invalid_exchange_rates(state, kwargs):
    with pytest.raises(ValidationError):
        update_exchange_rates(state, **kwargs)


def test_new_rate_applies_to_next_sale(state, seller, now):
    s, _ = update_exchange_rates(state, usd_to_cup=400)
    command = SaleCommand(items=(SaleLine(1, 1),), currency='USD', amount_paid=1.0)
    _, result = settle_sale(s, command, seller, now)
    assert result.sale.payment.change_in_cup == 380.0


def test_config_service(state_repo, admin):
    service = ConfigService(state_repo)
    result = service.set_exchange_rates({'usd_to_cup': '390', 'mlc_to_cup': ''}, admin)
    assert result == {'ok': True, 'exchange_rates': {'mlc_to_cup': 235.0, 'usd_to_cup': 390.0}}
    assert service.get_exchange_rates()['usd_to_cup'] == 390.0

    assert service.set_exchange_rates({'mlc_to_cup': 'x'}, admin)['ok'] is False
