# -*- coding: utf-8 -*-
"""
Tests del cierre de caja: totales esperados por moneda, conteo de
billetes, diferencias y faltantes.
"""
from datetime import timedelta

import pytest

from app_tpv.models import TransactionType
from app_tpv.services.cash_audit_service import (
    CashAuditService,
    NO_SALES_MSG,
    close_register,
    count_cash,
    summarize_day,
    todays_sales,
)
from app_tpv.services.errors import ValidationError
from app_tpv.services.ledger_service import verify_ledger
from app_tpv.services.sales_service import SaleCommand, SaleLine, settle_sale


def sell(state, worker, now, product_id=3, qty=1, currency='CUP', paid=100.0, **credit):
    command = SaleCommand(items=(SaleLine(product_id, qty),), currency=currency, amount_paid=paid, **credit)
    new_state, _ = settle_sale(state, command, worker, now)
    return new_state


def test_count_cash_sums_denominations():
    counted, details = count_cash({'50': 1, '20': 2, 1: 2})
    assert counted == 92.0
    assert details['50'] == 1
    assert details[str(1)] == 2
    assert details['1000'] == 0
    assert set(details) == {'1000', '500', '200', '100', '50', '20', '10', '5', '1'}


@pytest.mark.parametrize('cash_count', [
    {'3': 1},
    {'abc': 1},
    {'100': -1},
    {'100': 1.5},
    {'100': '2'},
    ['100', 1],
])
def test_count_cash_rejects_invalid_counts(cash_count):
    with pytest.raises(ValidationError):
        count_cash(cash_count)


def test_summarize_day_without_sales_is_empty():
    assert summarize_day([]) is None


def test_expected_totals_per_currency(state, seller, now):
    s = sell(state, seller, now, paid=150.0)                                  # CUP: 150 - 50 vuelto
    s = sell(s, seller, now, product_id=1, currency='MLC', paid=1.0)          # MLC
    s = sell(s, seller, now, product_id=1, currency='USD', paid=2.0)          # USD
    summary = summarize_day(todays_sales(s, now))

    assert summary.sales_count == 3
    assert summary.total_sales_in_cup == 140.0
    assert summary.expected_cup == 100.0
    assert summary.expected_mlc == 1.0
    assert summary.expected_usd == 2.0


def test_shortage_creates_entry_without_moving_balances(state, seller, now):
    s = sell(state, seller, now)
    closed, (report, shortage) = close_register(
        s, {'50': 1, '20': 2, '1': 2}, 0, 0, seller, now + timedelta(hours=2)
    )

    assert report.system_totals['expected_cup'] == 100.0
    assert report.counted_totals['counted_cup'] == 92.0
    assert report.discrepancies['diff_cup'] == -8.0
    assert report.closed_by_worker_id == seller.id
    assert report.closed_by_worker_name == 'Luis'
    assert report.cash_count_details['20'] == 2

    assert shortage.type == TransactionType.CASH_SHORTAGE
    assert shortage.amount == -8.0
    assert shortage.worker_id == seller.id
    assert shortage.description == "Faltante de caja por Luis."

    assert closed.investment_balance == s.investment_balance
    assert closed.worker_payout_balance == s.worker_payout_balance
    assert closed.audit_reports == [report]
    assert len([e for e in closed.transaction_log if e.type == TransactionType.CASH_SHORTAGE]) == 1
    assert verify_ledger(closed) == []


def test_exact_count_has_no_shortage(state, seller, now):
    s = sell(state, seller, now)
    closed, (report, shortage) = close_register(s, {'100': 1}, 0, 0, seller, now)
    assert shortage is None
    assert report.discrepancies == {'diff_cup': 0.0, 'diff_mlc': 0.0, 'diff_usd': 0.0}
    assert len(closed.transaction_log) == len(s.transaction_log)


def test_overage_has_no_shortage(state, seller, now):
    s = sell(state, seller, now)
    _, (report, shortage) = close_register(s, {'100': 1, '5': 1}, 0, 0, seller, now)
    assert report.discrepancies['diff_cup'] == 5.0
    assert shortage is None


def test_zero_expected_zero_counted(state, seller, now):
    s = sell(state, seller, now, paid=0.0, is_credit=True, debtor_id=1)
    closed, (report, shortage) = close_register(s, {}, 0, 0, seller, now)

    assert report.system_totals['expected_cup'] == 0.0
    assert report.discrepancies['diff_cup'] == 0.0
    assert shortage is None
    assert len(closed.audit_reports) == 1


def test_foreign_currency_differences_do_not_create_shortage(state, seller, now):
    s = sell(state, seller, now, product_id=1, currency='MLC', paid=1.0)
    _, (report, shortage) = close_register(s, {}, 0.5, 0, seller, now)
    assert report.discrepancies['diff_mlc'] == -0.5
    assert shortage is None


def test_no_sales_today_returns_same_state(state, seller, now):
    yesterday = now - timedelta(days=1)
    s = sell(state, seller, yesterday)

    result_state, result = close_register(s, {'100': 1}, 0, 0, seller, now)
    assert result is None
    assert result_state is s


def test_day_bounds_are_inclusive(state, seller, now):
    start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)
    s = sell(state, seller, start_of_day)
    s = sell(s, seller, start_of_day + timedelta(hours=23, minutes=59, seconds=59, milliseconds=999))
    s = sell(s, seller, start_of_day + timedelta(days=1))
    assert summarize_day(todays_sales(s, now)).sales_count == 2


def test_invalid_counted_amounts(state, seller, now):
    s = sell(state, seller, now)
    with pytest.raises(ValidationError):
        close_register(s, {}, -1, 0, seller, now)
    with pytest.raises(ValidationError):
        close_register(s, {}, 0, 'x', seller, now)


def test_service_without_sales(state_repo, seller):
    service = CashAuditService(state_repo)
    assert service.get_day_summary() == {'ok': True, 'has_sales': False, 'message': NO_SALES_MSG}
    assert service.close({'cash_count': {'100': 1}}, seller) == {
        'ok': True, 'closed': False, 'message': NO_SALES_MSG
    }
    assert state_repo.load().audit_reports == []


def test_service_close_persists_report(state_repo, seller):
    from app_tpv.services.sales_service import SalesService

    SalesService(state_repo).create_sale(
        {'items': [{'product_id': 3, 'quantity': 1}], 'currency': 'CUP', 'amount_paid': 100}, seller
    )
    service = CashAuditService(state_repo)

    preview = service.preview({'cash_count': {'50': 1}})
    assert preview['discrepancies']['diff_cup'] == -50.0
    assert state_repo.load().audit_reports == []

    result = service.close({'cash_count': {'50': 1}}, seller)
    assert result['ok'] is True
    assert result['closed'] is True
    assert result['shortage']['amount'] == -50.0
    assert len(state_repo.load().audit_reports) == 1


def test_service_rejects_bad_count(state_repo, seller):
    result = CashAuditService(state_repo).close({'cash_count': {'7': 1}}, seller)
    assert result['ok'] is False
    assert 'Denominación inválida' in result['error']
