# -*- coding: utf-8 -*-
"""
Tests de liquidación de ventas: asientos 60/40, stock, pagos en
distintas monedas, ventas a crédito y rechazos sin efectos.
"""
from dataclasses import replace
from datetime import timedelta

import pytest

from app_tpv.models import Currency, DebtStatus, TransactionType
from app_tpv.services.errors import BusinessRuleError, ValidationError
from app_tpv.services.ledger_service import verify_ledger
from app_tpv.services.sales_service import SaleCommand, SaleLine, SalesService, parse_sale_command, settle_sale


def cash_sale(*lines, currency='CUP', paid=0.0):
    return SaleCommand(items=tuple(SaleLine(pid, qty) for pid, qty in lines), currency=currency, amount_paid=paid)


def test_sale_splits_profit_sixty_forty(state, seller, now):
    new_state, result = settle_sale(state, cash_sale((1, 1), paid=20.0), seller, now)

    entries = result.entries
    assert [e.type for e in entries] == [
        TransactionType.REIMBURSEMENT,
        TransactionType.PROFIT_SHARE_INVEST,
        TransactionType.PROFIT_SHARE_PAYOUT,
    ]
    assert [e.amount for e in entries] == [10.0, 6.0, 4.0]
    assert [e.id for e in entries] == [2, 3, 4]
    assert all(e.sale_id == result.sale.id for e in entries)
    assert entries[0].description == f"Reembolso de costo de Venta #{result.sale.id}"

    assert new_state.investment_balance == 1016.0
    assert new_state.worker_payout_balance == 4.0
    assert (entries[0].investment_balance_after, entries[0].worker_payout_balance_after) == (1010.0, 0.0)
    assert (entries[2].investment_balance_after, entries[2].worker_payout_balance_after) == (1016.0, 4.0)
    assert verify_ledger(new_state) == []


def test_sale_updates_stock_and_captures_prices(state, seller, now):
    new_state, result = settle_sale(state, cash_sale((1, 2), (2, 3), paid=100.0), seller, now)

    refresco = new_state.get_product(1)
    assert refresco.stock == 48
    assert refresco.sales == 2
    assert new_state.get_product(2).stock == 97

    sale = result.sale
    assert sale.id == 1
    assert sale.total == 55.0
    assert sale.items_count == 5
    assert sale.sold_by_worker_id == seller.id
    assert sale.items[0].cost_price == 10.0
    assert sale.items[1].price == 5.0
    assert sale.payment.change_in_cup == 45.0
    assert new_state.reports == [sale]

    # El estado original queda intacto
    assert state.get_product(1).stock == 50
    assert state.reports == []


def test_sale_entries_add_up_to_total(state, seller, now):
    _, result = settle_sale(state, cash_sale((1, 3), (2, 7), (3, 1), paid=500.0), seller, now)
    assert sum(e.amount for e in result.entries) == pytest.approx(result.sale.total)


def test_sale_is_deterministic(state, seller, now):
    first_state, first = settle_sale(state, cash_sale((1, 2), paid=50.0), seller, now)
    second_state, second = settle_sale(state, cash_sale((1, 2), paid=50.0), seller, now)
    assert first_state.to_dict() == second_state.to_dict()
    assert first.sale.to_dict() == second.sale.to_dict()


def test_sale_ids_increase(state, seller, now):
    s, first = settle_sale(state, cash_sale((1, 1), paid=20.0), seller, now)
    s, second = settle_sale(s, cash_sale((1, 1), paid=20.0), seller, now + timedelta(minutes=1))
    assert (first.sale.id, second.sale.id) == (1, 2)
    assert second.entries[0].id == first.entries[-1].id + 1


def test_negative_profit_is_split_not_clamped(state, seller, now):
    cheap = replace(state, products=[replace(p, price=1.0) if p.id == 2 else p for p in state.products])
    new_state, result = settle_sale(cheap, cash_sale((2, 2), paid=2.0), seller, now)

    assert [e.amount for e in result.entries] == [4.0, -1.2, -0.8]
    assert new_state.worker_payout_balance == -0.8
    assert verify_ledger(new_state) == []


def test_mlc_payment_uses_exchange_rate(state, seller, now):
    _, result = settle_sale(state, cash_sale((1, 1), currency='MLC', paid=1.0), seller, now)
    payment = result.sale.payment
    assert payment.currency == Currency.MLC
    assert payment.amount_paid == 1.0
    assert payment.change_in_cup == 215.0


def test_usd_payment_below_total_is_rejected(state, seller, now):
    with pytest.raises(BusinessRuleError):
        settle_sale(state, cash_sale((1, 1), currency='USD', paid=0.05), seller, now)


def test_insufficient_payment_is_rejected(state, seller, now):
    with pytest.raises(BusinessRuleError) as exc:
        settle_sale(state, cash_sale((1, 1), paid=19.99), seller, now)
    assert 'Pago insuficiente' in exc.value.message


def test_stock_is_checked_against_aggregated_quantity(state, seller, now):
    with pytest.raises(BusinessRuleError) as exc:
        settle_sale(state, cash_sale((3, 6), (3, 5), paid=2000.0), seller, now)
    assert 'Stock insuficiente' in exc.value.message


@pytest.mark.parametrize('command', [
    SaleCommand(items=(), currency='CUP', amount_paid=10.0),
    SaleCommand(items=(SaleLine(1, 0),), currency='CUP', amount_paid=10.0),
    SaleCommand(items=(SaleLine(1, 1.5),), currency='CUP', amount_paid=10.0),
    SaleCommand(items=(SaleLine(99, 1),), currency='CUP', amount_paid=10.0),
    SaleCommand(items=(SaleLine(1, 1),), currency='EUR', amount_paid=100.0),
    SaleCommand(items=(SaleLine(1, 1),), currency='CUP', amount_paid=-5.0),
])
def test_invalid_sales_are_validation_errors(state, seller, now, command):
    with pytest.raises(ValidationError):
        settle_sale(state, command, seller, now)


def test_credit_sale_creates_debt(state, seller, now):
    command = SaleCommand(items=(SaleLine(1, 1),), currency='CUP', amount_paid=5.0, is_credit=True, debtor_id=1)
    new_state, result = settle_sale(state, command, seller, now)

    debt = result.debt
    assert debt.amount == 15.0
    assert debt.original_amount == 15.0
    assert debt.status == DebtStatus.PENDING
    assert debt.sale_id == result.sale.id
    assert debt.due_date.startswith((now + timedelta(days=30)).strftime('%Y-%m-%d'))
    assert result.sale.debtor_id == 1
    assert result.sale.debt_id == debt.id
    assert result.sale.payment.change_in_cup == 0.0
    assert new_state.get_debtor(1).total_debt == 15.0
    assert new_state.debts == [debt]

    # Los asientos usan el total completo de la venta
    assert [e.amount for e in result.entries] == [10.0, 6.0, 4.0]


def test_full_deferral_credit_sale(state, seller, now):
    command = SaleCommand(items=(SaleLine(1, 2),), currency='CUP', amount_paid=0.0, is_credit=True, debtor_id=1)
    _, result = settle_sale(state, command, seller, now)
    assert result.debt.amount == 40.0


def test_credit_sale_requires_existing_debtor(state, seller, now):
    command = SaleCommand(items=(SaleLine(1, 1),), currency='CUP', amount_paid=0.0, is_credit=True, debtor_id=42)
    with pytest.raises(BusinessRuleError):
        settle_sale(state, command, seller, now)


def test_credit_sale_rejects_inactive_debtor(state, seller, now):
    inactive = replace(state, debtors=[replace(d, is_active=False) for d in state.debtors])
    command = SaleCommand(items=(SaleLine(1, 1),), currency='CUP', amount_paid=0.0, is_credit=True, debtor_id=1)
    with pytest.raises(BusinessRuleError) as exc:
        settle_sale(inactive, command, seller, now)
    assert 'inactivo' in exc.value.message
    assert inactive.debts == []


@pytest.mark.parametrize('flag', ['false', 'true', 1, 0, None])
def test_credit_flag_must_be_boolean(flag):
    payload = {'items': [{'product_id': 1, 'quantity': 1}], 'amount_paid': 0,
               'is_credit': flag, 'debtor_id': 1}
    with pytest.raises(ValidationError):
        parse_sale_command(payload)


def test_credit_flag_accepts_json_booleans():
    payload = {'items': [{'product_id': 1, 'quantity': 1}], 'amount_paid': 0, 'debtor_id': 1}
    assert parse_sale_command({**payload, 'is_credit': True}).is_credit is True
    assert parse_sale_command({**payload, 'is_credit': False}).is_credit is False
    assert parse_sale_command(payload).is_credit is False


def test_credit_payment_covering_total_is_rejected(state, seller, now):
    command = SaleCommand(items=(SaleLine(1, 1),), currency='CUP', amount_paid=20.0, is_credit=True, debtor_id=1)
    with pytest.raises(ValidationError):
        settle_sale(state, command, seller, now)


def test_service_commits_and_logs(state_repo, seller, tmp_path):
    from app_tpv.repositories import ActivityRepository
    from app_tpv.services import ActivityService

    activity = ActivityService(ActivityRepository(str(tmp_path)))
    service = SalesService(state_repo, activity)

    result = service.create_sale({'items': [{'product_id': 1, 'quantity': 2}], 'currency': 'cup',
                                  'amount_paid': 50}, seller)

    assert result['ok'] is True
    assert result['change_in_cup'] == 10.0
    assert len(result['entries']) == 3
    assert result['debt'] is None
    assert state_repo.load().get_product(1).stock == 48
    assert service.get_sale(result['sale']['id'])['total'] == 40.0

    logs = activity.get_by_type(ActivityService.TYPE_VENTA)
    assert len(logs) == 1
    assert 'Venta #1' in logs[0]['message']


def test_service_rejection_leaves_state_untouched(state_repo, seller):
    before = state_repo.load().to_dict()
    result = SalesService(state_repo).create_sale(
        {'items': [{'product_id': 1, 'quantity': 60}], 'currency': 'CUP', 'amount_paid': 5000}, seller
    )
    assert result['ok'] is False
    assert 'Stock insuficiente' in result['error']
    assert state_repo.load().to_dict() == before


@pytest.mark.parametrize('payload', [
    {},
    {'items': 'x'},
    {'items': [{'product_id': 'abc', 'quantity': 1}]},
    {'items': [{'product_id': 1, 'quantity': '2'}], 'amount_paid': 100},
    {'items': [{'product_id': 1, 'quantity': 1}], 'amount_paid': 'mucho'},
])
def test_service_rejects_malformed_payloads(state_repo, seller, payload):
    result = SalesService(state_repo).create_sale(payload, seller)
    assert result['ok'] is False
    assert result['error']
