# -*- coding: utf-8 -*-
"""
Tests de deudas: abonos parciales y totales, validaciones y vencidas.
"""
from datetime import timedelta

import pytest

from app_tpv.models import DebtStatus, PaymentMethod
from app_tpv.services.debt_service import DebtService, effective_status, overdue_debts, register_debt_payment
from app_tpv.services.errors import BusinessRuleError, ValidationError
from app_tpv.services.sales_service import SaleCommand, SaleLine, settle_sale


@pytest.fixture
def credit_state(state, seller, now):
    """Venta a crédito de 20 CUP sin pago inicial a nombre de Pedro."""
    command = SaleCommand(items=(SaleLine(1, 1),), currency='CUP', amount_paid=0.0, is_credit=True, debtor_id=1)
    new_state, _ = settle_sale(state, command, seller, now)
    return new_state


def test_partial_then_full_payment(credit_state, admin, now):
    s, (debt, payment) = register_debt_payment(credit_state, 1, 5.0, 'CASH', admin, now)
    assert debt.amount == 15.0
    assert debt.original_amount == 20.0
    assert debt.status == DebtStatus.PARTIAL
    assert payment.id == 1
    assert payment.payment_method == PaymentMethod.CASH
    assert payment.received_by_worker_name == 'Ana'
    assert s.get_debtor(1).total_debt == 15.0

    s, (debt, payment) = register_debt_payment(s, 1, 15.0, 'TRANSFER', admin, now + timedelta(days=1))
    assert debt.amount == 0.0
    assert debt.status == DebtStatus.PAID
    assert payment.id == 2
    assert s.get_debtor(1).total_debt == 0.0
    assert len(s.debt_payments) == 2


def test_payments_do_not_touch_the_ledger(credit_state, admin, now):
    s, _ = register_debt_payment(credit_state, 1, 20.0, 'CASH', admin, now)
    assert s.transaction_log == credit_state.transaction_log
    assert s.investment_balance == credit_state.investment_balance
    assert s.worker_payout_balance == credit_state.worker_payout_balance


def test_paid_debt_rejects_new_payments(credit_state, admin, now):
    s, _ = register_debt_payment(credit_state, 1, 20.0, 'CASH', admin, now)
    with pytest.raises(BusinessRuleError):
        register_debt_payment(s, 1, 1.0, 'CASH', admin, now)


def test_overpayment_is_rejected(credit_state, admin, now):
    with pytest.raises(BusinessRuleError) as exc:
        register_debt_payment(credit_state, 1, 20.01, 'CASH', admin, now)
    assert 'supera' in exc.value.message


def test_unknown_debt_is_rejected(credit_state, admin, now):
    with pytest.raises(BusinessRuleError):
        register_debt_payment(credit_state, 99, 1.0, 'CASH', admin, now)


@pytest.mark.parametrize('amount, method', [
    (0, 'CASH'),
    (-5.0, 'CASH'),
    (float('nan'), 'CASH'),
    (5.0, 'BITCOIN'),
])
def test_invalid_payments(credit_state, admin, now, amount, method):
    with pytest.raises(ValidationError):
        register_debt_payment(credit_state, 1, amount, method, admin, now)


def test_overdue_debts(credit_state, admin, now):
    assert overdue_debts(credit_state, now + timedelta(days=29)) == []
    assert [d.id for d in overdue_debts(credit_state, now + timedelta(days=31))] == [1]

    partial, _ = register_debt_payment(credit_state, 1, 5.0, 'CASH', admin, now)
    assert len(overdue_debts(partial, now + timedelta(days=31))) == 1

    paid, _ = register_debt_payment(credit_state, 1, 20.0, 'CASH', admin, now)
    assert overdue_debts(paid, now + timedelta(days=31)) == []


def test_service_register_and_list(state_repo, credit_state, admin):
    state_repo.save(credit_state)
    service = DebtService(state_repo)

    result = service.register_payment(1, {'amount': '7.5', 'method': 'cash'}, admin)
    assert result['ok'] is True
    assert result['debt']['amount'] == 12.5
    assert result['debt']['status'] == 'PARTIAL'
    assert result['payment']['payment_method'] == 'CASH'

    assert len(service.list_debts()) == 1
    assert len(service.list_debts('partial')) == 1
    assert service.list_debts('PAID') == []


def test_service_rejects_text_amount(state_repo, credit_state, admin):
    state_repo.save(credit_state)
    result = DebtService(state_repo).register_payment(1, {'amount': 'mucho'}, admin)
    assert result['ok'] is False
    assert state_repo.load().debts[0].amount == 20.0


def test_overdue_status_is_derived_on_read(state_repo, credit_state, admin, now):
    state_repo.save(credit_state)
    service = DebtService(state_repo)
    late = now + timedelta(days=31)

    assert [d['status'] for d in service.list_debts(now=now)] == ['PENDING']
    assert [d['status'] for d in service.list_debts(now=late)] == ['OVERDUE']
    assert len(service.list_debts('overdue', now=late)) == 1
    assert service.list_overdue(late)[0]['status'] == 'OVERDUE'
    # Lo guardado no cambia
    assert state_repo.load().debts[0].status == DebtStatus.PENDING


def test_overdue_debt_accepts_payments(credit_state, admin, now):
    late = now + timedelta(days=31)
    assert effective_status(credit_state.debts[0], late) == DebtStatus.OVERDUE

    s, (debt, _) = register_debt_payment(credit_state, 1, 20.0, 'CASH', admin, late)
    assert debt.status == DebtStatus.PAID
    assert effective_status(debt, late) == DebtStatus.PAID
