# -*- coding: utf-8 -*-
"""
Fixtures compartidas: estado de ejemplo, repositorio en directorio
temporal y cliente Flask.
"""
import os

# Sin archivos de profiling durante los tests
os.environ.setdefault('TPV_PROFILING', '0')

from datetime import datetime

import pytest

from app_tpv.models import AppState, Category, Debtor, Product, Worker, WorkerRole
from app_tpv.repositories import StateRepository
from app_tpv.services.ledger_service import adjust_investment_balance

SEED_DATE = datetime(2024, 5, 1, 8, 0, 0)


def make_state(investment: float = 1000.0) -> AppState:
    """Catálogo pequeño, tres trabajadores y un deudor."""
    state = AppState(
        categories=[
            Category(id=1, name='Bebidas'),
            Category(id=2, name='Dulces'),
        ],
        products=[
            Product(id=1, sku='BEB-001', name='Refresco', price=20.0, cost_price=10.0, stock=50, category_id=1),
            Product(id=2, sku='DUL-001', name='Caramelo', price=5.0, cost_price=2.0, stock=100, category_id=2),
            Product(id=3, sku='BEB-002', name='Jugo', price=100.0, cost_price=60.0, stock=10, category_id=1),
        ],
        workers=[
            Worker(id=1, name='Ana', role=WorkerRole.ADMIN),
            Worker(id=2, name='Luis', role=WorkerRole.VENDEDOR),
            Worker(id=3, name='Marta', role=WorkerRole.GERENTE),
        ],
        debtors=[Debtor(id=1, name='Pedro', phone='5550000', credit_limit=500.0)],
    )
    if investment:
        state, _ = adjust_investment_balance(state, investment, SEED_DATE)
    return state


@pytest.fixture
def now():
    return datetime(2024, 5, 10, 12, 0, 0)


@pytest.fixture
def state():
    return make_state()


@pytest.fixture
def admin(state):
    return state.get_worker(1)


@pytest.fixture
def seller(state):
    return state.get_worker(2)


@pytest.fixture
def manager(state):
    return state.get_worker(3)


@pytest.fixture
def state_repo(tmp_path, state):
    repo = StateRepository(str(tmp_path))
    repo.save(state)
    return repo


@pytest.fixture
def app(tmp_path, state):
    from app_tpv.main import create_app
    from app_tpv.app_container import AppContainer

    flask_app = create_app(str(tmp_path))
    flask_app.config['TESTING'] = True
    flask_app.extensions['tpv_container'].state_repo.save(state)
    yield flask_app
    AppContainer.reset_instance()


@pytest.fixture
def client(app):
    with app.test_client() as c:
        yield c
