from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest

from cashledger import create_app
from cashledger.config import TestConfig
from cashledger.extensions import db
from cashledger.models import Category, Transaction, User, INCOME, EXPENSE

PASSWORD = "s3cret-pass"


@pytest.fixture
def app():
    app = create_app(TestConfig)
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def ctx(app):
    with app.app_context():
        yield app


@pytest.fixture
def client(app):
    return app.test_client()


def make_user(email="caisse@example.com", name="Caissier"):
    user = User(name=name, email=email)
    user.set_password(PASSWORD)
    db.session.add(user)
    db.session.commit()
    return user.id


def make_category(user_id, name, kind):
    category = Category(user_id=user_id, name=name, kind=kind)
    db.session.add(category)
    db.session.commit()
    return category.id


def make_transaction(user_id, amount, kind, category_id=None, on=None, description="Opération"):
    tx = Transaction(user_id=user_id, category_id=category_id, date=on or date.today(),
                     description=description, amount=Decimal(str(amount)), kind=kind)
    db.session.add(tx)
    db.session.commit()
    return tx.id


@pytest.fixture
def user_id(app):
    with app.app_context():
        return make_user()


@pytest.fixture
def logged_in(client, user_id):
    response = client.post("/auth/login", data={"email": "caisse@example.com", "password": PASSWORD})
    assert response.status_code == 302
    return client


@pytest.fixture
def salary_rent():
    """Salary earned 2000 against 1800 planned, rent paid 800 against 1000 planned."""
    categories = [
        SimpleNamespace(id=1, name="Salary", kind=INCOME),
        SimpleNamespace(id=2, name="Rent", kind=EXPENSE),
    ]
    transactions = [
        SimpleNamespace(id=1, category_id=1, amount=Decimal("2000"), kind=INCOME, date=date(2024, 3, 5),
                        description="Salaire mars"),
        SimpleNamespace(id=2, category_id=2, amount=Decimal("800"), kind=EXPENSE, date=date(2024, 3, 6),
                        description="Loyer mars"),
    ]
    budgets = [
        SimpleNamespace(category_id=1, amount=Decimal("1800")),
        SimpleNamespace(category_id=2, amount=Decimal("1000")),
    ]
    return categories, transactions, budgets
