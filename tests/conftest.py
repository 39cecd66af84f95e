"""Shared test fixtures and configuration."""

from __future__ import annotations

import os
import tempfile
from datetime import date
from typing import Any, Dict, Optional

import pytest

# Isolate the module-level app created on import from the working directory.
os.environ.setdefault("DATA_DIR", tempfile.mkdtemp(prefix="expense_desk_test_"))
os.environ.setdefault("DEBUG", "false")

from fastapi.testclient import TestClient  # noqa: E402

from expense_desk.core.config import Settings  # noqa: E402
from expense_desk.db.dal import Database  # noqa: E402
from expense_desk.main import create_app  # noqa: E402
from expense_desk.services.passwords import hash_password  # noqa: E402

ADMIN_EMAIL = "admin@pueblaequipo.com.ar"
ADMIN_PASSWORD = "admin-secret"
VERIFICATION_CODE = "123456"


@pytest.fixture
def settings(tmp_path) -> Settings:
    s = Settings(
        data_dir=tmp_path,
        debug=False,
        verification_code=VERIFICATION_CODE,
        bcrypt_rounds=4,
        default_admin_email=ADMIN_EMAIL,
        default_admin_password=ADMIN_PASSWORD,
    )
    s.init_post_load()
    return s


@pytest.fixture
def app(settings):
    return create_app(settings_override=settings)


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def db(app, settings) -> Database:
    # Depends on app so migrations and the admin seed have run.
    return Database(settings.db_path)


@pytest.fixture
def admin_id(db) -> int:
    row = db.get_user_by_email(ADMIN_EMAIL)
    assert row is not None
    return int(row["id"])


def make_user(
    db: Database,
    email: str = "ana@pueblaequipo.com.ar",
    display_name: str = "Ana",
    is_admin: bool = False,
) -> int:
    return db.create_user(
        email=email,
        display_name=display_name,
        sector="Ventas",
        card_last4="1234",
        password_hash=hash_password("password1", rounds=4),
        is_admin=is_admin,
        is_code_verified=True,
    )


@pytest.fixture
def user_id(db) -> int:
    return make_user(db)


@pytest.fixture
def other_user_id(db) -> int:
    return make_user(db, email="bruno@pueblaequipo.com.ar", display_name="Bruno")


def auth(user_id: int) -> Dict[str, str]:
    return {"X-User-Id": str(user_id)}


def expense_payload(
    amount: float = 50,
    currency: str = "ARS",
    exchange_rate: Optional[float] = None,
    has_installments: bool = False,
    installment_count: Optional[int] = None,
    expense_date: date = date(2024, 6, 10),
    channel: Optional[Dict[str, Any]] = None,
    **extra: Any,
) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "expense_date": expense_date.isoformat(),
        "reason": "Client lunch",
        "detail": "Lunch with the Rosario distributor",
        "amount": amount,
        "currency": currency,
        "exchange_rate": exchange_rate,
        "has_installments": has_installments,
        "installment_count": installment_count,
        "payment_channel": channel or {"kind": "in_person", "store_name": "La Farola"},
    }
    payload.update(extra)
    return payload
