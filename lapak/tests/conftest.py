from __future__ import annotations

import itertools

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from lapak.app.api.deps import get_db
from lapak.app.db.base import Base
from lapak.app.db.models.core_types import ProductCategory
from lapak.app.db.models.models_v1 import FileUpload, Product, User
from lapak.app.main import app
from lapak.services.auth import create_session


@pytest.fixture(scope="function")
def engine(tmp_path):
    """
    Base SQLite fichier, neuve pour chaque test.

    Fichier (et pas :memory:) pour que plusieurs connexions / threads
    voient les mêmes données (tests de concurrence).
    """
    eng = create_engine(
        f"sqlite+pysqlite:///{tmp_path / 'lapak_test.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=eng)
    try:
        yield eng
    finally:
        eng.dispose()


@pytest.fixture(scope="function")
def session_factory(engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture(scope="function")
def db_session(session_factory) -> Session:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(session_factory):
    def _get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_db
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.clear()


class Factory:
    """Jeux de données minimaux, committés."""

    _seq = itertools.count(1)

    def __init__(self, db: Session):
        self.db = db

    def seller(self, *, name: str = "Seller", bank: str = "BCA") -> User:
        n = next(self._seq)
        user = User(
            email=f"seller{n}@example.com",
            password_hash="x",
            name=f"{name} {n}",
            bank_account_name=bank,
            bank_account_holder=f"{name} {n}",
            bank_account_number=f"0000{n:06d}",
        )
        self.db.add(user)
        self.db.commit()
        return user

    def buyer(self) -> User:
        n = next(self._seq)
        user = User(email=f"buyer{n}@example.com", password_hash="x", name=f"Buyer {n}")
        self.db.add(user)
        self.db.commit()
        return user

    def product(self, owner: User, *, qty: int = 10, price: int = 1000, name: str | None = None) -> Product:
        n = next(self._seq)
        product = Product(
            user_id=owner.id,
            name=name or f"Product {n}",
            category=ProductCategory.food,
            qty=qty,
            price=price,
            sku=f"SKU-{n}",
            file_uri=f"http://files.local/p{n}.jpg",
            file_thumbnail_uri=f"http://files.local/p{n}_thumb.jpg",
        )
        self.db.add(product)
        self.db.commit()
        return product

    def file(self, owner: User) -> FileUpload:
        n = next(self._seq)
        f = FileUpload(
            user_id=owner.id,
            file_name=f"proof{n}.jpg",
            file_size=2048,
            file_type="image/jpeg",
            file_uri=f"http://files.local/proof{n}.jpg",
            file_thumbnail_uri=f"http://files.local/proof{n}_thumb.jpg",
        )
        self.db.add(f)
        self.db.commit()
        return f

    def token(self, user: User) -> str:
        return create_session(self.db, user.id)


@pytest.fixture(scope="function")
def factory(db_session) -> Factory:
    return Factory(db_session)


def cart(*items: tuple[object, int], contact_type: str = "email", detail: str = "a@b.com", name: str = "Budi Santoso"):
    """Corps JSON d'un panier, au format de l'API."""
    return {
        "senderName": name,
        "senderContactType": contact_type,
        "senderContactDetail": detail,
        "purchasedItems": [{"productId": str(pid), "qty": qty} for pid, qty in items],
    }


@pytest.fixture
def make_cart():
    return cart
