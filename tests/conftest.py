import os

# Keep main.py's create_all away from a file on disk.
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import models  # noqa: F401
from config import Settings
from crud.local_store import LocalStore
from database import Base
from schemas import FulfillmentStatus, Order
from services import sync_tracker
from services.order_board import OrderBoard
from webhook_service import WebhookService

BASE_URL = "https://hooks.example.test/webhook"


def hook(path: str) -> str:
    return f"{BASE_URL}/{path.lstrip('/')}"


def make_order(number: str, status: FulfillmentStatus = FulfillmentStatus.UNFULFILLED, **kwargs) -> Order:
    fields = {"customer": f"Customer {number}", "payment_status": "paid"}
    fields.update(kwargs)
    return Order(order_number=number, fulfillment_status=status, **fields)


@pytest.fixture
def session_factory():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def store(db) -> LocalStore:
    return LocalStore(db)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        database_url="sqlite://",
        webhook_base_url=BASE_URL,
        products_list_path="/get-all-products",
        update_product_path="/update-product-info",
        request_timeout_seconds=10,
    )


@pytest.fixture
def service(settings) -> WebhookService:
    return WebhookService(settings)


@pytest.fixture
def board() -> OrderBoard:
    return OrderBoard()


@pytest.fixture(autouse=True)
def _reset_tracker():
    sync_tracker._TASKS.clear()
    yield
    sync_tracker._TASKS.clear()
