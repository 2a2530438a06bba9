"""
Pytest configuration and fixtures per Invoice Manager.

I test usano un database SQLite in memoria (aiosqlite) condiviso
tramite StaticPool: ogni test parte da uno schema vuoto.
"""

from decimal import Decimal
from typing import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.database import build_engine, get_db
from app.models import Base, Invoice, LineItem, Payment
from app.services.invoice_service import InvoiceService
from app.services.payment_service import PaymentService


# ============================================================
# Fixtures Database
# ============================================================


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Engine SQLite in memoria con schema creato da zero."""
    engine = build_engine("sqlite+aiosqlite://", poolclass=StaticPool, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    """Session factory con le stesse opzioni dell'applicazione."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Sessione database per i test dei service."""
    async with session_factory() as session:
        yield session


# ============================================================
# Fixtures Service
# ============================================================


@pytest.fixture
def invoice_service():
    return InvoiceService()


@pytest.fixture
def payment_service(invoice_service):
    return PaymentService(invoice_service)


@pytest.fixture
async def acme_invoice(db, invoice_service):
    """Fattura 'Acme' con una riga da 9.99."""
    return await invoice_service.create(
        db, "Acme", [{"description": "Widget", "price": "9.99"}]
    )


# ============================================================
# Fixtures HTTP
# ============================================================


@pytest.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """
    Client HTTP sull'app FastAPI.

    get_db è sostituita con una sessione sul database di test,
    una per richiesta come in produzione.
    """
    from app.main import app

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


# ============================================================
# Factory per modelli transienti (senza database)
# ============================================================


@pytest.fixture
def make_invoice():
    """
    Factory di fatture non persistite.

    Args della factory:
        prices: Prezzi delle righe
        payments: Coppie (importo, metodo)
    """

    def _make(prices=(), payments=()) -> Invoice:
        return Invoice(
            customer_name="Mario Rossi",
            items=[
                LineItem(position=index, description=f"Riga {index}", price=Decimal(price))
                for index, price in enumerate(prices, start=1)
            ],
            payments=[
                Payment(amount=Decimal(amount), method=method)
                for amount, method in payments
            ],
        )

    return _make
