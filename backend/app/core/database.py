"""
Configurazione Database - SQLAlchemy 2.0 Async
Progetto: Invoice Manager (Gestionale Fatture)

Definisce engine, session factory e dependency injection per FastAPI.
"""

import logging
from typing import Any, AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.core.config import settings

# Logger per questo modulo
logger = logging.getLogger(__name__)


def build_engine(database_url: str, **overrides: Any) -> AsyncEngine:
    """
    Crea un engine async con le opzioni adatte al dialetto.

    Le opzioni di pool (pool_size, max_overflow) valgono solo per i
    database server; SQLite usa il pool di default del driver.

    Args:
        database_url: URL del database in formato async
        **overrides: Argomenti extra per create_async_engine

    Returns:
        AsyncEngine: Engine configurato
    """
    options: dict[str, Any] = {
        "echo": settings.debug,  # Log query in modalità debug
        "pool_pre_ping": True,   # Verifica connessione prima di usarla
    }
    if not database_url.startswith("sqlite"):
        options["pool_size"] = settings.db_pool_size
        options["max_overflow"] = settings.db_max_overflow
    options.update(overrides)
    return create_async_engine(database_url, **options)


# ------------------------------------------------------------
# Engine Async SQLAlchemy 2.0
# ------------------------------------------------------------
engine: AsyncEngine = build_engine(settings.database_url)


# ------------------------------------------------------------
# Session Factory
# ------------------------------------------------------------
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency injection per FastAPI.

    Crea una sessione database per ogni richiesta e la chiude
    automaticamente al termine.

    Yields:
        AsyncSession: Sessione database async

    Example:
        @router.get("/invoices")
        async def list_invoices(db: AsyncSession = Depends(get_db)):
            ...
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def init_db() -> None:
    """
    Inizializza la connessione al database.

    Esegue un test di connessione e, se abilitato da
    `settings.db_create_all`, crea le tabelle mancanti.
    """
    from app.models import Base

    if settings.is_sqlite and settings.is_production:
        logger.warning(
            "SQLite in produzione: SELECT ... FOR UPDATE non è supportato, "
            "le modifiche concorrenti alla stessa fattura non sono serializzate"
        )

    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
            if settings.db_create_all:
                await conn.run_sync(Base.metadata.create_all)
        logger.info("Connessione al database stabilita con successo")
    except Exception as e:
        logger.error("Errore connessione database: %s", e)
        raise


async def close_db() -> None:
    """
    Chiude le connessioni al database.

    Da chiamare durante lo shutdown dell'applicazione.
    """
    await engine.dispose()
    logger.info("Connessioni database chiuse")
