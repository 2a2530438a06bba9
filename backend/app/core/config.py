"""
Configurazione applicazione - Settings
Progetto: Invoice Manager (Gestionale Fatture)

Definisce le impostazioni dell'applicazione caricate da variabili d'ambiente.
"""


from __future__ import annotations
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Configurazione applicazione.

    Carica le impostazioni da variabili d'ambiente.
    Valori di default adatti per sviluppo locale.

    Per ottenere un'istanza singleton:
    - In FastAPI: usa `Depends(get_settings)` per Dependency Injection
    - Altrove: usa `get_settings()` direttamente
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # ------------------------------------------------------------
    # Configurazione Database
    # ------------------------------------------------------------
    database_url: str = Field(
        default="sqlite+aiosqlite:///./invoices.db",
        description="URL connessione database (formato async: postgresql+asyncpg o sqlite+aiosqlite)",
    )

    db_pool_size: int = Field(
        default=5,
        description="Numero connessioni permanenti nel pool (ignorato con SQLite)",
    )

    db_max_overflow: int = Field(
        default=10,
        description="Connessioni extra temporanee oltre pool_size (ignorato con SQLite)",
    )

    db_create_all: bool = Field(
        default=True,
        description="Crea le tabelle mancanti all'avvio",
    )

    # ------------------------------------------------------------
    # Configurazione Applicazione
    # ------------------------------------------------------------
    app_name: str = Field(
        default="Invoice Manager",
        description="Nome applicazione",
    )

    app_version: str = Field(
        default="1.0.0",
        description="Versione applicazione",
    )

    app_env: Literal["development", "production", "testing"] = Field(
        default="development",
        description="Ambiente di esecuzione (development | production | testing)",
    )

    debug: bool = Field(
        default=False,
        description="Modalità debug",
    )

    api_prefix: str = Field(
        default="/api",
        description="Prefisso comune di tutti gli endpoint REST",
    )

    search_max_results: int = Field(
        default=500,
        ge=1,
        description="Numero massimo di fatture restituite da una ricerca",
    )

    # ------------------------------------------------------------
    # Configurazione CORS
    # ------------------------------------------------------------
    cors_origins: list[str] = Field(
        default_factory=lambda: [
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://localhost:3000",
        ],
        description="Origini CORS permesse",
    )

    # ------------------------------------------------------------
    # Configurazione Logging
    # ------------------------------------------------------------
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Livello logging",
    )

    @property
    def is_production(self) -> bool:
        """Verifica se l'applicazione è in produzione."""
        return self.app_env == "production"

    @property
    def is_sqlite(self) -> bool:
        """True se il database configurato è SQLite."""
        return self.database_url.startswith("sqlite")

    # ------------------------------------------------------------
    # Validatori
    # ------------------------------------------------------------

    @field_validator("api_prefix")
    @classmethod
    def normalize_api_prefix(cls, v: str) -> str:
        """Garantisce lo slash iniziale e rimuove quello finale."""
        v = v.strip().rstrip("/")
        if v and not v.startswith("/"):
            v = "/" + v
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_log_level(cls, v):
        """Accetta il livello di log anche in minuscolo."""
        if isinstance(v, str):
            return v.upper()
        return v

    @model_validator(mode="after")
    def validate_production_settings(self) -> "Settings":
        """
        Validazione settings obbligatori in produzione.
        """
        if self.app_env != "production":
            return self

        errors = []

        if self.debug:
            errors.append("- debug: deve essere False in produzione")

        for origin in self.cors_origins:
            if "localhost" in origin or "127.0.0.1" in origin:
                errors.append(
                    f"- cors_origins: l'origine '{origin}' non è consentita in produzione"
                )

        if errors:
            error_msg = "Errore di configurazione in produzione:\n" + "\n".join(errors)
            raise ValueError(error_msg)

        return self


@lru_cache()
def get_settings() -> Settings:
    """
    Restituisce l'istanza singleton delle impostazioni.

    Usa lru_cache per garantire che Settings() venga istanziato
    una sola volta e riutilizzato in tutta l'applicazione.
    In fase di test, usa get_settings.cache_clear() per resettare.

    Returns:
        Settings: Istanza delle impostazioni applicazione
    """
    return Settings()


# Istanza singleton delle impostazioni per uso diretto in modulo
settings = get_settings()
