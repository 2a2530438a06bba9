"""
Schemas Pydantic per la Fatturazione
Progetto: Invoice Manager (Gestionale Fatture)

Contiene:
- Enum: PaymentMethod (metodi suggeriti, il campo resta testo libero)
- Schemas per LineItem
- Schemas per Payment
- Schemas per Invoice

I nomi dei campi JSON sono in camelCase (customerName, amountPaid, ...)
come li usa il frontend; in input sono accettati anche in snake_case.
"""

import uuid
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)

from app.core.exceptions import BusinessValidationError


# -------------------------------------------------------------------
# Enum
# -------------------------------------------------------------------

class PaymentMethod(str, Enum):
    """Metodi di pagamento proposti dalla UI (non vincolanti)."""
    CASH = "CASH"
    CARD = "CARD"
    BANK_TRANSFER = "BANK_TRANSFER"


# -------------------------------------------------------------------
# Schemas per LineItem
# -------------------------------------------------------------------

class LineItemBase(BaseModel):
    """Schema base per le righe della fattura."""

    description: str = Field(
        ...,
        max_length=500,
        description="Descrizione della riga",
    )
    price: Decimal = Field(
        ...,
        ge=0,
        description="Prezzo della riga (non negativo)",
    )

    model_config = ConfigDict(from_attributes=True)


class LineItemCreate(LineItemBase):
    """Schema per l'aggiunta di una riga fattura."""

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: str) -> str:
        """La descrizione non può essere vuota o composta da soli spazi."""
        v = v.strip()
        if not v:
            raise BusinessValidationError("La descrizione della riga è obbligatoria")
        return v


class LineItemRead(LineItemBase):
    """Schema per la lettura di una riga fattura."""
    pass


class LineItemsReplace(BaseModel):
    """Schema per la sostituzione completa delle righe di una fattura."""

    items: list[LineItemCreate] = Field(
        default_factory=list,
        description="Nuovo elenco completo delle righe",
    )


# -------------------------------------------------------------------
# Schemas per Payment
# -------------------------------------------------------------------

class PaymentCreate(BaseModel):
    """
    Schema per la registrazione di un pagamento.

    L'importo può essere inviato come numero o come stringa ("10.49").
    Se la data è assente o vuota si usa la data odierna.
    """

    method: str = Field(
        ...,
        max_length=50,
        description="Metodo di pagamento (testo libero, salvato in maiuscolo)",
        examples=[m.value for m in PaymentMethod],
    )
    amount: Decimal = Field(
        ...,
        description="Importo pagato",
    )
    payment_date: Optional[date] = Field(
        None,
        validation_alias=AliasChoices("date", "paymentDate", "payment_date"),
        description="Data del pagamento (formato: YYYY-MM-DD)",
    )
    reference: Optional[str] = Field(
        None,
        max_length=255,
        description="Riferimento pagamento (CRO, numero ricevuta, ...)",
    )

    @field_validator("payment_date", mode="before")
    @classmethod
    def empty_date_as_today(cls, v):
        """Una stringa vuota equivale a data non indicata."""
        if isinstance(v, str) and not v.strip():
            return None
        return v


class PaymentRead(BaseModel):
    """Schema per la lettura di un pagamento."""

    amount: Decimal = Field(..., description="Importo pagato")
    method: str = Field(..., description="Metodo di pagamento")
    payment_date: date = Field(
        ...,
        description="Data del pagamento",
        serialization_alias="date",
    )
    reference: str = Field("", description="Riferimento pagamento")

    model_config = ConfigDict(from_attributes=True)


# -------------------------------------------------------------------
# Schemas per Invoice
# -------------------------------------------------------------------

class InvoiceCreate(BaseModel):
    """Schema per la creazione di una fattura."""

    customer_name: str = Field(
        ...,
        max_length=255,
        validation_alias=AliasChoices("customerName", "customer_name", "name"),
        description="Nome del cliente",
    )
    items: list[LineItemCreate] = Field(
        default_factory=list,
        description="Righe iniziali della fattura",
    )


class InvoiceUpdate(BaseModel):
    """Schema per l'aggiornamento dei dati anagrafici della fattura."""

    customer_name: str = Field(
        ...,
        max_length=255,
        validation_alias=AliasChoices("customerName", "customer_name", "name"),
        description="Nuovo nome del cliente",
    )


class InvoiceRead(BaseModel):
    """
    Schema per la lettura di una fattura.

    I campi calcolati (total, paid, amountPaid, paymentMethod,
    remainingBalance) sono letti dalle property del modello.
    """

    id: uuid.UUID = Field(..., description="UUID della fattura")
    customer_name: str = Field(
        ...,
        description="Nome del cliente",
        serialization_alias="customerName",
    )
    invoice_date: date = Field(
        ...,
        description="Data di creazione (YYYY-MM-DD)",
        serialization_alias="date",
    )
    items: list[LineItemRead] = Field(
        default_factory=list,
        description="Righe della fattura",
    )
    total: Decimal = Field(..., description="Somma dei prezzi delle righe")
    paid: bool = Field(..., description="True se la fattura è interamente pagata")
    amount_paid: Decimal = Field(
        ...,
        description="Totale incassato",
        serialization_alias="amountPaid",
    )
    payment_method: Optional[str] = Field(
        None,
        description="Metodo dell'ultimo pagamento",
        serialization_alias="paymentMethod",
    )
    remaining_balance: Decimal = Field(
        ...,
        description="Importo residuo da incassare",
        serialization_alias="remainingBalance",
    )
    payments: list[PaymentRead] = Field(
        default_factory=list,
        description="Storico pagamenti ordinato per data",
        serialization_alias="paymentHistory",
    )

    model_config = ConfigDict(from_attributes=True)
