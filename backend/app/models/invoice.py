"""
Modelli SQLAlchemy per la Fatturazione
Progetto: Invoice Manager (Gestionale Fatture)

Contiene:
- Invoice: Fattura principale
- LineItem: Righe della fattura (descrizione + prezzo)
- Payment: Pagamenti registrati sulla fattura
"""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import (
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models import Base
from app.models.mixins import TimestampMixin, UUIDMixin

CENTS = Decimal("0.01")


def _as_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite restituisce timestamp naive (UTC), PostgreSQL aware."""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class Invoice(Base, UUIDMixin, TimestampMixin):
    """
    Modello per le fatture.

    Totale, importo pagato e stato di pagamento NON sono colonne:
    sono sempre ricalcolati dalle righe e dai pagamenti correnti,
    così il totale non può divergere dalla somma delle righe.

    Attributes:
        id: UUID primary key, generato automaticamente
        customer_name: Nome del cliente
        invoice_date: Data di creazione della fattura (immutabile)
        created_at: Data/ora creazione record (ordine di elenco)
        updated_at: Data/ora ultimo aggiornamento

    Relationships:
        items: Righe della fattura, ordinate per posizione
        payments: Pagamenti registrati
    """

    __tablename__ = "invoices"

    # ------------------------------------------------------------
    # Colonne Dati
    # ------------------------------------------------------------
    customer_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        doc="Nome del cliente intestatario",
    )

    invoice_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
        default=date.today,
        doc="Data emissione fattura",
    )

    # ------------------------------------------------------------
    # Relationships
    # ------------------------------------------------------------
    items: Mapped[List["LineItem"]] = relationship(
        "LineItem",
        back_populates="invoice",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="LineItem.position",
        doc="Righe della fattura",
    )

    payments: Mapped[List["Payment"]] = relationship(
        "Payment",
        back_populates="invoice",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="[Payment.payment_date, Payment.created_at]",
        doc="Pagamenti registrati",
    )

    # ------------------------------------------------------------
    # Properties Calcolate
    # ------------------------------------------------------------
    @property
    def total(self) -> Decimal:
        """Somma dei prezzi delle righe correnti."""
        return sum((item.price for item in self.items), Decimal("0")).quantize(CENTS)

    @property
    def amount_paid(self) -> Decimal:
        """Somma degli importi pagati."""
        return sum((p.amount for p in self.payments), Decimal("0")).quantize(CENTS)

    @property
    def remaining_balance(self) -> Decimal:
        """Importo residuo da incassare."""
        return self.total - self.amount_paid

    @property
    def paid(self) -> bool:
        """True se almeno un pagamento copre l'intero totale."""
        return bool(self.payments) and self.amount_paid >= self.total

    @property
    def payment_method(self) -> Optional[str]:
        """
        Metodo dell'ultimo pagamento registrato (per created_at).

        Lo storico è ordinato per data del pagamento, che può essere
        retrodatata: conta invece l'ordine di registrazione. I pagamenti
        non ancora salvati (created_at assente) sono i più recenti.
        """
        latest = None
        latest_at = None
        for payment in self.payments:
            recorded_at = _as_naive_utc(payment.created_at)
            if (
                latest is None
                or recorded_at is None
                or (latest_at is not None and recorded_at >= latest_at)
            ):
                latest, latest_at = payment, recorded_at
        return latest.method if latest is not None else None

    @property
    def has_payments(self) -> bool:
        return bool(self.payments)

    # ------------------------------------------------------------
    # Indici e Vincoli
    # ------------------------------------------------------------
    __table_args__ = (
        Index("ix_invoices_customer_name", "customer_name"),
        Index("ix_invoices_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Invoice(id={self.id}, customer={self.customer_name!r}, total={self.total})>"


class LineItem(Base, UUIDMixin, TimestampMixin):
    """
    Modello per le righe della fattura.

    Attributes:
        id: UUID primary key
        invoice_id: UUID della fattura padre
        position: Posizione progressiva della riga (da 1)
        description: Descrizione della riga
        price: Prezzo della riga (>= 0)
    """

    __tablename__ = "line_items"

    invoice_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("invoices.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        doc="UUID della fattura padre",
    )

    position: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        doc="Numero progressivo riga nella fattura",
    )

    description: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
        doc="Descrizione della riga",
    )

    price: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        doc="Prezzo della riga",
    )

    invoice: Mapped["Invoice"] = relationship(
        "Invoice",
        back_populates="items",
        doc="Fattura padre",
    )

    __table_args__ = (
        Index("ix_line_items_invoice_position", "invoice_id", "position"),
        CheckConstraint("price >= 0", name="ck_line_items_price_positive"),
    )

    def __repr__(self) -> str:
        return f"<LineItem(position={self.position}, description={self.description[:30]!r}, price={self.price})>"


class Payment(Base, UUIDMixin, TimestampMixin):
    """
    Modello per i pagamenti registrati su una fattura.

    Attributes:
        id: UUID primary key
        invoice_id: UUID della fattura pagata
        amount: Importo del pagamento (> 0)
        method: Metodo di pagamento (testo libero, es. CASH, CARD, BANK_TRANSFER)
        payment_date: Data del pagamento
        reference: Riferimento opzionale (CRO bonifico, numero ricevuta, ...)
    """

    __tablename__ = "payments"

    invoice_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("invoices.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        doc="UUID della fattura pagata",
    )

    amount: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        doc="Importo del pagamento",
    )

    method: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        doc="Metodo di pagamento",
    )

    payment_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
        doc="Data del pagamento",
    )

    reference: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        default="",
        doc="Riferimento pagamento",
    )

    invoice: Mapped["Invoice"] = relationship(
        "Invoice",
        back_populates="payments",
        doc="Fattura pagata",
    )

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_payments_amount_positive"),
    )

    def __repr__(self) -> str:
        return f"<Payment(invoice={self.invoice_id}, amount={self.amount}, method={self.method})>"
