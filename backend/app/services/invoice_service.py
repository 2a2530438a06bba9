"""
Service Layer per la Fatturazione
Progetto: Invoice Manager (Gestionale Fatture)

Definisce la logica di business per la gestione delle fatture:
creazione, lettura, ricerca, modifica delle righe ed eliminazione.
I pagamenti sono gestiti da PaymentService (payment_service.py).
"""

import logging
import re
import uuid
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Optional, Union

from sqlalchemy import String, cast, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import (
    BusinessValidationError,
    ConflictError,
    NotFoundError,
)
from app.models import Invoice, LineItem

# Logger per questo modulo
logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")
# Limite imposto da Numeric(10, 2)
MAX_AMOUNT = Decimal("99999999.99")

InvoiceId = Union[str, uuid.UUID]

# Frammento di UUID cercabile: solo cifre esadecimali e trattini, almeno 8 cifre
ID_FRAGMENT_RE = re.compile(r"^[0-9a-f-]*$")
ID_FRAGMENT_MIN_DIGITS = 8


# -------------------------------------------------------------------
# Normalizzazione input
# -------------------------------------------------------------------

def parse_invoice_id(invoice_id: InvoiceId) -> uuid.UUID:
    """
    Converte l'identificativo ricevuto in UUID.

    Un identificativo malformato non può corrispondere a nessuna
    fattura, quindi viene trattato come risorsa inesistente.

    Raises:
        NotFoundError: identificativo non valido
    """
    if isinstance(invoice_id, uuid.UUID):
        return invoice_id
    try:
        return uuid.UUID(str(invoice_id).strip())
    except (ValueError, AttributeError):
        raise NotFoundError(f"Fattura {invoice_id} non trovata")


def clean_text(value: Any, field_label: str, max_length: int) -> str:
    """
    Restituisce il testo senza spazi iniziali/finali.

    Raises:
        BusinessValidationError: testo assente, vuoto o troppo lungo
    """
    if value is None or not isinstance(value, str) or not value.strip():
        raise BusinessValidationError(f"{field_label} è obbligatorio")
    value = value.strip()
    if len(value) > max_length:
        raise BusinessValidationError(
            f"{field_label} non può superare {max_length} caratteri"
        )
    return value


def clean_money(value: Any, field_label: str, allow_zero: bool) -> Decimal:
    """
    Converte un importo in Decimal con due decimali.

    Accetta Decimal, int, float e stringhe numeriche; rifiuta booleani,
    valori non finiti (NaN, Infinity), negativi, con più di due decimali
    (nessun arrotondamento) e, se `allow_zero` è False, lo zero.

    Raises:
        BusinessValidationError: importo non valido
    """
    if value is None or isinstance(value, bool):
        raise BusinessValidationError(f"{field_label} è obbligatorio")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise BusinessValidationError(f"{field_label} non è un numero valido: {value!r}")

    if not amount.is_finite():
        raise BusinessValidationError(f"{field_label} deve essere un numero finito")
    if amount < 0 or (not allow_zero and amount == 0):
        qualifier = "non negativo" if allow_zero else "positivo"
        raise BusinessValidationError(f"{field_label} deve essere un numero {qualifier}")

    if amount != amount.quantize(CENTS):
        raise BusinessValidationError(
            f"{field_label} non può avere più di 2 decimali: {value!r}"
        )
    amount = amount.quantize(CENTS)
    if amount > MAX_AMOUNT:
        raise BusinessValidationError(f"{field_label} non può superare {MAX_AMOUNT}")
    return amount


def clean_item(description: Any, price: Any) -> tuple[str, Decimal]:
    """Valida una singola riga fattura (descrizione non vuota, prezzo >= 0)."""
    return (
        clean_text(description, "La descrizione della riga", 500),
        clean_money(price, "Il prezzo della riga", allow_zero=True),
    )


def clean_items(items: Optional[Iterable[Any]]) -> list[tuple[str, Decimal]]:
    """
    Valida un elenco di righe nel suo insieme.

    Ogni elemento deve esporre `description` e `price` (schema Pydantic
    o oggetto equivalente) oppure essere un dict con le stesse chiavi.
    La validazione è tutto-o-niente: la prima riga non valida fa
    fallire l'intero elenco, indicandone la posizione.
    """
    cleaned: list[tuple[str, Decimal]] = []
    for index, item in enumerate(items or [], start=1):
        if item is None:
            raise BusinessValidationError(f"Riga {index}: riga mancante")
        if isinstance(item, dict):
            description, price = item.get("description"), item.get("price")
        else:
            description = getattr(item, "description", None)
            price = getattr(item, "price", None)
        try:
            cleaned.append(clean_item(description, price))
        except BusinessValidationError as exc:
            raise BusinessValidationError(
                f"Riga {index}: {exc.detail}",
                extra={"index": index - 1},
            ) from exc
    return cleaned


def escape_like(term: str) -> str:
    """Esegue l'escape dei caratteri jolly di LIKE."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def id_fragment(term: str) -> Optional[str]:
    """
    Restituisce le cifre esadecimali del termine se può essere parte di un UUID.

    I termini brevi (es. "cafe") sono esclusi: corrisponderebbero
    a identificativi casuali.
    """
    term = term.lower()
    if not ID_FRAGMENT_RE.match(term):
        return None
    digits = term.replace("-", "")
    if len(digits) < ID_FRAGMENT_MIN_DIGITS:
        return None
    return digits


class InvoiceService:
    """
    Service per la gestione delle operazioni sulle fatture.

    Fornisce metodi asincroni per interagire con il database
    in modo centralizzato, senza dipendenze da FastAPI.

    Implementa:
    - Creazione fattura con righe iniziali
    - Elenco in ordine di creazione e ricerca testuale
    - Aggiunta di una riga e sostituzione completa delle righe
    - Rinomina cliente ed eliminazione

    Ogni mutazione carica la fattura con SELECT ... FOR UPDATE, valida
    tutto l'input prima di modificare lo stato e chiude con un unico
    commit: un input rifiutato non lascia modifiche parziali.
    """

    # ------------------------------------------------------------
    # Lettura
    # ------------------------------------------------------------

    async def get_by_id(
        self,
        db: AsyncSession,
        invoice_id: InvoiceId,
        for_update: bool = False,
    ) -> Invoice:
        """
        Recupera una fattura per ID con righe e pagamenti caricati.

        Args:
            db: Sessione database
            invoice_id: UUID (o stringa UUID) della fattura
            for_update: Se True blocca la riga fino al commit

        Returns:
            Invoice: La fattura con relazioni

        Raises:
            NotFoundError: Fattura non trovata
        """
        stmt = (
            select(Invoice)
            .where(Invoice.id == parse_invoice_id(invoice_id))
            .execution_options(populate_existing=True)
        )
        if for_update:
            stmt = stmt.with_for_update()
        result = await db.execute(stmt)
        invoice = result.scalar_one_or_none()

        if not invoice:
            raise NotFoundError(f"Fattura {invoice_id} non trovata")

        return invoice

    async def get_all(self, db: AsyncSession) -> list[Invoice]:
        """
        Recupera tutte le fatture in ordine di creazione.

        Returns:
            list[Invoice]: Fatture con righe e pagamenti
        """
        stmt = select(Invoice).order_by(Invoice.created_at, Invoice.id)
        result = await db.execute(stmt)
        return list(result.scalars().all())

    async def search(self, db: AsyncSession, query: Optional[str]) -> list[Invoice]:
        """
        Ricerca case-insensitive delle fatture.

        Una fattura corrisponde se il termine è contenuto nel nome del
        cliente, nella descrizione di una delle sue righe o nel suo UUID
        (per il UUID servono almeno 8 cifre esadecimali, trattini ignorati).
        Un termine vuoto o assente restituisce l'elenco completo, come get_all.

        Args:
            db: Sessione database
            query: Termine di ricerca

        Returns:
            list[Invoice]: Fatture corrispondenti in ordine di creazione
        """
        term = (query or "").strip()
        if not term:
            return await self.get_all(db)

        pattern = f"%{escape_like(term)}%"
        item_match = select(LineItem.invoice_id).where(
            LineItem.description.ilike(pattern, escape="\\")
        )
        conditions = [
            Invoice.customer_name.ilike(pattern, escape="\\"),
            Invoice.id.in_(item_match),
        ]
        digits = id_fragment(term)
        if digits:
            # PostgreSQL rende il uuid con i trattini, SQLite come 32 cifre
            id_text = func.replace(cast(Invoice.id, String), "-", "")
            conditions.append(func.lower(id_text).like(f"%{digits}%"))

        stmt = (
            select(Invoice)
            .where(or_(*conditions))
            .order_by(Invoice.created_at, Invoice.id)
            .limit(settings.search_max_results)
        )
        result = await db.execute(stmt)
        invoices = list(result.scalars().all())
        logger.debug("Ricerca '%s': %d fatture trovate", term, len(invoices))
        return invoices

    # ------------------------------------------------------------
    # Creazione / aggiornamento / eliminazione
    # ------------------------------------------------------------

    async def create(
        self,
        db: AsyncSession,
        customer_name: Any,
        items: Optional[Iterable[Any]] = None,
    ) -> Invoice:
        """
        Crea una nuova fattura non pagata con data odierna.

        Args:
            db: Sessione database
            customer_name: Nome del cliente (obbligatorio)
            items: Righe iniziali (opzionali)

        Returns:
            Invoice: La fattura creata

        Raises:
            BusinessValidationError: Nome cliente vuoto o riga non valida
        """
        name = clean_text(customer_name, "Il nome del cliente", 255)
        cleaned = clean_items(items)

        invoice = Invoice(
            customer_name=name,
            invoice_date=date.today(),
            items=[
                LineItem(position=position, description=description, price=price)
                for position, (description, price) in enumerate(cleaned, start=1)
            ],
            payments=[],
        )
        db.add(invoice)
        await db.commit()

        logger.info(
            f"Fattura {invoice.id} creata per '{name}' con {len(cleaned)} righe"
        )
        return await self.reload(db, invoice)

    async def rename(
        self,
        db: AsyncSession,
        invoice_id: InvoiceId,
        customer_name: Any,
    ) -> Invoice:
        """
        Aggiorna il nome del cliente di una fattura non pagata.

        Raises:
            NotFoundError: Fattura non trovata
            ConflictError: Fattura già pagata
            BusinessValidationError: Nome vuoto
        """
        invoice = await self.get_by_id(db, invoice_id, for_update=True)
        self._ensure_not_paid(invoice)
        invoice.customer_name = clean_text(customer_name, "Il nome del cliente", 255)
        await db.commit()
        return await self.reload(db, invoice)

    async def delete(self, db: AsyncSession, invoice_id: InvoiceId) -> None:
        """
        Elimina una fattura con righe e pagamenti (cascade).

        Raises:
            NotFoundError: Fattura non trovata
        """
        invoice = await self.get_by_id(db, invoice_id, for_update=True)
        if invoice.has_payments:
            logger.warning(
                f"Eliminazione fattura {invoice.id} con {len(invoice.payments)} pagamenti registrati"
            )
        await db.delete(invoice)
        await db.commit()
        logger.info(f"Fattura {invoice.id} eliminata")

    # ------------------------------------------------------------
    # Gestione righe
    # ------------------------------------------------------------

    async def add_item(
        self,
        db: AsyncSession,
        invoice_id: InvoiceId,
        description: Any,
        price: Any,
    ) -> Invoice:
        """
        Aggiunge una riga in coda alla fattura.

        Raises:
            NotFoundError: Fattura non trovata
            ConflictError: Fattura pagata o con pagamenti registrati
            BusinessValidationError: Descrizione vuota o prezzo non valido
        """
        invoice = await self.get_by_id(db, invoice_id, for_update=True)
        self._ensure_items_editable(invoice)
        clean_description, clean_price = clean_item(description, price)

        next_position = max((item.position for item in invoice.items), default=0) + 1
        invoice.items.append(
            LineItem(position=next_position, description=clean_description, price=clean_price)
        )
        await db.commit()
        return await self.reload(db, invoice)

    async def replace_items(
        self,
        db: AsyncSession,
        invoice_id: InvoiceId,
        items: Optional[Iterable[Any]],
    ) -> Invoice:
        """
        Sostituisce l'intero elenco delle righe.

        Tutte le righe sono validate prima di toccare la fattura:
        se una sola è invalida l'elenco esistente resta invariato.

        Raises:
            NotFoundError: Fattura non trovata
            ConflictError: Fattura pagata o con pagamenti registrati
            BusinessValidationError: Una riga non valida
        """
        invoice = await self.get_by_id(db, invoice_id, for_update=True)
        self._ensure_items_editable(invoice)
        cleaned = clean_items(items)

        invoice.items = [
            LineItem(position=position, description=description, price=price)
            for position, (description, price) in enumerate(cleaned, start=1)
        ]
        await db.commit()
        logger.info(f"Fattura {invoice.id}: righe sostituite ({len(cleaned)})")
        return await self.reload(db, invoice)

    # ------------------------------------------------------------
    # Helper
    # ------------------------------------------------------------

    async def reload(self, db: AsyncSession, invoice: Invoice) -> Invoice:
        """Ricarica la fattura dal database dopo il commit (ordinamenti inclusi)."""
        invoice_id = invoice.id
        db.expire(invoice)
        return await self.get_by_id(db, invoice_id)

    @staticmethod
    def _ensure_not_paid(invoice: Invoice) -> None:
        if invoice.paid:
            logger.warning(f"Operazione rifiutata: fattura {invoice.id} già pagata")
            raise ConflictError(
                f"La fattura {invoice.id} è già pagata e non può essere modificata",
                error_code="INVOICE_ALREADY_PAID",
            )

    @classmethod
    def _ensure_items_editable(cls, invoice: Invoice) -> None:
        """
        Le righe sono modificabili solo finché non esistono pagamenti:
        un totale ridotto dopo un incasso lo renderebbe incoerente.
        """
        cls._ensure_not_paid(invoice)
        if invoice.has_payments:
            logger.warning(
                f"Modifica righe rifiutata: fattura {invoice.id} parzialmente pagata"
            )
            raise ConflictError(
                f"La fattura {invoice.id} ha pagamenti registrati: le righe non sono modificabili",
                error_code="INVOICE_PARTIALLY_PAID",
            )
