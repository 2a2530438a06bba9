"""
Test degli endpoint REST.

Verificano codici di stato, formato JSON (camelCase) e il corpo
`{"error": ...}` delle risposte di errore.
"""

import uuid
from decimal import Decimal

import pytest

from app.core.config import settings

API = settings.api_prefix


async def create_invoice(client, name="Acme", items=None):
    response = await client.post(
        f"{API}/invoices",
        json={"customerName": name, "items": items if items is not None else []},
    )
    assert response.status_code == 201, response.text
    return response.json()


# ============================================================
# TEST GROUP 1 - Fatture
# ============================================================


class TestInvoiceEndpoints:
    """Test CRUD fatture via HTTP."""

    async def test_create_invoice(self, client):
        """Test POST /invoices: 201 e rappresentazione completa."""
        body = await create_invoice(
            client, items=[{"description": "Widget", "price": 9.99}]
        )

        assert uuid.UUID(body["id"])
        assert body["customerName"] == "Acme"
        assert body["items"] == [{"description": "Widget", "price": "9.99"}]
        assert Decimal(body["total"]) == Decimal("9.99")
        assert body["paid"] is False
        assert body["paymentMethod"] is None
        assert Decimal(body["amountPaid"]) == 0
        assert body["paymentHistory"] == []
        assert "date" in body

    async def test_create_accepts_snake_case(self, client):
        """Test nome cliente accettato anche come customer_name."""
        response = await client.post(f"{API}/invoices", json={"customer_name": "Beta"})
        assert response.status_code == 201
        assert response.json()["customerName"] == "Beta"

    @pytest.mark.parametrize(
        "payload",
        [
            {"customerName": "   "},
            {},
            {"customerName": "Acme", "items": [{"description": "", "price": 1}]},
            {"customerName": "Acme", "items": [{"description": "Widget", "price": -1}]},
        ],
    )
    async def test_create_invalid(self, client, payload):
        """Test input non valido: 422 con messaggio e nessuna fattura creata."""
        response = await client.post(f"{API}/invoices", json=payload)

        assert response.status_code == 422
        assert response.json()["error"]
        listing = await client.get(f"{API}/invoices")
        assert listing.json() == []

    async def test_list_in_creation_order(self, client):
        """Test GET /invoices in ordine di creazione."""
        await create_invoice(client, "Primo")
        await create_invoice(client, "Secondo")

        response = await client.get(f"{API}/invoices")
        assert response.status_code == 200
        assert [i["customerName"] for i in response.json()] == ["Primo", "Secondo"]

    async def test_get_invoice(self, client):
        """Test GET /invoices/{id}."""
        created = await create_invoice(client)
        response = await client.get(f"{API}/invoices/{created['id']}")
        assert response.status_code == 200
        assert response.json() == created

    @pytest.mark.parametrize("invoice_id", [str(uuid.uuid4()), "not-a-uuid"])
    async def test_get_missing_invoice(self, client, invoice_id):
        """Test fattura inesistente o id malformato: 404."""
        response = await client.get(f"{API}/invoices/{invoice_id}")
        assert response.status_code == 404
        assert response.json()["code"] == "RESOURCE_NOT_FOUND"
        assert response.json()["error"]

    async def test_rename_invoice(self, client):
        """Test PATCH /invoices/{id}."""
        created = await create_invoice(client)
        response = await client.patch(
            f"{API}/invoices/{created['id']}", json={"customerName": "Acme S.r.l."}
        )
        assert response.status_code == 200
        assert response.json()["customerName"] == "Acme S.r.l."

    async def test_delete_invoice(self, client):
        """Test DELETE /invoices/{id}: 204 e poi 404."""
        created = await create_invoice(client)

        response = await client.delete(f"{API}/invoices/{created['id']}")
        assert response.status_code == 204

        response = await client.get(f"{API}/invoices/{created['id']}")
        assert response.status_code == 404
        response = await client.delete(f"{API}/invoices/{created['id']}")
        assert response.status_code == 404


# ============================================================
# TEST GROUP 2 - Righe
# ============================================================


class TestItemEndpoints:
    """Test gestione righe via HTTP."""

    async def test_add_item(self, client):
        """Test POST /invoices/{id}/items ricalcola il totale."""
        created = await create_invoice(client, items=[{"description": "Widget", "price": 9.99}])

        response = await client.post(
            f"{API}/invoices/{created['id']}/items",
            json={"description": "Bolt", "price": 0.5},
        )
        assert response.status_code == 200
        body = response.json()
        assert [i["description"] for i in body["items"]] == ["Widget", "Bolt"]
        assert Decimal(body["total"]) == Decimal("10.49")

    @pytest.mark.parametrize(
        "payload",
        [
            {"description": "", "price": 1},
            {"description": "   ", "price": 1},
            {"description": "Bolt", "price": -0.01},
            {"description": "Bolt", "price": "abc"},
            {"description": "Bolt", "price": "1.005"},
            {"description": "Bolt"},
        ],
    )
    async def test_add_invalid_item(self, client, payload):
        """Test riga invalida: 422 e fattura invariata."""
        created = await create_invoice(client, items=[{"description": "Widget", "price": 9.99}])

        response = await client.post(f"{API}/invoices/{created['id']}/items", json=payload)
        assert response.status_code == 422
        assert response.json()["error"]

        current = (await client.get(f"{API}/invoices/{created['id']}")).json()
        assert current == created

    async def test_add_item_missing_invoice(self, client):
        """Test aggiunta riga su fattura inesistente: 404."""
        response = await client.post(
            f"{API}/invoices/{uuid.uuid4()}/items",
            json={"description": "Bolt", "price": 1},
        )
        assert response.status_code == 404

    async def test_replace_items(self, client):
        """Test PUT /invoices/{id}/items."""
        created = await create_invoice(client, items=[{"description": "Widget", "price": 9.99}])

        response = await client.put(
            f"{API}/invoices/{created['id']}/items",
            json={"items": [{"description": "Nut", "price": "0.25"}]},
        )
        assert response.status_code == 200
        assert response.json()["items"] == [{"description": "Nut", "price": "0.25"}]

    async def test_replace_items_all_or_nothing(self, client):
        """Test una riga invalida: 422 e righe invariate."""
        created = await create_invoice(client, items=[{"description": "Widget", "price": 9.99}])

        response = await client.put(
            f"{API}/invoices/{created['id']}/items",
            json={"items": [{"description": "Good", "price": 1}, {"description": "", "price": 2}]},
        )
        assert response.status_code == 422

        current = (await client.get(f"{API}/invoices/{created['id']}")).json()
        assert current["items"] == created["items"]


# ============================================================
# TEST GROUP 3 - Pagamenti
# ============================================================


class TestPaymentEndpoints:
    """Test registrazione pagamenti via HTTP."""

    async def test_scenario(self, client):
        """Test scenario Acme: 9.99, riga da 0.50, pagamento CARD, secondo pagamento 409."""
        created = await create_invoice(client, items=[{"description": "Widget", "price": 9.99}])
        invoice_url = f"{API}/invoices/{created['id']}"

        response = await client.post(f"{invoice_url}/items", json={"description": "Bolt", "price": 0.5})
        assert Decimal(response.json()["total"]) == Decimal("10.49")

        response = await client.post(f"{invoice_url}/pay", json={"method": "CARD", "amount": 10.49})
        assert response.status_code == 200
        body = response.json()
        assert body["paid"] is True
        assert body["paymentMethod"] == "CARD"
        assert Decimal(body["remainingBalance"]) == 0

        response = await client.post(f"{invoice_url}/pay", json={"method": "CASH", "amount": 1})
        assert response.status_code == 409
        assert response.json()["code"] == "INVOICE_ALREADY_PAID"

        current = (await client.get(invoice_url)).json()
        assert current["paymentMethod"] == "CARD"

    async def test_partial_payments_and_history(self, client):
        """Test pagamenti parziali e storico ordinato per data."""
        created = await create_invoice(client, items=[{"description": "Tagliando", "price": 100}])
        invoice_url = f"{API}/invoices/{created['id']}"

        response = await client.post(
            f"{invoice_url}/payments",
            json={"method": "card", "amount": "60.00", "date": "2025-02-01"},
        )
        assert response.status_code == 200
        assert response.json()["paid"] is False

        response = await client.post(
            f"{invoice_url}/payments",
            json={"method": "CASH", "amount": 40, "paymentDate": "2025-01-15", "reference": "R-1"},
        )
        assert response.json()["paid"] is True

        response = await client.get(f"{invoice_url}/payments")
        assert response.status_code == 200
        assert [(p["date"], p["method"]) for p in response.json()] == [
            ("2025-01-15", "CASH"),
            ("2025-02-01", "CARD"),
        ]

    async def test_overpayment(self, client):
        """Test importo oltre il saldo: 422."""
        created = await create_invoice(client, items=[{"description": "Widget", "price": 9.99}])

        response = await client.post(
            f"{API}/invoices/{created['id']}/payments",
            json={"method": "CASH", "amount": 10},
        )
        assert response.status_code == 422
        assert response.json()["code"] == "PAYMENT_EXCEEDS_BALANCE"

    @pytest.mark.parametrize(
        "payload",
        [
            {"method": "CASH", "amount": 0},
            {"method": "CASH", "amount": -1},
            {"method": "", "amount": 1},
            {"method": "CASH"},
            {"amount": 1},
            {"method": "CASH", "amount": 1, "date": "ieri"},
        ],
    )
    async def test_invalid_payment(self, client, payload):
        """Test pagamento non valido: 422 e nessun pagamento registrato."""
        created = await create_invoice(client, items=[{"description": "Widget", "price": 9.99}])

        response = await client.post(f"{API}/invoices/{created['id']}/payments", json=payload)
        assert response.status_code == 422
        assert response.json()["error"]

        current = (await client.get(f"{API}/invoices/{created['id']}")).json()
        assert current["paymentHistory"] == []

    async def test_paid_invoice_rejects_item_changes(self, client):
        """Test righe di una fattura pagata non modificabili: 409."""
        created = await create_invoice(client, items=[{"description": "Widget", "price": 9.99}])
        invoice_url = f"{API}/invoices/{created['id']}"
        await client.post(f"{invoice_url}/pay", json={"method": "CASH", "amount": 9.99})

        response = await client.post(f"{invoice_url}/items", json={"description": "Bolt", "price": 1})
        assert response.status_code == 409
        response = await client.put(f"{invoice_url}/items", json={"items": []})
        assert response.status_code == 409

    async def test_pay_missing_invoice(self, client):
        """Test pagamento su fattura inesistente: 404."""
        response = await client.post(
            f"{API}/invoices/{uuid.uuid4()}/pay", json={"method": "CASH", "amount": 1}
        )
        assert response.status_code == 404


# ============================================================
# TEST GROUP 4 - Ricerca e sistema
# ============================================================


class TestSearchEndpoint:
    """Test GET /search."""

    async def test_search(self, client):
        """Test ricerca per cliente, descrizione riga e id."""
        acme = await create_invoice(client, "ACME Corp", [{"description": "Widget", "price": 1}])
        await create_invoice(client, "Mario Rossi", [{"description": "Tagliando", "price": 100}])

        response = await client.get(f"{API}/search", params={"q": "acme"})
        assert response.status_code == 200
        assert [i["id"] for i in response.json()] == [acme["id"]]

        response = await client.get(f"{API}/search", params={"q": "tagliando"})
        assert [i["customerName"] for i in response.json()] == ["Mario Rossi"]

        response = await client.get(f"{API}/search", params={"q": acme["id"]})
        assert [i["id"] for i in response.json()] == [acme["id"]]

    async def test_search_blank_returns_all(self, client):
        """Test termine vuoto o assente: tutte le fatture."""
        await create_invoice(client, "Primo")
        await create_invoice(client, "Secondo")

        for params in ({"q": ""}, {}):
            response = await client.get(f"{API}/search", params=params)
            assert response.status_code == 200
            assert len(response.json()) == 2

    async def test_search_no_match(self, client):
        """Test nessuna corrispondenza: lista vuota."""
        await create_invoice(client, "Primo")
        response = await client.get(f"{API}/search", params={"q": "zzz"})
        assert response.json() == []


async def test_health(client):
    """Test endpoint di health check."""
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
