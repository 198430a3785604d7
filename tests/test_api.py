from decimal import Decimal

import pytest

DAY = "2025-01-15"


@pytest.fixture
def setup(client):
    """Create the master data a trade needs through the API and return their ids."""
    usd = client.post("/currencies/", json={"name": "USD", "is_base": True}).json()
    group = client.post("/units/groups", json={"name": "Count"}).json()
    pcs = client.post("/units/", json={"name": "pcs", "group_id": group["id"], "ratio": "1", "is_base": True}).json()
    supplier = client.post("/suppliers/", json={"full_name": "Acme", "phone": "0700", "address": "Depot"}).json()
    customer = client.post("/customers/", json={"full_name": "Bob", "phone": "0711", "address": "Town"}).json()
    product = client.post("/products/", json={"name": "Widget"}).json()
    account = client.post("/accounts/", json={"name": "Cash", "currency_id": usd["id"]}).json()
    return {
        "usd": usd["id"],
        "pcs": pcs["id"],
        "supplier": supplier["id"],
        "customer": customer["id"],
        "product": product["id"],
        "account": account["id"],
    }


def buy(client, setup, amount=10, per_price=5):
    response = client.post("/purchases/", json={
        "supplier_id": setup["supplier"],
        "date": DAY,
        "items": [{"product_id": setup["product"], "unit_id": setup["pcs"], "per_price": str(per_price),
                   "amount": str(amount)}],
    })
    assert response.status_code == 201
    return response.json()


def sell(client, setup, batch_id, amount, headers=None):
    return client.post("/sales/", headers=headers, json={
        "customer_id": setup["customer"],
        "date": DAY,
        "items": [{"product_id": setup["product"], "unit_id": setup["pcs"], "per_price": "8", "amount": str(amount),
                   "purchase_item_id": batch_id}],
    })


def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json() == {"message": "Welcome to the Shop Ledger API!"}


def test_purchase_then_sale(client, setup):
    purchase = buy(client, setup)
    assert purchase["batch_number"] == "BATCH-000001"
    assert Decimal(purchase["total_amount"]) == Decimal(50)
    batch_id = purchase["items"][0]["id"]

    response = sell(client, setup, batch_id, 4)

    assert response.status_code == 201
    assert Decimal(response.json()["total_amount"]) == Decimal(32)
    stock = client.get(f"/products/{setup['product']}/stock").json()
    assert Decimal(stock["quantity"]) == Decimal(6)


def test_oversell_is_a_conflict(client, setup):
    batch_id = buy(client, setup)["items"][0]["id"]

    response = sell(client, setup, batch_id, 11)

    assert response.status_code == 409
    assert "detail" in response.json()
    assert client.get("/sales/").json() == []


def test_unknown_sale(client):
    response = client.get("/sales/999")
    assert response.status_code == 404
    assert response.json() == {"detail": "Sale not found"}


def test_unknown_customer_is_not_found(client, setup):
    response = client.post("/sales/", json={"customer_id": 999, "date": DAY, "items": [
        {"product_id": setup["product"], "unit_id": setup["pcs"], "per_price": "8", "amount": "1"}
    ]})
    assert response.status_code == 404
    assert "999" in response.json()["detail"]


def test_journal_line_with_debit_and_credit_is_rejected(client, setup):
    response = client.post("/journal-entries/", json={
        "entry_date": DAY,
        "lines": [{"account_id": setup["account"], "currency_id": setup["usd"], "debit_amount": "5",
                   "credit_amount": "5"}],
    })
    assert response.status_code == 422


def test_journal_entry_moves_the_account(client, setup):
    response = client.post("/journal-entries/", json={
        "entry_date": DAY,
        "lines": [{"account_id": setup["account"], "currency_id": setup["usd"], "debit_amount": "25"}],
    })
    assert response.status_code == 201
    assert response.json()["entry_number"] == "J000001"

    account = client.get(f"/accounts/{setup['account']}").json()
    assert Decimal(account["current_balance"]) == Decimal(25)


def test_withdraw_more_than_held_is_a_conflict(client, setup):
    deposit = client.post(f"/accounts/{setup['account']}/deposit", json={
        "amount": "40", "currency": "USD", "transaction_date": DAY
    })
    assert deposit.status_code == 201

    response = client.post(f"/accounts/{setup['account']}/withdraw", json={
        "amount": "50", "currency": "USD", "transaction_date": DAY
    })
    assert response.status_code == 409
    assert "Insufficient" in response.json()["detail"]


def test_actor_header_lands_in_the_audit_log(client, setup):
    purchase = buy(client, setup)
    sale = sell(client, setup, purchase["items"][0]["id"], 2).json()

    response = client.put(f"/sales/{sale['id']}", headers={"X-User": "maria"}, json={
        "customer_id": setup["customer"],
        "date": DAY,
        "items": [{"product_id": setup["product"], "unit_id": setup["pcs"], "per_price": "9", "amount": "3"}],
    })
    assert response.status_code == 200

    logs = client.get("/audit-logs/", params={"table_name": "sales", "record_id": sale["id"]}).json()
    assert [(log["action"], log["changed_by"]) for log in logs] == [("UPDATE", "maria")]


def test_delete_returns_no_content(client, setup):
    purchase = buy(client, setup)

    response = client.delete(f"/purchases/{purchase['id']}")

    assert response.status_code == 204
    assert client.get(f"/purchases/{purchase['id']}").status_code == 404


def test_standard_coa_categories(client):
    first = client.post("/coa-categories/init-standard").json()
    second = client.post("/coa-categories/init-standard").json()

    assert first["created"] > 0
    assert second == {"created": 0}
    tree = client.get("/coa-categories/tree").json()
    assert [node["code"] for node in tree] == ["1000", "2000", "3000", "4000", "5000"]


def test_discount_code_validation(client):
    client.post("/discount-codes/", json={"code": "save5", "type": "fixed", "value": "5"})

    ok = client.post("/discount-codes/validate", json={"code": "SAVE5", "subtotal": "100"})
    missing = client.post("/discount-codes/validate", json={"code": "NOPE", "subtotal": "100"})

    assert ok.status_code == 200
    assert Decimal(ok.json()["discount_amount"]) == Decimal(5)
    assert missing.status_code == 404
