"""
tests/test_api.py
Test cases for the HTTP surface: routing, error mapping and response caching
"""


def create_user_with_account(client, username="alice", balance=1000):
    assert client.post("/users/", json={"username": username}).status_code == 201
    response = client.post(
        f"/users/{username}/accounts",
        json={"institution_name": "Broker", "account_name": "Brokerage", "balance_current": balance},
    )
    assert response.status_code == 201
    return response.json()


def test_root(client):
    assert client.get("/").json()["message"] == "Portfolio Tracker API is running"


def test_duplicate_user_is_bad_request(client):
    client.post("/users/", json={"username": "alice"})

    response = client.post("/users/", json={"username": "alice"})

    assert response.status_code == 400
    assert "already exists" in response.json()["detail"]


def test_unknown_user_is_not_found(client):
    response = client.get("/users/nobody")

    assert response.status_code == 404
    assert response.json() == {"detail": "User not found: nobody"}


def test_buy_then_sell_flow(client, provider):
    account = create_user_with_account(client)

    bought = client.post(
        "/holdings/add-to-portfolio",
        json={"username": "alice", "ticker": "aapl", "account_id": account["id"], "quantity": 10},
    )
    assert bought.status_code == 201
    assert bought.json()["price_used"] == 150.0
    assert bought.json()["holding"]["quantity"] == 10

    sold = client.post(
        "/holdings/sell-by-ticker",
        json={"username": "alice", "ticker": "AAPL", "quantity": 4, "price": 160},
    )
    assert sold.status_code == 200
    body = sold.json()
    assert body["is_full_sell"] is False
    assert body["remaining_holding"]["quantity"] == 6
    assert body["total_amount"] == 640

    summary = client.get("/portfolio/alice").json()
    assert summary["investment_value"] == 1000 + 6 * 150


def test_oversell_is_bad_request(client):
    account = create_user_with_account(client)
    client.post(
        "/holdings/add-to-portfolio",
        json={"username": "alice", "ticker": "AAPL", "account_id": account["id"], "quantity": 1, "price": 100},
    )

    response = client.post("/holdings/sell-by-ticker", json={"username": "alice", "ticker": "AAPL", "quantity": 5})

    assert response.status_code == 400


def test_sell_without_price_source_is_unprocessable(client, factory):
    account = create_user_with_account(client)
    asset = factory.get_asset_repository().create({"ticker": "NOPX", "name": "No Price"})
    client.post("/holdings/buy", json={"account_id": account["id"], "asset_id": asset.id, "quantity": 2, "price": 5})

    response = client.post("/holdings/sell", json={"account_id": account["id"], "asset_id": asset.id})

    assert response.status_code == 422


def test_quote_provider_failure_is_bad_gateway(client):
    response = client.get("/market-data/quote/ZZZZ")

    assert response.status_code == 502


def test_non_positive_buy_rejected_by_validation(client):
    response = client.post("/holdings/buy", json={"account_id": 1, "asset_id": 1, "quantity": 0, "price": 10})

    assert response.status_code == 422


def test_user_holdings_are_cached_until_a_write(client, fake_redis):
    account = create_user_with_account(client)
    client.post(
        "/holdings/add-to-portfolio",
        json={"username": "alice", "ticker": "AAPL", "account_id": account["id"], "quantity": 1, "price": 100},
    )

    first = client.get("/holdings/user/alice").json()
    assert "holdings:user:alice:list" in fake_redis.store
    assert client.get("/holdings/user/alice").json() == first

    client.post(
        "/holdings/add-to-portfolio",
        json={"username": "alice", "ticker": "AAPL", "account_id": account["id"], "quantity": 1, "price": 200},
    )
    assert "holdings:user:alice:list" not in fake_redis.store
    assert client.get("/holdings/user/alice").json()[0]["quantity"] == 2


def test_cash_transaction_and_stats(client):
    account = create_user_with_account(client)

    created = client.post(
        "/transactions/",
        json={"account_id": account["id"], "transaction_type": "deposit", "total_amount": 250},
    )
    assert created.status_code == 201

    rejected = client.post(
        "/transactions/",
        json={"account_id": account["id"], "transaction_type": "buy", "total_amount": 250},
    )
    assert rejected.status_code == 400

    stats = client.get("/transactions/user/alice/stats").json()
    assert stats["total_transactions"] == 1
    assert stats["by_type"]["deposit"]["volume"] == 250


def test_price_refresh_clears_cached_holdings(client, fake_redis, provider):
    account = create_user_with_account(client)
    client.post(
        "/holdings/add-to-portfolio",
        json={"username": "alice", "ticker": "AAPL", "account_id": account["id"], "quantity": 1},
    )
    first = client.get("/holdings/user/alice").json()
    assert first[0]["asset"]["current_price"] == 150.0

    provider.set_quote("AAPL", 175.0)
    assert client.post("/assets/ticker/AAPL/refresh-price").status_code == 200

    assert "holdings:user:alice:list" not in fake_redis.store
    assert client.get("/holdings/user/alice").json()[0]["asset"]["current_price"] == 175.0


def test_batch_asset_create_skips_duplicates_only(client):
    client.post("/assets/", json={"ticker": "AAPL"})

    created = client.post("/assets/batch", json={"assets": [{"ticker": "AAPL"}, {"ticker": "MSFT"}]})
    assert created.status_code == 201
    assert [a["ticker"] for a in created.json()] == ["MSFT"]

    rejected = client.post("/assets/batch", json={"assets": [{"ticker": "GOOG"}, {"ticker": "bad ticker!"}]})
    assert rejected.status_code == 400
