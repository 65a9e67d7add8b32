"""Mini README: Tests for the FastAPI service.

Structure:
    * local mode - card listing, confirm-then-apply mutations, history paging.
    * error mapping - typed ledger failures become HTTP status codes.
    * remote mode - server-settled cards refuse local-only operations.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from fuelcard.bootstrap import build_services
from fuelcard.configuration import FuelCardSettings
from fuelcard.interface.web_app import create_application, error_status
from fuelcard.ledger import (
    InsufficientBalance,
    InvalidAmount,
    NetworkError,
    PersistenceError,
    ServerRejected,
    UnsupportedOperation,
)
from fuelcard.storage import InMemoryKeyValueStore


@pytest.fixture
def settings(tmp_path) -> FuelCardSettings:
    return FuelCardSettings(data_directory=tmp_path, page_size=2, recent_transactions=2)


@pytest.fixture
def client(settings, clock) -> TestClient:
    services = build_services(settings, key_value=InMemoryKeyValueStore(), clock=clock)
    return TestClient(create_application(services))


@pytest.fixture
def remote_client(tmp_path, fake_api, clock) -> TestClient:
    settings = FuelCardSettings(data_directory=tmp_path, settlement_mode="remote")
    services = build_services(
        settings, key_value=InMemoryKeyValueStore(), api_client=fake_api, clock=clock
    )
    return TestClient(create_application(services))


def test_overview_reports_mode_and_cards(client: TestClient) -> None:
    response = client.get("/")

    assert response.status_code == 200
    body = response.json()
    assert body["mode"]["mode"] == "local"
    assert body["selected_card"] is None
    assert body["card_ids"] == ["1", "2"]


def test_overview_lists_settlement_modes(client: TestClient) -> None:
    modes = client.get("/").json()["available_modes"]

    assert modes["local"] == {"supports_manual_set": True, "supports_clear_history": True}
    assert modes["remote"]["supports_manual_set"] is False


def test_list_cards_starts_empty(client: TestClient) -> None:
    response = client.get("/cards")

    assert response.json()["cards"] == [
        {"card_id": "1", "name": "E100", "balance": "0.00"},
        {"card_id": "2", "name": "Amic", "balance": "0.00"},
    ]


def test_unconfirmed_top_up_only_asks(client: TestClient) -> None:
    """Without confirmation the amount is parsed but nothing changes."""

    response = client.post("/cards/1/topup", data={"amount": "50"})

    assert response.json() == {
        "confirmation_required": True,
        "prompt": "50.00 zł will be added. Are you sure?",
    }
    assert client.get("/cards/1").json()["balance"] == "0.00"


def test_confirmed_top_up_and_spend(client: TestClient) -> None:
    top_up = client.post("/cards/1/topup", data={"amount": "50", "confirmed": "true"})
    spend = client.post(
        "/cards/1/spend", data={"amount": "20", "unit_price": "5", "confirmed": "true"}
    )

    assert top_up.status_code == 200
    assert top_up.json()["record"]["text"] == "+50.00 zł added → Balance: 50.00 zł"
    body = spend.json()
    assert body["balance"] == "30.00"
    assert body["record"]["kind"] == "spend"
    assert body["record"]["amount"] == "-20.00"
    assert body["quantity_text"] == "4.00 L"
    assert [record["kind"] for record in body["recent"]] == ["spend", "topup"]


def test_spend_uses_default_fuel_price(client: TestClient) -> None:
    client.post("/cards/2/topup", data={"amount": "24", "confirmed": "true"})

    body = client.post("/cards/2/spend", data={"amount": "12", "confirmed": "true"}).json()

    assert body["record"]["liters"] == "5.00"
    assert body["fuel_price"] == "2.40"


def test_insufficient_balance_is_conflict(client: TestClient) -> None:
    response = client.post("/cards/1/spend", data={"amount": "10", "confirmed": "true"})

    assert response.status_code == 409
    assert client.get("/cards/1").json()["transaction_count"] == 0


@pytest.mark.parametrize("amount", ["abc", "1.234", "", "0", "1e999999", "1e-999999999"])
def test_invalid_amounts_are_bad_requests(client: TestClient, amount: str) -> None:
    response = client.post("/cards/1/topup", data={"amount": amount, "confirmed": "true"})

    assert response.status_code in {400, 422}
    assert client.get("/cards/1").json()["balance"] == "0.00"


def test_set_balance_and_clear_history(client: TestClient) -> None:
    client.post("/cards/1/topup", data={"amount": "30", "confirmed": "true"})

    prompt = client.post("/cards/1/set-balance", data={"amount": "75"}).json()
    manual = client.post("/cards/1/set-balance", data={"amount": "75", "confirmed": "true"})
    cleared = client.post("/cards/1/clear-history", data={"confirmed": "true"})

    assert prompt["prompt"] == "Balance will be set to 75.00 zł. Are you sure?"
    assert manual.json()["record"]["amount"] == "45.00"
    assert cleared.json() == {"card_id": "1", "removed": 2}
    details = client.get("/cards/1").json()
    assert details["balance"] == "75.00"
    assert details["transaction_count"] == 0


def test_clear_history_requires_confirmation(client: TestClient) -> None:
    client.post("/cards/1/topup", data={"amount": "30", "confirmed": "true"})

    response = client.post("/cards/1/clear-history")

    assert response.json()["confirmation_required"] is True
    assert client.get("/cards/1").json()["transaction_count"] == 1


def test_history_pages_clamp(client: TestClient) -> None:
    for amount in ("1", "2", "3", "4", "5"):
        client.post("/cards/1/topup", data={"amount": amount, "confirmed": "true"})

    last = client.get("/cards/1/history", params={"page": 9}).json()
    first = client.get("/cards/1/history", params={"page": 0}).json()

    assert (last["page"], last["total_pages"], last["total_records"]) == (3, 3, 5)
    assert [record["amount"] for record in last["records"]] == ["1.00"]
    assert last["has_next"] is False and last["previous_page"] == 2
    assert [record["amount"] for record in first["records"]] == ["5.00", "4.00"]
    assert first["has_previous"] is False and first["next_page"] == 2


def test_unknown_card_is_not_found(client: TestClient) -> None:
    assert client.get("/cards/9").status_code == 404
    assert client.post("/cards/9/topup", data={"amount": "5"}).status_code == 404


def test_selection_lifecycle(client: TestClient) -> None:
    assert client.post("/selection", data={"card_id": "2"}).json() == {"selected_card": "2"}
    assert client.get("/").json()["selected_card"] == "2"
    assert client.post("/selection", data={"card_id": "7"}).status_code == 404
    assert client.delete("/selection").json() == {"selected_card": None}
    assert client.get("/selection").json() == {"selected_card": None}


def test_add_card(client: TestClient) -> None:
    response = client.post("/cards/add", data={"name": "Orlen", "balance": "15"})

    assert response.status_code == 201
    assert response.json() == {"card_id": "3", "name": "Orlen", "balance": "15.00"}
    assert client.get("/cards/3").json()["name"] == "Orlen"


def test_add_card_rejects_blank_name(client: TestClient) -> None:
    response = client.post("/cards/add", data={"name": " ", "balance": "15"})

    assert response.status_code == 400


def test_error_status_mapping() -> None:
    assert error_status(InvalidAmount("bad")) == 400
    assert error_status(InsufficientBalance("low")) == 409
    assert error_status(UnsupportedOperation("no")) == 405
    assert error_status(ServerRejected("Card not found", status_code=404)) == 502
    assert error_status(NetworkError("down")) == 503
    assert error_status(PersistenceError("disk")) == 500


def test_remote_card_details_come_from_service(remote_client: TestClient) -> None:
    body = remote_client.get("/cards/1").json()

    assert body["balance"] == "100.00"
    assert body["fuel_price"] == "6.25"
    assert body["capabilities"]["supports_manual_set"] is False


def test_remote_spend_settles_on_server(remote_client: TestClient, fake_api) -> None:
    response = remote_client.post(
        "/cards/1/spend", data={"amount": "25", "unit_price": "6", "confirmed": "true"}
    )

    assert response.status_code == 200
    assert response.json()["balance"] == "75.00"
    assert response.json()["record"]["liters"] == "4.17"
    assert fake_api.cards["1"]["balance"] == 75.0


def test_remote_refuses_local_only_operations(remote_client: TestClient) -> None:
    manual = remote_client.post("/cards/1/set-balance", data={"amount": "5", "confirmed": "true"})
    cleared = remote_client.post("/cards/1/clear-history", data={"confirmed": "true"})

    assert manual.status_code == 405
    assert cleared.status_code == 405


def test_remote_network_failure_is_service_unavailable(remote_client: TestClient, fake_api) -> None:
    fake_api.top_up_error = NetworkError("Can not connect to the server.")

    response = remote_client.post("/cards/1/topup", data={"amount": "5", "confirmed": "true"})

    assert response.status_code == 503
    assert response.json()["detail"] == "Can not connect to the server."
    assert remote_client.get("/cards/1").json()["balance"] == "100.00"


def test_remote_unknown_card_is_not_found(remote_client: TestClient) -> None:
    assert remote_client.get("/cards/9").status_code == 404
