"""Mini README: Tests for ledger storage, backends and card selection.

Structure:
    * local backend - lazy loading, persistence layout, legacy history, catalog.
    * json file store - data survives a new store instance.
    * remote backend - service payloads rebuilt into newest-first history.
    * selection - the active-card pointer.
"""

from __future__ import annotations

import json
from decimal import Decimal

import pytest

from fuelcard.ledger import Money, PersistenceError, TransactionKind
from fuelcard.settlement import LocalStrategy, RemoteStrategy
from fuelcard.storage import (
    CardSelection,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    LedgerStore,
    LocalBackend,
    RemoteBackend,
)

CARDS = {"1": "E100", "2": "Amic"}


def local_store(key_value, clock=None) -> LedgerStore:
    backend = LocalBackend(key_value, default_cards=CARDS, default_unit_price=Money.parse("2.40"))
    return LedgerStore(backend, LocalStrategy(), clock=clock)


def test_get_loads_defaults_lazily(clock) -> None:
    """Unknown keys default to zero balance and empty history."""

    store = local_store(InMemoryKeyValueStore(), clock)

    assert not store.is_loaded("1")
    ledger = store.get("1")

    assert store.is_loaded("1")
    assert store.get("1") is ledger
    assert ledger.display_name == "E100"
    assert ledger.current_balance() == Money.zero()
    assert ledger.history_snapshot() == ()
    assert ledger.unit_price == Money.parse("2.40")


def test_mutation_writes_balance_and_history_keys(clock) -> None:
    key_value = InMemoryKeyValueStore()
    ledger = local_store(key_value, clock).get("1")

    ledger.top_up(Money.parse("50")).unwrap()
    ledger.spend(Money.parse("12")).unwrap()

    assert key_value.get("@fuelcard_balance_1") == "38.00"
    stored = json.loads(key_value.get("@fuelcard_history_1"))
    assert [entry["type"] for entry in stored] == ["spend", "topup"]
    assert stored[0]["amount"] == "-12.00"
    assert stored[0]["liters"] == "5.00"
    assert key_value.get("@fuelcard_balance_2") is None


def test_reloading_reproduces_saved_ledger(clock) -> None:
    """Persisting is idempotent: a fresh store sees exactly the saved state."""

    key_value = InMemoryKeyValueStore()
    original = local_store(key_value, clock).get("2")
    original.top_up(Money.parse("70")).unwrap()
    original.set_balance_directly(Money.parse("60")).unwrap()

    reloaded = local_store(key_value).get("2")

    assert reloaded.current_balance() == Money.parse("60")
    assert reloaded.history_snapshot() == original.history_snapshot()


def test_persist_rewrites_current_state(clock) -> None:
    key_value = InMemoryKeyValueStore()
    store = local_store(key_value, clock)
    store.get("1").top_up(Money.parse("5")).unwrap()
    key_value.remove("@fuelcard_balance_1")

    store.persist("1")

    assert key_value.get("@fuelcard_balance_1") == "5.00"
    with pytest.raises(KeyError):
        store.persist("2")


def test_legacy_history_entries_are_readable() -> None:
    """Entries written by the first app version still load."""

    key_value = InMemoryKeyValueStore(
        {
            "@fuelcard_balance_1": "30",
            "@fuelcard_history_1": json.dumps(
                [
                    {
                        "id": "1714561200000",
                        "amount": -20,
                        "newBalance": 30,
                        "date": "01/05/2024 13:00",
                        "type": "purchased",
                        "liters": 4,
                    },
                    {
                        "id": "1714557600000",
                        "amount": 50,
                        "newBalance": 50,
                        "date": "01/05/2024 12:00",
                        "type": "added",
                    },
                ]
            ),
        }
    )

    ledger = local_store(key_value).get("1")
    newest, oldest = ledger.history_snapshot()

    assert newest.kind is TransactionKind.SPEND
    assert newest.amount_delta == Money.parse("-20")
    assert newest.quantity == Decimal("4")
    assert oldest.kind is TransactionKind.TOP_UP
    assert ledger.current_balance() == Money.parse("30")


def test_corrupted_history_is_a_persistence_error() -> None:
    key_value = InMemoryKeyValueStore({"@fuelcard_history_1": "{not json"})

    with pytest.raises(PersistenceError):
        local_store(key_value).get("1")


def test_out_of_range_saved_values_are_persistence_errors() -> None:
    history = [{"id": "1", "type": "topup", "amount": "1e30", "new_balance": "5", "date": "2024-05-01"}]

    with pytest.raises(PersistenceError):
        local_store(InMemoryKeyValueStore({"@fuelcard_balance_1": "1e30"})).get("1")
    with pytest.raises(PersistenceError):
        local_store(InMemoryKeyValueStore({"@fuelcard_history_1": json.dumps(history)})).get("1")


def test_unknown_card_raises_key_error() -> None:
    with pytest.raises(KeyError):
        local_store(InMemoryKeyValueStore()).get("7")


def test_add_card_extends_catalog() -> None:
    key_value = InMemoryKeyValueStore()
    store = local_store(key_value)

    summary = store.add_card("Orlen", Money.parse("15")).unwrap()

    assert summary.card_id == "3"
    assert store.card_ids() == ["1", "2", "3"]
    assert local_store(key_value).get("3").current_balance() == Money.parse("15")
    assert local_store(key_value).get("3").history_snapshot() == ()
    assert [card.display_name for card in store.list_cards()] == ["E100", "Amic", "Orlen"]


@pytest.mark.parametrize(("name", "balance"), [("  ", "10"), ("Orlen", "-1")])
def test_add_card_validates_input(name: str, balance: str) -> None:
    store = local_store(InMemoryKeyValueStore())

    outcome = store.add_card(name, Money.parse(balance))

    assert not outcome.ok
    assert store.card_ids() == ["1", "2"]


def test_json_file_store_survives_restart(tmp_path, clock) -> None:
    path = tmp_path / "state" / "fuelcard_state.json"
    local_store(JsonFileKeyValueStore(path), clock).get("1").top_up(Money.parse("9.99")).unwrap()

    reloaded = local_store(JsonFileKeyValueStore(path)).get("1")

    assert path.exists()
    assert reloaded.current_balance() == Money.parse("9.99")
    assert len(reloaded.history_snapshot()) == 1


def test_json_file_store_rejects_corrupt_file(tmp_path) -> None:
    path = tmp_path / "fuelcard_state.json"
    path.write_text("[1, 2, 3]", encoding="utf-8")

    with pytest.raises(PersistenceError):
        JsonFileKeyValueStore(path).get("anything")


def test_remote_backend_rebuilds_signed_history(fake_api, clock) -> None:
    """Transaction amounts are signed by type and ordered newest first."""

    fake_api.cards["1"]["balance"] = 60
    fake_api.transactions_by_card["1"] = [
        {
            "transaction_id": 1,
            "transaction_type": "topup",
            "amount": "100.00",
            "new_balance": "100.00",
            "transaction_date": "2024-05-01T10:00:00Z",
            "liters": None,
        },
        {
            "transaction_id": 2,
            "transaction_type": "spend",
            "amount": "40.00",
            "new_balance": "60.00",
            "transaction_date": "2024-05-02T10:00:00Z",
            "liters": "6.40",
        },
    ]
    backend = RemoteBackend(fake_api, card_ids=["1", "2"], default_unit_price=Money.parse("2.40"))
    store = LedgerStore(backend, RemoteStrategy(fake_api), clock=clock)

    ledger = store.get("1")
    newest, oldest = ledger.history_snapshot()

    assert ledger.display_name == "E100"
    assert ledger.current_balance() == Money.parse("60")
    assert ledger.unit_price == Money.parse("6.25")
    assert (newest.record_id, newest.amount_delta, newest.quantity) == (
        "2",
        Money.parse("-40"),
        Decimal("6.40"),
    )
    assert (oldest.record_id, oldest.amount_delta, oldest.quantity) == ("1", Money.parse("100"), None)


def test_remote_backend_falls_back_to_default_price(fake_api) -> None:
    backend = RemoteBackend(fake_api, card_ids=["2"], default_unit_price=Money.parse("2.40"))

    snapshot = backend.load("2")

    assert snapshot.unit_price == Money.parse("2.40")
    assert snapshot.balance == Money.zero()


def test_remote_mutation_needs_no_local_save(fake_api, clock) -> None:
    backend = RemoteBackend(fake_api, card_ids=["1"])
    store = LedgerStore(backend, RemoteStrategy(fake_api), clock=clock)

    store.get("1").top_up(Money.parse("10")).unwrap()
    store.persist("1")

    assert fake_api.cards["1"]["balance"] == 110.0
    assert [call[0] for call in fake_api.calls].count("topup") == 1


def test_remote_add_card_registers_identifier(fake_api) -> None:
    backend = RemoteBackend(fake_api, card_ids=["1", "2"])
    store = LedgerStore(backend, RemoteStrategy(fake_api))

    summary = store.add_card("Orlen", Money.parse("25")).unwrap()

    assert summary.card_id == "101"
    assert store.card_ids() == ["1", "2", "101"]
    assert store.get("101").current_balance() == Money.parse("25")


def test_card_selection_round_trip() -> None:
    selection = CardSelection(InMemoryKeyValueStore())

    assert selection.selected() is None
    selection.select("2", CARDS)
    assert selection.selected() == "2"
    with pytest.raises(KeyError):
        selection.select("9", CARDS)
    selection.clear()
    assert selection.selected() is None


def test_remote_unknown_card_raises_key_error(fake_api) -> None:
    """A 404 from the card service means the card is not registered."""

    store = LedgerStore(RemoteBackend(fake_api, card_ids=["1"]), RemoteStrategy(fake_api))

    with pytest.raises(KeyError):
        store.get("9")
