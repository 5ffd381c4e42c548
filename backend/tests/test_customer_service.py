"""Customer ledger: CRUD, search, and totalSpent accumulation."""

from swiftpos.services import customer_service


def test_add_customer_returns_record_with_zero_spend(state):
    customer = customer_service.add_customer(state, {"name": "Rahim", "phone": "01700", "email": "r@example.com"})

    assert customer["id"]
    assert customer["totalSpent"] == 0
    assert customer_service.get_customer(state, customer["id"]) == customer


def test_add_customer_ignores_supplied_total(state):
    customer = customer_service.add_customer(state, {"name": "Karim", "phone": "1", "totalSpent": 999})
    assert customer["totalSpent"] == 0


def test_bulk_add_customers(state):
    created = customer_service.add_customers(state, [
        {"name": "A", "phone": "1"},
        {"name": "B", "phone": "2", "email": "b@example.com"},
        {"name": "C", "phone": "3"},
    ])

    assert len({c["id"] for c in created}) == 3
    assert all(c["totalSpent"] == 0 for c in created)
    assert len(state.customers) == 4


def test_update_and_delete(state):
    updated = customer_service.update_customer(state, "C1", {"phone": "555-9999"})
    assert updated["phone"] == "555-9999"
    assert updated["name"] == "John Doe"

    assert customer_service.delete_customer(state, "C1") is True
    assert state.customers == []


def test_update_cannot_touch_total_spent(state):
    updated = customer_service.update_customer(state, "C1", {"totalSpent": 500})
    assert updated["totalSpent"] == 0


def test_missing_ids_are_noops(state):
    assert customer_service.update_customer(state, "nobody", {"name": "X"}) is None
    assert customer_service.delete_customer(state, "nobody") is False
    assert customer_service.accrue_spend(state, "nobody", 10) is None
    assert len(state.customers) == 1


def test_search_matches_name_phone_and_email(state):
    customer_service.add_customer(state, {"name": "Ayesha Khan", "phone": "01811", "email": "ayesha@example.com"})

    assert [c["name"] for c in customer_service.list_customers(state, "ayesha")] == ["Ayesha Khan"]
    assert [c["name"] for c in customer_service.list_customers(state, "555-0123")] == ["John Doe"]
    assert len(customer_service.list_customers(state, "EXAMPLE.COM")) == 2
    assert len(customer_service.list_customers(state)) == 2
