import pytest

from storefront.schemas import Dish
from storefront.services.cart_store import CartStore


BIRYANI = Dish(id="1", name="Special Hyderabadi Biryani", price=250.0, category="meals", dish_type="nonveg")
DOSA = Dish(id="2", name="Crispy Masala Dosa", price=80.0, category="tiffins")


@pytest.fixture
def store(tmp_path):
    return CartStore("guest-42", directory=str(tmp_path))


def test_new_cart_is_empty(store):
    cart = store.load()
    assert cart.is_empty
    assert cart.total_items() == 0
    assert cart.total_price() == 0


def test_add_same_dish_twice_increments_quantity(store):
    _, first = store.add(BIRYANI)
    cart, second = store.add(BIRYANI)

    assert first == "Special Hyderabadi Biryani added successfully"
    assert second == "Special Hyderabadi Biryani quantity increased"
    assert len(cart.lines) == 1
    assert cart.lines[0].quantity == 2
    assert cart.total_price() == 500.0


def test_cart_survives_a_new_store_instance(store, tmp_path):
    store.add(BIRYANI)
    store.add(DOSA)

    reloaded = CartStore("guest-42", directory=str(tmp_path)).load()
    assert [line.dish_id for line in reloaded.lines] == ["1", "2"]
    assert reloaded.total_items() == 2
    assert reloaded.total_price() == 330.0


def test_update_quantity_recomputes_totals(store):
    store.add(DOSA)
    cart, message = store.update_quantity("2", 3)

    assert message == "Quantity updated"
    assert cart.total_items() == 3
    assert cart.total_price() == 240.0


@pytest.mark.parametrize("quantity", [0, -2])
def test_update_quantity_to_zero_or_less_removes_line(store, quantity):
    store.add(DOSA)
    store.add(BIRYANI)
    cart, message = store.update_quantity("2", quantity)

    assert message == "Item removed successfully"
    assert [line.dish_id for line in cart.lines] == ["1"]


def test_unknown_dish_raises_lookup_error(store):
    with pytest.raises(LookupError):
        store.remove("99")
    with pytest.raises(LookupError):
        store.update_quantity("99", 2)


def test_clear_empties_cart(store):
    store.add(BIRYANI)
    cart, message = store.clear()

    assert message == "All items removed from cart"
    assert cart.is_empty
    assert store.load().is_empty


def test_corrupt_file_reads_as_empty_cart(store):
    store.directory.mkdir(parents=True, exist_ok=True)
    store.path.write_text("{not json", encoding="utf-8")

    assert store.load().is_empty
    cart, _ = store.add(DOSA)
    assert cart.total_items() == 1


@pytest.mark.parametrize("cart_id", ["", "../etc/passwd", "a" * 65, "has space"])
def test_invalid_cart_id_rejected(cart_id, tmp_path):
    with pytest.raises(ValueError):
        CartStore(cart_id, directory=str(tmp_path))


def test_order_line_snapshot(store):
    cart, _ = store.add(BIRYANI)
    cart, _ = store.add(BIRYANI)

    assert cart.lines[0].to_order_line() == {
        "dish_id": "1",
        "name": "Special Hyderabadi Biryani",
        "price": 250.0,
        "quantity": 2,
        "line_total": 500.0,
    }
