import random

from conftest import make_item
from storefront.app.cart import CartLedger
from storefront.app.models import CartTotals


def test_add_same_item_twice_merges(item_a):
    cart = CartLedger()
    cart.add(item_a)
    cart.add(item_a)
    assert len(cart.lines) == 1
    assert cart.lines[0].quantity == 2
    assert cart.totals == CartTotals(total_items=2, total_price=100)


def test_lines_keep_insertion_order(item_a, item_b):
    cart = CartLedger()
    cart.add(item_b)
    cart.add(item_a)
    cart.add(item_b)
    assert [line.item.id for line in cart.lines] == ["B", "A"]


def test_decrement_to_zero_removes_line(item_a):
    cart = CartLedger()
    cart.add(item_a)
    assert cart.adjust_quantity("A", -1) is None
    assert cart.lines == ()
    assert cart.is_empty


def test_large_negative_delta_removes_line(item_a):
    cart = CartLedger()
    cart.add(item_a)
    cart.add(item_a)
    cart.adjust_quantity("A", -5)
    assert cart.get("A") is None


def test_adjust_unknown_id_is_noop(item_a):
    changes = []
    cart = CartLedger(on_changed=lambda lines, totals: changes.append(totals))
    cart.adjust_quantity("missing", 3)
    assert changes == []
    assert cart.is_empty


def test_remove_all_of(item_a, item_b):
    cart = CartLedger()
    for _ in range(3):
        cart.add(item_a)
    cart.add(item_b)
    assert cart.remove_all_of("A") is True
    assert [line.item.id for line in cart.lines] == ["B"]
    assert cart.remove_all_of("A") is False


def test_change_callback_receives_current_totals(item_a, item_b):
    seen = []
    cart = CartLedger(on_changed=lambda lines, totals: seen.append((len(lines), totals)))
    cart.add(item_a)
    cart.add(item_b)
    cart.adjust_quantity("B", 2)
    assert seen[-1] == (2, CartTotals(total_items=4, total_price=50 + 3 * 80))


def test_failing_callback_does_not_break_ledger(item_a):
    def boom(lines, totals):
        raise RuntimeError("ui gone")

    cart = CartLedger(on_changed=boom)
    cart.add(item_a)
    assert cart.totals.total_items == 1


def test_random_operation_sequences_keep_totals_consistent():
    items = [make_item(f"item-{i}", price) for i, price in enumerate([0, 35, 50, 80, 120, 250])]
    rng = random.Random(2024)
    for _ in range(25):
        cart = CartLedger()
        expected = {}
        for _ in range(200):
            item = rng.choice(items)
            if rng.random() < 0.5:
                cart.add(item)
                expected[item.id] = expected.get(item.id, 0) + 1
            else:
                delta = rng.randint(-3, 3)
                cart.adjust_quantity(item.id, delta)
                if item.id in expected:
                    expected[item.id] += delta
                    if expected[item.id] <= 0:
                        del expected[item.id]

            quantities = {line.item.id: line.quantity for line in cart.lines}
            assert quantities == expected
            assert all(q >= 1 for q in quantities.values())
            prices = {item.id: item.price for item in items}
            assert cart.totals.total_items == sum(expected.values())
            assert cart.totals.total_price == sum(prices[i] * q for i, q in expected.items())
