"""
Cart rules.

Verifies:
- Out-of-stock products are never added
- Quantities stay within 1..stock
- subtotal/total arithmetic including the free-form discount
- Pricing mode switches empty the cart
"""

from types import SimpleNamespace

import pytest

from counterpos.services.cart_service import Cart, CartLine, resolve_unit_price
from counterpos.validation import MAX_PRICE_PAISE, ValidationError


def _product(pid, price_paise, stock_quantity, wholesale_price_paise=None, name=None):
    return SimpleNamespace(
        id=pid,
        name=name or f"Product {pid}",
        sku=f"SKU-{pid}",
        category="Sports",
        price_paise=price_paise,
        wholesale_price_paise=wholesale_price_paise,
        stock_quantity=stock_quantity,
    )


# =============================================================================
# ADD
# =============================================================================


class TestAdd:

    def test_out_of_stock_product_is_ignored(self):
        cart = Cart()
        assert cart.add(_product(1, 10000, 0)) is False
        assert cart.is_empty

    def test_adding_again_increments_quantity(self):
        cart = Cart()
        p = _product(1, 10000, 5)
        cart.add(p)
        cart.add(p)
        assert len(cart.lines) == 1
        assert cart.lines[0].quantity == 2

    def test_add_never_exceeds_stock(self):
        cart = Cart()
        p = _product(1, 10000, 2)
        assert cart.add(p) is True
        assert cart.add(p) is True
        assert cart.add(p) is False
        assert cart.lines[0].quantity == 2

    def test_price_is_locked_when_line_is_added(self):
        cart = Cart()
        p = _product(1, 10000, 5)
        cart.add(p)
        p.price_paise = 99999
        cart.add(p)
        assert cart.lines[0].unit_price_paise == 10000


# =============================================================================
# ADJUST / REMOVE
# =============================================================================


class TestAdjustQuantity:

    def test_increment_past_stock_is_rejected(self):
        cart = Cart(lines=[CartLine(1, "Cup", "SKU-1", "Sports", 10000, quantity=3)])
        assert cart.adjust_quantity(1, +1, stock_quantity=3) is False
        assert cart.lines[0].quantity == 3

    def test_decrement_below_one_is_rejected(self):
        cart = Cart(lines=[CartLine(1, "Cup", "SKU-1", "Sports", 10000, quantity=1)])
        assert cart.adjust_quantity(1, -1, stock_quantity=3) is False
        assert cart.lines[0].quantity == 1

    def test_adjust_within_bounds(self):
        cart = Cart(lines=[CartLine(1, "Cup", "SKU-1", "Sports", 10000, quantity=2)])
        assert cart.adjust_quantity(1, -1, stock_quantity=3) is True
        assert cart.adjust_quantity(1, +2, stock_quantity=3) is True
        assert cart.lines[0].quantity == 3

    def test_adjust_uses_live_stock(self):
        cart = Cart(lines=[CartLine(1, "Cup", "SKU-1", "Sports", 10000, quantity=4)])
        # Stock dropped to 2 since the line was added; growing is refused
        assert cart.adjust_quantity(1, +1, stock_quantity=2) is False
        assert cart.lines[0].quantity == 4

    def test_adjust_unknown_line(self):
        assert Cart().adjust_quantity(42, +1, stock_quantity=5) is False

    def test_remove(self):
        cart = Cart()
        cart.add(_product(1, 10000, 5))
        cart.add(_product(2, 5000, 5))
        assert cart.remove(1) is True
        assert [line.product_id for line in cart.lines] == [2]
        assert cart.remove(1) is False


# =============================================================================
# TOTALS
# =============================================================================


class TestTotals:

    def test_subtotal_and_discount_example(self):
        cart = Cart()
        a = _product(1, 10000, 10)
        b = _product(2, 5000, 10)
        cart.add(a)
        cart.add(a)
        cart.add(b)
        cart.set_discount("20")

        assert cart.subtotal_paise == 25000
        assert cart.discount_paise == 2000
        assert cart.total_paise == 23000

    def test_total_never_negative(self):
        cart = Cart()
        cart.add(_product(1, 5000, 10))
        cart.set_discount("100")
        assert cart.total_paise == 0

    def test_oversized_discount_zeroes_total(self):
        cart = Cart()
        cart.add(_product(1, 10000, 5))
        cart.set_discount("10000000")
        assert cart.discount_paise == MAX_PRICE_PAISE
        assert cart.total_paise == 0

    @pytest.mark.parametrize("typed", ["1e12", "Infinity", 10**12])
    def test_huge_discount_input_clamped(self, typed):
        cart = Cart()
        cart.add(_product(1, 5000, 5))
        cart.set_discount(typed)
        assert cart.total_paise == 0

    @pytest.mark.parametrize("typed,expected", [
        ("", 0),
        ("abc", 0),
        ("-15", 0),
        ("12.5", 1250),
        ("0.005", 1),
        ("20abc", 2000),
        (" 7.5 off", 750),
        (".5", 50),
        (15, 1500),
        (None, 0),
    ])
    def test_discount_input_is_lenient(self, typed, expected):
        cart = Cart()
        cart.set_discount(typed)
        assert cart.discount_paise == expected

    def test_item_count(self):
        cart = Cart(lines=[
            CartLine(1, "Cup", "SKU-1", "Sports", 100, quantity=2),
            CartLine(2, "Shield", "SKU-2", "Academic", 100, quantity=3),
        ])
        assert cart.item_count == 5


# =============================================================================
# PRICING MODE
# =============================================================================


class TestPricingMode:

    def test_switch_empties_cart(self):
        cart = Cart()
        cart.add(_product(1, 10000, 5))
        cart.set_pricing_mode("wholesale")
        assert cart.is_empty
        assert cart.pricing_mode == "wholesale"

    def test_switch_to_same_mode_still_empties(self):
        cart = Cart()
        cart.add(_product(1, 10000, 5))
        cart.set_pricing_mode("retail")
        assert cart.is_empty

    def test_unknown_mode_rejected(self):
        with pytest.raises(ValidationError):
            Cart().set_pricing_mode("bulk")

    def test_wholesale_price_used_when_present(self):
        cart = Cart()
        cart.set_pricing_mode("wholesale")
        cart.add(_product(1, 10000, 5, wholesale_price_paise=8000))
        cart.add(_product(2, 5000, 5))
        assert [line.unit_price_paise for line in cart.lines] == [8000, 5000]

    def test_resolve_unit_price_ignores_zero_wholesale(self):
        p = _product(1, 10000, 5, wholesale_price_paise=0)
        assert resolve_unit_price(p, "wholesale") == 10000


# =============================================================================
# RESET / SERIALIZATION
# =============================================================================


def test_reset_keeps_pricing_mode():
    cart = Cart()
    cart.set_pricing_mode("wholesale")
    cart.add(_product(1, 10000, 5, wholesale_price_paise=9000))
    cart.set_discount("10")
    cart.set_customer("Asha", 7)
    cart.set_payment_method("UPI")

    cart.reset()

    assert cart.is_empty
    assert cart.discount_input == ""
    assert cart.customer_name == ""
    assert cart.customer_id is None
    assert cart.payment_method == "CASH"
    assert cart.pricing_mode == "wholesale"


def test_session_dict_restores_cart():
    cart = Cart()
    cart.add(_product(1, 10000, 5))
    cart.set_discount("5")
    restored = Cart.from_dict(cart.to_dict())
    assert restored.summary() == cart.summary()


def test_payment_method_validated():
    with pytest.raises(ValidationError):
        Cart().set_payment_method("CHEQUE")
