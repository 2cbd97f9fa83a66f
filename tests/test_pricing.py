from decimal import Decimal
from types import SimpleNamespace

import pytest

from app.core.exceptions import InvalidCouponError, ValidationError
from app.services.pricing import CartLine, price_cart, resolve_line_discount


def product(id, price, stock=100, category_id=None, tag_ids=(), is_active=True, name=None):
    return SimpleNamespace(
        id=id,
        name=name or f"Product {id}",
        price=Decimal(str(price)),
        stock=stock,
        image_url=f"https://images.test/{id}.jpg",
        category_id=category_id,
        tags=[SimpleNamespace(id=t) for t in tag_ids],
        is_active=is_active,
    )


def discount(id, percentage, product_id=None, category_id=None, tag_id=None):
    return SimpleNamespace(
        id=id,
        percentage=Decimal(str(percentage)),
        product_id=product_id,
        category_id=category_id,
        tag_id=tag_id,
    )


def coupon(code="SAVE5", percentage=5, min_order_amount=None):
    return SimpleNamespace(
        id=1,
        code=code,
        percentage=Decimal(str(percentage)),
        min_order_amount=Decimal(str(min_order_amount)) if min_order_amount is not None else None,
        description=None,
    )


# ---------------------------------------------------
# Worked example
# ---------------------------------------------------
def test_tag_discount_and_coupon_worked_example():
    lamp = product(1, 100, tag_ids=[7])
    priced = price_cart(
        [CartLine(1, 2)],
        [lamp],
        [discount(3, 10, tag_id=7)],
        coupon_code="SAVE5",
        coupon=coupon(min_order_amount=50),
    )

    line = priced.lines[0]
    assert line.price_after_discount == Decimal("90")
    assert line.line_total == Decimal("180")
    assert line.discount_applied == Decimal("10")
    assert line.discount_id == 3
    assert priced.subtotal == Decimal("180")
    assert priced.coupon_applied is True
    assert priced.coupon_discount_amount == Decimal("9")
    assert priced.total == Decimal("171")
    assert priced.coupon_code == "SAVE5"


# ---------------------------------------------------
# Discount precedence
# ---------------------------------------------------
def test_product_discount_beats_tag_and_category():
    p = product(1, 100, category_id=2, tag_ids=[5])
    chosen = resolve_line_discount(p, [
        discount(10, 50, category_id=2),
        discount(11, 40, tag_id=5),
        discount(12, 5, product_id=1),
    ])
    assert chosen.id == 12


def test_tag_discount_beats_category_even_when_smaller():
    p = product(1, 100, category_id=2, tag_ids=[5])
    chosen = resolve_line_discount(p, [discount(10, 50, category_id=2), discount(11, 5, tag_id=5)])
    assert chosen.id == 11


def test_first_matching_tag_discount_wins():
    p = product(1, 100, tag_ids=[5, 6])
    chosen = resolve_line_discount(p, [discount(20, 30, tag_id=6), discount(21, 60, tag_id=5)])
    assert chosen.id == 20


def test_discounts_for_other_targets_are_ignored():
    p = product(1, 100, category_id=2, tag_ids=[5])
    assert resolve_line_discount(p, [discount(1, 10, product_id=9), discount(2, 10, category_id=3)]) is None


def test_line_without_discount_keeps_base_price():
    priced = price_cart([CartLine(1, 3)], [product(1, "19.99")])
    line = priced.lines[0]
    assert line.discount_applied == Decimal("0")
    assert line.discount_id is None
    assert line.line_total == Decimal("59.97")
    assert priced.total == priced.subtotal == Decimal("59.97")


def test_discounts_never_stack():
    p = product(1, 100, category_id=2, tag_ids=[5])
    priced = price_cart([CartLine(1, 1)], [p], [discount(1, 10, category_id=2), discount(2, 20, tag_id=5)])
    assert priced.lines[0].price_after_discount == Decimal("80")


# ---------------------------------------------------
# Coupon
# ---------------------------------------------------
def test_coupon_below_minimum_is_not_applied():
    priced = price_cart([CartLine(1, 1)], [product(1, 40)], coupon_code="SAVE5", coupon=coupon(min_order_amount=50))
    assert priced.coupon_applied is False
    assert priced.coupon_discount_amount == Decimal("0")
    assert priced.total == priced.subtotal == Decimal("40")


def test_coupon_at_exact_minimum_is_applied():
    priced = price_cart([CartLine(1, 1)], [product(1, 50)], coupon_code="SAVE5", coupon=coupon(min_order_amount=50))
    assert priced.coupon_applied is True
    assert priced.total == Decimal("47.5")


def test_coupon_without_minimum_always_applies():
    priced = price_cart([CartLine(1, 1)], [product(1, 1)], coupon_code="X", coupon=coupon("X", 50))
    assert priced.total == Decimal("0.5")


def test_unknown_coupon_code_rejects_the_cart():
    with pytest.raises(InvalidCouponError) as exc:
        price_cart([CartLine(1, 1)], [product(1, 10)], coupon_code="NOPE", coupon=None)
    assert exc.value.status_code == 400
    assert exc.value.code == "NOPE"


def test_net_totals_split_the_coupon_over_lines():
    priced = price_cart(
        [CartLine(1, 1), CartLine(2, 3)],
        [product(1, 150), product(2, 50)],
        coupon_code="TEN",
        coupon=coupon("TEN", 10),
    )
    assert priced.total == Decimal("270")
    assert [l.net_total for l in priced.lines] == [Decimal("135"), Decimal("135")]
    assert sum(l.net_total for l in priced.lines) == priced.total


# ---------------------------------------------------
# Invariants
# ---------------------------------------------------
def test_totals_are_consistent_across_lines():
    products = [product(1, "12.50", category_id=1), product(2, "7.30", tag_ids=[4]), product(3, 99)]
    discounts = [discount(1, 25, category_id=1), discount(2, "12.5", tag_id=4)]
    priced = price_cart([CartLine(1, 4), CartLine(2, 2), CartLine(3, 1)], products, discounts)

    assert priced.subtotal == sum(l.line_total for l in priced.lines)
    for line in priced.lines:
        assert Decimal("0") <= line.discount_applied <= Decimal("100")
        assert line.price_after_discount <= line.original_price
        assert line.line_total == line.price_after_discount * line.quantity
    assert Decimal("0") <= priced.total <= priced.subtotal


def test_pricing_is_deterministic():
    products = [product(1, 100, tag_ids=[7])]
    discounts = [discount(3, 10, tag_id=7)]
    first = price_cart([CartLine(1, 2)], products, discounts, "SAVE5", coupon(min_order_amount=50))
    second = price_cart([CartLine(1, 2)], products, discounts, "SAVE5", coupon(min_order_amount=50))
    assert first == second


def test_full_discount_yields_zero_price():
    priced = price_cart([CartLine(1, 2)], [product(1, 80)], [discount(1, 100, product_id=1)])
    assert priced.lines[0].price_after_discount == Decimal("0")
    assert priced.total == Decimal("0")


# ---------------------------------------------------
# Validation
# ---------------------------------------------------
def test_empty_cart_is_rejected():
    with pytest.raises(ValidationError):
        price_cart([], [])


def test_unknown_product_is_rejected():
    with pytest.raises(ValidationError) as exc:
        price_cart([CartLine(9, 1)], [product(1, 10)])
    assert exc.value.product_id == 9


def test_inactive_product_is_rejected():
    with pytest.raises(ValidationError):
        price_cart([CartLine(1, 1)], [product(1, 10, is_active=False)])


def test_quantity_above_stock_is_rejected():
    with pytest.raises(ValidationError) as exc:
        price_cart([CartLine(1, 6)], [product(1, 10, stock=5, name="Chair")])
    assert "Chair" in exc.value.detail
    assert exc.value.quantity == 6


def test_quantity_equal_to_stock_is_accepted():
    priced = price_cart([CartLine(1, 5)], [product(1, 10, stock=5)])
    assert priced.lines[0].quantity == 5


def test_non_positive_quantity_is_rejected():
    with pytest.raises(ValidationError):
        price_cart([CartLine(1, 0)], [product(1, 10)])


def test_duplicate_product_lines_are_rejected():
    with pytest.raises(ValidationError):
        price_cart([CartLine(1, 1), CartLine(1, 2)], [product(1, 10)])
