# app/services/pricing.py
"""
Order pricing.

Pure functions: callers load the live catalog rows (active products with
their tags, live discounts, the live coupon for a code) and pass them in.
Nothing here touches the database or the clock, so the same inputs always
produce the same ``PricedCart``.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from app.core.exceptions import ValidationError, InvalidCouponError
from app.utils.proportional import to_decimal, percentage_of, split_proportionally

ZERO = Decimal("0")
HUNDRED = Decimal("100")


@dataclass(frozen=True)
class CartLine:
    product_id: int
    quantity: int


@dataclass
class PricedLine:
    product_id: int
    name: str
    image_url: Optional[str]
    category_id: Optional[int]
    quantity: int
    original_price: Decimal
    discount_applied: Decimal
    discount_id: Optional[int]
    price_after_discount: Decimal
    line_total: Decimal
    # Share of the post-coupon total; not persisted
    net_total: Decimal = ZERO


@dataclass
class PricedCart:
    lines: List[PricedLine]
    subtotal: Decimal
    coupon: Any = None
    coupon_applied: bool = False
    coupon_discount_amount: Decimal = ZERO
    total: Decimal = ZERO

    @property
    def coupon_code(self) -> Optional[str]:
        return self.coupon.code if self.coupon is not None else None


def resolve_line_discount(product, discounts: Iterable[Any]):
    """
    Pick the single discount for a product: product-targeted first, then the
    first tag-targeted discount matching any of its tags, then category.
    """
    discounts = list(discounts)
    tag_ids = {tag.id for tag in (product.tags or [])}

    for d in discounts:
        if d.product_id is not None and d.product_id == product.id:
            return d
    for d in discounts:
        if d.tag_id is not None and d.tag_id in tag_ids:
            return d
    for d in discounts:
        if d.category_id is not None and product.category_id is not None and d.category_id == product.category_id:
            return d
    return None


def discounted_price(base_price, percentage) -> Decimal:
    base_price = to_decimal(base_price)
    return base_price * (1 - to_decimal(percentage) / HUNDRED)


def coupon_applies(coupon, subtotal: Decimal) -> bool:
    if coupon is None:
        return False
    if coupon.min_order_amount is None:
        return True
    return subtotal >= to_decimal(coupon.min_order_amount)


def validate_cart(lines: Sequence[CartLine], products: Iterable[Any]) -> dict:
    """Reject the whole cart on the first bad line. Returns products keyed by id."""
    if not lines:
        raise ValidationError("No items provided.")

    by_id = {p.id: p for p in products if p.is_active}
    seen = set()
    for line in lines:
        if line.product_id in seen:
            raise ValidationError(
                f"Product {line.product_id} appears more than once in the cart.",
                product_id=line.product_id,
            )
        seen.add(line.product_id)

        product = by_id.get(line.product_id)
        if product is None:
            raise ValidationError(
                "One or more products are invalid or inactive.",
                product_id=line.product_id,
            )
        if line.quantity is None or line.quantity <= 0:
            raise ValidationError(
                f"Quantity must be positive for product: {product.name}",
                product_id=product.id,
                quantity=line.quantity,
            )
        if line.quantity > product.stock:
            raise ValidationError(
                f"Not enough stock for product: {product.name}",
                product_id=product.id,
                quantity=line.quantity,
            )
    return by_id


def price_cart(
    lines: Sequence[CartLine],
    products: Iterable[Any],
    discounts: Iterable[Any] = (),
    coupon_code: Optional[str] = None,
    coupon=None,
) -> PricedCart:
    """
    Price a cart against the supplied catalog state.

    ``discounts`` must already be limited to active, in-window rows and
    ``coupon`` to the active, in-window record for ``coupon_code`` (or None).
    """
    by_id = validate_cart(lines, products)
    if coupon_code and coupon is None:
        raise InvalidCouponError(code=coupon_code)

    discounts = list(discounts)
    priced: List[PricedLine] = []
    subtotal = ZERO

    for line in lines:
        product = by_id[line.product_id]
        base_price = to_decimal(product.price)
        discount = resolve_line_discount(product, discounts)
        percentage = to_decimal(discount.percentage) if discount else ZERO

        unit_price = discounted_price(base_price, percentage)
        line_total = unit_price * line.quantity
        subtotal += line_total

        priced.append(PricedLine(
            product_id=product.id,
            name=product.name,
            image_url=product.image_url,
            category_id=product.category_id,
            quantity=line.quantity,
            original_price=base_price,
            discount_applied=percentage,
            discount_id=discount.id if discount else None,
            price_after_discount=unit_price,
            line_total=line_total,
        ))

    applied = coupon_applies(coupon, subtotal)
    coupon_discount_amount = percentage_of(subtotal, coupon.percentage) if applied else ZERO
    total = subtotal - coupon_discount_amount

    for line, net in zip(priced, split_proportionally([l.line_total for l in priced], total)):
        line.net_total = net

    return PricedCart(
        lines=priced,
        subtotal=subtotal,
        coupon=coupon,
        coupon_applied=applied,
        coupon_discount_amount=coupon_discount_amount,
        total=total,
    )


def cart_lines(items: Iterable[Any]) -> List[CartLine]:
    """Normalise request items (anything with ``product_id``/``quantity``)."""
    return [CartLine(product_id=i.product_id, quantity=i.quantity) for i in items]


def product_ids(lines: Sequence[CartLine]) -> Tuple[int, ...]:
    return tuple(dict.fromkeys(l.product_id for l in lines))
