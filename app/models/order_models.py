# app/models/order_models.py
import enum
from sqlalchemy import Column, Integer, String, Text, Numeric, DateTime, ForeignKey, Enum
from sqlalchemy.orm import relationship
from app.core.db import Base
from app.utils.date_filter import utcnow


class OrderStatus(str, enum.Enum):
    pending = "pending"
    processing = "processing"
    shipped = "shipped"
    delivered = "delivered"
    cancelled = "cancelled"


# Statuses counted as sales. "paid" is a legacy value kept for older rows.
SALES_STATUSES = ("paid", "processing", "shipped", "delivered")
COUPON_USAGE_STATUSES = SALES_STATUSES + ("pending",)


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)

    # Customer info
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    address = Column(Text, nullable=False)
    mobile_number = Column(String(30), nullable=False)
    another_mobile = Column(String(30), nullable=True)
    another_address = Column(Text, nullable=True)
    customer_email = Column(String(255), nullable=True)

    total_amount = Column(Numeric(14, 4), nullable=False)
    currency = Column(String(3), nullable=False, default="EGP")
    status = Column(
        Enum(OrderStatus, native_enum=False, length=20),
        nullable=False,
        default=OrderStatus.pending,
        index=True,
    )

    # Coupon snapshot
    coupon_id = Column(Integer, ForeignKey("coupons.id", ondelete="SET NULL"), nullable=True, index=True)
    coupon_code = Column(String(50), nullable=True)
    coupon_percentage = Column(Numeric(5, 2), nullable=True)
    coupon_description = Column(Text, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, onupdate=utcnow)

    coupon = relationship("Coupon", back_populates="used_orders")
    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="OrderItem.id",
    )


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"), nullable=True, index=True)
    quantity = Column(Integer, nullable=False)
    # Pre-coupon, post-discount unit price
    price_at_purchase = Column(Numeric(14, 4), nullable=False)

    # Product snapshot
    product_name = Column(String(255), nullable=False)
    product_image_url = Column(String, nullable=True)
    product_category = Column(String(50), nullable=True)

    # Discount snapshot
    discount_applied = Column(Numeric(5, 2), nullable=False, default=0)
    discount_id = Column(Integer, nullable=True)

    order = relationship("Order", back_populates="items")
    product = relationship("Product")
