from sqlalchemy import Column, Integer, String, Text, Numeric, DateTime, Boolean, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from app.core.db import Base
from app.utils.date_filter import utcnow


class Discount(Base):
    __tablename__ = "discounts"

    id = Column(Integer, primary_key=True, index=True)
    percentage = Column(Numeric(5, 2), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False)

    # Exactly one target is set
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=True, index=True)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="CASCADE"), nullable=True, index=True)
    tag_id = Column(Integer, ForeignKey("tags.id", ondelete="CASCADE"), nullable=True, index=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)


    __table_args__ = (
        CheckConstraint("percentage > 0 AND percentage <= 100", name="check_discount_percentage_range"),
    )

    @property
    def type(self):
        if self.product_id is not None:
            return "product"
        if self.category_id is not None:
            return "category"
        if self.tag_id is not None:
            return "tag"
        return None

    @property
    def reference_id(self):
        return self.product_id or self.category_id or self.tag_id


class Coupon(Base):
    __tablename__ = "coupons"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(50), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=True)
    percentage = Column(Numeric(5, 2), nullable=False)
    min_order_amount = Column(Numeric(12, 2), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False)

    created_at = Column(DateTime, default=utcnow, nullable=False)

    used_orders = relationship("Order", back_populates="coupon", passive_deletes=True)

    __table_args__ = (
        CheckConstraint("percentage > 0 AND percentage <= 100", name="check_coupon_percentage_range"),
    )
