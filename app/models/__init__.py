# app/models/__init__.py
from app.models.user_models import User
from app.models.activity_models import UserActivity
from app.models.catalog_models import Category, Tag, Product, ProductImage, product_tags
from app.models.discount_models import Discount, Coupon
from app.models.order_models import Order, OrderItem, OrderStatus
