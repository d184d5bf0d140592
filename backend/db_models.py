"""
SQLAlchemy ORM models for the Storefront API.

Tables:
    users            — customers and admins
    categories       — product categories (self-referencing tree)
    products         — catalog entries
    payment_methods  — COD, VNPay, Momo, ZaloPay, CreditCard, BankTransfer
    orders           — checkout results; status moves only through domain/order_status.py

Primary keys are 24-hex strings (utils.validators.new_object_id) so that ids
coming from query strings can be format-checked before they hit the database.
"""
from datetime import datetime

from sqlalchemy import (
    Column, Integer, String, Float, Boolean, DateTime, Text, ForeignKey, Index,
)
from sqlalchemy.orm import relationship

from database import Base
from utils.validators import new_object_id


class User(Base):
    """Storefront accounts."""
    __tablename__ = "users"

    id = Column(String(24), primary_key=True, default=new_object_id)
    name = Column(String(200), nullable=False)
    email = Column(String(254), unique=True, nullable=False, index=True)
    phone = Column(String(32), nullable=True)
    role = Column(String(20), nullable=False, default="customer")  # "admin" | "customer"
    is_active = Column(Boolean, nullable=False, default=True)
    is_verified = Column(Boolean, nullable=False, default=False)
    last_login = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    orders = relationship("Order", back_populates="user", lazy="select")


class Category(Base):
    """Product categories."""
    __tablename__ = "categories"

    id = Column(String(24), primary_key=True, default=new_object_id)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    parent_id = Column(String(24), ForeignKey("categories.id"), nullable=True, index=True)
    level = Column(Integer, nullable=False, default=0)
    order = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    parent = relationship("Category", remote_side=[id], back_populates="children")
    children = relationship("Category", back_populates="parent", lazy="select")
    products = relationship("Product", back_populates="category", lazy="select")


class Product(Base):
    """Catalog entries."""
    __tablename__ = "products"

    id = Column(String(24), primary_key=True, default=new_object_id)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    brand = Column(String(100), nullable=True)
    price = Column(Float, nullable=False)
    category_id = Column(String(24), ForeignKey("categories.id"), nullable=True, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    is_featured = Column(Boolean, nullable=False, default=False)
    average_rating = Column(Float, nullable=False, default=0.0)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    category = relationship("Category", back_populates="products")

    __table_args__ = (
        # Storefront listing: active products filtered by price
        Index("ix_products_active_price", "is_active", "price"),
    )


class PaymentMethod(Base):
    """Checkout payment options."""
    __tablename__ = "payment_methods"

    id = Column(String(24), primary_key=True, default=new_object_id)
    code = Column(String(32), unique=True, nullable=False)  # "COD" | "VNPay" | "Momo" | ...
    name = Column(String(100), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    orders = relationship("Order", back_populates="payment_method", lazy="select")


class Order(Base):
    """Customer orders."""
    __tablename__ = "orders"

    id = Column(String(24), primary_key=True, default=new_object_id)
    order_code = Column(String(32), unique=True, nullable=False, index=True)
    user_id = Column(String(24), ForeignKey("users.id"), nullable=True, index=True)
    payment_method_id = Column(String(24), ForeignKey("payment_methods.id"), nullable=False)
    total = Column(Float, nullable=False, default=0.0)
    discount_amount = Column(Float, nullable=False, default=0.0)
    shipping_fee = Column(Float, nullable=False, default=0.0)
    final_total = Column(Float, nullable=False, default=0.0)
    status = Column(
        String(20), nullable=False, default="pending", index=True
    )  # pending | processing | shipped | delivered | cancelled
    payment_status = Column(
        String(20), nullable=False, default="pending"
    )  # pending | paid | failed | cancelled
    cancellation_reason = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="orders")
    payment_method = relationship("PaymentMethod", back_populates="orders")

    __table_args__ = (
        # Customer order history: newest first per user
        Index("ix_orders_user_created", "user_id", "created_at"),
    )
