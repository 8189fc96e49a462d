"""
SQLAlchemy Database Models

Tables behind order placement:
- menu_items / inventory / menu_item_ingredients (recipes)
- orders / order_items

Identifiers are allocated by the database (BIGSERIAL in PostgreSQL,
AUTOINCREMENT in SQLite); nothing computes "next id" with a read.

PostgreSQL sequences are not transactional: an id handed to an attempt that
rolls back is burnt and never reused. SQLite keeps its AUTOINCREMENT counter
in sqlite_sequence, which rolls back with the attempt, so on SQLite (the test
database) the next order can reuse the id of a rolled back attempt. Such an
id was never visible to any reader, but only PostgreSQL guarantees that ids
are never reused after failed attempts.
"""

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
)
from sqlalchemy.orm import relationship

from bobapos.database import Base

# SQLite only autoincrements a column declared exactly INTEGER PRIMARY KEY
ID_TYPE = BigInteger().with_variant(Integer, "sqlite")

# Largest values the Integer and ID_TYPE columns can hold on every backend
INT_MAX = 2**31 - 1
ID_MAX = 2**63 - 1


class MenuItem(Base):
    """A drink or snack sold at the counter."""
    __tablename__ = "menu_items"

    id = Column("menu_item_id", ID_TYPE, primary_key=True, autoincrement=True)
    category = Column(String(50), nullable=False)
    name = Column(String(100), nullable=False, unique=True)
    price = Column(Float, nullable=False)

    recipe = relationship(
        "RecipeEntry",
        back_populates="menu_item",
        cascade="all, delete-orphan",
        order_by="RecipeEntry.ingredient_id",
    )

    def __repr__(self):
        return f"<MenuItem #{self.id} - {self.name}>"


class Ingredient(Base):
    """
    Inventory Ledger row: one ingredient and how many units are on hand.

    The count is only ever lowered through the ledger's conditional
    decrement; the CHECK constraint is the last line against going negative.
    """
    __tablename__ = "inventory"
    __table_args__ = (
        CheckConstraint("ingredient_count >= 0", name="ck_inventory_count_non_negative"),
    )

    id = Column("ingredient_id", ID_TYPE, primary_key=True, autoincrement=True)
    name = Column("ingredient_name", String(100), nullable=False, unique=True)
    count = Column("ingredient_count", Integer, nullable=False, default=0)

    def __repr__(self):
        return f"<Ingredient #{self.id} - {self.name}: {self.count}>"


class RecipeEntry(Base):
    """How many units of an ingredient one unit of a menu item consumes."""
    __tablename__ = "menu_item_ingredients"
    __table_args__ = (
        CheckConstraint("ingredient_qty > 0", name="ck_recipe_qty_positive"),
    )

    menu_item_id = Column(
        ID_TYPE,
        ForeignKey("menu_items.menu_item_id", ondelete="CASCADE"),
        primary_key=True,
    )
    ingredient_id = Column(
        ID_TYPE,
        ForeignKey("inventory.ingredient_id", ondelete="CASCADE"),
        primary_key=True,
    )
    quantity = Column("ingredient_qty", Integer, nullable=False)

    menu_item = relationship("MenuItem", back_populates="recipe")
    ingredient = relationship("Ingredient")


class Order(Base):
    """
    A placed order. Written once, in the same transaction that decremented
    the inventory it consumed, and never updated afterwards.
    """
    __tablename__ = "orders"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column("order_id", ID_TYPE, primary_key=True, autoincrement=True)
    time_of_order = Column(DateTime(timezone=True), nullable=False, index=True)
    customer_id = Column(Integer, nullable=True, index=True)
    employee_id = Column(Integer, nullable=False, index=True)
    total_cost = Column(Float, nullable=False)
    order_week = Column(Integer, nullable=False, index=True)

    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )

    def __repr__(self):
        return f"<Order #{self.id} - employee {self.employee_id} - week {self.order_week}>"


class OrderItem(Base):
    """One line of an order: a menu item and how many were sold."""
    __tablename__ = "order_items"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_order_item_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = Column("order_item_id", ID_TYPE, primary_key=True, autoincrement=True)
    order_id = Column(
        ID_TYPE,
        ForeignKey("orders.order_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    menu_item_id = Column(
        ID_TYPE,
        ForeignKey("menu_items.menu_item_id"),
        nullable=False,
        index=True,
    )
    quantity = Column(Integer, nullable=False)

    order = relationship("Order", back_populates="items")

    def __repr__(self):
        return f"<OrderItem #{self.id} - order {self.order_id} - {self.quantity}x menu item {self.menu_item_id}>"
