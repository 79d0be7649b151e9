"""Sample ``products`` table for trying the assistant out."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy import Column, Integer, MetaData, Numeric, String, Table, func, select

if TYPE_CHECKING:
    from nlquery.core.connection import DatabaseConnection

metadata = MetaData()

products = Table(
    "products",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("name", String(200), nullable=False),
    Column("brand", String(100), nullable=False),
    Column("category", String(100), nullable=False),
    Column("price", Numeric(10, 2, asdecimal=False), nullable=False),
    Column("stock", Integer, nullable=False, default=0),
)

SAMPLE_PRODUCTS: list[dict[str, Any]] = [
    {"id": 1, "name": "MacBook Pro 14", "brand": "Apple", "category": "Electronics", "price": 1299.99, "stock": 12},
    {"id": 2, "name": "iPhone 15", "brand": "Apple", "category": "Electronics", "price": 899.99, "stock": 40},
    {"id": 3, "name": "Galaxy S24", "brand": "Samsung", "category": "Electronics", "price": 849.99, "stock": 25},
    {"id": 4, "name": "AirPods Pro", "brand": "Apple", "category": "Accessories", "price": 249.00, "stock": 60},
    {"id": 5, "name": "Galaxy Buds", "brand": "Samsung", "category": "Accessories", "price": 129.99, "stock": 35},
    {"id": 6, "name": "Air Zoom Pegasus", "brand": "Nike", "category": "Footwear", "price": 120.00, "stock": 18},
    {"id": 7, "name": "Espresso Machine", "brand": "Philips", "category": "Home", "price": 389.50, "stock": 7},
]  # fmt: skip


def seed_sample_products(connection: DatabaseConnection) -> int:
    """Create the ``products`` table and load the sample rows.

    Does nothing when the table already has rows.

    Returns:
        Number of rows inserted
    """
    metadata.create_all(connection.engine, tables=[products], checkfirst=True)
    with connection.connect() as conn:
        existing = conn.execute(select(func.count()).select_from(products)).scalar()
        if existing:
            return 0
        conn.execute(products.insert(), SAMPLE_PRODUCTS)
        conn.commit()
    return len(SAMPLE_PRODUCTS)
