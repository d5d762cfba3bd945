# backend/services/catalog.py
import logging
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from exceptions import ConflictError, NotFoundError
from models.order import OrderItem
from models.product import Product
from schemas.product import ProductCreate, ProductEditRequest
from utils.audit import auditable

logger = logging.getLogger(__name__)


def list_products(
    db: Session,
    producer: Optional[str] = None,
    min_price: Optional[int] = None,
    max_price: Optional[int] = None,
) -> List[Product]:
    query = db.query(Product)
    if producer:
        query = query.filter(Product.producer.ilike(f"%{producer}%"))
    if min_price is not None:
        query = query.filter(Product.price >= min_price)
    if max_price is not None:
        query = query.filter(Product.price <= max_price)
    return query.order_by(Product.id.asc()).all()


def get_product(db: Session, product_id: int) -> Product:
    product = db.query(Product).filter(Product.id == product_id).first()
    if product is None:
        raise NotFoundError(f"Product {product_id} not found")
    return product


def price_range(db: Session) -> Tuple[Optional[int], Optional[int]]:
    return db.query(func.min(Product.price), func.max(Product.price)).one()


@auditable
def create_product(db: Session, payload: ProductCreate) -> Product:
    product = Product(**payload.model_dump())
    db.add(product)
    db.commit()
    db.refresh(product)
    logger.debug("Product added: id=%s, producer=%s, title=%s", product.id, product.producer, product.title)
    return product


@auditable
def update_product(db: Session, product_id: int, payload: ProductEditRequest) -> Product:
    product = get_product(db, product_id)
    # Orders show the product as it was sold
    if db.query(OrderItem.id).filter(OrderItem.product_id == product_id).first() is not None:
        raise ConflictError(f"Product {product_id} is part of a placed order and cannot be edited")
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(product, field, value)
    db.commit()
    db.refresh(product)
    logger.debug("Product edited: id=%s, producer=%s, title=%s", product.id, product.producer, product.title)
    return product
