# backend/routes/shop.py
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from database import get_db
from schemas.product import PriceRange, ProductList, ProductOut
from services import catalog

router = APIRouter(tags=["Shop"])

# Catalog listing with optional producer and price filters
@router.get("/", response_model=ProductList)
@router.get("/products", response_model=ProductList)
def list_products(
    producer: Optional[str] = Query(None, description="Filter by producer"),
    min_price: Optional[int] = Query(None, ge=0),
    max_price: Optional[int] = Query(None, ge=0),
    db: Session = Depends(get_db),
):
    items = catalog.list_products(db, producer=producer, min_price=min_price, max_price=max_price)
    return {"items": items, "total": len(items)}

# Lowest and highest catalog price
@router.get("/products/price-range", response_model=PriceRange)
def get_price_range(db: Session = Depends(get_db)):
    min_price, max_price = catalog.price_range(db)
    return {"min_price": min_price, "max_price": max_price}

@router.get("/products/{product_id}", response_model=ProductOut)
def get_product(product_id: int, db: Session = Depends(get_db)):
    return catalog.get_product(db, product_id)
