"""
Product Catalog Router — /api/products

Endpoints:
    GET    /api/products          — List products (active only unless active=false)
    POST   /api/products          — Create a product
    GET    /api/products/{id}     — Get a product
    PUT    /api/products/{id}     — Update a product
    DELETE /api/products/{id}     — Delete a product
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..database import get_db
from .. import crud
from ..schemas import ProductCreate, ProductUpdate, ProductResponse

logger = logging.getLogger("campaignpulse.routers.products")

router = APIRouter(prefix="/api/products", tags=["Products"])


@router.get("", response_model=list[ProductResponse])
def list_products(
    active: Optional[bool] = Query(None, description="false = include inactive products"),
    db: Session = Depends(get_db),
):
    """List products in creation order. Inactive products only appear with active=false."""
    return crud.list_products(db, active=active)


@router.post("", response_model=ProductResponse, status_code=201)
def create_product(data: ProductCreate, db: Session = Depends(get_db)):
    """
    Create a product.

    Returns 409 if the product_code already exists.
    """
    try:
        product = crud.create_product(db, data)
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=409,
            detail={
                "detail": f"Product code already exists: {data.product_code}",
                "error_code": "DUPLICATE_PRODUCT",
                "context": {"product_code": data.product_code},
            },
        )
    logger.info(f"Created product {product.id} ({product.product_code})")
    return product


@router.get("/{product_id}", response_model=ProductResponse)
def get_product(product_id: int, db: Session = Depends(get_db)):
    product = crud.get_product(db, product_id)
    if not product:
        raise HTTPException(status_code=404, detail=f"Product {product_id} not found")
    return product


@router.put("/{product_id}", response_model=ProductResponse)
def update_product(product_id: int, data: ProductUpdate, db: Session = Depends(get_db)):
    """Update an existing product. Only provided fields are updated."""
    try:
        product = crud.update_product(db, product_id, data)
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail=f"Product code already exists: {data.product_code}")
    if not product:
        raise HTTPException(status_code=404, detail=f"Product {product_id} not found")
    return product


@router.delete("/{product_id}", status_code=204)
def delete_product(product_id: int, db: Session = Depends(get_db)):
    """Delete a product. Quantities, weights and overrides referencing it go with it."""
    if not crud.delete_product(db, product_id):
        raise HTTPException(status_code=404, detail=f"Product {product_id} not found")
    logger.info(f"Deleted product {product_id}")
