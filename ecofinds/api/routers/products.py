# ecofinds/api/routers/products.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ecofinds.data.database import get_db
from ecofinds.domain.errors import ProductNotFoundError, UserNotFoundError
from ecofinds.domain.schemas import ProductCreate, ProductOut
from ecofinds.services.catalog_service import CatalogService

router = APIRouter(prefix="/products", tags=["products"])


@router.post("/", response_model=ProductOut, status_code=201)
def create_product(payload: ProductCreate, db: Session = Depends(get_db)):
    svc = CatalogService(db)
    try:
        return svc.create_product(payload)
    except UserNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.get("/{product_id}", response_model=ProductOut)
def get_product(product_id: int, db: Session = Depends(get_db)):
    svc = CatalogService(db)
    try:
        return svc.get_product(product_id)
    except ProductNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
