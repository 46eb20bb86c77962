"""Read-only catalog endpoints backed by the catalog provider."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from .deps.services import get_catalog
from .errors import NotFoundError
from .utils.responses import ok

router = APIRouter(prefix="/api", tags=["menu"])


@router.get("/categories")
async def list_categories(catalog=Depends(get_catalog)) -> dict:
    return ok([c.to_dict() for c in await catalog.categories()])


@router.get("/products")
async def list_products(
    category_id: str | None = Query(None), catalog=Depends(get_catalog)
) -> dict:
    return ok([p.to_dict() for p in await catalog.products(category_id)])


@router.get("/products/{product_id}")
async def get_product(product_id: int, catalog=Depends(get_catalog)) -> dict:
    product = await catalog.get_product(product_id)
    if product is None:
        raise NotFoundError(f"product {product_id} not found")
    return ok(product.to_dict())
