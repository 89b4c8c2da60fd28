from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, status

from heritage_crafts.api.v1.dependencies import get_current_user, get_product_service, pagination
from heritage_crafts.db.models.enums import ProductStatus
from heritage_crafts.db.models.users import User
from heritage_crafts.features.courses.schemas import CategoryCountOut
from heritage_crafts.features.products.schemas import (
    InventoryUpdateIn,
    ProductCreateIn,
    ProductListOut,
    ProductOut,
    ProductUpdateIn,
)
from heritage_crafts.features.products.services import ProductService

router = APIRouter(
    prefix="/products",
    tags=["products"],
    responses={404: {"description": "Not Found"}},
)

# -----------------------------
# Public
# -----------------------------
@router.get("", summary="Lister les produits", response_model=ProductListOut)
def list_products(
    category: Optional[str] = Query(None),
    craftsman_id: Optional[int] = Query(None, ge=1),
    status_: Optional[ProductStatus] = Query(ProductStatus.ACTIVE, alias="status"),
    min_price: Optional[Decimal] = Query(None, ge=0),
    max_price: Optional[Decimal] = Query(None, ge=0),
    in_stock: Optional[bool] = Query(None),
    q: Optional[str] = Query(None),
    page=Depends(pagination),
    svc: ProductService = Depends(get_product_service),
):
    return svc.list(
        category=category,
        craftsman_id=craftsman_id,
        status=status_,
        min_price=min_price,
        max_price=max_price,
        in_stock=in_stock,
        q=q,
        **page,
    )


@router.get("/categories", summary="Catégories de produits avec leur nombre", response_model=List[CategoryCountOut])
def list_categories(svc: ProductService = Depends(get_product_service)):
    return svc.categories()


@router.get("/low-stock", summary="Produits en stock bas (artisan / admin)", response_model=List[ProductOut])
def low_stock(
    threshold: Optional[int] = Query(None, ge=0),
    user: User = Depends(get_current_user),
    svc: ProductService = Depends(get_product_service),
):
    return svc.low_stock(user, threshold=threshold)


@router.get("/{product_id}", summary="Détail d'un produit", response_model=ProductOut)
def get_product(product_id: int = Path(..., ge=1), svc: ProductService = Depends(get_product_service)):
    return svc.get_entity(product_id)

# -----------------------------
# Artisan (owner) / admin
# -----------------------------
@router.post("", summary="Créer un produit", status_code=status.HTTP_201_CREATED, response_model=ProductOut)
def create_product(
    payload: ProductCreateIn,
    user: User = Depends(get_current_user),
    svc: ProductService = Depends(get_product_service),
):
    return svc.create(user, payload)


@router.patch("/{product_id}", summary="Modifier un produit", response_model=ProductOut)
def update_product(
    payload: ProductUpdateIn,
    product_id: int = Path(..., ge=1),
    user: User = Depends(get_current_user),
    svc: ProductService = Depends(get_product_service),
):
    return svc.update(product_id, user, payload)


@router.put("/{product_id}/inventory", summary="Mettre à jour le stock", response_model=ProductOut)
def update_inventory(
    payload: InventoryUpdateIn,
    product_id: int = Path(..., ge=1),
    user: User = Depends(get_current_user),
    svc: ProductService = Depends(get_product_service),
):
    return svc.update_inventory(product_id, user, payload.quantity)


@router.delete("/{product_id}", summary="Supprimer un produit", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(
    product_id: int = Path(..., ge=1),
    user: User = Depends(get_current_user),
    svc: ProductService = Depends(get_product_service),
):
    svc.delete(product_id, user)
    return None
