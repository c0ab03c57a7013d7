from fastapi import APIRouter, Depends, HTTPException
from typing import List

from ...exceptions import ProductNotFound, StorageFailure
from ...schemas.order import MessageResponse
from ...schemas.product import ProductCreate, ProductCreatedResponse, ProductResponse, ProductUpdate
from ...services.product_service import ProductService
from ..dependencies import get_product_service
from ..security import authorize
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products", tags=["products"])


@router.get("", response_model=List[ProductResponse])
async def get_products(product_service: ProductService = Depends(get_product_service)):
    """Получить все товары"""
    try:
        return await product_service.list_products()
    except StorageFailure:
        raise HTTPException(status_code=500, detail="Error al obtener los productos.")


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(
        product_id: int,
        product_service: ProductService = Depends(get_product_service)
):
    """Получить товар по ID"""
    try:
        return await product_service.get_product(product_id)
    except ProductNotFound as e:
        raise HTTPException(status_code=404, detail=e.message)
    except StorageFailure:
        raise HTTPException(status_code=500, detail="Error al obtener el producto.")


@router.post(
    "",
    response_model=ProductCreatedResponse,
    status_code=201,
    dependencies=[Depends(authorize("admin"))]
)
async def create_product(
        payload: ProductCreate,
        product_service: ProductService = Depends(get_product_service)
):
    """Добавить товар"""
    try:
        product = await product_service.create_product(payload)
        return ProductCreatedResponse(message="Producto agregado con éxito.", id=product.id)
    except StorageFailure:
        raise HTTPException(status_code=500, detail="Error al agregar el producto.")


@router.put(
    "/{product_id}",
    response_model=ProductResponse,
    dependencies=[Depends(authorize("admin"))]
)
async def update_product(
        product_id: int,
        payload: ProductUpdate,
        product_service: ProductService = Depends(get_product_service)
):
    """Обновить товар (только переданные поля)"""
    try:
        return await product_service.update_product(product_id, payload)
    except ProductNotFound as e:
        raise HTTPException(status_code=404, detail=e.message)
    except StorageFailure:
        raise HTTPException(status_code=500, detail="Error al actualizar el producto.")


@router.delete(
    "/{product_id}",
    response_model=MessageResponse,
    dependencies=[Depends(authorize("admin"))]
)
async def delete_product(
        product_id: int,
        product_service: ProductService = Depends(get_product_service)
):
    """Удалить товар"""
    try:
        await product_service.delete_product(product_id)
        return MessageResponse(message="Producto eliminado con éxito.")
    except ProductNotFound as e:
        raise HTTPException(status_code=404, detail=e.message)
    except StorageFailure:
        raise HTTPException(status_code=500, detail="Error al eliminar el producto.")
