from typing import List

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions import ProductNotFound
from ..models.product import Product
from ..schemas.product import ProductCreate, ProductUpdate
from .base import StorageService
import logging

logger = logging.getLogger(__name__)


class ProductService(StorageService):
    """Сервис каталога товаров"""

    def __init__(self, db: AsyncSession, **kwargs):
        super().__init__(db, **kwargs)

    async def list_products(self) -> List[Product]:
        async def _select() -> List[Product]:
            result = await self.db.execute(select(Product).order_by(Product.id))
            return list(result.scalars().all())

        products = await self._read("getting products", _select)
        logger.info(f"✅ Retrieved {len(products)} products")
        return products

    async def get_product(self, product_id: int) -> Product:
        async def _select():
            return await self.db.get(Product, product_id)

        product = await self._read(f"getting product {product_id}", _select)
        if product is None:
            raise ProductNotFound()
        return product

    async def create_product(self, data: ProductCreate) -> Product:
        async def _insert() -> Product:
            product = Product(**data.model_dump())
            self.db.add(product)
            await self.db.commit()
            await self.db.refresh(product)
            return product

        product = await self._write(f"creating product {data.name!r}", _insert)
        logger.info(f"✅ Product {product.id} created")
        return product

    async def update_product(self, product_id: int, data: ProductUpdate) -> Product:
        """Частичное обновление: меняются только переданные поля"""

        async def _update() -> Product:
            product = await self.db.get(Product, product_id)
            if product is None:
                logger.warning(f"⚠️ Product {product_id} not found for update")
                raise ProductNotFound()

            for field, value in data.model_dump(exclude_unset=True).items():
                setattr(product, field, value)

            await self.db.commit()
            await self.db.refresh(product)
            return product

        product = await self._write(f"updating product {product_id}", _update)
        logger.info(f"✅ Product {product_id} updated")
        return product

    async def delete_product(self, product_id: int) -> None:
        async def _delete() -> None:
            result = await self.db.execute(delete(Product).where(Product.id == product_id))
            if result.rowcount == 0:
                logger.warning(f"⚠️ Product {product_id} not found for deletion")
                raise ProductNotFound()
            await self.db.commit()

        await self._write(f"deleting product {product_id}", _delete)
        logger.info(f"🗑️ Product {product_id} deleted")
