from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional
from datetime import datetime
from decimal import Decimal
from ..models.order import OrderStatus


class OrderItemCreate(BaseModel):
    """Позиция заказа в том виде, в котором ее присылает фронтенд"""
    product_id: int = Field(..., alias="id")
    quantity: int
    price: Decimal

    model_config = ConfigDict(populate_by_name=True)


class OrderCreate(BaseModel):
    # Валидация позиций делается в OrderService: невалидные отбрасываются, а не дают 400
    user_id: Optional[int] = Field(None, alias="userId")
    products: List[Any] = []

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "userId": 7,
                "products": [{"id": 3, "quantity": 2, "price": 10.0}],
            }
        },
    )


class OrderCreatedResponse(BaseModel):
    message: str
    order_id: int = Field(..., alias="orderId")

    model_config = ConfigDict(populate_by_name=True)


class OrderStatusUpdate(BaseModel):
    status: str


class OrderStatusResponse(BaseModel):
    message: str
    status: OrderStatus


class OrderProductResponse(BaseModel):
    id: int
    name: Optional[str] = None
    image: Optional[str] = None
    price: float
    quantity: int


class OrderResponse(BaseModel):
    id: int
    user_id: int
    created_at: datetime
    status: OrderStatus
    products: List[OrderProductResponse] = Field(default_factory=list, alias="productos")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_order(cls, order, details=None, products: Optional[Dict[int, Any]] = None) -> "OrderResponse":
        """
        Материализует заказ вместе с позициями и данными товаров.

        Args:
            order: Заказ
            details: Позиции заказа, если order.details не загружены
            products: Товары по ID, если detail.product не загружены
        """
        if details is None:
            details = order.details

        items = []
        for detail in details:
            product = products.get(detail.product_id) if products is not None else detail.product
            items.append(OrderProductResponse(
                id=detail.product_id,
                name=product.name if product else None,
                image=product.image if product else None,
                price=detail.price,
                quantity=detail.quantity,
            ))

        return cls(
            id=order.id,
            user_id=order.user_id,
            created_at=order.created_at,
            status=order.status,
            products=items,
        )

    def to_event_payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class MessageResponse(BaseModel):
    message: str
