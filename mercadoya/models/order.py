from datetime import datetime

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from enum import Enum as PyEnum
from ..database import Base


class OrderStatus(str, PyEnum):
    PENDING = "Pendiente"  # Ожидает обработки
    PROCESSING = "Procesando"  # В обработке
    READY = "Listo"  # Готов к выдаче

    @classmethod
    def parse(cls, value) -> "OrderStatus":
        """Возвращает статус по строковому значению или бросает ValueError"""
        if isinstance(value, cls):
            return value
        return cls(value)


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Статус заказа
    status = Column(
        Enum(OrderStatus, values_callable=lambda statuses: [s.value for s in statuses], name="order_status"),
        default=OrderStatus.PENDING,
        nullable=False,
    )

    # Временные метки
    created_at = Column(DateTime, default=datetime.utcnow, server_default=func.now(), nullable=False)

    # Связи
    details = relationship(
        "OrderDetail",
        back_populates="order",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="OrderDetail.id",
    )
    user = relationship("User", back_populates="orders")
