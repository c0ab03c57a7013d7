from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.sql import func
from ..database import Base


class PushSubscription(Base):
    __tablename__ = "push_subscriptions"

    id = Column(Integer, primary_key=True, index=True)
    endpoint = Column(String(768), nullable=False, unique=True)
    p256dh = Column(Text, nullable=False)
    auth = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=func.now(), nullable=False)

    def to_subscription_info(self) -> dict:
        """Формат, который ожидает pywebpush"""
        return {"endpoint": self.endpoint, "keys": {"p256dh": self.p256dh, "auth": self.auth}}
