from .broadcaster import EventBroadcaster, OrderEvent, Subscriber
from .producer import OrderEventPublisher

__all__ = [
    "EventBroadcaster",
    "OrderEvent",
    "Subscriber",
    "OrderEventPublisher"
]
