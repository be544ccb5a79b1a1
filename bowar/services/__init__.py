from . import (
    booking_service,
    chat_service,
    operator_booking_service,
    storage,
    transaction_service,
    wallet_service,
    warnet_service,
)
__all__ = [
    "booking_service",
    "chat_service",
    "operator_booking_service",
    "storage",
    "transaction_service",
    "wallet_service",
    "warnet_service",
]
