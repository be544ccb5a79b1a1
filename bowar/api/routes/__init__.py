from . import (
    auth,
    bookings,
    chat,
    misc,
    operator_bookings,
    transactions,
    warnets,
)

__all__ = [
    "auth",
    "bookings",
    "chat",
    "misc",
    "operator_bookings",
    "transactions",
    "warnets",
]
