"""Common application-wide constants."""

from datetime import timedelta

# How long after creation a user may still cancel a booking
BOOKING_CANCEL_WINDOW = timedelta(minutes=2)

BOOKING_PROOF_EXTENSIONS = frozenset({"jpg", "jpeg", "png", "gif", "webp"})
BOOKING_PROOF_MAX_BYTES = 15 * 1024 * 1024
TOPUP_PROOF_EXTENSIONS = frozenset({"jpg", "jpeg", "png", "webp"})
TOPUP_PROOF_MAX_BYTES = 5 * 1024 * 1024

BOOKING_PROOF_SUBDIR = "payment-proofs"
TOPUP_PROOF_SUBDIR = "topups"
UPLOADS_URL_PREFIX = "/uploads"

DEFAULT_PAGE_SIZE = 20
OPERATOR_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100


__all__ = [
    "BOOKING_CANCEL_WINDOW",
    "BOOKING_PROOF_EXTENSIONS",
    "BOOKING_PROOF_MAX_BYTES",
    "TOPUP_PROOF_EXTENSIONS",
    "TOPUP_PROOF_MAX_BYTES",
    "BOOKING_PROOF_SUBDIR",
    "TOPUP_PROOF_SUBDIR",
    "UPLOADS_URL_PREFIX",
    "DEFAULT_PAGE_SIZE",
    "OPERATOR_PAGE_SIZE",
    "MAX_PAGE_SIZE",
]
