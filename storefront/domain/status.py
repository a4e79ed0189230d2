# storefront/domain/status.py
from enum import Enum


class CartStatus(str, Enum):
    ACTIVE = "active"
    CONVERTED = "converted"
    ABANDONED = "abandoned"
    EXPIRED = "expired"
    MERGED = "merged"


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"
    REFUND_PENDING = "refund_pending"


def apply_order_status(status: OrderStatus, payment_status: PaymentStatus) -> tuple[OrderStatus, PaymentStatus]:
    """
    New (status, payment_status) after setting the order status.
    Cancelling a paid order puts the payment back to pending, the refund
    itself is tracked outside this service.
    """
    if status is OrderStatus.CANCELLED and payment_status is PaymentStatus.PAID:
        return status, PaymentStatus.PENDING
    return status, payment_status


def apply_payment_status(status: OrderStatus, payment_status: PaymentStatus) -> tuple[OrderStatus, PaymentStatus]:
    """New (status, payment_status) after setting the payment status."""
    if payment_status is PaymentStatus.PAID and status is OrderStatus.PENDING:
        return OrderStatus.PROCESSING, payment_status
    return status, payment_status
