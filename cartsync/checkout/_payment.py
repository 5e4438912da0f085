"""
Checkout checks that need no lookup: customer info, payment proof, order ids.
"""

from __future__ import annotations

import re
import secrets
import string

from cartsync._types import PaymentMethod
from cartsync.checkout._types import CustomerInfo, Notice, NoticeCode, PaymentProof
from cartsync.config import DEFAULT_CONFIG, EngineConfig

BD_PHONE = re.compile(r"^01[3-9]\d{8}$")
ORDER_ID_ALPHABET = string.ascii_uppercase + string.digits
ORDER_ID_LENGTH = 9


def _customer_notice(message: str) -> Notice:
    return Notice(code=NoticeCode.CUSTOMER_INFO, message=message)


def validate_customer_info(
    info: CustomerInfo,
    method: PaymentMethod,
    config: EngineConfig = DEFAULT_CONFIG,
) -> tuple[Notice, ...]:
    """Empty tuple when the customer can be shipped to."""
    notices: list[Notice] = []

    missing = [
        label
        for label, value in (
            ("name", info.name),
            ("email", info.email),
            ("phone", info.phone),
            ("address", info.address),
        )
        if not value.strip()
    ]
    if missing:
        notices.append(_customer_notice(f"Please fill in all required fields: {', '.join(missing)}"))

    domestic = config.ships_to(info.country)
    if domestic and info.phone.strip() and not BD_PHONE.match(info.phone.strip()):
        notices.append(
            _customer_notice("Please enter a valid 11-digit Bangladesh phone number (01XXXXXXXXX)")
        )

    if domestic and method in config.delivery_methods and not (info.district.strip() and info.thana.strip()):
        notices.append(_customer_notice("Please select district and thana for delivery"))

    return tuple(notices)


def validate_payment_proof(
    method: PaymentMethod,
    proof: PaymentProof | None,
    config: EngineConfig = DEFAULT_CONFIG,
) -> tuple[Notice, ...]:
    """Only methods in config.proof_required_methods need a proof."""
    if method not in config.proof_required_methods:
        return ()

    sender = (proof.sender_number if proof else "").strip()
    reference = (proof.transaction_id if proof else "").strip()

    if not sender or not reference:
        return (
            Notice(NoticeCode.PAYMENT_PROOF, "Please provide both sender number and transaction ID"),
        )

    notices: list[Notice] = []
    length = config.sender_number_length
    if len(sender) != length or not sender.isdigit():
        notices.append(Notice(NoticeCode.PAYMENT_PROOF, f"Please enter a valid {length}-digit sender number"))
    if not reference.isalnum():
        notices.append(Notice(NoticeCode.PAYMENT_PROOF, "Transaction ID may contain only letters and digits"))
    return tuple(notices)


def generate_order_id(prefix: str = DEFAULT_CONFIG.order_id_prefix) -> str:
    """ORDER_ + 9 upper-case alphanumerics."""
    return prefix + "".join(secrets.choice(ORDER_ID_ALPHABET) for _ in range(ORDER_ID_LENGTH))


__all__ = (
    "validate_customer_info",
    "validate_payment_proof",
    "generate_order_id",
)
