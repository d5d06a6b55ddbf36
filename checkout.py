"""
Checkout workflow

    cart --start_checkout--> payment(created) --verify_payment--> payment(verified)
         --fulfil--> payment(fulfilled) + bookings + properties sold + cart emptied

A payment record is written when the gateway order is created. It snapshots
the cart line items, so what gets booked is exactly what was paid for, even
if the cart changes while the customer is in the payment widget. Fulfilment
runs once per verified payment inside a UnitOfWork: a failure at any step
(including a property sold to someone else in the meantime) undoes the
steps already applied and leaves the payment `verified` for a retry.
"""

import logging
import time
from typing import Any, Dict, List, Optional

import bookings
import carts
import catalog
import config
from auth import Session
from database import parse_object_id, serialize_doc
from errors import Conflict, InvalidSignature, NotFound, ValidationError
from gateway import PaymentGateway
from schemas import CartItem, Payment as PaymentSchema, utcnow
from uow import UnitOfWork

logger = logging.getLogger(__name__)


def to_minor_units(amount: float) -> int:
    return int(round(amount * 100))


def _now_ms():
    # BSON dates keep milliseconds only
    now = utcnow()
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def _load_payment(db, session: Session, order_id: str) -> Dict[str, Any]:
    payment = db["payment"].find_one({"order_id": order_id, "user_id": session.user_id})
    if not payment:
        raise NotFound("Payment order not found")
    return payment


def _set_status(db, payment: Dict[str, Any], expected: str, **fields) -> bool:
    res = db["payment"].update_one(
        {"_id": payment["_id"], "status": expected},
        {"$set": {**fields, "updated_at": utcnow()}},
    )
    return res.matched_count == 1


def start_checkout(
    db,
    gateway: PaymentGateway,
    session: Session,
    amount: Optional[int] = None,
    currency: str = config.CURRENCY,
    receipt: Optional[str] = None,
) -> Dict[str, Any]:
    if currency.upper() != config.CURRENCY:
        raise ValidationError(f"Only {config.CURRENCY} payments are supported")
    cart = carts.get_cart(db, session.user_id)
    items: List[Dict[str, Any]] = cart.get("items", [])
    if not items:
        raise ValidationError("Cart is empty")
    catalog.ensure_bookable(db, [it["property_id"] for it in items])

    expected = to_minor_units(carts.cart_total(cart))
    if expected < config.MIN_ORDER_AMOUNT:
        raise ValidationError("Cart total must be greater than zero")
    if amount is not None and amount != expected:
        raise ValidationError(f"Amount {amount} does not match cart total {expected}")

    receipt = receipt or f"rcpt_{int(time.time() * 1000)}"
    order = gateway.create_order(expected, config.CURRENCY, receipt)
    payment = PaymentSchema(
        order_id=order.id,
        user_id=session.user_id,
        amount=order.amount,
        currency=order.currency,
        receipt=order.receipt or receipt,
        items=[CartItem(**it) for it in items],
    )
    db["payment"].insert_one(payment.model_dump())
    logger.info("Created order %s for user %s (%s %s)", order.id, session.user_id, order.amount, order.currency)
    return {"success": True, "order": order.model_dump(), "key_id": gateway.key_id}


def cancel_checkout(db, session: Session, order_id: str) -> Dict[str, Any]:
    payment = _load_payment(db, session, order_id)
    if not _set_status(db, payment, "created", status="cancelled"):
        raise Conflict(f"Payment is already {payment['status']}")
    logger.info("Order %s cancelled by user %s", order_id, session.user_id)
    return {"success": True, "order_id": order_id, "status": "cancelled"}


def fulfil(db, session: Session, payment: Dict[str, Any]) -> Dict[str, Any]:
    """Turn a verified payment into bookings, sold properties and a trimmed cart."""
    if payment["status"] == "fulfilled":
        return payment
    if payment["status"] != "verified":
        raise ValidationError("Payment has not been verified")

    sold_at = _now_ms()
    property_ids = [it["property_id"] for it in payment["items"]]
    with UnitOfWork(f"checkout {payment['order_id']}") as uow:
        for pid in property_ids:
            oid = parse_object_id(pid, "property")
            catalog.mark_sold(db, oid, session.user_id, sold_at)
            uow.on_rollback(catalog.release, db, oid, session.user_id)

        booking_ids = bookings.create_bookings(db, session.user_id, payment)
        uow.on_rollback(bookings.delete_bookings, db, booking_ids)

        previous = carts.remove_properties(db, session.user_id, property_ids)
        uow.on_rollback(carts.restore, db, session.user_id, previous)

        if not _set_status(db, payment, "verified", status="fulfilled", booking_ids=[str(b) for b in booking_ids]):
            raise Conflict("Payment was already processed")

    logger.info("Order %s fulfilled: %d booking(s) for user %s", payment["order_id"], len(booking_ids), session.user_id)
    return db["payment"].find_one({"_id": payment["_id"]})


def _result(db, payment: Dict[str, Any], property_id: Optional[str]) -> Dict[str, Any]:
    pid = property_id or payment["items"][0]["property_id"]
    prop = db["property"].find_one({"_id": parse_object_id(pid, "property")})
    return {
        "success": True,
        "order_id": payment["order_id"],
        "payment_id": payment.get("payment_id"),
        "property": serialize_doc(prop),
        "bookings": bookings.get_bookings(db, payment.get("booking_ids", [])),
    }


def verify_payment(
    db,
    gateway: PaymentGateway,
    session: Session,
    order_id: str,
    payment_id: str,
    signature: str,
    property_id: Optional[str] = None,
) -> Dict[str, Any]:
    payment = _load_payment(db, session, order_id)
    if property_id:
        property_id = str(parse_object_id(property_id, "property"))
    if property_id and property_id not in {it["property_id"] for it in payment["items"]}:
        raise ValidationError("Property is not part of this order")

    status = payment["status"]
    if status == "fulfilled":
        if payment.get("payment_id") != payment_id:
            raise Conflict("Order was settled by a different payment")
        return _result(db, payment, property_id)
    if status in ("cancelled", "failed"):
        raise Conflict(f"Payment is already {status}")

    if not gateway.verify_signature(order_id, payment_id, signature):
        if status == "created":
            _set_status(db, payment, "created", status="failed")
        logger.warning("Rejected signature for order %s from user %s", order_id, session.user_id)
        raise InvalidSignature()

    if status == "created":
        if not _set_status(db, payment, "created", status="verified", payment_id=payment_id):
            raise Conflict("Payment state changed, retry")
        logger.info("Payment %s verified for order %s", payment_id, order_id)
    elif payment.get("payment_id") != payment_id:
        raise Conflict("Order was verified with a different payment")

    payment = fulfil(db, session, db["payment"].find_one({"_id": payment["_id"]}))
    return _result(db, payment, property_id)


def bookings_from_payment(db, session: Session, payment_id: str) -> Dict[str, Any]:
    """Bookings for a payment, looked up by provider payment id or by order id."""
    payment = db["payment"].find_one(
        {"user_id": session.user_id, "$or": [{"payment_id": payment_id}, {"order_id": payment_id}]}
    )
    if not payment:
        raise NotFound("No payment found for this payment id")
    payment = fulfil(db, session, payment)
    return {
        "success": True,
        "message": "Bookings created successfully",
        "bookings": bookings.get_bookings(db, payment.get("booking_ids", [])),
    }
