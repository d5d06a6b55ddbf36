from typing import Any, Dict, List

from bson import ObjectId

from database import serialize_doc
from schemas import Booking as BookingSchema


def create_bookings(db, user_id: str, payment: Dict[str, Any]) -> List[ObjectId]:
    """One paid booking per line item captured on the payment."""
    docs = [
        BookingSchema(
            user_id=user_id,
            property_id=item["property_id"],
            check_in=item["check_in"],
            check_out=item["check_out"],
            total_price=item["total_price"],
            payment_status="paid",
            payment_id=payment.get("payment_id"),
            order_id=payment["order_id"],
        ).model_dump()
        for item in payment["items"]
    ]
    return list(db["booking"].insert_many(docs).inserted_ids)


def delete_bookings(db, ids: List[ObjectId]) -> None:
    if ids:
        db["booking"].delete_many({"_id": {"$in": list(ids)}})


def _with_property(db, booking: Dict[str, Any]) -> Dict[str, Any]:
    pid = booking.get("property_id", "")
    prop = db["property"].find_one({"_id": ObjectId(pid)}) if ObjectId.is_valid(pid) else None
    out = serialize_doc(booking)
    out["property"] = serialize_doc(prop) if prop else None
    return out


def get_bookings(db, ids: List[Any]) -> List[Dict[str, Any]]:
    object_ids = [ObjectId(i) for i in ids]
    cursor = db["booking"].find({"_id": {"$in": object_ids}}).sort("created_at", 1)
    return [_with_property(db, b) for b in cursor]


def list_bookings(db, user_id: str) -> List[Dict[str, Any]]:
    cursor = db["booking"].find({"user_id": user_id}).sort("created_at", -1)
    return [_with_property(db, b) for b in cursor]
