"""
Property catalog

Listing, search, proximity lookup and the sold/available status that gates
bookability. Every write keeps `available == not sold`.
"""

import logging
import math
import re
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from bson import ObjectId

from database import parse_object_id, serialize_doc
from errors import Conflict, NotFound, ValidationError
from schemas import Property as PropertySchema, PropertyIn, PropertySort

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0088

SORTS = {
    "recent": [("created_at", -1)],
    "price_asc": [("price", 1)],
    "price_desc": [("price", -1)],
    "area_desc": [("area", -1)],
    "beds_desc": [("bedrooms", -1)],
}


def haversine_km(a: Tuple[float, float], b: Tuple[float, float]) -> float:
    lat1, lng1 = map(math.radians, a)
    lat2, lng2 = map(math.radians, b)
    h = math.sin((lat2 - lat1) / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin((lng2 - lng1) / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(h))


def list_properties(
    db,
    include_sold: bool = False,
    q: Optional[str] = None,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
    min_bedrooms: Optional[int] = None,
    sort: PropertySort = "recent",
) -> List[Dict[str, Any]]:
    query: Dict[str, Any] = {}
    if not include_sold:
        query["available"] = True
    if q and q.strip():
        pattern = re.escape(q.strip())
        query["$or"] = [
            {"title": {"$regex": pattern, "$options": "i"}},
            {"location": {"$regex": pattern, "$options": "i"}},
            {"description": {"$regex": pattern, "$options": "i"}},
        ]
    if min_price is not None and max_price is not None and min_price > max_price:
        raise ValidationError("minPrice cannot be greater than maxPrice")
    price_filter: Dict[str, Any] = {}
    if min_price is not None:
        price_filter["$gte"] = float(min_price)
    if max_price is not None:
        price_filter["$lte"] = float(max_price)
    if price_filter:
        query["price"] = price_filter
    if min_bedrooms is not None:
        query["bedrooms"] = {"$gte": int(min_bedrooms)}

    cursor = db["property"].find(query).sort(SORTS[sort])
    return [serialize_doc(d) for d in cursor]


def list_near(db, point: Tuple[float, float], radius_km: float, include_sold: bool = False) -> List[Dict[str, Any]]:
    """
    Properties within `radius_km` of `point` (lat, lng), nearest first.

    The store narrows candidates with a bounding box on the indexed
    coordinates; the great-circle distance decides membership and order.
    """
    lat, lng = point
    dlat = math.degrees(radius_km / EARTH_RADIUS_KM)
    # cos(lat) shrinks towards the poles; clamp so the box never collapses
    dlng = dlat / max(math.cos(math.radians(lat)), 0.01)
    query: Dict[str, Any] = {
        "coordinates.lat": {"$gte": lat - dlat, "$lte": lat + dlat},
        "coordinates.lng": {"$gte": lng - dlng, "$lte": lng + dlng},
    }
    if not include_sold:
        query["available"] = True

    found = []
    for doc in db["property"].find(query):
        coords = doc.get("coordinates") or {}
        distance = haversine_km(point, (coords["lat"], coords["lng"]))
        if distance <= radius_km:
            item = serialize_doc(doc)
            item["distance_km"] = round(distance, 3)
            found.append(item)
    found.sort(key=lambda p: p["distance_km"])
    return found


def get_property(db, property_id: str) -> Dict[str, Any]:
    doc = db["property"].find_one({"_id": parse_object_id(property_id, "property")})
    if not doc:
        raise NotFound("Property not found")
    return doc


def create_property(db, data: PropertyIn, owner: Dict[str, Any]) -> Dict[str, Any]:
    prop = PropertySchema(
        **data.model_dump(),
        owner=owner["name"],
        owner_phone=owner.get("phone", ""),
    )
    res = db["property"].insert_one(prop.model_dump())
    logger.info("Property %s listed by %s", res.inserted_id, owner["_id"])
    return db["property"].find_one({"_id": res.inserted_id})


def mark_sold(db, property_id: ObjectId, buyer_id: str, sold_at: datetime) -> Dict[str, Any]:
    """Flip an unsold property to sold. Raises Conflict if someone got there first."""
    res = db["property"].update_one(
        {"_id": property_id, "sold": {"$ne": True}},
        {"$set": {"sold": True, "available": False, "sold_to": buyer_id, "sold_at": sold_at}},
    )
    if res.matched_count == 0:
        if db["property"].find_one({"_id": property_id}) is None:
            raise NotFound("Property not found")
        logger.warning("Property %s is already sold, refusing sale to %s", property_id, buyer_id)
        raise Conflict("Property is already sold")
    return db["property"].find_one({"_id": property_id})


def release(db, property_id: ObjectId, buyer_id: str) -> None:
    """Undo mark_sold for a sale that did not go through."""
    db["property"].update_one(
        {"_id": property_id, "sold_to": buyer_id},
        {"$set": {"sold": False, "available": True}, "$unset": {"sold_to": "", "sold_at": ""}},
    )


def ensure_bookable(db, property_ids: List[str]) -> Dict[str, Dict[str, Any]]:
    """Load the given properties, failing unless every one exists and is unsold."""
    docs = {}
    for pid in property_ids:
        doc = get_property(db, pid)
        if doc.get("sold"):
            raise Conflict(f"Property '{doc.get('title', pid)}' is already sold")
        docs[pid] = doc
    return docs
