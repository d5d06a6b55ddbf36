import logging
from typing import Any, Dict, Iterable, List

from bson import ObjectId

from database import serialize_doc
from schemas import Cart as CartSchema, CartItem, utcnow

logger = logging.getLogger(__name__)


def get_cart(db, user_id: str) -> Dict[str, Any]:
    # upsert so concurrent first reads share one cart
    db["cart"].update_one(
        {"user_id": user_id},
        {"$setOnInsert": CartSchema(user_id=user_id).model_dump(exclude={"user_id"})},
        upsert=True,
    )
    return db["cart"].find_one({"user_id": user_id})


def _save_items(db, user_id: str, items: List[Dict[str, Any]]) -> Dict[str, Any]:
    db["cart"].update_one(
        {"user_id": user_id},
        {"$set": {"items": items, "updated_at": utcnow()}},
        upsert=True,
    )
    return db["cart"].find_one({"user_id": user_id})


def add_or_replace(db, user_id: str, item: CartItem) -> Dict[str, Any]:
    cart = get_cart(db, user_id)
    items = cart.get("items", [])
    new_item = item.model_dump()
    for i, it in enumerate(items):
        if it["property_id"] == item.property_id:
            items[i] = new_item
            break
    else:
        items.append(new_item)
    return _save_items(db, user_id, items)


def remove(db, user_id: str, property_id: str) -> Dict[str, Any]:
    cart = get_cart(db, user_id)
    items = [it for it in cart.get("items", []) if it["property_id"] != property_id]
    return _save_items(db, user_id, items)


def remove_properties(db, user_id: str, property_ids: Iterable[str]) -> List[Dict[str, Any]]:
    """Drop the given properties from the cart; returns the items as they were before."""
    cart = get_cart(db, user_id)
    before = cart.get("items", [])
    paid = set(property_ids)
    _save_items(db, user_id, [it for it in before if it["property_id"] not in paid])
    return before


def restore(db, user_id: str, items: List[Dict[str, Any]]) -> None:
    logger.info("Restoring %d cart item(s) for user %s", len(items), user_id)
    _save_items(db, user_id, items)


def clear(db, user_id: str) -> Dict[str, Any]:
    """Empty the items list; the cart document stays."""
    return _save_items(db, user_id, [])


def cart_total(cart: Dict[str, Any]) -> float:
    return sum(float(it.get("total_price", 0)) for it in cart.get("items", []))


def present(db, cart: Dict[str, Any]) -> Dict[str, Any]:
    # attach property details
    items = []
    for it in cart.get("items", []):
        pid = it.get("property_id", "")
        prop = db["property"].find_one({"_id": ObjectId(pid)}) if ObjectId.is_valid(pid) else None
        items.append({**it, "property": serialize_doc(prop) if prop else None})
    return {
        "id": str(cart["_id"]) if cart.get("_id") else None,
        "user_id": cart["user_id"],
        "items": items,
        "total_price": cart_total(cart),
    }
