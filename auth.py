import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from bson import ObjectId
from fastapi import Depends, Header
from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel
from pymongo.errors import DuplicateKeyError

import config
from database import get_db, serialize_doc
from errors import AuthError, ValidationError
from schemas import LoginInput, RegisterInput, User as UserSchema

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)


def decode_token(token: str) -> dict:
    try:
        return jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM])
    except JWTError:
        raise AuthError("Invalid or expired token")


class Session(BaseModel):
    """The authenticated caller, resolved once per request."""

    user_id: str
    email: str
    name: str
    phone: str


class TokenResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    user: Dict[str, Any]


def public_user(doc: Dict[str, Any]) -> Dict[str, Any]:
    user = serialize_doc(doc)
    # Never send password hash
    user.pop("password_hash", None)
    return user


def get_current_session(authorization: Optional[str] = Header(default=None), db=Depends(get_db)) -> Session:
    if not authorization or not authorization.startswith("Bearer "):
        raise AuthError("Not authenticated")
    payload = decode_token(authorization.split(" ", 1)[1])
    user_id = payload.get("sub")
    if not user_id or not ObjectId.is_valid(user_id):
        raise AuthError("Invalid token")
    user = db["user"].find_one({"_id": ObjectId(user_id)})
    if not user:
        raise AuthError("User not found")
    return Session(user_id=user_id, email=user["email"], name=user["name"], phone=user.get("phone", ""))


def _issue(user: Dict[str, Any]) -> TokenResponse:
    token = create_access_token({"sub": str(user["_id"]), "email": user["email"]})
    return TokenResponse(token=token, user=public_user(user))


def register(db, payload: RegisterInput) -> TokenResponse:
    email = payload.email.lower()
    if db["user"].find_one({"email": email}):
        raise ValidationError("Email already registered")
    user_model = UserSchema(
        name=payload.name.strip(),
        email=email,
        password_hash=hash_password(payload.password),
        phone=payload.phone.strip(),
    )
    try:
        result = db["user"].insert_one(user_model.model_dump())
    except DuplicateKeyError:
        raise ValidationError("Email already registered")
    logger.info("Registered user %s", result.inserted_id)
    return _issue(db["user"].find_one({"_id": result.inserted_id}))


def login(db, payload: LoginInput) -> TokenResponse:
    user = db["user"].find_one({"email": payload.email.lower()})
    if not user or not verify_password(payload.password, user.get("password_hash", "")):
        raise ValidationError("Invalid email or password")
    return _issue(user)
