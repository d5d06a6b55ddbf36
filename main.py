import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import BackgroundTasks, Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import auth
import bookings
import carts
import catalog
import checkout
import config
from auth import Session, get_current_session
from database import ensure_indexes, get_db, parse_object_id, serialize_doc
from errors import AppError, ServerError, ValidationError
from gateway import PaymentGateway, get_gateway
from notifications import send_welcome_email
from schemas import (
    CancelPaymentInput,
    CartAddInput,
    CartItem,
    CreateOrderInput,
    FromCartInput,
    LoginInput,
    PropertyIn,
    PropertySort,
    RegisterInput,
    VerifyPaymentInput,
)
from seed import ensure_sample_data

logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    ensure_indexes(app.dependency_overrides.get(get_db, get_db)())
    yield


app = FastAPI(title="Perundurai Rentals API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Error handling

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"field": ".".join(str(p) for p in err.get("loc", ()) if p != "body"), "message": err.get("msg", "")}
        for err in exc.errors()
    ]
    err = ValidationError("Invalid request", errors=errors)
    return JSONResponse(status_code=err.status_code, content=err.to_body())


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    err = ServerError()
    return JSONResponse(status_code=err.status_code, content=err.to_body())


# Routes
@app.get("/")
def read_root():
    return {"message": "Perundurai Rentals API"}


@app.get("/test")
def test_database(db=Depends(get_db)):
    response = {
        "backend": "✅ Running",
        "database": "❌ Not Available",
        "database_name": None,
        "connection_status": "Not Connected",
        "collections": [],
    }
    try:
        response["collections"] = db.list_collection_names()
        response["database"] = "✅ Available"
        response["connection_status"] = "Connected"
        response["database_name"] = db.name
    except Exception as e:
        logger.warning("Database probe failed: %s", e)
        response["database"] = "❌ Error"
    return response


# Auth
@app.post("/auth/register", response_model=auth.TokenResponse, status_code=201)
def register(payload: RegisterInput, background_tasks: BackgroundTasks, db=Depends(get_db)):
    result = auth.register(db, payload)
    background_tasks.add_task(send_welcome_email, result.user)
    return result


@app.post("/auth/login", response_model=auth.TokenResponse)
def login(payload: LoginInput, db=Depends(get_db)):
    return auth.login(db, payload)


@app.get("/auth/me")
def me(session: Session = Depends(get_current_session)):
    return session


# Properties
@app.get("/properties")
def list_properties(
    include_sold: bool = Query(False, alias="includeSold"),
    q: Optional[str] = None,
    min_price: Optional[float] = Query(None, alias="minPrice", ge=0),
    max_price: Optional[float] = Query(None, alias="maxPrice", ge=0),
    min_bedrooms: Optional[int] = Query(None, alias="minBedrooms", ge=0),
    sort: PropertySort = "recent",
    db=Depends(get_db),
):
    return catalog.list_properties(db, include_sold, q, min_price, max_price, min_bedrooms, sort)


@app.get("/properties/near-perundurai")
def list_near_perundurai(
    include_sold: bool = Query(False, alias="includeSold"),
    radius: float = Query(config.DEFAULT_RADIUS_KM, gt=0, le=config.MAX_RADIUS_KM, description="Kilometres"),
    db=Depends(get_db),
):
    return catalog.list_near(db, config.SEARCH_CENTER, radius, include_sold)


@app.get("/properties/{property_id}")
def get_property(property_id: str, db=Depends(get_db)):
    return serialize_doc(catalog.get_property(db, property_id))


@app.post("/properties", status_code=201)
def create_property(data: PropertyIn, session: Session = Depends(get_current_session), db=Depends(get_db)):
    owner = {"_id": session.user_id, "name": session.name, "phone": session.phone}
    return serialize_doc(catalog.create_property(db, data, owner))


# Cart
@app.get("/cart")
def get_cart(session: Session = Depends(get_current_session), db=Depends(get_db)):
    return carts.present(db, carts.get_cart(db, session.user_id))


@app.post("/cart/add")
def add_to_cart(item: CartAddInput, session: Session = Depends(get_current_session), db=Depends(get_db)):
    catalog.ensure_bookable(db, [item.property_id])
    cart = carts.add_or_replace(db, session.user_id, CartItem(**item.model_dump()))
    return carts.present(db, cart)


@app.delete("/cart/remove/{property_id}")
def remove_from_cart(property_id: str, session: Session = Depends(get_current_session), db=Depends(get_db)):
    pid = str(parse_object_id(property_id, "property"))
    return carts.present(db, carts.remove(db, session.user_id, pid))


# Bookings
@app.post("/bookings/from-cart")
def bookings_from_cart(data: FromCartInput, session: Session = Depends(get_current_session), db=Depends(get_db)):
    return checkout.bookings_from_payment(db, session, data.payment_id)


@app.get("/bookings")
def list_bookings(session: Session = Depends(get_current_session), db=Depends(get_db)):
    return bookings.list_bookings(db, session.user_id)


# Payment
@app.post("/payment/create-order")
def create_order(
    data: CreateOrderInput,
    session: Session = Depends(get_current_session),
    db=Depends(get_db),
    gateway: PaymentGateway = Depends(get_gateway),
):
    return checkout.start_checkout(db, gateway, session, data.amount, data.currency, data.receipt)


@app.post("/payment/verify")
def verify_payment(
    data: VerifyPaymentInput,
    session: Session = Depends(get_current_session),
    db=Depends(get_db),
    gateway: PaymentGateway = Depends(get_gateway),
):
    return checkout.verify_payment(
        db, gateway, session, data.order_id, data.payment_id, data.signature, data.property_id
    )


@app.post("/payment/cancel")
def cancel_payment(data: CancelPaymentInput, session: Session = Depends(get_current_session), db=Depends(get_db)):
    return checkout.cancel_checkout(db, session, data.order_id)


@app.post("/init-sample-data")
def init_sample_data(db=Depends(get_db)):
    count = ensure_sample_data(db)
    return {"message": "Sample data ensured successfully", "insertedOrExisting": count}


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
