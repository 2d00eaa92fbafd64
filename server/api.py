"""FastAPI server exposing identity and wardrobe operations to a client app."""

import uuid
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Query, Request, Response, status
from pydantic import BaseModel, Field

from wardrobe_app.app import WardrobeApp
from wardrobe_app.logging_config import correlation_context
from logic.validation import ClothingForm, LoginForm, OrderForm, OutfitForm, ProfileUpdateForm, RegistrationForm
from models.results import ErrorKind, OperationResult

CORRELATION_HEADER = "X-Correlation-ID"

_ERROR_STATUS = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.INVALID_CREDENTIAL: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.ALREADY_RECEIVED: status.HTTP_409_CONFLICT,
    ErrorKind.INVALID_INPUT: 422,
    ErrorKind.STORAGE_FAILURE: status.HTTP_503_SERVICE_UNAVAILABLE,
}


class CreatedResponse(BaseModel):
    id: str
    message: str = ""


class ReceiveOrderResponse(BaseModel):
    order_id: str
    items_added: int
    item_ids: List[str] = Field(default_factory=list)
    message: str = ""


def _unwrap(result: OperationResult) -> Any:
    """Return the payload of a successful result or raise the matching HTTP error."""

    if result.success:
        return result.value
    error = result.error or ErrorKind.STORAGE_FAILURE
    detail: Any = result.message
    if error is ErrorKind.INVALID_INPUT and result.value:
        detail = {"message": result.message, "errors": result.value}
    raise HTTPException(status_code=_ERROR_STATUS[error], detail=detail)


def create_app(wardrobe_app: Optional[WardrobeApp] = None) -> FastAPI:
    """Build the HTTP app around a started :class:`WardrobeApp`."""

    backend = wardrobe_app or WardrobeApp()
    if not backend.ready:
        backend.start()
    identity = backend.identity
    wardrobe = backend.wardrobe

    app = FastAPI(title="Wardrobe Keeper", version="0.1.0")
    app.state.wardrobe_app = backend

    @app.middleware("http")
    async def bind_correlation_id(request: Request, call_next):
        """Tag every log line of a request with the caller's id, or a fresh one."""

        correlation_id = request.headers.get(CORRELATION_HEADER) or uuid.uuid4().hex
        with correlation_context(correlation_id):
            response = await call_next(request)
        response.headers[CORRELATION_HEADER] = correlation_id
        return response

    @app.get("/healthz")
    def healthcheck() -> dict:
        """Lightweight readiness probe."""

        return {"service": "wardrobe-keeper", **backend.status()}

    # -- identity ----------------------------------------------------------

    @app.post("/auth/register", status_code=status.HTTP_201_CREATED)
    def register(form: RegistrationForm) -> dict:
        return _unwrap(identity.register(form.model_dump()))

    @app.post("/auth/login")
    def login(form: LoginForm) -> dict:
        return _unwrap(identity.login(form.username_or_email, form.password))

    @app.post("/auth/logout")
    def logout() -> dict:
        return {"logged_out": identity.logout()}

    @app.get("/auth/me")
    def current_user() -> dict:
        user = identity.get_current_user()
        if user is None:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not logged in")
        return user

    @app.get("/users")
    def list_users() -> List[dict]:
        return identity.list_users()

    @app.put("/users/{user_id}")
    def update_profile(user_id: str, form: ProfileUpdateForm) -> dict:
        return _unwrap(identity.update_profile(user_id, form.model_dump()))

    # -- clothing ----------------------------------------------------------

    @app.get("/clothes")
    def list_clothes(
        category: Optional[str] = None,
        subcategory: Optional[str] = None,
        color: Optional[str] = None,
        season: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        filters = {"category": category, "subcategory": subcategory, "color": color, "season": season}
        active = {key: value for key, value in filters.items() if value}
        return wardrobe.list_clothes(filters=active or None)

    @app.get("/clothes/facets")
    def clothing_facets() -> Dict[str, List[str]]:
        return wardrobe.clothing_facets()

    @app.post("/clothes", status_code=status.HTTP_201_CREATED)
    def add_clothing(form: ClothingForm) -> CreatedResponse:
        result = wardrobe.add_clothing(form.model_dump())
        return CreatedResponse(id=_unwrap(result), message=result.message)

    @app.put("/clothes/{item_id}")
    def update_clothing(item_id: str, form: ClothingForm) -> CreatedResponse:
        result = wardrobe.update_clothing(item_id, form.model_dump())
        return CreatedResponse(id=_unwrap(result), message=result.message)

    @app.delete("/clothes/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
    def delete_clothing(item_id: str) -> Response:
        if not wardrobe.delete_clothing(item_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Clothing item not found")
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    # -- outfits -----------------------------------------------------------

    @app.get("/outfits")
    def list_outfits() -> List[Dict[str, Any]]:
        return wardrobe.list_outfits()

    @app.post("/outfits", status_code=status.HTTP_201_CREATED)
    def add_outfit(form: OutfitForm) -> CreatedResponse:
        result = wardrobe.add_outfit(form.model_dump())
        return CreatedResponse(id=_unwrap(result), message=result.message)

    @app.put("/outfits/{outfit_id}")
    def update_outfit(outfit_id: str, form: OutfitForm) -> CreatedResponse:
        result = wardrobe.update_outfit(outfit_id, form.model_dump())
        return CreatedResponse(id=_unwrap(result), message=result.message)

    @app.delete("/outfits/{outfit_id}", status_code=status.HTTP_204_NO_CONTENT)
    def delete_outfit(outfit_id: str) -> Response:
        if not wardrobe.delete_outfit(outfit_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Outfit not found")
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    # -- pending orders ----------------------------------------------------

    @app.get("/orders")
    def list_orders(order_status: Optional[str] = Query(None, alias="status")) -> List[Dict[str, Any]]:
        if order_status not in (None, "pending", "received"):
            raise HTTPException(status_code=422, detail="Unknown order status")
        return wardrobe.list_orders(status=order_status)

    @app.post("/orders", status_code=status.HTTP_201_CREATED)
    def add_order(form: OrderForm) -> CreatedResponse:
        result = wardrobe.add_order(form.model_dump())
        return CreatedResponse(id=_unwrap(result), message=result.message)

    @app.put("/orders/{order_id}")
    def update_order(order_id: str, form: OrderForm) -> CreatedResponse:
        result = wardrobe.update_order(order_id, form.model_dump())
        return CreatedResponse(id=_unwrap(result), message=result.message)

    @app.delete("/orders/{order_id}", status_code=status.HTTP_204_NO_CONTENT)
    def delete_order(order_id: str) -> Response:
        if not wardrobe.delete_order(order_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @app.post("/orders/{order_id}/receive")
    def receive_order(order_id: str) -> ReceiveOrderResponse:
        result = wardrobe.receive_order(order_id)
        payload = _unwrap(result)
        return ReceiveOrderResponse(**payload, message=result.message)

    return app


def get_app() -> FastAPI:
    """ASGI factory: ``uvicorn server.api:get_app --factory``."""

    return create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("server.api:get_app", factory=True, host="0.0.0.0", port=8080, reload=False)
