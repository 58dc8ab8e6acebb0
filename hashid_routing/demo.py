"""
Demo application: orders, users and articles behind obfuscated IDs.

    python -m hashid_routing.demo
"""
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
from jinja2 import DictLoader, Environment, select_autoescape

from .config import URL_SAFE_EXTENDED_ALPHABET, Settings, get_settings
from .declarations import hashid
from .extension import HashIds, get_url_generator
from .ingress import HashidsRoute
from .urls import HashidsURLGenerator

# --- Hashers ---

DEMO_HASHERS = {
    "public": {"salt": "%env(DEMO_PUBLIC_SALT)%", "min_hash_length": 5},
    "secure": {
        "salt": "demo secure salt",
        "min_hash_length": 25,
        "alphabet": URL_SAFE_EXTENDED_ALPHABET,
    },
}

# --- Data ---

USERS = {
    9: {"id": 9, "name": "Ada"},
    12: {"id": 12, "name": "Grace"},
}

ORDERS = {
    7: {"id": 7, "user_id": 9, "total": "19.90"},
    8: {"id": 8, "user_id": 9, "total": "5.00"},
    42: {"id": 42, "user_id": 12, "total": "120.00"},
}

ARTICLES = {
    1: {"id": 1, "title": "Why IDs should not be guessable"},
}

TEMPLATES = {
    "order.html": (
        "<h1>Order {{ order.id | hashid }}</h1>"
        '<a id="self" href="{{ url_for(\'order_show\', id=order.id) }}">self</a>'
        '<a id="user" href="{{ url_for(\'user_show\', user_id=order.user_id) }}">customer</a>'
    ),
}

# --- Routes ---

router = APIRouter(route_class=HashidsRoute)


@router.get("/health", name="health")
async def health_check(request: Request):
    """Reports the configured hashers."""
    hashids: HashIds = request.app.state.hashids
    return {"status": "ok", "hashers": hashids.registry.hasher_names()}


@router.get("/orders/{id}", name="order_show")
@hashid("id")
async def show_order(id: int, request: Request, urls: HashidsURLGenerator = Depends(get_url_generator)):
    order = ORDERS.get(id)
    if order is None:
        raise HTTPException(status_code=404, detail="Order not found")
    return {
        "id": order["id"],
        "total": order["total"],
        "links": [
            {"rel": "self", "href": urls.generate("order_show", {"id": id}, request)},
            {"rel": "user", "href": urls.generate("user_show", {"user_id": order["user_id"]}, request)},
        ],
    }


@router.get("/orders/{id}/page", name="order_page", response_class=HTMLResponse)
@hashid("id")
async def order_page(id: int, request: Request):
    order = ORDERS.get(id)
    if order is None:
        raise HTTPException(status_code=404, detail="Order not found")
    return request.app.state.templates.TemplateResponse(request=request, name="order.html", context={"order": order})


@router.get("/users/{user_id}", name="user_show")
@hashid("user_id", hasher="secure")
async def show_user(user_id: int):
    user = USERS.get(user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.get("/users/{user_id}/orders/{id}", name="user_order_show")
@hashid(["id", "user_id"], hasher="secure")
async def show_user_order(user_id: int, id: int, page: Optional[int] = None):
    order = ORDERS.get(id)
    if order is None or order["user_id"] != user_id:
        raise HTTPException(status_code=404, detail="Order not found")
    return {"id": id, "user_id": user_id, "page": page}


@router.get("/articles/{id}", name="article_show")
async def show_article(id: int):
    """
    Public article view, still on the legacy directive.

    @Hash("id", hasher="public")
    """
    article = ARTICLES.get(id)
    if article is None:
        raise HTTPException(status_code=404, detail="Article not found")
    return article


class InvoiceController:
    """Handlers can be methods of a controller object."""

    def __init__(self, invoices):
        self.invoices = invoices

    @hashid("id")
    async def show(self, id: int):
        if id not in self.invoices:
            raise HTTPException(status_code=404, detail="Invoice not found")
        return {"id": id, "order_id": self.invoices[id]}


invoices = InvoiceController({3: 7})
router.add_api_route("/invoices/{id}", invoices.show, name="invoice_show", methods=["GET"])


# --- App factory ---

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(title="Hashid routing demo")
    hashids = HashIds(app, settings=settings)
    for name, config in DEMO_HASHERS.items():
        if not hashids.registry.has_hasher(name):
            hashids.registry.register(name, config)
    app.state.templates = Jinja2Templates(env=Environment(loader=DictLoader(TEMPLATES), autoescape=select_autoescape()))
    hashids.init_templates(app.state.templates)
    app.include_router(router)
    return app


app = create_app()


# ============================================================================
# MAIN ENTRY POINT
# ============================================================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("hashid_routing.demo:app", host="0.0.0.0", port=8000, reload=True, log_level="info")
