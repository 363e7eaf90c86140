"""Products backend application factory."""

from json import JSONDecodeError

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from api.handlers import handle_health
from products.models import ProductValidationError, validate_product
from products.store import InMemoryProductStore, ProductStore, StoreError
from ui.log_utils import write_cli_log

SERVER_ERROR = {"error": "server error"}


def create_backend_app(store: ProductStore | None = None) -> FastAPI:
    """Create the backend that owns product records."""
    store = store or InMemoryProductStore()
    app = FastAPI(title="Products Backend", version="0.1.0")

    @app.get("/health")
    async def health():
        return await handle_health()

    @app.post("/api/products")
    async def create_product(request: Request):
        try:
            payload = await request.json()
        except (JSONDecodeError, UnicodeDecodeError):
            payload = {}

        try:
            name, price = validate_product(payload)
        except ProductValidationError as e:
            return JSONResponse({"error": str(e)}, status_code=400)

        try:
            product = store.create(name, price)
        except StoreError as e:
            write_cli_log("ERROR", f"create product failed: {e}", route="products")
            return JSONResponse(SERVER_ERROR, status_code=500)
        return JSONResponse(product.to_json(), status_code=201)

    @app.get("/api/products")
    async def list_products():
        try:
            products = store.list_recent()
        except StoreError as e:
            write_cli_log("ERROR", f"list products failed: {e}", route="products")
            return JSONResponse(SERVER_ERROR, status_code=500)
        return JSONResponse([p.to_json() for p in products])

    return app
