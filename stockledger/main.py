# stockledger/main.py
from typing import Optional, Dict, Any

from fastapi import Body, Depends, FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import settings
from .errors import InventoryError, ValidationError
from .logging_config import configure_logging
from .metrics import format_currency
from .models import Product
from .service import InventoryService
from .status import classify, parse_selector


def _product_out(p: Product) -> Dict[str, Any]:
    out = p.model_dump(mode="json")
    out["status"] = classify(p).value
    return out


def get_service(request: Request) -> InventoryService:
    return request.app.state.inventory


def create_app(service: Optional[InventoryService] = None) -> FastAPI:
    configure_logging()
    app = FastAPI(title=settings.api_title)
    app.state.inventory = service if service is not None else InventoryService()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(InventoryError)
    async def inventory_error_handler(request: Request, exc: InventoryError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        # malformed bodies and query params report like any other bad input
        err = exc.errors()[0] if exc.errors() else {}
        field = ".".join(str(p) for p in err.get("loc", ())) or None
        message = err.get("msg", "invalid request")
        error = ValidationError(f"{field}: {message}" if field else message, field=field)
        return JSONResponse(status_code=error.status_code, content=error.to_dict())

    # ---------------------------
    # Catalog
    # ---------------------------
    @app.post("/products", status_code=201)
    async def create_product(
        fields: Dict[str, Any] = Body(...), svc: InventoryService = Depends(get_service)
    ):
        return _product_out(await svc.catalog.create(fields))

    @app.get("/products")
    async def list_products(status: str = "all", svc: InventoryService = Depends(get_service)):
        selector = parse_selector(status)
        return [_product_out(p) for p in await svc.products(selector)]

    @app.get("/products/{product_id}")
    async def get_product(product_id: str, svc: InventoryService = Depends(get_service)):
        return _product_out(await svc.catalog.get(product_id))

    @app.patch("/products/{product_id}")
    async def update_product(
        product_id: str,
        fields: Dict[str, Any] = Body(...),
        svc: InventoryService = Depends(get_service),
    ):
        return _product_out(await svc.catalog.update(product_id, fields))

    @app.delete("/products/{product_id}", status_code=204)
    async def delete_product(product_id: str, svc: InventoryService = Depends(get_service)):
        await svc.catalog.delete(product_id)
        return Response(status_code=204)

    @app.get("/products/{product_id}/status")
    async def product_status(product_id: str, svc: InventoryService = Depends(get_service)):
        p = await svc.catalog.get(product_id)
        return {"product_id": p.id, "status": classify(p).value}

    # ---------------------------
    # Stock movements and ledger
    # ---------------------------
    @app.post("/products/{product_id}/transactions", status_code=201)
    async def record_movement(
        product_id: str,
        payload: Dict[str, Any] = Body(...),
        svc: InventoryService = Depends(get_service),
    ):
        result = await svc.engine.apply_movement(
            product_id, payload.get("type"), payload.get("quantity"), payload.get("notes")
        )
        return {
            "product": _product_out(result.product),
            "transaction": result.transaction.model_dump(mode="json"),
        }

    @app.get("/products/{product_id}/transactions")
    async def list_movements(product_id: str, svc: InventoryService = Depends(get_service)):
        return [t.model_dump(mode="json") for t in await svc.ledger.list_for(product_id)]

    @app.get("/products/{product_id}/audit")
    async def audit_product(product_id: str, svc: InventoryService = Depends(get_service)):
        return (await svc.engine.audit(product_id)).model_dump(mode="json")

    # ---------------------------
    # Read-side views
    # ---------------------------
    @app.get("/metrics")
    async def metrics(svc: InventoryService = Depends(get_service)):
        m = await svc.metrics()
        out = m.model_dump(mode="json")
        out["total_value_display"] = format_currency(m.total_value)
        return out

    # ---------------------------
    # Utility: reset (for tests/demo)
    # ---------------------------
    @app.post("/reset")
    async def reset_all(svc: InventoryService = Depends(get_service)):
        svc.reset()
        return {"status": "reset"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.port)
