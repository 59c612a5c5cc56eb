"""ASGI application for Larder."""

from __future__ import annotations

import logging
from time import perf_counter
from typing import Any, Optional
from uuid import uuid4

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from larder import __version__, metrics
from larder.config import Settings, get_settings
from larder.db.sql_gateway import SqlPersistenceGateway
from larder.engine.facade import LarderEngine
from larder.errors import LarderError, NameConflictError
from larder.logging_utils import configure_logging as configure_app_logging
from larder.models.activity import ActivityLogEntry
from larder.models.exchange import ExportPayload, ImportPayload
from larder.models.inventory import InventoryCategory, InventoryItem
from larder.models.shopping import ShoppingListItem, ShoppingState
from larder.models.taxonomy import CustomSubcategory, ResolvedSubcategory
from larder.server import deps

logger = logging.getLogger(__name__)


def _configure_logging(settings: Settings) -> None:
    configure_app_logging(settings.log_level, settings.log_format, [settings.api_token or ""])


def _not_found(what: str, ref: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{what} {ref} not found")


def _rejected(engine: LarderEngine, action: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail=f"Cannot {action} while shopping state is {engine.shopping_state.value}",
    )


def _shopping_view(engine: LarderEngine) -> "ShoppingView":
    return ShoppingView(state=engine.shopping_state, items=engine.shopping_list())


def create_app(engine: Optional[LarderEngine] = None) -> FastAPI:
    """Create and configure a FastAPI application instance."""

    settings = get_settings()
    _configure_logging(settings)

    application = FastAPI(title="Larder Household Inventory", version=__version__)
    application.state.engine = engine or LarderEngine(SqlPersistenceGateway(), settings)
    logger.debug("Application created with log level %s", settings.log_level)

    if settings.log_requests:
        access_logger = logging.getLogger("larder.access")

        @application.middleware("http")
        async def log_request_response(request: Request, call_next):
            """Log request/response details without leaking sensitive data."""

            request_id = request.headers.get("X-Request-ID") or uuid4().hex
            request.state.request_id = request_id
            start = perf_counter()
            path = request.url.path
            method = request.method
            try:
                response: Response = await call_next(request)
            except Exception:
                duration_ms = (perf_counter() - start) * 1000
                access_logger.exception(
                    "HTTP %s %s status=500 duration_ms=%.2f",
                    method,
                    path,
                    duration_ms,
                    extra={"request_id": request_id},
                )
                metrics.REQUEST_COUNT.labels(method=method, path=path, status="500").inc()
                metrics.REQUEST_LATENCY.labels(method=method, path=path).observe(
                    duration_ms / 1000.0
                )
                raise

            duration_ms = (perf_counter() - start) * 1000
            response.headers.setdefault("X-Request-ID", request_id)
            access_logger.info(
                "HTTP %s %s status=%s duration_ms=%.2f",
                method,
                path,
                response.status_code,
                duration_ms,
                extra={"request_id": request_id},
            )
            metrics.REQUEST_COUNT.labels(
                method=method,
                path=path,
                status=str(response.status_code),
            ).inc()
            metrics.REQUEST_LATENCY.labels(method=method, path=path).observe(duration_ms / 1000.0)
            return response

    @application.exception_handler(LarderError)
    async def engine_error_handler(request: Request, exc: LarderError):
        content: dict[str, Any] = {"detail": str(exc)}
        if isinstance(exc, NameConflictError):
            content["location"] = exc.location
        logger.info("Rejected %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=status.HTTP_409_CONFLICT, content=content)

    @application.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.warning(
            "Validation error on %s %s: %s", request.method, request.url.path, exc.errors()
        )
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "detail": [
                    {"loc": list(err.get("loc", ())), "msg": err.get("msg")} for err in exc.errors()
                ]
            },
        )

    # Inventory ---------------------------------------------------------------

    @application.get("/inventory", response_model=list[InventoryItem], summary="List inventory")
    async def inventory_list(
        category: Optional[InventoryCategory] = None,
        subcategory: Optional[str] = None,
        include_hidden: bool = False,
        engine: LarderEngine = Depends(deps.get_engine),
    ) -> list[InventoryItem]:
        if subcategory is not None:
            return engine.items_for_subcategory(subcategory)
        if category is not None:
            return engine.items_for_category(category)
        return engine.items() if include_hidden else engine.visible_items()

    @application.post(
        "/inventory",
        response_model=InventoryItem,
        status_code=status.HTTP_201_CREATED,
        summary="Create inventory item",
    )
    async def inventory_create(
        payload: InventoryCreateRequest,
        auth: None = Depends(deps.require_api_token),
        engine: LarderEngine = Depends(deps.get_engine),
    ) -> InventoryItem:
        return await engine.add_item(payload.name, payload.subcategory, quantity=payload.quantity)

    @application.patch("/inventory/{item_id}", response_model=InventoryItem, summary="Update item")
    async def inventory_update(
        item_id: str,
        payload: InventoryUpdateRequest,
        auth: None = Depends(deps.require_api_token),
        engine: LarderEngine = Depends(deps.get_engine),
    ) -> InventoryItem:
        if engine.get_item(item_id) is None:
            raise _not_found("Item", item_id)
        if payload.name is not None:
            await engine.rename_item(item_id, payload.name)
        if payload.quantity is not None:
            await engine.update_quantity(item_id, payload.quantity)
        item = engine.get_item(item_id)
        if item is None:
            raise _not_found("Item", item_id)
        return item

    @application.delete(
        "/inventory/{item_id}",
        status_code=status.HTTP_204_NO_CONTENT,
        summary="Delete inventory item",
    )
    async def inventory_delete(
        item_id: str,
        auth: None = Depends(deps.require_api_token),
        engine: LarderEngine = Depends(deps.get_engine),
    ) -> Response:
        if not await engine.remove_item(item_id):
            raise _not_found("Item", item_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @application.post("/inventory/{item_id}/restock", response_model=InventoryItem)
    async def inventory_restock(
        item_id: str,
        auth: None = Depends(deps.require_api_token),
        engine: LarderEngine = Depends(deps.get_engine),
    ) -> InventoryItem:
        item = await engine.restock_item(item_id)
        if item is None:
            raise _not_found("Item", item_id)
        return item

    @application.post("/inventory/{item_id}/toggle-ignore", response_model=InventoryItem)
    async def inventory_toggle_ignore(
        item_id: str,
        auth: None = Depends(deps.require_api_token),
        engine: LarderEngine = Depends(deps.get_engine),
    ) -> InventoryItem:
        item = await engine.toggle_ignore(item_id)
        if item is None:
            raise _not_found("Item", item_id)
        return item

    @application.post("/inventory/order", summary="Apply manual item ordering")
    async def inventory_order(
        payload: ItemOrderRequest,
        auth: None = Depends(deps.require_api_token),
        engine: LarderEngine = Depends(deps.get_engine),
    ) -> dict[str, bool]:
        return {"changed": await engine.update_item_order(payload.updates)}

    # Subcategories -----------------------------------------------------------

    @application.get(
        "/subcategories",
        response_model=list[ResolvedSubcategory],
        summary="List visible subcategories in display order",
    )
    async def subcategory_list(
        category: Optional[InventoryCategory] = None,
        engine: LarderEngine = Depends(deps.get_engine),
    ) -> list[ResolvedSubcategory]:
        categories = [category] if category is not None else engine.categories()
        resolved: list[ResolvedSubcategory] = []
        for entry in categories:
            for name in engine.subcategories_for_category(entry):
                config = engine.subcategory_config(name)
                if config is not None:
                    resolved.append(config)
        return resolved

    @application.post(
        "/subcategories",
        response_model=CustomSubcategory,
        status_code=status.HTTP_201_CREATED,
        summary="Create custom subcategory",
    )
    async def subcategory_create(
        payload: SubcategoryCreateRequest,
        auth: None = Depends(deps.require_api_token),
        engine: LarderEngine = Depends(deps.get_engine),
    ) -> CustomSubcategory:
        return await engine.add_custom_subcategory(
            payload.name, payload.category, icon=payload.icon, color=payload.color
        )

    @application.put("/subcategories/order/{category}", response_model=list[str])
    async def subcategory_order(
        category: InventoryCategory,
        payload: SubcategoryOrderRequest,
        auth: None = Depends(deps.require_api_token),
        engine: LarderEngine = Depends(deps.get_engine),
    ) -> list[str]:
        await engine.update_subcategory_order(category, payload.names)
        return engine.subcategories_for_category(category)

    @application.put("/subcategories/{custom_id}", response_model=CustomSubcategory)
    async def subcategory_update(
        custom_id: str,
        payload: SubcategoryUpdateRequest,
        auth: None = Depends(deps.require_api_token),
        engine: LarderEngine = Depends(deps.get_engine),
    ) -> CustomSubcategory:
        updated = await engine.update_subcategory(custom_id, payload.name, payload.icon, payload.color)
        if updated is None:
            raise _not_found("Subcategory", custom_id)
        return updated

    @application.delete("/subcategories/{ref}", summary="Remove subcategory and its items")
    async def subcategory_delete(
        ref: str,
        auth: None = Depends(deps.require_api_token),
        engine: LarderEngine = Depends(deps.get_engine),
    ) -> dict[str, int]:
        if engine.subcategory_config(ref) is None:
            raise _not_found("Subcategory", ref)
        removed = await engine.remove_subcategory(ref)
        return {"removedItems": len(removed)}

    @application.post(
        "/subcategories/promote",
        response_model=CustomSubcategory,
        status_code=status.HTTP_201_CREATED,
        summary="Convert a built-in subcategory into a custom one",
    )
    async def subcategory_promote(
        payload: PromoteRequest,
        auth: None = Depends(deps.require_api_token),
        engine: LarderEngine = Depends(deps.get_engine),
    ) -> CustomSubcategory:
        custom = await engine.promote_subcategory(
            payload.builtin_name, payload.new_name, payload.icon, payload.color, payload.category
        )
        if custom is None:
            raise _not_found("Built-in subcategory", payload.builtin_name)
        return custom

    # Shopping ----------------------------------------------------------------

    @application.get("/shopping", response_model=ShoppingView, summary="Current shopping list")
    async def shopping_get(engine: LarderEngine = Depends(deps.get_engine)) -> ShoppingView:
        return _shopping_view(engine)

    @application.post("/shopping/generate", response_model=ShoppingView)
    async def shopping_generate(
        auth: None = Depends(deps.require_api_token),
        engine: LarderEngine = Depends(deps.get_engine),
    ) -> ShoppingView:
        if not await engine.generate_shopping_list():
            raise _rejected(engine, "generate a list")
        return _shopping_view(engine)

    @application.post("/shopping/finalize", response_model=ShoppingView)
    async def shopping_finalize(
        auth: None = Depends(deps.require_api_token),
        engine: LarderEngine = Depends(deps.get_engine),
    ) -> ShoppingView:
        if not await engine.finalize_shopping_list():
            raise _rejected(engine, "finalize the list")
        return _shopping_view(engine)

    @application.post("/shopping/start", response_model=ShoppingView)
    async def shopping_start(
        auth: None = Depends(deps.require_api_token),
        engine: LarderEngine = Depends(deps.get_engine),
    ) -> ShoppingView:
        if not await engine.start_shopping():
            raise _rejected(engine, "start shopping")
        return _shopping_view(engine)

    @application.post("/shopping/complete", response_model=CompletionView)
    async def shopping_complete(
        auth: None = Depends(deps.require_api_token),
        engine: LarderEngine = Depends(deps.get_engine),
    ) -> CompletionView:
        restocked = await engine.complete_shopping()
        if restocked is None:
            raise _rejected(engine, "complete shopping")
        return CompletionView(state=engine.shopping_state, restocked=restocked)

    @application.post("/shopping/cancel", response_model=ShoppingView)
    async def shopping_cancel(
        auth: None = Depends(deps.require_api_token),
        engine: LarderEngine = Depends(deps.get_engine),
    ) -> ShoppingView:
        if not await engine.cancel_shopping():
            raise _rejected(engine, "cancel")
        return _shopping_view(engine)

    @application.post("/shopping/items", response_model=ShoppingView)
    async def shopping_add_item(
        payload: ShoppingAddRequest,
        auth: None = Depends(deps.require_api_token),
        engine: LarderEngine = Depends(deps.get_engine),
    ) -> ShoppingView:
        if not await engine.add_item_to_shopping_list(payload.inventory_item_id):
            raise _rejected(engine, "add this item")
        return _shopping_view(engine)

    @application.post("/shopping/ignored", response_model=ShoppingView)
    async def shopping_add_ignored(
        auth: None = Depends(deps.require_api_token),
        engine: LarderEngine = Depends(deps.get_engine),
    ) -> ShoppingView:
        await engine.add_ignored_items_to_shopping_list()
        return _shopping_view(engine)

    @application.post("/shopping/misc", response_model=ShoppingView)
    async def shopping_add_misc(
        payload: ShoppingMiscRequest,
        auth: None = Depends(deps.require_api_token),
        engine: LarderEngine = Depends(deps.get_engine),
    ) -> ShoppingView:
        if not await engine.add_misc_to_shopping_list(payload.name):
            raise _rejected(engine, "add this item")
        return _shopping_view(engine)

    @application.delete("/shopping/items/{shopping_item_id}", response_model=ShoppingView)
    async def shopping_remove_item(
        shopping_item_id: str,
        auth: None = Depends(deps.require_api_token),
        engine: LarderEngine = Depends(deps.get_engine),
    ) -> ShoppingView:
        if not await engine.remove_from_shopping_list(shopping_item_id):
            raise _rejected(engine, "remove this item")
        return _shopping_view(engine)

    @application.post("/shopping/items/{shopping_item_id}/toggle", response_model=ShoppingView)
    async def shopping_toggle_item(
        shopping_item_id: str,
        auth: None = Depends(deps.require_api_token),
        engine: LarderEngine = Depends(deps.get_engine),
    ) -> ShoppingView:
        if not await engine.toggle_shopping_item(shopping_item_id):
            raise _rejected(engine, "check this item")
        return _shopping_view(engine)

    # Activity ----------------------------------------------------------------

    @application.get("/activity", response_model=list[ActivityLogEntry], summary="Activity log")
    async def activity_list(engine: LarderEngine = Depends(deps.get_engine)) -> list[ActivityLogEntry]:
        return engine.activity_log()

    @application.post("/activity/{log_id}/undo", summary="Undo an activity entry")
    async def activity_undo(
        log_id: str,
        auth: None = Depends(deps.require_api_token),
        engine: LarderEngine = Depends(deps.get_engine),
    ) -> dict[str, bool]:
        if not await engine.undo(log_id):
            raise _not_found("Undoable activity", log_id)
        return {"undone": True}

    @application.delete("/activity", status_code=status.HTTP_204_NO_CONTENT)
    async def activity_clear(
        auth: None = Depends(deps.require_api_token),
        engine: LarderEngine = Depends(deps.get_engine),
    ) -> Response:
        await engine.clear_activity()
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    # Data --------------------------------------------------------------------

    @application.get("/insights", summary="Inventory health summary")
    async def insights(engine: LarderEngine = Depends(deps.get_engine)) -> dict[str, Any]:
        report = engine.insights
        summary = report.summary()
        summary["items_needing_attention"] = [item.name for item in report.items_needing_attention()]
        summary["stale_items"] = [item.name for item in report.stale_items()]
        return summary

    @application.get("/export", response_model=ExportPayload, summary="Export user data")
    async def export_data(
        auth: None = Depends(deps.require_api_token),
        engine: LarderEngine = Depends(deps.get_engine),
    ) -> ExportPayload:
        return engine.export_data()

    @application.post("/import", response_model=ShoppingView, summary="Import user data")
    async def import_data(
        payload: ImportPayload,
        auth: None = Depends(deps.require_api_token),
        engine: LarderEngine = Depends(deps.get_engine),
    ) -> ShoppingView:
        await engine.import_data(payload)
        return _shopping_view(engine)

    @application.get("/metrics", include_in_schema=False)
    def metrics_endpoint() -> Response:
        payload = generate_latest()
        return Response(content=payload, media_type=CONTENT_TYPE_LATEST)

    @application.get("/healthz", include_in_schema=False)
    async def healthz(engine: LarderEngine = Depends(deps.get_engine)) -> dict[str, Any]:
        return {
            "status": "ok" if not engine.pending_tables else "degraded",
            "version": __version__,
            "pendingTables": engine.pending_tables,
        }

    return application


class _ApiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)


class InventoryCreateRequest(_ApiModel):
    name: str = Field(..., min_length=1, max_length=255)
    subcategory: str = Field(..., min_length=1)
    quantity: float = Field(default=0.0)


class InventoryUpdateRequest(_ApiModel):
    name: Optional[str] = Field(default=None, max_length=255)
    quantity: Optional[float] = Field(default=None)


class ItemOrderRequest(_ApiModel):
    updates: dict[str, int]


class SubcategoryCreateRequest(_ApiModel):
    name: str = Field(..., max_length=255)
    category: InventoryCategory
    icon: Optional[str] = None
    color: Optional[str] = None


class SubcategoryUpdateRequest(_ApiModel):
    name: str = Field(..., max_length=255)
    icon: str
    color: str


class SubcategoryOrderRequest(_ApiModel):
    names: list[str]


class PromoteRequest(_ApiModel):
    builtin_name: str
    new_name: str = Field(..., max_length=255)
    icon: str
    color: str
    category: InventoryCategory


class ShoppingAddRequest(_ApiModel):
    inventory_item_id: str


class ShoppingMiscRequest(_ApiModel):
    name: str = Field(..., max_length=255)


class ShoppingView(_ApiModel):
    state: ShoppingState
    items: list[ShoppingListItem]


class CompletionView(_ApiModel):
    state: ShoppingState
    restocked: list[InventoryItem]


app = create_app()

__all__ = ["app", "create_app"]
