"""FastAPI entry-point for the storefront controller."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

import psutil
from fastapi import FastAPI, HTTPException, Request, WebSocket, WebSocketDisconnect, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel, Field

from .config import Settings, get_settings
from .logging_config import configure_logging
from .models import MenuItemDraft, MotionSample
from .session_manager import StorefrontManager, cart_payload

logger = logging.getLogger(__name__)


class MotionSampleRequest(BaseModel):
    x: Optional[float] = None
    y: Optional[float] = None
    z: Optional[float] = None
    linear: bool = Field(False, description="True when the sample excludes gravity")


class PermissionResultRequest(BaseModel):
    granted: bool


class ItemRequest(BaseModel):
    item_id: str


class QuantityRequest(BaseModel):
    delta: int


class PinDigitRequest(BaseModel):
    digit: str = Field(..., min_length=1, max_length=1)


def _conflict(message: str) -> JSONResponse:
    return JSONResponse({"status": "refused", "message": message}, status_code=status.HTTP_409_CONFLICT)


def create_app(settings: Optional[Settings] = None, manager: Optional[StorefrontManager] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(
        settings.log_level,
        settings.log_directory,
        settings.log_retention_days,
        module_levels=settings.log_module_levels,
    )
    manager = manager or StorefrontManager(settings=settings)

    app = FastAPI(title="storefront-controller", version="0.1.0")
    app.state.manager = manager

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> PlainTextResponse:
        """Catch-all exception handler to prevent application crashes."""
        logger.exception(f"Unhandled exception in {request.url.path}: {exc}")
        return PlainTextResponse(
            f"Internal server error: {str(exc)}",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Handle request validation errors gracefully."""
        logger.warning(f"Validation error in {request.url.path}: {exc}")
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": str(exc)},
        )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.on_event("startup")
    async def on_startup() -> None:
        try:
            await manager.start()
            logger.info("Application started successfully")
        except Exception as e:
            logger.exception(f"Failed to start services: {e}")
            logger.error("Application startup failed - some features may not work")

    @app.on_event("shutdown")
    async def on_shutdown() -> None:
        try:
            await manager.stop()
            logger.info("Application shutdown complete")
        except Exception as e:
            logger.exception(f"Error during shutdown: {e}")

    def _require_owner() -> None:
        if not manager.admin.session.authenticated:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Owner mode is locked")

    # ============================================================
    # Health & debug
    # ============================================================

    @app.get("/healthz")
    async def healthcheck() -> JSONResponse:
        return JSONResponse({"status": "ok", "selection": manager.status.value})

    @app.get("/debug/performance")
    async def debug_performance() -> JSONResponse:
        """Get real-time CPU and memory usage."""
        try:
            cpu_percent = psutil.cpu_percent(interval=0.1)
            memory = psutil.virtual_memory()
            return JSONResponse({
                "cpu_percent": round(cpu_percent, 1),
                "memory_percent": round(memory.percent, 1),
                "memory_used_mb": round(memory.used / (1024 * 1024), 1),
                "memory_total_mb": round(memory.total / (1024 * 1024), 1),
            })
        except Exception as e:
            logger.error(f"Performance monitoring error: {e}")
            return JSONResponse({"error": str(e)}, status_code=500)

    @app.post("/debug/mock-shake")
    async def mock_shake() -> JSONResponse:
        """Feed one strong linear-acceleration sample, as if the device was shaken."""
        threshold = settings.motion.acc_threshold
        await manager.push_sample(
            MotionSample(
                x=threshold * 2,
                y=0.0,
                z=0.0,
                timestamp_ms=manager.clock.monotonic_ms(),
                has_linear_acceleration=True,
            )
        )
        logger.info("🔧 Mock shake injected")
        return JSONResponse({"status": "ok", "selection": manager.status.value})

    # ============================================================
    # Menu & gestures
    # ============================================================

    @app.get("/menu")
    async def menu() -> JSONResponse:
        categories = manager.catalog.categories()
        return JSONResponse({"categories": [category.model_dump() for category in categories]})

    @app.post("/motion/sample")
    async def motion_sample(payload: MotionSampleRequest) -> JSONResponse:
        if payload.x is None or payload.y is None or payload.z is None:
            logger.debug("Motion sample missing axes - ignored")
            return JSONResponse({"status": "ignored"})
        await manager.push_sample(
            MotionSample(
                x=payload.x,
                y=payload.y,
                z=payload.z,
                timestamp_ms=manager.clock.monotonic_ms(),
                has_linear_acceleration=payload.linear,
            )
        )
        return JSONResponse({"status": "ok", "selection": manager.status.value})

    @app.post("/motion/permission/request")
    async def motion_permission_request() -> JSONResponse:
        manager.request_motion_permission()
        return JSONResponse({"status": "pending"}, status_code=status.HTTP_202_ACCEPTED)

    @app.post("/motion/permission")
    async def motion_permission(payload: PermissionResultRequest) -> JSONResponse:
        acknowledged = manager.resolve_motion_permission(payload.granted)
        return JSONResponse({"status": "acknowledged" if acknowledged else "recorded", "granted": payload.granted})

    @app.post("/selection/trigger")
    async def selection_trigger() -> JSONResponse:
        started = await manager.trigger_selection()
        if not started:
            return _conflict("Chef is busy or nothing to choose from")
        return JSONResponse({"status": "started", "selection": manager.status.value})

    @app.post("/activity")
    async def activity() -> JSONResponse:
        await manager.note_activity()
        return JSONResponse({"status": "ok"})

    # ============================================================
    # Detail view
    # ============================================================

    @app.post("/detail/open")
    async def detail_open(payload: ItemRequest) -> JSONResponse:
        if manager.catalog.find(payload.item_id) is None:
            raise HTTPException(status_code=404, detail=f"Unknown item {payload.item_id}")
        item = await manager.open_detail(payload.item_id)
        if item is None:
            return _conflict("Chef is deciding")
        return JSONResponse({"status": "open", "item": item.model_dump()})

    @app.post("/detail/close")
    async def detail_close() -> JSONResponse:
        await manager.close_detail()
        return JSONResponse({"status": "closed"})

    @app.post("/detail/add")
    async def detail_add() -> JSONResponse:
        if not await manager.add_detail_to_order():
            return _conflict("No item open or already added")
        return JSONResponse({"status": "added", **cart_payload(manager.cart.lines, manager.cart.totals)})

    # ============================================================
    # Cart
    # ============================================================

    @app.get("/cart")
    async def cart() -> JSONResponse:
        return JSONResponse(
            {
                **cart_payload(manager.cart.lines, manager.cart.totals),
                "open": manager.drawer.is_open,
                "placed": manager.drawer.placed,
            }
        )

    @app.post("/cart/items")
    async def cart_add(payload: ItemRequest) -> JSONResponse:
        line = await manager.add_to_cart(payload.item_id)
        if line is None:
            raise HTTPException(status_code=404, detail=f"Unknown item {payload.item_id}")
        return JSONResponse(cart_payload(manager.cart.lines, manager.cart.totals))

    @app.post("/cart/items/{item_id}/adjust")
    async def cart_adjust(item_id: str, payload: QuantityRequest) -> JSONResponse:
        await manager.adjust_cart(item_id, payload.delta)
        return JSONResponse(cart_payload(manager.cart.lines, manager.cart.totals))

    @app.post("/cart/open")
    async def cart_open() -> JSONResponse:
        if not await manager.open_cart():
            return _conflict("Chef is deciding")
        return JSONResponse({"status": "open"})

    @app.post("/cart/close")
    async def cart_close() -> JSONResponse:
        await manager.close_cart()
        return JSONResponse({"status": "closed"})

    @app.post("/cart/place-order")
    async def cart_place_order() -> JSONResponse:
        if not await manager.place_order():
            return _conflict("Cart is closed, empty or already placed")
        return JSONResponse({"status": "placed", **cart_payload(manager.cart.lines, manager.cart.totals)})

    # ============================================================
    # Owner mode
    # ============================================================

    @app.post("/admin/prompt")
    async def admin_prompt() -> JSONResponse:
        manager.admin.open_prompt()
        return JSONResponse({"status": "prompt_open"})

    @app.post("/admin/pin")
    async def admin_pin(payload: PinDigitRequest) -> JSONResponse:
        result = await manager.admin.submit_digit(payload.digit)
        session = manager.admin.session
        # Only the filled length is reported; a rejection looks like a reset.
        return JSONResponse(
            {"authenticated": session.authenticated, "entered": len(session.pin_buffer), "rejected": result is False}
        )

    @app.post("/admin/pin/clear")
    async def admin_pin_clear() -> JSONResponse:
        manager.admin.clear_pin()
        return JSONResponse({"entered": 0})

    @app.post("/admin/pin/cancel")
    async def admin_pin_cancel() -> JSONResponse:
        manager.admin.cancel()
        return JSONResponse({"status": "cancelled"})

    @app.post("/admin/logout")
    async def admin_logout() -> JSONResponse:
        manager.admin.logout()
        return JSONResponse({"status": "locked"})

    @app.get("/admin/items")
    async def admin_items() -> JSONResponse:
        _require_owner()
        return JSONResponse({"items": [item.model_dump() for item in manager.admin.custom_items]})

    @app.post("/admin/items", status_code=status.HTTP_201_CREATED)
    async def admin_add_item(draft: MenuItemDraft) -> JSONResponse:
        _require_owner()
        item = manager.admin.add_item(draft)
        return JSONResponse(item.model_dump(), status_code=status.HTTP_201_CREATED)

    @app.put("/admin/items/{item_id}")
    async def admin_update_item(item_id: str, draft: MenuItemDraft) -> JSONResponse:
        _require_owner()
        item = manager.admin.update_item(item_id, draft)
        if item is None:
            raise HTTPException(status_code=404, detail=f"Unknown special {item_id}")
        return JSONResponse(item.model_dump())

    @app.delete("/admin/items/{item_id}")
    async def admin_delete_item(item_id: str) -> JSONResponse:
        _require_owner()
        if not manager.admin.delete_item(item_id):
            raise HTTPException(status_code=404, detail=f"Unknown special {item_id}")
        return JSONResponse({"status": "deleted", "id": item_id})

    # ============================================================
    # UI event stream
    # ============================================================

    @app.websocket("/ws/ui")
    async def ui_socket(ws: WebSocket) -> None:
        await ws.accept()
        queue = manager.register_ui()
        try:
            while True:
                try:
                    event = await queue.get()
                except asyncio.CancelledError:
                    break  # Clean shutdown

                payload: Dict[str, Any] = {
                    "type": event.type,
                    "status": event.status.value,
                    "data": event.data,
                }
                if event.error:
                    payload["error"] = event.error

                try:
                    await ws.send_json(payload)
                except Exception as e:
                    logger.debug(f"WebSocket send failed (client disconnected): {e}")
                    break
        except WebSocketDisconnect:
            pass
        except asyncio.CancelledError:
            pass  # Clean shutdown
        except Exception as e:
            logger.error(f"Unexpected error in UI websocket: {e}")
        finally:
            manager.unregister_ui(queue)
            try:
                await ws.close()
            except Exception:
                pass

    return app


app = create_app()

__all__: List[str] = ["app", "create_app"]
