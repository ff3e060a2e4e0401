import asyncio
import json
import logging
from collections.abc import AsyncGenerator

from fastapi import APIRouter, Request, WebSocket
from fastapi.responses import JSONResponse, StreamingResponse
from starlette.concurrency import run_in_threadpool

from modules.snapshot.adapters.rpc.dispatcher import JsonRpcDispatcher, parse_error_response

logger = logging.getLogger(__name__)

router = APIRouter(tags=["rpc"])


def _sse_frame(event_type: str, payload: dict) -> str:
    return f"event: {event_type}\ndata: {json.dumps(payload)}\n\n"


@router.post("/jsonrpc")
async def jsonrpc(request: Request) -> JSONResponse:
    dispatcher: JsonRpcDispatcher = request.app.state.dispatcher
    try:
        message = json.loads(await request.body())
    except (json.JSONDecodeError, UnicodeDecodeError):
        return JSONResponse(parse_error_response())
    response = await run_in_threadpool(dispatcher.handle, message)
    return JSONResponse(response)


@router.websocket("/ws")
async def jsonrpc_ws(websocket: WebSocket) -> None:
    dispatcher: JsonRpcDispatcher = websocket.app.state.dispatcher
    await websocket.accept()
    logger.info("websocket client connected")
    while True:
        frame = await websocket.receive()
        if frame["type"] == "websocket.disconnect":
            logger.info("websocket client disconnected")
            return
        # Clients may send the request as a text or a binary frame.
        raw = frame.get("text")
        try:
            if raw is None:
                raw = (frame.get("bytes") or b"").decode("utf-8")
            message = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError):
            await websocket.send_json(parse_error_response())
            continue
        response = await run_in_threadpool(dispatcher.handle, message)
        await websocket.send_json(response)


@router.get("/mcp-sse")
async def mcp_sse(request: Request) -> StreamingResponse:
    broker = request.app.state.broker
    keepalive_seconds: float = request.app.state.sse_keepalive_seconds

    async def event_generator() -> AsyncGenerator[str, None]:
        queue = broker.subscribe()
        try:
            yield _sse_frame("connected", {"endpoint": "/jsonrpc", "websocket": "/ws"})
            while True:
                if await request.is_disconnected():
                    break
                try:
                    message = await asyncio.wait_for(queue.get(), timeout=keepalive_seconds)
                except TimeoutError:
                    yield ": keep-alive\n\n"
                    continue
                yield _sse_frame("message", message)
        finally:
            broker.unsubscribe(queue)

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
