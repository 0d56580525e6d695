"""
llmstreamer - WebSocket Bridge Server

FastAPI app that relays a chat stream to a browser over a WebSocket.

Protocol on /ws:
- Each text frame from the client is a user message; the connection
  keeps the conversation history
- Content fragments are sent back as text frames as they arrive
- `[DONE]` follows a finished reply, which is appended to the history
- `[ERROR] <message>` reports an error
- Closing the socket cancels the in-flight stream

Also serves /health and /metrics (Prometheus).
"""

import asyncio
import os
from contextlib import asynccontextmanager
from typing import Callable, List, Optional

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import Response

from .client import ChatStreamer
from .config import get_bridge_provider
from .core.models import Message, StreamCallbacks
from .observability.logging import get_logger


logger = get_logger(__name__)

DONE_FRAME = "[DONE]"
ERROR_FRAME_PREFIX = "[ERROR] "

StreamerFactory = Callable[[], ChatStreamer]


def default_streamer_factory() -> ChatStreamer:
    """Streamer for LLMSTREAMER_PROVIDER, configured from the environment."""
    return ChatStreamer.from_env(get_bridge_provider())


def make_bridge_callbacks(websocket: WebSocket, history: List[Message]) -> StreamCallbacks:
    """Callbacks that forward one stream to `websocket`."""

    async def on_content(text: str):
        await websocket.send_text(text)

    async def on_finish(full_text: str):
        history.append(Message.assistant(full_text))
        await websocket.send_text(DONE_FRAME)

    async def on_error(error: Exception):
        await websocket.send_text(f"{ERROR_FRAME_PREFIX}{error}")

    return StreamCallbacks(on_content=on_content, on_finish=on_finish, on_error=on_error)


async def _stop_stream(task: Optional[asyncio.Task]) -> None:
    """Cancel a stream task if it is still running and collect its result."""
    if task is None:
        return
    if not task.done():
        task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass
    except (WebSocketDisconnect, RuntimeError) as e:
        # The socket went away while a callback was writing to it
        logger.info("Stream ended with closed socket", error=str(e))


def create_app(streamer_factory: Optional[StreamerFactory] = None) -> FastAPI:
    """
    Build the bridge application.

    Args:
        streamer_factory: Returns the ChatStreamer to relay. Called once at
            startup; defaults to `default_streamer_factory`.
    """
    factory = streamer_factory or default_streamer_factory

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        streamer = factory()
        app.state.streamer = streamer
        logger.info("llmstreamer bridge ready", provider=streamer.provider)

        yield

        await streamer.close()
        logger.info("llmstreamer bridge stopped")

    app = FastAPI(
        title="llmstreamer",
        description="Relay streaming chat completions over a WebSocket",
        version="0.1.0",
        lifespan=lifespan,
    )

    # ============================================================
    # Routes
    # ============================================================

    @app.get("/health")
    async def health():
        return {"status": "ok", "provider": app.state.streamer.provider}

    @app.get("/metrics")
    async def metrics():
        payload, content_type = app.state.streamer.metrics.export()
        return Response(content=payload, media_type=content_type)

    @app.websocket("/ws")
    async def chat_socket(websocket: WebSocket):
        await websocket.accept()
        streamer: ChatStreamer = app.state.streamer

        history: List[Message] = []
        callbacks = make_bridge_callbacks(websocket, history)
        pending: Optional[asyncio.Task] = None

        try:
            while True:
                text = await websocket.receive_text()

                # One stream at a time keeps the history in order
                if pending is not None and not pending.done():
                    await pending

                history.append(Message.user(text))
                pending = asyncio.create_task(streamer.stream_chat(list(history), callbacks))
        except WebSocketDisconnect:
            logger.info("Client disconnected", turns=len(history))
        finally:
            await _stop_stream(pending)

    return app


def main():
    import uvicorn

    uvicorn.run(
        create_app(),
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8080")),
    )


if __name__ == "__main__":
    main()
