"""
FastAPI application with streaming for the supervisor chat agent.

Endpoints:
- POST /chat/stream - Newline-delimited JSON streaming turn
- POST /chat/events - SSE streaming turn
- POST /chat - Non-streaming turn
- POST /chat/clear - Reset a thread
- POST /weather - Direct weather lookup
- GET /health - Health check
"""
import json
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field
from sse_starlette.sse import EventSourceResponse

from supervisor_chat.agent import GraphExecutor, create_executor, run_turn, stream_turn
from supervisor_chat.agent.errors import InputError, OrchestrationError, ToolError, TurnInProgressError
from supervisor_chat.agent.stream import encode_ndjson
from supervisor_chat.config import get_settings
from supervisor_chat.tools import get_current_weather, registry


# Request/Response models
class ChatMessage(BaseModel):
    """A message as sent by the chat UI."""
    id: str | None = None
    role: str = "user"
    content: str = ""


class ChatRequest(BaseModel):
    """Turn submission body. The last message is the new user turn."""
    messages: list[ChatMessage] = Field(default_factory=list)
    thread_id: str | None = None


class ClearRequest(BaseModel):
    thread_id: str | None = None


class WeatherRequest(BaseModel):
    city: str | None = None


class ChatResponse(BaseModel):
    """Non-streaming chat response body."""
    id: str
    thread_id: str
    content: str
    invokedAgents: list[str]
    summary: str


def _turn_input(request: ChatRequest) -> tuple[str, str]:
    """Validate a turn submission before it reaches the graph."""
    if not request.thread_id:
        raise HTTPException(status_code=400, detail="thread_id is required")
    if not request.messages or not request.messages[-1].content.strip():
        raise HTTPException(status_code=400, detail="Message content is required")
    return request.thread_id, request.messages[-1].content


def get_executor(request: Request) -> GraphExecutor:
    return request.app.state.executor


def _check_thread_free(executor: GraphExecutor, thread_id: str) -> None:
    if executor.store.is_reserved(thread_id):
        raise HTTPException(status_code=409, detail=f"A turn is already in progress for thread '{thread_id}'")


def create_app(executor: GraphExecutor | None = None) -> FastAPI:
    """
    Build the FastAPI app.

    With no executor the production graph is built in the lifespan handler;
    either way the executor lives on app.state and is started/closed with the
    app.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler."""
        from supervisor_chat.agent.logging import log_warning

        # Startup
        settings = get_settings()
        missing = settings.validate()
        if missing:
            log_warning(f"Missing environment variables: {missing}")
            log_warning("The agents will not function properly without these.")

        app.state.executor = executor if executor is not None else create_executor(settings)
        await app.state.executor.start()

        yield

        # Shutdown
        await app.state.executor.close()

    app = FastAPI(
        title="Supervisor Chat Agent",
        description="Supervisor-routed multi-agent chat: weather, news, persona and summary agents",
        version="1.0.0",
        lifespan=lifespan,
    )

    settings = get_settings()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        missing = get_settings().validate()
        return {
            "status": "healthy" if not missing else "degraded",
            "missing_config": missing,
            "tools": registry.describe(),
        }

    @app.post("/chat/stream")
    async def chat_stream(body: ChatRequest, request: Request):
        """
        Streaming turn endpoint (newline-delimited JSON).

        Frames:
        - {"type": "delta", "id", "role", "content", "metadata": {"isThinking": true}}
        - {"type": "final", "id", "role", "content", "metadata": {"invokedAgents", "summary", "isThinking": false}}
        - {"type": "error", "id", "role", "content": "", "error": {"type", "message"}}
        - {"type": "done", "id"}
        """
        thread_id, content = _turn_input(body)
        executor = get_executor(request)
        _check_thread_free(executor, thread_id)

        async def generate() -> AsyncGenerator[str, None]:
            async for event in stream_turn(executor, thread_id, content):
                yield encode_ndjson(event)

        return StreamingResponse(
            generate(),
            media_type="application/x-ndjson",
            headers={
                "Cache-Control": "no-cache",
                "Connection": "keep-alive",
            },
        )

    @app.post("/chat/events")
    async def chat_events(body: ChatRequest, request: Request):
        """
        SSE streaming turn endpoint.

        Emits the same frames as /chat/stream, with the frame type as the SSE event name.
        """
        thread_id, content = _turn_input(body)
        executor = get_executor(request)
        _check_thread_free(executor, thread_id)

        async def generate() -> AsyncGenerator[dict, None]:
            async for event in stream_turn(executor, thread_id, content):
                yield {
                    "event": event.kind,
                    "data": json.dumps(event.to_frame()),
                }

        return EventSourceResponse(generate())

    @app.post("/chat", response_model=ChatResponse)
    async def chat(body: ChatRequest, request: Request):
        """
        Non-streaming chat endpoint.

        Returns the complete response after the turn is done.
        """
        thread_id, content = _turn_input(body)
        executor = get_executor(request)

        try:
            result = await run_turn(executor, thread_id, content)
        except TurnInProgressError as e:
            raise HTTPException(status_code=409, detail=str(e))
        except InputError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except OrchestrationError as e:
            raise HTTPException(status_code=500, detail=f"{type(e).__name__}: {e}")

        return ChatResponse(
            id=result.message_id,
            thread_id=thread_id,
            content=result.content,
            invokedAgents=result.invoked_agents,
            summary=result.summary,
        )

    @app.post("/chat/clear")
    async def chat_clear(body: ClearRequest, request: Request):
        """Reset a thread's conversation state."""
        if not body.thread_id:
            raise HTTPException(status_code=400, detail="thread_id is required")

        try:
            await get_executor(request).reset_thread(body.thread_id)
        except TurnInProgressError as e:
            raise HTTPException(status_code=409, detail=str(e))

        return {"status": "cleared", "thread_id": body.thread_id}

    @app.post("/weather")
    async def weather(body: WeatherRequest):
        """Direct weather lookup for a city, bypassing the agents."""
        if not body.city or not body.city.strip():
            raise HTTPException(status_code=400, detail="City parameter is required")

        try:
            result = await get_current_weather.ainvoke({"city": body.city})
        except ToolError as e:
            raise HTTPException(status_code=502, detail=str(e))

        return {"success": True, "data": json.loads(result)}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "supervisor_chat.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=True,
    )
