import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Literal, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, StreamingResponse
from langchain_core.messages import AIMessage
from langgraph.errors import GraphRecursionError
from pydantic import BaseModel, Field

from app.agent import build_agent, recursion_limit, render_system_prompt
from app.config import MODEL_API_KEY_VARS, get_model_api_key
from app.middleware.event_collector import get_events, reset_events
from app.tools.external.reference_data import ReferenceDataError, fetch_reference_data
from app.utils import describe_error, extract_text

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
)
logger = logging.getLogger(__name__)

MODEL_NODE = "model"
EMPTY_REPLY = "Sorry, I couldn't put together an answer just now. Could you rephrase your question?"
BROKEN_STREAM_REPLY = "\n\nSorry, something went wrong while answering. Please try again."


@asynccontextmanager
async def lifespan(_app: FastAPI):
    logger.info("Ithaka travel assistant service started")
    yield
    logger.info("Ithaka travel assistant service shutting down")


app = FastAPI(title="Ithaka Travel Assistant", lifespan=lifespan)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    logger.info("%s %s", request.method, request.url.path)
    start = time.time()
    response = await call_next(request)
    duration_ms = (time.time() - start) * 1000
    logger.info("%s %s completed %d in %.2fms", request.method, request.url.path, response.status_code, duration_ms)
    return response


def error_response(status_code: int, error: str, details: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": error, "details": details})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    problems = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        problems.append(f"{field or 'body'}: {err.get('msg', 'invalid value')}")
    return error_response(422, "Invalid chat request", "; ".join(problems))


@app.get("/health")
async def health():
    return {"status": "ok"}


class Message(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    messages: List[Message] = Field(..., min_length=1)


async def stream_agent_text(agent, messages: list[dict]) -> AsyncIterator[str]:
    """Yield the text the model produces, token chunk by token chunk."""
    config = {"recursion_limit": recursion_limit()}
    try:
        async for chunk, metadata in agent.astream({"messages": messages}, config=config, stream_mode="messages"):
            if metadata.get("langgraph_node") != MODEL_NODE or not isinstance(chunk, AIMessage):
                continue
            text = extract_text(chunk.content)
            if text:
                yield text
    except GraphRecursionError:
        logger.warning("Agent reached the recursion limit; ending the turn with the text produced so far")


async def _first_chunk(stream: AsyncIterator[str]) -> Optional[str]:
    try:
        return await stream.__anext__()
    except StopAsyncIteration:
        return None


async def _relay(first: Optional[str], stream: AsyncIterator[str]) -> AsyncIterator[str]:
    try:
        if first is None:
            yield EMPTY_REPLY
            return
        yield first
        async for text in stream:
            yield text
    except Exception:
        logger.exception("Chat stream failed after the response started")
        yield BROKEN_STREAM_REPLY
    finally:
        events = get_events()
        if events:
            logger.info("Chat turn events: %s", events)


@app.post("/api/chat")
async def chat(req: ChatRequest):
    api_key = get_model_api_key()
    if not api_key:
        logger.error("Chat request rejected: no model provider API key configured")
        return error_response(
            500,
            "Model provider API key not configured",
            f"Set one of {', '.join(MODEL_API_KEY_VARS)} on the server.",
        )

    reset_events()
    logger.info("Chat turn with %d message(s)", len(req.messages))

    try:
        reference = await fetch_reference_data()
    except ReferenceDataError as e:
        logger.warning("Could not load reference data: %s", e)
        return error_response(502, "Failed to load travel data", describe_error(e))

    messages = [m.model_dump() for m in req.messages]
    try:
        agent = build_agent(render_system_prompt(reference), api_key=api_key)
        stream = stream_agent_text(agent, messages)
        first = await _first_chunk(stream)
    except Exception as e:
        logger.exception("Agent invocation failed")
        return error_response(500, "Internal server error", describe_error(e))

    return StreamingResponse(_relay(first, stream), media_type="text/plain; charset=utf-8")
