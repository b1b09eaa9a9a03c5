"""
FastAPI application — the genaichat gateway entry point.
Exposes the completion gateway on its configured route (plus the legacy
Netlify function path) and a health check.
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from genaichat.backends import make_backend
from genaichat.config import get_config, get_model
from genaichat.gateway import Gateway
from genaichat.wiretap import WireLog

LEGACY_ROUTE = "/.netlify/functions/genai"
GATEWAY_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE"]

# ---------------------------------------------------------------------------
# Globals — initialized at startup
# ---------------------------------------------------------------------------
gateway: Gateway | None = None
wire_log: WireLog | None = None


def _setup_logging(cfg: dict):
    log_cfg = cfg.get("logging", {})
    level = getattr(logging, log_cfg.get("level", "INFO").upper(), logging.INFO)
    log_file = log_cfg.get("file")

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=handlers,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle."""
    global gateway, wire_log

    cfg = get_config()
    _setup_logging(cfg)
    logger = logging.getLogger(__name__)

    model = get_model(cfg)
    backend = make_backend(cfg["upstream"], model)
    if not cfg["upstream"].get("api_key"):
        logger.warning("GEMINI_API_KEY is not set; every request will fail with 500")

    wire_cfg = cfg.get("wiretap", {})
    wire_log = WireLog(wire_cfg["path"]) if wire_cfg.get("enabled") else None

    gateway = Gateway(
        backend=backend,
        system_policy=cfg["gateway"].get("system_messages", "drop"),
        wire=wire_log,
    )

    logger.info(
        "genaichat gateway started on %s:%s, route %s, model %s",
        cfg["server"]["host"], cfg["server"]["port"], _gateway_route(), model,
    )
    logger.info("System messages: %s", gateway.system_policy)
    logger.info("Wiretap: %s", wire_cfg["path"] if wire_log else "disabled")

    yield

    if wire_log:
        wire_log.close()
    logger.info("genaichat gateway shut down")


def _gateway_route() -> str:
    return get_config()["gateway"].get("route", "/api/genai")


app = FastAPI(
    title="genaichat",
    description="Stateless chat completion gateway",
    lifespan=lifespan,
)


async def completion(request: Request):
    """
    Gateway endpoint. Registered for every method so non-POST requests get
    the gateway's own 405 body rather than the framework's.
    """
    body = await request.body()
    result = await gateway.handle(request.method, body)
    return JSONResponse(result.body, status_code=result.status_code)


for _path in dict.fromkeys([_gateway_route(), LEGACY_ROUTE]):
    app.add_api_route(_path, completion, methods=GATEWAY_METHODS)


@app.get("/health")
async def health():
    return {
        "status": "ok",
        "model": gateway.backend.model if gateway else None,
        "system_messages": gateway.system_policy if gateway else None,
    }
