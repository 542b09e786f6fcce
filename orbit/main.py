"""FastAPI application entrypoint."""
import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv

# .env must be loaded before get_settings() is first read; override=True so it wins
# in uvicorn reload workers, which may not inherit the shell env.
load_dotenv(Path(__file__).resolve().parent.parent / ".env", override=True)

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from orbit.api.routes import router
from orbit.core.config import get_settings

logging.basicConfig(level=getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO))
_log = logging.getLogger(__name__)

# Keep HTTP client internals out of the log (they can echo API keys at DEBUG)
for _name in ("httpx", "httpcore", "hpack", "urllib3"):
    logging.getLogger(_name).setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Agent graph is built lazily on the first request (orbit.core.agent.get_agent)
    if get_settings().nvidia_api_key:
        _log.info("Orbit ready: model %s", get_settings().nvidia_model)
    else:
        _log.warning("NVIDIA_API_KEY not set: /api/agent will answer 400 until it is configured.")
    yield


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["POST", "OPTIONS", "GET"],
        allow_headers=["Content-Type"],
    )
    app.include_router(router)
    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run("orbit.main:app", host=settings.host, port=settings.port, reload=settings.reload)
