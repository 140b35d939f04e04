"""Front-end relay for the document API

Serves the static web page and proxies `/api/*` to the API Gateway endpoint,
injecting the API key so it never reaches the browser.

Run with:
    python -m webapp.server
"""

import logging
import os
import sys
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import httpx
import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from apis.shared.errors import ConfigurationError

logger = logging.getLogger(__name__)

PUBLIC_DIR = Path(__file__).resolve().parent / "public"

REQUIRED_ENV_VARS = ("API_ENDPOINT", "API_KEY")

# Methods whose request body is forwarded upstream
BODY_METHODS = {"POST", "PUT", "PATCH"}

# Client headers that must not be copied onto the upstream request
_DROPPED_HEADERS = {"host", "content-length", "connection", "accept-encoding", "x-api-key"}

PROXY_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True)
class RelaySettings:
    """Relay configuration sourced from environment variables."""

    api_endpoint: str
    api_key: str
    environment: str = "development"
    port: int = 3000
    public_dir: Path = PUBLIC_DIR

    @classmethod
    def from_env(cls) -> "RelaySettings":
        """
        Load settings from the environment (and a .env file if present).

        Raises:
            ConfigurationError: If API_ENDPOINT or API_KEY is missing
        """
        load_dotenv()

        missing = [name for name in REQUIRED_ENV_VARS if not os.getenv(name)]
        if missing:
            raise ConfigurationError(
                f"Missing required environment variables: {', '.join(missing)}"
            )

        return cls(
            api_endpoint=os.environ["API_ENDPOINT"].rstrip("/"),
            api_key=os.environ["API_KEY"],
            environment=os.getenv("ENVIRONMENT", "development"),
            port=int(os.getenv("PORT", "3000")),
        )


def create_app(
    settings: RelaySettings,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """
    Build the relay application.

    Args:
        settings: Relay configuration
        transport: Optional httpx transport for the upstream client

    Returns:
        Configured FastAPI application
    """

    @asynccontextmanager
    async def lifespan(application: FastAPI):
        application.state.http_client = httpx.AsyncClient(
            transport=transport,
            timeout=PROXY_TIMEOUT_SECONDS,
        )
        logger.info(f"Relay started - Environment: {settings.environment}, API Endpoint: {settings.api_endpoint}")

        yield

        await application.state.http_client.aclose()
        logger.info("Relay stopped, HTTP client closed")

    application = FastAPI(title="Document Relay", version="0.1.0", lifespan=lifespan)

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @application.get("/health")
    async def health():
        """Report the configured upstream and environment"""
        return {
            "statusCode": 200,
            "message": "ok",
            "api_endpoint": settings.api_endpoint,
            "environment": settings.environment,
        }

    @application.api_route(
        "/api/{path:path}",
        methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    )
    async def proxy(path: str, request: Request):
        """Forward a request to the document API with the API key attached"""
        target_url = f"{settings.api_endpoint}/{path}"
        logger.info(f"Proxying request: {request.method} {request.url.path} -> {target_url}")

        headers = {
            name: value
            for name, value in request.headers.items()
            if name.lower() not in _DROPPED_HEADERS
        }
        headers["content-type"] = "application/json"
        headers["x-api-key"] = settings.api_key

        body = await request.body() if request.method in BODY_METHODS else None

        try:
            client: httpx.AsyncClient = request.app.state.http_client
            response = await client.request(
                request.method,
                target_url,
                params=request.query_params.multi_items(),
                headers=headers,
                content=body,
            )
            data = response.json()
        except Exception as e:
            logger.error(f"API proxy error: {e}", exc_info=True)
            return JSONResponse(
                status_code=500,
                content={"error": "Failed to proxy request to API"},
            )

        return JSONResponse(status_code=response.status_code, content=data)

    # Static files last so /health and /api take precedence
    application.mount(
        "/",
        StaticFiles(directory=str(settings.public_dir), html=True),
        name="static",
    )

    return application


def main() -> None:
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())

    try:
        settings = RelaySettings.from_env()
    except ConfigurationError as e:
        logger.error(f"Error: {e}")
        logger.error("Please create a .env file with the required variables.")
        sys.exit(1)

    logger.info(f"Server is running on port {settings.port}")
    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    main()
