"""Streamable HTTP transport entrypoint for the n8n workflow MCP server.

This module provides the main entrypoint for running the MCP server
using SSE over HTTP via uvicorn.
"""

import argparse
import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from mcp.server.sse import SseServerTransport
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Mount, Route

from n8n_workflow_mcp.client import N8nClient
from n8n_workflow_mcp.config import ConfigurationError, Settings, get_settings
from n8n_workflow_mcp.mcp_app import SERVER_NAME, create_mcp_server, setup_mcp_app

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> Starlette:
    """Create the Starlette ASGI application with MCP endpoints.

    Args:
        settings: Settings to use; read from the environment when omitted.

    Returns:
        Configured Starlette application.
    """
    settings = settings or get_settings()
    mcp_server = create_mcp_server()
    client = N8nClient(settings)
    setup_mcp_app(mcp_server, settings, client)

    # Create SSE transport - path is where clients POST messages
    sse_transport = SseServerTransport("/mcp/messages/")

    async def handle_sse(request: Request) -> Response:
        """Handle SSE connections for MCP.

        The MCP SDK needs the raw ASGI send callable, only reachable
        through ``request._send``. Must return Response() to avoid a
        NoneType error on disconnect.
        """
        try:
            async with sse_transport.connect_sse(
                request.scope, request.receive, request._send
            ) as streams:
                await mcp_server.run(
                    streams[0],
                    streams[1],
                    mcp_server.create_initialization_options(),
                )
        except Exception:
            logger.exception("Unhandled exception in SSE handler")
        return Response()

    async def health_check(_request: Request) -> JSONResponse:
        """Health check endpoint.

        Returns:
            JSON response with status.
        """
        return JSONResponse(
            {
                "status": "healthy",
                "service": SERVER_NAME,
                "n8n_url": settings.n8n_url,
            }
        )

    @asynccontextmanager
    async def lifespan(_app: Starlette) -> AsyncIterator[None]:
        """Log startup and close the n8n client on shutdown."""
        logger.info("n8n workflow MCP server starting (HTTP transport)")
        logger.info("Connecting to n8n API at %s", settings.api_base_url)
        try:
            yield
        finally:
            await client.close()
            logger.info("Server shutdown complete")

    # SSE endpoint uses Route with Request, messages uses Mount with ASGI handler
    app = Starlette(
        debug=False,
        routes=[
            Route("/health", health_check, methods=["GET"]),
            Route("/mcp", handle_sse, methods=["GET"]),
            Mount("/mcp/messages/", app=sse_transport.handle_post_message),
        ],
        lifespan=lifespan,
    )

    return app


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Returns:
        Parsed arguments namespace.
    """
    parser = argparse.ArgumentParser(description="n8n workflow MCP server with HTTP transport")
    parser.add_argument(
        "--host",
        type=str,
        default="127.0.0.1",
        help="Host to bind to (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8765,
        help="Port to bind to (default: 8765)",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for development",
    )
    return parser.parse_args(argv)


def main() -> None:
    """Main entrypoint for HTTP transport."""
    args = parse_args()

    # Fail before binding the port if the API key is missing
    try:
        settings = get_settings()
    except (ConfigurationError, ValueError) as e:
        logger.error("%s", e)
        sys.exit(1)

    logging.getLogger().setLevel(settings.log_level)

    logger.info("Starting server on %s:%d", args.host, args.port)

    try:
        uvicorn.run(
            "n8n_workflow_mcp.server_http:create_app",
            host=args.host,
            port=args.port,
            reload=args.reload,
            factory=True,
            log_level="info",
        )
    except KeyboardInterrupt:
        logger.info("Server interrupted by user")
    except Exception as e:
        logger.exception("Server failed: %s", e)
        sys.exit(1)


if __name__ == "__main__":
    main()
