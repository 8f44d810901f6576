"""
Entry point for running the route orchestrator HTTP server.

Usage:
    route-orchestrator                          # HTTP server on the configured port
    route-orchestrator --host 0.0.0.0 --port 9000
"""

import argparse
import sys

from dotenv import load_dotenv

from route_orchestrator.config import get_config
from route_orchestrator.logging_config import setup_logging


def main() -> None:
    """Start the route orchestrator HTTP server.

    Loads ``.env``, configures structured logging, then serves the FastAPI
    application with uvicorn.
    """
    load_dotenv()

    parser = argparse.ArgumentParser(
        description="Route Orchestrator -- route lifecycle operations over HTTP.",
    )
    parser.add_argument(
        "--host",
        type=str,
        default=None,
        help="Host to bind the HTTP server to (overrides ROUTES_HTTP_HOST).",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port for the HTTP server (overrides ROUTES_HTTP_PORT).",
    )

    args = parser.parse_args()

    config = get_config()
    setup_logging(level=config.log_level, log_dir=config.log_dir or None)

    _run_http(
        host=args.host or config.http_host,
        port=args.port or config.http_port,
    )


def _run_http(host: str, port: int) -> None:
    """Start the FastAPI HTTP server with uvicorn.

    Args:
        host: Host to bind to.
        port: Port to listen on.
    """
    try:
        import uvicorn
    except ImportError:
        print(
            "ERROR: uvicorn is required to serve the API. "
            "Install it with: pip install 'route-orchestrator[http]' or pip install uvicorn",
            file=sys.stderr,
        )
        sys.exit(1)

    from route_orchestrator.http_server import create_app

    app = create_app()

    print(f"Starting Route Orchestrator HTTP server on {host}:{port}")
    print(f"API docs available at http://{host}:{port}/api/docs")

    uvicorn.run(app, host=host, port=port, log_level="info")


if __name__ == "__main__":
    main()
