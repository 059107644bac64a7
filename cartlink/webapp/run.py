"""Run the webapp server."""

import argparse

from ..config import load_env_file, log_level
from ..logging_setup import configure_logging


def main():
    """Run the webapp with uvicorn."""
    parser = argparse.ArgumentParser(description="Run the cartlink JSON API")
    parser.add_argument("--host", default="127.0.0.1", help="Host to bind to")
    parser.add_argument("--port", type=int, default=8000, help="Port to bind to")
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload")
    args = parser.parse_args()

    load_env_file()
    configure_logging(log_level())

    import uvicorn

    uvicorn.run(
        "cartlink.webapp.app:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        reload=args.reload,
    )


if __name__ == "__main__":
    main()
