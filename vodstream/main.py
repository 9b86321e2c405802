"""ASGI application entrypoint; ``python -m vodstream.main`` serves it with uvicorn."""

import argparse
import os

import uvicorn

from .core.app_factory import create_application

app = create_application()


def main() -> None:
    parser = argparse.ArgumentParser(description="Vodstream streaming API")
    parser.add_argument("--host", default=os.getenv("HOST", "0.0.0.0"))
    parser.add_argument("--port", type=int, default=int(os.getenv("PORT", "5000")))
    parser.add_argument("--reload", action="store_true", default=os.getenv("RELOAD", "false").lower() == "true")
    args = parser.parse_args()

    uvicorn.run(
        "vodstream.main:app",
        host=args.host,
        port=args.port,
        log_level=os.getenv("LOG_LEVEL", "INFO").lower(),
        reload=args.reload,
    )


__all__ = ("app", "main")


if __name__ == "__main__":
    main()
