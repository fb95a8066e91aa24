"""Chef Compadre entry point."""

import asyncio
import logging
import sys

from dotenv import find_dotenv, load_dotenv

from .cli import run_cli
from .config import config_from_env


def serve() -> None:
    """Run the HTTP API with uvicorn."""
    import uvicorn

    from .server import create_app

    config = config_from_env()
    logging.basicConfig(level=logging.INFO)
    uvicorn.run(create_app(config=config), host=config.host, port=config.port)


def main() -> None:
    """Main entry point."""
    load_dotenv(find_dotenv(usecwd=True))

    if len(sys.argv) > 1:
        command = sys.argv[1]

        if command == "serve":
            serve()
            return

        if command != "chat":
            print(f"Unknown command: {command}")
            print("Usage: compadre [chat|serve]")
            sys.exit(2)

    asyncio.run(run_cli())


if __name__ == "__main__":
    main()
