"""Entry point for running bamaccess as a module: python -m bamaccess."""

import logging
import sys
from typing import Literal

from .config import AccessConfig
from .server import create_server

Transport = Literal["stdio", "sse", "streamable-http"]


def main() -> None:
    """Run the bamaccess MCP server."""
    try:
        config = AccessConfig.from_env()
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        sys.exit(1)

    # stdout carries the stdio transport, so logs go to stderr
    logging.basicConfig(
        level=config.log_level,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    transport: Transport = config.transport  # type: ignore[assignment]
    server = create_server(config)
    server.run(transport=transport)


if __name__ == "__main__":
    main()
