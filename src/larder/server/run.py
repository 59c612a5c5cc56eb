"""Helper for running the Larder ASGI application."""

from __future__ import annotations

import asyncio
import os
from typing import Optional

import uvicorn


async def _serve_with_duration(server: uvicorn.Server, duration: float) -> None:
    """Run the server and shut it down after the specified duration."""

    async def _shutdown() -> None:
        await asyncio.sleep(duration)
        server.should_exit = True

    asyncio.create_task(_shutdown())
    await server.serve()


def _parse_duration(value: str | None) -> Optional[float]:
    if not value:
        return None
    try:
        parsed = float(value)
    except ValueError as exc:
        raise SystemExit(f"Invalid LARDER_SERVER_DURATION '{value}': {exc}") from exc
    if parsed <= 0:
        raise SystemExit("LARDER_SERVER_DURATION must be greater than 0 when provided.")
    return parsed


def serve(
    host: Optional[str] = None,
    port: Optional[int] = None,
    *,
    reload: bool = False,
    duration: Optional[float] = None,
) -> None:
    """Run the API with uvicorn; ``duration`` stops the server after that many seconds."""

    host = host or os.environ.get("LARDER_SERVER_HOST", "127.0.0.1")
    port = port or int(os.environ.get("LARDER_SERVER_PORT", "8000"))

    if reload and duration is not None:
        raise SystemExit("Reload cannot be combined with a server duration.")

    if reload:
        uvicorn.run("larder.server.app:app", host=host, port=port, reload=True)
        return

    config = uvicorn.Config("larder.server.app:app", host=host, port=port, reload=False)
    server = uvicorn.Server(config)

    if duration is not None:
        asyncio.run(_serve_with_duration(server, duration))
        return

    server.run()


def main() -> None:
    """Entry point driven entirely by environment variables."""

    serve(
        reload=os.environ.get("RELOAD") == "1",
        duration=_parse_duration(os.environ.get("LARDER_SERVER_DURATION")),
    )


if __name__ == "__main__":
    main()
