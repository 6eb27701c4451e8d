"""STDIO transport MCP server."""

import asyncio
import logging
import os
import signal
import sys

from mcp.server.stdio import stdio_server

from database.connection import ConnectionManager
from protocol.base_server import BaseMCPServer

logger = logging.getLogger(__name__)


class StdioMCPServer(BaseMCPServer):
    """MCP server using STDIO transport."""

    async def run(self):
        """Run the STDIO MCP server until the host closes the stream."""
        logger.info("Starting STDIO MCP server")
        async with stdio_server() as (read_stream, write_stream):
            await self.server.run(
                read_stream,
                write_stream,
                self.server.create_initialization_options()
            )


async def close_manager(manager: ConnectionManager):
    """Best-effort shutdown: a failing close is logged, never raised."""
    try:
        await manager.close()
    except Exception as e:
        logger.error(f"Error closing database connection: {e}")


def exit_process(exit_code: int):
    """End the process without joining the blocked stdin reader thread."""
    for handler in logging.getLogger().handlers:
        handler.flush()
    sys.stderr.flush()
    os._exit(exit_code)


async def serve_until_signal(
    server: StdioMCPServer,
    manager: ConnectionManager,
    exit_on_signal: bool = False
) -> int:
    """
    Serve on stdio until SIGINT/SIGTERM or end of input, then close the manager.

    The stdin reader runs in a worker thread that ignores cancellation, so
    after a signal the serve task is not awaited. With exit_on_signal the
    process ends as soon as the connection is closed.

    Returns:
        Process exit code: 0 on clean shutdown, 1 if the transport failed
    """
    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except (NotImplementedError, RuntimeError):
            # Windows event loops do not support signal handlers
            pass

    serve_task = asyncio.create_task(server.run())
    stop_task = asyncio.create_task(stop_event.wait())
    exit_code = 0
    signalled = False

    try:
        done, _ = await asyncio.wait(
            {serve_task, stop_task},
            return_when=asyncio.FIRST_COMPLETED
        )
        if stop_task in done:
            logger.info("Shutdown signal received, stopping server...")
            signalled = True
        elif serve_task.exception() is not None:
            error = serve_task.exception()
            logger.error(f"STDIO server error: {error}", exc_info=error)
            exit_code = 1
    finally:
        for task in (serve_task, stop_task):
            if not task.done():
                task.cancel()
        if not signalled:
            await asyncio.gather(serve_task, stop_task, return_exceptions=True)
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.remove_signal_handler(sig)
            except (NotImplementedError, RuntimeError):
                pass
        await close_manager(manager)

    if signalled and exit_on_signal:
        exit_process(exit_code)
    return exit_code
