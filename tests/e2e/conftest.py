"""
E2E fixtures: a real uvicorn server running the relay in-process.
"""

import asyncio
from dataclasses import dataclass
from typing import AsyncGenerator

import pytest_asyncio

from signaleur.main import RelayServer, SignaleurApp


@dataclass
class RunningRelay:
    """Handle on a relay served on an ephemeral port."""

    app: SignaleurApp
    server: RelayServer
    task: asyncio.Task
    ws_url: str
    http_url: str

    @property
    def registry(self):
        return self.app.container.registry

    async def stop(self) -> None:
        """Stop the server the way a signal would and wait for it to exit."""
        self.server.should_exit = True
        await asyncio.wait_for(self.task, timeout=10)


@pytest_asyncio.fixture
async def relay(test_settings) -> AsyncGenerator[RunningRelay, None]:
    """Start SignaleurApp under uvicorn on 127.0.0.1:<random port>."""
    app = SignaleurApp(test_settings)
    server = app.create_server(host="127.0.0.1", port=0)
    task = asyncio.create_task(server.serve())

    while not server.started:
        if task.done():
            task.result()
        await asyncio.sleep(0.01)

    port = server.servers[0].sockets[0].getsockname()[1]

    running = RunningRelay(
        app=app,
        server=server,
        task=task,
        ws_url=f"ws://127.0.0.1:{port}/",
        http_url=f"http://127.0.0.1:{port}",
    )
    yield running

    if not task.done():
        await running.stop()
