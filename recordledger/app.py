"""Application bootstrap for recordledger.

Wires all components in dependency order and manages the asyncio lifecycle.
Startup order: config → logging → ledger runtime → contract registry
              → genesis bootstrap → REST

Shutdown stops the REST server and releases the runtime in reverse order.
"""

from __future__ import annotations

import asyncio
import signal
from typing import TYPE_CHECKING

from recordledger.config import load_config
from recordledger.ledger.memory import InMemoryLedgerRuntime
from recordledger.models.config import RecordLedgerConfig
from recordledger.observability.logging import get_logger, setup_logging
from recordledger.service.contract import ContractRegistry, build_registry

if TYPE_CHECKING:
    import structlog

_SHUTDOWN_GRACE_SECONDS = 15


class _ComponentError(Exception):
    """Raised when a mandatory component fails to start."""

    def __init__(self, component: str, cause: Exception) -> None:
        super().__init__(f"Component '{component}' failed to start: {cause}")
        self.component = component
        self.cause = cause


class RecordLedgerApp:
    """Application root.  Owns every component and coordinates their lifecycle.

    ``stop()`` is safe to call on an app that was never started or has
    already stopped.
    """

    def __init__(self, config: RecordLedgerConfig | None = None) -> None:
        self.config = config
        self.runtime: InMemoryLedgerRuntime | None = None
        self.registry: ContractRegistry | None = None
        self._rest_server: object | None = None
        self._background_tasks: list[asyncio.Task[None]] = []
        self._running = False
        self._log: structlog.stdlib.BoundLogger | None = None

    @property
    def running(self) -> bool:
        return self._running

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    async def start(self, serve_rest: bool = True) -> None:
        """Start all components in dependency order.

        Raises _ComponentError if a mandatory component cannot start.
        """
        # --- 1. Configuration -------------------------------------------
        if self.config is None:
            self.config = load_config()

        # --- 2. Logging -------------------------------------------------
        setup_logging(self.config.log.level)
        self._log = get_logger("app")
        self._log.info("recordledger starting", version=_recordledger_version())

        # --- 3. Ledger runtime and contracts ----------------------------
        await self._start_ledger()

        # --- 4. Genesis -------------------------------------------------
        await self._bootstrap_ledger()

        # --- 5. REST gateway --------------------------------------------
        if serve_rest:
            await self._start_rest()

        self._running = True
        self._log.info("recordledger started", contracts=self.registry.names if self.registry else [])

    async def _start_ledger(self) -> None:
        assert self._log is not None
        assert self.config is not None
        self._log.debug("starting ledger runtime")
        try:
            self.runtime = InMemoryLedgerRuntime()
            self.registry = build_registry(self.runtime, self.config.ledger.contracts)
            self._log.info("ledger runtime started", contracts=self.registry.names)
        except Exception as exc:
            raise _ComponentError("ledger", exc) from exc

    async def _bootstrap_ledger(self) -> None:
        assert self._log is not None
        assert self.config is not None
        assert self.registry is not None
        if not self.config.ledger.bootstrap_on_start:
            self._log.info("genesis bootstrap skipped (bootstrap_on_start=false)")
            return
        try:
            await self.registry.bootstrap_all()
            self._log.info("genesis bootstrap complete")
        except Exception as exc:
            raise _ComponentError("bootstrap", exc) from exc

    async def _start_rest(self) -> None:
        """Start the uvicorn REST server."""
        assert self._log is not None
        assert self.config is not None
        self._log.debug("starting rest api")
        try:
            import uvicorn

            from recordledger.api import build_app

            fastapi_app = build_app(registry=self.registry, config=self.config)
            uv_config = uvicorn.Config(
                app=fastapi_app,
                host=self.config.api.host,
                port=self.config.api.port,
                log_config=None,  # structlog handles all logging
                access_log=False,
            )
            server = uvicorn.Server(uv_config)
            task = asyncio.create_task(server.serve(), name="rest-server")
            self._background_tasks.append(task)
            self._rest_server = server
            self._log.info("rest api started", host=self.config.api.host, port=self.config.api.port)
        except Exception as exc:
            raise _ComponentError("rest", exc) from exc

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    async def stop(self) -> None:
        """Stop the REST server and drop the runtime."""
        if not self._running and self._log is None:
            return

        log = self._log or get_logger("app")
        log.info("recordledger shutting down")
        self._running = False

        server = self._rest_server
        if server is not None:
            server.should_exit = True  # type: ignore[attr-defined]
        if self._background_tasks:
            try:
                await asyncio.wait_for(
                    asyncio.gather(*self._background_tasks, return_exceptions=True),
                    timeout=_SHUTDOWN_GRACE_SECONDS,
                )
            except TimeoutError:
                log.warning("rest server stop timed out", timeout=_SHUTDOWN_GRACE_SECONDS)
                for task in self._background_tasks:
                    task.cancel()
        self._background_tasks.clear()
        self._rest_server = None

        self.registry = None
        self.runtime = None
        log.info("recordledger stopped")


def _recordledger_version() -> str:
    from recordledger import __version__

    return __version__


# ---------------------------------------------------------------------------
# Async entrypoint
# ---------------------------------------------------------------------------


async def main(config: RecordLedgerConfig | None = None) -> None:
    """Create the app, register OS signals, run until shutdown is requested."""
    app = RecordLedgerApp(config)
    loop = asyncio.get_running_loop()

    shutdown_triggered = False

    def _request_shutdown() -> None:
        nonlocal shutdown_triggered
        if shutdown_triggered:
            return
        shutdown_triggered = True
        asyncio.create_task(app.stop(), name="shutdown")

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, _request_shutdown)

    try:
        await app.start()
        while app.running:
            await asyncio.sleep(1)
    except _ComponentError as exc:
        log = get_logger("app")
        log.critical(
            "fatal startup error",
            component=exc.component,
            error=str(exc.cause),
        )
        await app.stop()
        raise SystemExit(1) from exc
    finally:
        if app.running:
            await app.stop()
