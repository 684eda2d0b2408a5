"""Roost application class.

Mutable during setup (manual routes, admin generator, module source,
lifecycle hooks). Frozen at runtime when ``app.run()`` or ``__call__()``
is first invoked; freezing runs the assembly phase exactly once.
"""

import inspect
import logging
import threading
from collections.abc import Callable, Mapping
from typing import Any

from roost._internal.asgi import Receive, Scope, Send
from roost._internal.codec import encode_json
from roost._internal.types import Encoder, Handler, Persist
from roost.assembly.admin import AdminDescriptor, AdminFolder, AdminGenerator
from roost.assembly.build import Assembly, assemble
from roost.assembly.controllers import normalize_declaration
from roost.assembly.models import Model
from roost.config import AppConfig
from roost.discovery.walker import FilesystemSource, ModuleSource
from roost.errors import ConfigurationError
from roost.http.cookies import save_cookies
from roost.routing.route import Route, normalize_methods
from roost.routing.router import Router
from roost.server.handler import handle_request

logger = logging.getLogger("roost.app")


class App:
    """The roost application.

    Routes come from two places: controller modules found by
    ``collect()`` and routes registered here by hand. Hand-registered
    routes are added last and win at the same path and method.

    Thread safety:
        The setup phase is single-threaded (decorators at import time).
        The freeze transition uses a Lock + double-check so exactly one
        thread runs assembly, even when several ASGI workers receive
        their first request at the same time.
    """

    __slots__ = (
        "_admin_generator",
        "_assembly",
        "_encode",
        "_freeze_lock",
        "_frozen",
        "_pending_routes",
        "_persist",
        "_shutdown_hooks",
        "_source",
        "_startup_hooks",
        "config",
    )

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        persist: Persist = save_cookies,
        encode: Encoder = encode_json,
    ) -> None:
        self.config: AppConfig = config or AppConfig()
        self._pending_routes: list[Route] = []
        self._admin_generator: AdminGenerator | None = None
        self._source: ModuleSource | None = None
        self._persist = persist
        self._encode = encode
        self._startup_hooks: list[Callable[..., Any]] = []
        self._shutdown_hooks: list[Callable[..., Any]] = []
        self._frozen: bool = False
        self._freeze_lock: threading.Lock = threading.Lock()

        # Compiled state, set during _freeze()
        self._assembly: Assembly | None = None

        if not self.config.name:
            logger.warning("App created without a name; collect() is unavailable.")

    # -- Route registration --

    def route(
        self,
        path: str,
        *,
        methods: list[str] | str | None = None,
        name: str | None = None,
    ) -> Callable[[Handler], Handler]:
        """Register a route handler via decorator.

        Args:
            path: URL path pattern. Use ``{param}`` for path parameters.
            methods: HTTP methods. ``None`` accepts every method.
            name: Optional route name.
        """

        def decorator(func: Handler) -> Handler:
            self._check_not_frozen()
            self._pending_routes.append(
                Route(path, func, normalize_methods(methods), name)
            )
            return func

        return decorator

    def add(self, declaration: Any) -> Route:
        """Register an explicit route declaration.

        Accepts a ``Route``, a mapping with ``path``/``controller``/``methods``
        or a ``(path, handler, methods)`` tuple. Raises
        ``ShapeValidationError`` for malformed declarations.
        """
        self._check_not_frozen()
        route = normalize_declaration(declaration)
        self._pending_routes.append(route)
        return route

    def admin_generator(self, func: AdminGenerator) -> AdminGenerator:
        """Register the admin route generator via decorator.

        It runs once during assembly with an ``AdminContext`` and returns
        route declarations, which are merged before the manual routes::

            @app.admin_generator
            def admin_routes(ctx):
                yield {"path": "/admin/tree", "controller": lambda r: ctx.tree.to_dict()}
        """
        self._check_not_frozen()
        self._admin_generator = func
        return func

    def collect(self, source: ModuleSource | None = None) -> None:
        """Discover models, controllers and admins when the app freezes.

        *source* defaults to the filesystem under ``config.base_dir``.
        """
        self._check_not_frozen()
        if not self.config.name:
            msg = "App.collect() requires AppConfig(name=...)."
            raise ConfigurationError(msg)
        self._source = source or FilesystemSource(self.config.base_dir)

    # -- Lifecycle hooks --

    def on_startup(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync startup hook via decorator.

        Hooks run in registration order during ASGI lifespan startup,
        after assembly and before the server accepts HTTP requests.
        """
        self._check_not_frozen()
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync shutdown hook via decorator."""
        self._check_not_frozen()
        self._shutdown_hooks.append(func)
        return func

    # -- Assembled state --

    @property
    def assembly(self) -> Assembly:
        """The assembled route table, models and admins. Freezes the app."""
        self._ensure_frozen()
        assert self._assembly is not None
        return self._assembly

    @property
    def router(self) -> Router:
        return self.assembly.router

    @property
    def models(self) -> Mapping[str, Model]:
        return self.assembly.models

    @property
    def admins(self) -> Mapping[str, AdminDescriptor]:
        return self.assembly.admins

    @property
    def admin_tree(self) -> AdminFolder:
        return self.assembly.admin_tree

    # -- Server --

    def run(self, host: str | None = None, port: int | None = None) -> None:
        """Assemble the app and serve it with the pounce dev server.

        Args:
            host: Override bind host.
            port: Override bind port.
        """
        self._ensure_frozen()

        from roost.server.dev import run_dev_server

        run_dev_server(
            self,
            host or self.config.host,
            port or self.config.port,
            reload=self.config.debug,
        )

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(scope, receive, send)
            return

        await handle_request(
            scope,
            receive,
            send,
            router=self.assembly.router,
            persist=self._persist,
            encode=self._encode,
            debug=self.config.debug,
        )

    async def _handle_lifespan(
        self,
        scope: Scope,
        receive: Receive,
        send: Send,
    ) -> None:
        """Run the ASGI lifespan protocol.

        Assembly runs at startup, before the first HTTP request; a
        failing assembly reports ``lifespan.startup.failed``.
        """
        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    self._ensure_frozen()
                    for hook in self._startup_hooks:
                        result = hook()
                        if inspect.isawaitable(result):
                            await result
                    await send({"type": "lifespan.startup.complete"})
                except Exception as exc:
                    logger.exception("startup failed")
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return

            elif msg_type == "lifespan.shutdown":
                for hook in self._shutdown_hooks:
                    result = hook()
                    if inspect.isawaitable(result):
                        await result
                await send({"type": "lifespan.shutdown.complete"})
                return

    # -- Internal --

    def _ensure_frozen(self) -> None:
        """Thread-safe freeze with double-check locking."""
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._freeze()

    def _freeze(self) -> None:
        """Run assembly. MUST only be called while holding _freeze_lock."""
        self._assembly = assemble(
            self.config,
            self._source,
            extra_routes=self._pending_routes,
            admin_generator=self._admin_generator,
        )
        self._frozen = True

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot modify the app after it has been assembled. "
                "Register routes and call collect() before the first request."
            )
            raise RuntimeError(msg)
