"""The assembly phase: discovery, normalization, linkage, tree building.

Runs once per process, before the first request. Its only output is an
immutable ``Assembly`` that the request handler reads without locking.

A single bad module never aborts startup: it is logged and contributes
nothing. Only conflicts between modules (two models claiming one table
name) and missing configuration stop assembly.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from functools import partial
from types import MappingProxyType
from typing import Any

from roost.assembly.admin import (
    AdminContext,
    AdminDescriptor,
    AdminFolder,
    AdminGenerator,
    AdminTreeBuilder,
    admin_attrs,
    link_admin,
)
from roost.assembly.controllers import classify, normalize_declaration, routes_for
from roost.assembly.models import Model, ModelRegistry
from roost.config import AppConfig
from roost.discovery.walker import DiscoveredModule, ModuleSource, discover
from roost.errors import ConfigurationError, ShapeValidationError
from roost.routing.route import Route
from roost.routing.router import Router

logger = logging.getLogger("roost.assembly")


@dataclass(frozen=True, slots=True)
class Assembly:
    """Everything the request handler needs, read-only."""

    router: Router
    models: Mapping[str, Model] = field(default_factory=lambda: MappingProxyType({}))
    admins: Mapping[str, AdminDescriptor] = field(default_factory=lambda: MappingProxyType({}))
    admin_tree: AdminFolder = field(default_factory=lambda: AdminFolder("models"))


def _modules(
    config: AppConfig, source: ModuleSource, folder: str, symbol: str
) -> Iterator[DiscoveredModule]:
    return discover(
        source.files(f"{config.name}/{folder}"),
        partial(source.load, symbol=symbol),
        suffix=config.module_suffix,
        marker=config.exclusion_marker,
        strip=config.strip_segments,
    )


def collect_models(config: AppConfig, source: ModuleSource) -> ModelRegistry:
    """Register every model module. Raises ``DuplicateModelError`` on collisions."""
    registry = ModelRegistry()
    for found in _modules(config, source, config.model_folder_name, config.model_symbol):
        model = Model.from_export(found.value)
        if model is None:
            logger.warning(
                "%s is ignored: not a model (type:%s)",
                "/".join(found.segments),
                type(found.value).__name__,
            )
            continue
        registry.register(model, found.segments, origin=found.path)
    logger.info("collected %d models", len(registry))
    return registry


def collect_controllers(config: AppConfig, source: ModuleSource, router: Router) -> int:
    """Normalize every controller module into routes on *router*.

    Returns the number of routes added.
    """
    added = 0
    for found in _modules(
        config, source, config.controller_folder_name, config.controller_symbol
    ):
        url = "/" + "/".join(found.segments)
        try:
            shape = classify(found.value)
            routes = [] if shape is None else routes_for(shape, url)
        except ShapeValidationError as exc:
            logger.warning("%s is ignored: %s", found.path, exc)
            continue
        if shape is None:
            logger.warning(
                "%s is ignored: no controller returned (type:%s)",
                "/".join(found.segments),
                type(found.value).__name__,
            )
            continue
        for route in routes:
            router.add(route)
        added += len(routes)
    logger.info("collected %d controller routes", added)
    return added


def collect_admins(
    config: AppConfig, source: ModuleSource, registry: ModelRegistry
) -> tuple[dict[str, AdminDescriptor], AdminFolder]:
    """Link every admin module to its model and build the navigation tree."""
    admins: dict[str, AdminDescriptor] = {}
    builder = AdminTreeBuilder(config.admin_root_name)
    for found in _modules(config, source, config.admin_folder_name, config.admin_symbol):
        attrs = admin_attrs(found.value)
        if attrs is None or not found.segments:
            logger.warning(
                "%s is ignored: not an admin (type:%s)",
                found.path,
                type(found.value).__name__,
            )
            continue
        descriptor = link_admin(attrs, found.segments, registry)
        admins["/" + descriptor.key] = descriptor
        builder.insert(found.segments, descriptor.snapshot())
    logger.info("collected %d admins", len(admins))
    return admins, builder.freeze()


def _add_generated(router: Router, declarations: Iterable[Any]) -> None:
    for declaration in declarations:
        try:
            route = normalize_declaration(declaration)
        except ShapeValidationError as exc:
            logger.warning("admin route is ignored: %s", exc)
            continue
        router.add(route)


def assemble(
    config: AppConfig,
    source: ModuleSource | None = None,
    *,
    extra_routes: Iterable[Route] = (),
    admin_generator: AdminGenerator | None = None,
) -> Assembly:
    """Build the immutable route table, model registry and admin tree.

    Order: models, controllers, admins, generated admin routes, then
    *extra_routes* registered by hand (which win over discovered routes at the
    same path and method). Without a *source* only *extra_routes* are used.
    """
    router = Router()

    if source is None:
        registry = ModelRegistry()
        admins: dict[str, AdminDescriptor] = {}
        tree = AdminTreeBuilder(config.admin_root_name).freeze()
    else:
        if not config.name:
            msg = "Assembling from modules requires AppConfig(name=...)."
            raise ConfigurationError(msg)
        registry = collect_models(config, source)
        collect_controllers(config, source, router)
        admins, tree = collect_admins(config, source, registry)

    frozen_admins = MappingProxyType(admins)
    if admin_generator is not None:
        context = AdminContext(
            admins=frozen_admins,
            tree=tree,
            user_model=registry.get(config.user_table),
        )
        _add_generated(router, admin_generator(context))

    for route in extra_routes:
        router.add(route)

    router.compile()
    return Assembly(
        router=router,
        models=registry.freeze(),
        admins=frozen_admins,
        admin_tree=tree,
    )
