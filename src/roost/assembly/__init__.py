"""Assembly: builds the route table, model registry and admin tree.

Public API::

    from roost.assembly import assemble

    assembly = assemble(AppConfig(name="blog"), FilesystemSource("."))
    assembly.router.match("GET", "/posts")
"""

from roost.assembly.admin import (
    AdminContext,
    AdminDescriptor,
    AdminFile,
    AdminFolder,
    AdminTreeBuilder,
    snapshot,
)
from roost.assembly.build import Assembly, assemble
from roost.assembly.controllers import (
    ControllerGroup,
    DirectHandler,
    ExplicitRoute,
    MethodDispatcher,
    MultiMethod,
    classify,
    normalize,
    normalize_declaration,
)
from roost.assembly.models import Model, ModelRegistry

__all__ = [
    "AdminContext",
    "AdminDescriptor",
    "AdminFile",
    "AdminFolder",
    "AdminTreeBuilder",
    "Assembly",
    "ControllerGroup",
    "DirectHandler",
    "ExplicitRoute",
    "MethodDispatcher",
    "Model",
    "ModelRegistry",
    "MultiMethod",
    "assemble",
    "classify",
    "normalize",
    "normalize_declaration",
    "snapshot",
]
