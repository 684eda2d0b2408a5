"""Module discovery: find, filter and load conventionally named modules.

Public API::

    from roost.discovery import FilesystemSource, MemorySource, discover

    source = FilesystemSource("src")
    for found in discover(
        source.files("blog/controllers"),
        lambda name: source.load(name, "controller"),
    ):
        ...
"""

from roost.discovery.filter import check_path, ensure_included
from roost.discovery.loader import load_export, module_name, split_path, strip_prefix
from roost.discovery.walker import (
    DiscoveredModule,
    FilesystemSource,
    MemorySource,
    ModuleSource,
    discover,
    list_module_files,
)

__all__ = [
    "DiscoveredModule",
    "FilesystemSource",
    "MemorySource",
    "ModuleSource",
    "check_path",
    "discover",
    "ensure_included",
    "list_module_files",
    "load_export",
    "module_name",
    "split_path",
    "strip_prefix",
]
