"""Roost: a convention-driven web application framework.

Models, controllers and admin descriptors are plain modules laid out
under an application package; roost discovers them, builds one route
table, a model registry and an admin navigation tree, and serves the
result over ASGI.

Basic usage::

    from roost import App, AppConfig

    app = App(AppConfig(name="blog"))
    app.collect()  # blog/models, blog/controllers, blog/admin

    @app.route("/health", methods=["GET"])
    def health(request):
        return {"ok": True}

    app.run()
"""

__version__ = "0.1.0-dev"
__all__ = [
    "AnyResponse",
    "App",
    "AppConfig",
    "Assembly",
    "ConfigurationError",
    "DuplicateModelError",
    "FilesystemSource",
    "HTTPError",
    "MemorySource",
    "MethodNotAllowed",
    "Model",
    "NotFound",
    "Request",
    "Response",
    "RoostError",
    "StreamingResponse",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import roost`` fast while providing a clean top-level API.
    """
    if name == "App":
        from roost.app import App

        return App

    if name == "AppConfig":
        from roost.config import AppConfig

        return AppConfig

    if name == "Request":
        from roost.http.request import Request

        return Request

    if name in ("Response", "StreamingResponse", "AnyResponse"):
        from roost.http import response as _resp

        return getattr(_resp, name)

    if name in ("Assembly", "Model"):
        from roost import assembly as _assembly

        return getattr(_assembly, name)

    if name in ("FilesystemSource", "MemorySource"):
        from roost.discovery import walker as _walker

        return getattr(_walker, name)

    if name in (
        "RoostError",
        "ConfigurationError",
        "DuplicateModelError",
        "HTTPError",
        "MethodNotAllowed",
        "NotFound",
    ):
        from roost import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
