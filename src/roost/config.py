"""Application configuration.

AppConfig is a frozen dataclass: immutable after creation, IDE-autocompletable,
no string-key dict lookups.
"""

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(name="blog", base_dir="src", debug=True)

    ``name`` is the importable package holding the ``models``,
    ``controllers`` and ``admin`` folders. ``base_dir`` is the directory
    that package lives in.
    """

    # Application package
    name: str | None = None
    base_dir: str | Path = "."

    # Folder conventions
    model_folder_name: str = "models"
    controller_folder_name: str = "controllers"
    admin_folder_name: str = "admin"

    # Discovery
    module_suffix: str = ".py"
    exclusion_marker: str = "!"
    strip_segments: int = 2  # app name + category folder

    # Export symbols looked up on each discovered module
    model_symbol: str = "model"
    controller_symbol: str = "controller"
    admin_symbol: str = "admin"

    # Admin
    admin_root_name: str = "models"
    user_table: str = "user"

    # Server
    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False
    log_level: str = "info"
