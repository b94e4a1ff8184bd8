"""Router configuration.

RouterConfig is a frozen dataclass — immutable after creation, IDE-autocompletable,
no string-key dict lookups.
"""

from dataclasses import dataclass

from warble.errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class RouterConfig:
    """Router configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = RouterConfig(base_url="http://localhost:8080", base_path="/html")
    """

    # Routing
    root: str = "/"
    routes_dir: str = "/routes"
    widgets_dir: str = "/widgets"
    redirect_trailing_slash: bool = True

    # Prefix stripped from request paths before matching (e.g. "/html")
    base_path: str = ""

    # Companion file fetching
    base_url: str = ""  # Relative companion paths resolve against this when set
    fetch_timeout: float = 10.0

    # Widgets
    max_widget_depth: int = 10

    # Manifest persistence
    manifest_path: str = "/routes.manifest.json"

    def __post_init__(self) -> None:
        if not self.root.startswith("/"):
            msg = f"root must start with '/', got {self.root!r}"
            raise ConfigurationError(msg)
        if self.root != "/" and self.root.endswith("/"):
            msg = f"root must not end with '/', got {self.root!r}"
            raise ConfigurationError(msg)
        if self.base_path and (not self.base_path.startswith("/") or self.base_path.endswith("/")):
            msg = f"base_path must look like '/prefix', got {self.base_path!r}"
            raise ConfigurationError(msg)
        if self.max_widget_depth < 0:
            msg = f"max_widget_depth must be >= 0, got {self.max_widget_depth}"
            raise ConfigurationError(msg)
