"""Widget registry — where renderers look widgets up by name.

Pages live in the routes manifest; widgets live here.  Every render
format resolves ``widget-<name>`` references through one registry.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from warble.components.widget import WidgetComponent
from warble.errors import ModuleLoadError

if TYPE_CHECKING:
    from warble.routing.core import RouteCore

logger = logging.getLogger("warble.widgets")


@dataclass(frozen=True, slots=True)
class WidgetManifestEntry:
    """A widget known by name, with its module and companion files.

    Attributes:
        name: Widget name in kebab-case.
        module_path: Module exposing the widget instance as ``widget``.
        tag_name: HTML element name, ``widget-<name>``.
        files: Companion file paths keyed by ``html``, ``md``, ``css``.
    """

    name: str
    module_path: str
    tag_name: str
    files: Mapping[str, str] | None = None


@dataclass(frozen=True, slots=True)
class WidgetsManifest:
    widgets: tuple[WidgetManifestEntry, ...] = ()
    module_loaders: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))


class WidgetRegistry:
    """Name to widget lookup.

    Usage::

        registry = WidgetRegistry(builtin_widgets())
        registry.add(PriceWidget())
        registry.get("crypto-price")
    """

    __slots__ = ("_files", "_widgets")

    def __init__(self, widgets: Iterable[WidgetComponent] = ()) -> None:
        self._widgets: dict[str, WidgetComponent] = {}
        self._files: dict[str, Mapping[str, str]] = {}
        for widget in widgets:
            self.add(widget)

    def add(
        self,
        widget: WidgetComponent,
        files: Mapping[str, str] | None = None,
        *,
        name: str | None = None,
    ) -> None:
        """Register *widget* under *name*, default its ``name``.

        A later widget replaces an earlier one.  *files* overrides the
        companion paths the widget class declares.
        """
        name = name or widget.name
        self._widgets[name] = widget
        if files:
            self._files[name] = files
        else:
            self._files.pop(name, None)

    def get(self, name: str) -> WidgetComponent | None:
        return self._widgets.get(name)

    def files_for(self, name: str) -> Mapping[str, str] | None:
        """Companion file paths for the widget registered as *name*."""
        if name in self._files:
            return self._files[name]
        widget = self._widgets.get(name)
        return widget.files if widget is not None else None

    def __iter__(self) -> Iterator[WidgetComponent]:
        return iter(self._widgets.values())

    def __len__(self) -> int:
        return len(self._widgets)

    def __contains__(self, name: object) -> bool:
        return name in self._widgets

    def to_manifest(self) -> WidgetsManifest:
        """Describe the registered widgets, with loaders returning the live instances."""
        entries = []
        loaders: dict[str, Any] = {}
        for name, widget in self._widgets.items():
            entries.append(
                WidgetManifestEntry(
                    name=name,
                    module_path=name,
                    tag_name=f"widget-{name}",
                    files=self.files_for(name),
                ),
            )
            loaders[name] = _instance_loader(widget)
        return WidgetsManifest(widgets=tuple(entries), module_loaders=MappingProxyType(loaders))


def _instance_loader(widget: WidgetComponent) -> Any:
    def load() -> Any:
        return widget

    return load


async def load_widgets(
    core: RouteCore,
    entries: Iterable[WidgetManifestEntry],
    registry: WidgetRegistry | None = None,
) -> WidgetRegistry:
    """Import discovered widget modules through *core* into a registry.

    Each module must expose a ``WidgetComponent`` as ``widget``.  Modules
    that fail to load are logged and skipped.
    """
    registry = registry if registry is not None else WidgetRegistry()
    for entry in entries:
        try:
            module = await core.load_module(entry.module_path)
        except ModuleLoadError:
            logger.exception("Failed to load widget %r from %s", entry.name, entry.module_path)
            continue

        widget = module if isinstance(module, WidgetComponent) else getattr(module, "widget", None)
        if not isinstance(widget, WidgetComponent):
            logger.warning("Widget module %s does not expose a WidgetComponent", entry.module_path)
            continue

        if widget.name != entry.name:
            logger.warning(
                "Widget module %s declares name %r; registering as %r",
                entry.module_path,
                widget.name,
                entry.name,
            )
        registry.add(widget, entry.files, name=entry.name)
    return registry
