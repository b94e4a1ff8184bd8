"""Embeddable widgets: registry, syntax parsing and recursive resolution."""

from warble.widgets.builtin import BreadcrumbWidget, PageTitleWidget, builtin_widgets
from warble.widgets.parser import (
    ParsedWidget,
    parse_attrs_to_params,
    parse_widget_blocks,
    parse_widget_tags,
    replace_occurrences,
    to_widget_attrs,
)
from warble.widgets.registry import (
    WidgetManifestEntry,
    WidgetRegistry,
    WidgetsManifest,
    load_widgets,
)
from warble.widgets.resolve import MAX_WIDGET_DEPTH, resolve_widgets

__all__ = [
    "MAX_WIDGET_DEPTH",
    "BreadcrumbWidget",
    "PageTitleWidget",
    "ParsedWidget",
    "WidgetManifestEntry",
    "WidgetRegistry",
    "WidgetsManifest",
    "builtin_widgets",
    "load_widgets",
    "parse_attrs_to_params",
    "parse_widget_blocks",
    "parse_widget_tags",
    "replace_occurrences",
    "resolve_widgets",
    "to_widget_attrs",
]
