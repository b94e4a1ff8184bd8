"""Pages and widgets share one component model.

Components render to HTML or Markdown depending on the format driving
the render; both default to whatever companion files the route declares.
"""

from warble.components.base import Component, ComponentContext, ComponentFiles
from warble.components.page import HTML_SLOT, MARKDOWN_SLOT, PageComponent, default_page
from warble.components.widget import WidgetComponent

__all__ = [
    "HTML_SLOT",
    "MARKDOWN_SLOT",
    "Component",
    "ComponentContext",
    "ComponentFiles",
    "PageComponent",
    "WidgetComponent",
    "default_page",
]
