"""Tests for warble.__init__ — the lazy public API."""

import importlib

import pytest

import warble


@pytest.mark.parametrize("name", warble.__all__)
def test_name_is_the_home_module_object(name: str) -> None:
    module_name, attr = warble._LAZY_IMPORTS[name]
    assert getattr(warble, name) is getattr(importlib.import_module(module_name), attr)


def test_core_entry_points_exported() -> None:
    for name in ("RouteCore", "SsrRenderer", "HtmlFormat", "MarkdownFormat", "generate_routes_manifest"):
        assert name in warble.__all__


def test_unknown_name_raises_attribute_error() -> None:
    with pytest.raises(AttributeError, match="no attribute 'ThisDoesNotExist'"):
        warble.__getattr__("ThisDoesNotExist")


def test_version() -> None:
    assert isinstance(warble.__version__, str)
