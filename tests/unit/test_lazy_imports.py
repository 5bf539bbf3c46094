"""Tests for lazy import system in kindscope.__init__."""

from __future__ import annotations

import importlib
import sys

import pytest


class TestLazyImports:
    """Test PEP 562 lazy loading in kindscope.__init__."""

    def test_lazy_import_does_not_eagerly_load(self) -> None:
        """Verify that importing kindscope does not eagerly load subpackages."""
        saved = {name: mod for name, mod in sys.modules.items() if name.startswith("kindscope")}
        for name in saved:
            del sys.modules[name]
        try:
            importlib.import_module("kindscope")

            assert "kindscope.core" not in sys.modules
            assert "kindscope.models" not in sys.modules
            assert "kindscope.explorer" not in sys.modules
            assert "kindscope.utils" not in sys.modules
        finally:
            for name in [n for n in sys.modules if n.startswith("kindscope")]:
                del sys.modules[name]
            sys.modules.update(saved)

    def test_lazy_import_resolves_on_access(self) -> None:
        """Verify that lazy attributes resolve correctly."""
        from kindscope import fetch_events
        from kindscope.explorer.fanout import fetch_events as direct_fetch_events

        assert fetch_events is direct_fetch_events

    def test_lazy_import_caches_after_first_access(self) -> None:
        """Verify that resolved attributes are cached in globals."""
        import kindscope

        _ = kindscope.Event

        assert "Event" in vars(kindscope)

    def test_lazy_import_invalid_attribute(self) -> None:
        """Verify that invalid attributes raise AttributeError."""
        import kindscope

        with pytest.raises(AttributeError, match="no_such_thing"):
            _ = getattr(kindscope, "no_such_thing")  # noqa: B009

    def test_all_exports_are_in_lazy_imports(self) -> None:
        """Verify that __all__ and _LAZY_IMPORTS are in sync."""
        import kindscope

        assert set(kindscope.__all__) == set(kindscope._LAZY_IMPORTS)

    def test_every_export_resolves(self) -> None:
        import kindscope

        for name in kindscope.__all__:
            assert getattr(kindscope, name) is not None

    def test_dir_returns_all(self) -> None:
        """Verify that dir(kindscope) returns __all__."""
        import kindscope

        assert dir(kindscope) == kindscope.__all__

    def test_version_is_accessible(self) -> None:
        """Verify that __version__ is set from package metadata."""
        import kindscope

        assert isinstance(kindscope.__version__, str)
        assert kindscope.__version__
