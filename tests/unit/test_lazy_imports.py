"""Unit tests for lazy top-level imports in the poddns package."""

from __future__ import annotations

import pytest

import poddns


class TestLazyImports:
    @pytest.mark.parametrize("name", sorted(poddns._LAZY_IMPORTS))
    def test_every_lazy_name_resolves(self, name: str) -> None:
        assert getattr(poddns, name) is not None

    def test_all_matches_lazy_table(self) -> None:
        assert set(poddns.__all__) == set(poddns._LAZY_IMPORTS)

    def test_resolves_to_defining_object(self) -> None:
        from poddns.services.pod import PodSource

        assert poddns.PodSource is PodSource

    def test_unknown_attribute(self) -> None:
        with pytest.raises(AttributeError, match="no attribute 'Nope'"):
            poddns.Nope  # noqa: B018

    def test_dir_lists_public_names(self) -> None:
        assert "ClusterCache" in dir(poddns)

    def test_version(self) -> None:
        assert isinstance(poddns.__version__, str)
