"""Tests for LabelResolver."""

import logging
from unittest.mock import Mock

import pytest

from crashsync.config.models import SourceControlConfig
from crashsync.protocols import SourceControlProviderProtocol
from crashsync.symbols.label_resolver import LabelResolver, create_label_resolver
from tests.fakes import FakeLabel, FakeProvider


@pytest.fixture
def config() -> SourceControlConfig:
    return SourceControlConfig(
        depot_root="//depot/UE4",
        label_pattern="UE4-CL-%CHANGELISTNUMBER%*",
        changelist_labels={42: "Known-CL-42"},
        engine_version_labels={7: "Known-Version-7"},
    )


class TestResolveLabel:
    """Test label resolution order and failure handling."""

    def test_unknown_build_does_not_query_provider(self, config):
        provider = Mock(spec=SourceControlProviderProtocol)
        resolver = LabelResolver(provider, config)

        assert resolver.resolve_label(-1, -1) == ""
        provider.get_labels.assert_not_called()

    def test_known_changelist_label(self, config):
        provider = Mock(spec=SourceControlProviderProtocol)
        resolver = LabelResolver(provider, config)

        assert resolver.resolve_label(-1, 42) == "Known-CL-42"
        provider.get_labels.assert_not_called()

    def test_engine_version_label_takes_priority(self, config):
        provider = Mock(spec=SourceControlProviderProtocol)
        resolver = LabelResolver(provider, config)

        assert resolver.resolve_label(7, 42) == "Known-Version-7"

    def test_pattern_substitutes_changelist(self, config):
        provider = FakeProvider([FakeLabel("UE4-CL-100-Win64"), FakeLabel("UE4-CL-200")])
        resolver = LabelResolver(provider, config)

        assert resolver.resolve_label(-1, 100) == "UE4-CL-100-Win64"
        assert provider.label_queries == ["UE4-CL-100*"]

    def test_ambiguous_pattern_uses_first_label(self, config, caplog):
        provider = FakeProvider(
            [FakeLabel("UE4-CL-100-Win64"), FakeLabel("UE4-CL-100-Mac")]
        )
        resolver = LabelResolver(provider, config)

        with caplog.at_level(logging.WARNING):
            label = resolver.resolve_label(-1, 100)

        assert label == "UE4-CL-100-Win64"
        assert "more than one label" in caplog.text

    def test_no_matching_label(self, config):
        resolver = LabelResolver(FakeProvider([FakeLabel("UE4-CL-200")]), config)

        assert resolver.resolve_label(-1, 100) == ""

    def test_engine_version_without_changelist(self, config):
        provider = Mock(spec=SourceControlProviderProtocol)
        resolver = LabelResolver(provider, config)

        assert resolver.resolve_label(8, -1) == ""
        provider.get_labels.assert_not_called()

    def test_missing_label_pattern(self):
        provider = Mock(spec=SourceControlProviderProtocol)
        resolver = LabelResolver(provider, SourceControlConfig(depot_root="//depot/UE4"))

        assert resolver.resolve_label(-1, 100) == ""
        provider.get_labels.assert_not_called()

    def test_source_control_error_returns_empty(self, config):
        resolver = LabelResolver(FakeProvider(error="connect failed"), config)

        assert resolver.resolve_label(-1, 100) == ""

    def test_placeholder_is_case_sensitive(self):
        config = SourceControlConfig(label_pattern="UE4-CL-%changelistnumber%")
        provider = FakeProvider([FakeLabel("UE4-CL-%changelistnumber%")])
        resolver = create_label_resolver(provider, config)

        assert resolver.resolve_label(-1, 100) == "UE4-CL-%changelistnumber%"
        assert provider.label_queries == ["UE4-CL-%changelistnumber%"]
