"""Resolve build identifiers to source control labels."""

import logging

from crashsync.config.models import CHANGELIST_PLACEHOLDER, SourceControlConfig
from crashsync.core.errors import SourceControlError
from crashsync.protocols import SourceControlProviderProtocol


logger = logging.getLogger(__name__)


class LabelResolver:
    """Maps an engine version or changelist to a label name.

    Known labels from the configuration are consulted first. Otherwise the
    changelist is substituted into ``label_pattern`` and the provider is
    asked which labels match.
    """

    def __init__(
        self,
        provider: SourceControlProviderProtocol,
        config: SourceControlConfig,
    ) -> None:
        self.provider = provider
        self.config = config

    def resolve_label(self, engine_version: int, changelist: int) -> str:
        """Find the label a build was made from.

        Args:
            engine_version: Engine version, negative if unknown
            changelist: Built-from changelist, negative if unknown

        Returns:
            The label name, or an empty string if none was found
        """
        if engine_version < 0 and changelist < 0:
            logger.warning(
                "Cannot resolve a label without an engine version or changelist"
            )
            return ""

        known = self._known_label(engine_version, changelist)
        if known:
            logger.debug("Using known label %s", known)
            return known

        if changelist < 0:
            logger.warning(
                "No known label for engine version %d and no changelist to search with",
                engine_version,
            )
            return ""

        if not self.config.label_pattern:
            logger.warning("source_control.label_pattern is not configured")
            return ""

        label_name = self.config.label_pattern.replace(
            CHANGELIST_PLACEHOLDER, str(changelist)
        )
        try:
            labels = self.provider.get_labels(label_name)
        except SourceControlError as e:
            logger.warning("Failed to query labels for %s: %s", label_name, e)
            return ""

        if not labels:
            logger.warning("Could not find label: %s", label_name)
            return ""
        if len(labels) > 1:
            logger.warning(
                "Found more than one label for %s, using %s",
                label_name,
                labels[0].name,
            )

        logger.info("Changelist %d resolved to label %s", changelist, labels[0].name)
        return labels[0].name

    def _known_label(self, engine_version: int, changelist: int) -> str:
        if engine_version >= 0:
            label = self.config.engine_version_labels.get(engine_version)
            if label:
                return label
        if changelist >= 0:
            label = self.config.changelist_labels.get(changelist)
            if label:
                return label
        return ""


def create_label_resolver(
    provider: SourceControlProviderProtocol, config: SourceControlConfig
) -> LabelResolver:
    """Factory function to create a label resolver."""
    return LabelResolver(provider, config)
