"""Exception types raised by the resource.

Only the ``check`` and ``out`` entry points decide whether an error is
fatal; everything below them raises one of these and lets it propagate.
"""

from __future__ import annotations


class ResourceError(Exception):
    """Base class for all errors reported back to the pipeline."""


class ConfigurationError(ResourceError):
    """The pipeline payload or parameters are unusable as given."""


class InvalidRangeExpression(ConfigurationError):
    """A configured version constraint could not be parsed."""

    def __init__(self, expression: str, detail: str) -> None:
        super().__init__(
            f"Error when trying to create semver range from '{expression}': {detail}"
        )
        self.expression = expression
        self.detail = detail


class ArtifactoryError(ResourceError):
    """The Artifactory backend rejected a request or could not be reached."""

