"""Data models for artifactory-resource.

These Pydantic models describe the JSON payloads Concourse exchanges with
the ``check`` and ``out`` executables, plus the versioned file record the
discovery algorithm works on.
"""

from __future__ import annotations

from typing import TypeVar

import semver
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ConfigurationError

DEFAULT_THREADS = 3


class Source(BaseModel):
    """The ``source`` block of a resource definition.

    Attributes:
        url: Base URL of the Artifactory instance, e.g.
             ``https://example.jfrog.io/artifactory``.
        user: User name for basic authentication.
        password: Password for basic authentication.
        api_key: API key, preferred over user/password when set.
        pattern: Search pattern in the form ``repo/path/name*.zip``.
        props: Property filter/properties, ``key=value;key2=v1,v2``.
        recursive: Search below the pattern's directory too.
        flat: Accepted for compatibility only. Uploads are always flat and
              searches do not look at it.
        regexp: Treat the upload source as a regular expression. Searches
                always use ``*``/``?`` wildcards.
        version: Semver range used to filter discovered files. Empty means
                 files are reported in search order without filtering.
        log_level: One of ERROR, WARN, INFO, DEBUG.
    """

    model_config = ConfigDict(extra="ignore")

    url: str = ""
    user: str = ""
    password: str = ""
    api_key: str = ""
    pattern: str = ""
    props: str = ""
    recursive: bool = True
    flat: bool = False
    regexp: bool = False
    version: str = ""
    log_level: str = "INFO"


class OutParams(BaseModel):
    """The ``params`` block of a ``put`` step."""

    model_config = ConfigDict(extra="ignore")

    target: str = ""
    source: str = ""
    threads: int = DEFAULT_THREADS
    explode_archive: bool = False

    @field_validator("threads", mode="before")
    @classmethod
    def _null_threads(cls, value: object) -> object:
        return DEFAULT_THREADS if value is None else value

    @field_validator("threads")
    @classmethod
    def _positive_threads(cls, value: int) -> int:
        return value if value > 0 else DEFAULT_THREADS


class ResourceVersion(BaseModel):
    """A single version token; repository paths double as versions."""

    version: str = ""


class CheckRequest(BaseModel):
    source: Source = Field(default_factory=Source)
    version: ResourceVersion | None = None

    @property
    def previous(self) -> str:
        """Path of the version last emitted, or "" on the first check."""
        return self.version.version if self.version else ""


class OutRequest(BaseModel):
    source: Source = Field(default_factory=Source)
    params: OutParams = Field(default_factory=OutParams)


class MetadataField(BaseModel):
    name: str
    value: str


class OutResponse(BaseModel):
    version: ResourceVersion
    metadata: list[MetadataField] = Field(default_factory=list)


class VersionedFile(BaseModel):
    """A repository path together with the semantic version found in it.

    Only built when a valid version was extracted; files without one are
    left out of discovery rather than given a default version.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    path: str
    version: semver.Version


RequestT = TypeVar("RequestT", CheckRequest, OutRequest)


def parse_request(model: type[RequestT], payload: str) -> RequestT:
    """Validate a JSON payload read from stdin.

    Raises:
        ConfigurationError: If the payload is not valid JSON or does not
            match ``model``.
    """
    try:
        return model.model_validate_json(payload or "{}")
    except ValidationError as exc:
        raise ConfigurationError(
            f"Error when parsing source from concourse: {exc}"
        ) from exc
