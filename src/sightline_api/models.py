"""Canonical Pydantic models shared across all sightline_api modules.

The models fall into three groups:

**Configuration models** -- :class:`SightlineConfig` (connection settings for
all three APIs) and :class:`CachePolicy` (the on/off flag and TTL each
accessor holds).

**Request models** -- :class:`QueryFilter` (one ``<filter>`` node of an XML
query document), :class:`TrafficQueryFilter` (one filter of a REST traffic
query), and :class:`RestFilter` (one ``filter=`` argument of a REST search).

**JSON:API models** -- :class:`ResourceData` / :class:`ResourceDocument` for
mutation bodies, and :class:`ErrorObject` for entries of an ``errors``
array.

All models use Pydantic v2.
"""

from __future__ import annotations

from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

Scalar = Union[int, float, str]


# --- Configuration ---


class CachePolicy(BaseModel):
    """Cache switch and time-to-live held by every accessor.

    The policy is handed to an accessor at construction and changed at
    runtime through the accessor's ``set_should_cache`` / ``set_cache_ttl``
    setters.
    """

    model_config = ConfigDict(validate_assignment=True)

    enabled: bool = Field(default=False, description="Read and write the cache")
    ttl_seconds: int = Field(default=900, ge=1, description="Entry lifetime in seconds")


class SightlineConfig(BaseModel):
    """Connection settings for a Sightline leader.

    Mirrors the keys of the JSON config file (see
    :func:`~sightline_api.config.load_config`). Credential fields must be
    present and non-empty.

    Example::

        SightlineConfig(
            hostname="sightline.example.net",
            wskey="ws-key",
            resttoken="rest-token",
            username="soap-user",
            password="soap-pass",
            cache=True,
        )
    """

    hostname: str = Field(description="Hostname of the Sightline leader")
    wskey: str = Field(description="Web services API key")
    resttoken: str = Field(description="REST API token")
    username: str = Field(description="SOAP username")
    password: str = Field(description="SOAP password")
    soap_namespace: str = Field(
        default="urn:PeakflowSPAPI", description="Namespace of SOAP operations"
    )
    cache: bool = Field(default=False, description="Turn caching on or off")
    cache_ttl: int = Field(default=900, ge=1, description="Time to live of cached responses")
    timeout: int = Field(default=30, description="HTTP timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify TLS certificates")

    @field_validator("hostname", "wskey", "resttoken", "username", "password")
    @classmethod
    def _not_empty(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("must not be empty")
        return value

    @property
    def rest_url(self) -> str:
        return f"https://{self.hostname}/api/sp/"

    @property
    def ws_url(self) -> str:
        return f"https://{self.hostname}/arborws/"

    @property
    def soap_url(self) -> str:
        return f"https://{self.hostname}/soap/sp"

    def cache_policy(self) -> CachePolicy:
        """Build a fresh :class:`CachePolicy` from the ``cache`` settings."""
        return CachePolicy(enabled=self.cache, ttl_seconds=self.cache_ttl)


# --- Request filters ---


class QueryFilter(BaseModel):
    """One filter of an XML traffic query.

    ``value`` may be a scalar (one ``<instance>``), a list (one
    ``<instance>`` per element), or ``None`` (no instances, used with
    ``binby`` to break results down by the whole dimension).
    """

    type: str = Field(description="peer, interface, aspath, as_origin, ...")
    value: Optional[Union[Scalar, list[Scalar]]] = None
    binby: bool = False


class TrafficQueryFilter(BaseModel):
    """One filter of a REST ``/traffic_queries/`` document."""

    facet: str = Field(description="Interface, AS_Path, AS_Origin, Peer, ...")
    values: list[str] = Field(default_factory=list)
    groupby: bool = False


class RestFilter(BaseModel):
    """One REST search filter, encoded as ``<type>/<field>.<operator>.<search>``.

    ``type`` is ``a`` (attribute) or ``r`` (relationship); ``operator`` is
    ``eq`` or ``cn`` (contains). Other values are accepted here and dropped
    when a list of filters is encoded.
    """

    type: str
    field: str
    operator: str
    search: Union[Scalar, list[Scalar]]


# --- JSON:API documents ---


class ResourceData(BaseModel):
    """The ``data`` member of a JSON:API mutation body."""

    attributes: dict[str, Any] = Field(default_factory=dict)
    relationships: Optional[dict[str, Any]] = None
    type: Optional[str] = None
    id: Optional[str] = None


class ResourceDocument(BaseModel):
    """A complete JSON:API mutation body: ``{"data": {...}}``."""

    data: ResourceData

    def to_json(self) -> str:
        """Serialise to compact JSON, omitting unset optional members."""
        return self.model_dump_json(exclude_none=True)


class ErrorSource(BaseModel):
    model_config = ConfigDict(extra="allow")

    pointer: Optional[str] = None


class ErrorObject(BaseModel):
    """One entry of a JSON:API ``errors`` array.

    Extra members are preserved in ``model_extra``. Numeric members are
    read as strings.
    """

    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    id: Optional[str] = None
    message: Optional[str] = None
    title: Optional[str] = None
    detail: Optional[str] = None
    source: Optional[ErrorSource] = None

    @field_validator("id", mode="before")
    @classmethod
    def _id_to_str(cls, value: Any) -> Any:
        if isinstance(value, int):
            return str(value)
        return value
