"""Pydantic models for the Hydra SDK.

Wire records exchanged with the Hydra REST API. Models accept unknown
fields (the server evolves faster than the SDK) and treat JSON ``null``
collections as empty.
"""

from __future__ import annotations

import re
from datetime import UTC, datetime, timedelta
from typing import Annotated, Any, Self

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


def _none_as_empty_list(value: Any) -> Any:
    return [] if value is None else value


def _none_as_empty_dict(value: Any) -> Any:
    return {} if value is None else value


StrList = Annotated[list[str], BeforeValidator(_none_as_empty_list)]
AnyDict = Annotated[dict[str, Any], BeforeValidator(_none_as_empty_dict)]

_FRACTION_RE = re.compile(r"(\.\d{6})\d+")


def to_unix(value: Any) -> int | None:
    """Normalise a wire timestamp to Unix-epoch seconds.

    Accepts integers, floats, numeric strings, RFC 3339 strings and
    datetimes. Zero values (``0`` or Go's ``0001-01-01T00:00:00Z``) map to
    ``None``.
    """
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        msg = f"Invalid timestamp: {value!r}"
        raise ValueError(msg)
    if isinstance(value, (int, float)):
        try:
            return int(value) or None
        except (OverflowError, ValueError) as e:
            msg = f"Invalid timestamp: {value!r}"
            raise ValueError(msg) from e
    if isinstance(value, str):
        try:
            return int(float(value)) or None
        except (OverflowError, ValueError):
            pass
        text = _FRACTION_RE.sub(r"\1", value.strip())
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        value = datetime.fromisoformat(text)
    if isinstance(value, datetime):
        if value.year == 1:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return int(value.timestamp())
    msg = f"Invalid timestamp: {value!r}"
    raise ValueError(msg)


class Client(BaseModel):
    """OAuth2 client registered on Hydra.

    Optional fields left as ``None`` are not sent; the secret in
    particular is write-only and only appears in responses when the
    server generated it.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = ""
    name: str = Field(default="", alias="client_name")
    secret: str | None = Field(default=None, alias="client_secret")
    redirect_uris: list[str] | None = None
    grant_types: StrList = Field(default_factory=list)
    response_types: list[str] | None = None
    scope: str | None = None
    owner: str | None = None
    policy_uri: str | None = None
    terms_of_service_uri: str | None = Field(default=None, alias="tos_uri")
    client_uri: str | None = None
    logo_uri: str | None = None
    contacts: list[str] | None = None
    public: bool = False

    @field_validator(
        "secret",
        "scope",
        "owner",
        "policy_uri",
        "terms_of_service_uri",
        "client_uri",
        "logo_uri",
        mode="before",
    )
    @classmethod
    def empty_string_as_none(cls, v: Any) -> Any:
        """Hydra sends omitted strings as ``""``."""
        return v or None

    @field_validator("redirect_uris", "response_types", "contacts", mode="before")
    @classmethod
    def empty_list_as_none(cls, v: Any) -> Any:
        """Hydra sends omitted lists as ``[]`` or ``null``."""
        return v or None

    def to_wire(self) -> dict[str, Any]:
        """Serialize for a create/update request."""
        return self.model_dump(by_alias=True, exclude_none=True)


class Policy(BaseModel):
    """Allows or denies subjects to perform actions on resources.

    Subjects, resources and actions are plain strings (``user:0001``) or
    patterns (``resource:<.+>``); the server evaluates them.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = ""
    description: str = ""
    subjects: StrList = Field(default_factory=list)
    effect: str = ""
    resources: StrList = Field(default_factory=list)
    actions: StrList = Field(default_factory=list)
    conditions: AnyDict = Field(default_factory=dict)

    def to_wire(self) -> dict[str, Any]:
        """Serialize for a create/update request."""
        return self.model_dump(mode="json")


class Group(BaseModel):
    """Named set of members known to the warden."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = ""
    members: StrList = Field(default_factory=list)

    def to_wire(self) -> dict[str, Any]:
        """Serialize for a create/update request."""
        return self.model_dump(mode="json")


class Permission(BaseModel):
    """Resource/action pair to check, with optional evaluation context."""

    model_config = ConfigDict(frozen=True)

    resource: str
    action: str
    context: AnyDict = Field(default_factory=dict)


class Introspection(BaseModel):
    """Token introspection record (RFC 7662).

    Decodes both the plain introspection response and the combined
    ``/warden/token/allowed`` response. The latter sends ``iat``/``exp``
    as RFC 3339 strings and scopes as a list; both are normalised so the
    record has the same shape whichever endpoint produced it.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    active: bool = False
    scope: str | None = None
    client_id: str | None = None
    subject: str | None = Field(default=None, alias="sub")
    username: str | None = None
    token_type: str | None = None
    issued_at: int | None = Field(default=None, alias="iat")
    expires_at: int | None = Field(default=None, alias="exp")
    not_before: int | None = Field(default=None, alias="nbf")
    audience: str | list[str] | None = Field(default=None, alias="aud")
    issuer: str | None = Field(default=None, alias="iss")
    extra: AnyDict = Field(default_factory=dict, alias="ext")

    # Only set by the combined introspect+authorize endpoint
    allowed: bool | None = None
    scopes: StrList = Field(default_factory=list)

    @field_validator("issued_at", "expires_at", "not_before", mode="before")
    @classmethod
    def normalise_timestamp(cls, v: Any) -> int | None:
        """Convert any supported timestamp form to Unix seconds."""
        return to_unix(v)

    @field_validator("scope", mode="before")
    @classmethod
    def join_scope(cls, v: Any) -> Any:
        """Some servers send scope as a list."""
        if isinstance(v, list):
            return " ".join(str(s) for s in v)
        return v

    @model_validator(mode="after")
    def scope_from_scopes(self) -> Self:
        """Rebuild the space-joined scope from an echoed scope list."""
        if self.scopes and not self.scope:
            # Frozen model: bypass assignment validation
            object.__setattr__(self, "scope", " ".join(self.scopes))
        return self

    @property
    def scope_list(self) -> list[str]:
        """Get scopes as list."""
        if not self.scope:
            return []
        return self.scope.split()

    @property
    def is_expired(self) -> bool:
        """Check whether ``exp`` lies in the past."""
        if self.expires_at is None:
            return False
        return datetime.now(UTC).timestamp() >= self.expires_at


class TokenResponse(BaseModel):
    """OAuth 2.0 token response from the token endpoint."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    access_token: str = Field(..., min_length=1)
    token_type: str = Field(default="Bearer")
    expires_in: Annotated[int, Field(gt=0)] | None = None
    scope: str | None = None


class TokenData(BaseModel):
    """Stored bearer token with expiration tracking."""

    model_config = ConfigDict(frozen=True)

    access_token: str
    token_type: str
    expires_at: datetime | None = None
    scope: str | None = None

    @classmethod
    def from_response(
        cls,
        response: TokenResponse,
        *,
        buffer_seconds: int = 60,
    ) -> Self:
        """Create TokenData from TokenResponse with expiration calculation."""
        expires_at = None
        if response.expires_in is not None:
            # Short-lived tokens keep at least half of their lifetime.
            buffer = min(buffer_seconds, response.expires_in // 2)
            expires_at = datetime.now(UTC) + timedelta(seconds=response.expires_in - buffer)
        return cls(
            access_token=response.access_token,
            token_type=response.token_type,
            expires_at=expires_at,
            scope=response.scope,
        )

    def is_expired(self) -> bool:
        """Check if token is expired (tokens without expiry never are)."""
        if self.expires_at is None:
            return False
        return datetime.now(UTC) >= self.expires_at


class JWK(BaseModel):
    """JSON Web Key representation."""

    model_config = ConfigDict(frozen=True, extra="allow")

    kty: str = Field(..., description="Key type")
    kid: str | None = Field(default=None, description="Key ID")
    use: str | None = Field(default=None, description="Key use")
    alg: str | None = Field(default=None, description="Algorithm")

    # RSA keys
    n: str | None = None
    e: str | None = None
    d: str | None = None

    @property
    def is_private(self) -> bool:
        """Whether the key carries private material."""
        return self.d is not None

    def to_dict(self) -> dict[str, Any]:
        """Dump as a JWK JSON object."""
        return self.model_dump(exclude_none=True)


class JWKS(BaseModel):
    """JSON Web Key Set."""

    model_config = ConfigDict(frozen=True)

    keys: Annotated[list[JWK], BeforeValidator(_none_as_empty_list)] = Field(
        default_factory=list
    )
