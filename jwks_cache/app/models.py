"""
Data models for the JWKS cache.
"""

from typing import Any, Dict, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from shared.errors import JwksDecodeError


KEYCLOAK_CERTS_PATH = "/realms/{realm}/protocol/openid-connect/certs"


class KeyRecord(BaseModel):
    """One key of a JSON Web Key Set."""

    model_config = ConfigDict(frozen=True)

    alg: str
    kty: str
    use: str
    n: str
    e: str
    kid: str


class KeySet(BaseModel):
    """The JSON Web Key Set of one realm at one point in time."""

    model_config = ConfigDict(frozen=True)

    keys: Tuple[KeyRecord, ...]

    @classmethod
    def from_json(cls, content: Union[str, bytes]) -> "KeySet":
        """Decode a persisted or fetched JWKS document."""
        try:
            return cls.model_validate_json(content)
        except ValidationError as exc:
            raise JwksDecodeError(details={"errors": exc.error_count(), "error": str(exc)}) from exc

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> "KeySet":
        """Validate an already decoded JWKS document."""
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise JwksDecodeError(details={"errors": exc.error_count(), "error": str(exc)}) from exc

    def to_json(self) -> str:
        return self.model_dump_json()

    @property
    def kids(self) -> Tuple[str, ...]:
        return tuple(key.kid for key in self.keys)


class RealmConfig(BaseModel):
    """Realm name plus the URL its key set is served from."""

    model_config = ConfigDict(frozen=True)

    realm_name: str = Field(min_length=1)
    jwks_url: str = Field(min_length=1)

    @classmethod
    def for_server(cls, auth_server_url: str, realm_name: str) -> "RealmConfig":
        """Build the config for a realm hosted on a Keycloak server."""
        base = auth_server_url.rstrip("/")
        return cls(
            realm_name=realm_name,
            jwks_url=base + KEYCLOAK_CERTS_PATH.format(realm=realm_name),
        )


class FetchPolicyConfig(BaseModel):
    """Minimum number of minutes between two JWKS requests for a realm."""

    model_config = ConfigDict(frozen=True)

    min_time_between_jwks_requests: int = Field(default=24 * 60, ge=0)
