"""
Unit tests for the JWKS data models.
"""

import json

import pytest
from pydantic import ValidationError

from jwks_cache.app.models import FetchPolicyConfig, KeyRecord, KeySet, RealmConfig
from shared.errors import JwksDecodeError


@pytest.fixture
def mock_jwks_data():
    """Mock JWKS data."""
    return {
        "keys": [
            {
                "kty": "RSA",
                "kid": "mock-key-1",
                "use": "sig",
                "n": "mock-public-key-n",
                "e": "AQAB",
                "alg": "RS256"
            },
            {
                "kty": "RSA",
                "kid": "mock-key-2",
                "use": "enc",
                "n": "mock-public-key-n2",
                "e": "AQAB",
                "alg": "RSA-OAEP",
                "x5t": "ignored-extra-field"
            }
        ]
    }


class TestKeySet:
    """Test cases for KeySet decoding."""

    def test_from_json_preserves_order(self, mock_jwks_data):
        key_set = KeySet.from_json(json.dumps(mock_jwks_data))

        assert key_set.kids == ("mock-key-1", "mock-key-2")
        assert key_set.keys[1].alg == "RSA-OAEP"

    def test_from_json_accepts_bytes(self, mock_jwks_data):
        key_set = KeySet.from_json(json.dumps(mock_jwks_data).encode("utf-8"))

        assert len(key_set.keys) == 2

    def test_from_mapping(self, mock_jwks_data):
        assert KeySet.from_mapping(mock_jwks_data) == KeySet.from_json(json.dumps(mock_jwks_data))

    def test_to_json_round_trip(self, mock_jwks_data):
        key_set = KeySet.from_mapping(mock_jwks_data)

        assert KeySet.from_json(key_set.to_json()) == key_set

    @pytest.mark.parametrize("content", [
        "not json",
        "[]",
        "{}",
        '{"keys": [{"kid": "only-kid"}]}',
        '{"keys": "nope"}',
    ])
    def test_malformed_documents_raise_decode_error(self, content):
        with pytest.raises(JwksDecodeError) as exc_info:
            KeySet.from_json(content)

        assert exc_info.value.code == "DECODE_ERROR"

    def test_from_mapping_malformed(self):
        with pytest.raises(JwksDecodeError):
            KeySet.from_mapping({"keys": [{"kid": 1}]})

    def test_key_set_is_immutable(self, mock_jwks_data):
        key_set = KeySet.from_mapping(mock_jwks_data)

        with pytest.raises(ValidationError):
            key_set.keys = ()
        with pytest.raises(ValidationError):
            key_set.keys[0].kid = "changed"


class TestRealmConfig:
    """Test cases for RealmConfig."""

    def test_for_server_builds_keycloak_certs_url(self):
        config = RealmConfig.for_server("https://sso.example.com/auth/", "tenant-a")

        assert config.realm_name == "tenant-a"
        assert config.jwks_url == "https://sso.example.com/auth/realms/tenant-a/protocol/openid-connect/certs"

    def test_empty_realm_name_rejected(self):
        with pytest.raises(ValidationError):
            RealmConfig(realm_name="", jwks_url="http://localhost/certs")


class TestFetchPolicyConfig:
    """Test cases for FetchPolicyConfig."""

    def test_default_is_one_day(self):
        assert FetchPolicyConfig().min_time_between_jwks_requests == 1440

    def test_negative_interval_rejected(self):
        with pytest.raises(ValidationError):
            FetchPolicyConfig(min_time_between_jwks_requests=-1)


def test_key_record_fields():
    key = KeyRecord(alg="RS256", kty="RSA", use="sig", n="n", e="AQAB", kid="k")

    assert key.model_dump() == {"alg": "RS256", "kty": "RSA", "use": "sig", "n": "n", "e": "AQAB", "kid": "k"}
