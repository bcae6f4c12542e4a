"""
Mock Keycloak server providing discovery and JWKS endpoints.
"""

import copy
from typing import Dict, Any, List, Optional
from fastapi import FastAPI, HTTPException

from shared.logging import get_logger


def mock_key(kid: str, n: str = "mock-public-key-n") -> Dict[str, str]:
    """Build one RSA signing key entry."""
    return {
        "kty": "RSA",
        "kid": kid,
        "use": "sig",
        "n": n,
        "e": "AQAB",
        "alg": "RS256"
    }


class MockKeycloakServer:
    """Mock Keycloak server implementation."""
    
    def __init__(self, port: int = 8080, realm: str = "254carbon"):
        self.port = port
        self.logger = get_logger("mock.keycloak")
        self.app = FastAPI(title="Mock Keycloak", version="1.0.0")
        
        self.realm = realm
        self.issuer = f"http://localhost:{port}/realms/{self.realm}"
        
        # Mock JWKS
        self.jwks: Dict[str, Any] = {"keys": [mock_key("mock-key-1")]}
        
        # Failure injection and request accounting
        self.fail_with: Optional[int] = None
        self.jwks_requests = 0
        
        self._setup_routes()
    
    def rotate_keys(self, keys: List[Dict[str, str]]) -> None:
        """Replace the published key set."""
        self.jwks = {"keys": copy.deepcopy(keys)}
        self.logger.info("Keys rotated", kids=[key.get("kid") for key in keys])
    
    def _setup_routes(self):
        """Set up mock Keycloak routes."""
        
        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "mock-keycloak",
                "realm": self.realm,
                "issuer": self.issuer
            }
        
        @self.app.get("/realms/{realm}/.well-known/openid-configuration")
        async def openid_configuration(realm: str):
            """OpenID Connect configuration."""
            if realm != self.realm:
                raise HTTPException(status_code=404, detail="Realm not found")
            
            return {
                "issuer": self.issuer,
                "jwks_uri": f"{self.issuer}/protocol/openid-connect/certs",
                "id_token_signing_alg_values_supported": ["RS256"]
            }
        
        @self.app.get("/realms/{realm}/protocol/openid-connect/certs")
        async def jwks_endpoint(realm: str):
            """JWKS endpoint."""
            self.jwks_requests += 1
            if realm != self.realm:
                raise HTTPException(status_code=404, detail="Realm not found")
            
            if self.fail_with is not None:
                raise HTTPException(status_code=self.fail_with, detail="Injected failure")
            
            return self.jwks


def create_app():
    """Create mock Keycloak application."""
    server = MockKeycloakServer()
    return server.app


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(create_app(), host="0.0.0.0", port=8080)
