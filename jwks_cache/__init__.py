"""
JWKS cache for Keycloak realms.
"""
