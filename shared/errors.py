"""
Shared error types for the JWKS cache.
"""

from typing import Dict, Any, Optional


class JwksCacheError(Exception):
    """Base exception for the JWKS cache."""
    
    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)
    
    def to_dict(self) -> Dict[str, Any]:
        """Convert to a log/callback friendly mapping."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }


class JwksTransportError(JwksCacheError):
    """Network or HTTP failure while fetching a key set."""
    
    def __init__(
        self,
        url: str,
        message: str = "JWKS request failed",
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.url = url
        self.status_code = status_code
        merged = {"url": url}
        if status_code is not None:
            merged["status_code"] = status_code
        merged.update(details or {})
        super().__init__("TRANSPORT_ERROR", message, merged)


class JwksDecodeError(JwksCacheError):
    """Cached or fetched key set could not be decoded."""
    
    def __init__(self, message: str = "Malformed JWKS document", details: Optional[Dict[str, Any]] = None):
        super().__init__("DECODE_ERROR", message, details)


class StorageError(JwksCacheError):
    """Key-value store backend failure."""
    
    def __init__(self, message: str = "Storage error", details: Optional[Dict[str, Any]] = None):
        super().__init__("STORAGE_ERROR", message, details)
