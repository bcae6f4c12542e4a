"""
Key lookup by key identifier.
"""

from typing import Optional

from .models import KeyRecord, KeySet


def find_key(key_set: KeySet, kid: str) -> Optional[KeyRecord]:
    """
    Return the key whose ``kid`` matches, or None.

    When several keys share the ``kid`` the last one in the set wins.
    """
    match: Optional[KeyRecord] = None
    for key in key_set.keys:
        if key.kid == kid:
            match = key
    return match
