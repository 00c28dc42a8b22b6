"""
metadata.py - Templated metadata locator for token types

A single base URI shared by all token ids. Clients substitute the id into
the "{id}" placeholder as 64 lowercase hex digits without 0x prefix, e.g.

    https://token-cdn-domain/{id}.json
    -> https://token-cdn-domain/0000...00ab4130.json
"""

from .core import TokenId, check_uint256


ID_PLACEHOLDER = "{id}"


class MetadataLocator:
    """Holds the base URI. Any string, including the empty string, is accepted."""

    def __init__(self, base_uri: str = ""):
        self._base_uri = ""
        self.set_base_uri(base_uri)

    @property
    def base_uri(self) -> str:
        return self._base_uri

    def set_base_uri(self, new_uri: str) -> None:
        if not isinstance(new_uri, str):
            raise ValueError(f"base URI must be str, got {type(new_uri).__name__}")
        self._base_uri = new_uri

    def uri(self, token_id: TokenId) -> str:
        """Base URI with the placeholder expanded for one token id."""
        check_uint256(token_id, "token_id")
        return self._base_uri.replace(ID_PLACEHOLDER, f"{token_id:064x}")
