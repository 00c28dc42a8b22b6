"""
test_metadata.py - Unit tests for MetadataLocator
"""

import pytest

from tokenledger import MetadataLocator, UINT256_MAX


class TestMetadataLocator:

    def test_default_is_empty(self):
        assert MetadataLocator().base_uri == ""

    def test_set_base_uri(self):
        locator = MetadataLocator("https://a/{id}.json")
        locator.set_base_uri("https://b/{id}.json")
        assert locator.base_uri == "https://b/{id}.json"

    def test_empty_string_accepted(self):
        locator = MetadataLocator("https://a/{id}.json")
        locator.set_base_uri("")
        assert locator.base_uri == ""
        assert locator.uri(1) == ""

    def test_non_string_rejected(self):
        locator = MetadataLocator("keep")
        with pytest.raises(ValueError):
            locator.set_base_uri(None)
        assert locator.base_uri == "keep"

    def test_uri_expands_placeholder(self):
        locator = MetadataLocator("https://token-cdn-domain/{id}.json")
        assert locator.uri(0xab4130) == "https://token-cdn-domain/" + "0" * 58 + "ab4130.json"

    def test_uri_max_id(self):
        assert MetadataLocator("{id}").uri(UINT256_MAX) == "f" * 64

    def test_uri_without_placeholder(self):
        assert MetadataLocator("https://static/").uri(5) == "https://static/"

    def test_uri_invalid_id(self):
        with pytest.raises(ValueError):
            MetadataLocator("{id}").uri(-1)
