"""
Unit tests for registry_client.utils.
"""

import pytest

from registry_client.utils import (
    generate_uri_for_host_and_port,
    parse_serial_number,
)


def test_generate_uri_with_port():
    assert generate_uri_for_host_and_port("http", "localhost", 31310) == "http://localhost:31310"


def test_generate_uri_without_port():
    assert generate_uri_for_host_and_port("https", "example.com", None) == "https://example.com"


@pytest.mark.parametrize(
    "block,expected",
    [
        ("ABC100-ABC199", ("100", "199")),
        ("1-10", ("1", "10")),
        ("US-VCS-1-US-VCS-500", ("1", "500")),
        ("junk", (None, None)),
        ("", (None, None)),
        (None, (None, None)),
    ],
)
def test_parse_serial_number(block, expected):
    assert parse_serial_number(block) == expected
