"""
Field and invariant validation tests
"""

from ipaddress import IPv4Address, IPv6Address

import pytest

from meshgen.keys import derive_public_key, encode_key, generate_keypair
from meshgen.models import (
    AddressSyntaxError,
    DecodingError,
    EndpointMissingPortError,
    EndpointSyntaxError,
    KeyPairMismatchError,
    PrefixOutOfRangeError,
    ValidationError,
)
from meshgen.validate import (
    decode_key,
    parse_address,
    parse_endpoint,
    validate_node,
    validate_prefixes,
    validate_topology,
    verify_keypair,
)

from conftest import OTHER_PRIVATE_KEY, ZERO_PRIVATE_KEY, ZERO_PUBLIC_KEY


class TestKeys:
    """Tests for key decoding and keypair correspondence."""

    def test_decode_key(self):
        assert decode_key(ZERO_PRIVATE_KEY) == bytes(32)

    @pytest.mark.parametrize(
        "value",
        [
            "",
            "not base64!",
            "AAAA",
            # 33 bytes
            encode_key(bytes(33)),
            # missing padding
            ZERO_PRIVATE_KEY.rstrip("="),
            # nonzero unused bits in the last character
            ZERO_PRIVATE_KEY[:-2] + "B=",
        ],
    )
    def test_decode_key_invalid(self, value):
        with pytest.raises(DecodingError):
            decode_key(value)

    def test_derive_zero_key(self):
        assert encode_key(derive_public_key(bytes(32))) == ZERO_PUBLIC_KEY

    def test_verify_keypair(self):
        verify_keypair(ZERO_PUBLIC_KEY, ZERO_PRIVATE_KEY)

    def test_verify_generated_keypair(self):
        key_pair = generate_keypair()
        verify_keypair(key_pair.public_key, key_pair.private_key)

    def test_verify_keypair_mismatch(self):
        with pytest.raises(KeyPairMismatchError):
            verify_keypair(ZERO_PUBLIC_KEY, OTHER_PRIVATE_KEY)

    def test_verify_keypair_bad_encoding(self):
        with pytest.raises(DecodingError):
            verify_keypair("", ZERO_PRIVATE_KEY)


class TestAddresses:
    """Tests for address parsing."""

    def test_parse_ipv4(self):
        assert parse_address("10.0.0.1", 4) == IPv4Address("10.0.0.1")

    def test_parse_ipv6(self):
        assert parse_address("fd00::1", 6) == IPv6Address("fd00::1")

    @pytest.mark.parametrize(
        "value,family",
        [
            ("invalid-ip", 4),
            ("10.0.0.256", 4),
            ("fd00::1", 4),
            ("10.0.0.1/24", 4),
            ("invalid-ipv6", 6),
            ("10.0.0.1", 6),
            ("fd00::1%eth0", 6),
            ("", 6),
        ],
    )
    def test_parse_invalid(self, value, family):
        with pytest.raises(AddressSyntaxError):
            parse_address(value, family)


class TestEndpoints:
    """Tests for the bracket aware endpoint rule."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("test.local.arpa:51820", ("test.local.arpa", "51820")),
            ("192.0.2.1:1", ("192.0.2.1", "1")),
            ("[2001:db8::1]:51820", ("[2001:db8::1]", "51820")),
            # without brackets the last colon separates the port
            ("2001:db8::1", ("2001:db8:", "1")),
        ],
    )
    def test_parse_endpoint(self, value, expected):
        assert parse_endpoint(value) == expected

    @pytest.mark.parametrize(
        "value", ["invalid-endpoint", "[2001:db8::1]", "", "host.example"]
    )
    def test_missing_port(self, value):
        with pytest.raises(EndpointMissingPortError):
            parse_endpoint(value)

    @pytest.mark.parametrize("value", ["[2001:db8::1:51820", "2001:db8::1]:51820"])
    def test_unbalanced_brackets(self, value):
        with pytest.raises(EndpointSyntaxError):
            parse_endpoint(value)


class TestPrefixes:
    """Tests for prefix bounds."""

    @pytest.mark.parametrize("ipv4,ipv6", [(0, 0), (24, 120), (32, 128)])
    def test_valid(self, ipv4, ipv6):
        validate_prefixes(ipv4, ipv6)

    @pytest.mark.parametrize("ipv4,ipv6", [(33, 64), (24, 129), (-1, 64), (24, -1)])
    def test_out_of_range(self, ipv4, ipv6):
        with pytest.raises(PrefixOutOfRangeError):
            validate_prefixes(ipv4, ipv6)


class TestNode:
    """Tests for whole node and topology validation."""

    def test_valid_node(self, node):
        validate_node(node)

    def test_node_without_endpoint(self, node):
        node.endpoint = None
        validate_node(node)

    def test_error_names_the_tag(self, node):
        node.ipv4 = "invalid-ip"
        with pytest.raises(AddressSyntaxError, match=r"^\[1\] "):
            validate_node(node)

    def test_topology_checks_every_node(self, mesh):
        mesh.nodes[-1].ipv6 = "invalid-ipv6"
        with pytest.raises(ValidationError, match=r"^\[c\] "):
            validate_topology(mesh)

    def test_topology_checks_prefixes(self, mesh):
        mesh.ipv6_prefix = 129
        with pytest.raises(PrefixOutOfRangeError):
            validate_topology(mesh)
