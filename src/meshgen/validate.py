"""field and invariant checks for nodes and topologies

All checks are pure. They are run once, in a single pass over the whole
topology, whenever data enters meshgen (loading a file, appending nodes).
Rendering trusts its input and never validates again.
"""

import binascii
import base64
import logging
from ipaddress import (
    IPV4LENGTH,
    IPV6LENGTH,
    AddressValueError,
    IPv4Address,
    IPv6Address,
)

from meshgen.keys import KEY_LENGTH, derive_public_key
from meshgen.models import (
    AddressSyntaxError,
    DecodingError,
    EndpointMissingPortError,
    EndpointSyntaxError,
    KeyPairMismatchError,
    Node,
    PrefixOutOfRangeError,
    Topology,
    ValidationError,
)

_LOGGER = logging.getLogger(__name__)

IPAddress = IPv4Address | IPv6Address

ADDRESS_BITS = {4: IPV4LENGTH, 6: IPV6LENGTH}


def decode_key(value: str) -> bytes:
    """decode a base64 key, it has to be exactly 32 bytes long"""
    if not isinstance(value, str):
        raise DecodingError(f"key must be a string, got {value!r}")
    try:
        raw = base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise DecodingError(f"invalid base64 key: {exc}") from exc
    if len(raw) != KEY_LENGTH:
        raise DecodingError(
            f"key decodes to {len(raw)} bytes, expected {KEY_LENGTH}"
        )
    # nonzero padding bits decode to the same bytes, only one spelling is valid
    if base64.b64encode(raw).decode("ascii") != value:
        raise DecodingError(f"key {value!r} is not canonical base64")
    return raw


def verify_keypair(public_key: str, private_key: str) -> None:
    """make sure the public key belongs to the private key"""
    public = decode_key(public_key)
    private = decode_key(private_key)
    if derive_public_key(private) != public:
        raise KeyPairMismatchError("public key and private key do not form a pair")


def parse_address(value: str, family: int) -> IPAddress:
    """parse an address of the given family (4 or 6)"""
    if not isinstance(value, str):
        raise AddressSyntaxError(
            f"IPv{family} address must be a string, got {value!r}"
        )
    cls = IPv4Address if family == 4 else IPv6Address
    try:
        address = cls(value)
    except (AddressValueError, ValueError) as exc:
        raise AddressSyntaxError(f"invalid IPv{family} address {value!r}") from exc
    if getattr(address, "scope_id", None) is not None:
        raise AddressSyntaxError(f"IPv{family} address {value!r} has a scope id")
    return address


def parse_endpoint(value: str) -> tuple[str, str]:
    """split an endpoint into host and port.

    A bracketed host ("[fd00::1]:51820") needs the port separator after the
    closing bracket, any other host is split at the last colon.
    """
    if not isinstance(value, str):
        raise EndpointSyntaxError(f"endpoint must be a string, got {value!r}")
    has_open, has_close = "[" in value, "]" in value
    if has_open and has_close:
        if ":" not in value[value.rindex("]") :]:
            raise EndpointMissingPortError(f"endpoint {value!r} has no port")
    elif has_open or has_close:
        raise EndpointSyntaxError(f"endpoint {value!r} has unbalanced brackets")
    elif ":" not in value:
        raise EndpointMissingPortError(f"endpoint {value!r} has no port")
    host, port = value.rsplit(":", 1)
    return host, port


def validate_prefixes(ipv4_prefix: int, ipv6_prefix: int) -> None:
    """both prefixes have to fit the bit width of their family"""
    for family, prefix in ((4, ipv4_prefix), (6, ipv6_prefix)):
        bits = ADDRESS_BITS[family]
        if isinstance(prefix, bool) or not isinstance(prefix, int):
            raise PrefixOutOfRangeError(
                f"the ipv{family}_prefix must be an integer, got {prefix!r}"
            )
        if not 0 <= prefix <= bits:
            raise PrefixOutOfRangeError(
                f"the ipv{family}_prefix must be between 0 and {bits}, got {prefix}"
            )


def validate_node(node: Node) -> None:
    """check every field of a single node, errors are prefixed with its tag"""
    try:
        parse_address(node.ipv4, 4)
        parse_address(node.ipv6, 6)
        verify_keypair(node.key_pair.public_key, node.key_pair.private_key)
        if node.endpoint is not None:
            parse_endpoint(node.endpoint)
    except ValidationError as exc:
        raise type(exc)(f"[{node.tag}] {exc}") from exc


def validate_topology(topology: Topology) -> None:
    """one total pass over the topology, raises on the first problem"""
    for node in topology.nodes:
        validate_node(node)
    validate_prefixes(topology.ipv4_prefix, topology.ipv6_prefix)
    _LOGGER.debug("validated %d nodes", len(topology.nodes))
