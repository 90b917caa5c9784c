"""address allocation for growing meshes"""

from collections.abc import Iterator
from ipaddress import IPv4Network, IPv6Network, ip_network

from meshgen.models import MeshgenError, PrefixOutOfRangeError
from meshgen.validate import ADDRESS_BITS, IPAddress

# network + broadcast for IPv4, only the network address for IPv6
RESERVED_ADDRESSES = {4: 2, 6: 1}

# 2**24 - 2, the IPv4 subnet never gets wider than a /8
MAX_NODES = 16_777_214


def prefix_for(total: int, family: int) -> int:
    """smallest subnet (largest prefix) holding total hosts plus the reserved
    addresses, i.e. bits - ceil(log2(total + reserved))"""
    bits = ADDRESS_BITS[family]
    needed = total + RESERVED_ADDRESSES[family]
    host_bits = (needed - 1).bit_length()
    return max(bits - host_bits, 0)


def subnet_of(used: set[IPAddress], prefix: int) -> IPv4Network | IPv6Network:
    """the subnet of the given prefix containing the lowest used address"""
    if not used:
        raise MeshgenError("need at least one used address to locate the subnet")
    if len({address.version for address in used}) != 1:
        raise MeshgenError("used addresses mix IPv4 and IPv6")
    first = min(used)
    if not 0 <= prefix <= first.max_prefixlen:
        raise PrefixOutOfRangeError(
            f"prefix {prefix} out of range for IPv{first.version}"
        )
    return ip_network((first, prefix), strict=False)


def _free_hosts(network, used: set[IPAddress]) -> Iterator[IPAddress]:
    for offset in range(1, network.num_addresses):
        address = network.network_address + offset
        if address not in used:
            yield address


def available_addresses(used: set[IPAddress], prefix: int) -> Iterator[IPAddress]:
    """all free host addresses of the subnet, lazily and in ascending order.

    The subnet is located from the lowest used address. Its network address
    (offset 0) is never returned. The highest address is returned if free,
    even for IPv4 where it is the broadcast address; callers drop it
    themselves if they need to. Every call starts over from the lowest
    offset.
    """
    network = subnet_of(used, prefix)
    return _free_hosts(network, used)
