"""mesh topology lifecycle: generate, load, save and append"""

import json
import logging
from copy import deepcopy
from ipaddress import ip_address, ip_network
from itertools import islice
from typing import Any

from serde import SerdeError, from_dict, to_dict

from meshgen.allocator import MAX_NODES, available_addresses, prefix_for, subnet_of
from meshgen.config import Config
from meshgen.keys import generate_keypair
from meshgen.models import (
    CapacityExceededError,
    KeyPair,
    MeshgenError,
    Node,
    SchemaError,
    Topology,
)
from meshgen.validate import parse_address, validate_topology

_LOGGER = logging.getLogger(__name__)

# prefixes of the hand-editing template written by "init" without a count
TEMPLATE_IPV4_PREFIX = 24
TEMPLATE_IPV6_PREFIX = 120


def _check_capacity(total: int):
    if total > MAX_NODES:
        raise CapacityExceededError(
            f"total number of nodes {total} exceeds {MAX_NODES:,}"
        )


def _sequential_hosts(base: str, family: int, prefix: int, count: int) -> list:
    """the first count hosts of the subnet around base, network address skipped"""
    try:
        network = ip_network((ip_address(base), prefix), strict=False)
    except ValueError as exc:
        raise MeshgenError(f"invalid base network {base!r}: {exc}") from exc
    if network.version != family:
        raise MeshgenError(f"base network {base!r} is not an IPv{family} address")
    return [network.network_address + offset for offset in range(1, count + 1)]


def template() -> Topology:
    """a single node with empty fields, meant to be filled in by hand"""
    node = Node(tag="", key_pair=KeyPair("", ""), ipv4="", ipv6="", endpoint=None)
    return Topology([node], TEMPLATE_IPV4_PREFIX, TEMPLATE_IPV6_PREFIX)


def generate(count: int, cfg: Config | None = None) -> Topology:
    """create a mesh of count nodes with fresh keys and sequential addresses.

    Nodes are tagged "1" .. "count" and numbered from the first host of the
    configured IPv4 and IPv6 ranges. The prefixes are the smallest ones that
    fit count nodes.
    """
    cfg = cfg or Config()
    if count < 0:
        raise MeshgenError("node count must not be negative")
    _check_capacity(count)

    ipv4_prefix = prefix_for(count, 4)
    ipv6_prefix = prefix_for(count, 6)
    ipv4_hosts = _sequential_hosts(cfg.ipv4_network, 4, ipv4_prefix, count)
    ipv6_hosts = _sequential_hosts(cfg.ipv6_network, 6, ipv6_prefix, count)

    nodes = [
        Node(
            tag=str(idx + 1),
            key_pair=generate_keypair(),
            ipv4=str(ipv4),
            ipv6=str(ipv6),
            endpoint=cfg.default_endpoint,
        )
        for idx, (ipv4, ipv6) in enumerate(zip(ipv4_hosts, ipv6_hosts))
    ]
    _LOGGER.info(
        "generated %d nodes, prefixes /%d and /%d", count, ipv4_prefix, ipv6_prefix
    )
    return Topology(nodes, ipv4_prefix, ipv6_prefix)


def _upgrade_node(record: dict[str, Any]):
    """rewrite older node spellings in place"""
    key_pair = record.get("key_pair")
    if key_pair is None and ("pubkey" in record or "prikey" in record):
        key_pair = record["key_pair"] = {}
        for old in ("pubkey", "prikey"):
            if old in record:
                key_pair[old] = record.pop(old)
    if isinstance(key_pair, dict):
        for old, new in (("pubkey", "public_key"), ("prikey", "private_key")):
            if old in key_pair and new not in key_pair:
                key_pair[new] = key_pair.pop(old)
    if record.get("endpoint") == "":
        record["endpoint"] = None


def _upgrade(data: Any) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise SchemaError("a topology must be a JSON object")
    if "meshs" in data and "nodes" not in data:
        data["nodes"] = data.pop("meshs")
    nodes = data.get("nodes")
    if isinstance(nodes, list):
        for record in nodes:
            if isinstance(record, dict):
                _upgrade_node(record)
    return data


def load(text: str) -> Topology:
    """parse a persisted topology and validate all of it"""
    try:
        data = json.loads(text)
    except ValueError as exc:
        raise SchemaError(f"invalid JSON: {exc}") from exc
    try:
        topology = from_dict(Topology, _upgrade(data))
    except SerdeError as exc:
        raise SchemaError(f"invalid topology: {exc}") from exc
    validate_topology(topology)
    _LOGGER.info("loaded %d nodes", len(topology.nodes))
    return topology


def save(topology: Topology) -> str:
    """pretty printed JSON of the topology"""
    return json.dumps(to_dict(topology), indent=2)


def _allocate(used: set, prefix: int, count: int, drop_broadcast: bool) -> list:
    free = available_addresses(used, prefix)
    if drop_broadcast:
        broadcast = subnet_of(used, prefix).broadcast_address
        free = (address for address in free if address != broadcast)
    picked = list(islice(free, count))
    if len(picked) < count:
        raise CapacityExceededError(
            f"only {len(picked)} free addresses left in the /{prefix} subnet, "
            f"{count} needed"
        )
    return picked


def append(
    topology: Topology, tag: str, count: int = 1, cfg: Config | None = None
) -> Topology:
    """return a new topology with count freshly keyed nodes added.

    The prefixes are recomputed for the new total and the new nodes get the
    lowest free addresses of the recomputed subnets. A single node is tagged
    with tag, several nodes get tag-1 .. tag-count. A count of 0 only
    recomputes the prefixes. The given topology is not modified.
    """
    cfg = cfg or Config()
    if count < 0:
        raise MeshgenError("node count must not be negative")
    total = len(topology.nodes) + count
    _check_capacity(total)

    ipv4_prefix = prefix_for(total, 4)
    ipv6_prefix = prefix_for(total, 6)

    if topology.nodes:
        used4 = {parse_address(node.ipv4, 4) for node in topology.nodes}
        used6 = {parse_address(node.ipv6, 6) for node in topology.nodes}
        for used, prefix in ((used4, ipv4_prefix), (used6, ipv6_prefix)):
            subnet = subnet_of(used, prefix)
            outside = sorted(address for address in used if address not in subnet)
            for address in outside:
                _LOGGER.warning(
                    "%s is outside of the recomputed subnet %s", address, subnet
                )
        ipv4_hosts = _allocate(used4, ipv4_prefix, count, cfg.reserve_ipv4_broadcast)
        ipv6_hosts = _allocate(used6, ipv6_prefix, count, False)
    else:
        ipv4_hosts = _sequential_hosts(cfg.ipv4_network, 4, ipv4_prefix, count)
        ipv6_hosts = _sequential_hosts(cfg.ipv6_network, 6, ipv6_prefix, count)

    new_nodes = [
        Node(
            tag=tag if count == 1 else f"{tag}-{idx + 1}",
            key_pair=generate_keypair(),
            ipv4=str(ipv4),
            ipv6=str(ipv6),
            endpoint=cfg.default_endpoint,
        )
        for idx, (ipv4, ipv6) in enumerate(zip(ipv4_hosts, ipv6_hosts))
    ]
    grown = Topology(deepcopy(topology.nodes) + new_nodes, ipv4_prefix, ipv6_prefix)
    validate_topology(grown)
    _LOGGER.info("appended %d nodes, %d in total", count, total)
    return grown
