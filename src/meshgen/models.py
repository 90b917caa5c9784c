"""
meshgen Data Models - Core Data Structures for Mesh Description

PURPOSE:
    Defines the data models used throughout meshgen for representing a
    WireGuard mesh (keypairs, nodes, the topology holding them) and the
    error taxonomy raised by every other module.

WHO READS ME:
    - validate.py: Checks every field of Node and Topology
    - topology.py: Builds, loads, saves and grows Topology values
    - render.py: Reads Topology to produce per-node configurations
    - main.py: Uses MeshgenError for exception handling

WHO I READ:
    - None (leaf module, no internal dependencies)

DEPENDENCIES:
    - dataclasses: @dataclass decorator
    - serde: @serialize / @deserialize so models round-trip through dicts

KEY EXPORTS:
    - MeshgenError: Base exception class for all meshgen errors
    - ValidationError and its subclasses: one per broken field or invariant
    - DuplicateTagsError, CapacityExceededError, NodeNotFoundError
    - KeyPair, Node, Topology: the persisted data model

DATA MODELS:

    KeyPair:
        - public_key: str (base64 of 32 bytes, X25519 public key)
        - private_key: str (base64 of 32 bytes, X25519 private key)

    Node:
        - tag: str (display label, also the output file name)
        - key_pair: KeyPair
        - ipv4: str (address inside the IPv4 mesh subnet)
        - ipv6: str (address inside the IPv6 mesh subnet)
        - endpoint: str | None ("host:port" peers use to reach the node)

    Topology:
        - nodes: list[Node] (order is kept for stable output)
        - ipv4_prefix: int (0-32)
        - ipv6_prefix: int (0-128)

    Nodes carry no identity of their own. Where one is needed, the position
    in Topology.nodes is used.
"""

from dataclasses import dataclass, field

from serde import deserialize, serialize


class MeshgenError(Exception):
    """Base class for all errors raised by meshgen"""


class ValidationError(MeshgenError):
    """persisted or generated data breaks a field rule or an invariant"""


class SchemaError(ValidationError):
    """the persisted document does not have the expected structure"""


class DecodingError(ValidationError):
    """a key is not valid base64 or does not decode to 32 bytes"""


class KeyPairMismatchError(ValidationError):
    """the public key is not the one derived from the private key"""


class AddressSyntaxError(ValidationError):
    """an address does not parse as an address of its family"""


class EndpointSyntaxError(ValidationError):
    """an endpoint has unbalanced brackets"""


class EndpointMissingPortError(ValidationError):
    """an endpoint has no port separator"""


class PrefixOutOfRangeError(ValidationError):
    """a prefix length exceeds the bit width of its family"""


class DuplicateTagsError(MeshgenError):
    """more than one node uses the same tag"""

    def __init__(self, tags: list[str]):
        self.tags = tags
        super().__init__(
            "multiple nodes with the same tag: " + ", ".join(repr(t) for t in tags)
        )


class CapacityExceededError(MeshgenError):
    """the mesh would hold more nodes than the address scheme allows"""


class NodeNotFoundError(MeshgenError):
    """no node carries the requested tag"""

    def __init__(self, tag: str):
        self.tag = tag
        super().__init__(f"no node with tag {tag!r}")


@deserialize
@serialize
@dataclass
class KeyPair:
    """base64 encoded X25519 keys of a node"""

    public_key: str
    private_key: str


@deserialize
@serialize
@dataclass
class Node:
    """a participant of the mesh"""

    tag: str
    key_pair: KeyPair
    ipv4: str
    ipv6: str
    endpoint: str | None = None


@deserialize
@serialize
@dataclass
class Topology:
    """the mesh: all nodes plus the prefix lengths of both subnets"""

    nodes: list[Node] = field(default_factory=list)
    ipv4_prefix: int = 24
    ipv6_prefix: int = 120

    @property
    def tags(self) -> list[str]:
        """tags of all nodes, in topology order"""
        return [node.tag for node in self.nodes]
