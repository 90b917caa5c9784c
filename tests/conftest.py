"""
meshgen Test Fixtures
"""

import pytest

from meshgen.config import Config
from meshgen.keys import generate_keypair
from meshgen.models import KeyPair, Node, Topology

# X25519 keypair with an all-zero private scalar
ZERO_PRIVATE_KEY = "AAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAA="
ZERO_PUBLIC_KEY = "L+V9o0fNYkMVKNqsX7spBzD/9oSvxM/C7ZCZX1jLO3Q="

# a valid looking private key which does not belong to ZERO_PUBLIC_KEY
OTHER_PRIVATE_KEY = "y3f0fu/krxHKNdt86ElVqBs9jLdvn4AYncjlBKWe/nA="


@pytest.fixture
def node() -> Node:
    """a valid node with fixed keys"""
    return Node(
        tag="1",
        key_pair=KeyPair(public_key=ZERO_PUBLIC_KEY, private_key=ZERO_PRIVATE_KEY),
        ipv4="10.0.0.1",
        ipv6="fd00::1",
        endpoint="test.local.arpa:51820",
    )


@pytest.fixture
def topology(node: Node) -> Topology:
    """a single node topology"""
    return Topology([node], 24, 120)


@pytest.fixture
def mesh() -> Topology:
    """three nodes, the last one without an endpoint"""
    nodes = [
        Node("a", generate_keypair(), "10.0.0.1", "fd00::1", "a.example.net:51820"),
        Node("b", generate_keypair(), "10.0.0.2", "fd00::2", "[2001:db8::2]:51821"),
        Node("c", generate_keypair(), "10.0.0.3", "fd00::3", None),
    ]
    return Topology(nodes, 29, 126)


@pytest.fixture
def cfg() -> Config:
    return Config()
