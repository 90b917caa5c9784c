"""X25519 key helpers"""

import base64

from cryptography.hazmat.primitives.asymmetric.x25519 import X25519PrivateKey
from cryptography.hazmat.primitives.serialization import (
    Encoding,
    NoEncryption,
    PrivateFormat,
    PublicFormat,
)

from meshgen.models import KeyPair

KEY_LENGTH = 32


def encode_key(raw: bytes) -> str:
    """base64 encode a raw key the way wg(8) prints it"""
    return base64.b64encode(raw).decode("ascii")


def derive_public_key(private_key: bytes) -> bytes:
    """multiply the curve base point by the (clamped) private scalar"""
    secret = X25519PrivateKey.from_private_bytes(private_key)
    return secret.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw)


def generate_keypair() -> KeyPair:
    """create a new keypair from the OS random source"""
    secret = X25519PrivateKey.generate()
    private_key = secret.private_bytes(
        Encoding.Raw, PrivateFormat.Raw, NoEncryption()
    )
    public_key = secret.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw)
    return KeyPair(public_key=encode_key(public_key), private_key=encode_key(private_key))
