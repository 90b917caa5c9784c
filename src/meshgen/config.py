"""
meshgen Configuration - Tool Settings and Defaults Management

PURPOSE:
    Manages the tool configuration loaded from a TOML file. It holds the
    address ranges new meshes are numbered from, the endpoint given to newly
    created nodes and the policies for the two behaviours that historically
    varied (duplicate tags, IPv4 broadcast reservation).

WHO READS ME:
    - main.py: Loads configuration via Config.load() during bootstrap
    - topology.py: Uses networks, endpoint and broadcast policy
    - render.py: Uses the duplicate tag policy

WHO I READ:
    - models.py: MeshgenError for invalid settings

DEPENDENCIES:
    - serde: TOML serialization/deserialization (@deserialize, @serialize)
    - serde.toml: from_toml(), to_toml()
    - dataclasses: @dataclass decorator
    - logging: Configuration loading status messages

CONFIG PARAMETERS:
    - ipv4_network: first address of the IPv4 mesh range (default: 10.0.0.0)
    - ipv6_network: first address of the IPv6 mesh range (default: fd00::)
    - endpoint: endpoint of generated nodes, "" for none
      (default: place.holder.local.arpa:51820)
    - duplicate_tags: "strict" fails on duplicate tags, "permissive" warns
      and lets the last node win (default: strict)
    - reserve_ipv4_broadcast: never hand out the all-ones IPv4 host when
      appending nodes (default: true)

FILE FORMAT:
    config.toml example:
    ```toml
    ipv4_network = "10.0.0.0"
    ipv6_network = "fd00::"
    endpoint = "place.holder.local.arpa:51820"
    duplicate_tags = "strict"
    reserve_ipv4_broadcast = true
    ```
"""

import logging
from dataclasses import dataclass

from serde import deserialize, serialize, SerdeError
from serde.toml import from_toml, to_toml

from meshgen.models import MeshgenError

_LOGGER = logging.getLogger(__name__)

DUPLICATE_TAG_POLICIES = ("strict", "permissive")


@deserialize
@serialize
@dataclass
class Config:
    """mesh generator configuration"""

    ipv4_network: str = "10.0.0.0"
    ipv6_network: str = "fd00::"
    endpoint: str = "place.holder.local.arpa:51820"
    duplicate_tags: str = "strict"
    reserve_ipv4_broadcast: bool = True

    def __post_init__(self):
        if self.duplicate_tags not in DUPLICATE_TAG_POLICIES:
            raise MeshgenError(
                f"duplicate_tags must be one of {', '.join(DUPLICATE_TAG_POLICIES)}"
            )

    @property
    def permissive(self) -> bool:
        """duplicate tags only produce a warning"""
        return self.duplicate_tags == "permissive"

    @property
    def default_endpoint(self) -> str | None:
        """endpoint for new nodes, None when the setting is empty"""
        return self.endpoint or None

    @classmethod
    def load(cls, filename: str) -> "Config":
        """load the configuration from the given file"""
        try:
            with open(filename, encoding="utf-8") as handle:
                cfg = from_toml(cls, handle.read())
            _LOGGER.info("Configuration loaded from file %s", filename)
        except (
            FileNotFoundError,
            TypeError,
            ValueError,
            SerdeError,
            MeshgenError,
        ) as exc:
            if not isinstance(exc, FileNotFoundError):
                _LOGGER.error(exc)
            cfg = cls()
            _LOGGER.warning("using configuration defaults")
        return cfg

    def save(self, filename: str):
        """save the configuration to the given file"""
        with open(filename, "w+", encoding="utf-8") as handle:
            handle.write(to_toml(self))
