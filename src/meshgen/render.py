"""per-node WireGuard configuration renderer"""

import logging
from collections import Counter
from importlib.resources import files

from jinja2 import (
    Environment,
    PackageLoader,
    Template,
    TemplateNotFound,
    select_autoescape,
)

from meshgen import templates
from meshgen.config import Config
from meshgen.models import (
    DuplicateTagsError,
    MeshgenError,
    Node,
    NodeNotFoundError,
    Topology,
)

_LOGGER = logging.getLogger(__name__)

DEFAULT_TEMPLATE = "wireguard"


def get_templates() -> list[str]:
    """get all available templates in the package"""
    return sorted(
        entry.name[: -len(Renderer.J2SUFFIX)]
        for entry in files(templates).iterdir()
        if entry.name.endswith(Renderer.J2SUFFIX)
    )


def duplicate_tags(topology: Topology) -> list[str]:
    """tags used by more than one node, each once, in order of appearance"""
    counts = Counter(topology.tags)
    return [tag for tag in counts if counts[tag] > 1]


def listen_port(node: Node) -> str | None:
    """the port part of the node's own endpoint"""
    if node.endpoint is None:
        return None
    return node.endpoint.rsplit(":", 1)[-1]


class Renderer:
    """Renders the configuration of every node of a topology. The renderer
    holds no state besides the template, the same topology always renders to
    the same text."""

    J2SUFFIX = ".jinja2"

    def __init__(self, cfg: Config | None = None, template: str = DEFAULT_TEMPLATE):
        self.config = cfg or Config()
        self.template_name = template
        self.template = self.load_template()

    def load_template(self) -> Template:
        """load the template"""
        env = Environment(
            loader=PackageLoader("meshgen"), autoescape=select_autoescape()
        )
        try:
            return env.get_template(f"{self.template_name}{Renderer.J2SUFFIX}")
        except TemplateNotFound as exc:
            raise MeshgenError(f"template does not exist: {self.template_name}") from exc

    def _render_node(self, topology: Topology, index: int) -> str:
        node = topology.nodes[index]
        peers = [peer for idx, peer in enumerate(topology.nodes) if idx != index]
        return self.template.render(
            topology=topology,
            node=node,
            listen_port=listen_port(node),
            peers=peers,
        )

    def render_for(self, topology: Topology, self_tag: str) -> str:
        """render the configuration of the node tagged self_tag. With
        duplicate tags, the first node in topology order is used."""
        for index, node in enumerate(topology.nodes):
            if node.tag == self_tag:
                return self._render_node(topology, index)
        raise NodeNotFoundError(self_tag)

    def render_all(
        self, topology: Topology, permissive: bool | None = None
    ) -> dict[str, str]:
        """render every node, keyed by tag.

        Duplicate tags raise DuplicateTagsError unless permissive is set (or
        the configuration asks for it), in which case they are logged and the
        last node with a tag wins.
        """
        if permissive is None:
            permissive = self.config.permissive
        duplicates = duplicate_tags(topology)
        if duplicates:
            if not permissive:
                raise DuplicateTagsError(duplicates)
            for tag in duplicates:
                _LOGGER.warning("Multiple nodes with the same tag: %r", tag)
            _LOGGER.warning("Configurations of nodes with duplicate tags are overwritten")

        configs: dict[str, str] = {}
        for index, node in enumerate(topology.nodes):
            configs[node.tag] = self._render_node(topology, index)
        return configs


def render_for(topology: Topology, self_tag: str) -> str:
    """render one node with the default template"""
    return Renderer().render_for(topology, self_tag)


def render_all(topology: Topology, permissive: bool = False) -> dict[str, str]:
    """render all nodes with the default template"""
    return Renderer().render_all(topology, permissive=permissive)
