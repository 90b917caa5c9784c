"""
meshgen - WireGuard Mesh Configuration File Generator

Purpose: Package initialization. Defines the public API exports, loads the
         package metadata (__version__, __description__) and provides the
         central import point for the mesh generator.

Package Structure:
    - main.py: CLI entry point and argument parsing
    - models.py: Data models (KeyPair, Node, Topology) and the error taxonomy
    - keys.py: X25519 key generation and derivation
    - validate.py: Field and invariant checks, run when data enters meshgen
    - allocator.py: Free address enumeration and prefix computation
    - topology.py: generate, load, save and append
    - render.py: Per-node configuration rendering
    - config.py: Configuration management
    - colorlog.py: Colored log output formatter
    - templates/: Jinja2 templates for the node configurations

Entry Points:
    - meshgen: CLI command (calls main.main())
    - python -m meshgen: Direct module execution

Public API Exports:
    - Config, Topology, Node, KeyPair
    - generate(), load(), save(), append()
    - Renderer, render_for(), render_all()
    - main(): CLI entry point
    - __version__, __description__: from package metadata
"""

import importlib.metadata as importlib_metadata

from .config import Config
from .models import KeyPair, MeshgenError, Node, Topology
from .topology import append, generate, load, save
from .render import Renderer, render_all, render_for
from .main import main

_metadata = importlib_metadata.metadata("meshgen")
__version__ = _metadata["Version"]
__description__ = _metadata["Summary"]


__all__ = [
    "Config",
    "KeyPair",
    "MeshgenError",
    "Node",
    "Topology",
    "append",
    "generate",
    "load",
    "save",
    "Renderer",
    "render_all",
    "render_for",
    "main",
]
