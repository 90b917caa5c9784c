"""
meshgen Main Entry Point - CLI Argument Parsing and Application Bootstrap

PURPOSE:
    Entry point for the meshgen CLI tool. Handles argument parsing, tool
    configuration loading, the interactive overwrite confirmation and all
    file and directory I/O. Everything else is delegated to the core
    modules.

WHO READS ME:
    - Users: via CLI command `meshgen` or `python -m meshgen`

WHO I READ:
    - config.py: Configuration loading and defaults
    - models.py: MeshgenError exception handling
    - topology.py: generate, load, save, append
    - render.py: Renderer and available templates
    - colorlog.py: Custom log formatting

COMMANDS:
    - init: write a new mesh file (generated nodes or an editable template)
    - append: add nodes to a mesh file
    - convert: write one WireGuard configuration per node into a directory
    - show: print the WireGuard configuration of a single node
"""

import argparse
import logging
import os
import sys
from pathlib import Path

import enlighten

import meshgen
from meshgen.allocator import MAX_NODES
from meshgen.colorlog import CustomFormatter
from meshgen.config import Config
from meshgen.models import MeshgenError, Topology
from meshgen.render import DEFAULT_TEMPLATE, Renderer, get_templates
from meshgen.topology import append, generate, load, save, template

_LOGGER = logging.getLogger(__name__)


def valid_node_count(value):
    try:
        ivalue = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid value {value}, not a number") from None
    if ivalue < 0 or ivalue > MAX_NODES:
        raise argparse.ArgumentTypeError(
            f"invalid value {value}. Valid values are from 0-{MAX_NODES}."
        )
    return ivalue


def create_argparser():
    """create the argparser for meshgen"""
    parser = argparse.ArgumentParser(
        prog=meshgen.__name__, description=meshgen.__description__
    )
    config_settings = parser.add_argument_group("configuration")

    config_settings.add_argument(
        "-c",
        "--config",
        dest="configfile",
        help="Use the configuration from this file, defaults to %(default)s",
        default="config.toml",
    )
    config_settings.add_argument(
        "-w",
        "--write",
        dest="writeconfig",
        action="store_true",
        help="Write the default configuration to a file and exit",
        default=False,
    )
    config_settings.add_argument(
        "-v", "--version", action="version", version=f"%(prog)s {meshgen.__version__}"
    )
    config_settings.add_argument(
        "-l",
        "--loglevel",
        type=str,
        default=os.environ.get("LOG_LEVEL", "WARN"),
        help="DEBUG, INFO, WARN, ERROR, CRITICAL, defaults to %(default)s",
    )
    parser.add_argument(
        "-f",
        "--file",
        dest="meshfile",
        default="mesh.json",
        help="Mesh description file, defaults to %(default)s",
    )
    parser.add_argument(
        "--list-templates",
        dest="listtemplates",
        action="store_true",
        help="List all available templates",
    )

    commands = parser.add_subparsers(dest="command", metavar="COMMAND")

    p_init = commands.add_parser("init", help="Init a mesh description file")
    p_init.add_argument(
        "-n",
        "--count",
        type=valid_node_count,
        default=None,
        help="Number of nodes to generate, writes an editable template if omitted",
    )
    p_init.add_argument(
        "-y",
        "--yes",
        action="store_true",
        default=False,
        help="Overwrite an existing file without asking",
    )

    p_append = commands.add_parser("append", help="Append nodes to the mesh")
    p_append.add_argument(
        "-t", "--tag", required=True, help="Tag of the appended node(s)"
    )
    p_append.add_argument(
        "-n",
        "--count",
        type=valid_node_count,
        default=1,
        help="Number of nodes to append, default %(default)d",
    )
    p_append.add_argument(
        "-i",
        "--in-place",
        dest="in_place",
        action="store_true",
        default=False,
        help="Write the result back to the mesh file instead of printing it",
    )

    p_convert = commands.add_parser(
        "convert", help="Convert the mesh to WireGuard configurations"
    )
    p_convert.add_argument(
        "-o", "--output", required=True, help="Existing output directory"
    )
    p_convert.add_argument(
        "--permissive",
        action="store_true",
        default=None,
        help="Only warn about duplicate tags, the last node with a tag wins",
    )
    p_convert.add_argument(
        "-p",
        "--progress",
        action="store_true",
        help="show a progress bar",
    )

    p_show = commands.add_parser(
        "show", help="Print the WireGuard configuration of one node"
    )
    p_show.add_argument("-t", "--tag", required=True, help="Tag of the node")

    for sub in (p_convert, p_show):
        sub.add_argument(
            "-T",
            "--template",
            type=str,
            help='Template name to use, defaults to "%(default)s"',
            default=DEFAULT_TEMPLATE,
        )
    return parser


def get_log_level(level_name: str) -> tuple[int, bool]:
    log_levels = {
        "CRITICAL": logging.CRITICAL,
        "ERROR": logging.ERROR,
        "WARN": logging.WARNING,
        "WARNING": logging.WARNING,
        "INFO": logging.INFO,
        "DEBUG": logging.DEBUG,
        "NOTSET": logging.NOTSET,
    }
    level_name = level_name.upper()
    if level_name in log_levels:
        return log_levels[level_name], False
    else:
        return logging.WARNING, True


def setup_logging(loglevel: str):
    """sets up the logging, takes the given loglevel and uses the custom,
    colorful log formatter
    """
    logging.basicConfig(level=logging.WARN)
    level, unknown_loglevel = get_log_level(loglevel)
    logging.root.setLevel(level)
    for handler in logging.root.handlers:
        stream = getattr(handler, "stream", None)
        use_color = bool(stream is not None and hasattr(stream, "isatty") and stream.isatty())
        handler.setFormatter(CustomFormatter(use_color=use_color))
    if unknown_loglevel:
        _LOGGER.warning("Unknown log level: %s", loglevel.upper())


def confirm_overwrite(path: Path) -> bool:
    """ask before replacing an existing file"""
    try:
        answer = input(f"{path} already exists, continue? [y/N] ")
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


def read_topology(filename: str) -> Topology:
    try:
        text = Path(filename).read_text(encoding="utf-8")
    except OSError as exc:
        raise MeshgenError(f"cannot read mesh file: {exc}") from exc
    return load(text)


def write_topology(filename: str, topology: Topology):
    try:
        Path(filename).write_text(save(topology) + "\n", encoding="utf-8")
    except OSError as exc:
        raise MeshgenError(f"cannot write mesh file: {exc}") from exc
    _LOGGER.info("mesh written to %s", filename)


def cmd_init(args: argparse.Namespace, cfg: Config) -> int:
    path = Path(args.meshfile)
    if path.exists() and not args.yes and not confirm_overwrite(path):
        raise MeshgenError("Aborted")
    topology = template() if args.count is None else generate(args.count, cfg)
    write_topology(args.meshfile, topology)
    return 0


def cmd_append(args: argparse.Namespace, cfg: Config) -> int:
    topology = append(read_topology(args.meshfile), args.tag, args.count, cfg)
    if args.in_place:
        write_topology(args.meshfile, topology)
    else:
        print(save(topology))
    return 0


def cmd_convert(args: argparse.Namespace, cfg: Config) -> int:
    output = Path(args.output)
    if output.is_file():
        raise MeshgenError(f"output {output} should be a directory, not a file")
    if not output.exists():
        raise MeshgenError(f"output directory {output} does not exist")

    topology = read_topology(args.meshfile)
    configs = Renderer(cfg, args.template).render_all(
        topology, permissive=args.permissive
    )

    manager = None
    ticks = None
    if args.progress:
        manager = enlighten.get_manager()
        ticks = manager.counter(
            total=len(configs),
            desc="Progress",
            unit="configs",
            color="cyan",
            leave=False,
        )

    tag_warned = False
    written = 0
    for tag, config in configs.items():
        if ticks:
            ticks.update()  # type: ignore
        if not tag:
            if not tag_warned:
                _LOGGER.warning(
                    "One or more of the nodes has an empty tag, it will be ignored"
                )
                tag_warned = True
            continue
        try:
            (output / f"{tag}.conf").write_text(config, encoding="utf-8")
        except OSError as exc:
            raise MeshgenError(f"cannot write configuration of {tag!r}: {exc}") from exc
        written += 1

    if ticks:
        ticks.close()  # type: ignore
    if manager:
        manager.stop()  # type: ignore
    _LOGGER.info("%d configurations written to %s", written, output)
    return 0


def cmd_show(args: argparse.Namespace, cfg: Config) -> int:
    topology = read_topology(args.meshfile)
    print(Renderer(cfg, args.template).render_for(topology, args.tag), end="")
    return 0


COMMANDS = {
    "init": cmd_init,
    "append": cmd_append,
    "convert": cmd_convert,
    "show": cmd_show,
}


def main(argv=None):
    """main function, returns 0 on success, 1 otherwise"""
    parser = create_argparser()
    args = parser.parse_args(argv)
    setup_logging(args.loglevel)

    cfg = Config.load(args.configfile)
    if args.writeconfig:
        cfg.save(args.configfile)
        return 0

    if args.listtemplates:
        print("Available templates: ", ", ".join(get_templates()))
        return 0

    if args.command is None:
        parser.print_help()
        return 1

    try:
        retval = COMMANDS[args.command](args, cfg)
    except MeshgenError as exc:
        _LOGGER.error(exc)
        retval = 1
    return retval


if __name__ == "__main__":
    sys.exit(main())
