"""Command-line interface for browsing VSIX archives."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import BinaryIO, List, Optional, Sequence, TextIO

from vsix_viewer.common import ConfigLoader, ConfigurationError, LogContext, setup_logging
from vsix_viewer.explorer import TreeDataProvider, TreeNode, ViewerConfig, ViewerContext, find_node
from vsix_viewer.explorer.discovery import ArchiveWorkspace, expand_archive_paths

# Application name derived from package name
_package = __package__ or "vsix_viewer"
APP_NAME = _package.replace('_', '-').replace('.', '-')

logger = logging.getLogger(__package__ or __name__)


def _format_node(provider: TreeDataProvider, node: TreeNode) -> str:
    item = provider.get_tree_item(node)
    text = f"{item.label}/" if item.is_directory else item.label
    if item.description:
        text = f"{text} [{item.description}]"
    return text


def render_tree(provider: TreeDataProvider, root: TreeNode) -> List[str]:
    """Render a tree as box-drawing text lines."""
    lines = [_format_node(provider, root)]

    def push_children(node: TreeNode, prefix: str) -> None:
        count = len(node.children)
        for i in reversed(range(count)):
            stack.append((node.children[i], prefix, i == count - 1))

    stack: List[tuple[TreeNode, str, bool]] = []
    push_children(root, "")
    while stack:
        node, prefix, last = stack.pop()
        connector = "└── " if last else "├── "
        lines.append(f"{prefix}{connector}{_format_node(provider, node)}")
        push_children(node, prefix + ("    " if last else "│   "))

    return lines


async def tree_command(
    context: ViewerContext,
    paths: Sequence[Path],
    recursive: bool = True,
    out: Optional[TextIO] = None,
) -> int:
    """Print the tree of every archive in ``paths`` (directories are searched).

    Returns:
        Exit code (1 if any archive failed to load)
    """
    out = out or sys.stdout
    archive_paths = expand_archive_paths(paths, recursive=recursive)
    if not archive_paths:
        logger.warning("No archives found")
        return 0

    result = await context.registry.load_all(archive_paths)

    for root in context.registry.roots:
        out.write("\n".join(render_tree(context.provider, root)) + "\n")

    for path, error in result.failed.items():
        logger.error(f"Failed to load {path}: {error.message}")

    return 1 if result.failed else 0


async def show_command(
    context: ViewerContext,
    archive: Path,
    entry_path: str,
    out: Optional[BinaryIO] = None,
) -> int:
    """Write the content of one archive entry to ``out``.

    Returns:
        Exit code (0 for success)
    """
    out = out or sys.stdout.buffer
    result = await context.registry.load_all([archive])
    if result.failed:
        return 1

    index = context.registry.get(archive)
    node = find_node(index.root, entry_path)
    if node is None or node.is_directory:
        logger.error(f"No file entry '{entry_path}' in {index.name}")
        return 1

    view = await context.cache.open_view(node)
    if view is None:
        return 1

    try:
        out.write(view.data)
        out.flush()
    finally:
        context.cache.close_view(view.key)
    return 0


def serve_command(
    context: ViewerContext,
    paths: Sequence[Path],
    host: Optional[str] = None,
    port: Optional[int] = None,
) -> int:
    """Serve the HTTP API for the archives in ``paths``."""
    import uvicorn
    from vsix_viewer.api import create_app

    workspace = ArchiveWorkspace(context.registry, expand_archive_paths(paths))
    app = create_app(context, workspace)

    host = host or context.config.server.host
    port = port or context.config.server.port
    logger.info(f"Serving {len(workspace.paths)} archive(s) on http://{host}:{port}")

    # log_config=None keeps the logging configured by setup_logging
    uvicorn.run(app, host=host, port=port, log_config=None)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Browse VSIX archives without unpacking them"
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to config file (defaults.toml)"
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
        help="Log level (overrides config)"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    tree_parser = subparsers.add_parser("tree", help="Print archive trees")
    tree_parser.add_argument("paths", nargs="+", type=Path, help="Archives or directories")
    tree_parser.add_argument(
        "--no-recursive",
        action="store_true",
        help="Do not search subdirectories of directory arguments"
    )

    show_parser = subparsers.add_parser("show", help="Print one entry's content")
    show_parser.add_argument("archive", type=Path, help="Archive file")
    show_parser.add_argument("entry", help="Full entry path inside the archive")

    serve_parser = subparsers.add_parser("serve", help="Serve the HTTP API")
    serve_parser.add_argument("paths", nargs="*", type=Path, default=[Path.cwd()],
                              help="Archives or directories (default: current directory)")
    serve_parser.add_argument("--host", help="Bind address (overrides config)")
    serve_parser.add_argument("--port", type=int, help="Bind port (overrides config)")

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    loader = ConfigLoader(app_name=APP_NAME, config_class=ViewerConfig)
    try:
        config = loader.load(defaults_path=args.config)
    except ConfigurationError as e:
        setup_logging()
        logger.error(str(e))
        return 2

    setup_logging(
        level=args.log_level or config.logging.level,
        format=config.logging.format,
        log_file=Path(config.logging.file) if config.logging.file else None,
        max_file_size_mb=config.logging.max_file_size_mb,
        backup_count=config.logging.backup_count,
    )

    context = ViewerContext.create(config)
    try:
        with LogContext(logger, command=args.command):
            if args.command == "tree":
                return asyncio.run(tree_command(context, args.paths, recursive=not args.no_recursive))
            if args.command == "show":
                return asyncio.run(show_command(context, args.archive, args.entry))
            if args.command == "serve":
                return serve_command(context, args.paths, host=args.host, port=args.port)
        parser.error(f"Unknown command: {args.command}")
        return 2
    except Exception as e:
        logger.exception(f"Command failed: {e}")
        return 1
    finally:
        context.close()


if __name__ == "__main__":
    sys.exit(main())
