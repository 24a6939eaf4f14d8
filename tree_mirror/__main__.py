"""CLI entry point for Tree Mirror.

Usage:
    python -m tree_mirror show  (--path DIR | --url URL) [--json]
    python -m tree_mirror cat   (--path DIR | --url URL) NODE_PATH
    python -m tree_mirror verify --path DIR
    python -m tree_mirror watch (--path DIR | --url URL) [--interval SECONDS]

Commands:
    show      Print the mirrored tree
    cat       Print the content of one mirrored file
    verify    Check a fresh mirror against the directory it was built from
    watch     Keep the mirror updated and print every change notification
"""

import argparse
import json
import logging
import sys
import threading
from pathlib import Path
from typing import Optional

from tree_mirror import (
    DigestAlgorithm,
    DirectoryNode,
    FileNode,
    Mirror,
    MirrorConfig,
    MirrorError,
    Node,
    RemoteConfig,
    __version__,
    verify_tree,
)
from tree_mirror.utils.logging import configure_root_logger


def setup_logging(args: argparse.Namespace) -> None:
    """Configure logging for CLI output."""
    configure_root_logger(
        level=logging.DEBUG if args.verbose else logging.INFO,
        json_output=args.json_logs,
        log_file=Path(args.log_file) if args.log_file else None,
    )


def build_mirror(args: argparse.Namespace) -> Mirror:
    """Create a Mirror from --path or --url arguments."""
    config = MirrorConfig(
        root_path=Path(args.path) if args.path else None,
        digest_algorithm=DigestAlgorithm(args.digest),
        ignore_patterns=args.ignore if args.ignore is not None else [".git"],
        update_interval_s=getattr(args, "interval", 30.0),
    )
    remote: Optional[RemoteConfig] = None
    if args.url:
        remote = RemoteConfig(
            url=args.url,
            branch=args.branch,
            access_token=args.token,
            cache_root=Path(args.cache_dir),
        )
    return Mirror(config, remote=remote)


def _open(args: argparse.Namespace) -> Optional[Mirror]:
    mirror = build_mirror(args)
    stats = mirror.open()
    if not stats.success:
        for error in stats.errors:
            print(f"Error: {error}", file=sys.stderr)
        return None
    return mirror


def _print_tree(node: Node, indent: str = "") -> None:
    for child in node.get_children():
        if isinstance(child, DirectoryNode):
            print(f"{indent}{child.name}/")
            _print_tree(child, indent + "  ")
        else:
            print(f"{indent}{child.name}  ({child.size} bytes, {child.digest[:12]})")


def cmd_show(args: argparse.Namespace) -> int:
    """Handle the 'show' command - print the mirrored tree.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    mirror = _open(args)
    if mirror is None:
        return 1

    try:
        if args.json:
            print(json.dumps(mirror.root.to_dict(), indent=2))
        else:
            print(f"{mirror.source.path}/")
            if mirror.revision:
                print(f"  revision: {mirror.revision}")
            _print_tree(mirror.root, "  ")
        return 0
    finally:
        mirror.close()


def cmd_cat(args: argparse.Namespace) -> int:
    """Handle the 'cat' command - print one file.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    mirror = _open(args)
    if mirror is None:
        return 1

    try:
        node = mirror.resolve(args.node_path)
        sys.stdout.buffer.write(node.get_data())
        sys.stdout.flush()
        return 0
    except MirrorError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        mirror.close()


def cmd_verify(args: argparse.Namespace) -> int:
    """Handle the 'verify' command - compare the tree with the disk.

    Returns:
        Exit code (0 if consistent, 1 otherwise)
    """
    mirror = _open(args)
    if mirror is None:
        return 1

    try:
        result = verify_tree(
            mirror.root,
            mirror.source.path,
            digest_algorithm=mirror.config.digest_algorithm,
            ignore_patterns=mirror.config.ignore_patterns,
        )
    finally:
        mirror.close()

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print(f"Verified {result.verified_count} / {result.total_files} files")
        for label, paths in (
            ("Mismatched", result.mismatched_files),
            ("Missing on disk", result.missing_on_disk),
            ("Missing in tree", result.missing_in_tree),
            ("Errors", result.errors),
        ):
            for path in paths:
                print(f"  {label}: {path}")
    return 0 if result.is_valid else 1


def _subscribe(node: Node) -> None:
    """Print every notification the node fires."""
    label = node.relative_path or "/"
    if isinstance(node, DirectoryNode):
        label = label.rstrip("/") + "/"

    node.changed.connect(lambda: print(f"changed  {label}", flush=True))
    node.removed.connect(lambda: print(f"removed  {label}", flush=True))
    if isinstance(node, FileNode):
        node.content_changed.connect(
            lambda old, new: print(f"modified {label} ({len(old)} -> {len(new)} bytes)", flush=True)
        )


def cmd_watch(args: argparse.Namespace) -> int:
    """Handle the 'watch' command - follow the mirror until interrupted.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    mirror = _open(args)
    if mirror is None:
        return 1

    for node in mirror.root.walk():
        _subscribe(node)
    mirror.node_created.connect(_subscribe)
    mirror.start()
    print(f"Watching {mirror.source.path} every {args.interval}s (Ctrl+C to stop)", flush=True)

    try:
        threading.Event().wait()
    except KeyboardInterrupt:
        pass
    finally:
        mirror.close()
    return 0


def _add_source_arguments(parser: argparse.ArgumentParser, allow_url: bool = True) -> None:
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--path", help="Local directory to mirror")
    if allow_url:
        group.add_argument("--url", help="Git remote to mirror")
        parser.add_argument("--branch", default="main", help="Branch to track (default: main)")
        parser.add_argument("--token", help="Access token for private repositories")
        parser.add_argument(
            "--cache-dir", default=".",
            help="Directory the git checkout is created in (default: .)"
        )
    else:
        parser.set_defaults(url=None)
    parser.add_argument(
        "--digest", choices=[a.value for a in DigestAlgorithm],
        default=DigestAlgorithm.SHA256.value, help="Digest algorithm (default: sha256)"
    )
    parser.add_argument(
        "--ignore", action="append", metavar="PATTERN",
        help="Entry name pattern to skip (repeatable, default: .git)"
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog="tree-mirror",
        description="Tree Mirror - observable in-memory mirror of a synchronized directory",
    )
    parser.add_argument(
        "--version", action="version",
        version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable verbose output"
    )
    parser.add_argument("--json-logs", action="store_true", help="Log as JSON lines")
    parser.add_argument("--log-file", help="Also write logs to this file")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    show_parser = subparsers.add_parser("show", help="Print the mirrored tree")
    _add_source_arguments(show_parser)
    show_parser.add_argument("--json", action="store_true", help="Output as JSON")

    cat_parser = subparsers.add_parser("cat", help="Print one mirrored file")
    _add_source_arguments(cat_parser)
    cat_parser.add_argument("node_path", help="File path relative to the mirror root")

    verify_parser = subparsers.add_parser("verify", help="Check tree digests against disk")
    _add_source_arguments(verify_parser, allow_url=False)
    verify_parser.add_argument("--json", action="store_true", help="Output as JSON")

    watch_parser = subparsers.add_parser("watch", help="Print change notifications")
    _add_source_arguments(watch_parser)
    watch_parser.add_argument(
        "--interval", type=float, default=30.0,
        help="Seconds between refreshes (default: 30)"
    )

    return parser


def main(argv: Optional[list] = None) -> int:
    """Main entry point for the CLI.

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    setup_logging(args)

    commands = {
        "show": cmd_show,
        "cat": cmd_cat,
        "verify": cmd_verify,
        "watch": cmd_watch,
    }

    handler = commands.get(args.command)
    if handler:
        return handler(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
