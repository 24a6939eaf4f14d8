#!/usr/bin/env python3
"""Follow a git branch and react to configuration changes.

Clones the branch into a cache directory, then refreshes it in the
background and prints every file whose content changes.

Run this example:
    python watch_remote.py https://github.com/org/settings.git [branch]

Set TREE_MIRROR_TOKEN to read a private repository.
"""

import logging
import os
import sys
import time
from pathlib import Path

from tree_mirror import FileNode, Mirror, MirrorConfig, RemoteConfig
from tree_mirror.utils.logging import configure_root_logger


def subscribe(node):
    if isinstance(node, FileNode):
        node.content_changed.connect(
            lambda old, new: print(f"[modified] {node.relative_path} ({len(old)} -> {len(new)} bytes)")
        )
    node.removed.connect(lambda: print(f"[removed]  {node.relative_path}"))


def on_created(node):
    print(f"[added]    {node.relative_path}")
    subscribe(node)


def main():
    if len(sys.argv) < 2:
        print(__doc__)
        return 1

    configure_root_logger(level=logging.INFO)

    remote = RemoteConfig(
        url=sys.argv[1],
        branch=sys.argv[2] if len(sys.argv) > 2 else "main",
        access_token=os.environ.get("TREE_MIRROR_TOKEN"),
        cache_root=Path.home() / ".cache" / "tree-mirror",
    )
    config = MirrorConfig(update_interval_s=15)

    with Mirror(config, remote=remote) as mirror:
        if mirror.last_stats and not mirror.last_stats.success:
            print(f"Initial update failed: {mirror.last_stats.errors}")
            return 1

        print(f"Mirroring {remote.url}@{remote.branch} ({mirror.revision})")
        for node in mirror.root.walk():
            subscribe(node)
        mirror.node_created.connect(on_created)

        try:
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            print("\nStopping...")
    return 0


if __name__ == "__main__":
    sys.exit(main())
