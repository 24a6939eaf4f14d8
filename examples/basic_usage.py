#!/usr/bin/env python3
"""Basic usage example for Tree Mirror.

This example demonstrates:
1. Mirroring a local directory
2. Reading files through the node tree
3. Subscribing to change notifications
4. Seeing edits, additions and deletions arrive after a pass

Run this example:
    python basic_usage.py
"""

import json
import shutil
import tempfile
from pathlib import Path

from tree_mirror import Mirror, MirrorConfig, NodeNotFoundError


def main():
    with tempfile.TemporaryDirectory() as temp_dir:
        snapshot = Path(temp_dir) / "settings"
        snapshot.mkdir()

        # Pre-populate the directory another process would normally maintain
        (snapshot / "service.json").write_text(json.dumps({"replicas": 2}))
        (snapshot / "features").mkdir()
        (snapshot / "features" / "beta.txt").write_text("off")

        print("=" * 60)
        print("Tree Mirror - Basic Usage Example")
        print("=" * 60)

        # ---------------------------------------------------------------------
        # Step 1: Open the mirror
        # ---------------------------------------------------------------------
        print("\n[1] Opening mirror...")

        # update_interval_s=0 keeps the background loop off; we drive passes
        config = MirrorConfig(root_path=snapshot, update_interval_s=0)
        mirror = Mirror(config)
        stats = mirror.open()
        print(f"    First pass: {stats.nodes_added} nodes in {stats.duration_ms:.1f}ms")

        # ---------------------------------------------------------------------
        # Step 2: Read through the tree
        # ---------------------------------------------------------------------
        print("\n[2] Reading files...")

        service = mirror.root / "service.json"
        print(f"    service.json -> {service.deserialize()}")
        print(f"    features/beta.txt -> {mirror.resolve('features/beta.txt').get_string_data()}")

        try:
            mirror.resolve("features/missing.txt")
        except NodeNotFoundError as e:
            print(f"    Lookup error: {e}")

        # ---------------------------------------------------------------------
        # Step 3: Subscribe
        # ---------------------------------------------------------------------
        print("\n[3] Subscribing to notifications...")

        service.content_changed.connect(
            lambda old, new: print(f"    service.json: {old.decode()} -> {new.decode()}")
        )
        features = mirror.root / "features"
        features.changed.connect(
            lambda: print(f"    features/ changed, now {[c.name for c in features.get_children()]}")
        )
        beta = features / "beta.txt"
        beta.removed.connect(lambda: print("    features/beta.txt removed"))
        mirror.node_created.connect(lambda node: print(f"    new node: {node.relative_path}"))

        # ---------------------------------------------------------------------
        # Step 4: Change the directory and run a pass
        # ---------------------------------------------------------------------
        print("\n[4] Editing the directory...")

        (snapshot / "service.json").write_text(json.dumps({"replicas": 5}))
        (snapshot / "features" / "beta.txt").unlink()
        (snapshot / "features" / "dark_mode.txt").write_text("on")

        stats = mirror.update()
        print(
            f"    Pass: {stats.nodes_added} added, {stats.nodes_removed} removed, "
            f"{stats.files_modified} modified"
        )
        print(f"    beta.txt removed flag: {beta.is_removed}")

        # ---------------------------------------------------------------------
        # Step 5: Unchanged directory, nothing fires
        # ---------------------------------------------------------------------
        print("\n[5] Re-running without changes...")
        stats = mirror.update()
        print(f"    changed={stats.changed}")

        # ---------------------------------------------------------------------
        # Step 6: Remove a whole directory
        # ---------------------------------------------------------------------
        print("\n[6] Removing features/...")
        features.removed.connect(lambda: print("    features/ removed"))
        shutil.rmtree(snapshot / "features")
        mirror.update()

        mirror.close()
        print("\nDone.")


if __name__ == "__main__":
    main()
