"""Example scripts for Tree Mirror.

Available examples:

basic_usage.py
    Mirror a local directory, read through the tree, subscribe to
    notifications and watch edits arrive pass by pass.
    Start here to understand the core workflow.

watch_remote.py
    Follow a branch of a git remote in the background and print every
    file that changes.

Run any example:
    python examples/basic_usage.py
    python examples/watch_remote.py https://github.com/org/settings.git main
"""
