"""Normalization of sandbox/container file paths to project-relative paths."""

from __future__ import annotations

import re

__all__ = ["normalize_file_path"]

_INSTANCE_WORKSPACE_RE = re.compile(r"/workspace/i-[a-f0-9-]+/(.+)")
_ANY_WORKSPACE_RE = re.compile(r"/workspace/[^/]+/(.+)")


def normalize_file_path(file_path: str) -> str:
    """Reduce an absolute sandbox path to a project-relative one.

    ``/workspace/i-<id>/src/App.tsx`` and ``/workspace/<anything>/src/App.tsx``
    become ``src/App.tsx``; ``/app/src/App.tsx`` drops the ``/app/`` prefix and
    ``/src/App.tsx`` loses its leading slash. Anything else is returned as is.
    """
    if not file_path:
        return file_path

    match = _INSTANCE_WORKSPACE_RE.search(file_path)
    if match:
        return match.group(1)

    match = _ANY_WORKSPACE_RE.search(file_path)
    if match:
        return match.group(1)

    if file_path.startswith("/app/"):
        return file_path[len("/app/") :]

    if file_path.startswith("/src/"):
        return file_path[1:]

    return file_path
