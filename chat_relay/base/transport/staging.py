"""Request body staging.

Bodies are written to a private temp file that the transport reads, keeping
request content (and any secrets in it) out of process argument lists.
"""
from __future__ import annotations

import os
import tempfile
from typing import Optional

from ...config.defaults import STAGING_PREFIX


def stage_body(body: bytes, *, directory: Optional[str] = None, prefix: str = STAGING_PREFIX) -> str:
    """Write ``body`` to a new ``0600`` temp file and return its path."""
    fd, path = tempfile.mkstemp(prefix=prefix, suffix=".json", dir=directory)
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(body)
    except BaseException:
        discard_staged(path)
        raise
    return path


def discard_staged(path: Optional[str]) -> bool:
    """Delete a staged body; ``False`` if it was already gone.

    Other ``OSError`` values propagate to the caller's cleanup handler.
    """
    if not path:
        return False
    try:
        os.unlink(path)
    except FileNotFoundError:
        return False
    return True


__all__ = ["stage_body", "discard_staged"]
