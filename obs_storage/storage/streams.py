"""Spooling of streamed OBS object bodies into local temporary files."""

from __future__ import annotations

import tempfile
from typing import IO

CHUNK_SIZE = 64 * 1024
SPOOL_MAX_SIZE = 8 * 1024 * 1024


def spool_response(response, chunk_size: int = CHUNK_SIZE, max_size: int = SPOOL_MAX_SIZE) -> IO[bytes]:
    """
    Copy a streaming SDK response into a rewound temporary file.

    Bodies up to ``max_size`` bytes stay in memory; larger ones roll over to
    disk. The response is always closed.

    Args:
        response: Object exposing ``read(size)`` (and optionally ``close()``)
        chunk_size: Bytes read per call
        max_size: In-memory threshold before spilling to disk

    Returns:
        Readable binary file object positioned at offset 0
    """
    spool = tempfile.SpooledTemporaryFile(max_size=max_size, mode="w+b")
    try:
        while True:
            chunk = response.read(chunk_size)
            if not chunk:
                break
            if isinstance(chunk, str):
                chunk = chunk.encode("utf-8")
            spool.write(chunk)
    except BaseException:
        spool.close()
        raise
    finally:
        close = getattr(response, "close", None)
        if close is not None:
            close()

    spool.seek(0)
    return spool
