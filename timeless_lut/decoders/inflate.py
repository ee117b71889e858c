"""Deflate stream decompression for jewel data files.

The upstream files carry a ``.zip`` suffix but are bare deflate streams, not
archives.  Most are zlib framed; raw deflate is accepted as well so the
decoder does not depend on how a particular release was compressed.
"""

from __future__ import annotations

import logging
import zlib

from ..exceptions import DecompressionFailure

LOG = logging.getLogger(__name__)

__all__ = ["inflate", "has_zlib_header"]

_ZLIB_WBITS = zlib.MAX_WBITS
_RAW_WBITS = -zlib.MAX_WBITS


def has_zlib_header(data: bytes) -> bool:
    """Return ``True`` when ``data`` opens with a valid RFC 1950 header."""

    if len(data) < 2:
        return False
    cmf, flg = data[0], data[1]
    if cmf & 0x0F != 8 or cmf >> 4 > 7:
        return False
    return ((cmf << 8) | flg) % 31 == 0


def inflate(data: bytes) -> bytes:
    """Decompress ``data`` to the end of its deflate stream.

    Raises :class:`DecompressionFailure` when the stream is malformed or ends
    before its final block.  Empty input inflates to ``b""``.
    """

    if not data:
        return b""

    wbits = _ZLIB_WBITS if has_zlib_header(data) else _RAW_WBITS
    decompressor = zlib.decompressobj(wbits)
    try:
        output = decompressor.decompress(data)
        output += decompressor.flush()
    except zlib.error as exc:
        raise DecompressionFailure(f"invalid deflate stream: {exc}") from exc

    if not decompressor.eof:
        raise DecompressionFailure(
            f"deflate stream truncated after {len(data)} input bytes"
        )
    if decompressor.unused_data:
        LOG.warning(
            "Ignoring %d trailing bytes after the end of the deflate stream",
            len(decompressor.unused_data),
        )
    LOG.debug("Inflated %d bytes into %d bytes (wbits=%d)", len(data), len(output), wbits)
    return output
