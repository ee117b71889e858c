"""Decoders for timeless jewel lookup table buffers."""

from .flat import decode_flat
from .headered import ReadCursor, decode_headered, decode_record, record_layout
from .inflate import has_zlib_header, inflate
from .result import AnomalyKind, DecodeAnomaly, DecodeResult, LookupTable

__all__ = [
    "AnomalyKind",
    "DecodeAnomaly",
    "DecodeResult",
    "LookupTable",
    "ReadCursor",
    "decode_flat",
    "decode_headered",
    "decode_record",
    "record_layout",
    "has_zlib_header",
    "inflate",
]
