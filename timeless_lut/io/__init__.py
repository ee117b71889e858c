"""I/O helpers for jewel data directories."""

from importlib import import_module
from typing import Any

__all__ = ["DATA_SUFFIX", "jewel_source_paths", "read_jewel_bytes"]


def __getattr__(name: str) -> Any:  # pragma: no cover - trivial delegator
    if name in __all__:
        module = import_module(".loader", __name__)
        value = getattr(module, name)
        globals()[name] = value
        return value
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
