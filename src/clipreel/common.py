"""clipreel.common — small shared helpers.

Contains: path variable resolution, resolution parsing, and order-preserving
partitioning of clip lists into fixed-size chunks.
"""

import re
from typing import Sequence, TypeVar

T = TypeVar("T")


# ── Path utilities ─────────────────────────────────────────────────

def resolve_path_vars(text: str, paths: dict[str, str]) -> str:
    """Replace ${name} variables in a string using the paths dict."""
    def _replace(match):
        key = match.group(1)
        if key not in paths:
            raise ValueError(f"Unknown path variable: ${{{key}}}")
        return paths[key]
    return re.sub(r"\$\{(\w+)\}", _replace, text)


# ── Resolution ─────────────────────────────────────────────────────

def parse_resolution(value: str) -> tuple[int, int]:
    """Convert 'WIDTHxHEIGHT' (e.g. '1920x1080') to a (width, height) tuple.

    Both dimensions must be positive and even, since yuv420p H.264 output
    cannot have odd frame sizes.
    """
    match = re.fullmatch(r"\s*(\d+)\s*[xX]\s*(\d+)\s*", str(value))
    if not match:
        raise ValueError(f"Invalid resolution: '{value}'. Expected WIDTHxHEIGHT.")
    width, height = int(match.group(1)), int(match.group(2))
    if width <= 0 or height <= 0:
        raise ValueError(f"Invalid resolution: '{value}'. Dimensions must be > 0.")
    if width % 2 or height % 2:
        raise ValueError(f"Invalid resolution: '{value}'. Dimensions must be even.")
    return width, height


# ── Chunking ───────────────────────────────────────────────────────

def partition(items: Sequence[T], size: int) -> list[list[T]]:
    """Split items into consecutive groups of at most `size`, keeping order.

    7 items with size 3 give groups of 3, 3 and 1.
    """
    if size < 1:
        raise ValueError(f"Chunk size must be >= 1, got {size}")
    return [list(items[i:i + size]) for i in range(0, len(items), size)]
