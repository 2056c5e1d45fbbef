"""
ResizePlanner - Computes target dimensions for width-based resizing.
"""

from typing import Optional, Tuple


def plan_resize(
    source_width: int,
    source_height: int,
    target_width: int
) -> Optional[Tuple[int, int]]:
    """
    Compute the target size for a requested width, preserving aspect ratio.

    The height is always rounded up so a resized photo never loses a row.

    Args:
        source_width: Source width in pixels
        source_height: Source height in pixels
        target_width: Requested width in pixels

    Returns:
        (width, height), or None when target_width >= source_width
        (images are never upscaled)

    Raises:
        ValueError: if a width or height is not positive
    """
    if target_width <= 0:
        raise ValueError(f"Target width must be positive, got {target_width}")
    if source_width <= 0 or source_height <= 0:
        raise ValueError(f"Invalid source dimensions {source_width}x{source_height}")

    if target_width >= source_width:
        return None

    # ceil(h * w / sw) without float rounding
    target_height = -(-source_height * target_width // source_width)
    return target_width, target_height
