"""Choice of part size for multipart uploads."""

from __future__ import annotations


def calc_optimal_part_size(
    size: int,
    preferred_part_size: int,
    max_part_size: int,
    max_multipart_parts: int,
) -> int:
    """Return the part size that fits an upload of ``size`` bytes into the part limit.

    Raises ValueError when that part size would exceed ``max_part_size``.
    """
    if size <= preferred_part_size * max_multipart_parts:
        # Small uploads, and anything that fits into the part limit with the
        # preferred size, use the preferred size.
        optimal = preferred_part_size
    elif size % max_multipart_parts == 0:
        optimal = size // max_multipart_parts
    else:
        # Round up so the upload still fits into max_multipart_parts parts.
        optimal = size // max_multipart_parts + 1

    if optimal > max_part_size:
        raise ValueError(
            f"calc_optimal_part_size: to upload {size} bytes optimalPartSize {optimal} "
            f"must exceed MaxPartSize {max_part_size}"
        )
    return optimal