"""
PNG Post-processing
===================

Lossless re-encoding of captured screenshots with Pillow.
"""

import io

from PIL import Image

from html_renderer.config.logging import get_logger

logger = get_logger(__name__)


def optimize_png(png_bytes: bytes) -> bytes:
    """
    Re-encode a PNG with maximum zlib compression.

    The pixels are untouched; only the encoding changes. If Pillow cannot
    decode the input the original bytes are returned.

    Args:
        png_bytes: Original PNG bytes

    Returns:
        Optimized PNG bytes, or the original bytes if they were smaller
    """
    try:
        with Image.open(io.BytesIO(png_bytes)) as image:
            output = io.BytesIO()
            image.save(output, format="PNG", optimize=True, compress_level=9)
            optimized_bytes = output.getvalue()
    except (OSError, ValueError) as e:
        logger.warning("PNG optimization failed, using original", error=str(e))
        return png_bytes

    if len(optimized_bytes) >= len(png_bytes):
        return png_bytes

    logger.debug(
        "PNG optimization completed",
        original_size=len(png_bytes),
        optimized_size=len(optimized_bytes),
        reduction_percent=round((1 - len(optimized_bytes) / len(png_bytes)) * 100, 2),
    )
    return optimized_bytes
