"""
Shared Utilities

Image I/O and overlay rendering used around the rectification engine.
"""

from src.utils.image_io import (
    decode_data_url,
    decode_image_bytes,
    encode_image,
    load_image,
    save_image,
    to_data_url,
    to_rgba,
)
from src.utils.visualization import draw_crop_overlay, fit_to_display, side_by_side

__all__ = [
    "decode_data_url",
    "decode_image_bytes",
    "encode_image",
    "load_image",
    "save_image",
    "to_data_url",
    "to_rgba",
    "draw_crop_overlay",
    "fit_to_display",
    "side_by_side",
]
