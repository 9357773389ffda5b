"""
Image I/O Utilities

Decoding of files, bytes and data URLs into RGBA rasters, and encoding of
RGBA rasters back to PNG/JPEG bytes, files or data URLs. OpenCV works in BGR
channel order; every conversion to and from RGBA happens here.
"""

import base64
import logging
from pathlib import Path
from typing import Union

import cv2
import numpy as np

from src.common.types import RasterImage

logger = logging.getLogger(__name__)

DEFAULT_JPEG_QUALITY = 90

_FORMAT_EXTENSIONS = {"png": ".png", "jpeg": ".jpg", "jpg": ".jpg"}
_MIME_TYPES = {"png": "image/png", "jpeg": "image/jpeg", "jpg": "image/jpeg"}


def to_rgba(array: np.ndarray, color_order: str = "BGR") -> RasterImage:
    """
    Convert a grayscale, 3-channel or 4-channel uint8 array to an RGBA raster.

    Args:
        array: Image of shape (H, W), (H, W, 1), (H, W, 3) or (H, W, 4).
        color_order: Channel order of 3/4-channel input, "BGR" (OpenCV) or "RGB".

    Returns:
        RasterImage in RGBA order.

    Raises:
        ValueError: If the array is empty, not uint8, or has unsupported channels.
    """
    if array is None or array.size == 0:
        raise ValueError("Invalid input image: image is None or empty")

    if array.dtype != np.uint8:
        raise ValueError(f"Expected uint8 image, got {array.dtype}")

    if color_order not in ("BGR", "RGB"):
        raise ValueError(f"color_order must be 'BGR' or 'RGB', got {color_order}")

    if array.ndim == 3 and array.shape[2] == 1:
        array = array[:, :, 0]

    if array.ndim == 2:
        rgba = cv2.cvtColor(array, cv2.COLOR_GRAY2RGBA)
    elif array.ndim == 3 and array.shape[2] == 3:
        code = cv2.COLOR_BGR2RGBA if color_order == "BGR" else cv2.COLOR_RGB2RGBA
        rgba = cv2.cvtColor(array, code)
    elif array.ndim == 3 and array.shape[2] == 4:
        rgba = cv2.cvtColor(array, cv2.COLOR_BGRA2RGBA) if color_order == "BGR" else array.copy()
    else:
        raise ValueError(f"Unsupported image shape {array.shape}")

    return RasterImage(data=rgba)


def decode_image_bytes(data: bytes) -> RasterImage:
    """
    Decode an encoded image (PNG, JPEG, ...) into an RGBA raster.

    Raises:
        ValueError: If the bytes are empty or cannot be decoded.
    """
    if not data:
        raise ValueError("Cannot decode empty image data")

    buffer = np.frombuffer(data, dtype=np.uint8)
    decoded = cv2.imdecode(buffer, cv2.IMREAD_UNCHANGED)
    if decoded is None:
        raise ValueError("Could not decode image data")

    if decoded.dtype != np.uint8:
        # 16-bit PNG/TIFF input is reduced to 8 bits per channel
        decoded = (decoded / 257).astype(np.uint8)

    raster = to_rgba(decoded, color_order="BGR")
    logger.debug(f"Decoded image {raster.width}x{raster.height}")
    return raster


def decode_data_url(data_url: str) -> RasterImage:
    """
    Decode a base64 ``data:image/...;base64,`` URL into an RGBA raster.

    Raises:
        ValueError: If the URL is not a base64 data URL.
    """
    header, sep, payload = data_url.partition(",")
    if not sep or not header.startswith("data:") or not header.endswith(";base64"):
        raise ValueError("Expected a base64 data URL (data:<mime>;base64,<payload>)")

    return decode_image_bytes(base64.b64decode(payload))


def load_image(path: Union[str, Path]) -> RasterImage:
    """
    Load an image file into an RGBA raster.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file cannot be decoded.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Image not found: {path}")

    raster = decode_image_bytes(path.read_bytes())
    logger.info(f"Loaded {path.name} ({raster.width}x{raster.height})")
    return raster


def _normalize_format(fmt: str) -> str:
    fmt = fmt.lower().lstrip(".")
    if fmt not in _FORMAT_EXTENSIONS:
        raise ValueError(f"Unsupported image format: {fmt}. Use png or jpeg")
    return "jpeg" if fmt == "jpg" else fmt


def encode_image(
    raster: RasterImage, fmt: str = "png", jpeg_quality: int = DEFAULT_JPEG_QUALITY
) -> bytes:
    """
    Encode an RGBA raster as PNG (alpha kept) or JPEG (alpha dropped).

    Transparent pixels exported to JPEG come out black, as on an HTML canvas.
    """
    fmt = _normalize_format(fmt)

    if fmt == "png":
        bgr = cv2.cvtColor(raster.data, cv2.COLOR_RGBA2BGRA)
        params = []
    else:
        bgr = cv2.cvtColor(raster.data, cv2.COLOR_RGBA2BGR)
        params = [cv2.IMWRITE_JPEG_QUALITY, int(jpeg_quality)]

    ok, encoded = cv2.imencode(_FORMAT_EXTENSIONS[fmt], bgr, params)
    if not ok:
        raise ValueError(f"Failed to encode image as {fmt}")

    return encoded.tobytes()


def to_data_url(
    raster: RasterImage, fmt: str = "jpeg", jpeg_quality: int = DEFAULT_JPEG_QUALITY
) -> str:
    """Encode a raster as a base64 data URL."""
    fmt = _normalize_format(fmt)
    payload = base64.b64encode(encode_image(raster, fmt, jpeg_quality)).decode("ascii")
    return f"data:{_MIME_TYPES[fmt]};base64,{payload}"


def save_image(
    raster: RasterImage,
    path: Union[str, Path],
    jpeg_quality: int = DEFAULT_JPEG_QUALITY,
) -> Path:
    """Write a raster to ``path``; the format follows the file extension."""
    path = Path(path)
    data = encode_image(raster, path.suffix or "png", jpeg_quality)

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    logger.info(f"Saved {raster.width}x{raster.height} image to {path}")
    return path
