"""
GlitchCombo — Image I/O
Decodes source images into RGBA frames (capped at MAX_DIMENSION) and
encodes finished frames as PNG.
"""

import base64
import time
from io import BytesIO
from pathlib import Path

import numpy as np
from PIL import Image, ImageOps

from core.safety import MAX_DIMENSION


def fit_dimensions(width: int, height: int, max_dim: int = MAX_DIMENSION) -> tuple:
    """Scale (width, height) so neither side exceeds max_dim, keeping aspect ratio."""
    if width <= max_dim and height <= max_dim:
        return width, height
    ratio = width / height
    if width > height:
        new_w, new_h = max_dim, max_dim / ratio
    else:
        new_w, new_h = max_dim * ratio, max_dim
    return max(1, int(round(new_w))), max(1, int(round(new_h)))


def image_to_frame(img: Image.Image, max_dim: int = MAX_DIMENSION) -> np.ndarray:
    """Pillow image -> (H, W, 4) uint8 RGBA frame, downscaled if oversized."""
    img = ImageOps.exif_transpose(img)
    img = img.convert("RGBA")
    size = fit_dimensions(img.width, img.height, max_dim)
    if size != img.size:
        img = img.resize(size, Image.Resampling.LANCZOS)
    return np.array(img)


def load_image(source, max_dim: int = MAX_DIMENSION) -> np.ndarray:
    """Load an image from a path, raw bytes, or file object as an RGBA frame."""
    if isinstance(source, (bytes, bytearray)):
        source = BytesIO(source)
    elif isinstance(source, Path):
        source = str(source)
    with Image.open(source) as img:
        img.load()
        return image_to_frame(img, max_dim)


def frame_to_image(frame: np.ndarray) -> Image.Image:
    return Image.fromarray(np.clip(frame, 0, 255).astype(np.uint8))


def encode_png(frame: np.ndarray) -> bytes:
    buf = BytesIO()
    frame_to_image(frame).save(buf, format="PNG", optimize=True)
    return buf.getvalue()


def save_image(frame: np.ndarray, output_path) -> Path:
    """Save a frame; format follows the file extension (JPEG drops alpha)."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    img = frame_to_image(frame)
    if output_path.suffix.lower() in (".jpg", ".jpeg"):
        img = img.convert("RGB")
    img.save(str(output_path))
    return output_path


def frame_to_data_url(frame: np.ndarray) -> str:
    """PNG data URL for an <img> tag."""
    b64 = base64.b64encode(encode_png(frame)).decode()
    return f"data:image/png;base64,{b64}"


def export_filename(now: float | None = None) -> str:
    millis = int((time.time() if now is None else now) * 1000)
    return f"glitch_combo_{millis}.png"
