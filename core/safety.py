"""
GlitchCombo — Safety & Resource Guards
Preflight checks run before an image is decoded or a pipeline is requested.
"""

import os
from pathlib import Path

# --- Configurable Limits ---
MAX_FILE_MB = float(os.environ.get("GLITCHCOMBO_MAX_FILE_MB", 50))
MAX_DIMENSION = 1200       # Longest side after load; larger images are downscaled
MAX_STAGE_IDS = 32         # Maximum stage ids accepted in one request
ALLOWED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".gif", ".bmp", ".webp", ".tif", ".tiff"}


class SafetyError(Exception):
    """Raised when a preflight check fails."""
    pass


def check_extension(filename: str) -> str:
    ext = Path(filename).suffix.lower()
    if ext not in ALLOWED_EXTENSIONS:
        raise SafetyError(
            f"File type '{ext or '(none)'}' not allowed. "
            f"Supported: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
        )
    return ext


def check_size(size_bytes: int) -> float:
    size_mb = size_bytes / (1024 * 1024)
    if size_mb > MAX_FILE_MB:
        raise SafetyError(
            f"Input file is {size_mb:.1f}MB, exceeds {MAX_FILE_MB:.0f}MB limit."
        )
    return size_mb


def preflight(input_path: str) -> dict:
    """Run all safety checks before loading an image file.

    Returns:
        dict with file metadata (path, size_mb, extension).

    Raises:
        SafetyError: If any check fails.
        FileNotFoundError: If input doesn't exist.
    """
    real_path = os.path.realpath(str(input_path))

    if not os.path.isfile(real_path):
        raise FileNotFoundError(f"Input file not found: {input_path}")

    ext = check_extension(real_path)
    size_mb = check_size(os.path.getsize(real_path))

    return {
        "path": real_path,
        "size_mb": size_mb,
        "extension": ext,
    }


def validate_stage_count(stages) -> None:
    """Check that a request doesn't name an absurd number of stages.

    Raises:
        SafetyError: If more than MAX_STAGE_IDS ids are given.
    """
    if stages is not None and not isinstance(stages, str) and len(stages) > MAX_STAGE_IDS:
        raise SafetyError(
            f"Request names {len(stages)} stages, max is {MAX_STAGE_IDS}."
        )
