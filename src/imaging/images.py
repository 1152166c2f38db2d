"""Loading and saving of color and guide images.

All images are exchanged as float32 RGB arrays of shape
``(height, width, 3)`` holding linear radiance. Low dynamic range formats
go through Pillow and are sRGB encoded, so they are decoded to linear
``[0, 1]`` on load and re-encoded on save; floating-point formats
(OpenEXR, Radiance HDR, PFM) go through OpenCV and keep their values as
stored.
"""

import os
from dataclasses import dataclass
from pathlib import Path

# OpenCV only decodes OpenEXR when this is set before the first EXR access.
os.environ.setdefault("OPENCV_IO_ENABLE_OPENEXR", "1")

import cv2  # noqa: E402
import numpy as np  # noqa: E402
from PIL import Image  # noqa: E402

from src.utils.logger import get_logger  # noqa: E402

logger = get_logger(__name__)

_FLOAT_SUFFIXES = (".exr", ".hdr", ".rgbe", ".pfm")


@dataclass(frozen=True)
class OutputFormat:
    """How an output file is encoded."""

    name: str
    bit_depth: int
    encoder_ext: str

    @property
    def is_float(self) -> bool:
        return self.bit_depth == 32


OUTPUT_FORMATS: dict[str, OutputFormat] = {
    ".png": OutputFormat("PNG", 8, ".png"),
    ".jpg": OutputFormat("JPEG", 8, ".jpg"),
    ".jpeg": OutputFormat("JPEG", 8, ".jpg"),
    ".ppm": OutputFormat("PPM", 8, ".ppm"),
    ".pfm": OutputFormat("PFM", 32, ".pfm"),
    ".hdr": OutputFormat("HDR", 32, ".hdr"),
    ".rgbe": OutputFormat("HDR", 32, ".hdr"),
    ".exr": OutputFormat("EXR", 32, ".exr"),
}


def _to_rgb(image: np.ndarray) -> np.ndarray:
    """Expand grayscale to three channels and drop alpha."""
    if image.ndim == 2:
        return np.repeat(image[:, :, np.newaxis], 3, axis=2)
    if image.shape[2] == 1:
        return np.repeat(image, 3, axis=2)
    return image[:, :, :3]


def _normalize(image: np.ndarray) -> np.ndarray:
    """Convert to float32, scaling integer images to [0, 1]."""
    if np.issubdtype(image.dtype, np.integer):
        return image.astype(np.float32) / np.iinfo(image.dtype).max
    return image.astype(np.float32)


def srgb_to_linear(image: np.ndarray) -> np.ndarray:
    """Decode sRGB values in ``[0, 1]`` to linear light.

    See https://en.wikipedia.org/wiki/SRGB
    """
    values = np.asarray(image, dtype=np.float64)
    linear = np.where(
        values > 0.04045,
        np.power((np.maximum(values, 0.04045) + 0.055) / 1.055, 2.4),
        values / 12.92,
    )
    return linear.astype(np.float32)


def linear_to_srgb(image: np.ndarray) -> np.ndarray:
    """Encode linear values in ``[0, 1]`` with the sRGB transfer curve."""
    values = np.asarray(image, dtype=np.float64)
    return np.where(
        values > 0.0031308,
        1.055 * np.power(np.maximum(values, 0.0031308), 1.0 / 2.4) - 0.055,
        values * 12.92,
    )


def load_image(path: Path | str | None) -> np.ndarray | None:
    """Load an image as a float32 RGB array.

    Args:
        path: Image file. ``None`` or an empty string means the image was
            not supplied.

    Returns:
        ``(height, width, 3)`` float32 array, or ``None`` if no path is given.

    Raises:
        FileNotFoundError: If the file does not exist or cannot be decoded.
    """
    if path is None or str(path) == "":
        return None

    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Image file not found: {path}")

    if path.suffix.lower() in _FLOAT_SUFFIXES:
        image = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
        if image is None:
            raise FileNotFoundError(f"Could not decode image: {path}")
        if image.ndim == 3:
            # OpenCV stores channels as BGR(A)
            image = image[:, :, 2::-1] if image.shape[2] >= 3 else image
        image = _to_rgb(image)
    else:
        try:
            with Image.open(path) as img:
                if img.mode.startswith("I;16"):
                    image = np.array(img, dtype=np.uint16)
                else:
                    image = np.array(img.convert("RGB"))
        except OSError as exc:
            raise FileNotFoundError(f"Could not decode image: {path}") from exc
        image = srgb_to_linear(_normalize(_to_rgb(image)))

    logger.debug("Loaded %s (%dx%d)", path, image.shape[1], image.shape[0])
    return np.ascontiguousarray(_normalize(image))


def resolve_output(path: Path | str) -> tuple[Path, OutputFormat]:
    """Pick the output encoding from the file extension.

    PNG, JPEG and PPM are written as 8-bit images; PFM, Radiance HDR
    (``.hdr``/``.rgbe``) and OpenEXR keep 32-bit floats. Any other
    extension is replaced by ``.exr``.

    Args:
        path: Requested output path.

    Returns:
        Tuple of (path actually written, output format).
    """
    path = Path(path)
    fmt = OUTPUT_FORMATS.get(path.suffix.lower())
    if fmt is None:
        fallback = path.with_suffix(".exr")
        logger.warning(
            "Unsupported output extension '%s', writing %s", path.suffix, fallback
        )
        return fallback, OUTPUT_FORMATS[".exr"]
    return path, fmt


def save_image(image: np.ndarray, path: Path | str) -> Path:
    """Write an image, encoding it according to its extension.

    8-bit formats are clipped to ``[0, 1]`` and sRGB encoded before
    quantization; float formats are written as linear values without tone
    mapping or clamping.

    Args:
        image: ``(height, width)`` or ``(height, width, channels)`` array.
        path: Output file path.

    Returns:
        The path that was written (see :func:`resolve_output`).

    Raises:
        OSError: If the image cannot be encoded or written.
    """
    path, fmt = resolve_output(path)
    rgb = _to_rgb(np.asarray(image))
    path.parent.mkdir(parents=True, exist_ok=True)

    if fmt.is_float:
        bgr = np.ascontiguousarray(rgb[:, :, ::-1], dtype=np.float32)
        try:
            ok, encoded = cv2.imencode(fmt.encoder_ext, bgr)
        except cv2.error as exc:
            raise OSError(f"Could not encode {path} as {fmt.name}: {exc}") from exc
        if not ok:
            raise OSError(f"Could not encode {path} as {fmt.name}")
        path.write_bytes(encoded.tobytes())
    else:
        encoded = linear_to_srgb(np.clip(rgb, 0.0, 1.0))
        quantized = np.round(encoded * 255.0).astype(np.uint8)
        Image.fromarray(quantized).save(path, format=fmt.name)

    logger.info("Wrote %s (%s, %d-bit)", path, fmt.name, fmt.bit_depth)
    return path
