"""Color and guide buffers consumed by the denoising filters.

A buffer is a numpy array laid out as ``(height, width)`` or
``(height, width, channels)``. Pixel coordinates are ``(x, y)`` pairs,
so ``get_pixel(buffer, (x, y))`` reads ``buffer[y, x]``.
"""

from collections.abc import Iterator
from dataclasses import dataclass
from enum import StrEnum

import numpy as np

from .errors import DimensionMismatch

GUIDE_NAMES = ("albedo", "normal", "depth")


class BoundaryMode(StrEnum):
    """Policy for neighbor coordinates that fall outside the image."""

    WRAP = "wrap"
    CLAMP = "clamp"
    MIRROR = "mirror"


def resolve_index(index, size: int, mode: BoundaryMode = BoundaryMode.WRAP):
    """Map an integer coordinate (or array of them) into ``[0, size)``.

    * ``wrap`` -- toroidal addressing, ``-1`` maps to ``size - 1``.
    * ``clamp`` -- coordinates stick to the nearest edge pixel.
    * ``mirror`` -- reflection about the edge pixel, ``-1`` maps to ``1``.

    Args:
        index: Integer coordinate or integer ndarray of coordinates.
        size: Extent of the axis; must be positive.
        mode: Boundary policy.

    Returns:
        Coordinate(s) of the same kind as *index*, all within range.
    """
    values = np.asarray(index)
    if mode == BoundaryMode.WRAP:
        resolved = np.mod(values, size)
    elif mode == BoundaryMode.CLAMP:
        resolved = np.clip(values, 0, size - 1)
    elif mode == BoundaryMode.MIRROR:
        if size == 1:
            resolved = np.zeros_like(values)
        else:
            period = 2 * (size - 1)
            folded = np.mod(values, period)
            resolved = np.where(folded >= size, period - folded, folded)
    else:
        raise ValueError(f"Unknown boundary mode: {mode}")
    return resolved if isinstance(index, np.ndarray) else int(resolved)


def neighbor_coordinate(
    coord: tuple[int, int],
    offset: tuple[int, int],
    width: int,
    height: int,
    mode: BoundaryMode = BoundaryMode.WRAP,
) -> tuple[int, int]:
    """Return the in-range coordinate of ``coord + offset``."""
    x, y = coord
    dx, dy = offset
    return resolve_index(x + dx, width, mode), resolve_index(y + dy, height, mode)


def get_pixel(buffer: np.ndarray, coord: tuple[int, int]) -> np.ndarray:
    """Read the channel vector at ``(x, y)``.

    Args:
        buffer: 2-D or 3-D image array.
        coord: In-range ``(x, y)`` coordinate.

    Returns:
        1-D array of channel values (length 1 for single-channel buffers).
    """
    x, y = coord
    return np.atleast_1d(buffer[y, x])


def channel_mean(buffer: np.ndarray) -> np.ndarray:
    """Collapse each pixel's channels to their unweighted mean.

    Args:
        buffer: 2-D or 3-D image array.

    Returns:
        ``(height, width)`` float64 array.
    """
    values = np.asarray(buffer, dtype=np.float64)
    if values.ndim == 3:
        return values.mean(axis=2)
    return values


def as_channels(buffer: np.ndarray) -> np.ndarray:
    """View *buffer* as ``(height, width, channels)`` float64."""
    values = np.asarray(buffer, dtype=np.float64)
    if values.ndim == 2:
        return values[:, :, np.newaxis]
    return values


@dataclass
class GuideBuffers:
    """The noisy color image together with its optional guide buffers.

    Guides are auxiliary renders (surface albedo, shading normal, depth)
    that are far less noisy than the color estimate. They are only used
    to weight neighbors, never averaged into the output. A guide left as
    ``None`` is simply ignored by the filters.

    The arrays are borrowed, not copied, and are never written to.
    """

    color: np.ndarray
    albedo: np.ndarray | None = None
    normal: np.ndarray | None = None
    depth: np.ndarray | None = None

    @property
    def height(self) -> int:
        return int(self.color.shape[0])

    @property
    def width(self) -> int:
        return int(self.color.shape[1])

    def guides(self) -> dict[str, np.ndarray]:
        """Return the guides that are present, keyed by name."""
        return {
            name: getattr(self, name)
            for name in GUIDE_NAMES
            if getattr(self, name) is not None
        }

    def __iter__(self) -> Iterator[tuple[str, np.ndarray]]:
        yield "color", self.color
        yield from self.guides().items()

    def validate(self) -> None:
        """Check that every present buffer shares the color buffer's size.

        Raises:
            DimensionMismatch: If a buffer is not a 2-D/3-D array, is empty,
                or differs from the color buffer in width or height.
        """
        for name, buffer in self:
            if not isinstance(buffer, np.ndarray) or buffer.ndim not in (2, 3):
                raise DimensionMismatch(
                    f"{name} buffer must be a 2-D or 3-D array, "
                    f"got {getattr(buffer, 'shape', type(buffer).__name__)}"
                )
            if buffer.shape[0] == 0 or buffer.shape[1] == 0:
                raise DimensionMismatch(f"{name} buffer is empty: {buffer.shape}")

        expected = self.color.shape[:2]
        for name, buffer in self.guides().items():
            if buffer.shape[:2] != expected:
                raise DimensionMismatch(
                    f"{name} buffer is {buffer.shape[1]}x{buffer.shape[0]}, "
                    f"color buffer is {expected[1]}x{expected[0]}"
                )
