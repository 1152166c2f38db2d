"""Cross-bilateral (joint bilateral) filter for Monte-Carlo renders.

Every output pixel is a normalized weighted average of the color values
in a square window around it. A neighbor's weight is the product of
four Gaussian factors: one on its spatial offset and one per guide
buffer on the difference between the guide's channel mean at the
center and at the neighbor. Guides are low-noise renders of albedo,
normal and depth, so the weights follow geometric and material edges
instead of the noise in the color estimate.

The center pixel always has weight 1, so the weight sum of every pixel
is at least 1 and normalization is always defined.
"""

import os
from concurrent.futures import ThreadPoolExecutor

import numpy as np

from src.utils.logger import get_logger, log_duration

from .buffers import (
    GuideBuffers,
    as_channels,
    channel_mean,
    get_pixel,
    neighbor_coordinate,
    resolve_index,
)
from .errors import InvalidParameter
from .params import FilterParams

logger = get_logger(__name__)

# Rows per band handed to a worker.
_BAND_ROWS = 32


def gaussian_factor(inv_sigma: float, squared_distance):
    """Return ``exp(-inv_sigma * squared_distance)``.

    Args:
        inv_sigma: Non-negative bandwidth.
        squared_distance: Non-negative scalar or array.

    Returns:
        Factor(s) in ``[0, 1]``; exactly 1 where the distance is 0.
    """
    return np.exp(-inv_sigma * np.asarray(squared_distance, dtype=np.float64))


def _row_bands(height: int, band_rows: int) -> list[tuple[int, int]]:
    return [
        (start, min(start + band_rows, height)) for start in range(0, height, band_rows)
    ]


class CrossBilateralFilter:
    """Edge-aware denoiser driven by albedo, normal and depth guides.

    The filter holds no per-image state: :meth:`run` can be called
    repeatedly, from several threads, on different buffer sets.

    Args:
        params: Window radius, bandwidths and boundary policy.
            Defaults to :class:`FilterParams` defaults.
        workers: Number of threads used by :meth:`run`. ``None`` uses the
            CPU count; ``1`` runs on the calling thread.
    """

    def __init__(
        self, params: FilterParams | None = None, workers: int | None = None
    ) -> None:
        if workers is not None and workers < 1:
            raise InvalidParameter(f"workers must be at least 1, got {workers}")
        self.params = params if params is not None else FilterParams()
        self.workers = workers

    def _guide_bandwidths(self) -> dict[str, float]:
        return {
            "albedo": self.params.inv_sigma_albedo,
            "normal": self.params.inv_sigma_normal,
            "depth": self.params.inv_sigma_depth,
        }

    def spatial_kernel(self) -> np.ndarray:
        """Spatial factors of the window, indexed ``[dy + radius, dx + radius]``."""
        offsets = np.arange(-self.params.radius, self.params.radius + 1)
        dy, dx = np.meshgrid(offsets, offsets, indexing="ij")
        return gaussian_factor(self.params.inv_sigma_pixel, dx**2 + dy**2)

    def neighbor_weight(
        self,
        buffers: GuideBuffers,
        coord: tuple[int, int],
        offset: tuple[int, int],
    ) -> float:
        """Combined weight of the neighbor at ``coord + offset``.

        Absent guides contribute a factor of 1.

        Args:
            buffers: Color and guide buffers.
            coord: ``(x, y)`` of the pixel being filtered.
            offset: ``(dx, dy)`` within ``[-radius, radius]``.

        Returns:
            Weight in ``[0, 1]``.
        """
        dx, dy = offset
        neighbor = neighbor_coordinate(
            coord, offset, buffers.width, buffers.height, self.params.boundary
        )
        weight = float(gaussian_factor(self.params.inv_sigma_pixel, dx * dx + dy * dy))
        bandwidths = self._guide_bandwidths()
        for name, guide in buffers.guides().items():
            diff = get_pixel(guide, coord).mean() - get_pixel(guide, neighbor).mean()
            weight *= float(gaussian_factor(bandwidths[name], diff * diff))
        return weight

    def denoise_pixel(self, buffers: GuideBuffers, x: int, y: int) -> np.ndarray:
        """Filter a single pixel.

        This is the direct per-pixel form of the filter; :meth:`run`
        computes the same values for the whole image at once.

        Args:
            buffers: Validated color and guide buffers.
            x: Column of the pixel.
            y: Row of the pixel.

        Returns:
            Filtered channel vector.
        """
        radius = self.params.radius
        size = (buffers.width, buffers.height)
        cum_value = np.zeros(get_pixel(buffers.color, (x, y)).shape, dtype=np.float64)
        cum_weight = 0.0
        for dx in range(-radius, radius + 1):
            for dy in range(-radius, radius + 1):
                weight = self.neighbor_weight(buffers, (x, y), (dx, dy))
                neighbor = neighbor_coordinate(
                    (x, y), (dx, dy), *size, self.params.boundary
                )
                cum_value += weight * get_pixel(buffers.color, neighbor)
                cum_weight += weight
        return cum_value / cum_weight

    def run(
        self, buffers: GuideBuffers, return_weights: bool = False
    ) -> np.ndarray | tuple[np.ndarray, np.ndarray]:
        """Denoise the color buffer.

        Buffers are validated before any pixel is touched. The image is cut
        into horizontal bands that are filtered in parallel; each band only
        writes its own rows of the output, and the result does not depend
        on the number of workers.

        Args:
            buffers: Color buffer and optional guides of the same size.
            return_weights: Also return the per-pixel sum of weights.

        Returns:
            A new array shaped like ``buffers.color`` (float32 input stays
            float32, anything else becomes float64). With *return_weights*,
            a ``(output, weight_sum)`` tuple where ``weight_sum`` is
            ``(height, width)``.

        Raises:
            DimensionMismatch: If the buffers do not share width and height.
        """
        buffers.validate()

        color = as_channels(buffers.color)
        height, width = color.shape[:2]
        bandwidths = self._guide_bandwidths()
        terms = [
            (channel_mean(guide), bandwidths[name])
            for name, guide in buffers.guides().items()
            if bandwidths[name] > 0
        ]

        output = np.empty_like(color)
        weight_sum = np.empty((height, width), dtype=np.float64)
        bands = _row_bands(height, _BAND_ROWS)
        workers = min(self.workers or os.cpu_count() or 1, len(bands))

        logger.info(
            "Cross-bilateral filter on %dx%d image, radius %d, guides: %s",
            width,
            height,
            self.params.radius,
            ", ".join(buffers.guides()) or "none",
        )
        logger.debug("Filtering %d bands with %d workers", len(bands), workers)

        def filter_band(band: tuple[int, int]) -> None:
            self._filter_band(color, terms, output, weight_sum, *band)

        with log_duration(logger, "Cross-bilateral filter"):
            if workers == 1:
                for band in bands:
                    filter_band(band)
            else:
                with ThreadPoolExecutor(max_workers=workers) as pool:
                    list(pool.map(filter_band, bands))

        if buffers.color.ndim == 2:
            output = output[:, :, 0]
        if buffers.color.dtype == np.float32:
            output = output.astype(np.float32)

        if return_weights:
            return output, weight_sum
        return output

    def _filter_band(
        self,
        color: np.ndarray,
        terms: list[tuple[np.ndarray, float]],
        output: np.ndarray,
        weight_sum: np.ndarray,
        start: int,
        stop: int,
    ) -> None:
        """Filter rows ``[start, stop)`` into *output* and *weight_sum*."""
        height, width = color.shape[:2]
        radius = self.params.radius
        mode = self.params.boundary
        rows = np.arange(start, stop)
        cols = np.arange(width)
        centers = [guide_mean[start:stop] for guide_mean, _ in terms]

        cum_value = np.zeros((stop - start, width, color.shape[2]), dtype=np.float64)
        cum_weight = np.zeros((stop - start, width), dtype=np.float64)

        for dx in range(-radius, radius + 1):
            u = resolve_index(cols + dx, width, mode)
            for dy in range(-radius, radius + 1):
                v = resolve_index(rows + dy, height, mode)
                window = np.ix_(v, u)

                weight = np.full(
                    cum_weight.shape,
                    gaussian_factor(self.params.inv_sigma_pixel, dx * dx + dy * dy),
                )
                for (guide_mean, inv_sigma), center in zip(terms, centers):
                    diff = center - guide_mean[window]
                    weight *= gaussian_factor(inv_sigma, diff * diff)

                cum_value += weight[:, :, np.newaxis] * color[window]
                cum_weight += weight

        output[start:stop] = cum_value / cum_weight[:, :, np.newaxis]
        weight_sum[start:stop] = cum_weight


def cross_bilateral(
    color: np.ndarray,
    albedo: np.ndarray | None = None,
    normal: np.ndarray | None = None,
    depth: np.ndarray | None = None,
    params: FilterParams | None = None,
    workers: int | None = None,
) -> np.ndarray:
    """Denoise *color* with the cross-bilateral filter.

    Args:
        color: Noisy image, ``(height, width)`` or ``(height, width, channels)``.
        albedo: Optional albedo guide of the same width and height.
        normal: Optional shading normal guide.
        depth: Optional depth guide.
        params: Filter parameters; defaults to :class:`FilterParams`.
        workers: Number of worker threads.

    Returns:
        Denoised image shaped like *color*.
    """
    buffers = GuideBuffers(color=color, albedo=albedo, normal=normal, depth=depth)
    return CrossBilateralFilter(params, workers=workers).run(buffers)
