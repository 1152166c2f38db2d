"""Selection between the cross-bilateral filter and an external denoiser.

A learned denoiser (for example an OpenImageDenoise binding) is never
created here. The caller builds it, wraps its filter call in an
:class:`ExternalDenoiser`, and passes that object in, so the core keeps
no global device state.
"""

from collections.abc import Callable

import numpy as np

from src.utils.logger import get_logger

from .buffers import GuideBuffers
from .cross_bilateral import CrossBilateralFilter
from .errors import DimensionMismatch, UnknownBackend
from .params import FilterParams

logger = get_logger(__name__)

ExternalFilterFn = Callable[
    [np.ndarray, np.ndarray | None, np.ndarray | None, bool], np.ndarray
]

METHODS = ("bilateral", "external")


class ExternalDenoiser:
    """Adapter around a caller-supplied denoising function.

    Args:
        filter_fn: Called as ``filter_fn(color, albedo, normal, hdr)`` and
            expected to return a denoised image shaped like *color*.
            Depth is not forwarded.
        hdr: Whether the color buffer holds unbounded (HDR) values. This
            usually follows the output format: float outputs are HDR,
            8-bit outputs are not. :func:`denoise` can override it per call.
    """

    def __init__(self, filter_fn: ExternalFilterFn, hdr: bool = True) -> None:
        self.filter_fn = filter_fn
        self.hdr = hdr

    def run(self, buffers: GuideBuffers, hdr: bool | None = None) -> np.ndarray:
        """Validate the buffers, run the external filter and check its output.

        Args:
            buffers: Color buffer and optional guides.
            hdr: Overrides the HDR flag given at construction.

        Raises:
            DimensionMismatch: If the inputs disagree in size or the external
                filter returns an image of a different shape.
        """
        buffers.validate()
        hdr = self.hdr if hdr is None else hdr
        result = np.asarray(
            self.filter_fn(buffers.color, buffers.albedo, buffers.normal, hdr)
        )
        if result.shape != buffers.color.shape:
            raise DimensionMismatch(
                f"External denoiser returned shape {result.shape}, "
                f"expected {buffers.color.shape}"
            )
        return result


def denoise(
    buffers: GuideBuffers,
    method: str = "bilateral",
    params: FilterParams | None = None,
    external: ExternalDenoiser | None = None,
    workers: int | None = None,
    hdr: bool | None = None,
) -> np.ndarray:
    """Denoise the color buffer with the selected method.

    Args:
        buffers: Color buffer and optional guides.
        method: ``"bilateral"`` for the cross-bilateral filter or
            ``"external"`` for the injected denoiser.
        params: Cross-bilateral parameters; ignored by ``"external"``.
        external: Denoiser used by the ``"external"`` method.
        workers: Worker threads for the cross-bilateral filter.
        hdr: HDR flag passed to the external denoiser; ``None`` keeps the
            flag it was built with. Ignored by ``"bilateral"``.

    Returns:
        Denoised image shaped like ``buffers.color``.

    Raises:
        UnknownBackend: If *method* is unsupported, or is ``"external"``
            without an injected denoiser.
    """
    if method == "bilateral":
        return CrossBilateralFilter(params, workers=workers).run(buffers)
    if method == "external":
        if external is None:
            raise UnknownBackend("The 'external' method needs an injected denoiser")
        logger.info(
            "Running external denoiser (hdr=%s)", external.hdr if hdr is None else hdr
        )
        return external.run(buffers, hdr=hdr)
    raise UnknownBackend(
        f"Unsupported denoise method: {method}. Choose from {', '.join(METHODS)}."
    )
