"""Validated parameters for the cross-bilateral filter."""

import math
import numbers
from dataclasses import dataclass, fields

from src.utils.config import FilterConfig

from .buffers import BoundaryMode
from .errors import InvalidParameter

_INV_SIGMA_FIELDS = (
    "inv_sigma_pixel",
    "inv_sigma_albedo",
    "inv_sigma_normal",
    "inv_sigma_depth",
)


@dataclass(frozen=True)
class FilterParams:
    """Window radius and Gaussian bandwidths of the cross-bilateral filter.

    Each ``inv_sigma_*`` scales the squared difference inside its Gaussian
    factor ``exp(-inv_sigma * d**2)``. Larger values narrow the kernel,
    zero disables the term.

    Args:
        radius: Half-width of the square neighborhood; the window is
            ``(2 * radius + 1)`` pixels on a side.
        inv_sigma_pixel: Bandwidth of the spatial term (squared pixel offset).
        inv_sigma_albedo: Bandwidth of the albedo similarity term.
        inv_sigma_normal: Bandwidth of the normal similarity term.
        inv_sigma_depth: Bandwidth of the depth similarity term.
        boundary: How neighbor lookups outside the image are resolved.

    Raises:
        InvalidParameter: If the radius is negative or not an integer, or an
            inverse sigma is negative or not finite.
    """

    radius: int = 3
    inv_sigma_pixel: float = 0.1
    inv_sigma_albedo: float = 10.0
    inv_sigma_normal: float = 10.0
    inv_sigma_depth: float = 10.0
    boundary: BoundaryMode = BoundaryMode.WRAP

    def __post_init__(self) -> None:
        if isinstance(self.radius, bool) or not isinstance(
            self.radius, numbers.Integral
        ):
            raise InvalidParameter(f"radius must be an integer, got {self.radius!r}")
        if self.radius < 0:
            raise InvalidParameter(f"radius must be non-negative, got {self.radius}")
        object.__setattr__(self, "radius", int(self.radius))

        for name in _INV_SIGMA_FIELDS:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, numbers.Real):
                raise InvalidParameter(f"{name} must be a number, got {value!r}")
            if not math.isfinite(value) or value < 0:
                raise InvalidParameter(
                    f"{name} must be a finite non-negative number, got {value}"
                )
            object.__setattr__(self, name, float(value))

        try:
            object.__setattr__(self, "boundary", BoundaryMode(self.boundary))
        except ValueError as exc:
            choices = ", ".join(mode.value for mode in BoundaryMode)
            raise InvalidParameter(
                f"Unknown boundary mode {self.boundary!r}. Choose from {choices}."
            ) from exc

    @property
    def window_size(self) -> int:
        """Side length of the square neighborhood."""
        return 2 * self.radius + 1

    @classmethod
    def from_config(cls, config: FilterConfig) -> "FilterParams":
        """Build parameters from the ``filter`` section of the app config.

        Args:
            config: Filter configuration loaded from YAML.

        Returns:
            Validated filter parameters.
        """
        names = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in config.model_dump().items() if k in names})
