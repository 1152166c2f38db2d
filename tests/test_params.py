"""Tests for filter parameter validation."""

import dataclasses

import numpy as np
import pytest

from src.denoise.buffers import BoundaryMode
from src.denoise.errors import InvalidParameter
from src.denoise.params import FilterParams
from src.utils.config import FilterConfig

SIGMA_FIELDS = [
    "inv_sigma_pixel",
    "inv_sigma_albedo",
    "inv_sigma_normal",
    "inv_sigma_depth",
]


class TestDefaults:
    """Tests for default parameter values."""

    def test_defaults(self) -> None:
        params = FilterParams()
        assert params.radius == 3
        assert params.inv_sigma_pixel == 0.1
        assert params.inv_sigma_albedo == 10.0
        assert params.inv_sigma_normal == 10.0
        assert params.inv_sigma_depth == 10.0
        assert params.boundary is BoundaryMode.WRAP

    def test_window_size(self) -> None:
        assert FilterParams(radius=0).window_size == 1
        assert FilterParams(radius=2).window_size == 5

    def test_frozen(self) -> None:
        params = FilterParams()
        with pytest.raises(dataclasses.FrozenInstanceError):
            params.radius = 5  # type: ignore[misc]


class TestValidation:
    """Tests for out-of-range parameters."""

    def test_negative_radius(self) -> None:
        with pytest.raises(InvalidParameter, match="radius"):
            FilterParams(radius=-1)

    @pytest.mark.parametrize("name", SIGMA_FIELDS)
    def test_negative_inv_sigma(self, name: str) -> None:
        with pytest.raises(InvalidParameter, match=name):
            FilterParams(**{name: -5.0})

    @pytest.mark.parametrize("name", SIGMA_FIELDS)
    def test_non_finite_inv_sigma(self, name: str) -> None:
        with pytest.raises(InvalidParameter):
            FilterParams(**{name: float("nan")})

    def test_zero_values_allowed(self) -> None:
        params = FilterParams(
            radius=0,
            inv_sigma_pixel=0,
            inv_sigma_albedo=0,
            inv_sigma_normal=0,
            inv_sigma_depth=0,
        )
        assert params.inv_sigma_pixel == 0.0
        assert isinstance(params.inv_sigma_pixel, float)

    def test_fractional_radius_rejected(self) -> None:
        with pytest.raises(InvalidParameter):
            FilterParams(radius=1.5)  # type: ignore[arg-type]

    def test_none_is_not_replaced_by_default(self) -> None:
        with pytest.raises(InvalidParameter):
            FilterParams(radius=None)  # type: ignore[arg-type]
        with pytest.raises(InvalidParameter):
            FilterParams(inv_sigma_depth=None)  # type: ignore[arg-type]

    def test_numpy_integer_radius(self) -> None:
        params = FilterParams(radius=np.int64(2))
        assert params.radius == 2
        assert type(params.radius) is int

    def test_boundary_from_string(self) -> None:
        assert FilterParams(boundary="mirror").boundary is BoundaryMode.MIRROR

    def test_unknown_boundary(self) -> None:
        with pytest.raises(InvalidParameter, match="boundary"):
            FilterParams(boundary="reflect101")

    def test_invalid_parameter_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            FilterParams(radius=-1)


class TestFromConfig:
    """Tests for building parameters from the YAML config section."""

    def test_from_default_config(self) -> None:
        assert FilterParams.from_config(FilterConfig()) == FilterParams()

    def test_from_custom_config(self) -> None:
        config = FilterConfig(radius=1, inv_sigma_albedo=2.5, boundary="clamp")
        params = FilterParams.from_config(config)
        assert params.radius == 1
        assert params.inv_sigma_albedo == 2.5
        assert params.boundary is BoundaryMode.CLAMP

    def test_from_config_still_validates(self) -> None:
        with pytest.raises(InvalidParameter):
            FilterParams.from_config(FilterConfig(inv_sigma_normal=-1.0))
