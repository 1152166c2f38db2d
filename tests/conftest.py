"""Shared test fixtures for the denoiser test suite."""

from pathlib import Path

import numpy as np
import pytest

from src.denoise.buffers import GuideBuffers


@pytest.fixture
def rng() -> np.random.Generator:
    """Seeded random generator."""
    return np.random.default_rng(42)


@pytest.fixture
def noisy_render(rng: np.random.Generator) -> GuideBuffers:
    """A small noisy render with two materials split down the middle."""
    height, width = 20, 24
    albedo = np.zeros((height, width, 3))
    albedo[:, width // 2 :] = (0.8, 0.6, 0.4)
    normal = np.zeros((height, width, 3))
    normal[..., 2] = 1.0
    depth = np.linspace(1.0, 2.0, width)[np.newaxis, :].repeat(height, axis=0)
    color = albedo + rng.normal(0.0, 0.1, size=(height, width, 3))
    return GuideBuffers(color=color, albedo=albedo, normal=normal, depth=depth)


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def config_dir(project_root: Path) -> Path:
    """Return the configs directory path."""
    return project_root / "configs"
