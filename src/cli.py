"""Command-line batch denoiser for rendered images.

Loads a noisy render plus optional albedo, normal and depth guides,
runs the cross-bilateral filter and writes the result in the format
implied by the output file extension.
"""

import argparse
import sys
from pathlib import Path

import yaml
from pydantic import ValidationError

from src.denoise.backends import denoise
from src.denoise.buffers import BoundaryMode, GuideBuffers
from src.denoise.errors import DenoiseError
from src.denoise.params import FilterParams
from src.imaging.images import load_image, resolve_output, save_image
from src.utils.config import AppConfig, load_config
from src.utils.logger import get_logger, log_duration, setup_logging

logger = get_logger(__name__)

# CLI flag -> FilterConfig field
_PARAM_FLAGS = {
    "radius": "radius",
    "sigma_pixel": "inv_sigma_pixel",
    "sigma_albedo": "inv_sigma_albedo",
    "sigma_normal": "inv_sigma_normal",
    "sigma_depth": "inv_sigma_depth",
    "boundary": "boundary",
}


def build_params(args: argparse.Namespace, config: AppConfig) -> FilterParams:
    """Merge command-line overrides into the configured filter parameters.

    Only flags that were given on the command line replace config values.

    Args:
        args: Parsed command-line arguments.
        config: Loaded application configuration.

    Returns:
        Validated filter parameters.

    Raises:
        InvalidParameter: If a resulting parameter is out of range.
    """
    overrides = {
        field: getattr(args, flag)
        for flag, field in _PARAM_FLAGS.items()
        if getattr(args, flag) is not None
    }
    return FilterParams.from_config(config.filter.model_copy(update=overrides))


def denoise_file(
    input_path: Path,
    output_path: Path,
    params: FilterParams,
    albedo_path: Path | None = None,
    normal_path: Path | None = None,
    depth_path: Path | None = None,
    method: str = "bilateral",
    workers: int | None = None,
) -> Path:
    """Denoise one image file and write the result.

    The HDR flag handed to an external denoiser follows the output format:
    float outputs are HDR, 8-bit outputs are not.

    Args:
        input_path: Noisy color image.
        output_path: Requested output file; unknown extensions become ``.exr``.
        params: Cross-bilateral filter parameters.
        albedo_path: Optional albedo guide image.
        normal_path: Optional normal guide image.
        depth_path: Optional depth guide image.
        method: Denoising method name.
        workers: Worker threads for the filter.

    Returns:
        Path of the written image.
    """
    buffers = GuideBuffers(
        color=load_image(input_path),
        albedo=load_image(albedo_path),
        normal=load_image(normal_path),
        depth=load_image(depth_path),
    )
    with log_duration(logger, f"Denoising {input_path.name}"):
        result = denoise(
            buffers,
            method=method,
            params=params,
            workers=workers,
            hdr=resolve_output(output_path)[1].is_float,
        )
    return save_image(result, output_path)


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and denoise the input image.

    Args:
        argv: Command-line arguments (defaults to sys.argv).
    """
    parser = argparse.ArgumentParser(
        description="Cross-bilateral denoiser for Monte-Carlo renders",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("input", type=Path, help="Noisy input image")
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        required=True,
        help="Output image (png/jpg/ppm are 8-bit; pfm/hdr/rgbe/exr are float)",
    )
    parser.add_argument("-a", "--albedo", type=Path, help="Albedo guide image")
    parser.add_argument("-n", "--normal", type=Path, help="Normal guide image")
    parser.add_argument("-d", "--depth", type=Path, help="Depth guide image")
    parser.add_argument("-r", "--radius", type=int, help="Window radius (default: 3)")
    parser.add_argument(
        "--sigma-pixel", type=float, help="Inverse sigma of the spatial term"
    )
    parser.add_argument(
        "--sigma-albedo", type=float, help="Inverse sigma of the albedo term"
    )
    parser.add_argument(
        "--sigma-normal", type=float, help="Inverse sigma of the normal term"
    )
    parser.add_argument(
        "--sigma-depth", type=float, help="Inverse sigma of the depth term"
    )
    parser.add_argument(
        "--boundary",
        choices=[mode.value for mode in BoundaryMode],
        help="Neighbor lookup at image borders (default: wrap)",
    )
    parser.add_argument("-j", "--workers", type=int, help="Worker threads")
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        help="YAML configuration file (default: configs/config.yaml)",
    )
    parser.add_argument("--log-level", help="Logging level (overrides config)")

    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except (ValidationError, yaml.YAMLError) as exc:
        print(f"Error: invalid configuration: {exc}", file=sys.stderr)
        sys.exit(1)
    setup_logging(args.log_level or config.log_level)

    for label, path in (
        ("input", args.input),
        ("albedo", args.albedo),
        ("normal", args.normal),
        ("depth", args.depth),
    ):
        if path is not None and not path.exists():
            print(f"Error: {label} file {path} does not exist", file=sys.stderr)
            sys.exit(1)

    try:
        params = build_params(args, config)
        written = denoise_file(
            args.input,
            args.output,
            params,
            albedo_path=args.albedo,
            normal_path=args.normal,
            depth_path=args.depth,
            method=config.execution.method,
            workers=(
                args.workers
                if args.workers is not None
                else config.execution.workers
            ),
        )
    except (DenoiseError, OSError) as exc:
        logger.error("Denoising failed: %s", exc)
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)

    print(f"Output written to {written}")


if __name__ == "__main__":
    main()
