"""
Configuration loading and management.

Provides utilities to load YAML config files, overlay environment
variables, and construct sampling objects from the result.
"""

import dataclasses
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml

from ..cube.cube import Cube
from ..cube.metadata import FrameMetadata
from ..cube.pixel_store import PixelStore
from ..errors import ConfigurationError
from ..pipeline.shoot import DEFAULT_BASE_SEED, DEFAULT_NUM_VECTORS, ShootingEngine
from ..pipeline.statistics import InstrumentNoise
from ..trajectory.slope_distribution import (
    SlopeFactory,
    beta_slope_factory,
    empirical_slope_factory,
)

log = logging.getLogger(__name__)


# Path to configs directory
CONFIGS_DIR = Path(__file__).parent

# Environment variable -> (config field, parser)
ENV_VARS = {
    "NUM_VECTORS": ("num_vectors", int),
    "NUM_THREADS": ("num_threads", int),
    "BASE_SEED": ("base_seed", int),
    "TIMESTAMP_FILE": ("timestamp_file", str),
    "EXPOSURETIME_FILE": ("exposure_file", str),
    "PSF_FILE": ("psf_file", str),
    "NOISE_FILE": ("noise_file", str),
    "RA_DEC_FILE": ("ra_dec_file", str),
    "SLOPE_PDF_FILE": ("slope_file", str),
    "OUTPUT_FILE": ("output_file", str),
}


def _default_threads() -> int:
    return os.cpu_count() or 1


@dataclass
class SamplerConfig:
    """Settings for one sampling run."""
    num_vectors: int = DEFAULT_NUM_VECTORS
    num_threads: int = field(default_factory=_default_threads)
    base_seed: int = DEFAULT_BASE_SEED
    start_mode: str = "uniform"
    log_every: int = 0

    # Per-frame metadata files (None = defaults)
    timestamp_file: Optional[str] = None
    exposure_file: Optional[str] = None
    psf_file: Optional[str] = None
    noise_file: Optional[str] = None
    ra_dec_file: Optional[str] = None

    # Slopes: empirical table if slope_file is set, Beta otherwise
    slope_file: Optional[str] = None
    slope_alpha: float = 3.0
    slope_beta: float = 2.0
    slope_min: float = 0.0
    slope_max: float = 1.0

    readout_noise_e: float = 7.0
    dark_noise_e_per_px_s: float = 0.417

    output_file: str = "vector_output.csv"

    def __post_init__(self):
        if self.num_vectors < 0:
            raise ConfigurationError(f"num_vectors must be >= 0, got {self.num_vectors}")
        if self.num_threads < 1:
            raise ConfigurationError(f"num_threads must be >= 1, got {self.num_threads}")


def get_config_path(name: str = "default") -> Path:
    """
    Get path to a bundled config file.

    Args:
        name: Config name (without .yaml extension)

    Returns:
        Path to config file
    """
    path = CONFIGS_DIR / f"{name}.yaml"
    if not path.exists():
        raise FileNotFoundError(f"Config not found: {path}")
    return path


def load_config(path: Union[str, Path]) -> Dict[str, Any]:
    """Load a YAML config file."""
    try:
        with open(path, 'r') as f:
            data = yaml.safe_load(f)
    except OSError as exc:
        raise ConfigurationError(f"Cannot open config file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Malformed config file {path}: {exc}") from exc
    return data or {}


def config_from_dict(data: Mapping[str, Any]) -> SamplerConfig:
    """
    Build a SamplerConfig from a nested config dict.

    Missing sections and keys fall back to the SamplerConfig defaults.
    """
    sampling = data.get('sampling', {}) or {}
    metadata = data.get('metadata', {}) or {}
    slopes = data.get('slopes', {}) or {}
    noise = data.get('noise', {}) or {}
    output = data.get('output', {}) or {}

    defaults = SamplerConfig()
    # null means one thread per CPU
    num_threads = sampling.get('num_threads')
    try:
        return SamplerConfig(
            num_vectors=int(sampling.get('num_vectors', defaults.num_vectors)),
            num_threads=int(num_threads if num_threads is not None else defaults.num_threads),
            base_seed=int(sampling.get('base_seed', defaults.base_seed)),
            start_mode=str(sampling.get('start_mode', defaults.start_mode)),
            log_every=int(sampling.get('log_every', defaults.log_every)),
            timestamp_file=metadata.get('timestamp_file'),
            exposure_file=metadata.get('exposure_file'),
            psf_file=metadata.get('psf_file'),
            noise_file=metadata.get('noise_file'),
            ra_dec_file=metadata.get('ra_dec_file'),
            slope_file=slopes.get('file'),
            slope_alpha=float(slopes.get('alpha', defaults.slope_alpha)),
            slope_beta=float(slopes.get('beta', defaults.slope_beta)),
            slope_min=float(slopes.get('min', defaults.slope_min)),
            slope_max=float(slopes.get('max', defaults.slope_max)),
            readout_noise_e=float(noise.get('readout_noise_e', defaults.readout_noise_e)),
            dark_noise_e_per_px_s=float(
                noise.get('dark_noise_e_per_px_s', defaults.dark_noise_e_per_px_s)
            ),
            output_file=str(output.get('catalog', defaults.output_file)),
        )
    except ConfigurationError:
        raise
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid config value: {exc}") from exc


def config_from_env(
    config: Optional[SamplerConfig] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> SamplerConfig:
    """
    Overlay environment variables on a config.

    Recognised variables are listed in ENV_VARS. Empty values are ignored.
    """
    config = config if config is not None else SamplerConfig()
    environ = os.environ if environ is None else environ

    updates = {}
    for var, (name, parse) in ENV_VARS.items():
        raw = environ.get(var)
        if raw is None or raw == "":
            continue
        try:
            updates[name] = parse(raw)
        except ValueError as exc:
            raise ConfigurationError(f"Invalid value for {var}: {raw!r}") from exc
        log.debug("%s=%s from environment", name, raw)

    return dataclasses.replace(config, **updates) if updates else config


def load_sampler_config(
    path: Optional[Union[str, Path]] = None,
    use_env: bool = True,
) -> SamplerConfig:
    """
    Load the full run configuration.

    Args:
        path: YAML file. If None, loads the bundled default.
        use_env: Overlay environment variables on the file values

    Returns:
        SamplerConfig
    """
    if path is None:
        path = get_config_path()
    config = config_from_dict(load_config(path))
    if use_env:
        config = config_from_env(config)
    return config


def create_slope_factory(config: Optional[SamplerConfig] = None) -> SlopeFactory:
    """Create the slope distribution factory selected by the config."""
    if config is None:
        config = SamplerConfig()

    if config.slope_file:
        log.info("Using empirical slope distribution from %s", config.slope_file)
        return empirical_slope_factory(config.slope_file)

    log.info(
        "Using Beta(%g, %g) slope distribution on [%g, %g]",
        config.slope_alpha, config.slope_beta, config.slope_min, config.slope_max,
    )
    try:
        return beta_slope_factory(
            alpha=config.slope_alpha,
            beta=config.slope_beta,
            slope_min=config.slope_min,
            slope_max=config.slope_max,
        )
    except ValueError as exc:
        raise ConfigurationError(str(exc)) from exc


def create_noise_from_config(config: Optional[SamplerConfig] = None) -> InstrumentNoise:
    """Create InstrumentNoise from config."""
    if config is None:
        config = SamplerConfig()
    return InstrumentNoise(
        readout_noise_e=config.readout_noise_e,
        dark_noise_e_per_px_s=config.dark_noise_e_per_px_s,
    )


def create_metadata_from_config(config: SamplerConfig, size_k: int) -> FrameMetadata:
    """Load frame metadata for ``size_k`` frames from the configured files."""
    return FrameMetadata.from_files(
        size_k,
        timestamp_file=config.timestamp_file,
        exposure_file=config.exposure_file,
        psf_file=config.psf_file,
        noise_file=config.noise_file,
        ra_dec_file=config.ra_dec_file,
    )


def create_cube_from_config(
    store: PixelStore,
    config: Optional[SamplerConfig] = None,
) -> Cube:
    """
    Create a Cube over an allocated pixel store.

    Args:
        store: Allocated pixel store (not released by the cube)
        config: Run config for the metadata files

    Returns:
        Configured Cube
    """
    if config is None:
        config = SamplerConfig()
    metadata = create_metadata_from_config(config, store.size_k)
    return Cube(store, metadata)


def create_engine_from_config(config: Optional[SamplerConfig] = None) -> ShootingEngine:
    """
    Create a fully configured ShootingEngine.

    The slope distribution is selected and validated here, before any
    sampling work starts.
    """
    if config is None:
        config = SamplerConfig()
    try:
        return ShootingEngine(
            slope_factory=create_slope_factory(config),
            num_workers=config.num_threads,
            base_seed=config.base_seed,
            noise=create_noise_from_config(config),
            start_mode=config.start_mode,
            log_every=config.log_every,
        )
    except ConfigurationError:
        raise
    except ValueError as exc:
        raise ConfigurationError(f"Invalid sampling config: {exc}") from exc
