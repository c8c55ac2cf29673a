#!/usr/bin/env python3
"""
Random Vector Sampling CLI

Shoot random straight-line trajectories through an image cube and write a
catalog of their SNR, summed signal and number of frames hit.

Usage:
    python -m scripts.run_random_vector --cube data/frames/ --num-vectors 10000
    NUM_VECTORS=1000 TIMESTAMP_FILE=times.txt python -m scripts.run_random_vector --cube cube.npy
"""

import argparse
import logging
import sys

log = logging.getLogger("run_random_vector")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Shoot random vectors through an image cube",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    # Input
    parser.add_argument(
        "--cube",
        type=str,
        required=True,
        help="Directory of FITS frames, a single FITS file, or a (k, y, x) .npy cube",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="YAML run config (bundled default if not given)",
    )

    # Sampling
    parser.add_argument(
        "--num-vectors",
        type=int,
        default=None,
        help="Number of random vectors (overrides config and NUM_VECTORS)",
    )
    parser.add_argument(
        "-t", "--threads",
        type=int,
        default=None,
        help="Number of worker threads (overrides config and NUM_THREADS)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Base random seed; worker w uses seed + w",
    )
    parser.add_argument(
        "--start-mode",
        type=str,
        default=None,
        choices=["uniform", "resident"],
        help="How start points are drawn",
    )

    # Output
    parser.add_argument(
        "-o", "--output",
        type=str,
        default=None,
        help="Catalog CSV path",
    )
    parser.add_argument(
        "--top",
        type=int,
        default=0,
        help="Print the N best vectors with their pixel values",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)-8s %(name)s — %(message)s",
    )

    # Import sampler (delayed to show help faster)
    import dataclasses

    from trajectory_sampler.configs import (
        create_cube_from_config,
        create_engine_from_config,
        load_sampler_config,
    )
    from trajectory_sampler.cube import allocate_pixel_store
    from trajectory_sampler.errors import ConfigurationError
    from trajectory_sampler.pipeline import format_top_report, write_catalog

    overrides = {
        "num_vectors": args.num_vectors,
        "num_threads": args.threads,
        "base_seed": args.seed,
        "start_mode": args.start_mode,
        "output_file": args.output,
    }

    try:
        config = load_sampler_config(args.config)
        overrides = {k: v for k, v in overrides.items() if v is not None}
        if overrides:
            config = dataclasses.replace(config, **overrides)

        store = allocate_pixel_store(args.cube)
    except ConfigurationError as exc:
        log.error("%s", exc)
        return 1

    with store:
        try:
            cube = create_cube_from_config(store, config)
            engine = create_engine_from_config(config)
        except ConfigurationError as exc:
            log.error("%s", exc)
            return 1

        log.info("Cube: %s, %d worker thread(s)", cube, engine.num_workers)
        result = engine.shoot(cube, config.num_vectors)

        print(f"#of vectors = {config.num_vectors}")
        print(f"execution time (sec) = {result.elapsed_time}")
        print(f"vectors/sec = {result.vectors_per_second}")

        if args.top > 0:
            print(format_top_report(cube, result.results, args.top))

        write_catalog(result.results, config.output_file)

    return 0


if __name__ == "__main__":
    sys.exit(main())
