#!/usr/bin/env python3
"""
Plot a random vector catalog.

Generates histograms of SNR and frames hit, and an SNR map over the start
positions, to check a sampling run at a glance.

Usage:
    python -m scripts.plot_catalog vector_output.csv --output-dir catalog_plots
"""

import argparse
from pathlib import Path

import numpy as np
import matplotlib.pyplot as plt


def main():
    parser = argparse.ArgumentParser(description="Plot a random vector catalog")
    parser.add_argument("catalog", type=str, help="Catalog CSV written by run_random_vector")
    parser.add_argument(
        "--output-dir",
        type=str,
        default="catalog_plots",
        help="Output directory for plots",
    )
    parser.add_argument(
        "--bins",
        type=int,
        default=50,
        help="Histogram bins",
    )
    args = parser.parse_args()

    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    from trajectory_sampler.pipeline.catalog import read_catalog

    rows = read_catalog(args.catalog)
    if not rows:
        print(f"No rows in {args.catalog}")
        return

    snr = np.array([r["SNR"] for r in rows])
    hits = np.array([r["NUMBER_OF_FRAMES_HIT"] for r in rows])
    x0 = np.array([r["X_INTERCEPT"] for r in rows])
    y0 = np.array([r["Y_INTERCEPT"] for r in rows])
    finite = np.isfinite(snr)

    print(f"Loaded {len(rows)} vectors ({np.count_nonzero(~finite)} with non-finite SNR)")
    if finite.any():
        print(f"  SNR: min={np.min(snr[finite]):.4g} "
              f"median={np.median(snr[finite]):.4g} max={np.max(snr[finite]):.4g}")

    fig, axes = plt.subplots(1, 3, figsize=(15, 4))

    axes[0].hist(snr[finite], bins=args.bins, color='steelblue')
    axes[0].set_xlabel('SNR')
    axes[0].set_ylabel('Vectors')
    axes[0].set_yscale('log')
    axes[0].set_title('SNR distribution')

    axes[1].hist(hits, bins=np.arange(hits.max() + 2) - 0.5, color='darkorange')
    axes[1].set_xlabel('Frames hit')
    axes[1].set_title('Frames hit per vector')

    sc = axes[2].scatter(x0[finite], y0[finite], c=snr[finite], s=2, cmap='viridis')
    axes[2].set_xlabel('X intercept (px)')
    axes[2].set_ylabel('Y intercept (px)')
    axes[2].set_title('SNR by start position')
    plt.colorbar(sc, ax=axes[2])

    plt.tight_layout()
    plt.savefig(output_dir / 'catalog_summary.png', dpi=150)
    plt.close()

    print(f"Saved plots to {output_dir}")


if __name__ == "__main__":
    main()
