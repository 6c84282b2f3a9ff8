"""Plot agreement with Pillow and resample time, grouped by scale.

Reads `resample_results.csv` (written by run_resample_experiments.py) and
saves one figure with two panels: average PSNR vs Pillow on the left and
average time_resample_ms (log scale) on the right. Each scale is a group,
each method a bar inside it.
"""

import csv
import os
from pathlib import Path
from collections import defaultdict

import numpy as np
import matplotlib.pyplot as plt

ROOT = Path(__file__).resolve().parent.parent
# 若有設定環境變數 RESAMPLE_CSV_PATH 則優先使用，否則 fallback 到預設檔名
_csv_override = os.environ.get("RESAMPLE_CSV_PATH")
CSV_PATH = Path(_csv_override).resolve() if _csv_override else ROOT / "resample_results.csv"
PLOTS_DIR = ROOT / "plots"


def load_averages(csv_path: Path):
    """Return {(scale, method): (mean psnr, mean time_ms)}, skipping bad rows."""
    sums = defaultdict(lambda: [0.0, 0.0, 0])
    with csv_path.open("r", encoding="utf-8", newline="") as f:
        for row in csv.DictReader(f):
            try:
                psnr = float(row["psnr_vs_pillow"])
                t_ms = float(row["time_resample_ms"])
            except (KeyError, ValueError):
                continue
            acc = sums[(row["scale"], row["method"])]
            acc[0] += psnr
            acc[1] += t_ms
            acc[2] += 1
    return {key: (p / n, t / n) for key, (p, t, n) in sums.items()}


def plot_grouped(averages, filename="resample_summary.png"):
    scales = sorted({s for s, _ in averages}, key=lambda s: (s != "2x", s))
    methods = sorted({m for _, m in averages})
    width = 0.8 / max(len(methods), 1)
    x = np.arange(len(scales))

    fig, (ax_psnr, ax_time) = plt.subplots(1, 2, figsize=(11, 4))
    for k, method in enumerate(methods):
        offs = x + (k - (len(methods) - 1) / 2) * width
        psnr = [averages.get((s, method), (np.nan, np.nan))[0] for s in scales]
        t_ms = [averages.get((s, method), (np.nan, np.nan))[1] for s in scales]
        ax_psnr.bar(offs, psnr, width, label=method)
        ax_time.bar(offs, t_ms, width, label=method)

    for ax, ylabel in ((ax_psnr, "Average PSNR vs Pillow (dB)"), (ax_time, "Average time (ms)")):
        ax.set_xticks(x)
        ax.set_xticklabels(scales)
        ax.set_xlabel("scale")
        ax.set_ylabel(ylabel)
        ax.grid(axis="y", alpha=0.3)
    ax_time.set_yscale("log")
    ax_psnr.legend(title="method", fontsize=8)
    fig.suptitle("Resample methods by scale")
    fig.tight_layout()

    PLOTS_DIR.mkdir(parents=True, exist_ok=True)
    out_path = PLOTS_DIR / filename
    fig.savefig(out_path, dpi=150)
    plt.close(fig)
    print(f"[Saved] {out_path}")


if __name__ == "__main__":
    if not CSV_PATH.exists():
        raise FileNotFoundError(f"CSV not found: {CSV_PATH}. Run run_resample_experiments first.")
    averages = load_averages(CSV_PATH)
    if not averages:
        print(f"[Warn] {CSV_PATH} has no usable rows")
    else:
        plot_grouped(averages)
