import argparse
from pathlib import Path
import sys

import numpy as np
from PIL import Image

# 加入專案根目錄到 sys.path，方便匯入 main / config / utils / sampler 等模組
ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import main as resample_engine
from errors import DegenerateGeometryError
from utils import PixelBuffer, calculate_psnr

VALID_EXTS = {".jpg", ".jpeg", ".png", ".bmp", ".ppm"}


def _load_image(img_path: Path) -> PixelBuffer:
    img = Image.open(img_path).convert("RGB")
    return PixelBuffer.from_array(np.array(img))


def _reference(img_arr: np.ndarray, request, size) -> np.ndarray:
    """Pillow 的結果當作參考：factor 用 BICUBIC，2x 用 BOX。"""
    if isinstance(request, resample_engine.FixedHalf):
        w, h = size
        cut = img_arr[: 2 * h, : 2 * w]
        ref = Image.fromarray(cut).resize(size, resample=Image.Resampling.BOX)
    else:
        ref = Image.fromarray(img_arr).resize(size, resample=Image.Resampling.BICUBIC)
    return np.array(ref)


def run_resample_experiments(
    image_dir: Path,
    scales: list[str],
    resize_methods: list[str],
    downsample_methods: list[str],
    output_csv: Path,
) -> None:
    import csv

    image_dir = image_dir.resolve()
    images = sorted(
        [p for p in image_dir.iterdir() if p.suffix.lower() in VALID_EXTS]
    )

    if not images:
        print(f"No supported images found in {image_dir}")
        return

    print(f"=== Resample Experiments on folder: {image_dir} ===")
    print(f"Scales:             {scales}")
    print(f"Resize methods:     {resize_methods}")
    print(f"Downsample methods: {downsample_methods}")
    print(f"Found {len(images)} images\n")

    rows = []

    for img_path in images:
        print(f"--- {img_path.name} ---")
        image = _load_image(img_path)

        for scale in scales:
            request = resample_engine.parse_scale(scale)
            if isinstance(request, resample_engine.FixedHalf):
                methods = downsample_methods
            else:
                methods = resize_methods

            for method in methods:
                try:
                    dest, stats = resample_engine.resample_pipeline(
                        image,
                        request,
                        resize_method=method,
                        downsample_method=method,
                    )
                except DegenerateGeometryError as e:
                    print(f"  [Skip] scale={scale} method={method}: {e}")
                    continue

                ref = _reference(image.data, request, stats["dest_size"])
                psnr = calculate_psnr(ref, dest.data)
                t_ms = stats["time_resample"]
                dw, dh = stats["dest_size"]

                rows.append(
                    {
                        "image": img_path.name,
                        "width": image.width,
                        "height": image.height,
                        "scale": scale,
                        "method": method,
                        "dest_width": dw,
                        "dest_height": dh,
                        "psnr_vs_pillow": psnr,
                        "time_resample_ms": t_ms,
                    }
                )

                print(
                    f"  [Scale={scale:6s} | Method={method:10s}] "
                    f"{dw}x{dh} | "
                    f"PSNR vs Pillow: {psnr:6.2f} dB | "
                    f"Time: {t_ms:8.1f} ms"
                )

        print("-" * 80)

    # 寫入 CSV
    output_csv = output_csv.resolve()
    output_csv.parent.mkdir(parents=True, exist_ok=True)

    fieldnames = [
        "image",
        "width",
        "height",
        "scale",
        "method",
        "dest_width",
        "dest_height",
        "psnr_vs_pillow",
        "time_resample_ms",
    ]

    with output_csv.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames)
        writer.writeheader()
        for row in rows:
            writer.writerow(row)

    print(f"\n[Done] Resample results written to: {output_csv}")


def main():
    parser = argparse.ArgumentParser(
        description="Run experiments on bicubic resize and quick 2x downsample methods."
    )
    parser.add_argument(
        "--image_dir",
        type=str,
        default="images",
        help="Input image directory (default: images)",
    )
    parser.add_argument(
        "--scales",
        type=str,
        default="2x,0.5,1.5,2",
        help="Comma-separated scale specs, same syntax as the CLI (default: 2x,0.5,1.5,2)",
    )
    parser.add_argument(
        "--resize_methods",
        type=str,
        default="vectorized",
        help=(
            "Comma-separated resize method suffixes, e.g. 'baseline,vectorized'. "
            "Each will map to sampler.resize_image_<name> if not 'baseline'. "
            "baseline is a per-pixel Python loop and is slow on large images."
        ),
    )
    parser.add_argument(
        "--downsample_methods",
        type=str,
        default="baseline,legacy",
        help=(
            "Comma-separated 2x downsample method suffixes, "
            "e.g. 'baseline,legacy'. Each will map to sampler.downsample_half_<name> if not 'baseline'."
        ),
    )
    parser.add_argument(
        "--output_csv",
        type=str,
        default="resample_results.csv",
        help="Path to output CSV file (default: resample_results.csv)",
    )

    args = parser.parse_args()

    def _parse_list(s: str) -> list[str]:
        return [p.strip() for p in s.split(",") if p.strip()]

    run_resample_experiments(
        Path(args.image_dir),
        _parse_list(args.scales),
        _parse_list(args.resize_methods),
        _parse_list(args.downsample_methods),
        Path(args.output_csv),
    )


if __name__ == "__main__":
    main()
