import argparse
import math
import os
import sys
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path

# 引入模組
import config
import sampler
from errors import FileOpenError, ResampleError, UsageError
from ppm_parser import read_ppm, write_ppm
from utils import PixelBuffer


@dataclass(frozen=True)
class FixedHalf:
    """Quick 2x box downsample."""


@dataclass(frozen=True)
class Factor:
    value: float


def parse_scale(text: str) -> FixedHalf | Factor:
    """'2x' (exact, case-sensitive) or a positive decimal factor."""
    if text == config.FAST_PATH_TOKEN:
        return FixedHalf()
    try:
        value = float(text)
    except ValueError:
        raise UsageError(f"error scale must be '{config.FAST_PATH_TOKEN}' or a number, got '{text}'") from None
    if not math.isfinite(value) or value <= 0.0:
        raise UsageError(f"error scale must be positive, got '{text}'")
    return Factor(value)


def _resolve_func(module, base_name: str, method: str):
    """Return callable based on method suffix; fallback to baseline."""
    if method and method.lower() != 'baseline':
        name = f"{base_name}_{method}"
        if hasattr(module, name):
            return getattr(module, name)
    return getattr(module, base_name)


def resample_pipeline(image: PixelBuffer, request, resize_method=config.DEFAULT_RESIZE_METHOD,
                      downsample_method=config.DEFAULT_DOWNSAMPLE_METHOD, verbose=False):
    """
    Dispatch one resample request and time it.
    Returns (destination, stats).
    """
    stats = {}

    t0 = time.time()
    if isinstance(request, FixedHalf):
        if verbose:
            print("Using quick 2X downsample")
        fn = _resolve_func(sampler, 'downsample_half', downsample_method)
        stats['methods'] = {'downsample': downsample_method}
        dest = fn(image)
    elif isinstance(request, Factor):
        fn = _resolve_func(sampler, 'resize_image', resize_method)
        stats['methods'] = {'resize': resize_method}
        dest = fn(image, request.value)
    else:
        raise UsageError(f"Unknown scale request {request!r}")
    stats['time_resample'] = (time.time() - t0) * 1000  # ms

    stats['source_size'] = (image.width, image.height)
    stats['dest_size'] = (dest.width, dest.height)

    if verbose:
        print(f"Source x-width={image.width} | y-width={image.height}")
        print(f"Dest   x-width={dest.width} | y-width={dest.height}")

    return dest, stats


def _write_replacing(output_path: Path, image: PixelBuffer, verbose=False):
    """Write to a temp file beside output_path, then rename over it."""
    try:
        fd, tmp_name = tempfile.mkstemp(prefix=f".{output_path.name}.", suffix=".tmp",
                                        dir=output_path.parent)
    except OSError as e:
        raise FileOpenError(f"Unable to open file '{output_path}': {e.strerror or e}") from e
    os.close(fd)
    tmp_path = Path(tmp_name)
    # mkstemp creates the file as 0600; match what open(..., "wb") would give
    umask = os.umask(0)
    os.umask(umask)
    os.chmod(tmp_path, 0o666 & ~umask)

    try:
        write_ppm(tmp_path, image)
        if output_path.exists() and verbose:
            print(f"Deleting old image {output_path}...\n")
        try:
            os.replace(tmp_path, output_path)
        except OSError as e:
            raise FileOpenError(f"Unable to open file '{output_path}': {e.strerror or e}") from e
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise


def process_image(scale_spec: str, input_path, output_path,
                  resize_method=config.DEFAULT_RESIZE_METHOD,
                  downsample_method=config.DEFAULT_DOWNSAMPLE_METHOD, verbose=True):
    """讀取單張圖片，處理並存檔"""
    # scale 不合法時不碰任何檔案
    request = parse_scale(scale_spec)

    if verbose:
        print("Starting...\n")

    input_path = Path(input_path)
    output_path = Path(output_path)

    source = read_ppm(input_path)
    dest, stats = resample_pipeline(source, request, resize_method=resize_method,
                                    downsample_method=downsample_method, verbose=verbose)
    _write_replacing(output_path, dest, verbose=verbose)

    if verbose:
        print(f"  [Time]    Resample: {stats['time_resample']:.1f}ms")
        print(f"[Done] {input_path.name} -> {output_path.name}")
    return stats


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message):
        raise UsageError(message)


def _build_parser():
    prog = "imgresample"
    parser = _ArgumentParser(
        prog=prog,
        description=(
            "This program resamples PPM images up or down using cubic resampling "
            "or a quick 2x down sample"
        ),
        epilog=(
            f"eg  {prog}  0.5  in.ppm  out.ppm\n"
            f"    {prog}  2x   in.ppm  out.ppm"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument('factor', type=str, help=f"'{config.FAST_PATH_TOKEN}' or a floating point number")
    parser.add_argument('infile', type=str, help='輸入的 P6 PPM 檔案')
    parser.add_argument('outfile', type=str, help='輸出的 P6 PPM 檔案（已存在則覆蓋）')
    parser.add_argument('--method', type=str, default=config.DEFAULT_RESIZE_METHOD,
                        help='bicubic 方法（baseline/vectorized）')
    parser.add_argument('--box_method', type=str, default=config.DEFAULT_DOWNSAMPLE_METHOD,
                        help='2x 降採樣方法（baseline/legacy）')
    parser.add_argument('--quiet', action='store_true', help='不輸出進度訊息')
    return parser


def main(argv=None) -> int:
    parser = _build_parser()
    try:
        args = parser.parse_args(argv)
    except UsageError as e:
        parser.print_help()
        print(f"[Error] {e}", file=sys.stderr)
        return e.exit_code

    try:
        process_image(args.factor, args.infile, args.outfile,
                      resize_method=args.method,
                      downsample_method=args.box_method,
                      verbose=not args.quiet)
    except ResampleError as e:
        print(f"[Error] {e}", file=sys.stderr)
        return e.exit_code

    return config.EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
