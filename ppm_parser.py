from dataclasses import dataclass
from pathlib import Path

import numpy as np

import config
from errors import FileOpenError, FormatError
from utils import PixelBuffer


# ----------------------------------------------------------------------
# Header
# ----------------------------------------------------------------------


@dataclass
class PPMHeader:
    width: int
    height: int
    maxval: int
    data_offset: int  # first byte of the raster


_WHITESPACE = b" \t\r\n\v\f"


class HeaderReader:
    """Reads ASCII header tokens from a P6 byte string, skipping '#' comments."""

    def __init__(self, data: bytes):
        self.data = data
        self.pos = 0

    def _peek(self) -> int | None:
        if self.pos >= len(self.data):
            return None
        return self.data[self.pos]

    def skip_whitespace_and_comments(self):
        while True:
            b = self._peek()
            if b is None:
                return
            if b in _WHITESPACE:
                self.pos += 1
            elif b == ord("#"):
                # comment runs to end of line
                end = self.data.find(b"\n", self.pos)
                self.pos = len(self.data) if end == -1 else end + 1
            else:
                return

    def read_int(self, field: str) -> int:
        self.skip_whitespace_and_comments()
        start = self.pos
        while (b := self._peek()) is not None and 0x30 <= b <= 0x39:
            self.pos += 1
        if self.pos == start:
            if self._peek() is None:
                raise FormatError(f"Missing {field} in PPM header")
            raise FormatError(f"Invalid {field} in PPM header")
        return int(self.data[start:self.pos])

    def skip_line(self):
        end = self.data.find(b"\n", self.pos)
        if end == -1:
            raise FormatError("PPM header is not terminated by a newline")
        self.pos = end + 1


def _parse_header(data: bytes) -> PPMHeader:
    if data[:2] != config.PPM_MAGIC:
        raise FormatError("Invalid image format (must be 'P6')")

    reader = HeaderReader(data)
    reader.pos = 2
    nxt = reader._peek()
    if nxt is not None and nxt not in _WHITESPACE:
        raise FormatError("Invalid image format (must be 'P6')")

    try:
        width = reader.read_int("width")
        height = reader.read_int("height")
    except FormatError as e:
        raise FormatError(f"Invalid image size: {e}") from e
    if width < 1 or height < 1:
        raise FormatError(f"Invalid image size {width}x{height}")

    try:
        maxval = reader.read_int("rgb component")
    except FormatError as e:
        raise FormatError(f"Invalid rgb component: {e}") from e
    if maxval != config.RGB_COMPONENT_COLOR:
        raise FormatError(
            f"Unsupported max value {maxval}, only {config.RGB_COMPONENT_COLOR} is supported"
        )

    # the raster starts on the line after maxval
    reader.skip_line()
    return PPMHeader(width=width, height=height, maxval=maxval, data_offset=reader.pos)


# ----------------------------------------------------------------------
# 對外介面：decode / encode
# ----------------------------------------------------------------------


def decode_ppm(data: bytes) -> PixelBuffer:
    """
    Decode a binary P6 image.

    Supports 8-bit channels only (maxval 255). Bytes after the raster are
    ignored.
    """
    header = _parse_header(data)
    n_bytes = header.width * header.height * 3
    raster = data[header.data_offset : header.data_offset + n_bytes]
    if len(raster) != n_bytes:
        raise FormatError(
            f"Truncated pixel data: expected {n_bytes} bytes, got {len(raster)}"
        )
    pixels = np.frombuffer(raster, dtype=np.uint8).reshape((header.height, header.width, 3))
    # frombuffer is read-only; keep a private writable copy
    return PixelBuffer(width=header.width, height=header.height, data=pixels.copy())


def encode_ppm(image: PixelBuffer) -> bytes:
    header = (
        f"P6\n"
        f"# Created by {config.CREATOR}\n"
        f"{image.width} {image.height}\n"
        f"{config.RGB_COMPONENT_COLOR}\n"
    ).encode("ascii")
    return header + np.ascontiguousarray(image.data, dtype=np.uint8).tobytes()


def read_ppm(path: str | Path) -> PixelBuffer:
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as e:
        raise FileOpenError(f"Unable to open file '{path}': {e.strerror or e}") from e
    try:
        return decode_ppm(data)
    except FormatError as e:
        raise FormatError(f"{e} (error loading '{path}')") from e


def write_ppm(path: str | Path, image: PixelBuffer):
    path = Path(path)
    try:
        with path.open("wb") as f:
            f.write(encode_ppm(image))
    except OSError as e:
        raise FileOpenError(f"Unable to open file '{path}': {e.strerror or e}") from e


__all__ = ["PPMHeader", "decode_ppm", "encode_ppm", "read_ppm", "write_ppm"]


if __name__ == "__main__":
    """
    簡易 CLI：
    將 images/ 底下的 .jpg/.png/.bmp 轉成 P6 PPM，輸出到 images_ppm/，
    方便當作 main.py 的輸入。

    範例：
        python ppm_parser.py
    """
    from PIL import Image

    project_root = Path(__file__).parent
    input_dir = project_root / "images"
    output_dir = project_root / "images_ppm"
    output_dir.mkdir(parents=True, exist_ok=True)

    exts = {".jpg", ".jpeg", ".png", ".bmp"}

    if not input_dir.exists():
        print(f"[Warn] images 資料夾不存在：{input_dir}")
    else:
        files = [p for p in input_dir.iterdir() if p.suffix.lower() in exts]
        if not files:
            print(f"[Info] images 內沒有支援的圖片檔案。")
        else:
            print(f"[Info] 找到 {len(files)} 個圖片檔案，開始轉換...")
            for p in files:
                try:
                    rgb = np.array(Image.open(p).convert("RGB"))
                    out_path = output_dir / f"{p.stem}.ppm"
                    write_ppm(out_path, PixelBuffer.from_array(rgb))
                    print(f"  [OK] {p.name} -> {out_path.name}")
                except Exception as e:
                    print(f"  [Fail] {p.name}: {e}")
