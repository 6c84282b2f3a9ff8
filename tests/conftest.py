import numpy as np
import pytest

from ppm_parser import encode_ppm
from utils import PixelBuffer


def make_image(arr) -> PixelBuffer:
    return PixelBuffer.from_array(np.asarray(arr, dtype=np.uint8))


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def corners_image():
    # (0,0) black, (1,0) white, (0,1) red, (1,1) green
    return make_image([
        [[0, 0, 0], [255, 255, 255]],
        [[255, 0, 0], [0, 255, 0]],
    ])


@pytest.fixture
def write_ppm_file(tmp_path):
    def _write(name, image):
        path = tmp_path / name
        path.write_bytes(encode_ppm(image))
        return path
    return _write
