import numpy as np
import pytest

import sampler
from errors import DegenerateGeometryError
from conftest import make_image

RESIZERS = [sampler.resize_image, sampler.resize_image_vectorized]


# ----------------------------------------------------------------------
# get_pixel_clamped
# ----------------------------------------------------------------------


def test_get_pixel_clamped_matches_clamped_coordinates(rng):
    image = make_image(rng.integers(0, 256, size=(4, 5, 3)))
    for y in range(-3, 8):
        for x in range(-3, 9):
            cx = min(max(x, 0), image.width - 1)
            cy = min(max(y, 0), image.height - 1)
            assert tuple(sampler.get_pixel_clamped(image, x, y)) == tuple(image.data[cy, cx])


def test_get_pixel_clamped_far_out_of_range():
    image = make_image([[[1, 2, 3], [4, 5, 6]]])
    assert tuple(sampler.get_pixel_clamped(image, -10**9, 10**9)) == (1, 2, 3)
    assert tuple(sampler.get_pixel_clamped(image, 10**9, -10**9)) == (4, 5, 6)


# ----------------------------------------------------------------------
# cubic_hermite
# ----------------------------------------------------------------------


@pytest.mark.parametrize("a", [0.0, 17.0, 128.0, 255.0])
@pytest.mark.parametrize("t", [0.0, 0.25, 0.5, 0.9, 1.0])
def test_cubic_hermite_constant_run(a, t):
    assert sampler.cubic_hermite(a, a, a, a, t) == pytest.approx(a)


@pytest.mark.parametrize("ctrl", [(0, 10, 20, 30), (255, 0, 255, 0), (3.5, -7.0, 100.0, 42.0)])
def test_cubic_hermite_passes_through_bracketing_points(ctrl):
    A, B, C, D = ctrl
    assert sampler.cubic_hermite(A, B, C, D, 0.0) == pytest.approx(B)
    assert sampler.cubic_hermite(A, B, C, D, 1.0) == pytest.approx(C)


def test_cubic_hermite_is_not_clamped():
    # step edge overshoots: 255 + 255/16
    assert sampler.cubic_hermite(0.0, 255.0, 255.0, 255.0, 0.5) == pytest.approx(255 + 255 / 16)
    assert sampler.cubic_hermite(0.0, 0.0, 0.0, 255.0, 0.5) == pytest.approx(-255 / 16)


def test_cubic_hermite_linear_data_midpoint():
    assert sampler.cubic_hermite(0.0, 10.0, 20.0, 30.0, 0.5) == pytest.approx(15.0)


def test_cubic_hermite_elementwise_on_arrays():
    A = np.array([0.0, 5.0])
    B = np.array([10.0, 5.0])
    C = np.array([20.0, 5.0])
    D = np.array([30.0, 5.0])
    out = sampler.cubic_hermite(A, B, C, D, 0.5)
    np.testing.assert_allclose(out, [15.0, 5.0])


# ----------------------------------------------------------------------
# sample_bicubic / resize_image
# ----------------------------------------------------------------------


def test_sample_bicubic_clamps_overshoot():
    # one row: 0 0 255 255
    row = [[v, v, v] for v in (0, 0, 255, 255)]
    image = make_image([row])
    # x = u * 4 - 0.5 = 2.5 sits between the two 255s next to the edge
    assert tuple(sampler.sample_bicubic(image, 0.75, 0.0)) == (255, 255, 255)
    # x = 0.5 sits between the two 0s next to the edge
    assert tuple(sampler.sample_bicubic(image, 0.25, 0.0)) == (0, 0, 0)


@pytest.mark.parametrize("resize", RESIZERS)
def test_resize_factor_one_keeps_corners(resize, corners_image):
    dest = resize(corners_image, 1.0)
    assert (dest.width, dest.height) == (2, 2)
    np.testing.assert_array_equal(dest.data, corners_image.data)


@pytest.mark.parametrize("resize", RESIZERS)
@pytest.mark.parametrize("size", [(3, 2), (5, 7), (1, 4)])
def test_resize_factor_two_doubles_size(resize, size, rng):
    w, h = size
    image = make_image(rng.integers(0, 256, size=(h, w, 3)))
    dest = resize(image, 2.0)
    assert (dest.width, dest.height) == (2 * w, 2 * h)
    assert dest.data.shape == (2 * h, 2 * w, 3)


@pytest.mark.parametrize("resize", RESIZERS)
def test_resize_destination_size_truncates(resize, rng):
    image = make_image(rng.integers(0, 256, size=(7, 10, 3)))
    dest = resize(image, 0.55)
    assert (dest.width, dest.height) == (5, 3)


@pytest.mark.parametrize("resize", RESIZERS)
def test_resize_uniform_image_stays_uniform(resize):
    image = make_image(np.full((6, 5, 3), (200, 100, 50)))
    dest = resize(image, 1.7)
    assert np.all(dest.data == np.array([200, 100, 50], dtype=np.uint8))


@pytest.mark.parametrize("resize", RESIZERS)
def test_resize_single_pixel_destination(resize, rng):
    image = make_image(rng.integers(0, 256, size=(5, 7, 3)))
    dest = resize(image, 0.2)
    assert (dest.width, dest.height) == (1, 1)
    # u = v = 0 samples around the top-left pixel
    np.testing.assert_array_equal(dest.data[0, 0], sampler.sample_bicubic(image, 0.0, 0.0))


@pytest.mark.parametrize("resize", RESIZERS)
@pytest.mark.parametrize("factor", [0.1, 0.01])
def test_resize_to_zero_size_is_rejected(resize, factor, rng):
    image = make_image(rng.integers(0, 256, size=(5, 5, 3)))
    with pytest.raises(DegenerateGeometryError):
        resize(image, factor)


@pytest.mark.parametrize("factor", [0.3, 0.5, 1.0, 1.37, 2.0, 3.0])
def test_vectorized_matches_baseline(factor, rng):
    image = make_image(rng.integers(0, 256, size=(9, 11, 3)))
    expected = sampler.resize_image(image, factor)
    actual = sampler.resize_image_vectorized(image, factor)
    np.testing.assert_array_equal(actual.data, expected.data)


def test_vectorized_matches_baseline_across_row_chunks(rng, monkeypatch):
    monkeypatch.setattr(sampler, "CHUNK_ROWS", 3)
    image = make_image(rng.integers(0, 256, size=(4, 3, 3)))
    expected = sampler.resize_image(image, 2.5)
    actual = sampler.resize_image_vectorized(image, 2.5)
    np.testing.assert_array_equal(actual.data, expected.data)


@pytest.mark.parametrize("resize", RESIZERS)
def test_resize_high_contrast_input_saturates(resize):
    # checkerboard of 0/255 overshoots on every edge
    board = (np.indices((8, 8)).sum(axis=0) % 2) * 255
    image = make_image(np.repeat(board[:, :, None], 3, axis=2))
    dest = resize(image, 2.3)
    assert dest.data.dtype == np.uint8
    assert dest.data.min() == 0
    assert dest.data.max() == 255


# ----------------------------------------------------------------------
# downsample_half / downsample_half_legacy
# ----------------------------------------------------------------------


def test_downsample_half_uniform_color():
    image = make_image(np.full((4, 4, 3), (200, 100, 50)))
    dest = sampler.downsample_half(image)
    assert (dest.width, dest.height) == (2, 2)
    assert np.all(dest.data == np.array([200, 100, 50], dtype=np.uint8))


@pytest.mark.parametrize("downsample", [sampler.downsample_half, sampler.downsample_half_legacy])
def test_downsample_half_drops_odd_remainder(downsample, rng):
    image = make_image(rng.integers(0, 256, size=(7, 5, 3)))
    dest = downsample(image)
    assert (dest.width, dest.height) == (2, 3)


def test_downsample_half_averages_each_block():
    image = make_image([
        [[0, 10, 255], [4, 10, 255], [9, 9, 9]],
        [[8, 10, 255], [4, 13, 254], [9, 9, 9]],
    ])
    dest = sampler.downsample_half(image)
    assert (dest.width, dest.height) == (1, 1)
    # (0+4+8+4)//4, (10+10+10+13)//4, (255*3+254)//4
    assert tuple(dest.data[0, 0]) == (4, 10, 254)


def test_downsample_half_legacy_truncates_each_term():
    image = make_image([
        [[1, 255, 50], [2, 255, 50]],
        [[3, 255, 50], [4, 255, 50]],
    ])
    dest = sampler.downsample_half_legacy(image)
    # 1//4 + 2//4 + 3//4 + 4//4 = 1 ; 63 * 4 = 252 ; 12 * 4 = 48
    assert tuple(dest.data[0, 0]) == (1, 252, 48)
    assert tuple(sampler.downsample_half(image).data[0, 0]) == (2, 255, 50)


@pytest.mark.parametrize("downsample", [sampler.downsample_half, sampler.downsample_half_legacy])
@pytest.mark.parametrize("shape", [(1, 4), (4, 1), (1, 1)])
def test_downsample_half_rejects_tiny_source(downsample, shape):
    h, w = shape
    image = make_image(np.zeros((h, w, 3)))
    with pytest.raises(DegenerateGeometryError):
        downsample(image)
