import pytest

from photoframe.geometry import (
    center_offset,
    compute_canvas_size,
    compute_cover_rect,
    compute_padded_stride,
    fade_progress,
    loading_rect,
    resize_to_cover,
    resize_to_fit_with_margin,
)


def test_padded_stride_zero_stays_zero():
    assert compute_padded_stride(0) == 0


@pytest.mark.parametrize("row", [1, 4, 255, 256, 257, 1000, 7680])
def test_padded_stride_is_aligned_and_minimal(row):
    padded = compute_padded_stride(row)
    assert padded % 256 == 0
    assert padded >= row
    assert padded - row < 256


def test_padded_stride_exact_multiple_unchanged():
    assert compute_padded_stride(512) == 512


def test_canvas_size_native():
    assert compute_canvas_size(1920, 1080, 1.0, 8192) == (1920, 1080)


def test_canvas_size_clamped_to_max_dim():
    assert compute_canvas_size(1920, 1080, 10.0, 2048) == (2048, 2048)


def test_canvas_size_at_least_one():
    w, h = compute_canvas_size(0, 0, 1.0, 4096)
    assert (w, h) == (1, 1)


def test_canvas_size_oversample_grows():
    w1, h1 = compute_canvas_size(800, 600, 1.0, 8192)
    w2, h2 = compute_canvas_size(800, 600, 2.0, 8192)
    assert w2 > w1 and h2 > h1


def test_canvas_size_invalid_max_dim():
    with pytest.raises(ValueError):
        compute_canvas_size(100, 100, 1.0, 0)


def test_fit_small_image_not_upscaled_by_default():
    assert resize_to_fit_with_margin(1920, 1080, 400, 300, 0.0, 1.0) == (400, 300)


@pytest.mark.parametrize(
    "src",
    [(4000, 3000), (3000, 4000), (1000, 1000), (5000, 100)],
)
@pytest.mark.parametrize("margin", [0.0, 0.05, 0.2, 0.9])
def test_fit_stays_within_available_area(src, margin):
    canvas = (1920, 1080)
    w, h = resize_to_fit_with_margin(canvas[0], canvas[1], src[0], src[1], margin, 1.0)
    used = min(margin, 0.45)
    assert 1 <= w <= canvas[0]
    assert 1 <= h <= canvas[1]
    assert w <= round(canvas[0] * (1 - 2 * used)) + 1
    assert h <= round(canvas[1] * (1 - 2 * used)) + 1


def test_fit_preserves_aspect_ratio():
    w, h = resize_to_fit_with_margin(1920, 1080, 4000, 3000, 0.0, 1.0)
    assert abs(w / h - 4000 / 3000) < 0.01
    assert h == 1080


def test_fit_upscale_limited_by_factor():
    w, h = resize_to_fit_with_margin(1920, 1080, 100, 100, 0.0, 2.0)
    assert (w, h) == (200, 200)


def test_fit_upscale_factor_below_one_is_ignored():
    assert resize_to_fit_with_margin(1920, 1080, 400, 300, 0.0, 0.25) == (400, 300)


def test_cover_large_image_kept():
    assert resize_to_cover(1920, 1080, 4000, 3000, 8192) == (4000, 3000)


@pytest.mark.parametrize("src", [(100, 100), (640, 480), (300, 900)])
def test_cover_covers_canvas(src):
    w, h = resize_to_cover(1920, 1080, src[0], src[1], 8192)
    assert w >= 1920 - 1
    assert h >= 1080 - 1
    assert w >= src[0] and h >= src[1]


def test_cover_clamped_to_max_dim():
    w, h = resize_to_cover(1920, 1080, 10, 10000, 4096)
    assert w <= 4096 and h <= 4096


def test_center_offset_larger_inner_is_zero():
    assert center_offset(500, 500, 100, 100) == (0, 0)


@pytest.mark.parametrize("inner,outer", [((10, 10), (30, 50)), ((7, 3), (20, 20)), ((1, 1), (2, 3))])
def test_center_offset_centres(inner, outer):
    ox, oy = center_offset(inner[0], inner[1], outer[0], outer[1])
    assert outer[0] - inner[0] - 2 * ox in (0, 1)
    assert outer[1] - inner[1] - 2 * oy in (0, 1)


def test_cover_rect_same_aspect_fills_screen():
    assert compute_cover_rect(960, 540, 1920, 1080) == (0.0, 0.0, 1920.0, 1080.0)


@pytest.mark.parametrize("img", [(4000, 3000), (3000, 4000), (100, 100), (1920, 200)])
def test_cover_rect_covers_and_centres(img):
    x, y, w, h = compute_cover_rect(img[0], img[1], 1920, 1080)
    assert w >= 1920 - 1e-6 and h >= 1080 - 1e-6
    assert abs(x + w / 2 - 960) < 1e-6
    assert abs(y + h / 2 - 540) < 1e-6
    assert abs(w - 1920) < 1e-6 or abs(h - 1080) < 1e-6
    assert abs(w / h - img[0] / img[1]) < 1e-6


def test_fade_progress_endpoints():
    assert fade_progress(0, 400) == 0.0
    assert fade_progress(400, 400) == 1.0
    assert fade_progress(10000, 400) == 1.0
    assert fade_progress(-5, 400) == 0.0


def test_fade_progress_midpoint():
    assert fade_progress(200, 400) == pytest.approx(0.5)


def test_fade_progress_monotonic():
    values = [fade_progress(ms, 400) for ms in range(0, 401, 20)]
    assert values == sorted(values)
    assert all(0.0 <= v <= 1.0 for v in values)


def test_fade_progress_zero_duration_completes():
    assert fade_progress(1, 0) == 1.0


def test_loading_rect_small_image_unscaled_and_centred():
    x, y, w, h = loading_rect(64, 32, 1920, 1080)
    assert (w, h) == (64.0, 32.0)
    assert x == (1920 - 64) / 2
    assert y == (1080 - 32) / 2


def test_loading_rect_large_image_limited():
    x, y, w, h = loading_rect(4000, 4000, 1920, 1080)
    assert w <= 1920 * 0.4 + 1e-6
    assert h <= 1080 * 0.2 + 1e-6
    assert w == pytest.approx(h)
    assert x + w / 2 == pytest.approx(960)
    assert y + h / 2 == pytest.approx(540)