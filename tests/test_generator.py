import io

import numpy as np
import pytest
from PIL import Image

from qrlogo.config import QRConfig
from qrlogo.errors import EncodingError, ImageWriteError, LogoLoadError
from qrlogo.generator import encode, encode_matrix, encode_result, rasterize, write_image
from qrlogo.logo import frame_box


# --- encode_matrix ----------------------------------------------------------

def test_matrix_fills_requested_size():
    grid = encode_matrix("hello", ecc="M", margin=2, width=300, height=300)
    assert grid.shape == (300, 300)
    assert grid.dtype == bool


def test_matrix_is_read_only():
    grid = encode_matrix("hello", width=300, height=300)
    with pytest.raises(ValueError):
        grid[0, 0] = True


def test_unscaled_matrix_has_margin():
    # "hello" fits version 1 (21 modules) at level M
    grid = encode_matrix("hello", ecc="M", margin=2)
    assert grid.shape == (25, 25)
    assert not grid[:2, :].any()
    assert not grid[:, -2:].any()
    assert grid[2, 2]  # top-left finder corner


def test_matrix_is_centered_in_leftover_space():
    grid = encode_matrix("hello", ecc="M", margin=2, width=310, height=310)
    # 25 modules * 12 px = 300, 10 px left over
    assert grid.shape == (310, 310)
    assert not grid[:, :5].any()
    assert not grid[:5, :].any()
    assert grid[5 + 24, 5 + 24]


def test_empty_text_rejected():
    with pytest.raises(EncodingError):
        encode_matrix("")


def test_text_over_capacity_rejected():
    with pytest.raises(EncodingError):
        encode_matrix("x" * 5000, ecc="H")


def test_unencodable_characters_rejected():
    with pytest.raises(EncodingError):
        encode_matrix("日本", character_set="latin-1")


# --- rasterize --------------------------------------------------------------

def test_rasterize_without_logo_is_one_bit():
    grid = encode_matrix("hello world", width=300, height=300)
    img = rasterize(grid, has_logo=False)
    assert img.mode == "1"
    assert img.size == (300, 300)
    arr = np.asarray(img.convert("L"))
    assert set(np.unique(arr)) <= {0, 255}
    assert (arr == 0).sum() == grid.sum()


def test_rasterize_with_logo_is_full_color():
    grid = encode_matrix("hello world", width=300, height=300)
    img = rasterize(grid, has_logo=True)
    assert img.mode == "RGB"
    arr = np.asarray(img)
    assert arr.shape == (300, 300, 3)
    assert (arr[grid] == 0).all()
    assert (arr[~grid] == 255).all()


def test_rasterize_custom_palette():
    config = QRConfig(foreground=(10, 20, 30), background=(250, 240, 230))
    grid = encode_matrix("hello", width=100, height=100)
    arr = np.asarray(rasterize(grid, has_logo=False, config=config))
    assert (arr[grid] == (10, 20, 30)).all()
    assert (arr[~grid] == (250, 240, 230)).all()


def test_rasterize_rejects_non_2d():
    with pytest.raises(ValueError):
        rasterize(np.zeros((4, 4, 3), dtype=bool), has_logo=False)


# --- encode -----------------------------------------------------------------

def test_round_trip(decode):
    img = encode("hello world")
    assert img.size == (300, 300)
    assert decode(img) == "hello world"


def test_round_trip_with_logo(red_logo, decode):
    img = encode("https://example.com", logo_path=red_logo, config=QRConfig(ecc="H"))
    assert decode(img) == "https://example.com"


def test_empty_logo_path_means_no_logo():
    assert encode("hello", logo_path="").mode == "1"


def test_logo_only_touches_framed_box(red_logo):
    plain = np.asarray(rasterize(encode_matrix("hello world", width=300, height=300), has_logo=True))
    with_logo = np.asarray(encode("hello world", logo_path=red_logo))

    x0, y0, x1, y1 = frame_box((300, 300), (60, 60), 3)
    outside = np.ones((300, 300), dtype=bool)
    outside[y0:y1 + 1, x0:x1 + 1] = False
    assert (plain[outside] == with_logo[outside]).all()
    assert tuple(with_logo[150, 150]) == (255, 0, 0)


def test_custom_dimensions():
    assert encode("hello", width=200, height=150).size == (200, 150)


def test_missing_logo_raises(tmp_path):
    with pytest.raises(LogoLoadError):
        encode("hello", logo_path=tmp_path / "missing.png")


def test_encode_result_success():
    result = encode_result("hello")
    assert result.ok
    assert result.image.size == (300, 300)
    assert result.error is None


def test_encode_result_reports_failure():
    result = encode_result("")
    assert not result.ok
    assert result.image is None
    assert isinstance(result.error, EncodingError)


def test_encode_result_distinguishes_logo_failure(not_an_image):
    result = encode_result("hello", logo_path=not_an_image)
    assert isinstance(result.error, LogoLoadError)


# --- write_image ------------------------------------------------------------

def test_write_image_to_stream():
    buf = io.BytesIO()
    write_image(encode("hello"), buf)
    assert buf.getvalue().startswith(b"\x89PNG")
    assert Image.open(io.BytesIO(buf.getvalue())).size == (300, 300)


def test_write_image_to_path(tmp_path):
    path = tmp_path / "qr.png"
    write_image(encode("hello"), path)
    assert Image.open(path).size == (300, 300)


def test_write_image_failure_wrapped(tmp_path):
    with pytest.raises(ImageWriteError):
        write_image(encode("hello"), tmp_path / "missing-dir" / "qr.png")


def test_encode_result_reports_over_capacity():
    result = encode_result("x" * 5000, config=QRConfig(ecc="H"))
    assert not result.ok
    assert isinstance(result.error, EncodingError)
