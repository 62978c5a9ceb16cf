import pytest
from PIL import Image, ImageOps

from qrlogo.verify import scan_opencv


def _save(img, path):
    img.save(path)
    return str(path)


@pytest.fixture
def red_logo(tmp_path):
    """Opaque 60x60 red square."""
    return _save(Image.new("RGB", (60, 60), (255, 0, 0)), tmp_path / "logo.png")


@pytest.fixture
def wide_logo(tmp_path):
    """120x40 logo, wider than the 60 px bound."""
    return _save(Image.new("RGB", (120, 40), (0, 0, 255)), tmp_path / "wide.png")


@pytest.fixture
def not_an_image(tmp_path):
    path = tmp_path / "logo.png"
    path.write_text("definitely not a png")
    return str(path)


@pytest.fixture
def decode():
    """Decode a rendered QR image with OpenCV, padding it with a white border first."""
    def _decode(img):
        padded = ImageOps.expand(img.convert("RGB"), border=40, fill=(255, 255, 255))
        return scan_opencv(padded).decoded_data
    return _decode
