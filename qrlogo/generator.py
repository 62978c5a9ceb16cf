"""QR generation: module grid from the qrcode library, pixel rasterization and the encode facade."""

from dataclasses import dataclass
from os import PathLike
from typing import BinaryIO

import numpy as np
import qrcode
from PIL import Image
from qrcode.exceptions import DataOverflowError

from qrlogo.config import DEFAULT_CONFIG, ECC_NAMES, QRConfig
from qrlogo.errors import EncodingError, ImageWriteError, QRLogoError
from qrlogo.logging import audit, get_logger, trace
from qrlogo.logo import insert_logo, load_logo

log = get_logger("generator")


# ---------------------------------------------------------------------------
# Module grid
# ---------------------------------------------------------------------------

@trace
def encode_matrix(
    text: str,
    ecc: str = "M",
    margin: int = 2,
    width: int = 0,
    height: int = 0,
    character_set: str = "utf-8",
) -> np.ndarray:
    """Compute the QR symbol for *text* and scale it to a pixel-resolution grid.

    The symbol plus *margin* quiet-zone modules per side is enlarged by the
    largest integer factor that fits ``width x height`` and centered; any
    leftover space is background. The grid is never smaller than the
    unscaled symbol, so ``width=height=0`` yields one pixel per module.

    Args:
        text: The string to encode.
        ecc: Error correction level: L/M/Q/H.
        margin: Quiet zone width in modules.
        width: Requested pixel width.
        height: Requested pixel height.
        character_set: Codec used to build the byte payload.

    Returns:
        Read-only bool array of shape (height, width), True = dark module.

    Raises:
        EncodingError: empty text, unencodable characters, or more data than
            the largest symbol holds at this error correction level.
    """
    if not text:
        raise EncodingError("cannot encode empty text")
    if width < 0 or height < 0:
        raise EncodingError(f"requested dimensions are too small: {width}x{height}")
    if margin < 0:
        raise EncodingError(f"margin must be >= 0, got {margin}")
    try:
        ecc_level = ECC_NAMES[ecc.upper()]
    except KeyError:
        raise EncodingError(f"unknown error correction level {ecc!r}") from None

    try:
        payload = text.encode(character_set)
    except (UnicodeEncodeError, LookupError) as e:
        raise EncodingError(f"cannot encode text as {character_set}: {e}") from e

    qr = qrcode.QRCode(
        version=None,
        error_correction=ecc_level.value,
        box_size=1,
        border=0,
    )
    qr.add_data(payload)
    try:
        qr.make(fit=True)
    except (DataOverflowError, ValueError) as e:
        # newer qrcode releases signal overflow as an invalid version 41
        raise EncodingError(
            f"{len(payload)} bytes do not fit a QR symbol at ECC level {ecc_level.name}"
        ) from e

    modules = np.pad(np.array(qr.modules, dtype=bool), margin, constant_values=False)
    in_h, in_w = modules.shape
    out_w = max(width, in_w)
    out_h = max(height, in_h)
    multiple = min(out_w // in_w, out_h // in_h)
    left = (out_w - in_w * multiple) // 2
    top = (out_h - in_h * multiple) // 2

    grid = np.zeros((out_h, out_w), dtype=bool)
    grid[top:top + in_h * multiple, left:left + in_w * multiple] = (
        modules.repeat(multiple, axis=0).repeat(multiple, axis=1)
    )
    grid.flags.writeable = False

    log.debug("matrix version=%d modules=%d scale=%d", qr.version, in_w, multiple)
    return grid


# ---------------------------------------------------------------------------
# Rasterizer
# ---------------------------------------------------------------------------

@trace
def rasterize(grid: np.ndarray, has_logo: bool, config: QRConfig | None = None) -> Image.Image:
    """Paint a module grid: set pixels get the foreground, the rest the background.

    A logo needs full color, so the image is RGB when *has_logo* is set or
    the palette is not plain black on white; otherwise it is 1 bit per pixel.
    """
    config = config or DEFAULT_CONFIG
    grid = np.asarray(grid, dtype=bool)
    if grid.ndim != 2:
        raise ValueError(f"module grid must be 2-D, got shape {grid.shape}")

    if has_logo or not config.is_monochrome:
        fg = np.array(config.foreground, dtype=np.uint8)
        bg = np.array(config.background, dtype=np.uint8)
        pixels = np.where(grid[..., np.newaxis], fg, bg)
        return Image.fromarray(np.ascontiguousarray(pixels))

    # mode "1": True is white
    return Image.fromarray(np.ascontiguousarray(~grid))


# ---------------------------------------------------------------------------
# Encode facade
# ---------------------------------------------------------------------------

@dataclass
class EncodeResult:
    """Outcome of :func:`encode_result`: an image, or the error that prevented it."""
    ok: bool
    image: Image.Image | None = None
    error: QRLogoError | None = None


@trace
def encode(
    text: str,
    logo_path: str | PathLike | None = None,
    config: QRConfig | None = None,
    width: int | None = None,
    height: int | None = None,
    logo: Image.Image | None = None,
) -> Image.Image:
    """Render *text* as a QR image, with a framed logo when one is given.

    Args:
        text: The string to encode.
        logo_path: Logo file to overlay. Empty or None means no logo.
        config: Rendering options. Defaults to :data:`DEFAULT_CONFIG`.
        width: Pixel width (defaults to ``config.size``).
        height: Pixel height (defaults to ``config.size``).
        logo: An already loaded and scaled logo; takes precedence over
            *logo_path*.

    Raises:
        EncodingError: the text cannot be encoded.
        LogoLoadError: *logo_path* is not a readable image.
    """
    config = config or DEFAULT_CONFIG
    if logo is None and logo_path:
        logo = load_logo(logo_path, config)

    grid = encode_matrix(
        text,
        ecc=config.ecc,
        margin=config.margin,
        width=config.size if width is None else width,
        height=config.size if height is None else height,
        character_set=config.character_set,
    )
    image = rasterize(grid, logo is not None, config)
    if logo is not None:
        insert_logo(image, logo, config)

    audit("qr.encoded", logger=log,
          data=text[:80], ecc=config.ecc, margin=config.margin,
          image_px=f"{image.size[0]}x{image.size[1]}", mode=image.mode,
          logo=logo is not None)
    return image


def encode_result(text: str, logo_path: str | PathLike | None = None,
                  config: QRConfig | None = None, **kwargs) -> EncodeResult:
    """Like :func:`encode`, but failures come back as a value instead of raising."""
    try:
        return EncodeResult(ok=True, image=encode(text, logo_path, config, **kwargs))
    except QRLogoError as e:
        return EncodeResult(ok=False, error=e)


@trace
def write_image(image: Image.Image, target: str | PathLike | BinaryIO,
                config: QRConfig | None = None):
    """Save *image* to a path or binary stream in ``config.image_format``."""
    config = config or DEFAULT_CONFIG
    try:
        image.save(target, format=config.image_format.upper())
    except OSError as e:
        raise ImageWriteError(f"cannot write image to {target!r}: {e}") from e
    if isinstance(target, (str, PathLike)):
        audit("image.saved", logger=log, path=str(target), size=f"{image.size[0]}x{image.size[1]}")
    return target
