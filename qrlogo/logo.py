"""Logo handling: load and scale a logo, then composite it with a rounded frame onto a QR image."""

from os import PathLike

from PIL import Image, ImageDraw, UnidentifiedImageError

from qrlogo.config import DEFAULT_CONFIG, QRConfig
from qrlogo.errors import LogoLoadError
from qrlogo.logging import audit, get_logger, trace

log = get_logger("logo")


# ---------------------------------------------------------------------------
# Loading & scaling
# ---------------------------------------------------------------------------

@trace
def load_logo(path: str | PathLike, config: QRConfig | None = None) -> Image.Image:
    """Load a logo as RGBA and scale it down to ``config.logo_size``.

    Raises:
        LogoLoadError: the file is missing, unreadable or not an image.
    """
    try:
        with Image.open(path) as img:
            img.load()
            logo = img.convert("RGBA")
    except UnidentifiedImageError as e:
        raise LogoLoadError(path, "not a decodable image") from e
    except FileNotFoundError as e:
        raise LogoLoadError(path, "no such file") from e
    except OSError as e:
        raise LogoLoadError(path, e.strerror or str(e)) from e

    return scale_logo(logo, config)


def _scale_preserving_aspect(
    original_size: tuple[int, int],
    target: int,
) -> tuple[int, int]:
    """Scale (w, h) so the larger dimension equals *target*, preserving aspect."""
    w, h = original_size
    aspect = w / h
    if aspect >= 1:
        return target, max(1, int(target / aspect))
    return max(1, int(target * aspect)), target


@trace
def scale_logo(logo: Image.Image, config: QRConfig | None = None) -> Image.Image:
    """Shrink *logo* so neither side exceeds ``config.logo_size``.

    With the "clamp" policy each oversized side is clamped on its own, so a
    120x40 logo becomes 60x40. With "aspect" the proportions are kept and
    it becomes 60x20. Logos already within the bound are returned as is.
    """
    config = config or DEFAULT_CONFIG
    bound = config.logo_size
    w, h = logo.size
    if w <= bound and h <= bound:
        return logo

    if config.logo_scaling == "aspect":
        new_size = _scale_preserving_aspect((w, h), bound)
    else:
        new_size = (min(w, bound), min(h, bound))

    audit("logo.scaled", logger=log,
          original=f"{w}x{h}", scaled=f"{new_size[0]}x{new_size[1]}",
          policy=config.logo_scaling)
    return logo.resize(new_size, Image.LANCZOS)


# ---------------------------------------------------------------------------
# Compositing
# ---------------------------------------------------------------------------

def logo_offset(base_size: tuple[int, int], logo_size: tuple[int, int]) -> tuple[int, int]:
    """Top-left corner that centers a logo of *logo_size* on *base_size*."""
    return (base_size[0] - logo_size[0]) // 2, (base_size[1] - logo_size[1]) // 2


def frame_box(base_size: tuple[int, int], logo_size: tuple[int, int],
              border_width: int) -> tuple[int, int, int, int]:
    """Inclusive pixel box the logo and its frame may touch.

    The frame stroke is centered on the logo's edge, so it reaches
    ``border_width // 2`` pixels past the logo on every side.
    """
    x, y = logo_offset(base_size, logo_size)
    half = border_width // 2
    return x - half, y - half, x + logo_size[0] - 1 + half, y + logo_size[1] - 1 + half


@trace
def insert_logo(base: Image.Image, logo: Image.Image, config: QRConfig | None = None) -> Image.Image:
    """Paste *logo* at the center of *base* and draw a rounded frame around it.

    *base* is modified in place and returned. It must be an RGB image; a
    1-bit raster cannot hold the logo's colors.
    """
    config = config or DEFAULT_CONFIG
    if base.mode != "RGB":
        raise ValueError(f"logo can only be composited onto an RGB image, got mode {base.mode!r}")

    if logo.mode != "RGBA":
        logo = logo.convert("RGBA")
    x, y = logo_offset(base.size, logo.size)
    base.paste(logo, (x, y), logo)

    if config.border_width > 0:
        draw = ImageDraw.Draw(base)
        draw.rounded_rectangle(
            frame_box(base.size, logo.size, config.border_width),
            radius=config.border_radius,
            outline=config.border_color,
            width=config.border_width,
        )

    log.debug("logo inserted at (%d, %d) size=%dx%d", x, y, logo.size[0], logo.size[1])
    return base
