"""Rendering configuration shared by the encoder, compositor and batch writer."""

import codecs
from dataclasses import asdict, dataclass, fields, replace
from enum import Enum

import qrcode.constants
from PIL import Image


class ECCLevel(Enum):
    L = qrcode.constants.ERROR_CORRECT_L  # 7%
    M = qrcode.constants.ERROR_CORRECT_M  # 15%
    Q = qrcode.constants.ERROR_CORRECT_Q  # 25%
    H = qrcode.constants.ERROR_CORRECT_H  # 30%


ECC_NAMES = {"L": ECCLevel.L, "M": ECCLevel.M, "Q": ECCLevel.Q, "H": ECCLevel.H}

LOGO_SCALING_POLICIES = ("clamp", "aspect")

BLACK = (0, 0, 0)
WHITE = (255, 255, 255)


@dataclass(frozen=True)
class QRConfig:
    """Everything that used to be a module-level constant.

    Attributes:
        character_set: Codec used to turn text into the QR byte payload.
        ecc: Error correction level, one of L/M/Q/H.
        margin: Quiet zone width in modules.
        size: Default pixel width and height of the rendered symbol.
        logo_size: Pixel bound a logo is scaled down to.
        logo_scaling: "clamp" clamps each oversized dimension to the bound
            independently; "aspect" keeps the logo's proportions.
        border_radius: Corner radius of the frame drawn around the logo.
        border_width: Stroke width of that frame.
        foreground: Color of set modules.
        background: Color of unset modules.
        border_color: Color of the logo frame.
        image_format: Pillow format name used when writing images.
    """

    character_set: str = "utf-8"
    ecc: str = "M"
    margin: int = 2
    size: int = 300
    logo_size: int = 60
    logo_scaling: str = "clamp"
    border_radius: int = 15
    border_width: int = 3
    foreground: tuple[int, int, int] = BLACK
    background: tuple[int, int, int] = WHITE
    border_color: tuple[int, int, int] = WHITE
    image_format: str = "png"

    def __post_init__(self):
        object.__setattr__(self, "ecc", self.ecc.upper())
        object.__setattr__(self, "image_format", self.image_format.lower())
        if self.ecc not in ECC_NAMES:
            raise ValueError(f"ecc must be one of {'/'.join(ECC_NAMES)}, got {self.ecc!r}")
        Image.init()
        if self.image_format.upper() not in Image.SAVE:
            raise ValueError(f"Pillow cannot write image format {self.image_format!r}")
        if self.logo_scaling not in LOGO_SCALING_POLICIES:
            raise ValueError(f"logo_scaling must be one of {LOGO_SCALING_POLICIES}, got {self.logo_scaling!r}")
        try:
            codecs.lookup(self.character_set)
        except LookupError:
            raise ValueError(f"unknown character set {self.character_set!r}") from None
        for name in ("margin", "border_radius", "border_width"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0")
        for name in ("size", "logo_size"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be > 0")
        for name in ("foreground", "background", "border_color"):
            color = tuple(getattr(self, name))
            if len(color) != 3 or not all(0 <= ch <= 255 for ch in color):
                raise ValueError(f"{name} must be an RGB triple, got {color!r}")
            object.__setattr__(self, name, color)

    @property
    def ecc_level(self) -> ECCLevel:
        return ECC_NAMES[self.ecc]

    @property
    def is_monochrome(self) -> bool:
        """True when the palette fits a 1-bit image."""
        return self.foreground == BLACK and self.background == WHITE

    def with_overrides(self, **overrides) -> "QRConfig":
        """Return a copy with every non-None override applied."""
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise TypeError(f"unknown config option(s): {', '.join(sorted(unknown))}")
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    def as_dict(self) -> dict:
        return asdict(self)


DEFAULT_CONFIG = QRConfig()
