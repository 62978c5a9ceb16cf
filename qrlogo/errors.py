"""Exception types raised by qrlogo."""


class QRLogoError(Exception):
    """Base class for every qrlogo failure."""


class EncodingError(QRLogoError):
    """The text/config combination cannot be turned into a QR symbol."""


class LogoLoadError(QRLogoError):
    """The logo path is unreadable or not a decodable image."""

    def __init__(self, path, reason: str):
        self.path = str(path)
        self.reason = reason
        super().__init__(f"cannot load logo {self.path!r}: {reason}")


class ImageWriteError(QRLogoError):
    """Writing a rendered image to a file or stream failed."""


class ArchiveWriteError(QRLogoError):
    """Writing to the batch archive failed; the remaining items were not processed."""

    def __init__(self, entry: str | None, reason: str):
        self.entry = entry
        self.reason = reason
        where = f" at entry {entry!r}" if entry else ""
        super().__init__(f"archive write failed{where}: {reason}")
