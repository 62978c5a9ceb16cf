"""Batch encoding: one QR image per text, collected into a zip archive."""

import io
import zipfile
from dataclasses import dataclass, field
from os import PathLike
from typing import BinaryIO, Iterable

from qrlogo.config import DEFAULT_CONFIG, QRConfig
from qrlogo.errors import ArchiveWriteError, EncodingError
from qrlogo.generator import encode
from qrlogo.logging import audit, get_logger, trace
from qrlogo.logo import load_logo

log = get_logger("batch")


@dataclass
class BatchFailure:
    """An item skipped because its text could not be encoded."""
    text: str
    error: str


@dataclass
class BatchResult:
    """Entries written to the archive and items that were skipped."""
    entries: list[str] = field(default_factory=list)
    failures: list[BatchFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def total(self) -> int:
        return len(self.entries) + len(self.failures)


def entry_name(text: str, config: QRConfig | None = None) -> str:
    """Archive entry name for *text*.

    The raw text is the file stem. Texts with path separators, duplicates or
    names too long for the target file system are not rewritten.
    """
    config = config or DEFAULT_CONFIG
    return f"{text}.{config.image_format}"


@trace
def encode_batch(
    sink: str | PathLike | BinaryIO,
    logo_path: str | PathLike | None,
    texts: Iterable[str],
    config: QRConfig | None = None,
    continue_on_error: bool = False,
) -> BatchResult:
    """Encode every text and write the images into a zip archive at *sink*.

    Args:
        sink: Output path or writable binary stream.
        logo_path: Logo overlaid on every image. Empty or None means no logo.
        texts: Texts to encode, written in order.
        config: Rendering options shared by all items.
        continue_on_error: Skip texts that fail to encode and report them in
            the result instead of aborting.

    Returns:
        BatchResult listing written entries and skipped items.

    Raises:
        LogoLoadError: the logo cannot be loaded (nothing is written).
        EncodingError: a text cannot be encoded and *continue_on_error* is off.
        ArchiveWriteError: writing the archive failed. Always aborts, since
            every entry goes through the same stream.
    """
    config = config or DEFAULT_CONFIG
    logo = load_logo(logo_path, config) if logo_path else None
    result = BatchResult()
    fmt = config.image_format.upper()

    try:
        archive = zipfile.ZipFile(sink, "w", zipfile.ZIP_DEFLATED)
    except OSError as e:
        raise ArchiveWriteError(None, str(e)) from e

    try:
        with archive:
            for text in texts:
                name = entry_name(text, config)
                try:
                    image = encode(text, config=config, logo=logo)
                except EncodingError as e:
                    if not continue_on_error:
                        raise
                    result.failures.append(BatchFailure(text=text, error=str(e)))
                    audit("batch.item_skipped", logger=log, data=text[:80], error=str(e))
                    continue

                buf = io.BytesIO()
                image.save(buf, format=fmt)
                try:
                    archive.writestr(name, buf.getvalue())
                except (OSError, ValueError, zipfile.LargeZipFile) as e:
                    raise ArchiveWriteError(name, str(e)) from e
                result.entries.append(name)
    except OSError as e:
        # central directory written on close
        raise ArchiveWriteError(None, str(e)) from e

    audit("batch.written", logger=log,
          entries=len(result.entries), skipped=len(result.failures),
          logo=logo is not None)
    return result
