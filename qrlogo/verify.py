"""Scan verification: decode rendered QR images back to text with pyzbar and OpenCV."""

import time
import zipfile
from dataclasses import dataclass
from os import PathLike
from typing import BinaryIO

import cv2
import numpy as np
from PIL import Image, ImageOps

from qrlogo.logging import audit, get_logger, trace

log = get_logger("verify")


@dataclass
class ScanResult:
    """Result of a single scan attempt."""
    success: bool
    decoded_data: str | None = None
    decode_time_ms: float = 0.0
    decoder: str = ""
    error: str | None = None


def _with_quiet_zone(image: Image.Image, quiet_zone: int) -> Image.Image:
    """RGB copy of *image* with *quiet_zone* white pixels added on each side."""
    rgb = image.convert("RGB")
    if quiet_zone <= 0:
        return rgb
    return ImageOps.expand(rgb, border=quiet_zone, fill=(255, 255, 255))


def _finish(decoder: str, start: float, data: str | None, error: str | None = None) -> ScanResult:
    elapsed = (time.perf_counter() - start) * 1000
    if data:
        audit("scan.verified", logger=log, decoder=decoder, success=True,
              time_ms=round(elapsed, 1), data=data[:80])
        return ScanResult(success=True, decoded_data=data, decode_time_ms=elapsed, decoder=decoder)
    error = error or "No QR code detected"
    audit("scan.verified", logger=log, decoder=decoder, success=False,
          time_ms=round(elapsed, 1), error=error)
    return ScanResult(success=False, decode_time_ms=elapsed, decoder=decoder, error=error)


@trace
def scan_pyzbar(image: Image.Image) -> ScanResult:
    """Scan a QR code using pyzbar (wraps ZBar)."""
    start = time.perf_counter()
    try:
        # loading pyzbar fails when the zbar shared library is absent
        from pyzbar.pyzbar import decode as pyzbar_decode

        results = pyzbar_decode(image)
    except Exception as e:
        return _finish("pyzbar/zbar", start, None, error=str(e))
    if not results:
        return _finish("pyzbar/zbar", start, None)
    return _finish("pyzbar/zbar", start, results[0].data.decode("utf-8", errors="replace"))


@trace
def scan_opencv(image: Image.Image) -> ScanResult:
    """Scan a QR code using OpenCV's built-in QR detector."""
    start = time.perf_counter()
    try:
        gray = cv2.cvtColor(np.array(image.convert("RGB")), cv2.COLOR_RGB2GRAY)
        data, _points, _ = cv2.QRCodeDetector().detectAndDecode(gray)
    except cv2.error as e:
        return _finish("opencv", start, None, error=str(e))
    return _finish("opencv", start, data or None)


@trace
def verify(image: Image.Image, expected_data: str | None = None, quiet_zone: int = 0) -> list[ScanResult]:
    """Run all available decoders on an image.

    Args:
        image: PIL Image containing a QR code.
        expected_data: If provided, marks result as failure if decoded data doesn't match.
        quiet_zone: White pixels added around the image before scanning, for
            symbols rendered with a narrow margin.

    Returns:
        List of ScanResults, one per decoder.
    """
    padded = _with_quiet_zone(image, quiet_zone)
    results = []
    for scanner in [scan_pyzbar, scan_opencv]:
        result = scanner(padded)
        if result.success and expected_data is not None and result.decoded_data != expected_data:
            result.success = False
            result.error = f"Data mismatch: got '{result.decoded_data}', expected '{expected_data}'"
        results.append(result)
    return results


@trace
def verify_archive(source: str | PathLike | BinaryIO, quiet_zone: int = 0) -> dict[str, list[ScanResult]]:
    """Verify every image in a batch archive against its entry name.

    An entry ``hello.png`` passes when a decoder reads back ``hello``.

    Returns:
        {entry_name: [ScanResult, ...]} in archive order.
    """
    report = {}
    with zipfile.ZipFile(source) as archive:
        for name in archive.namelist():
            stem = name.rsplit(".", 1)[0]
            with archive.open(name) as fh, Image.open(fh) as img:
                img.load()
                report[name] = verify(img, expected_data=stem, quiet_zone=quiet_zone)

    passed = sum(1 for results in report.values() if any(r.success for r in results))
    audit("archive.verified", logger=log, entries=len(report), passed=passed)
    return report
