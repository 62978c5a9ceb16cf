"""qrlogo CLI — generate QR codes with an optional framed logo, singly or as a zip batch."""

import argparse
import sys
from pathlib import Path

from PIL import Image

from qrlogo.config import DEFAULT_CONFIG, ECC_NAMES, LOGO_SCALING_POLICIES
from qrlogo.errors import QRLogoError
from qrlogo.logging import audit, get_logger, setup_logging

log = get_logger("cli")

DEMO_TEXT = "Hello from qrlogo"
DEMO_OUTPUT = "output/demo.png"


def _config_from_args(args):
    return DEFAULT_CONFIG.with_overrides(
        ecc=args.ecc,
        margin=args.margin,
        size=args.size,
        character_set=args.charset,
        logo_size=args.logo_size,
        logo_scaling=args.logo_scaling,
    )


def cmd_generate(args):
    """Generate a single QR code."""
    from qrlogo.generator import encode, write_image

    config = _config_from_args(args)
    output = Path(args.output)
    output.parent.mkdir(parents=True, exist_ok=True)

    img = encode(args.text, logo_path=args.logo, config=config)
    write_image(img, output, config)
    print(f"Generated: {output} ({img.size[0]}x{img.size[1]}, mode {img.mode})")


def cmd_batch(args):
    """Generate a zip archive with one QR code per text."""
    from qrlogo.batch import encode_batch

    texts = list(args.texts)
    if args.from_file:
        with open(args.from_file, encoding="utf-8") as fh:
            texts.extend(line.rstrip("\n") for line in fh if line.strip())
    if not texts:
        print("No texts given.", file=sys.stderr)
        return 1

    config = _config_from_args(args)
    output = Path(args.output)
    output.parent.mkdir(parents=True, exist_ok=True)

    result = encode_batch(output, args.logo, texts, config=config,
                          continue_on_error=args.continue_on_error)
    print(f"Archive: {output} ({len(result.entries)} entries)")
    for failure in result.failures:
        print(f"  SKIPPED {failure.text!r}: {failure.error}")
    return 0 if result.ok else 1


def cmd_verify(args):
    """Decode a QR image (or every entry of a batch archive)."""
    from qrlogo.verify import verify, verify_archive

    if args.image.lower().endswith(".zip"):
        report = verify_archive(args.image, quiet_zone=args.quiet_zone)
    else:
        with Image.open(args.image) as img:
            img.load()
            report = {args.image: verify(img, expected_data=args.expected, quiet_zone=args.quiet_zone)}

    all_pass = True
    for name, results in report.items():
        print(name)
        for r in results:
            print(f"  [{r.decoder:12s}] {'PASS' if r.success else 'FAIL'} | "
                  f"{r.decode_time_ms:6.1f}ms | {r.decoded_data or r.error}")
        all_pass = all_pass and any(r.success for r in results)
    return 0 if all_pass else 1


def cmd_demo(args):
    """Write a sample QR code, as a smoke test of the whole pipeline."""
    args.text = DEMO_TEXT
    args.output = args.output or DEMO_OUTPUT
    return cmd_generate(args)


def _add_config_flags(p):
    p.add_argument("-e", "--ecc", default=None, choices=list(ECC_NAMES), help="Error correction level (default M)")
    p.add_argument("--margin", type=int, default=None, help="Quiet zone modules (default 2)")
    p.add_argument("--size", type=int, default=None, help="Image width/height in pixels (default 300)")
    p.add_argument("--charset", default=None, help="Character set of the payload (default utf-8)")
    p.add_argument("--logo", default=None, help="Path to a logo image overlaid in the center")
    p.add_argument("--logo-size", type=int, default=None, help="Logo bound in pixels (default 60)")
    p.add_argument("--logo-scaling", default=None, choices=LOGO_SCALING_POLICIES,
                   help="Scale oversized logos by clamping each side or keeping the aspect ratio")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="qrlogo", description="QR codes with a framed center logo")

    # Global logging flags
    parser.add_argument("-V", "--verbose", action="store_true", help="Enable DEBUG-level logging")
    parser.add_argument("--log-file", default=None, help="Write JSON logs to file")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- generate ---
    p_gen = subparsers.add_parser("generate", help="Generate a QR code")
    p_gen.add_argument("text", help="Text to encode")
    p_gen.add_argument("-o", "--output", default="output/qr.png", help="Output file path")
    _add_config_flags(p_gen)

    # --- batch ---
    p_batch = subparsers.add_parser("batch", help="Generate a zip archive of QR codes")
    p_batch.add_argument("texts", nargs="*", help="Texts to encode, one entry each")
    p_batch.add_argument("-o", "--output", default="output/qr.zip", help="Output archive path")
    p_batch.add_argument("--from-file", default=None, help="Read additional texts, one per line")
    p_batch.add_argument("--continue-on-error", action="store_true",
                         help="Skip texts that cannot be encoded instead of aborting")
    _add_config_flags(p_batch)

    # --- verify ---
    p_ver = subparsers.add_parser("verify", help="Decode a QR image or batch archive")
    p_ver.add_argument("image", help="Path to a QR image or .zip archive")
    p_ver.add_argument("--expected", default=None, help="Expected decoded data (fails if mismatch)")
    p_ver.add_argument("--quiet-zone", type=int, default=20, help="White pixels added before scanning")

    # --- demo ---
    p_demo = subparsers.add_parser("demo", help="Write a sample QR code")
    p_demo.add_argument("-o", "--output", default=None, help=f"Output file path (default {DEMO_OUTPUT})")
    _add_config_flags(p_demo)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    # Setup logging before any command runs
    setup_logging(level="DEBUG" if args.verbose else "INFO", log_file=args.log_file)
    audit("cli.start", logger=log, command=args.command, verbose=args.verbose)

    if args.command is None:
        parser.print_help()
        return 1

    commands = {
        "generate": cmd_generate,
        "batch": cmd_batch,
        "verify": cmd_verify,
        "demo": cmd_demo,
    }
    try:
        status = commands[args.command](args) or 0
    except (QRLogoError, ValueError, OSError) as e:
        log.error("%s failed: %s", args.command, e)
        return 1
    audit("cli.done", logger=log, command=args.command, status=status)
    return status


if __name__ == "__main__":
    sys.exit(main())
