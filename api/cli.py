#!/usr/bin/env python3
"""CLI for certificate service management tasks.

Usage:
    python -m cli <command>

Commands:
    render-sample      Render a sample certificate (PDF, PNG and QR) to disk
    verification-url   Print the verification URL for a verification ID

Settings are read from the environment as for the API (set DEBUG=true to
run without a record store).
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


async def _render_sample(
    output_dir: Path, name: str, verification_id: str, background: str
) -> list[Path]:
    from rendering.qr import render_qr_png
    from schemas import Participant
    from services.certificates_service import artifact_filename, render_certificate
    from services.templates_service import normalize_template

    template = normalize_template({"name": "Sample", "background_image": background})
    participant = Participant(id="sample", name=name, verification_id=verification_id)

    output_dir.mkdir(parents=True, exist_ok=True)
    written: list[Path] = []
    for fmt in ("pdf", "png"):
        rendered = await render_certificate(template, participant, fmt)
        path = output_dir / artifact_filename(fmt, participant)
        path.write_bytes(rendered.content)
        written.append(path)

    qr_path = output_dir / artifact_filename("qr", participant)
    qr_path.write_bytes(render_qr_png(verification_id, 600))
    written.append(qr_path)
    return written


def cmd_render_sample(args: argparse.Namespace) -> int:
    """Render a sample certificate with the placeholder background."""
    from core.errors import CertforgeError

    try:
        written = asyncio.run(
            _render_sample(
                Path(args.output_dir), args.name, args.verification_id, args.background
            )
        )
    except CertforgeError as e:
        logger.error(f"Render failed: {e.message}")
        return 1

    for path in written:
        logger.info(f"Wrote {path}")
    return 0


def cmd_verification_url(args: argparse.Namespace) -> int:
    """Print the verification URL encoded into QR codes."""
    from rendering.qr import build_verification_url

    print(build_verification_url(args.verification_id))
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Certificate service CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    render = subparsers.add_parser(
        "render-sample",
        help="Render a sample certificate (PDF, PNG and QR) to disk",
    )
    render.add_argument("--output-dir", default="sample-output")
    render.add_argument("--name", default="John Doe")
    render.add_argument("--verification-id", default="SAMPLE-001")
    render.add_argument("--background", default="/placeholder.svg")

    url = subparsers.add_parser(
        "verification-url",
        help="Print the verification URL for a verification ID",
    )
    url.add_argument("verification_id")

    args = parser.parse_args()

    if args.command == "render-sample":
        return cmd_render_sample(args)
    elif args.command == "verification-url":
        return cmd_verification_url(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
