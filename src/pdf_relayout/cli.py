# SPDX-License-Identifier: Apache-2.0
"""
PDF Relayout - CLI Tool

Extracts the positioned text of a PDF and regenerates the PDF with
substituted text at the original positions, fonts and colors.

Usage:
    relayout-pdf extract <input.pdf> [options]
    relayout-pdf regenerate <input.pdf|extracted.json> --text <file> [options]

Examples:
    relayout-pdf extract paper.pdf                        # Writes paper.json
    relayout-pdf regenerate paper.json --text paper.txt   # Writes paper_relayout.pdf
    relayout-pdf regenerate paper.pdf -t ja.txt --fetch-fonts
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import NoReturn

from pdf_relayout.core.models import ExtractedDocument
from pdf_relayout.core.text_layout import LayoutOptions, OverflowStrategy
from pdf_relayout.pipeline.errors import PipelineError
from pdf_relayout.pipeline.extraction import DocumentExtractor
from pdf_relayout.pipeline.regeneration import DocumentRegenerator, RegenerationConfig

logger = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    """Parse command line arguments.

    Returns:
        Parsed argument Namespace.
    """
    parser = argparse.ArgumentParser(
        prog="relayout-pdf",
        description="PDF Relayout Tool - Regenerates PDFs with substituted text",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s extract paper.pdf                          # Layout JSON next to the PDF
  %(prog)s extract paper.pdf -o layout.json           # Specify output file
  %(prog)s regenerate paper.json --text new.txt       # Standard fonts
  %(prog)s regenerate paper.pdf --text new.txt --fetch-fonts
  %(prog)s regenerate paper.json --text new.txt --strategy scale
""",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    extract_parser = subparsers.add_parser(
        "extract",
        help="Extract positioned text and layout to JSON",
    )
    extract_parser.add_argument(
        "input",
        type=Path,
        help="Path to PDF file",
    )
    extract_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        help="Output JSON path (default: <input>.json)",
    )

    regen_parser = subparsers.add_parser(
        "regenerate",
        help="Render substituted text onto the original layout",
    )
    regen_parser.add_argument(
        "input",
        type=Path,
        help="PDF file, or JSON written by 'extract'",
    )
    regen_parser.add_argument(
        "-t",
        "--text",
        type=Path,
        required=True,
        help="UTF-8 file with the substituted text",
    )
    regen_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        help="Output PDF path (default: <input>_relayout.pdf)",
    )
    regen_parser.add_argument(
        "--fetch-fonts",
        action="store_true",
        help="Fetch Noto fonts from the Google Fonts CDN for Unicode text",
    )
    regen_parser.add_argument(
        "--strategy",
        default="wrap",
        choices=[strategy.value for strategy in OverflowStrategy],
        help="Handling of text wider than its slot (default: wrap)",
    )
    regen_parser.add_argument(
        "--no-subset",
        action="store_true",
        help="Embed fetched fonts whole instead of subsetting",
    )

    return parser.parse_args()


def load_document(input_path: Path) -> ExtractedDocument:
    """Load an extracted document from JSON, or extract it from a PDF.

    Raises:
        PipelineError: If extraction fails.
        ValueError: If the JSON is not a supported document.
    """
    if input_path.suffix.lower() == ".json":
        return ExtractedDocument.from_json(input_path.read_text(encoding="utf-8"))
    return DocumentExtractor().extract(input_path)


async def run_extract(args: argparse.Namespace) -> int:
    """Execute extraction.

    Returns:
        Exit code (0: success, 1: failure).
    """
    input_path: Path = args.input
    if not input_path.exists():
        print(f"Error: File not found: {input_path}", file=sys.stderr)
        return 1

    output_path: Path = args.output or input_path.with_suffix(".json")

    try:
        document = await DocumentExtractor().extract_async(input_path)
    except PipelineError as e:
        print(f"Error: Extraction failed ({e.stage}): {e}", file=sys.stderr)
        return 1

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(document.to_json(), encoding="utf-8")

    print(f"Complete: {output_path}")
    print(f"  Pages: {document.page_count}")
    print(f"  Text items: {len(document.text_items)}")
    print(f"  Characters: {len(document.full_text)}")
    multi_column = sum(1 for layout in document.column_layouts if layout.is_multi_column)
    print(f"  Multi-column pages: {multi_column}")
    return 0


async def run_regenerate(args: argparse.Namespace) -> int:
    """Execute regeneration.

    Returns:
        Exit code (0: success, 1: failure).
    """
    input_path: Path = args.input
    for path in (input_path, args.text):
        if not path.exists():
            print(f"Error: File not found: {path}", file=sys.stderr)
            return 1

    output_path: Path = args.output or input_path.with_name(f"{input_path.stem}_relayout.pdf")
    text = args.text.read_text(encoding="utf-8")

    try:
        document = await asyncio.to_thread(load_document, input_path)
    except (PipelineError, ValueError) as e:
        print(f"Error: Cannot load {input_path}: {e}", file=sys.stderr)
        return 1

    config = RegenerationConfig(
        layout_options=LayoutOptions(overflow_strategy=OverflowStrategy(args.strategy)),
        use_unicode_fonts=args.fetch_fonts,
        subset_fonts=not args.no_subset,
    )

    print(f"Input: {input_path}")
    print(f"Output: {output_path}")
    print(f"Overflow strategy: {args.strategy}")
    if len(text) != len(document.full_text):
        print(f"Text length: {len(text)} (original {len(document.full_text)})")
    print()

    try:
        if args.fetch_fonts:
            from pdf_relayout.fonts import get_noto_loader

            NotoFontLoader = get_noto_loader()
            async with NotoFontLoader() as loader:
                regenerator = DocumentRegenerator(config, font_source=loader)
                result = await regenerator.regenerate(document, text, output_path)
        else:
            regenerator = DocumentRegenerator(config)
            result = await regenerator.regenerate(document, text, output_path)
    except PipelineError as e:
        print(f"Error: Regeneration failed ({e.stage}): {e}", file=sys.stderr)
        if args.verbose:
            import traceback

            traceback.print_exc()
        return 1

    print(f"Complete: {output_path}")
    if result.stats:
        stats = result.stats
        print(f"  Pages: {stats.get('pages', 0)}")
        print(f"  Rendered items: {stats.get('rendered_items', 0)}")
        print(f"  Skipped items: {stats.get('skipped_items', 0)}")
        print(f"  Reflowed items: {stats.get('overflowed_items', 0)}")
        print(f"  Unicode fonts: {'yes' if stats.get('unicode_fonts') else 'no'}")
    return 0


async def run(args: argparse.Namespace) -> int:
    """Dispatch to the selected subcommand."""
    if args.command == "extract":
        return await run_extract(args)
    return await run_regenerate(args)


def main() -> NoReturn:
    """Main entry point."""
    args = parse_args()

    # Configure logging
    log_level = logging.DEBUG if args.verbose else logging.WARNING
    logging.basicConfig(level=log_level, format="%(levelname)s: %(message)s")

    exit_code = asyncio.run(run(args))
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
