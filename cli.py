#!/usr/bin/env python3
"""
iMessage Body Decoder - Console Mode

Usage:
    python cli.py <chat.db> [options]
    python cli.py --blob <file> [options]

Options:
    --blob <file>           Decode a single attributedBody blob
    --format json|txt       Export format (default: json)
    --output <path>         Output file ("-" for stdout)
    --info                  Show database info and exit
    --scan                  Show message summaries
    --limit <n>             Limit number of messages
    --verbose               Verbose output
"""

import sys
import argparse
import json
import logging
from datetime import datetime
from pathlib import Path

from typedbody.core.chat_reader import ChatDBReader
from typedbody.core.components import body_components, legacy_components
from typedbody.core.decoder import DecodeStatus, decode_body
from typedbody.core.errors import BodyDecodeError
from typedbody.core.reconstruct import reconstruct
from typedbody.core.text_effects import utf16_slice
from typedbody.exporters import EXPORTERS, ExportOptions


def setup_logging(verbose: bool):
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(levelname)s: %(message)s'
    )


def decode_blob_file(path: str, output_format: str) -> int:
    """Decode one blob file and print the result."""
    blob_path = Path(path)
    if not blob_path.exists():
        print(f"ERROR: File not found: {path}")
        return 1

    result = decode_body(blob_path.read_bytes())
    if not result.ok:
        print("ERROR: No text recovered")
        print(f"  typedstream: {result.typed_error}")
        print(f"  legacy: {result.legacy_error}")
        return 1

    try:
        rich = reconstruct(result.text, result.nodes)
    except BodyDecodeError as e:
        print(f"ERROR: {e}")
        return 1
    components = body_components(rich) if result.status == DecodeStatus.TYPED \
        else legacy_components(result.text)

    if output_format == 'json':
        document = {
            "status": result.status.value,
            "rich_text": rich.to_json(),
            "components": [c.to_json() for c in components],
        }
        print(json.dumps(document, ensure_ascii=False, indent=2))
    else:
        print(f"Decoder: {result.status.value}")
        print(f"Text: {result.text}")
        for start, end, effects in rich.segments():
            names = ", ".join(e.kind.value for e in effects)
            print(f"  [{start}, {end}) {names}: {utf16_slice(rich.text, start, end)!r}")
    return 0


def show_info(reader: ChatDBReader):
    """Show database information."""
    info = reader.get_info()
    print("\n=== DATABASE INFO ===")
    print(f"File: {info.file_path}")
    print(f"Size: {info.file_size} bytes")
    if not info.is_valid:
        print(f"Invalid database: {info.error_message}")
        return
    print(f"Tables: {info.table_count}")
    print(f"Messages: {info.message_count}")


def scan_messages(reader: ChatDBReader, args):
    """Scan and display message summaries."""
    print("\n=== SCANNING MESSAGES ===")

    limit = args.limit or 20
    counts = {status: 0 for status in DecodeStatus}

    count = 0
    for message in reader.iter_messages(limit):
        count += 1
        print(f"\n--- Message {count} ---")
        print(f"GUID: {message.guid}")
        print(f"Date: {message.sent_at or '(none)'}")
        print(f"From me: {message.is_from_me}")

        try:
            text = message.generate_text()
        except BodyDecodeError as e:
            if message.body_result is not None:
                counts[message.body_result.status] += 1
            print(f"Text: (not recovered: {e})")
            continue

        if message.body_result is not None:
            counts[message.body_result.status] += 1
            print(f"Decoder: {message.body_result.status.value}")
        preview = text[:200].replace('\n', ' ')
        print(f"Text: {preview}")

    print(f"\nShowed {count} messages (use --limit to see more)")
    print("Decoders: " + ", ".join(f"{s.value}={n}" for s, n in counts.items()))


def export_messages(reader: ChatDBReader, args) -> int:
    """Export messages to specified format."""
    exporter_class = EXPORTERS[args.format]
    output_path = args.output or \
        f"export_{datetime.now().strftime('%Y%m%d_%H%M%S')}{exporter_class.file_extension}"

    options = ExportOptions(
        output_path=output_path,
        overwrite_existing=True,
        max_messages=args.limit or 0,
    )

    if output_path == '-':
        exporter = exporter_class(options, stream=sys.stdout)
    else:
        exporter = exporter_class(options)
        print(f"\nExporting to: {output_path}")
        print(f"Format: {args.format.upper()}")

    total = reader.get_message_count()
    progress = exporter.export(reader.iter_messages(args.limit or 0), total)

    if output_path != '-':
        print("\n=== EXPORT COMPLETE ===")
        print(f"Exported: {progress.exported_messages}")
        print(f"Failed: {progress.failed_messages}")
        print(f"Output: {output_path}")

    if progress.error:
        print(f"ERROR: {progress.error}")
        return 1
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="iMessage Body Decoder - Console Mode",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python cli.py ~/Library/Messages/chat.db --info
    python cli.py chat.db --scan --limit 50
    python cli.py chat.db --format json --output messages.jsonl
    python cli.py chat.db --format txt --output - --limit 100
    python cli.py --blob body.bin --format txt
        """
    )

    parser.add_argument('database', nargs='?', help='Path to chat.db')
    parser.add_argument('--blob', help='Decode a single attributedBody blob file')
    parser.add_argument('--format', choices=sorted(EXPORTERS), default='json',
                        help='Export format (default: json)')
    parser.add_argument('--output', '-o', help='Output path ("-" for stdout)')
    parser.add_argument('--info', action='store_true',
                        help='Show database info and exit')
    parser.add_argument('--scan', action='store_true',
                        help='Scan and show message summaries')
    parser.add_argument('--limit', '-n', type=int,
                        help='Limit number of messages')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Verbose output')

    args = parser.parse_args(argv)

    setup_logging(args.verbose)

    if args.blob:
        return decode_blob_file(args.blob, args.format)

    if not args.database:
        parser.error("a chat.db path or --blob is required")

    reader = ChatDBReader(args.database)

    if args.info:
        show_info(reader)
        return 0

    info = reader.get_info()
    if not info.is_valid:
        print(f"ERROR: {info.file_path}: {info.error_message}")
        return 1

    with reader:
        if args.scan:
            scan_messages(reader, args)
            return 0
        return export_messages(reader, args)


if __name__ == '__main__':
    sys.exit(main())
