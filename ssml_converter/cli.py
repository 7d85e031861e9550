"""Command-line interface for the SSML converter.

WHY: Users need a simple way to turn a markdown file into SSML from the
terminal. The CLI wires together the Gemini client, the tracing harness,
and the converter behind a single command.

HOW: Uses argparse to accept an input markdown file, language hint,
chunking and concurrency options, and an output path. Runs the async
conversion via asyncio.run(). Status messages go to stderr; the SSML is
saved next to the source as {stem}.ssml (or printed with --stdout).

RULES:
- Positional argument: input markdown file path
- Output naming: {stem}.ssml, numeric suffix for conflicts ({stem}-2.ssml)
- --concurrency 1 dispatches chunks sequentially, >1 in parallel
- Status output goes to stderr (not stdout)
- Exit code 1 on missing input, missing API key, or completion failure
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from ssml_converter.api.client import GeminiClient
from ssml_converter.config import (
    GEMINI_MODEL,
    LOG_LEVEL,
    MAX_CHUNK_SIZE_CHARS,
    MAX_CONCURRENCY,
    TRACING_ENABLED,
)
from ssml_converter.core.converter import SSMLConverter
from ssml_converter.core.ir import TraceIdentity
from ssml_converter.errors import CompletionError
from ssml_converter.tracing.harness import Tracer, build_harness


def _status(msg: str) -> None:
    """Print a status message to stderr."""
    print(msg, file=sys.stderr, flush=True)


def _resolve_output_path(input_path: Path, output: Optional[str]) -> Path:
    """Return where the SSML should be written.

    RULES:
    - Explicit --output is used as-is (overwritten if it exists)
    - Default: {stem}.ssml next to the input
    - Conflict on the default name: {stem}-2.ssml, {stem}-3.ssml, ...
    """
    if output:
        return Path(output)

    base_path = input_path.with_suffix(".ssml")
    if not base_path.exists():
        return base_path

    counter = 2
    while True:
        candidate = input_path.with_name("{}-{}.ssml".format(input_path.stem, counter))
        if not candidate.exists():
            return candidate
        counter += 1


async def _run_conversion(args: argparse.Namespace) -> None:
    """Run the conversion for parsed CLI arguments."""
    input_path = Path(args.input_file).resolve()
    if not input_path.is_file():
        print("Error: Input file not found: {}".format(input_path), file=sys.stderr)
        sys.exit(1)

    markdown = input_path.read_text(encoding="utf-8")
    _status("Read {} characters from {}".format(len(markdown), input_path.name))

    harness = build_harness(args.concurrency, Tracer(enabled=TRACING_ENABLED))

    try:
        async with GeminiClient(model=args.model) as client:
            converter = SSMLConverter(
                client,
                harness=harness,
                max_chunk_size=args.max_chunk_size,
            )
            chunk_count = len(converter.chunker.chunk(markdown))
            _status("Converting {} chunk(s) with {}...".format(chunk_count, client.model))
            ssml = await converter.convert(
                markdown,
                language=args.language,
                identity=TraceIdentity(document_id=input_path.name),
            )
    except ValueError as e:
        # Config errors (missing API key, bad chunk size)
        print("Error: {}".format(e), file=sys.stderr)
        sys.exit(1)
    except CompletionError as e:
        print("Error: {}".format(e), file=sys.stderr)
        sys.exit(1)

    if args.stdout:
        sys.stdout.write(ssml + "\n")
        return

    output_path = _resolve_output_path(input_path, args.output)
    output_path.write_text(ssml, encoding="utf-8")
    _status("Done! Saved SSML to {}".format(output_path))


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="ssml_converter",
        description="Convert a markdown document to SSML using Gemini.",
    )

    parser.add_argument(
        "input_file",
        help="Path to the markdown file to convert.",
    )

    parser.add_argument(
        "--language",
        default=None,
        help="Document language, if known (e.g. 'Italian'). Passed to the model verbatim.",
    )

    parser.add_argument(
        "--output",
        default=None,
        help="Output file path (default: <input stem>.ssml next to the input).",
    )

    parser.add_argument(
        "--stdout",
        action="store_true",
        help="Print the SSML to stdout instead of writing a file.",
    )

    parser.add_argument(
        "--model",
        default=GEMINI_MODEL,
        help="Gemini model name (default: %(default)s).",
    )

    parser.add_argument(
        "--max-chunk-size",
        type=int,
        default=MAX_CHUNK_SIZE_CHARS,
        help="Maximum chunk size in characters (default: %(default)s).",
    )

    parser.add_argument(
        "--concurrency",
        type=int,
        default=MAX_CONCURRENCY,
        help="Number of chunks converted in parallel (default: %(default)s).",
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the CLI.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else getattr(logging, LOG_LEVEL, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    asyncio.run(_run_conversion(args))


if __name__ == "__main__":
    main()
