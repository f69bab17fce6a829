"""Command line interface for rendering entity metadata as yUML."""
from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from .errors import GrapherError, MetadataLoadError
from .grapher import generate
from .loader import MetadataLoader
from .model import Entity
from .owl_loader import OwlMetadataLoader

YAML_SUFFIXES = {".yaml", ".yml"}


@dataclass(frozen=True)
class CliOptions:
    input_path: Path
    output_path: Optional[Path]
    input_format: str
    debug: bool = False


def parse_args(argv: Optional[Sequence[str]] = None) -> CliOptions:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--input",
        required=True,
        help="Path to the entity metadata (YAML document or OWL ontology).",
    )
    parser.add_argument(
        "--output",
        default="-",
        help="Output path. Use '-' (default) for stdout.",
    )
    parser.add_argument(
        "--format",
        choices=["auto", "yaml", "owl"],
        default="auto",
        help="Input flavor; 'auto' picks yaml for .yaml/.yml files and owl otherwise.",
    )
    parser.add_argument("--debug", action="store_true", help="Log traversal decisions to stderr")

    args = parser.parse_args(argv)
    input_path = Path(args.input)
    if not input_path.exists():
        raise MetadataLoadError(f"Input file not found: {input_path}")

    input_format = args.format
    if input_format == "auto":
        input_format = "yaml" if input_path.suffix.lower() in YAML_SUFFIXES else "owl"

    output_path = None if args.output == "-" else Path(args.output)

    return CliOptions(
        input_path=input_path,
        output_path=output_path,
        input_format=input_format,
        debug=args.debug,
    )


def load_entities(options: CliOptions) -> List[Entity]:
    if options.input_format == "yaml":
        return MetadataLoader(options.input_path).load()
    return OwlMetadataLoader(options.input_path).load()


def run(options: CliOptions) -> str:
    return generate(load_entities(options))


def write_output(dsl_text: str, output_path: Optional[Path]) -> None:
    if output_path is None:
        sys.stdout.write(dsl_text + "\n")
        return
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(dsl_text, encoding="utf-8")


def main(argv: Optional[Sequence[str]] = None) -> int:
    try:
        options = parse_args(argv)
        logging.basicConfig(level=logging.DEBUG if options.debug else logging.WARNING)
        dsl_text = run(options)
        write_output(dsl_text, options.output_path)
        return 0
    except GrapherError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
