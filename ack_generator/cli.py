#!/usr/bin/env python

import argparse
import logging
import sys

from .config import DEFAULT_API_VERSION, GeneratorConfig
from .exceptions import GeneratorError
from .generator import Generator
from .loader import read_input
from .output import DirectoryWriter, StdoutWriter
from .templating import TemplateRenderer

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ack-generate",
        description="Generates Kubernetes custom resource types from an OpenAPI document.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,  # Shows default values in help
    )
    parser.add_argument(
        "--debug", action="store_true", help="Enable debug logging on stderr."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    types_parser = subparsers.add_parser(
        "types",
        help="Generates Go files containing type definitions and API machinery "
        "base initialization.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    # Validated by the loader, which accepts zero or one path.
    types_parser.add_argument(
        "inputs",
        nargs="*",
        metavar="file",
        help="Path to the OpenAPI document. Read from STDIN when omitted.",
    )
    types_parser.add_argument(
        "-v",
        "--version",
        dest="api_version",
        default=None,
        help=f"The resource API version to use when generating types "
        f"(default: {DEFAULT_API_VERSION}).",
    )
    types_parser.add_argument(
        "-o",
        "--output",
        default="",
        help="Path to the output directory for the generated files. "
        "If empty, all files are printed to stdout.",
    )
    types_parser.add_argument(
        "--config", default=None, help="Path to a YAML generator config file."
    )
    types_parser.add_argument(
        "--template-dir",
        default=None,
        help="Directory with the Jinja2 templates (defaults to the bundled ones).",
    )
    return parser


def generate_types(args: argparse.Namespace) -> int:
    config = GeneratorConfig.from_file(
        args.config, overrides={"api_version": args.api_version}
    )
    data, content_type = read_input(args.inputs)

    generator = Generator(config, TemplateRenderer(args.template_dir))
    writer = DirectoryWriter(args.output) if args.output else StdoutWriter()
    generator.generate(data, writer, content_type)
    return 0


def main(argv=None) -> int:
    """
    Main function to parse command-line arguments and run the generator.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        return generate_types(args)
    except GeneratorError as e:
        print(f"Error ({type(e).__name__}): {e}", file=sys.stderr)
        return e.exit_code
    except OSError as e:
        print(f"Error ({type(e).__name__}): {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
