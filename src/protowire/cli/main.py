# Copyright 2026 ProtoWire Contributors
# SPDX-License-Identifier: Apache-2.0

"""Entry point for the ProtoWire command-line interface."""

import argparse
import json
import sys
from pathlib import Path

from protowire.compiler.build import CompilerError, load_schema, run_compiler
from protowire.compiler.events import ConsoleEventListener
from protowire.wire import Codec, CodecError
from protowire.workspace.config import CONFIG_FILE_NAME, RunConfig, RunConfigError, load_run_config

# ###############
# Public Interface
# ###############


def main() -> None:
    """Run the ProtoWire CLI."""
    parser = argparse.ArgumentParser(
        prog="protowire",
        description="ProtoWire: schema compiler and wire codec for protocol buffers",
    )
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    # check subcommand
    check_parser = subparsers.add_parser(
        "check",
        help="Load, link and prune the schema",
        description="Load, link and prune the schema and report any errors.",
    )
    check_parser.add_argument(
        "directory",
        nargs="?",
        default=".",
        help=f"Directory containing {CONFIG_FILE_NAME} or .proto files (default: current directory)",
    )

    # generate subcommand
    generate_parser = subparsers.add_parser(
        "generate",
        help="Run the configured targets",
        description=f"Compile the schema and run every target configured in {CONFIG_FILE_NAME}.",
    )
    generate_parser.add_argument(
        "directory",
        nargs="?",
        default=".",
        help=f"Directory containing {CONFIG_FILE_NAME} (default: current directory)",
    )
    generate_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report the files that would be generated without writing them",
    )
    generate_parser.add_argument(
        "--quiet",
        action="store_true",
        help="Do not print phase progress",
    )

    # decode subcommand
    decode_parser = subparsers.add_parser(
        "decode",
        help="Decode a binary message",
        description="Decode a binary message using the .proto files under a proto path.",
    )
    decode_parser.add_argument("file", help="File holding the encoded message ('-' for stdin)")
    decode_parser.add_argument("--type", required=True, dest="type_name", help="Qualified message type name")
    decode_parser.add_argument(
        "--proto-path",
        action="append",
        default=None,
        help="Directory or .zip archive of .proto files (repeatable, default: current directory)",
    )
    decode_parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail on known fields with an unexpected wire type",
    )

    args = parser.parse_args()
    if args.command is None:
        parser.print_help()
        sys.exit(0)

    sys.exit(_dispatch(args))


# ################
# Implementation
# ################


def _dispatch(args: argparse.Namespace) -> int:
    """Dispatch to the appropriate subcommand handler."""
    if args.command == "check":
        return _cmd_check(args)
    if args.command == "generate":
        return _cmd_generate(args)
    if args.command == "decode":
        return _cmd_decode(args)
    return 0


def _load_config(directory: Path) -> RunConfig | None:
    """Return the run configuration of *directory*, or None after printing an error."""
    if not directory.exists():
        print(f"Error: directory '{directory}' does not exist.", file=sys.stderr)
        return None
    config_file = directory / CONFIG_FILE_NAME
    if not config_file.exists():
        return RunConfig()
    try:
        return load_run_config(config_file)
    except RunConfigError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return None


def _cmd_check(args: argparse.Namespace) -> int:
    """Handle the check subcommand."""
    directory = Path(args.directory).resolve()
    config = _load_config(directory)
    if config is None:
        return 1

    try:
        result = run_compiler(config, directory, generate=False)
    except CompilerError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if not result.source_paths:
        print("No .proto files found.")
        return 0

    schema = result.schema
    print(
        f"Checked {len(result.source_paths)} proto file(s): "
        f"{len(schema.types)} type(s), {len(schema.services)} service(s) retained."
    )
    return 0


def _cmd_generate(args: argparse.Namespace) -> int:
    """Handle the generate subcommand."""
    directory = Path(args.directory).resolve()
    config = _load_config(directory)
    if config is None:
        return 1
    if not config.targets:
        print(f"Error: no targets configured in '{directory / CONFIG_FILE_NAME}'.", file=sys.stderr)
        return 1

    listener = None if args.quiet else ConsoleEventListener()
    try:
        result = run_compiler(config, directory, listener=listener, dry_run=args.dry_run)
    except CompilerError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if args.dry_run:
        for out_dir, outputs in result.outputs.items():
            for relative_path in sorted(outputs):
                print(f"Would write {out_dir / relative_path}")
    else:
        print(f"Wrote {len(result.written)} file(s).")
    return 0


def _cmd_decode(args: argparse.Namespace) -> int:
    """Handle the decode subcommand."""
    proto_path = [Path(p).resolve() for p in (args.proto_path or ["."])]
    try:
        schema = load_schema(proto_path)
    except CompilerError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    try:
        data = sys.stdin.buffer.read() if args.file == "-" else Path(args.file).read_bytes()
    except OSError as exc:
        print(f"Error: cannot read '{args.file}': {exc}", file=sys.stderr)
        return 1

    try:
        message = Codec(schema).decode(args.type_name, data, strict=args.strict)
    except KeyError:
        print(f"Error: unknown message type '{args.type_name}'.", file=sys.stderr)
        return 1
    except CodecError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(json.dumps(message.to_dict(), indent=2, default=_json_default))
    if message.unknown_fields:
        numbers = sorted({f.field_number for f in message.unknown_fields})
        print(f"({len(message.unknown_fields)} unknown field(s): {', '.join(map(str, numbers))})")
    return 0


def _json_default(value: object) -> object:
    if isinstance(value, bytes):
        return value.hex()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")
