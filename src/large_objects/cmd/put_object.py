import argparse
import logging
import sys
from dataclasses import dataclass
from pathlib import Path

from large_objects.config import open_store
from large_objects.exceptions import ConfigError
from large_objects.log import configure_logging
from large_objects.put_object import put_object
from large_objects.util import locked_print


@dataclass
class Args:
    service: str
    container: str
    source: Path
    name: str
    config_path: Path | None
    verbose: bool


def _parse_args(argv: list[str] | None = None) -> Args:
    parser = argparse.ArgumentParser(
        prog="put-object", description="Upload a file as a single object."
    )
    parser.add_argument("service", help="Name of the service in the config file")
    parser.add_argument("container", help="Destination container")
    parser.add_argument("source", help="File to upload", type=Path)
    parser.add_argument(
        "-n", "--name", help="Rename the object (defaults to the file name)"
    )
    parser.add_argument("--config", help="Path to the services config file", type=Path)
    parser.add_argument("-v", "--verbose", help="Verbose output", action="store_true")
    args = parser.parse_args(argv)
    source: Path = args.source
    return Args(
        service=args.service,
        container=args.container,
        source=source,
        name=args.name or source.name,
        config_path=args.config,
        verbose=args.verbose,
    )


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = _parse_args(argv)
    configure_logging(logging.DEBUG if args.verbose else logging.WARNING)
    try:
        store = open_store(args.service, args.config_path)
    except ConfigError as e:
        locked_print(f"Error: {e}")
        return 1
    err = put_object(store, args.container, args.source, args.name)
    if err is not None:
        locked_print(f"Error: Failed to upload object: {err}")
        return 1
    locked_print(f"Successfully uploaded {args.name} to container {args.container}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
