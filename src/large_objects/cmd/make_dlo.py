import argparse
import logging
import sys
from dataclasses import dataclass
from pathlib import Path

from large_objects.config import open_store
from large_objects.dlo import make_dlo
from large_objects.exceptions import ConfigError
from large_objects.log import configure_logging
from large_objects.util import locked_print


@dataclass
class Args:
    service: str
    container: str
    name: str
    segment_container: str | None
    prefix: str | None
    config_path: Path | None
    verbose: bool


def _parse_args(argv: list[str] | None = None) -> Args:
    parser = argparse.ArgumentParser(
        prog="make-dlo",
        description="Create a dynamic large object manifest over a segment prefix.",
    )
    parser.add_argument("service", help="Name of the service in the config file")
    parser.add_argument("container", help="Container for the manifest")
    parser.add_argument("name", help="Name of the large object")
    parser.add_argument(
        "-c",
        "--segment-container",
        help="Container holding the segments (defaults to the manifest container)",
    )
    parser.add_argument(
        "-p", "--prefix", help="Segment name prefix (defaults to the object name)"
    )
    parser.add_argument("--config", help="Path to the services config file", type=Path)
    parser.add_argument("-v", "--verbose", help="Verbose output", action="store_true")
    args = parser.parse_args(argv)
    return Args(
        service=args.service,
        container=args.container,
        name=args.name,
        segment_container=args.segment_container,
        prefix=args.prefix,
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
    err = make_dlo(
        store,
        container=args.container,
        name=args.name,
        segment_container=args.segment_container,
        prefix=args.prefix,
    )
    if err is not None:
        locked_print(f"Error: Failed to upload DLO manifest: {err}")
        return 1
    locked_print(f"Successfully created DLO {args.name} in container {args.container}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
