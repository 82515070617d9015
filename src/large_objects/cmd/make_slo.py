import argparse
import logging
import sys
from dataclasses import dataclass
from pathlib import Path

from large_objects.config import open_store
from large_objects.console import ConsoleReporter
from large_objects.exceptions import ConfigError
from large_objects.log import configure_logging
from large_objects.slo import UploadJob, upload_slo
from large_objects.types import SizeSuffix
from large_objects.util import default_thread_count, locked_print


@dataclass
class Args:
    service: str
    container: str
    object_name: str
    source: Path
    only_missing: bool
    segment_container: str | None
    output: Path | None
    chunk_size: SizeSuffix
    threads: int
    verify_etag: bool
    cleanup_on_failure: bool
    config_path: Path | None
    quiet: bool
    verbose: bool


def _parse_args(argv: list[str] | None = None) -> Args:
    parser = argparse.ArgumentParser(
        prog="make-slo",
        description="Upload a file as a static large object.",
    )
    parser.add_argument("service", help="Name of the service in the config file")
    parser.add_argument("container", help="Destination container")
    parser.add_argument("object_name", help="Name of the large object")
    parser.add_argument("source", help="File to upload", type=Path)
    parser.add_argument(
        "-m",
        "--only-missing",
        help="Only upload segments that are not already in the container",
        action="store_true",
    )
    parser.add_argument(
        "-c",
        "--segment-container",
        help="Container for the segments (defaults to the destination container)",
    )
    parser.add_argument(
        "-o", "--output", help="Append log data to this file", type=Path
    )
    parser.add_argument(
        "-s",
        "--chunk-size",
        help="Segment size in bytes or with a size suffix such as 128MB (defaults to 1000 segments, at least 1 MiB or the storage minimum each)",
        type=str,
        default="-1",
    )
    parser.add_argument(
        "-t",
        "--threads",
        help="Maximum number of uploader threads (defaults to the available number of CPUs)",
        type=int,
        default=default_thread_count(),
    )
    parser.add_argument(
        "--verify-etag",
        help="With -m, also compare the MD5 of existing segments before skipping them",
        action="store_true",
    )
    parser.add_argument(
        "--cleanup-on-failure",
        help="Delete the segments this run uploaded if the upload fails",
        action="store_true",
    )
    parser.add_argument("--config", help="Path to the services config file", type=Path)
    parser.add_argument("-q", "--quiet", help="No progress output", action="store_true")
    parser.add_argument("-v", "--verbose", help="Verbose output", action="store_true")

    args = parser.parse_args(argv)
    try:
        chunk_size = SizeSuffix(args.chunk_size)
    except ValueError as e:
        parser.error(f"invalid chunk size: {e}")
    return Args(
        service=args.service,
        container=args.container,
        object_name=args.object_name,
        source=args.source,
        only_missing=args.only_missing,
        segment_container=args.segment_container,
        output=args.output,
        chunk_size=chunk_size,
        threads=args.threads,
        verify_etag=args.verify_etag,
        cleanup_on_failure=args.cleanup_on_failure,
        config_path=args.config,
        quiet=args.quiet,
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

    job = UploadJob(
        source=args.source,
        container=args.container,
        object_name=args.object_name,
        chunk_size=args.chunk_size.as_int(),
        threads=args.threads,
        only_missing=args.only_missing,
        log_file=args.output,
        verify_etag=args.verify_etag,
        cleanup_on_failure=args.cleanup_on_failure,
        segment_container=args.segment_container,
    )
    if args.quiet:
        err = upload_slo(store, job)
    else:
        with ConsoleReporter() as reporter:
            err = upload_slo(store, job, reporter=reporter)
    if err is not None:
        locked_print(f"Error: Failed to upload SLO: {err}")
        return 1
    locked_print(
        f"Successfully created SLO {args.object_name} in container {args.container}"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
