import argparse
import logging
import sys

from pydantic import ValidationError

from .config import load_settings
from .errors import SetupError
from .metrics import start_exporter
from .output import FORMATS, write_records
from .pipeline import LogPipeline, parse_bucket_path
from .source import S3ObjectSource, build_s3_client

log = logging.getLogger("elb_logs")


def setup_logging(level: str) -> None:
    # stdout carries the records, diagnostics go to stderr
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
    logging.getLogger().handlers = [handler]
    logging.getLogger().setLevel(level)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="elb-logs",
        description="Print the load balancer access log entries written in the last few minutes",
    )
    parser.add_argument(
        "bucket_path",
        help="full bucket path up to the date partition, "
             "e.g. my-bucket/AWSLogs/123456789012/elasticloadbalancing/eu-west-1",
    )
    parser.add_argument("--format", choices=FORMATS, default="text", help="record rendering (default: text)")
    parser.add_argument("--max-workers", type=int, help="concurrent object downloads")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING, ...")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)

    try:
        settings = load_settings(max_workers=args.max_workers, log_level=args.log_level)
    except ValidationError as e:
        setup_logging("INFO")
        log.error("Invalid settings: %s", e)
        return 1
    setup_logging(settings.log_level)

    try:
        bucket, path = parse_bucket_path(args.bucket_path)
    except SetupError as e:
        log.error("%s", e)
        return 1

    if start_exporter(settings.metrics_port):
        log.info("Metrics exporter listening on :%d", settings.metrics_port)

    source = S3ObjectSource(build_s3_client(settings))
    pipeline = LogPipeline.from_settings(source, settings)
    try:
        result = pipeline.run(bucket, path)
    except SetupError as e:
        log.error("%s", e)
        return 1

    written = write_records(result.records, sys.stdout, args.format)
    log.info(
        "Done. prefix=%s listed=%d selected=%d records=%d dropped_lines=%d failed_objects=%d",
        result.prefix, result.listed, len(result.selected), written,
        result.dropped_lines, len(result.failed),
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
