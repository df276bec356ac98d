"""Command line entry point for uploading files."""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional

from .batch import BatchUploader
from .config import BatchOptions, UploadConfig, load_batch_options, load_config
from .errors import UploadError
from .logging_utils import setup_logging
from .models import FileDescriptor


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Upload files with the chunked upload protocol")
    parser.add_argument("files", nargs="+", help="Files to upload")
    parser.add_argument("--config", help="Path to a YAML configuration file")
    parser.add_argument("--token", help="Upload token (overrides the configuration file)")
    parser.add_argument("--host", help="Upload host, e.g. http://upload.qiniu.com")
    parser.add_argument("--domain", help="Download domain used to build file URLs")
    parser.add_argument("--chunk-size", type=int, help="Chunk size in bytes")
    parser.add_argument("--block-size", type=int, help="Block size in bytes")
    parser.add_argument("--timeout", type=float, help="Per-request timeout in seconds")
    parser.add_argument("--key", help="Storage key; only valid with a single file")
    parser.add_argument("--accept", help="Comma separated extensions or MIME types to upload")
    parser.add_argument("--limit", type=int, help="Maximum number of files to upload")
    parser.add_argument("--max-size", type=int, help="Per-file size limit in bytes")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"],
        help="Logging level for the upload process",
    )
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> UploadConfig:
    get_key = None
    if args.key is not None:
        if len(args.files) != 1:
            raise UploadError("--key can only be used when uploading a single file")
        fixed_key = args.key

        def get_key(_source: object) -> str:
            return fixed_key

    return load_config(
        args.config,
        token=args.token,
        host=args.host,
        domain=args.domain,
        chunk_size=args.chunk_size,
        block_size=args.block_size,
        timeout=args.timeout,
        get_key=get_key,
    )


def build_options(args: argparse.Namespace) -> BatchOptions:
    return load_batch_options(
        args.config,
        default_limit=len(args.files),
        accept=args.accept,
        limit=args.limit,
        max_size=args.max_size,
    )


async def _run(args: argparse.Namespace) -> List[FileDescriptor]:
    uploader = BatchUploader(build_config(args), build_options(args))
    return await uploader.upload(args.files)


def main(argv: Optional[list[str]] = None) -> None:
    args = parse_args(argv)
    setup_logging("kodoup", level=getattr(logging, args.log_level), stream=sys.stderr)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logger = logging.getLogger("kodoup.cli")
    try:
        descriptors = asyncio.run(_run(args))
    except (UploadError, OSError) as exc:
        logger.error("%s", exc)
        raise SystemExit(1)
    except KeyboardInterrupt:
        logger.info("Upload interrupted")
        raise SystemExit(130)
    for descriptor in descriptors:
        print(json.dumps(descriptor.model_dump(), ensure_ascii=False))


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    main()
