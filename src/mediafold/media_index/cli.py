"""CLI command for listing the media of a folder."""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from mediafold.common import ConfigLoader, LogContext, setup_logging
from .collection import MediaCollection
from .config import MediaIndexConfig
from .errors import MediaIndexError, classify_error
from .index_store import MediaIndexStore

# Application name derived from package name
_package = __package__ or "mediafold.media_index"
APP_NAME = _package.split('.')[0]


def index_command(
    config: MediaIndexConfig,
    folder: Path,
    index_path_override: Optional[Path] = None,
    index_timeout_override: Optional[int] = None,
    exif_override: Optional[bool] = None,
    as_json: bool = False,
) -> int:
    """List the media items of a folder, refreshing its index.

    Args:
        config: Configuration object
        folder: Media folder to list
        index_path_override: Optional override for the index database path
        index_timeout_override: Optional override for the index timeout
        exif_override: Optional override for EXIF sidecar generation
        as_json: Print one JSON document instead of one line per item

    Returns:
        Exit code (0 for success)
    """
    logger = logging.getLogger(__package__ or __name__)

    if index_timeout_override is not None:
        config.index.timeout = index_timeout_override
    if exif_override is not None:
        config.media.auto_metadata_exif = exif_override

    index_path = index_path_override or config.index.database_path()

    if not folder.is_dir():
        logger.error(f"Media folder does not exist: {{'path': {str(folder)!r}}}")
        return 1

    logger.info(
        f"Configuration: {{'folder': {str(folder)!r}, 'index_path': {str(index_path) if index_path else None!r}, "
        f"'index_timeout': {config.index.timeout}, 'exif': {config.media.auto_metadata_exif}}}"
    )

    store = None
    try:
        if index_path is not None:
            store = MediaIndexStore(index_path)

        with LogContext(logger, folder=str(folder)):
            collection = MediaCollection(folder, config, store=store)
            media = collection.all()

        if as_json:
            document = {
                'id': collection.id,
                'path': str(collection.path),
                'media': {name: medium.to_dict() for name, medium in media.items()},
            }
            print(json.dumps(document, indent=2, default=str))
        else:
            for name, medium in media.items():
                size = f"{medium.width}x{medium.height}" if medium.width and medium.height else "-"
                print(f"{name}\t{medium.type}\t{size}\t{len(medium.alternatives)}")

        logger.info(f"Listing complete: {{'items': {len(media)}}}")
        return 0

    except (MediaIndexError, OSError) as e:
        logger.exception(f"Listing failed: {{'category': {classify_error(e)!r}, 'error': {str(e)!r}}}")
        return 1
    finally:
        if store is not None:
            store.close()


def main(argv: Optional[list] = None) -> int:
    """Main entry point for the index command."""
    parser = argparse.ArgumentParser(
        description="Index a media folder and list its media items"
    )
    parser.add_argument(
        "--folder",
        type=Path,
        default=Path.cwd(),
        help="Media folder to index (default: current directory)"
    )
    parser.add_argument(
        "--index-path",
        type=Path,
        required=False,
        help="Path to SQLite index database (overrides config)"
    )
    parser.add_argument(
        "--index-timeout",
        type=int,
        required=False,
        help="Seconds a stored index stays fresh, 0 rescans every time (overrides config)"
    )
    parser.add_argument(
        "--exif",
        action="store_true",
        help="Write EXIF attributes of images to .meta.yaml sidecars"
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to config file (defaults.toml)"
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print a JSON document"
    )

    args = parser.parse_args(argv)

    loader = ConfigLoader(
        app_name=APP_NAME,
        config_class=MediaIndexConfig
    )

    config = loader.load(defaults_path=args.config)

    setup_logging(config.logging)

    return index_command(
        config=config,
        folder=args.folder,
        index_path_override=args.index_path,
        index_timeout_override=args.index_timeout,
        exif_override=True if args.exif else None,
        as_json=args.json,
    )


if __name__ == "__main__":
    sys.exit(main())
