"""Error classes for the media index."""

from mediafold.common import MediafoldError


class MediaIndexError(MediafoldError):
    """Base error for media index operations."""
    pass


class ProbeError(MediaIndexError):
    """Reading dimensions or attributes of a file failed."""
    pass


class ConstructionError(MediaIndexError):
    """A grouped item has no usable base or alternative."""
    pass


class MetadataExtractionError(MediaIndexError):
    """Extracting or persisting EXIF metadata failed."""
    pass


class DerivationError(MediaIndexError):
    """Deriving a scaled variant of a medium failed."""
    pass


class SchemaVersionMismatchError(MediaIndexError):
    """Persisted data was written by an incompatible version.

    Unlike the other errors this one is fatal for the load path: the caller
    must discard the data and rebuild.
    """
    pass


class IndexStoreError(MediaIndexError):
    """The persisted index could not be read or written."""
    pass


def classify_error(exception: Exception) -> str:
    """
    Classify an exception into an error category.

    Args:
        exception: The exception to classify

    Returns:
        Error category string: 'probe', 'construction', 'metadata',
        'derivation', 'schema', 'index', 'io', 'parse' or 'unknown'
    """
    if isinstance(exception, ProbeError):
        return 'probe'
    elif isinstance(exception, ConstructionError):
        return 'construction'
    elif isinstance(exception, MetadataExtractionError):
        return 'metadata'
    elif isinstance(exception, DerivationError):
        return 'derivation'
    elif isinstance(exception, SchemaVersionMismatchError):
        return 'schema'
    elif isinstance(exception, IndexStoreError):
        return 'index'
    elif isinstance(exception, OSError):
        return 'io'
    elif isinstance(exception, (ValueError, KeyError, AttributeError)):
        return 'parse'
    else:
        return 'unknown'
