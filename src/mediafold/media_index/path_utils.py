"""Path utilities for the media index."""

__all__ = ['should_index_file', 'IGNORED_FILES']

# Page and index sidecars that live next to media but are not media
IGNORED_FILES = {
    'frontmatter.yaml',
    'media.json',
}

# System files to exclude (cross-platform)
SYSTEM_FILES = {
    'thumbs.db',      # Windows thumbnail cache
    'desktop.ini',    # Windows folder settings
    '.ds_store',      # macOS folder metadata
    'icon\r',         # macOS custom folder icon (has literal carriage return!)
}

MARKDOWN_EXTENSIONS = {'md'}


def should_index_file(filename: str, extension: str | None) -> bool:
    """
    Decide whether a listed file can be part of the media index.

    This does NOT check the media type registry; it only excludes dotfiles,
    markdown pages, page/index sidecars and OS system files.

    Args:
        filename: Bare filename
        extension: Extension without the dot, or None

    Returns:
        True if the file may be indexed
    """
    if filename.startswith('.'):
        return False
    if extension and extension.lower() in MARKDOWN_EXTENSIONS:
        return False
    if filename in IGNORED_FILES:
        return False
    if filename.lower() in SYSTEM_FILES:
        return False
    return True
