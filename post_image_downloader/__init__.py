"""Import images referenced by posts into a media library and merge duplicates."""

__version__ = "0.1.0"
