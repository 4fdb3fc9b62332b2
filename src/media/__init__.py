"""Media uploads to the third-party image host."""

from sitedash.media.uploader import (
    ALLOWED_TYPES,
    MAX_FILE_SIZE,
    CallbackProgress,
    MediaConfig,
    MediaUploader,
    ProgressSink,
    optimized_url,
    validate_image_file,
)

__all__ = [
    "ALLOWED_TYPES",
    "MAX_FILE_SIZE",
    "CallbackProgress",
    "MediaConfig",
    "MediaUploader",
    "ProgressSink",
    "optimized_url",
    "validate_image_file",
]
