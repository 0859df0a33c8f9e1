"""Building blocks for keeping resumable tus uploads in S3 multipart uploads."""

__version__ = "0.1.0"