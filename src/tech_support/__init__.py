"""Tech support knowledge-base extractor for Office documents."""

__version__ = "0.1.0"
