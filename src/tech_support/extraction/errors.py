"""Exception taxonomy for document extraction.

Only container-level and mandatory-descriptor failures reach the caller as
exceptions. Anomalies inside a single slide, row, cell or image anchor are
downgraded to ``ExtractionWarning`` records by the extractors.
"""


class ExtractionError(Exception):
    """Base class for all extraction failures surfaced to callers."""


class FormatError(ExtractionError):
    """Container unreadable or structurally invalid at the top level."""


class MissingEntryError(ExtractionError):
    """A specifically requested container entry does not exist."""

    def __init__(self, entry_name: str):
        self.entry_name = entry_name
        super().__init__(f"Container entry not found: {entry_name}")


class UnsupportedFormatError(ExtractionError):
    """The declared document kind is not implemented."""

    def __init__(self, kind: object):
        self.kind = kind
        super().__init__(f"Unsupported document kind: {kind!r}")
