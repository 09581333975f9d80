"""Exception types raised by the extraction and diagnostic pipeline."""


class ParseSightError(Exception):
    """Base class for all ParseSight errors."""


class PreprocessingError(ParseSightError):
    """Image could not be read or decoded."""


class RecognitionError(ParseSightError):
    """The OCR engine failed to produce text."""


class IncompleteMetricsError(ParseSightError, ValueError):
    """Diagnostics were requested for a record lacking dps or active time."""

    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__(f"Cannot analyze parse without: {', '.join(missing)}")
