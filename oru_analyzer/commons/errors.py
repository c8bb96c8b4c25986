class AnalysisError(Exception):
    """Base for the errors that abort a whole analysis run.

    ``str(err)`` is meant to be shown to the user as-is.
    """


class EmptyInputError(AnalysisError):
    def __init__(self, message: str = "The file appears to be empty"):
        super().__init__(message)


class FormatError(AnalysisError):
    def __init__(
        self,
        message: str = "The file does not appear to be a valid ORU format (missing MSH segment)",
    ):
        super().__init__(message)


class NoResultsError(AnalysisError):
    def __init__(
        self,
        message: str = (
            "No results could be extracted from the file. "
            "The file may not contain any numeric test results."
        ),
    ):
        super().__init__(message)


class CatalogFetchError(AnalysisError):
    pass


class CatalogFormatError(AnalysisError):
    pass


class SegmentParseError(Exception):
    """One segment could not be read. Never aborts the batch."""

    def __init__(self, segment: str, reason: str):
        super().__init__(reason)
        self.segment = segment
        self.reason = reason
