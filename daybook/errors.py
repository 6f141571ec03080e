"""Exceptions raised by the planning services.

Route handlers translate these into HTTP responses; nothing here is fatal to
the process.
"""


class DaybookError(Exception):
    """Base class for errors reported to the user."""


class NotAuthenticatedError(DaybookError):
    """An operation that needs a signed-in user was attempted without one."""


class PlanNotFound(DaybookError):
    """No row exists for the requested (user, date)."""


class PlanStoreError(DaybookError):
    """The store failed for a reason other than a missing row."""


class PlanLoadError(DaybookError):
    pass


class PlanSaveError(DaybookError):
    pass


class ExtractionError(DaybookError):
    """The image extraction service could not be reached or refused the call."""


class ExtractionParseError(ExtractionError):
    """The service answered, but no usable JSON object was found."""

    def __init__(self, message: str, raw_text: str = ""):
        super().__init__(message)
        self.raw_text = raw_text
        # Set by the merge step: the draft with the raw text kept in its notes
        self.draft = None
