"""Batch-level failures raised by the import pipeline.

Row-scoped problems are never raised; they travel as ``RowError`` values
inside the ``ImportReport``. Everything here aborts a whole batch.
"""


class ImportAborted(Exception):
    """Fatal batch error. No rows were processed and no report exists."""

    kind = "ImportAborted"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class FormatError(ImportAborted):
    """Header missing or not matching the template, or unreadable CSV."""

    kind = "FormatError"
    status_code = 400


class TooLarge(ImportAborted):
    kind = "TooLarge"
    status_code = 413


class TooManyRows(ImportAborted):
    kind = "TooManyRows"
    status_code = 422


class ImportCancelled(Exception):
    """The caller went away mid-batch. Raised instead of returning a report."""


class TemplateNotFound(KeyError):
    """No import template is registered under the requested kind."""

    def __str__(self) -> str:
        return f"Unknown import kind: {self.args[0]!r}"


class DecoderExhausted(RuntimeError):
    """A decoder instance was asked to decode its stream a second time."""
