"""Errors that abort a whole batch.

Per-criterion lookup failures never appear here; they are recorded on the
BatchItem and the batch carries on.
"""


class GlobalBatchFailure(Exception):
    """The batch could not run to completion.

    Raised for invalid ``run_batch`` arguments and for failures outside the
    per-criterion boundary, such as a progress sink that raises.
    """


class BatchCancelledError(GlobalBatchFailure):
    """The batch was cancelled cooperatively between two criteria."""

    def __init__(self, message: str, processed: int):
        super().__init__(message)
        self.processed = processed
