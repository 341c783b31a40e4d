"""
Errors raised by record stores.

A lookup that finds nothing is not an error (find() returns None); these
exceptions cover a datastore that cannot answer. They propagate out of
rules and the Validator unchanged.
"""


class RecordStoreException(Exception):
    """Base class; also raised for datastore errors without a narrower type."""

    pass


class NotFoundError(RecordStoreException):
    """For callers that treat a missing record as an error. Stores never raise it from find()."""

    pass


class ThrottlingError(RecordStoreException):
    """Reads were still throttled after the store's retries ran out."""

    pass


class NetworkError(RecordStoreException):
    """The datastore endpoint could not be reached."""

    pass


class PermissionError(RecordStoreException):
    """Credentials lack read access to a record table."""

    pass
