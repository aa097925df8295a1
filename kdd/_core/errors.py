"""
The datastore's own errors, as seen by the datastore's callers.

The K8s API errors (`kdd._cogs.clients.errors`) never leave the datastore:
they are translated into this closed taxonomy at the resource clients'
boundary, with the original error chained as the cause (``raise ... from``).

Every error carries the identifier (a key or list options) that it relates to,
so that the callers can build actionable messages without stack traces.
"""
import asyncio
import contextlib
from typing import Any, Iterator, NoReturn, Optional

import aiohttp

from kdd._cogs.clients import errors as apierrors


class DatastoreError(Exception):
    """
    The base and the catch-all error of the datastore.

    Raised as is for the transport-level failures and the unclassified API errors.
    """

    def __init__(self, identifier: Any = None, message: Optional[str] = None) -> None:
        super().__init__(message or self._default_message(identifier))
        self.identifier = identifier

    def _default_message(self, identifier: Any) -> str:
        return f"Datastore error on {identifier!r}."


class ResourceDoesNotExist(DatastoreError):
    def _default_message(self, identifier: Any) -> str:
        return f"Resource does not exist: {identifier!r}"


class ResourceAlreadyExists(DatastoreError):
    def _default_message(self, identifier: Any) -> str:
        return f"Resource already exists: {identifier!r}"


class ResourceUpdateConflict(DatastoreError):
    def _default_message(self, identifier: Any) -> str:
        return f"Update conflict (the revision is outdated): {identifier!r}"


class ConnectionUnauthorized(DatastoreError):
    def _default_message(self, identifier: Any) -> str:
        return f"Connection is unauthorized for: {identifier!r}"


class OperationNotSupported(DatastoreError):
    def __init__(self, identifier: Any, operation: str) -> None:
        self.operation = operation
        super().__init__(identifier)

    def _default_message(self, identifier: Any) -> str:
        return f"Operation {self.operation!r} is not supported on {identifier!r}"


class DecodeError(DatastoreError):
    """ Raised when a native object or a name cannot be interpreted. """

    def _default_message(self, identifier: Any) -> str:
        return f"Cannot decode: {identifier!r}"


class NameDecodeError(DecodeError):
    """ Raised when a name does not follow its encoding scheme. """


class InitializationError(DatastoreError):
    """ Raised when the datastore cannot be initialized before the deadline. """

    def __init__(self, stage: str) -> None:
        self.stage = stage
        super().__init__(None, f"Failed to {stage}.")


def translate(exc: BaseException, identifier: Any) -> DatastoreError:
    """
    Map a K8s API or transport error to the datastore's error.

    The result is not raised here: the callers raise it ``from`` the original.
    """
    if isinstance(exc, DatastoreError):
        return exc
    elif isinstance(exc, apierrors.APINotFoundError):
        return ResourceDoesNotExist(identifier)
    elif isinstance(exc, apierrors.APIConflictError) and exc.reason == 'AlreadyExists':
        return ResourceAlreadyExists(identifier)
    elif isinstance(exc, apierrors.APIConflictError):
        return ResourceUpdateConflict(identifier)
    elif isinstance(exc, (apierrors.APIUnauthorizedError, apierrors.APIForbiddenError)):
        return ConnectionUnauthorized(identifier)
    elif isinstance(exc, apierrors.APIError):
        return DatastoreError(identifier, f"API error on {identifier!r}: {exc.message or exc.status}")
    else:
        return DatastoreError(identifier, f"Transport error on {identifier!r}: {exc!r}")


def raise_translated(exc: BaseException, identifier: Any) -> NoReturn:
    translated_exc = translate(exc, identifier)
    if translated_exc is exc:
        raise exc
    raise translated_exc from exc


@contextlib.contextmanager
def translated(identifier: Any) -> Iterator[None]:
    """
    Translate the errors of the wrapped API calls into the datastore's errors.

    Usage::

        with errors.translated(key):
            body = await fetching.read_obj(...)
    """
    try:
        yield
    except (apierrors.APIError, aiohttp.ClientError, asyncio.TimeoutError) as e:
        raise_translated(e, identifier)
