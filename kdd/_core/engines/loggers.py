"""
Logging of the datastore: formats, and the key-aware logger adapters.

The datastore operations log their progress with the datastore key attached
(see `KeyLogger`), so that the log lines of one entity can be found both
in the text logs (by the ``[key]`` prefix) and in the JSON logs (by a field).
"""
import copy
import enum
import logging
from typing import Any, MutableMapping, Optional, Tuple

import pythonjsonlogger.jsonlogger

DEFAULT_JSON_REFKEY = 'key'
""" A key for the datastore keys in JSON logs, as seen by the log parsers. """


class LogFormat(enum.Enum):
    """ Log formats, as specified on CLI. """
    PLAIN = '%(message)s'
    FULL = '[%(asctime)s] %(name)-20.20s [%(levelname)-8.8s] %(message)s'
    JSON = enum.auto()


class KeyFormatter(logging.Formatter):
    pass


class KeyTextFormatter(KeyFormatter, logging.Formatter):
    pass


class KeyJsonFormatter(KeyFormatter, pythonjsonlogger.jsonlogger.JsonFormatter):  # type: ignore
    def __init__(
            self,
            *args: Any,
            refkey: Optional[str] = None,
            **kwargs: Any,
    ) -> None:
        # Avoid type checking, as the args are not in the parent consructor.
        reserved_attrs = kwargs.pop('reserved_attrs', pythonjsonlogger.jsonlogger.RESERVED_ATTRS)
        reserved_attrs = set(reserved_attrs)
        reserved_attrs |= {'datastore_key'}
        kwargs.update(reserved_attrs=reserved_attrs)
        kwargs.setdefault('timestamp', True)
        super().__init__(*args, **kwargs)
        self._refkey: str = refkey or DEFAULT_JSON_REFKEY

    def add_fields(
            self,
            log_record: MutableMapping[str, object],
            record: logging.LogRecord,
            message_dict: MutableMapping[str, object],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        if self._refkey and hasattr(record, 'datastore_key'):
            log_record[self._refkey] = repr(getattr(record, 'datastore_key'))

        if 'severity' not in log_record:
            log_record['severity'] = (
                "debug" if record.levelno <= logging.DEBUG else
                "info" if record.levelno <= logging.INFO else
                "warn" if record.levelno <= logging.WARNING else
                "error" if record.levelno <= logging.ERROR else
                "fatal")


class KeyPrefixingMixin(KeyFormatter):
    def format(self, record: logging.LogRecord) -> str:
        if hasattr(record, 'datastore_key'):
            key = getattr(record, 'datastore_key')
            record = copy.copy(record)  # shallow
            record.msg = f"[{key!r}] {record.msg}"
        return super().format(record)


class KeyPrefixingTextFormatter(KeyPrefixingMixin, KeyTextFormatter):
    pass


class KeyPrefixingJsonFormatter(KeyPrefixingMixin, KeyJsonFormatter):
    pass


class KeyLogger(logging.LoggerAdapter):  # type: ignore
    """
    A logger/adapter to carry the datastore key (or list options) for formatting.

    Constructed for every individual datastore operation.
    """

    def __init__(self, logger: logging.Logger, *, key: object) -> None:
        super().__init__(logger, dict(datastore_key=key))

    def process(
            self,
            msg: str,
            kwargs: MutableMapping[str, Any],
    ) -> Tuple[str, MutableMapping[str, Any]]:
        # Native logging overwrites the message's extra with the adapter's extra.
        # We merge them, so that both message's & adapter's extras are available.
        kwargs["extra"] = dict(self.extra or {}, **kwargs.get('extra', {}))
        return msg, kwargs


def configure(
        debug: Optional[bool] = None,
        verbose: Optional[bool] = None,
        quiet: Optional[bool] = None,
        log_format: LogFormat = LogFormat.FULL,
        log_prefix: Optional[bool] = False,
        log_refkey: Optional[str] = None,
) -> None:
    log_level = 'DEBUG' if debug or verbose else 'WARNING' if quiet else 'INFO'
    formatter = make_formatter(log_format=log_format, log_prefix=log_prefix, log_refkey=log_refkey)
    handler = logging.StreamHandler()
    handler.setFormatter(formatter)
    logger = logging.getLogger()
    logger.addHandler(handler)
    logger.setLevel(log_level)

    # Prevent the low-level logging unless in the debug mode. Keep only the datastore's messages.
    # For no-propagation loggers, add a dummy null handler to prevent printing the messages.
    for name in ['asyncio']:
        logger = logging.getLogger(name)
        logger.propagate = bool(debug)
        if not debug:
            logger.handlers[:] = [logging.NullHandler()]


def make_formatter(
        log_format: LogFormat = LogFormat.FULL,
        log_prefix: Optional[bool] = False,
        log_refkey: Optional[str] = None,
) -> KeyFormatter:
    log_prefix = log_prefix if log_prefix is not None else bool(log_format is not LogFormat.JSON)
    if log_format is LogFormat.JSON:
        if log_prefix:
            return KeyPrefixingJsonFormatter(refkey=log_refkey)
        else:
            return KeyJsonFormatter(refkey=log_refkey)
    elif isinstance(log_format, LogFormat):
        if log_prefix:
            return KeyPrefixingTextFormatter(log_format.value)
        else:
            return KeyTextFormatter(log_format.value)
    elif isinstance(log_format, str):
        if log_prefix:
            return KeyPrefixingTextFormatter(log_format)
        else:
            return KeyTextFormatter(log_format)
    else:
        raise ValueError(f"Unsupported log format: {log_format!r}")
