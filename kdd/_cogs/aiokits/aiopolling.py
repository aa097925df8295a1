"""
Bounded polling: repeat an attempt until it succeeds or the time is over.

The first attempt is immediate, the following ones are made at fixed intervals,
and the whole polling is limited by a fixed deadline since its start.
There is no other way to stop the polling early except by success
(or by cancelling the polling task itself, as usual in asyncio).

The attempt reports its outcome either by returning ``True`` (done)
or ``False`` (not yet, retry), or by raising one of the retryable errors
(not yet, retry, and remember the error). Once the deadline is reached,
the last remembered error is re-raised; if there were none, `PollTimeoutError`.
"""
import asyncio
from typing import Awaitable, Callable, Optional, Tuple, Type

from kdd._cogs.helpers import typedefs

Attempt = Callable[[], Awaitable[bool]]


class PollTimeoutError(Exception):
    """ Raised when the polling deadline is reached with no errors to escalate. """


async def poll_immediate(
        fn: Attempt,
        *,
        interval: float,
        timeout: float,
        retryable: Tuple[Type[Exception], ...] = (Exception,),
        title: str = 'polling',
        logger: typedefs.Logger,
) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    last_error: Optional[Exception] = None
    attempt = 0
    while True:
        attempt += 1
        try:
            done = await fn()
        except retryable as e:
            logger.debug(f"{title.capitalize()} attempt #{attempt} failed: {e!r}")
            last_error = e
            done = False

        if done:
            if attempt > 1:
                logger.debug(f"{title.capitalize()} attempt #{attempt} succeeded.")
            return

        if loop.time() + interval > deadline:
            break

        await asyncio.sleep(interval)

    if last_error is not None:
        raise last_error
    raise PollTimeoutError(f"{title.capitalize()} has timed out after {attempt} attempts.")
