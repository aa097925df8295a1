"""
Helpers for orchestrating asyncio tasks.

These utilities only support tasks, not more generic futures, coroutines,
or other awaitables: we not only wait for them, but also cancel them.
"""
import asyncio
from typing import TYPE_CHECKING, Any, Collection, Coroutine, Optional, Set, Tuple

from kdd._cogs.helpers import typedefs

# A workaround for a difference in tasks at runtime and type-checking time.
# Otherwise, at runtime: TypeError: 'type' object is not subscriptable.
if TYPE_CHECKING:
    Task = asyncio.Task[Any]
else:
    Task = asyncio.Task


async def guard(
        coro: Coroutine[Any, Any, Any],
        name: str,
        *,
        finishable: bool = False,
        cancellable: bool = False,
        logger: Optional[typedefs.Logger] = None,
) -> None:
    """
    A guard for a presumably eternal (never-finishing) task.

    An "eternal" task is a task that never exits unless explicitly cancelled.
    If it does, this is a misbehaviour that is logged. Errors are always logged.
    Cancellations are also logged except if the task is said to be cancellable.

    It is used for background tasks that are started but never awaited/checked,
    so that the errors are not escalated properly but are visible in the logs.
    """
    capname = name.capitalize()
    try:
        await coro
    except asyncio.CancelledError:
        if logger is not None and not cancellable:
            logger.debug(f"{capname} is cancelled.")
        raise
    except Exception as e:
        if logger is not None:
            logger.exception(f"{capname} has failed: {e}")
        raise
    else:
        if logger is not None and not finishable:
            logger.warning(f"{capname} has finished unexpectedly.")


def create_guarded_task(
        coro: Coroutine[Any, Any, Any],
        name: str,
        *,
        finishable: bool = False,
        cancellable: bool = False,
        logger: Optional[typedefs.Logger] = None,
) -> Task:
    """
    Create a guarded eternal task. See :func:`guard` for explanation.

    This is only a shortcut for named task creation (name is used in 2 places).
    """
    return asyncio.create_task(
        name=name,
        coro=guard(
            name=name,
            coro=coro,
            finishable=finishable,
            cancellable=cancellable,
            logger=logger))


async def stop(
        tasks: Collection[Task],
        *,
        title: str,
        logger: Optional[typedefs.Logger] = None,
) -> Tuple[Set[Task], Set[Task]]:
    """
    Cancel the tasks and wait for them to finish.

    The stopping itself does not have timeouts. It always ends either with
    the tasks stopped/exited, or with the stopping routine itself being cancelled.
    """
    captitle = title.capitalize()
    if not tasks:
        if logger is not None:
            logger.debug(f"{captitle} tasks stopping is skipped: no tasks given.")
        return set(), set()

    for task in tasks:
        task.cancel()

    done, pending = await asyncio.wait(tasks)
    if logger is not None:
        logger.debug(f"{captitle} tasks are stopped; tasks left: {pending!r}")
    return done, pending
