from typing import Awaitable, Callable, Sequence, TypeVar

import anyio

T = TypeVar("T")
R = TypeVar("R")


def _first_exception(group: BaseExceptionGroup) -> BaseException:
    exc = group.exceptions[0]
    while isinstance(exc, BaseExceptionGroup):
        exc = exc.exceptions[0]
    return exc


async def fan_out(func: Callable[[T], Awaitable[R]], items: Sequence[T]) -> list[R]:
    """
    Run func on every item concurrently and wait for all of them.

    Results are returned in the order of items. If any call fails, the others are
    cancelled and the first failure is re-raised as is (not wrapped in an exception group).
    """
    results: list[R | None] = [None] * len(items)

    async def run(i: int, item: T) -> None:
        results[i] = await func(item)

    try:
        async with anyio.create_task_group() as tg:
            for i, item in enumerate(items):
                tg.start_soon(run, i, item)
    except BaseExceptionGroup as eg:
        raise _first_exception(eg)
    return results  # type: ignore[return-value]
