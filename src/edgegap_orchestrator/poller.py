import asyncio
from typing import Awaitable, Callable, Optional, TypeVar

from tenacity import AsyncRetrying, RetryError, retry_if_exception_type, stop_before_delay, stop_when_event_set, wait_fixed

from edgegap_orchestrator.domain.envelope import RemoteCallResult
from edgegap_orchestrator.exceptions import TransportError
from edgegap_orchestrator.utils.logger import logger

S = TypeVar("S")


class NotSatisfied(Exception):
    """Internal exception to trigger another poll in tenacity."""

    pass


class StatusPoller:
    """
    Repeatedly fetches a status until a predicate holds or a hard deadline passes.

    Fetches never overlap. A timeout is a normal outcome: the last observed
    envelope is returned instead of raising.
    """

    async def await_condition(
        self,
        fetch: Callable[[], Awaitable[RemoteCallResult[S]]],
        is_satisfied: Callable[[S], bool],
        interval: float,
        timeout: float,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> RemoteCallResult[S]:
        """
        Polls `fetch` every `interval` seconds until `is_satisfied` accepts its payload.

        Args:
            fetch: Coroutine factory returning one status envelope.
            is_satisfied: Predicate over a successful envelope's payload.
            interval: Seconds to suspend between fetches.
            timeout: Hard deadline in seconds, measured from the first fetch.
            cancel_event: When set, no further fetch is started.

        Returns:
            The satisfying envelope, or the last observed one on timeout/cancellation.

        Raises:
            TransportError: Only if every fetch failed at the transport level.
        """
        last_result: Optional[RemoteCallResult[S]] = None
        last_transport_error: Optional[TransportError] = None

        # Stops once the next fetch would start at or past the deadline.
        stop = stop_before_delay(timeout)
        if cancel_event is not None:
            stop = stop | stop_when_event_set(cancel_event)  # type: ignore[arg-type]

        async def _sleep(seconds: float) -> None:
            if cancel_event is None:
                await asyncio.sleep(seconds)
                return
            try:
                await asyncio.wait_for(cancel_event.wait(), timeout=seconds)
            except asyncio.TimeoutError:
                pass

        try:
            async for attempt in AsyncRetrying(
                stop=stop,
                wait=wait_fixed(interval),
                retry=retry_if_exception_type(NotSatisfied),
                sleep=_sleep,
                reraise=False,
            ):
                if cancel_event is not None and cancel_event.is_set():
                    logger.info("Status polling cancelled.")
                    break

                with attempt:
                    attempt_num = attempt.retry_state.attempt_number
                    try:
                        result = await fetch()
                    except TransportError as e:
                        last_transport_error = e
                        logger.warning(f"Poll attempt {attempt_num} failed at transport level: {e}")
                        raise NotSatisfied(str(e)) from e

                    last_result = result
                    if result.is_success and result.data is not None and is_satisfied(result.data):
                        logger.debug(f"Condition satisfied after {attempt_num} fetch(es).")
                        return result

                    logger.debug(f"Poll attempt {attempt_num}: condition not satisfied yet.")
                    raise NotSatisfied("Condition not satisfied yet")

        except RetryError:
            logger.info(f"Stopped waiting after {timeout}s without satisfying the condition.")

        if last_result is not None:
            return last_result
        if last_transport_error is not None:
            raise last_transport_error
        return RemoteCallResult.local_failure("cancelled", "Polling was cancelled before any status was fetched.")
