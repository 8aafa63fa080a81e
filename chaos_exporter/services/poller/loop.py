"""
Poll loop driving the reconciling collector.

- Fetches chaos results at a fixed interval
- Reconciles each successful fetch into the registry
- Retries transient fetch failures with backoff while the registry keeps
  serving the last successful values
- Gives up with SourceUnavailableError on permanent or sustained failure
- Bounds every fetch by a timeout
- Stops when ``stop()`` is called, even during a sleep or a hung fetch
"""

import asyncio
import structlog
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from tenacity import RetryCallState

from chaos_exporter.exceptions import SourceError, SourceUnavailableError
from chaos_exporter.services.chaos.client import BaseMetricsSource
from chaos_exporter.services.chaos.models import ChaosMetrics
from chaos_exporter.services.metrics.collector import ReconcileReport, ReconcilingCollector
from chaos_exporter.services.poller.retry import RetryConfig

logger = structlog.get_logger()


@dataclass
class PollStats:
    """Counters describing the poll loop's history."""
    polls: int = 0
    successes: int = 0
    failures: int = 0
    consecutive_failures: int = 0
    last_success_at: Optional[datetime] = None
    last_failure_at: Optional[datetime] = None
    last_error: Optional[str] = None

    @property
    def healthy(self) -> bool:
        """True once a poll has succeeded and the latest poll did not fail."""
        return self.successes > 0 and self.consecutive_failures == 0


class PollLoop:
    """
    Long-running task that polls a metrics source and reconciles results.

    Example:
        loop = PollLoop(
            source=KubernetesChaosSource(api_client),
            collector=ReconcilingCollector(registry),
            engine_name="engine-nginx",
            namespace="default",
        )
        task = asyncio.create_task(loop.run())
        ...
        loop.stop()
        await task
    """

    def __init__(
        self,
        source: BaseMetricsSource,
        collector: ReconcilingCollector,
        engine_name: str,
        namespace: str,
        interval_seconds: float = 1.0,
        retry: Optional[RetryConfig] = None,
        fetch_timeout_seconds: Optional[float] = 10.0
    ) -> None:
        self.source = source
        self.collector = collector
        self.engine_name = engine_name
        self.namespace = namespace
        self.interval = interval_seconds
        self.retry = retry or RetryConfig()
        self.fetch_timeout = fetch_timeout_seconds
        self.stats = PollStats()
        self._shutdown = asyncio.Event()

    @property
    def stopped(self) -> bool:
        return self._shutdown.is_set()

    async def run(self) -> None:
        """
        Poll until stopped.

        Raises:
            SourceUnavailableError: on a permanent fetch failure, or when
                the retry policy allows no further attempts
        """
        logger.info(
            "Poll loop starting",
            engine=self.engine_name,
            namespace=self.namespace,
            interval=self.interval
        )

        while not self._shutdown.is_set():
            try:
                await self._poll_with_retry()
            except SourceError as e:
                self._give_up(e)

            await self._sleep(self.interval)

        logger.info("Poll loop stopped", polls=self.stats.polls)

    async def poll_once(self) -> Optional[ReconcileReport]:
        """
        Fetch once and reconcile the result.

        Fetch errors and timeouts propagate as SourceError. Returns None if
        the loop was stopped while the fetch was in flight.
        """
        self.stats.polls += 1
        try:
            metrics = await self._fetch()
        except SourceError as e:
            self.stats.failures += 1
            self.stats.consecutive_failures += 1
            self.stats.last_failure_at = datetime.utcnow()
            self.stats.last_error = str(e)
            raise

        if metrics is None:
            return None

        report = self.collector.reconcile(metrics)

        if self.stats.consecutive_failures:
            logger.info(
                "Metrics source recovered",
                failed_polls=self.stats.consecutive_failures
            )
        self.stats.successes += 1
        self.stats.consecutive_failures = 0
        self.stats.last_success_at = datetime.utcnow()
        return report

    def stop(self) -> None:
        """Ask the loop to exit; waits and in-flight fetches are abandoned."""
        self._shutdown.set()

    async def _poll_with_retry(self) -> None:
        retrying = self.retry.retrying(sleep=self._sleep, before_sleep=self._log_retry)
        async for attempt in retrying:
            if self.stopped:
                return
            with attempt:
                await self.poll_once()

    async def _fetch(self) -> Optional[ChaosMetrics]:
        """Run the blocking fetch in a thread, bounded by timeout and stop()."""
        fetch = asyncio.ensure_future(
            asyncio.to_thread(self.source.fetch, self.engine_name, self.namespace)
        )
        stopping = asyncio.ensure_future(self._shutdown.wait())
        try:
            done, _ = await asyncio.wait(
                {fetch, stopping},
                timeout=self.fetch_timeout,
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            stopping.cancel()
            if not fetch.done():
                fetch.cancel()

        if fetch in done:
            return fetch.result()
        if self.stopped:
            return None
        raise SourceError(
            f"Fetching chaos results timed out after {self.fetch_timeout}s"
        )

    def _log_retry(self, retry_state: RetryCallState) -> None:
        logger.warning(
            "Unable to get metrics, retrying",
            error=str(retry_state.outcome.exception()),
            consecutive_failures=self.stats.consecutive_failures,
            retry_in=round(retry_state.next_action.sleep, 2)
        )

    def _give_up(self, error: SourceError) -> None:
        failures = self.stats.consecutive_failures
        logger.critical(
            "Unable to get metrics, giving up",
            error=str(error),
            permanent=error.permanent,
            consecutive_failures=failures
        )
        self._shutdown.set()
        raise SourceUnavailableError(
            f"Metrics source unavailable after {failures} failed poll(s): {error}",
            last_error=error,
        ) from error

    async def _sleep(self, timeout: float) -> None:
        """Wait for ``timeout`` seconds or until stopped."""
        try:
            await asyncio.wait_for(self._shutdown.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            pass  # Normal timeout, continue loop
