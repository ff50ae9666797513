import asyncio
from typing import Any, Awaitable, Callable, List, Optional, Sequence

from utils.logging_config import get_logger

logger = get_logger("batch_scheduler")


class BatchScheduler:
    """
    Runs provider calls in small concurrent batches with a pause between
    batches, so bursts of catalog searches stay under provider rate limits.

    Each call is attempted once. A call that raises or exceeds ``timeout``
    yields ``default`` in its slot; results keep the order of the inputs.
    """

    def __init__(self, batch_size: int = 5, delay: float = 0.5, timeout: Optional[float] = None,
                 sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.batch_size = batch_size
        self.delay = max(0.0, delay)
        self.timeout = timeout
        self._sleep = sleep

    async def _run_one(self, factory: Callable[[], Awaitable[Any]], label: str, default: Any) -> Any:
        try:
            if self.timeout:
                return await asyncio.wait_for(factory(), timeout=self.timeout)
            return await factory()
        except asyncio.TimeoutError:
            logger.warning(f"{label} timed out after {self.timeout}s")
        except Exception as e:
            logger.warning(f"{label} failed: {e}")
        return default

    async def run(self, factories: Sequence[Callable[[], Awaitable[Any]]], labels: Optional[Sequence[str]] = None,
                  default: Any = None) -> List[Any]:
        """
        Execute call factories batch by batch.

        Args:
            factories: Zero-argument callables returning awaitables
            labels: Optional names used in log messages, one per factory
            default: Value stored for calls that fail

        Returns:
            One result per factory, in input order
        """
        labels = list(labels) if labels else [f"call {i + 1}" for i in range(len(factories))]
        results: List[Any] = []
        total_batches = (len(factories) + self.batch_size - 1) // self.batch_size

        for batch_number, start in enumerate(range(0, len(factories), self.batch_size), start=1):
            if start > 0 and self.delay:
                await self._sleep(self.delay)

            batch = factories[start:start + self.batch_size]
            batch_labels = labels[start:start + self.batch_size]
            logger.debug(f"Running batch {batch_number}/{total_batches} ({len(batch)} calls)")

            batch_results = await asyncio.gather(*[
                self._run_one(factory, label, default)
                for factory, label in zip(batch, batch_labels)
            ])
            results.extend(batch_results)

        return results
