"""Bounded-concurrency fan-out of chunk fetches."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, wait

from ec2metrics.core.constants import MAX_CONCURRENT_REQUESTS
from ec2metrics.core.fetcher import ChunkFetcher
from ec2metrics.core.models import Chunk, RawSample
from ec2metrics.core.utils import check_deadline

logger = logging.getLogger(__name__)


def fetch_all(
    fetcher: ChunkFetcher,
    instance_id: str,
    chunks: list[Chunk],
    max_concurrency: int = MAX_CONCURRENT_REQUESTS,
    deadline: float | None = None,
) -> list[list[RawSample]]:
    """Fetch every chunk, at most max_concurrency at a time.

    Chunks run in batches; a batch starts only after the previous one has
    fully settled. Results come back in input order. If any chunk fails the
    whole call fails with that chunk's exception and nothing is returned.
    """
    if not chunks:
        return []

    if len(chunks) == 1:
        check_deadline(deadline, "fetching chunk 1/1")
        return [fetcher.fetch(instance_id, chunks[0], deadline)]

    results: list[list[RawSample]] = []
    total = len(chunks)
    workers = min(max_concurrency, total)
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="chunk-fetch") as pool:
        for offset in range(0, total, max_concurrency):
            batch = chunks[offset:offset + max_concurrency]
            check_deadline(deadline, f"fetching chunk {offset + 1}/{total}")
            futures = [
                pool.submit(fetcher.fetch, instance_id, chunk, deadline)
                for chunk in batch
            ]
            wait(futures)

            for i, future in enumerate(futures):
                exc = future.exception()
                if exc is not None:
                    chunk = batch[i]
                    logger.error(
                        "Chunk %d/%d failed for %s (%s..%s, period=%ds): %s",
                        offset + i + 1, total, instance_id,
                        chunk.start.isoformat(), chunk.end.isoformat(),
                        chunk.period_seconds, exc,
                    )
                    raise exc

            results.extend(future.result() for future in futures)
            logger.debug("Fetched chunks %d-%d of %d", offset + 1, offset + len(batch), total)

    return results
