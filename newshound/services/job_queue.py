"""
Redis list queue carrying alert payloads

Producers LPUSH, workers BRPOP, so the oldest payload is consumed first
and each payload reaches exactly one worker.

Queues:
- queue:alert:ingest - alert payloads from the extraction pipeline
- queue:alert:failed - dead letters: {"job", "error", "failed_at", "worker"}
"""
import json
import logging
from typing import Optional

import redis.asyncio as redis

logger = logging.getLogger(__name__)


class JobQueue:
    """JSON jobs over Redis lists"""

    def __init__(self, redis_url: str):
        self.redis_url = redis_url
        self.redis: Optional[redis.Redis] = None

    async def connect(self):
        self.redis = redis.from_url(self.redis_url, decode_responses=True)
        await self.redis.ping()
        logger.info(f"📰 Job queue connected: {self.redis_url}")

    async def close(self):
        if self.redis is not None:
            await self.redis.aclose()
            self.redis = None

    async def enqueue(self, queue_name: str, job: dict):
        """
        Push a job onto a queue

        Example:
            await queue.enqueue('queue:alert:ingest', alert.to_dict())
        """
        await self.redis.lpush(queue_name, json.dumps(job, default=str))

    async def dequeue(self, queue_name: str, timeout: int = 5) -> Optional[dict]:
        """
        Blocking pop (BRPOP); None when nothing arrived within timeout seconds
        """
        item = await self.redis.brpop(queue_name, timeout=timeout)
        if item is None:
            return None
        _, payload = item
        return json.loads(payload)

    async def queue_length(self, queue_name: str) -> int:
        return await self.redis.llen(queue_name)

    async def replay_failed(self, failed_queue: str, target_queue: str, limit: Optional[int] = None) -> int:
        """
        Move dead-lettered jobs back onto the ingest queue

        Only the original payload is re-queued; the error envelope is dropped.
        If the envelope names an alert_id (alert stored, clustering failed),
        the payload gets that id so the worker reclusters instead of storing.
        Stops after `limit` jobs, or when the failed queue is empty.

        Returns:
            Number of jobs replayed
        """
        replayed = 0
        while limit is None or replayed < limit:
            raw = await self.redis.rpop(failed_queue)
            if raw is None:
                break
            entry = json.loads(raw)
            job = entry.get("job", entry)
            if entry.get("alert_id") is not None:
                job = {**job, "id": entry["alert_id"]}
            await self.enqueue(target_queue, job)
            replayed += 1

        if replayed:
            logger.info(f"🔁 Replayed {replayed} jobs from {failed_queue} to {target_queue}")
        return replayed
