"""
Base worker class for queue consumers

- Redis queue consumption (BRPOP)
- Signal handling (graceful shutdown)
- Error handling that keeps the loop alive
"""
import asyncio
import signal
import logging

from newshound.services.job_queue import JobQueue

logger = logging.getLogger(__name__)


class BaseWorker:
    """
    Base class for queue workers

    Subclasses implement process(); handle_error() may be overridden
    (e.g. to dead-letter the job).
    """

    def __init__(self, job_queue: JobQueue, worker_name: str, queue_name: str):
        self.job_queue = job_queue
        self.worker_name = worker_name
        self.queue_name = queue_name
        self.running = False
        self.jobs_processed = 0
        self.jobs_failed = 0

    async def start(self):
        """
        Main worker loop

        Continuously:
        1. BRPOP from queue (blocks until job available)
        2. Process the job
        3. On failure, count it and hand it to handle_error()
        """
        self._setup_signal_handlers()

        self.running = True
        logger.info(f"[{self.worker_name}] Started, listening on {self.queue_name}")

        while self.running:
            try:
                job = await self.job_queue.dequeue(self.queue_name, timeout=5)
                if job:
                    await self.run_job(job)

            except asyncio.CancelledError:
                logger.info(f"[{self.worker_name}] Received cancellation signal")
                break
            except Exception as e:
                logger.error(f"[{self.worker_name}] Worker loop error: {e}", exc_info=True)
                await asyncio.sleep(1)

        logger.info(
            f"[{self.worker_name}] Shutting down. "
            f"Processed: {self.jobs_processed}, Failed: {self.jobs_failed}"
        )

    async def run_job(self, job: dict):
        """Process one job, routing failures to handle_error()"""
        logger.debug(f"[{self.worker_name}] Received job: {job}")
        try:
            await self.process(job)
            self.jobs_processed += 1
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.jobs_failed += 1
            logger.error(f"[{self.worker_name}] Job failed: {e}", exc_info=True)
            await self.handle_error(job, e)

    def stop(self):
        """Ask the loop to exit after the current job"""
        self.running = False

    def _setup_signal_handlers(self):
        """Setup graceful shutdown on SIGTERM/SIGINT"""
        def shutdown_handler(signum, frame):
            logger.info(f"[{self.worker_name}] Received signal {signum}, shutting down...")
            self.running = False

        signal.signal(signal.SIGTERM, shutdown_handler)
        signal.signal(signal.SIGINT, shutdown_handler)

    async def process(self, job: dict):
        """
        Override in subclass - do the actual work

        Args:
            job: Job data from queue
        """
        raise NotImplementedError(f"{self.__class__.__name__} must implement process()")

    async def handle_error(self, job: dict, error: Exception):
        """
        Handle job processing error

        Default: Log error. Override in subclass for custom handling.
        """
        logger.error(
            f"[{self.worker_name}] Error processing job {job}: {error}",
            exc_info=True
        )
