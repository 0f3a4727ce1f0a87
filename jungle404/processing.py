import logging
import threading
import time
from typing import Set

from . import settings
from .model import OrderRecord
from .planting_metrics import log_planting_event

logger = logging.getLogger(__name__)


class OrderProcessor:
    """Stand-in for the reforestation partner hand-off.

    ``submit`` only arms a daemon timer and returns; nothing the timer does
    reaches the confirmation response.
    """

    def __init__(self, delay_seconds: float = settings.PROCESSING_DELAY_SECONDS) -> None:
        self.delay_seconds = delay_seconds
        self._lock = threading.Lock()
        self._pending: Set[threading.Timer] = set()
        self._closed = False
        self.processed = 0

    def submit(self, order: OrderRecord) -> None:
        if self.delay_seconds <= 0:
            return
        with self._lock:
            if self._closed:
                logger.warning("Processor shut down, order %s not dispatched", order.order_id)
                return
            timer = threading.Timer(self.delay_seconds, self._process)
            timer.daemon = True
            timer.args = (order, timer)
            self._pending.add(timer)
        timer.start()

    def _process(self, order: OrderRecord, timer: threading.Timer) -> None:
        latency_ms = int((time.time() - order.confirmed_at) * 1000)
        logger.info("Order %s handed off to planting partner", order.order_id)
        log_planting_event(
            event="order_processed",
            intent_id=order.intent_id,
            order_id=order.order_id,
            origin=order.origin,
            status="processed",
            latency_ms=latency_ms,
        )
        with self._lock:
            self._pending.discard(timer)
            self.processed += 1

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self._pending)

    def shutdown(self) -> None:
        with self._lock:
            self._closed = True
            pending = list(self._pending)
            self._pending.clear()
        for timer in pending:
            timer.cancel()
        if pending:
            logger.info("Cancelled %d pending order hand-offs", len(pending))
