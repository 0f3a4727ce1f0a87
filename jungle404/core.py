import json
import logging
import random
import secrets
import time
from datetime import datetime, timezone
from typing import Callable, Optional, Protocol

from . import settings
from .model import InMemoryLedger, IntentRecord, OrderRecord, ProofRecord
from .planting_metrics import log_planting_event

logger = logging.getLogger(__name__)


class LedgerError(Exception):
    """Base class for planting ledger failures."""


class NotFound(LedgerError):
    def __init__(self, kind: str, identifier: Optional[str]) -> None:
        super().__init__(f"{kind} not found: {identifier!r}")
        self.kind = kind
        self.identifier = identifier


class InvalidInput(LedgerError):
    pass


class LedgerIntegrityError(LedgerError):
    """A confirmed intent whose order link is missing or dangling."""


class IdGenerator(Protocol):
    def new_id(self) -> str:
        ...


class JitterSource(Protocol):
    def offset(self, radius: float) -> float:
        ...


class SecretsIdGenerator:
    def __init__(self, nbytes: int = 9) -> None:
        self.nbytes = nbytes

    def new_id(self) -> str:
        return secrets.token_urlsafe(self.nbytes)


class RandomJitter:
    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self._rng = rng or random.SystemRandom()

    def offset(self, radius: float) -> float:
        return self._rng.uniform(-radius, radius)


def format_timestamp(ts: float) -> str:
    moment = datetime.fromtimestamp(ts, tz=timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_confirm_payload(body: bytes) -> Optional[str]:
    """Extract ``intent_id`` from a confirmation body.

    An empty body counts as ``{}``. Undecodable JSON and a bare ``null``
    are ``InvalidInput``; anything else that carries no string id yields
    ``None`` so the caller reports the intent as unknown.
    """
    try:
        parsed = json.loads(body or b"{}")
    except (UnicodeDecodeError, ValueError) as exc:
        raise InvalidInput("Invalid JSON") from exc
    if parsed is None:
        raise InvalidInput("Invalid JSON")
    if not isinstance(parsed, dict):
        return None
    intent_id = parsed.get("intent_id")
    if not isinstance(intent_id, str) or not intent_id:
        return None
    return intent_id


class PlantingLedger:
    def __init__(
        self,
        store: Optional[InMemoryLedger] = None,
        *,
        id_generator: Optional[IdGenerator] = None,
        jitter: Optional[JitterSource] = None,
        clock: Callable[[], float] = time.time,
        on_order_created: Optional[Callable[[OrderRecord], None]] = None,
        base_point: tuple[float, float] = (settings.BASE_LATITUDE, settings.BASE_LONGITUDE),
        jitter_radius: float = settings.COORDINATE_JITTER,
        project: str = settings.PROJECT_LABEL,
        message: str = settings.PROOF_MESSAGE,
    ) -> None:
        self.store = store if store is not None else InMemoryLedger()
        self.id_generator = id_generator or SecretsIdGenerator()
        self.jitter = jitter or RandomJitter()
        self.clock = clock
        self.on_order_created = on_order_created
        self.base_point = base_point
        self.jitter_radius = jitter_radius
        self.project = project
        self.message = message

    def _new_id(self) -> str:
        # Caller holds the store lock.
        candidate = self.id_generator.new_id()
        while self.store.id_in_use(candidate):
            candidate = self.id_generator.new_id()
        return candidate

    def _jittered_location(self) -> tuple[float, float]:
        lat, lon = self.base_point
        return (
            lat + self.jitter.offset(self.jitter_radius),
            lon + self.jitter.offset(self.jitter_radius),
        )

    def create_intent(self, origin: Optional[str] = None) -> str:
        with self.store.lock:
            intent_id = self._new_id()
            record = IntentRecord(intent_id=intent_id, created_at=self.clock(), origin=origin)
            self.store.intents[intent_id] = record
        logger.info("Planting intent %s created (origin=%s)", intent_id, origin)
        log_planting_event(
            event="intent_created",
            intent_id=intent_id,
            origin=origin,
            status="pending",
            created_at=record.created_at,
        )
        return intent_id

    def confirm_intent(self, intent_id: Optional[str], origin: Optional[str] = None) -> str:
        created: Optional[OrderRecord] = None
        with self.store.lock:
            intent = self.store.intents.get(intent_id) if intent_id else None
            if intent is None:
                order_id = None
            elif intent.confirmed:
                existing = self.store.orders.get(intent.order_id) if intent.order_id else None
                if existing is None or existing.intent_id != intent.intent_id:
                    logger.error("Intent %s is confirmed but linked order %r is missing", intent_id, intent.order_id)
                    raise LedgerIntegrityError(f"intent {intent_id} has no valid linked order")
                order_id = existing.order_id
            else:
                order_id = self._new_id()
                created = OrderRecord(
                    order_id=order_id,
                    intent_id=intent.intent_id,
                    created_at=intent.created_at,
                    confirmed_at=self.clock(),
                    location=self._jittered_location(),
                    origin=origin,
                )
                self.store.orders[order_id] = created
                intent.confirmed = True
                intent.order_id = order_id

        if order_id is None:
            logger.info("Confirmation rejected, unknown intent %r", intent_id)
            log_planting_event(event="intent_not_found", intent_id=intent_id, origin=origin, status="rejected")
            raise NotFound("intent", intent_id)

        if created is None:
            logger.debug("Intent %s already confirmed as order %s", intent_id, order_id)
            log_planting_event(
                event="intent_confirm_replayed",
                intent_id=intent_id,
                order_id=order_id,
                origin=origin,
                status="confirmed",
            )
            return order_id

        latency_ms = int((created.confirmed_at - created.created_at) * 1000)
        logger.info("Intent %s confirmed as order %s", intent_id, order_id)
        log_planting_event(
            event="intent_confirmed",
            intent_id=intent_id,
            order_id=order_id,
            origin=origin,
            status="confirmed",
            latency_ms=latency_ms,
            created_at=created.created_at,
            payload={"location": list(created.location)},
        )
        if self.on_order_created is not None:
            self.on_order_created(created)
        return order_id

    def get_order(self, order_id: Optional[str]) -> OrderRecord:
        with self.store.lock:
            order = self.store.orders.get(order_id) if order_id else None
        if order is None:
            raise NotFound("order", order_id)
        return order

    def get_proof(self, order_id: Optional[str]) -> ProofRecord:
        try:
            order = self.get_order(order_id)
        except NotFound:
            log_planting_event(event="proof_not_found", order_id=order_id, status="rejected")
            raise
        log_planting_event(event="proof_served", intent_id=order.intent_id, order_id=order.order_id, status="served")
        return build_proof(order, project=self.project, message=self.message)


def build_proof(order: OrderRecord, *, project: str, message: str) -> ProofRecord:
    return ProofRecord(
        planting_id=order.order_id,
        intent_id=order.intent_id,
        project=project,
        planted_at=format_timestamp(order.confirmed_at),
        coordinates=[order.location[0], order.location[1]],
        message=message,
    )
