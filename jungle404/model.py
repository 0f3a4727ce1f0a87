import threading
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple


@dataclass
class IntentRecord:
    intent_id: str
    created_at: float
    origin: Optional[str] = None
    confirmed: bool = False
    order_id: Optional[str] = None


@dataclass(frozen=True)
class OrderRecord:
    order_id: str
    intent_id: str
    created_at: float
    confirmed_at: float
    location: Tuple[float, float]
    origin: Optional[str] = None


@dataclass(frozen=True)
class ProofRecord:
    planting_id: str
    intent_id: str
    project: str
    planted_at: str
    coordinates: List[float]
    message: str

    def as_dict(self) -> Dict[str, object]:
        return {
            "planting_id": self.planting_id,
            "intent_id": self.intent_id,
            "project": self.project,
            "planted_at": self.planted_at,
            "coordinates": list(self.coordinates),
            "message": self.message,
        }


class InMemoryLedger:
    """Intent and order tables guarded by a single lock.

    Callers hold ``lock`` around any read-modify-write sequence; the tables
    are never pruned while the process lives.
    """

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.intents: Dict[str, IntentRecord] = {}
        self.orders: Dict[str, OrderRecord] = {}

    def id_in_use(self, candidate: str) -> bool:
        return candidate in self.intents or candidate in self.orders

    def clear(self) -> None:
        with self.lock:
            self.intents.clear()
            self.orders.clear()
