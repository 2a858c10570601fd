"""
Keyed cash card stores.

Both implementations expose ``get(id)``, ``list()`` and ``put(card)`` and reject
a second card under an existing id instead of overwriting it.
"""

import logging
import threading
from typing import Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from models import CashCard
from schemas import CashCardCreate, CashCardRead

logger = logging.getLogger(__name__)


class DuplicateCashCard(Exception):
    def __init__(self, card_id: int):
        self.card_id = card_id
        super().__init__(f"Cash card {card_id} already exists")


class CashCardStore:
    """Interface for the keyed store behind the resource handler."""

    def get(self, card_id: int) -> Optional[CashCardRead]:
        raise NotImplementedError

    def list(self) -> List[CashCardRead]:
        raise NotImplementedError

    def put(self, card: CashCardCreate) -> CashCardRead:
        raise NotImplementedError


class InMemoryCashCardStore(CashCardStore):
    def __init__(self) -> None:
        self._cards: Dict[int, CashCardRead] = {}
        self._lock = threading.Lock()

    def get(self, card_id: int) -> Optional[CashCardRead]:
        with self._lock:
            return self._cards.get(card_id)

    def list(self) -> List[CashCardRead]:
        with self._lock:
            return [self._cards[k] for k in sorted(self._cards)]

    def put(self, card: CashCardCreate) -> CashCardRead:
        with self._lock:
            card_id = card.id
            if card_id is None:
                card_id = max(self._cards, default=0) + 1
            elif card_id in self._cards:
                raise DuplicateCashCard(card_id)
            stored = CashCardRead(id=card_id, amount=card.amount)
            self._cards[card_id] = stored
            return stored


class SqlCashCardStore(CashCardStore):
    """Store backed by the ``cash_cards`` table; one session per operation.

    Operations are serialised: in-memory SQLite shares a single connection
    across threads and cannot interleave transactions on it.
    """

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory
        self._lock = threading.Lock()

    def get(self, card_id: int) -> Optional[CashCardRead]:
        with self._lock, self._session_factory() as session:
            row = session.get(CashCard, card_id)
            return CashCardRead.model_validate(row) if row is not None else None

    def list(self) -> List[CashCardRead]:
        with self._lock, self._session_factory() as session:
            rows = session.query(CashCard).order_by(CashCard.id).all()
            return [CashCardRead.model_validate(row) for row in rows]

    def put(self, card: CashCardCreate) -> CashCardRead:
        with self._lock, self._session_factory() as session:
            row = CashCard(id=card.id, amount=card.amount)
            session.add(row)
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                if card.id is not None:
                    raise DuplicateCashCard(card.id) from exc
                raise
            session.refresh(row)
            logger.debug(f"Inserted {row!r}")
            return CashCardRead.model_validate(row)
