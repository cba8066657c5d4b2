"""
Dashboard state for minting records.

All status changes coming out of the dispatcher go through
MintingStateReducer.dispatch: updates are queued and applied one at a time,
in arrival order, from a single place. Each dispatch run stamps its records
with a new generation; late updates from a superseded run are dropped instead
of overwriting newer state.
"""

import itertools
import logging
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Dict, Iterable, Optional

from nft_sender.models.minting import MintStatus, can_transition
from nft_sender.services.record_store import RecordSnapshot

logger = logging.getLogger(__name__)

StatusCallback = Callable[[str, MintStatus, Optional[str]], None]


@dataclass(frozen=True)
class StatusUpdate:
    record_id: str
    status: MintStatus
    error_message: Optional[str] = None
    generation: Optional[int] = None


class MintingStateReducer:
    """Records of one project plus the serialized status channel that mutates them."""

    def __init__(self, records: Iterable[RecordSnapshot] = ()):
        self._records: Dict[str, RecordSnapshot] = {}
        self._generations: Dict[str, int] = {}
        self._counter = itertools.count(1)
        self._queue: Deque[tuple[StatusUpdate, list[bool]]] = deque()
        self._draining = False
        self.loaded = False
        self.load(records)

    # --- record set ---

    def load(self, records: Iterable[RecordSnapshot]) -> None:
        """Replace the record set (e.g. after a reload from the store)."""
        self._records = {record.id: record for record in records}
        self._generations = {}

    def add(self, records: Iterable[RecordSnapshot]) -> None:
        """Prepend newly loaded recipients, keeping newest-first order."""
        new = {record.id: record for record in records}
        new.update((rid, rec) for rid, rec in self._records.items() if rid not in new)
        self._records = new

    def remove(self, record_ids: Iterable[str]) -> None:
        for record_id in record_ids:
            self._records.pop(record_id, None)
            self._generations.pop(record_id, None)

    def get(self, record_id: str) -> Optional[RecordSnapshot]:
        return self._records.get(record_id)

    def records(self) -> list[RecordSnapshot]:
        return list(self._records.values())

    def select(self, record_ids: Iterable[str]) -> list[RecordSnapshot]:
        return [self._records[rid] for rid in record_ids if rid in self._records]

    def stats(self) -> Dict[str, int]:
        records = self.records()
        return {
            "total": len(records),
            "minted": sum(1 for r in records if r.status == MintStatus.MINTED),
            "pending": sum(1 for r in records if r.status == MintStatus.PENDING),
            "failed": sum(1 for r in records if r.status == MintStatus.FAILED),
        }

    # --- status channel ---

    def begin_dispatch(self, record_ids: Iterable[str]) -> int:
        """Start a dispatch run over these records and return its generation."""
        generation = next(self._counter)
        for record_id in record_ids:
            self._generations[record_id] = generation
        return generation

    def updater(self, generation: Optional[int] = None) -> StatusCallback:
        """Status callback for the dispatcher, tagged with a dispatch generation."""
        def update_status(record_id: str, status: MintStatus, error_message: Optional[str] = None) -> None:
            self.dispatch(StatusUpdate(record_id, MintStatus(status), error_message, generation))
        return update_status

    def dispatch(self, update: StatusUpdate) -> bool:
        """Queue an update and drain the queue. Returns whether this update was applied."""
        outcome: list[bool] = []
        self._queue.append((update, outcome))
        if not self._draining:
            self._draining = True
            try:
                while self._queue:
                    queued, result = self._queue.popleft()
                    result.append(self._apply(queued))
            finally:
                self._draining = False
        return bool(outcome and outcome[0])

    def _apply(self, update: StatusUpdate) -> bool:
        record = self._records.get(update.record_id)
        if record is None:
            logger.warning(f"Status update for unknown record {update.record_id} ignored")
            return False

        current_generation = self._generations.get(update.record_id)
        if (
            update.generation is not None
            and current_generation is not None
            and update.generation < current_generation
        ):
            logger.info(
                f"Stale update for {update.record_id} dropped "
                f"(generation {update.generation} < {current_generation})"
            )
            return False

        if not can_transition(record.status, update.status):
            logger.warning(
                f"Illegal transition {record.status.value} -> {update.status.value} "
                f"for record {update.record_id} ignored"
            )
            return False

        if record.status == update.status == MintStatus.PENDING:
            return True

        self._records[update.record_id] = record.with_status(update.status, update.error_message)
        return True


class BoardRegistry:
    """One state reducer per project."""

    def __init__(self):
        self._boards: Dict[str, MintingStateReducer] = {}

    def get(self, project_id: str) -> MintingStateReducer:
        board = self._boards.get(project_id)
        if board is None:
            board = MintingStateReducer()
            self._boards[project_id] = board
        return board

    def discard(self, project_id: str) -> None:
        self._boards.pop(project_id, None)

    def clear(self) -> None:
        self._boards.clear()


# Global registry instance
boards = BoardRegistry()
