"""Selection store: which topics the listener picked for the open episode."""

import threading
from typing import Iterable, Optional, Set

from podnav.models import Topic


class SelectionStore:
    """
    Selected topic ids plus the playback position for one episode session.

    ``current_index`` points into the chronologically ordered *selected*
    topics, which callers recompute from the episode each time
    (see ``playback.ordered_selection``). Every operation holds ``lock``,
    which is re-entrant so callers can group several operations under it.
    """

    def __init__(self, selected_topic_ids: Optional[Iterable[str]] = None):
        self.lock = threading.RLock()
        self._selected: Set[str] = set(selected_topic_ids or ())
        self._current_index = 0

    @classmethod
    def for_topics(cls, topics: Iterable[Topic]) -> "SelectionStore":
        """A store seeded from the topics' ``selected`` hints."""
        return cls(t.id for t in topics if t.selected)

    @property
    def selected_topic_ids(self) -> frozenset:
        with self.lock:
            return frozenset(self._selected)

    @property
    def current_index(self) -> int:
        with self.lock:
            return self._current_index

    @current_index.setter
    def current_index(self, value: int) -> None:
        if value < 0:
            raise ValueError("current_index cannot be negative")
        with self.lock:
            self._current_index = value

    def toggle(self, topic_id: str) -> bool:
        """Flip membership of ``topic_id``. Returns True if it is now selected."""
        with self.lock:
            if topic_id in self._selected:
                self._selected.discard(topic_id)
                return False
            self._selected.add(topic_id)
            return True

    def clear(self) -> None:
        with self.lock:
            self._selected.clear()
            self._current_index = 0

    def reset(self, topics: Iterable[Topic]) -> None:
        """
        Start over for a newly loaded episode.

        Previous picks are dropped, then the new topics' ``selected`` hints are
        applied, so a freshly segmented episode opens with its first topic
        picked. Topics without hints leave the selection empty.
        """
        with self.lock:
            self._selected = {t.id for t in topics if t.selected}
            self._current_index = 0

    def selected_count(self) -> int:
        with self.lock:
            return len(self._selected)

    def is_selected(self, topic_id: str) -> bool:
        with self.lock:
            return topic_id in self._selected
