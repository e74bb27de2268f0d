from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum


DAY = timedelta(days=1)


class Phase(Enum):
    SOLVABLE = "solvable"
    EDITABLE = "editable"
    LOCKED = "locked"


@dataclass
class Puzzle:
    """Spaced-repetition bookkeeping for a game tree rooted at ``board``.

    Attributes:
        id (int): Identifier inside the owning store.
        board (int): Id of the puzzle's root node.
        due (datetime): When the puzzle should next be attempted.
        solved (datetime): When it was last finished.
        strikes (int): Wrong moves played during the current attempt.
        finished (bool): Whether the puzzle has been completed at least once.
    """

    id: int
    board: int
    due: datetime
    solved: datetime
    strikes: int = 0
    finished: bool = False

    def reschedule(self, now: datetime) -> None:
        """Set the next due date; fewer strikes mean a longer interval.

        The interval grows from the previous one (``due - solved``): doubled on
        a clean attempt, kept on one strike, halved (at least a day) on two, and
        reset to a day otherwise. Strikes are cleared for the next attempt.
        """
        duration = self.due - self.solved
        if self.strikes == 0:
            self.due = now + duration * 2
        elif self.strikes == 1:
            self.due = now + duration
        elif self.strikes == 2:
            self.due = now + max(DAY, duration / 2)
        else:
            self.due = now + DAY
        self.solved = now
        self.finished = True
        self.strikes = 0

    def phase(self, now: datetime) -> Phase:
        if self.due < now or self.due.date() == now.date():
            return Phase.SOLVABLE
        if self.solved.date() == now.date():
            return Phase.EDITABLE
        return Phase.LOCKED
