"""Exhaustive minimax computer opponent for PerfectXO."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from .cache import ScoreCache
from .game import MARKS, Mark, Outcome, Position

logger = logging.getLogger(__name__)

# Scores beyond +/- this are read as a forced result for one side
PREDICTION_THRESHOLD = 50


def predict_outcome(score: int) -> Outcome:
    if score < -PREDICTION_THRESHOLD:
        return Outcome.HUMAN_WINS
    if score > PREDICTION_THRESHOLD:
        return Outcome.COMPUTER_WINS
    return Outcome.DRAW


@dataclass
class ComputerPlayer:
    """Computer side of a game; owns the score cache shared by its positions.

    Public surface used by the web UI:
      - ComputerPlayer(symbol="X")
      - new_game(size, computer_first) -> Position
      - respond(position, x, y) -> Position
      - predict(position) -> Outcome
    """

    symbol: Mark = "X"
    cache: ScoreCache = field(default_factory=ScoreCache, repr=False)

    def __post_init__(self) -> None:
        if self.symbol not in MARKS:
            raise ValueError(f"Computer symbol must be one of {MARKS}")

    def new_game(self, size: int = 3, computer_first: bool = False) -> Position:
        position = Position.initial(
            size=size,
            computer_symbol=self.symbol,
            computer_first=computer_first,
            cache=self.cache,
        )
        if computer_first:
            position = self.choose(position) or position
        return position

    def choose(self, position: Position) -> Optional[Position]:
        """Best reply for the computer, or ``None`` when there is nothing to play."""
        if position.computer_symbol != self.symbol:
            raise ValueError("Position belongs to a different computer player")

        reply = position.select_best_move()
        if reply is not None:
            x, y = position.changed_cell(reply)
            logger.debug(
                "computer %s plays (%d, %d) with score %d",
                self.symbol,
                x,
                y,
                reply.get_score(),
            )
        return reply

    def respond(self, position: Position, x: int, y: int) -> Position:
        """Apply the human's move at ``(x, y)`` followed by the computer's reply."""
        if position.get_outcome() is not Outcome.ONGOING:
            raise ValueError("Game already finished")
        if position.computer_to_move:
            raise ValueError("It is not the human player's turn")

        after_human = position.clone_with_move(x, y, position.human_symbol)
        return self.choose(after_human) or after_human

    def predict(self, position: Position) -> Outcome:
        return predict_outcome(position.get_score())
