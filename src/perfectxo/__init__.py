"""PerfectXO package exposing the minimax engine, computer player, and the web application."""

from .ai import ComputerPlayer
from .cache import ScoreCache
from .game import Outcome, Position
from .ui import app

__all__ = ["ComputerPlayer", "Outcome", "Position", "ScoreCache", "app"]
