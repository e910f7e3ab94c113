"""Tests for the PerfectXO computer player."""

import pytest

from perfectxo.ai import ComputerPlayer, predict_outcome
from perfectxo.game import Outcome, Position


@pytest.mark.parametrize(
    "score, expected",
    [
        (-100, Outcome.HUMAN_WINS),
        (-51, Outcome.HUMAN_WINS),
        (-50, Outcome.DRAW),
        (0, Outcome.DRAW),
        (50, Outcome.DRAW),
        (51, Outcome.COMPUTER_WINS),
        (100, Outcome.COMPUTER_WINS),
    ],
)
def test_predict_outcome_thresholds(score, expected):
    assert predict_outcome(score) is expected


def test_new_game_shares_player_cache():
    player = ComputerPlayer(symbol="O")
    position = player.new_game()

    assert position.cache is player.cache
    assert position.computer_symbol == "O"
    assert position.computer_to_move is False
    assert player.predict(position) is Outcome.DRAW


def test_computer_first_plays_opening():
    player = ComputerPlayer(symbol="X")
    position = player.new_game(computer_first=True)

    assert position.cells[0][0] == "X"
    assert sum(row.count("X") for row in position.cells) == 1
    assert position.computer_to_move is False


def test_respond_applies_human_move_and_reply():
    player = ComputerPlayer(symbol="X")
    position = player.respond(player.new_game(), 1, 1)

    assert position.cells[1][1] == "O"
    assert position.cells[0][0] == "X"
    assert position.computer_to_move is False
    assert position.get_outcome() is Outcome.ONGOING


def test_respond_without_reply_after_human_win():
    player = ComputerPlayer(symbol="X")
    position = Position(
        cells=[["O", "O", "E"], ["X", "X", "E"], ["X", "E", "E"]],
        computer_symbol="X",
        cache=player.cache,
    )
    after = player.respond(position, 2, 0)

    assert after.get_outcome() is Outcome.HUMAN_WINS
    assert after.computer_to_move is True
    assert player.predict(after) is Outcome.HUMAN_WINS


def test_respond_rejects_illegal_moves():
    player = ComputerPlayer(symbol="X")
    position = player.respond(player.new_game(), 1, 1)

    with pytest.raises(ValueError):
        player.respond(position, 1, 1)
    with pytest.raises(ValueError):
        player.respond(position.clone_with_move(2, 2, "O"), 0, 2)


def test_choose_rejects_foreign_position():
    player = ComputerPlayer(symbol="X")
    with pytest.raises(ValueError):
        player.choose(Position.initial(computer_symbol="O", computer_first=True))


def test_rejects_unknown_symbol():
    with pytest.raises(ValueError):
        ComputerPlayer(symbol="Q")
