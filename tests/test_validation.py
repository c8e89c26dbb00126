import pytest

from app.domain.common.errors import InvalidState, Unauthorized
from app.domain.common.fsm import can_transition_to
from app.domain.common.identity import role_of
from app.domain.common.validation import is_host, is_player, is_presenter, require_host, require_transition
from app.store.models import PlayerStore, RoomStore


def _room():
    room = RoomStore(code="ABC123", host="h", presenters=["s"], created_at=0, last_activity=0)
    room.players["p"] = PlayerStore(conn_id="p", name="Al", joined_at=0)
    return room


def test_roles():
    room = _room()
    assert is_host(room, "h") is True
    assert is_player(room, "p") is True
    assert is_presenter(room, "s") is True
    assert role_of(room, "h") == "host"
    assert role_of(room, "p") == "player"
    assert role_of(room, "s") == "presenter"
    assert role_of(room, "x") is None


def test_require_host():
    room = _room()
    require_host(room, "h")
    with pytest.raises(Unauthorized):
        require_host(room, "p")


def test_transitions():
    assert can_transition_to("LOBBY", "RUNNING") is True
    assert can_transition_to("RUNNING", "ENDED") is True
    assert can_transition_to("ENDED", "RUNNING") is True
    assert can_transition_to("LOBBY", "ENDED") is False
    assert can_transition_to("RUNNING", "RUNNING") is False


def test_phase_follows_flags():
    room = _room()
    assert room.phase == "LOBBY"
    room.game_started = True
    assert room.phase == "RUNNING"
    room.game_started = False
    room.game_ended = True
    assert room.phase == "ENDED"

    with pytest.raises(InvalidState):
        require_transition(room, "ENDED", "No game is running")


def test_members_and_player_list():
    room = _room()
    assert room.members() == ["h", "p", "s"]
    assert room.player_list() == [{"conn_id": "p", "name": "Al", "score": 0}]
