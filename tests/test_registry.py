import pytest

from app.domain.common.errors import RoomNotFound
from app.store import registry as registry_mod
from app.store.registry import RoomRegistry


def test_create_binds_host():
    reg = RoomRegistry()
    room = reg.create_room(host="h")
    assert room.host == "h"
    assert len(room.code) == 6
    assert reg.room_of("h") is room
    assert reg.get(room.code) is room
    assert len(reg) == 1


def test_codes_are_unique(monkeypatch):
    codes = iter(["AAAAAA", "AAAAAA", "BBBBBB"])
    monkeypatch.setattr(registry_mod, "_gen_room_code", lambda n=6: next(codes))
    reg = RoomRegistry()
    first = reg.create_room()
    second = reg.create_room()
    assert first.code == "AAAAAA"
    assert second.code == "BBBBBB"


def test_destroy_detaches_members():
    reg = RoomRegistry()
    room = reg.create_room(host="h")
    reg.attach("p", room.code)
    room.presenters.append("s")
    reg.attach("s", room.code)

    reg.destroy_room(room.code)

    assert reg.exists(room.code) is False
    assert reg.room_of("h") is None
    assert reg.room_of("s") is None
    with pytest.raises(RoomNotFound):
        reg.get(room.code)
    with pytest.raises(RoomNotFound):
        reg.destroy_room(room.code)


def test_new_rooms_copy_default_questions():
    from app.store.models import SingleChoiceQuestion

    q = SingleChoiceQuestion(type="truefalse", question="Sky is blue?", options=["True", "False"], answer=0)
    reg = RoomRegistry(default_subject="science", default_questions=[q])
    a = reg.create_room()
    b = reg.create_room()
    assert a.subject == "science"
    assert a.questions == [q]
    a.questions.clear()
    assert b.questions == [q]
