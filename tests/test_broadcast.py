import pytest

from app.domain.broadcast.handlers import (
    handle_broadcast_message,
    handle_broadcast_presenter,
    handle_broadcast_targeted,
)
from app.domain.common.errors import Unauthorized
from app.domain.common.identity import ConnIdentity
from app.domain.lifecycle.handlers import handle_create_room, handle_join, handle_presenter_join
from app.services.moderation import MemoryModerationGate
from app.services.profanity import UsernameFilter
from app.services.questions import QuestionBank
from app.store.registry import RoomRegistry
from app.transport.protocols import (
    InBroadcastMessage,
    InBroadcastPresenter,
    InBroadcastTargeted,
    InCreateRoom,
    InJoin,
    InPresenterJoin,
)

HOST = ConnIdentity("host")
PRESENTER = ConnIdentity("screen")
AL = ConnIdentity("p1")
BO = ConnIdentity("p2")


class FakeApp:
    def __init__(self):
        self.state = type(
            "State",
            (),
            {
                "registry": RoomRegistry(),
                "questions": QuestionBank(),
                "word_filter": UsernameFilter(),
                "moderation": MemoryModerationGate(),
            },
        )()


async def make_room(app):
    to_sender, _ = await handle_create_room(app=app, conn=HOST, msg=InCreateRoom())
    code = to_sender[0].room_code
    await handle_join(app=app, conn=AL, msg=InJoin(room_code=code, name="Al"))
    await handle_join(app=app, conn=BO, msg=InJoin(room_code=code, name="Bo"))
    await handle_presenter_join(app=app, conn=PRESENTER, msg=InPresenterJoin(room_code=code))
    return code


@pytest.mark.asyncio
async def test_broadcast_message_reaches_players_only():
    app = FakeApp()
    code = await make_room(app)

    to_sender, to_room = await handle_broadcast_message(
        app=app, conn=HOST, msg=InBroadcastMessage(room_code=code, message="Two minutes left")
    )

    assert to_sender == []
    (delivery,) = to_room
    assert delivery.event.type == "host_message"
    assert delivery.event.message == "Two minutes left"
    assert sorted(delivery.targets) == [AL.conn_id, BO.conn_id]
    assert HOST.conn_id not in delivery.targets
    assert PRESENTER.conn_id not in delivery.targets


@pytest.mark.asyncio
async def test_broadcast_targeted_drops_unknown_and_duplicate_ids():
    app = FakeApp()
    code = await make_room(app)

    _, to_room = await handle_broadcast_targeted(
        app=app,
        conn=HOST,
        msg=InBroadcastTargeted(
            room_code=code,
            message="Check your answer",
            targets=[BO.conn_id, "ghost", BO.conn_id, PRESENTER.conn_id],
        ),
    )

    (delivery,) = to_room
    assert delivery.event.type == "host_message"
    assert delivery.targets == [BO.conn_id]


@pytest.mark.asyncio
async def test_broadcast_presenter_reaches_presenters_only():
    app = FakeApp()
    code = await make_room(app)

    _, to_room = await handle_broadcast_presenter(
        app=app, conn=HOST, msg=InBroadcastPresenter(room_code=code, message="Switch to scores")
    )

    (delivery,) = to_room
    assert delivery.event.type == "presenter_message"
    assert delivery.targets == [PRESENTER.conn_id]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "handler, build",
    [
        (handle_broadcast_message, lambda code: InBroadcastMessage(room_code=code, message="hi")),
        (handle_broadcast_targeted, lambda code: InBroadcastTargeted(room_code=code, message="hi", targets=["p2"])),
        (handle_broadcast_presenter, lambda code: InBroadcastPresenter(room_code=code, message="hi")),
    ],
)
async def test_only_host_can_broadcast(handler, build):
    app = FakeApp()
    code = await make_room(app)

    for conn in (AL, PRESENTER):
        with pytest.raises(Unauthorized):
            await handler(app=app, conn=conn, msg=build(code))
