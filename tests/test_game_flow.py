import pytest

from app.domain.common.errors import InvalidState, NoActiveQuestion, Unauthorized, ValidationFailed
from app.domain.common.identity import ConnIdentity
from app.domain.game import (
    handle_end_game,
    handle_list_subjects,
    handle_next_question,
    handle_reveal_answer,
    handle_set_custom_questions,
    handle_set_subject,
    handle_start_game,
    handle_submit_answer,
)
from app.domain.lifecycle.handlers import handle_create_room, handle_join, handle_presenter_join
from app.services.moderation import MemoryModerationGate
from app.services.profanity import UsernameFilter
from app.services.questions import QuestionBank
from app.store.models import MultiSelectQuestion, SingleChoiceQuestion
from app.store.registry import RoomRegistry
from app.transport.protocols import (
    InCreateRoom,
    InEndGame,
    InJoin,
    InListSubjects,
    InNextQuestion,
    InPresenterJoin,
    InRevealAnswer,
    InSetCustomQuestions,
    InSetSubject,
    InStartGame,
    InSubmitAnswer,
)

QUESTIONS = [
    SingleChoiceQuestion(type="multiple-choice", question="2 + 2?", options=["3", "4", "5"], answer=1, explanation="Four."),
    SingleChoiceQuestion(type="truefalse", question="Water is wet?", options=["True", "False"], answer=0),
]
SCIENCE = [
    MultiSelectQuestion(type="multi-choice", question="Noble gases?", options=["He", "O", "Ne"], answer=[0, 2]),
]

HOST = ConnIdentity("host")
PRESENTER = ConnIdentity("screen")


class FakeApp:
    def __init__(self, questions=QUESTIONS):
        bank = QuestionBank({"general": list(questions), "science": list(SCIENCE)})
        self.state = type(
            "State",
            (),
            {
                "registry": RoomRegistry(default_questions=questions),
                "questions": bank,
                "word_filter": UsernameFilter(["badword"]),
                "moderation": MemoryModerationGate(),
            },
        )()


def events_for(to_room, conn_id):
    return [t.event for t in to_room if conn_id in t.targets]


def types_for(to_room, conn_id):
    return [e.type for e in events_for(to_room, conn_id)]


async def make_room(app, names=("Al",)):
    to_sender, _ = await handle_create_room(app=app, conn=HOST, msg=InCreateRoom())
    code = to_sender[0].room_code
    players = []
    for i, name in enumerate(names, start=1):
        conn = ConnIdentity(f"p{i}")
        await handle_join(app=app, conn=conn, msg=InJoin(room_code=code, name=name))
        players.append(conn)
    return code, players


async def submit(app, conn, code, answer):
    return await handle_submit_answer(app=app, conn=conn, msg=InSubmitAnswer(room_code=code, answer=answer))


@pytest.mark.asyncio
async def test_single_player_correct_answer_auto_reveals():
    app = FakeApp()
    code, (al,) = await make_room(app)

    _, to_room = await handle_start_game(app=app, conn=HOST, msg=InStartGame(room_code=code))
    assert types_for(to_room, al.conn_id) == ["game_started", "player_list_updated", "new_question"]
    assert types_for(to_room, HOST.conn_id) == ["game_started", "player_list_updated", "new_question"]

    host_q = events_for(to_room, HOST.conn_id)[-1]
    player_q = events_for(to_room, al.conn_id)[-1]
    assert host_q.question["answer"] == 1
    assert "answer" not in player_q.question
    assert player_q.question_number == 1
    assert player_q.total_questions == 2

    to_sender, to_room = await submit(app, al, code, 1)
    assert [e.type for e in to_sender] == ["answer_submitted"]

    answered = events_for(to_room, HOST.conn_id)[0]
    assert answered.type == "player_answered"
    assert answered.correct is True

    mine = events_for(to_room, al.conn_id)
    assert [e.type for e in mine] == ["answer_stats", "player_list_updated", "reveal_answer_players", "answer_result"]
    result = mine[-1]
    assert result.correct is True
    assert result.score == 1000
    assert result.correct_answer == 1
    assert result.explanation == "Four."

    room = app.state.registry.get(code)
    assert room.revealed is True
    assert room.players[al.conn_id].score == 1000


@pytest.mark.asyncio
async def test_reveal_twice_never_double_scores():
    app = FakeApp()
    code, (al, bo) = await make_room(app, ("Al", "Bo"))
    await handle_start_game(app=app, conn=HOST, msg=InStartGame(room_code=code))
    await submit(app, al, code, 1)

    for _ in range(2):
        _, to_room = await handle_reveal_answer(app=app, conn=HOST, msg=InRevealAnswer(room_code=code))
        result = [e for e in events_for(to_room, al.conn_id) if e.type == "answer_result"][0]
        assert result.score == 1000
        # nothing to report for a player who did not answer
        assert "answer_result" not in types_for(to_room, bo.conn_id)

    room = app.state.registry.get(code)
    assert room.players[al.conn_id].score == 1000
    assert room.players[bo.conn_id].score == 0


@pytest.mark.asyncio
async def test_speed_ranking_between_players():
    app = FakeApp()
    code, (al, bo, cy, di) = await make_room(app, ("Al", "Bo", "Cy", "Di"))
    await handle_start_game(app=app, conn=HOST, msg=InStartGame(room_code=code))

    await submit(app, bo, code, 1)
    await submit(app, di, code, 0)
    await submit(app, al, code, 1)
    await submit(app, cy, code, 1)

    room = app.state.registry.get(code)
    scores = {p.name: p.score for p in room.players.values()}
    assert scores == {"Bo": 1000, "Di": 0, "Al": 900, "Cy": 800}
    assert [p["name"] for p in room.final_scores()] == ["Bo", "Al", "Cy", "Di"]


@pytest.mark.asyncio
async def test_stats_hide_correctness_until_reveal():
    app = FakeApp()
    code, (al, bo) = await make_room(app, ("Al", "Bo"))
    await handle_start_game(app=app, conn=HOST, msg=InStartGame(room_code=code))

    _, to_room = await submit(app, al, code, 0)
    stats = [e for e in events_for(to_room, bo.conn_id) if e.type == "answer_stats"][0]
    assert stats.answered == 1
    assert stats.total == 2
    assert stats.answers == [{"conn_id": "p1", "name": "Al", "answer": 0}]
    assert "reveal_answer_players" not in types_for(to_room, bo.conn_id)
    assert app.state.registry.get(code).revealed is False


@pytest.mark.asyncio
async def test_next_question_resets_round_then_ends_game():
    app = FakeApp()
    code, (al,) = await make_room(app)
    await handle_start_game(app=app, conn=HOST, msg=InStartGame(room_code=code))
    await submit(app, al, code, 1)

    _, to_room = await handle_next_question(app=app, conn=HOST, msg=InNextQuestion(room_code=code))
    room = app.state.registry.get(code)
    assert room.question_index == 1
    assert room.answers == {}
    assert room.revealed is False
    q = events_for(to_room, al.conn_id)[0]
    assert q.type == "new_question"
    assert q.question_number == 2
    assert "answer" not in q.question

    _, to_room = await handle_next_question(app=app, conn=HOST, msg=InNextQuestion(room_code=code))
    ended = events_for(to_room, al.conn_id)[0]
    assert ended.type == "game_ended"
    assert ended.final_scores == [{"conn_id": "p1", "name": "Al", "score": 1000}]
    assert room.phase == "ENDED"
    assert room.current_question is None
    assert room.players

    with pytest.raises(InvalidState):
        await handle_next_question(app=app, conn=HOST, msg=InNextQuestion(room_code=code))


@pytest.mark.asyncio
async def test_next_question_needs_running_game():
    app = FakeApp()
    code, _ = await make_room(app)
    with pytest.raises(InvalidState):
        await handle_next_question(app=app, conn=HOST, msg=InNextQuestion(room_code=code))


@pytest.mark.asyncio
async def test_submission_rules():
    app = FakeApp()
    code, (al, bo) = await make_room(app, ("Al", "Bo"))

    with pytest.raises(NoActiveQuestion):
        await submit(app, al, code, 1)

    await handle_start_game(app=app, conn=HOST, msg=InStartGame(room_code=code))

    with pytest.raises(Unauthorized):
        await submit(app, HOST, code, 1)
    with pytest.raises(ValidationFailed):
        await submit(app, al, code, 7)

    await submit(app, al, code, 1)
    with pytest.raises(InvalidState):
        await submit(app, al, code, 0)

    await handle_reveal_answer(app=app, conn=HOST, msg=InRevealAnswer(room_code=code))
    with pytest.raises(InvalidState):
        await submit(app, bo, code, 1)


@pytest.mark.asyncio
async def test_host_only_controls():
    app = FakeApp()
    code, (al,) = await make_room(app)
    with pytest.raises(Unauthorized):
        await handle_start_game(app=app, conn=al, msg=InStartGame(room_code=code))
    with pytest.raises(Unauthorized):
        await handle_set_subject(app=app, conn=al, msg=InSetSubject(room_code=code, subject="science"))
    with pytest.raises(NoActiveQuestion):
        await handle_reveal_answer(app=app, conn=HOST, msg=InRevealAnswer(room_code=code))


@pytest.mark.asyncio
async def test_start_needs_questions():
    app = FakeApp(questions=[])
    code, _ = await make_room(app)
    with pytest.raises(InvalidState):
        await handle_start_game(app=app, conn=HOST, msg=InStartGame(room_code=code))


@pytest.mark.asyncio
async def test_subjects():
    app = FakeApp()
    to_sender, _ = await handle_list_subjects(app=app, conn=HOST, msg=InListSubjects())
    assert [s["id"] for s in to_sender[0].subjects] == ["general", "science"]

    code, _ = await make_room(app)
    await handle_presenter_join(app=app, conn=PRESENTER, msg=InPresenterJoin(room_code=code))

    to_sender, to_room = await handle_set_subject(app=app, conn=HOST, msg=InSetSubject(room_code=code, subject="science"))
    assert to_sender[0].type == "subject_changed"
    assert to_sender[0].question_count == 1
    info = events_for(to_room, PRESENTER.conn_id)[0]
    assert info.type == "subject_info"
    assert info.subject == "science"

    with pytest.raises(ValidationFailed):
        await handle_set_subject(app=app, conn=HOST, msg=InSetSubject(room_code=code, subject="astrology"))

    await handle_start_game(app=app, conn=HOST, msg=InStartGame(room_code=code))
    with pytest.raises(InvalidState):
        await handle_set_subject(app=app, conn=HOST, msg=InSetSubject(room_code=code, subject="general"))


@pytest.mark.asyncio
async def test_custom_questions_and_multi_select():
    app = FakeApp()
    code, (al,) = await make_room(app)

    to_sender, _ = await handle_set_custom_questions(
        app=app,
        conn=HOST,
        msg=InSetCustomQuestions(
            room_code=code,
            questions=[
                {"type": "multi-choice", "question": "Even numbers?", "options": ["1", "2", "3", "4"], "answer": [1, 3]},
                {"type": "multi-choice", "question": "Broken", "options": ["1", "2"], "answer": [9]},
            ],
        ),
    )
    changed = to_sender[0]
    assert changed.subject == "custom"
    assert changed.question_count == 1
    assert len(changed.warnings) == 1

    await handle_start_game(app=app, conn=HOST, msg=InStartGame(room_code=code))
    _, to_room = await submit(app, al, code, [3, 1])
    result = [e for e in events_for(to_room, al.conn_id) if e.type == "answer_result"][0]
    assert result.correct is True
    assert result.correct_answer == [1, 3]


@pytest.mark.asyncio
async def test_custom_questions_all_invalid():
    app = FakeApp()
    code, _ = await make_room(app)
    with pytest.raises(ValidationFailed) as exc:
        await handle_set_custom_questions(
            app=app,
            conn=HOST,
            msg=InSetCustomQuestions(room_code=code, questions=[{"type": "text"}]),
        )
    assert exc.value.errors == ["Question 1: Missing required fields (type, question)"]
    assert app.state.registry.get(code).subject == "general"


@pytest.mark.asyncio
async def test_end_game_keeps_players_and_restart_resets_scores():
    app = FakeApp()
    code, (al,) = await make_room(app)
    await handle_start_game(app=app, conn=HOST, msg=InStartGame(room_code=code))
    await submit(app, al, code, 1)

    _, to_room = await handle_end_game(app=app, conn=HOST, msg=InEndGame(room_code=code))
    assert types_for(to_room, al.conn_id) == ["game_ended"]
    room = app.state.registry.get(code)
    assert room.phase == "ENDED"
    assert room.players[al.conn_id].score == 1000

    with pytest.raises(InvalidState):
        await handle_end_game(app=app, conn=HOST, msg=InEndGame(room_code=code))

    await handle_start_game(app=app, conn=HOST, msg=InStartGame(room_code=code))
    assert room.phase == "RUNNING"
    assert room.question_index == 0
    assert room.players[al.conn_id].score == 0
