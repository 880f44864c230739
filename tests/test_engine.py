import asyncio

import pytest

from millionaire.core.engine import (
    NO_ALTERNATIVE_MESSAGE,
    TITLE_GAME_OVER,
    TITLE_MILLIONAIRE,
    TITLE_TIME_UP,
    TITLE_WALK_AWAY,
    EngineListener,
    GameEngine,
    GameStartError,
    Phase,
)

from conftest import FailingSource, make_question


def _answer(engine, correct=True):
    question = engine.current_question
    index = question.correct_index if correct else (question.correct_index + 1) % 4
    engine.select_choice(index)
    engine.lock_in()


def _climb(engine, levels):
    """Answer ``levels`` questions correctly, advancing after each."""
    for _ in range(levels):
        _answer(engine)
        engine.next_question()


def test_start_game_initialises_level_one(make_engine, ladder_questions, listener):
    async def scenario():
        engine = make_engine(ladder_questions)
        snapshot = await engine.start_game(["Science"])
        assert snapshot.level == 1
        assert snapshot.phase == Phase.AWAITING_CHOICE
        assert snapshot.remaining_time == 30
        assert snapshot.seen_question_ids == {"q-1"}
        assert engine.timer_running
        assert listener.states
        engine.reset()
        assert engine.phase == Phase.IDLE
        assert not engine.timer_running

    asyncio.run(scenario())


def test_wrong_answer_at_level_one_wins_nothing(make_engine, ladder_questions, listener):
    async def scenario():
        engine = make_engine(ladder_questions)
        await engine.start_game(["Science"])
        _answer(engine, correct=False)
        assert engine.phase == Phase.TERMINAL
        assert listener.endings == [(TITLE_GAME_OVER, 0)]
        correct_index = ladder_questions[0].correct_index
        assert listener.resolutions[-1][0] is False
        assert listener.resolutions[-1][2] == correct_index

    asyncio.run(scenario())


def test_wrong_answer_after_checkpoint_keeps_checkpoint(make_engine, ladder_questions, listener):
    async def scenario():
        engine = make_engine(ladder_questions)
        await engine.start_game(["Science"])
        _climb(engine, 5)
        assert engine.state.level == 6
        assert engine.state.winnings == 1_000
        assert engine.state.last_safe_level == 5
        assert engine.state.remaining_time == 45
        _answer(engine, correct=False)
        assert listener.endings == [(TITLE_GAME_OVER, 1_000)]

    asyncio.run(scenario())


def test_walk_away_banks_last_checkpoint(make_engine, ladder_questions, listener):
    async def scenario():
        engine = make_engine(ladder_questions)
        await engine.start_game(["Science"])
        _climb(engine, 10)
        assert engine.state.level == 11
        engine.walk_away()
        assert engine.state.game_over
        assert listener.endings == [(TITLE_WALK_AWAY, 32_000)]

    asyncio.run(scenario())


def test_walk_away_is_ignored_after_lock_in(make_engine, ladder_questions, listener):
    async def scenario():
        engine = make_engine(ladder_questions)
        await engine.start_game(["Science"])
        _answer(engine)
        engine.walk_away()
        assert not engine.state.game_over
        assert listener.endings == []

    asyncio.run(scenario())


def test_full_ladder_makes_a_millionaire(make_engine, ladder_questions, listener):
    async def scenario():
        engine = make_engine(ladder_questions)
        await engine.start_game(["Science"])
        _climb(engine, 15)
        assert engine.state.game_over
        assert engine.state.level == 15
        assert listener.endings == [(TITLE_MILLIONAIRE, 1_000_000)]
        assert len(engine.state.seen_question_ids) == 15

    asyncio.run(scenario())


def test_lock_in_requires_a_selection(make_engine, ladder_questions, listener):
    async def scenario():
        engine = make_engine(ladder_questions)
        await engine.start_game(["Science"])
        engine.lock_in()
        assert not engine.state.answered
        engine.select_choice(7)
        assert engine.provisional_choice is None
        engine.select_choice(2)
        engine.select_choice(3)
        assert engine.provisional_choice == 3
        engine.next_question()
        assert engine.state.level == 1

    asyncio.run(scenario())


def test_lock_in_stops_the_timer(make_engine, ladder_questions):
    async def scenario():
        engine = make_engine(ladder_questions)
        await engine.start_game(["Science"])
        assert engine.timer_running
        _answer(engine)
        assert engine.phase == Phase.ANSWER_LOCKED
        assert not engine.timer_running
        engine.next_question()
        assert engine.timer_running
        engine.reset()

    asyncio.run(scenario())


def test_timer_expiry_ends_the_game(make_engine, ladder_questions, listener):
    async def scenario():
        engine = make_engine(ladder_questions, tick_interval=0.001)
        await engine.start_game(["Science"])
        for _ in range(2000):
            if engine.state.game_over:
                break
            await asyncio.sleep(0.001)
        state = engine.state
        assert state.game_over
        assert state.remaining_time == 0
        assert state.correct is False
        assert state.locked_choice is None
        assert listener.ticks[0] == (29, 30)
        assert listener.ticks[-1] == (0, 30)
        assert listener.resolutions == [(False, None, ladder_questions[0].correct_index)]
        assert listener.endings == [(TITLE_TIME_UP, 0)]

    asyncio.run(scenario())


def test_fifty_fifty_is_single_use(make_engine, ladder_questions):
    async def scenario():
        engine = make_engine(ladder_questions)
        await engine.start_game(["Science"])
        engine.use_fifty_fifty()
        eliminated = set(engine.state.eliminated_choices)
        assert len(eliminated) == 2
        assert engine.current_question.correct_index not in eliminated
        engine.use_fifty_fifty()
        assert engine.state.eliminated_choices == eliminated
        assert engine.state.used_lifelines.fifty_fifty
        _climb(engine, 1)
        assert engine.state.eliminated_choices == set()
        engine.reset()

    asyncio.run(scenario())


def test_audience_poll_respects_eliminations(make_engine, ladder_questions, listener):
    async def scenario():
        engine = make_engine(ladder_questions)
        await engine.start_game(["Science"])
        engine.use_fifty_fifty()
        engine.use_audience_poll()
        poll = engine.state.poll_results
        for index in engine.state.eliminated_choices:
            assert poll[index] == 0
        assert listener.polls == [poll]
        engine.use_audience_poll()
        assert len(listener.polls) == 1
        engine.reset()

    asyncio.run(scenario())


def test_switch_question_replaces_current(make_engine, ladder_questions):
    async def scenario():
        spare = make_question(99, correct_index=2)
        engine = make_engine(ladder_questions, extra=[spare])
        await engine.start_game(["Science"])
        engine.use_fifty_fifty()
        engine.select_choice(1)
        assert await engine.use_switch_question() is True
        state = engine.state
        assert engine.current_question.id == "q-99"
        assert state.eliminated_choices == set()
        assert engine.provisional_choice is None
        assert state.seen_question_ids >= {"q-1", "q-99"}
        assert await engine.use_switch_question() is False
        engine.reset()

    asyncio.run(scenario())


def test_switch_without_alternatives_shows_notice(make_engine, ladder_questions):
    async def scenario():
        engine = make_engine(ladder_questions, bank=(), info_message_seconds=0.01)
        await engine.start_game(["Science"])
        assert await engine.use_switch_question() is False
        assert engine.state.used_lifelines.switch
        assert engine.current_question.id == "q-1"
        assert engine.state.info_message == NO_ALTERNATIVE_MESSAGE
        await asyncio.sleep(0.05)
        assert engine.state.info_message is None
        engine.reset()

    asyncio.run(scenario())


def test_switch_skips_seen_and_upcoming_questions(make_engine, ladder_questions):
    async def scenario():
        # The source hands back a question that is already queued for level 2
        engine = make_engine(ladder_questions, extra=[ladder_questions[1]], bank=())
        await engine.start_game(["Science"])
        assert await engine.use_switch_question() is False
        assert engine.current_question.id == "q-1"
        engine.reset()

    asyncio.run(scenario())


def test_switch_result_is_discarded_after_reset(make_engine, ladder_questions):
    class SlowSource:
        def __init__(self):
            self.release = asyncio.Event()
            self.first = True

        async def generate(self, categories, count):
            if self.first:
                self.first = False
                return list(ladder_questions)
            await self.release.wait()
            return [make_question(42)]

    async def scenario():
        source = SlowSource()
        engine = GameEngine(source=source, seed=1, tick_interval=60.0)
        await engine.start_game(["Science"])
        pending = asyncio.ensure_future(engine.use_switch_question())
        await asyncio.sleep(0)
        engine.reset()
        source.release.set()
        assert await pending is False
        assert engine.state is None

    asyncio.run(scenario())


def test_failing_source_falls_back_to_bank():
    async def scenario():
        source = FailingSource()
        engine = GameEngine(source=source, seed=3, tick_interval=60.0)
        snapshot = await engine.start_game(["History"])
        assert source.calls == 1
        assert len(snapshot.questions) == 15
        assert all(question.id.startswith("fallback-") for question in snapshot.questions)
        engine.reset()

    asyncio.run(scenario())


def test_start_failure_keeps_previous_state(make_engine, ladder_questions):
    async def scenario():
        engine = make_engine(ladder_questions, bank=())
        await engine.start_game(["Science"])
        before = engine.state
        with pytest.raises(GameStartError):
            await engine.start_game(["Science"])
        assert engine.state is before
        with pytest.raises(GameStartError):
            await engine.start_game([])
        engine.reset()

    asyncio.run(scenario())


def test_listener_errors_are_isolated(make_engine, ladder_questions, listener):
    class Broken(EngineListener):
        def on_state_changed(self, snapshot, provisional_choice):
            raise RuntimeError("boom")

    async def scenario():
        engine = make_engine(ladder_questions)
        engine.subscribe(Broken())
        await engine.start_game(["Science"])
        engine.select_choice(0)
        assert listener.states[-1][1] == 0
        engine.reset()

    asyncio.run(scenario())


def test_snapshot_serialises_to_camel_case(make_engine, ladder_questions):
    async def scenario():
        engine = make_engine(ladder_questions)
        await engine.start_game(["Science"])
        data = engine.snapshot().to_dict()
        assert data["level"] == 1
        assert data["usedLifelines"] == {"fiftyFifty": False, "audience": False, "switch": False}
        assert data["questions"][0]["correctIndex"] == ladder_questions[0].correct_index
        assert data["phase"] == "AWAITING_CHOICE"
        engine.reset()

    asyncio.run(scenario())


def test_switch_result_is_discarded_after_walk_away(ladder_questions, listener):
    class GatedSource:
        def __init__(self):
            self.release = asyncio.Event()
            self.calls = 0

        async def generate(self, categories, count):
            self.calls += 1
            if self.calls == 1:
                return list(ladder_questions)
            await self.release.wait()
            return [make_question(77)]

    async def scenario():
        source = GatedSource()
        engine = GameEngine(source=source, seed=2, tick_interval=60.0)
        engine.subscribe(listener)
        await engine.start_game(["Science"])
        pending = asyncio.ensure_future(engine.use_switch_question())
        await asyncio.sleep(0)
        engine.walk_away()
        source.release.set()
        assert await pending is False
        assert engine.current_question.id == "q-1"
        assert "q-77" not in engine.state.seen_question_ids
        assert listener.endings == [(TITLE_WALK_AWAY, 0)]

    asyncio.run(scenario())


def test_failed_first_start_leaves_engine_idle():
    async def scenario():
        engine = GameEngine(source=FailingSource(), bank=(), tick_interval=60.0)
        with pytest.raises(GameStartError):
            await engine.start_game(["Science"])
        assert engine.state is None
        assert engine.phase == Phase.IDLE

    asyncio.run(scenario())


def test_old_timer_stops_while_next_game_is_prepared(ladder_questions, listener):
    class SlowRestartSource:
        def __init__(self):
            self.calls = 0

        async def generate(self, categories, count):
            self.calls += 1
            if self.calls > 1:
                await asyncio.sleep(0.3)
            return [make_question(n + 100 * self.calls, correct_index=0) for n in range(1, 16)]

    async def scenario():
        engine = GameEngine(source=SlowRestartSource(), seed=5, tick_interval=0.005)
        engine.subscribe(listener)
        await engine.start_game(["Science"])
        snapshot = await engine.start_game(["Science"])
        assert listener.endings == []
        assert listener.resolutions == []
        # 30 ticks would have exhausted the first question during the slow restart
        assert len(listener.ticks) < 30
        assert snapshot.current_question.id == "q-201"
        assert engine.timer_running
        engine.reset()

    asyncio.run(scenario())


def test_failed_restart_resumes_the_running_game(make_engine, ladder_questions):
    async def scenario():
        engine = make_engine(ladder_questions, bank=())
        await engine.start_game(["Science"])
        with pytest.raises(GameStartError):
            await engine.start_game(["Science"])
        assert engine.timer_running
        assert engine.phase == Phase.AWAITING_CHOICE
        engine.reset()

    asyncio.run(scenario())
