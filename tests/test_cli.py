import asyncio

from typer.testing import CliRunner

from millionaire.core.engine import GameEngine
from millionaire.core.ladder import CATEGORIES
from millionaire.narrator import GameNarrator
from millionaire.services import cli
from millionaire.services.cli import _dispatch, _play_async, app

from conftest import StaticSource, make_question

runner = CliRunner()


def test_categories_command_lists_all():
    result = runner.invoke(app, ["categories"])
    assert result.exit_code == 0
    assert result.output.split("\n")[: len(CATEGORIES)] == list(CATEGORIES)


def test_ladder_command_prints_top_prize():
    result = runner.invoke(app, ["ladder"])
    assert result.exit_code == 0
    assert "$1,000,000" in result.output


def test_play_with_bad_config_exits_with_error(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{broken")
    result = runner.invoke(app, ["play", "--config", str(path), "-c", "Science"])
    assert result.exit_code == 1
    assert "Invalid JSON" in result.output


def test_dispatch_maps_commands_to_intents():
    async def scenario():
        questions = [make_question(n, correct_index=0) for n in range(1, 16)]
        engine = GameEngine(source=StaticSource(questions), seed=1, tick_interval=60.0)
        narrator = GameNarrator()
        engine.subscribe(narrator)
        await engine.start_game(["Science"])

        assert await _dispatch(engine, narrator, "c") is True
        assert engine.provisional_choice == 2
        await _dispatch(engine, narrator, "50")
        assert engine.state.used_lifelines.fifty_fifty
        await _dispatch(engine, narrator, "a")
        await _dispatch(engine, narrator, "lock")
        assert engine.state.correct is True
        assert await _dispatch(engine, narrator, "quit") is False
        assert engine.state is None

    asyncio.run(scenario())


def test_play_again_starts_a_fresh_game(monkeypatch):
    answers = iter(["w", "y", "", "q"])
    prompts = []

    def fake_input(prompt=""):
        prompts.append(prompt)
        return next(answers)

    monkeypatch.setattr(cli.console, "input", fake_input)

    async def scenario():
        questions = [make_question(n) for n in range(1, 31)]
        source = StaticSource(questions)
        engine = GameEngine(source=source, seed=1, tick_interval=60.0)
        narrator = GameNarrator()
        engine.subscribe(narrator)
        code = await _play_async(engine, narrator, ["Science"], 0.0)
        return code, source, narrator

    code, source, narrator = asyncio.run(scenario())
    assert code == 0
    assert len(source.calls) == 2
    assert source.calls[1][0] == sorted(CATEGORIES)
    assert narrator.final_title == "You walked away with:"
    assert any("Play again" in prompt for prompt in prompts)
