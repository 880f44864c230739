"""Terminal rendering of the game through rich."""

from typing import List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .core.engine import EngineListener, GameSnapshot, Phase
from .core.ladder import LADDER, format_money, is_checkpoint, prize_for_level

console = Console()

CHOICE_LETTERS = ("A", "B", "C", "D")
TICK_ANNOUNCEMENTS = {30, 20, 10, 5, 4, 3, 2, 1}


def build_ladder_table(level: Optional[int] = None, *, game_over: bool = False) -> Table:
    """Return the money ladder, highest rung first, marking the current level."""
    table = Table(show_header=True, header_style="bold cyan", title="Money Ladder")
    table.add_column("Level", justify="right", width=6)
    table.add_column("Prize", justify="right", width=12)

    for entry in reversed(LADDER):
        label = format_money(entry.amount)
        style = "bold yellow" if is_checkpoint(entry.level) else ""
        if level is not None and entry.level == level and not game_over:
            label = f"> {label}"
            style = "bold reverse"
        elif level is not None and entry.level < level:
            style = "green"
        table.add_row(str(entry.level), label, style=style)
    return table


class GameNarrator(EngineListener):
    """Prints question panels, timer warnings, poll results and the final score."""

    def __init__(self, out: Optional[Console] = None) -> None:
        self.console = out or console
        self.final_title: Optional[str] = None
        self.final_winnings: Optional[int] = None
        self._last_question_id: Optional[str] = None

    def show_help(self) -> None:
        self.console.print(
            "[dim]Commands: a/b/c/d select · lock · 50 (fifty-fifty) · poll · switch · walk · quit[/dim]"
        )

    def show_ladder(self, level: Optional[int] = None) -> None:
        self.console.print(build_ladder_table(level))

    # ------------------------------------------------------------------
    # EngineListener callbacks
    # ------------------------------------------------------------------

    def on_state_changed(self, snapshot: GameSnapshot, provisional_choice: Optional[int]) -> None:
        if snapshot.phase != Phase.AWAITING_CHOICE:
            return
        question = snapshot.current_question
        if question.id != self._last_question_id:
            self._last_question_id = question.id
            self.console.rule(
                f"Level {snapshot.level} · playing for {format_money(prize_for_level(snapshot.level))}"
            )
        self._render_question(snapshot, provisional_choice)

    def on_timer_tick(self, remaining: int, total: int) -> None:
        if remaining in TICK_ANNOUNCEMENTS:
            style = "red" if remaining <= 5 else "yellow"
            self.console.print(f"[{style}]⏱ {remaining}s left[/{style}]")

    def on_answer_resolved(self, correct: bool, locked_choice: Optional[int], correct_index: int) -> None:
        answer = CHOICE_LETTERS[correct_index]
        if correct:
            self.console.print(f"[bold green]Correct![/bold green] The answer is {answer}.")
        elif locked_choice is None:
            self.console.print(f"[bold red]Out of time.[/bold red] The answer was {answer}.")
        else:
            self.console.print(f"[bold red]Wrong answer.[/bold red] The answer was {answer}.")

    def on_game_ended(self, title: str, winnings: int) -> None:
        self.final_title = title
        self.final_winnings = winnings
        body = Text(f"You won: {format_money(winnings)}", style="bold")
        self.console.print(Panel(body, title=title, border_style="magenta"))

    def on_poll_results(self, percentages: List[int]) -> None:
        table = Table(show_header=True, header_style="bold magenta", title="Ask the Audience")
        table.add_column("Choice", width=8)
        table.add_column("Votes", justify="right", width=6)
        table.add_column("", width=25)
        for letter, percentage in zip(CHOICE_LETTERS, percentages):
            bar = "█" * max(0, percentage // 4)
            table.add_row(letter, f"{percentage}%", bar)
        self.console.print(table)

    # ------------------------------------------------------------------
    # Rendering helpers
    # ------------------------------------------------------------------

    def _render_question(self, snapshot: GameSnapshot, provisional_choice: Optional[int]) -> None:
        question = snapshot.current_question
        lines = Text()
        lines.append(f"{question.prompt}\n", style="bold")
        lines.append(f"[{question.category} · {question.difficulty.value}]\n\n", style="dim")
        for index, (letter, choice) in enumerate(zip(CHOICE_LETTERS, question.choices)):
            if index in snapshot.eliminated_choices:
                lines.append(f"  {letter}: ----\n", style="dim strike")
            elif index == provisional_choice:
                lines.append(f"> {letter}: {choice}\n", style="bold yellow")
            else:
                lines.append(f"  {letter}: {choice}\n")

        used = snapshot.used_lifelines
        lifelines = " ".join(
            f"[{'x' if spent else ' '}] {name}"
            for name, spent in (("50:50", used.fifty_fifty), ("Poll", used.audience), ("Switch", used.switch))
        )
        lines.append(f"\nLifelines: {lifelines}", style="cyan")
        lines.append(f"\nTime: {snapshot.remaining_time}/{snapshot.total_time}s", style="cyan")

        self.console.print(Panel(lines, border_style="blue"))
        if snapshot.info_message:
            self.console.print(f"[italic yellow]{snapshot.info_message}[/italic yellow]")
