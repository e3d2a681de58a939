"""Rich console rendering of predictions."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from exam_predictor.models import Prediction


def _probability_style(probability: int) -> str:
    if probability > 70:
        return "green"
    if probability > 40:
        return "yellow"
    return "red"


def print_prediction_rows(predictions: list[Prediction], console: Console) -> None:
    """Print a one-line summary per saved prediction."""
    if not predictions:
        console.print("[dim]No past predictions. Saved predictions will appear here.[/dim]")
        return
    table = Table(title=f"{len(predictions)} saved prediction{'s' if len(predictions) != 1 else ''}")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Date")
    table.add_column("File")
    table.add_column("Type")
    table.add_column("Questions", justify="right")
    for prediction in predictions:
        table.add_row(
            prediction.id,
            prediction.date,
            escape(prediction.title),
            prediction.settings.question_type,
            str(len(prediction.questions)),
        )
    console.print(table)


def print_prediction(prediction: Prediction, console: Console) -> None:
    """Print every question of a prediction with its answer or options."""
    console.print(f"[bold]{escape(prediction.title)}[/bold] [dim]({prediction.id}, {prediction.date})[/dim]")
    for number, question in enumerate(prediction.questions, start=1):
        style = _probability_style(question.probability)
        console.print(
            f"\n[bold]{number}. {escape(question.text)}[/bold] "
            f"[{style}]{question.probability}%[/{style}]"
        )
        if question.options:
            for option in question.options:
                marker = "[green]✓[/green]" if option.is_correct else " "
                console.print(f"  {marker} {escape(option.text)}")
        elif question.answer:
            console.print(f"  [italic]Answer:[/italic] {escape(question.answer)}")
        console.print(f"  [dim]Source: {escape(question.source)}[/dim]")
