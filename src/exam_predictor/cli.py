"""CLI entrypoints for exam-predictor."""

from __future__ import annotations

from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from exam_predictor.config import AppConfig
from exam_predictor.core.extract import UploadedFile
from exam_predictor.core.printing import print_prediction, print_prediction_rows
from exam_predictor.errors import FileReadError, PredictorError, REMEDIATION_HINTS, user_message
from exam_predictor.export import format_questions_text, write_download
from exam_predictor.history import DuckDBHistory
from exam_predictor.models import Prediction, PredictionSettings
from exam_predictor.pipeline.generation import build_generation_client
from exam_predictor.pipeline.orchestrator import Notice, PredictionOrchestrator

app = typer.Typer(
    no_args_is_help=True,
    help="Commands for predicting likely exam questions from study documents.",
)
console = Console()

NOTICE_STYLES = {"info": "cyan", "success": "green", "warning": "yellow", "error": "red"}

FILE_ARGUMENT = typer.Argument(..., help="Study document to analyse (.txt, .pdf or .docx).")
PREDICTION_ID_ARGUMENT = typer.Argument(..., help="ID of a saved prediction.")
QUESTION_TYPE_OPTION = typer.Option(
    "theory",
    "--type",
    "-t",
    help="Question type: theory or objective.",
)
COUNT_OPTION = typer.Option(
    5,
    "--count",
    "-n",
    help="Number of questions to predict (clamped to 1-20).",
)
SAVE_OPTION = typer.Option(
    True,
    "--save/--no-save",
    help="Save the prediction to history.",
)
OUTPUT_OPTION = typer.Option(
    None,
    "--output",
    "-o",
    help="Also write the questions as text to this file or directory.",
)


def _status(message: str) -> None:
    console.print(f"[dim]{escape(message)}[/dim]")


def _notice(notice: Notice) -> None:
    style = NOTICE_STYLES.get(notice.level, "white")
    console.print(f"[{style}]{escape(notice.title)}:[/{style}] {escape(notice.description)}")


def _to_bad_parameter(exc: Exception) -> typer.BadParameter:
    return typer.BadParameter(str(exc))


def _orchestrator(cfg: AppConfig) -> PredictionOrchestrator:
    return PredictionOrchestrator(
        history=DuckDBHistory(cfg.duckdb_path, on_status=_status),
        generate=build_generation_client(cfg, on_status=_status),
        max_retries=cfg.max_retries,
        retry_base_delay=cfg.retry_base_delay,
        on_status=_status,
        on_notice=_notice,
    )


def _settings(question_type: str, count: int) -> PredictionSettings:
    try:
        return PredictionSettings(question_type=question_type, number_of_questions=count)
    except ValidationError as exc:
        raise typer.BadParameter(f"Invalid settings: {exc.errors()[0]['msg']}") from exc


def _open_upload(file: Path) -> UploadedFile:
    try:
        return UploadedFile.from_path(file)
    except FileReadError as exc:
        raise _to_bad_parameter(exc) from exc


def _require_prediction(orchestrator: PredictionOrchestrator, prediction_id: str) -> Prediction:
    prediction = orchestrator.get(prediction_id)
    if prediction is None:
        raise typer.BadParameter(f"No saved prediction with id {prediction_id!r}.")
    return prediction


def _print_failure(error: PredictorError | None) -> None:
    message = user_message(error) if error is not None else "There was an error generating predictions."
    hints = "\n".join(f"- {hint}" for hint in REMEDIATION_HINTS)
    console.print(
        Panel(
            f"{escape(message)}\n\n{hints}",
            title="Prediction failed",
            border_style="red",
        )
    )


def _finish(orchestrator: PredictionOrchestrator, prediction: Prediction | None, save: bool, output: Path | None) -> None:
    if prediction is None:
        _print_failure(orchestrator.last_error)
        raise typer.Exit(code=1)
    print_prediction(prediction, console)
    if save:
        orchestrator.save(prediction)
    if output is not None:
        path = write_download(prediction, output)
        console.print(f"[bold green]Wrote {len(prediction.questions)} questions to {path}[/bold green]")


@app.command("config")
def show_config() -> None:
    """Print the current app configuration."""
    cfg = AppConfig()
    console.print(f"[bold]Model:[/bold] {cfg.model}")
    console.print(f"[bold]Backend URL:[/bold] {cfg.base_url}")
    console.print(f"[bold]API key:[/bold] {'set' if cfg.openrouter_api_key else 'not set'}")
    console.print(f"[bold]Max content chars:[/bold] {cfg.max_content_chars}")
    console.print(f"[bold]Retries:[/bold] {cfg.max_retries} (base delay {cfg.retry_base_delay:g}s)")
    console.print(f"[bold]DuckDB path:[/bold] {cfg.duckdb_path}")


@app.command("init-db")
def initialize_database() -> None:
    """Create the DuckDB database used for prediction history."""
    cfg = AppConfig()
    DuckDBHistory(cfg.duckdb_path).initialize()
    console.print(f"[green]Initialized DuckDB:[/green] {cfg.duckdb_path}")


@app.command("predict")
def predict_command(
    file: Path = FILE_ARGUMENT,
    question_type: str = QUESTION_TYPE_OPTION,
    count: int = COUNT_OPTION,
    save: bool = SAVE_OPTION,
    output: Path | None = OUTPUT_OPTION,
) -> None:
    """Predict exam questions for a study document."""
    settings = _settings(question_type, count)
    upload = _open_upload(file)
    orchestrator = _orchestrator(AppConfig())
    prediction = orchestrator.predict(upload, settings)
    _finish(orchestrator, prediction, save=save, output=output)


@app.command("regenerate")
def regenerate_command(
    file: Path = FILE_ARGUMENT,
    prediction_id: str = PREDICTION_ID_ARGUMENT,
    save: bool = SAVE_OPTION,
    output: Path | None = OUTPUT_OPTION,
) -> None:
    """Generate a fresh prediction with the settings of a saved one."""
    orchestrator = _orchestrator(AppConfig())
    previous = _require_prediction(orchestrator, prediction_id)
    orchestrator.open_prediction(previous.id)
    upload = _open_upload(file)
    prediction = orchestrator.regenerate(upload, previous.settings)
    _finish(orchestrator, prediction, save=save, output=output)


@app.command("history")
def history_command() -> None:
    """List saved predictions, newest first."""
    orchestrator = _orchestrator(AppConfig())
    print_prediction_rows(orchestrator.predictions, console)


@app.command("show")
def show_command(prediction_id: str = PREDICTION_ID_ARGUMENT) -> None:
    """Print a saved prediction."""
    orchestrator = _orchestrator(AppConfig())
    print_prediction(_require_prediction(orchestrator, prediction_id), console)


@app.command("delete")
def delete_command(prediction_id: str = PREDICTION_ID_ARGUMENT) -> None:
    """Delete a saved prediction."""
    orchestrator = _orchestrator(AppConfig())
    if not orchestrator.delete(prediction_id):
        console.print(f"[yellow]No saved prediction with id {escape(prediction_id)}; nothing deleted.[/yellow]")


@app.command("export")
def export_command(
    prediction_id: str = PREDICTION_ID_ARGUMENT,
    output: Path | None = OUTPUT_OPTION,
) -> None:
    """Print a saved prediction as plain text, or write it to a file."""
    orchestrator = _orchestrator(AppConfig())
    prediction = _require_prediction(orchestrator, prediction_id)
    if output is None:
        console.print(format_questions_text(prediction.questions), markup=False, highlight=False)
        return
    path = write_download(prediction, output)
    console.print(f"[bold green]Wrote {len(prediction.questions)} questions to {path}[/bold green]")


def main() -> None:
    """Console script entry point."""
    app()


if __name__ == "__main__":
    main()
