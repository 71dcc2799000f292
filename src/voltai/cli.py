"""Command line interface for VoltAI.

stdout carries machine-readable results only; logging and status messages
go to stderr.
"""

from __future__ import annotations

import json
import logging
from enum import Enum
from pathlib import Path
from typing import Any, NoReturn, Optional

import typer
from rich.console import Console
from rich.markup import escape

from voltai.config import AppConfig
from voltai.index.indexer import DirectoryNotFoundError, Indexer
from voltai.index.search import QueryEngine
from voltai.index.storage import (
    IndexCorruptError,
    IndexNotFoundError,
    IndexStore,
    IndexUnreadableError,
    IndexWriteError,
)
from voltai.index.tfidf import TfidfIndexer
from voltai.ingestion.extractors import extract_text
from voltai.llm.orchestrator import (
    Answer,
    LlmConfig,
    LlmOrchestrator,
    NoModelAvailable,
    ProcessError,
    Timeout,
    render_fallback,
)
from voltai.models import QueryResult
from voltai.nlp.ner import extract_entities
from voltai.nlp.sentiment import analyze_sentiment
from voltai.nlp.summarization import summarize
from voltai.utils.files import parse_size

EXIT_DIRECTORY_NOT_FOUND = 1
EXIT_INDEX_NOT_FOUND = 2
EXIT_INDEX_CORRUPT = 3
EXIT_INPUT_UNREADABLE = 4
EXIT_INDEX_WRITE_FAILED = 5

err_console = Console(stderr=True)
app = typer.Typer(help="VoltAI - local TF-IDF document search with optional LLM answers")


class OutputFormat(str, Enum):
    json = "json"
    text = "text"
    markdown = "markdown"


def _setup_logging(verbose: bool, default_level: str = "WARNING") -> None:
    level = logging.DEBUG if verbose else getattr(logging, default_level.upper(), logging.WARNING)
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s", force=True)


def _fail(message: str, code: int) -> NoReturn:
    err_console.print(f"[red]Error:[/red] {escape(message)}", soft_wrap=True)
    raise typer.Exit(code=code)


def _resolve(path: Path | None, config: AppConfig) -> Path:
    if path is not None:
        config.index_path = path
    return config.resolve_index_path(Path.cwd()).absolute()


def _emit(payload: Any, output: Path | None) -> None:
    data = json.dumps(payload, indent=2, ensure_ascii=False)
    if output is None:
        typer.echo(data)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(data + "\n", encoding="utf-8")
    err_console.print(f"Wrote results to [bold]{escape(str(output))}[/bold]")


def _load_input_text(path: Path) -> str:
    try:
        return extract_text(path)
    except Exception as exc:
        _fail(f"Cannot read {path}: {exc}", EXIT_INPUT_UNREADABLE)


@app.command()
def index(
    directory: Path = typer.Option(..., "--dir", "-d", help="Directory to index"),
    out: Optional[Path] = typer.Option(None, "--out", "-o", help="Index file to write"),
    exclude_pattern: Optional[str] = typer.Option(
        None, "--exclude-pattern", help="Glob of files or directories to skip"
    ),
    max_file_size: Optional[str] = typer.Option(
        None, "--max-file-size", help="Skip files larger than this, e.g. 10MB"
    ),
    workers: Optional[int] = typer.Option(None, "--workers", "-w", help="Worker processes"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Index a directory of .txt, .md, .csv, .json and .pdf files."""
    config = AppConfig.from_env()
    _setup_logging(verbose, config.log_level)

    size_limit = None
    if max_file_size is not None:
        try:
            size_limit = parse_size(max_file_size)
        except ValueError as exc:
            raise typer.BadParameter(str(exc), param_hint="--max-file-size") from exc

    resolved_out = _resolve(out, config)
    store = IndexStore(resolved_out)
    indexer = Indexer(TfidfIndexer(workers=workers or config.workers), store)

    err_console.print(
        f"Indexing [bold]{escape(str(directory))}[/bold] "
        f"into [bold]{escape(str(resolved_out))}[/bold]..."
    )
    try:
        stats = indexer.index(
            directory.absolute(), exclude_pattern=exclude_pattern, max_file_size=size_limit
        )
    except DirectoryNotFoundError as exc:
        _fail(str(exc), EXIT_DIRECTORY_NOT_FOUND)
    except IndexWriteError as exc:
        _fail(str(exc), EXIT_INDEX_WRITE_FAILED)

    _emit(
        {
            "index": str(resolved_out),
            "indexed": stats.indexed,
            "empty": stats.empty,
            "failed": stats.failed,
        },
        None,
    )


def _llm_outcome(
    config: AppConfig, model: str | None, timeout: float | None, question: str, result: QueryResult
) -> tuple[str | None, str]:
    orchestrator = LlmOrchestrator(
        LlmConfig(
            command=config.llm_command,
            model=model or config.llm_model,
            timeout=timeout if timeout is not None else config.llm_timeout,
        )
    )
    outcome = orchestrator.ask(question, result.results)
    if isinstance(outcome, Answer):
        return outcome.text, "answered"
    if isinstance(outcome, Timeout):
        err_console.print(f"[yellow]Model timed out after {outcome.seconds:.0f}s.[/yellow]")
        return None, "timeout"
    if isinstance(outcome, ProcessError):
        err_console.print(
            f"[yellow]Model failed (exit {outcome.exit_code}):[/yellow] {escape(outcome.stderr)}"
        )
        return None, "process_error"
    if isinstance(outcome, NoModelAvailable):
        err_console.print(f"[yellow]No model available:[/yellow] {escape(outcome.reason)}")
    return None, "no_model"


def _render_text(result: QueryResult, answer: str | None, show_scores: bool) -> str:
    if result.no_match:
        return "No relevant documents found."
    lines = []
    if answer:
        lines.extend([answer, "", "Sources:"])
        for hit in result.results:
            score = f" ({hit.score:.4f})" if show_scores else ""
            lines.append(f"  [{hit.rank}] {hit.path}{score}")
        return "\n".join(lines)
    if show_scores:
        return "\n\n".join(
            f"[{hit.rank}] {hit.path} ({hit.score:.4f})\n{hit.excerpt}" for hit in result.results
        )
    return render_fallback(result.results)


def _render_markdown(result: QueryResult, answer: str | None, show_scores: bool) -> str:
    if result.no_match:
        return "_No relevant documents found._"
    lines = []
    if answer:
        lines.extend(["## Answer", "", answer, ""])
    lines.extend(["## Sources", ""])
    for hit in result.results:
        score = f" ({hit.score:.4f})" if show_scores else ""
        lines.append(f"{hit.rank}. `{hit.path}`{score}")
        if not answer:
            lines.append(f"   > {hit.excerpt}")
    return "\n".join(lines)


@app.command()
def query(
    index_file: Optional[Path] = typer.Option(None, "--index", "-i", help="Index file to query"),
    question: str = typer.Option(..., "--query", "-q", help="Query text"),
    top_k: int = typer.Option(3, "--top-k", "-k", min=1, help="Number of documents to rank"),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Local model name"),
    show_scores: bool = typer.Option(False, "--show-scores", help="Include similarity scores"),
    output_format: OutputFormat = typer.Option(
        OutputFormat.text, "--format", case_sensitive=False, help="Output format"
    ),
    no_llm: bool = typer.Option(False, "--no-llm", help="Only rank documents"),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Model timeout in seconds"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Rank indexed documents against a query and optionally ask a local model."""
    config = AppConfig.from_env()
    _setup_logging(verbose, config.log_level)
    store = IndexStore(_resolve(index_file, config))

    try:
        loaded = store.load()
    except (IndexNotFoundError, IndexUnreadableError) as exc:
        _fail(str(exc), EXIT_INDEX_NOT_FOUND)
    except IndexCorruptError as exc:
        _fail(str(exc), EXIT_INDEX_CORRUPT)

    result = QueryEngine(loaded, excerpt_chars=config.excerpt_chars).search(question, top_k=top_k)

    answer = None
    llm_status = "skipped"
    if not result.no_match and not no_llm:
        answer, llm_status = _llm_outcome(config, model, timeout, question, result)

    if output_format is OutputFormat.json:
        hits = []
        for hit in result.results:
            item = hit.to_dict()
            if not show_scores:
                item.pop("score")
            hits.append(item)
        _emit(
            {
                "query": question,
                "no_match": result.no_match,
                "answer": answer,
                "llm_status": llm_status,
                "results": hits,
            },
            None,
        )
    elif output_format is OutputFormat.markdown:
        typer.echo(_render_markdown(result, answer, show_scores))
    else:
        typer.echo(_render_text(result, answer, show_scores))


@app.command()
def info(
    index_file: Optional[Path] = typer.Option(None, "--index", "-i", help="Index file"),
) -> None:
    """Show document and term counts of an index."""
    config = AppConfig.from_env()
    store = IndexStore(_resolve(index_file, config))
    try:
        _emit(store.describe(), None)
    except (IndexNotFoundError, IndexUnreadableError) as exc:
        _fail(str(exc), EXIT_INDEX_NOT_FOUND)
    except IndexCorruptError as exc:
        _fail(str(exc), EXIT_INDEX_CORRUPT)


@app.command()
def ner(
    input_path: Path = typer.Option(..., "--input", "-i", help="File to analyse"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write JSON here"),
) -> None:
    """Extract named entities (people, places, organisations, dates, emails, money)."""
    text = _load_input_text(input_path)
    entities = extract_entities(text)
    _emit({"file": str(input_path), "entities": [entity.to_dict() for entity in entities]}, output)


@app.command()
def sentiment(
    input_path: Path = typer.Option(..., "--input", "-i", help="File to analyse"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write JSON here"),
) -> None:
    """Score the overall sentiment of a document."""
    text = _load_input_text(input_path)
    _emit({"file": str(input_path), "sentiment": analyze_sentiment(text).to_dict()}, output)


@app.command("summarize")
def summarize_command(
    input_path: Path = typer.Option(..., "--input", "-i", help="File to summarise"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write JSON here"),
    sentences: Optional[int] = typer.Option(
        None, "--sentences", "-n", min=1, help="Number of sentences to keep"
    ),
) -> None:
    """Produce an extractive summary of a document."""
    text = _load_input_text(input_path)
    selected = summarize(text, sentences=sentences)
    _emit(
        {"file": str(input_path), "sentences": selected, "summary": " ".join(selected)},
        output,
    )
