"""Command-line interface for clipscribe using Typer.

Features:
- `transcribe` command: chunked transcription with live progress, ETA, a
  content-hash cache and txt/json/srt output.
- `subclip` command: carve a caption range from a transcribed file, with
  per-range speed edits and a trim, and export it as WAV.
- `stretch` command: WSOLA time-stretch a whole file.
- `cache` commands: inspect and remove cached transcripts.
"""

import pathlib
import shutil
from contextlib import nullcontext
from importlib import import_module
from typing import Annotated

import typer
from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from clipscribe import __version__
from clipscribe.audio.transforms import SpeedTransform, apply_transforms
from clipscribe.audio.wav import encode_wav
from clipscribe.cache.store import ContentCache, JsonFileStore, hash_file
from clipscribe.config import DisplayConfig, TranscriptionConfig, UIConfig
from clipscribe.errors import ClipscribeError, ValidationError
from clipscribe.formatting import get_formatter_spec, output_path_for, render_transcript
from clipscribe.session import PreviewSlot, SessionController
from clipscribe.timestamps.models import CacheEntry
from clipscribe.transcription import (
    ProgressUpdate,
    Transcriber,
    TranscriptionOrchestrator,
    process_file,
)
from clipscribe.utils.audio_io import load_audio
from clipscribe.utils.cancel import CancelToken, install_signal_handlers
from clipscribe.utils.constant import (
    CACHE_DIR,
    DEFAULT_DEBUG_CHUNKS,
    DEFAULT_MODEL_NAME,
    DEFAULT_NUM_CHUNKS,
    DEFAULT_TRANSCRIBER,
    DEFAULT_USE_CHUNKING,
    DISPLAY_MAX_CHARS,
    DISPLAY_MIN_CHARS,
    SUPPORTED_EXTENSIONS,
)
from clipscribe.utils.logging_config import configure_logging

# Exit code used when a run is cancelled with Ctrl+C.
EXIT_CANCELLED = 130


def version_callback(value: bool) -> None:
    """Show the application's version and exit.

    Args:
        value: When True, print the version and exit.

    Raises:
        typer.Exit: Always raised after printing when value is True.

    """
    if value:
        print(f"clipscribe version: {__version__}")
        raise typer.Exit()


app = typer.Typer(
    name="clipscribe",
    help="Transcribe media files and carve re-timed sub-clips from the transcript.",
    add_completion=False,
)
cache_app = typer.Typer(help="Inspect and manage cached transcripts.", add_completion=False)
app.add_typer(cache_app, name="cache")


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            help="Show the application's version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
) -> None:
    """Show help when no subcommand is given.

    Args:
        ctx: Typer context.
        version: Whether to print version and exit.

    Raises:
        typer.Exit: Raised to terminate after displaying help or version.

    """
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


def load_transcriber(import_path: str) -> Transcriber:
    """Resolve a ``module:attribute`` import path to a transcriber.

    Classes and zero-argument factories are called; any other attribute is
    used as the transcriber itself.

    Raises:
        typer.BadParameter: If the path is empty or cannot be imported.
    """
    if not import_path or ":" not in import_path:
        raise typer.BadParameter(
            "Provide --transcriber (or CLIPSCRIBE_TRANSCRIBER) as 'module:attribute'."
        )
    module_name, _, attr = import_path.partition(":")
    try:
        target = getattr(import_module(module_name), attr)
    except (ImportError, AttributeError) as exc:
        raise typer.BadParameter(f"Cannot load transcriber '{import_path}': {exc}") from exc
    if isinstance(target, type) or (callable(target) and not hasattr(target, "transcribe")):
        target = target()
    return target


def _check_input(path: pathlib.Path) -> None:
    if not path.is_file():
        raise typer.BadParameter(f"File not found: {path}")
    if path.suffix.lower() not in SUPPORTED_EXTENSIONS:
        supported = ", ".join(sorted(SUPPORTED_EXTENSIONS))
        raise typer.BadParameter(f"Unsupported file type '{path.suffix}'. Supported: {supported}")


def _fail(exc: Exception) -> typer.Exit:
    typer.secho(f"Error: {exc}", fg=typer.colors.RED, err=True)
    return typer.Exit(code=1)


def _parse_pair(value: str, what: str) -> tuple[str, str]:
    first, sep, second = value.partition(":")
    if not sep:
        raise typer.BadParameter(f"Expected {what}, got '{value}'")
    return first, second


def _print_settings(
    console: Console, input_file: pathlib.Path, config: TranscriptionConfig, output_format: str
) -> None:
    table = Table(title="Transcription Settings", show_header=True, header_style="bold magenta")
    table.add_column("Setting", style="green")
    table.add_column("Value", style="yellow")
    table.add_row("Input", input_file.name)
    table.add_row("Model", config.model_name)
    table.add_row("Chunking", str(config.use_chunking))
    if config.use_chunking:
        table.add_row("Chunks", str(config.num_chunks))
    if config.debug_mode:
        table.add_row("Debug Chunks", str(config.debug_chunks))
    table.add_row("Output Format", output_format)
    console.print(table)


@app.command()
def transcribe(
    input_file: Annotated[
        pathlib.Path,
        typer.Argument(help="Audio or video file to transcribe.", show_default=False),
    ],
    # Transcriber
    transcriber_path: Annotated[
        str,
        typer.Option(
            "--transcriber",
            help="Import path 'module:attribute' of the transcriber to use.",
        ),
    ] = DEFAULT_TRANSCRIBER,
    model_name: Annotated[
        str,
        typer.Option("--model", help="Model identifier passed to the transcriber."),
    ] = DEFAULT_MODEL_NAME,
    # Chunking
    chunking: Annotated[
        bool,
        typer.Option("--chunking/--no-chunking", help="Split the file into equal chunks."),
    ] = DEFAULT_USE_CHUNKING,
    num_chunks: Annotated[
        int,
        typer.Option("--num-chunks", min=1, help="Number of chunks when chunking."),
    ] = DEFAULT_NUM_CHUNKS,
    debug: Annotated[
        bool,
        typer.Option("--debug", help="Only transcribe the first --debug-chunks chunks."),
    ] = False,
    debug_chunks: Annotated[
        int,
        typer.Option("--debug-chunks", min=1, help="Chunk limit in debug mode."),
    ] = DEFAULT_DEBUG_CHUNKS,
    # Cache
    cache_dir: Annotated[
        pathlib.Path,
        typer.Option("--cache-dir", help="Directory for cached transcripts."),
    ] = CACHE_DIR,
    no_cache: Annotated[
        bool,
        typer.Option("--no-cache", help="Neither read nor write the transcript cache."),
    ] = False,
    reuse_cache: Annotated[
        bool | None,
        typer.Option(
            "--reuse-cache/--reprocess",
            help="Reuse or ignore a cached transcript without asking.",
            show_default=False,
        ),
    ] = None,
    # Outputs
    output_format: Annotated[
        str,
        typer.Option("--output-format", "-f", help="Output format (txt, json, srt)."),
    ] = "txt",
    output: Annotated[
        pathlib.Path | None,
        typer.Option("--output", "-o", help="Write the transcript here instead of stdout."),
    ] = None,
    output_dir: Annotated[
        pathlib.Path | None,
        typer.Option(
            "--output-dir",
            help="Write <input stem>.<format> into this directory (ignored with --output).",
        ),
    ] = None,
    highlight_words: Annotated[
        bool,
        typer.Option("--highlight-words", help="Bold each word in SRT output."),
    ] = False,
    min_chars: Annotated[
        int,
        typer.Option("--min-chars", min=1, help="SRT cue length a sentence end may close."),
    ] = DISPLAY_MIN_CHARS,
    max_chars: Annotated[
        int,
        typer.Option("--max-chars", min=1, help="SRT cue length that always closes a cue."),
    ] = DISPLAY_MAX_CHARS,
    # UX and logging
    no_progress: Annotated[
        bool,
        typer.Option("--no-progress", help="Disable the Rich progress bar."),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", help="Suppress console messages except the final output."),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", help="Enable verbose output."),
    ] = False,
) -> None:
    """Transcribe INPUT_FILE and print or save the caption timeline.

    Raises:
        typer.Exit: Exit code 1 on failure, 130 when cancelled.
        typer.BadParameter: For a missing input, an unsupported file type, an
            unknown output format or an unloadable transcriber.
    """
    configure_logging(verbose=verbose, quiet=quiet)
    ui = UIConfig(verbose=verbose, quiet=quiet, no_progress=no_progress)
    _check_input(input_file)
    try:
        spec = get_formatter_spec(output_format)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    config = TranscriptionConfig(
        use_chunking=chunking,
        num_chunks=num_chunks,
        debug_mode=debug,
        debug_chunks=debug_chunks,
        model_name=model_name,
    )
    orchestrator = TranscriptionOrchestrator(load_transcriber(transcriber_path), config)
    cache = None if no_cache else ContentCache(JsonFileStore(cache_dir))

    console = Console(stderr=True, quiet=ui.quiet)
    if ui.verbose:
        _print_settings(console, input_file, config, spec.file_extension.lstrip("."))

    token = CancelToken()
    install_signal_handlers(token)

    progress_cm = (
        nullcontext()
        if ui.no_progress or ui.quiet
        else Progress(
            SpinnerColumn(),
            BarColumn(bar_width=None),
            TaskProgressColumn(),
            TimeElapsedColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=False,
        )
    )

    with progress_cm as progress:
        task = None if progress is None else progress.add_task("Starting...", total=100)
        eta = {"text": ""}

        def on_status(text: str) -> None:
            if progress is None:
                return
            suffix = f" (ETA {eta['text']})" if eta["text"] else ""
            progress.update(task, description=f"{text}{suffix}")

        def on_progress(update: ProgressUpdate) -> None:
            eta["text"] = update.eta_text
            if progress is not None:
                progress.update(task, completed=update.percent)

        def choose_cached(entry: CacheEntry) -> bool:
            if reuse_cache is not None:
                return reuse_cache
            if progress is not None:
                progress.stop()
            try:
                return typer.confirm(
                    f"Found cached transcript of {entry.file_name} from {entry.processed_at} "
                    f"({len(entry.captions)} captions, model {entry.model_used}). Use it?",
                    default=True,
                )
            finally:
                if progress is not None:
                    progress.start()

        try:
            result = process_file(
                input_file,
                orchestrator,
                cache=cache,
                choose_cached=choose_cached,
                cancel_token=token,
                on_progress=on_progress,
                on_status=on_status,
            )
        except ClipscribeError as exc:
            raise _fail(exc) from exc

    if result.entry is None:
        typer.secho("Transcription cancelled.", fg=typer.colors.YELLOW, err=True)
        raise typer.Exit(code=EXIT_CANCELLED)

    text = render_transcript(
        result.entry,
        output_format,
        highlight_words=highlight_words,
        display=DisplayConfig(min_chars=min_chars, max_chars=max_chars),
    )
    if output is None and output_dir is not None:
        output = output_path_for(input_file, output_format, output_dir)
    if output is None:
        typer.echo(text)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text + "\n", encoding="utf-8")
    if not quiet:
        typer.secho(f"Saved {len(result.entry.captions)} captions to {output}", err=True)


@app.command()
def subclip(
    input_file: Annotated[
        pathlib.Path,
        typer.Argument(help="Previously transcribed audio or video file.", show_default=False),
    ],
    start_word: Annotated[
        int, typer.Option("--start", min=0, help="First caption index of the clip.")
    ],
    end_word: Annotated[
        int, typer.Option("--end", min=0, help="Last caption index of the clip (inclusive).")
    ],
    output: Annotated[
        pathlib.Path,
        typer.Option("--output", "-o", help="Destination WAV file."),
    ],
    speed: Annotated[
        list[str] | None,
        typer.Option(
            "--speed",
            help="Speed edit 'START-END:RATE' over caption indices; repeatable.",
        ),
    ] = None,
    trim: Annotated[
        str | None,
        typer.Option("--trim", help="Keep 'START:END' percent of the clip."),
    ] = None,
    cache_dir: Annotated[
        pathlib.Path,
        typer.Option("--cache-dir", help="Directory for cached transcripts."),
    ] = CACHE_DIR,
    quiet: Annotated[bool, typer.Option("--quiet", help="Suppress console messages.")] = False,
    verbose: Annotated[bool, typer.Option("--verbose", help="Enable verbose output.")] = False,
) -> None:
    """Export captions START..END of a transcribed file as a WAV sub-clip.

    Raises:
        typer.Exit: Exit code 1 when the file has no cached transcript or an
            edit is rejected.
    """
    configure_logging(verbose=verbose, quiet=quiet)
    _check_input(input_file)

    edits: list[tuple[int, int, float]] = []
    for value in speed or []:
        span, rate = _parse_pair(value, "START-END:RATE")
        first, sep, last = span.partition("-")
        try:
            edits.append((int(first), int(last if sep else first), float(rate)))
        except ValueError as exc:
            raise typer.BadParameter(f"Invalid speed edit '{value}'") from exc
    trim_pct: tuple[float, float] | None = None
    if trim is not None:
        lo, hi = _parse_pair(trim, "START:END")
        try:
            trim_pct = (float(lo), float(hi))
        except ValueError as exc:
            raise typer.BadParameter(f"Invalid trim '{trim}'") from exc

    cache = ContentCache(JsonFileStore(cache_dir))
    try:
        file_hash = hash_file(input_file)
        entry = cache.get(file_hash)
        if entry is None:
            raise ValidationError(
                f"No cached transcript for {input_file.name}; run 'clipscribe transcribe' first."
            )
        source = load_audio(input_file)
        with SessionController(PreviewSlot()) as controller:
            controller.load_source(source, file_name=input_file.name, file_hash=file_hash)
            controller.replace_timeline(entry.captions)
            controller.select_range(start_word, end_word)
            for first, last, rate in edits:
                controller.add_speed_edit(first, last, rate)
            if trim_pct is not None:
                controller.set_trim(*trim_pct)
            preview = controller.state.preview_path
            if preview is None:
                raise ValidationError("The selected clip is empty after trimming.")
            output.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(preview, output)
    except (ClipscribeError, OSError) as exc:
        raise _fail(exc) from exc

    if not quiet:
        typer.secho(f"Saved sub-clip of captions {start_word}..{end_word} to {output}", err=True)


@app.command()
def stretch(
    input_file: Annotated[
        pathlib.Path,
        typer.Argument(help="Audio or video file to time-stretch.", show_default=False),
    ],
    rate: Annotated[float, typer.Option("--rate", "-r", help="Playback rate, e.g. 1.5.")],
    output: Annotated[pathlib.Path, typer.Option("--output", "-o", help="Destination WAV.")],
    quiet: Annotated[bool, typer.Option("--quiet", help="Suppress console messages.")] = False,
    verbose: Annotated[bool, typer.Option("--verbose", help="Enable verbose output.")] = False,
) -> None:
    """Change the playback rate of a whole file while keeping its pitch."""
    configure_logging(verbose=verbose, quiet=quiet)
    _check_input(input_file)
    try:
        source = load_audio(input_file)
        stretched = apply_transforms(
            source, [SpeedTransform(start_sec=0.0, end_sec=source.duration_sec, rate=rate)]
        )
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_bytes(encode_wav(stretched))
    except ClipscribeError as exc:
        raise _fail(exc) from exc

    if not quiet:
        typer.secho(
            f"Stretched {source.duration_sec:.2f}s to {stretched.duration_sec:.2f}s: {output}",
            err=True,
        )


@cache_app.command("list")
def cache_list(
    cache_dir: Annotated[
        pathlib.Path,
        typer.Option("--cache-dir", help="Directory for cached transcripts."),
    ] = CACHE_DIR,
) -> None:
    """List cached transcripts."""
    store = JsonFileStore(cache_dir)
    cache = ContentCache(store)
    table = Table(title="Cached Transcripts", show_header=True, header_style="bold magenta")
    table.add_column("Hash", style="cyan", no_wrap=True)
    table.add_column("File", style="green")
    table.add_column("Captions", style="yellow", justify="right")
    table.add_column("Processed", style="yellow")
    for key in store.keys():
        entry = cache.get(key)
        if entry is None:
            continue
        table.add_row(key[:12], entry.file_name, str(len(entry.captions)), entry.processed_at)
    Console().print(table)


@cache_app.command("show")
def cache_show(
    file_hash: Annotated[str, typer.Argument(help="Content hash of the transcribed file.")],
    output_format: Annotated[
        str,
        typer.Option("--output-format", "-f", help="Output format (txt, json, srt)."),
    ] = "txt",
    cache_dir: Annotated[
        pathlib.Path,
        typer.Option("--cache-dir", help="Directory for cached transcripts."),
    ] = CACHE_DIR,
) -> None:
    """Print a cached transcript."""
    try:
        entry = ContentCache(JsonFileStore(cache_dir)).get(file_hash)
        if entry is None:
            raise ValidationError(f"No cached transcript for {file_hash}")
        typer.echo(render_transcript(entry, output_format))
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    except ClipscribeError as exc:
        raise _fail(exc) from exc


@cache_app.command("remove")
def cache_remove(
    file_hash: Annotated[str, typer.Argument(help="Content hash of the transcribed file.")],
    cache_dir: Annotated[
        pathlib.Path,
        typer.Option("--cache-dir", help="Directory for cached transcripts."),
    ] = CACHE_DIR,
) -> None:
    """Forget a cached transcript."""
    try:
        ContentCache(JsonFileStore(cache_dir)).remove(file_hash)
    except (OSError, ValueError) as exc:
        raise _fail(exc) from exc
    typer.echo(f"Removed {file_hash}")


if __name__ == "__main__":
    app()
