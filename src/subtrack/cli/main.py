from __future__ import annotations

import functools
import json
import shlex
import sys
from pathlib import Path
from typing import Callable

import typer

from subtrack.config.settings import Settings, load_settings
from subtrack.domain.cue import Cue
from subtrack.domain.track import Track
from subtrack.exceptions import InputError, StorageError, SubtrackError
from subtrack.services import formats, validation
from subtrack.services.persistence import dump_track, parse_track
from subtrack.services.session import EditorSession, EditResult, Notice
from subtrack.services.store import JsonFileStore
from subtrack.utils.logging import configure_logging, get_logger
from subtrack.utils.timecode import timestamp_to_seconds

app = typer.Typer(add_completion=False)
log = get_logger(__name__)

STORE_HELP = "Store file (overrides config)."
KEY_HELP = "Session key inside the store (overrides config)."
LOG_HELP = "Log level (overrides config)."


def _reports_errors(func: Callable) -> Callable:
    @functools.wraps(func)
    def wrapper(*args, **kwargs):  # noqa: ANN002, ANN003
        try:
            return func(*args, **kwargs)
        except SubtrackError as err:
            typer.echo(f"{err.label()}: {err.message}", err=True)
            raise typer.Exit(code=err.exit_code)

    return wrapper


def _build_settings(
    store: str | None,
    key: str | None,
    log_level: str | None,
) -> Settings:
    settings = load_settings(store_path=store, session_key=key, log_level=log_level)
    configure_logging(settings.log_level)
    return settings


def _print_notice(notice: Notice) -> None:
    typer.echo(f"[{notice.level}] {notice.message}", err=True)


def _open_session(settings: Settings) -> EditorSession:
    return EditorSession.open(
        JsonFileStore(settings.store_path),
        settings,
        notify=_print_notice,
    )


def _passes_content_rule(text: str, settings: Settings) -> bool:
    return len(text) <= settings.max_text_length


def _cue_at(track: Track, index: int) -> Cue:
    if index < 0 or index >= len(track):
        raise typer.BadParameter(f"No cue at index {index} (track has {len(track)}).")
    return track[index]


def _one_line(text: str) -> str:
    return " / ".join(line.strip() for line in text.splitlines()) or "(empty)"


def _echo_track(track: Track) -> None:
    typer.echo("index\tstart\tend\tduration_s\tstatus\ttext")
    for index, cue in enumerate(track):
        status = "ok" if validation.is_acceptable(track, index) else "invalid"
        typer.echo(
            f"{index}\t{cue.start}\t{cue.end}\t{cue.duration:.3f}\t{status}\t{_one_line(cue.text)}"
        )


def _echo_result(action: str, result: EditResult) -> None:
    if result.changed:
        typer.echo(f"{action}: {len(result.new)} cue(s)")
    else:
        typer.echo(f"{action}: no change")


def _echo_check(track: Track) -> int:
    bad = validation.unacceptable_indices(track)
    if not bad:
        typer.echo(f"All {len(track)} cue(s) acceptable.")
        return 0
    for index in bad:
        rules = ", ".join(validation.violations(track, index))
        typer.echo(f"{index}\t{track[index].start}\t{rules}\t{_one_line(track[index].text)}")
    return len(bad)


# ----------------------------------------------------------------------
# Edit helpers shared by one-shot commands and `session`
# ----------------------------------------------------------------------
def _do_add(
    session: EditorSession,
    settings: Settings,
    index: int,
    start: str,
    end: str,
    text: str,
) -> EditResult:
    if index < 0 or index > len(session.track):
        raise typer.BadParameter(
            f"Insert position {index} out of range (track has {len(session.track)})."
        )
    cue = Cue.create(start, end, text, check=_passes_content_rule(text, settings))
    return session.add(index, cue)


def _do_update(
    session: EditorSession,
    settings: Settings,
    index: int,
    *,
    start: str | None = None,
    end: str | None = None,
    text: str | None = None,
) -> EditResult:
    cue = _cue_at(session.track, index)
    fields: dict[str, object] = {}
    if start is not None:
        fields["start"] = start
    if end is not None:
        fields["end"] = end
    if text is not None:
        fields["text"] = text
    if not fields:
        raise typer.BadParameter("Nothing to update; pass --start, --end or --text.")
    fields["check"] = _passes_content_rule(fields.get("text", cue.text), settings)
    return session.update(cue, **fields)


@app.command()
@_reports_errors
def config() -> None:
    """Print resolved config."""
    s = load_settings()
    typer.echo(json.dumps(s.to_public_dict(), indent=2))


@app.command()
@_reports_errors
def show(
    store: str = typer.Option(None, help=STORE_HELP),
    key: str = typer.Option(None, help=KEY_HELP),
    log_level: str = typer.Option(None, help=LOG_HELP),
    json_output: bool = typer.Option(False, "--json", help="Output records as JSON."),
) -> None:
    """List the cues of the current track."""
    settings = _build_settings(store, key, log_level)
    session = _open_session(settings)
    if json_output:
        typer.echo(json.dumps(session.track.to_records(), indent=2, ensure_ascii=False))
        return
    _echo_track(session.track)


@app.command()
@_reports_errors
def check(
    store: str = typer.Option(None, help=STORE_HELP),
    key: str = typer.Option(None, help=KEY_HELP),
    log_level: str = typer.Option(None, help=LOG_HELP),
    strict: bool = typer.Option(False, help="Exit non-zero when any cue is unacceptable."),
) -> None:
    """Report cues that overlap, are too short, or failed the content rule."""
    settings = _build_settings(store, key, log_level)
    session = _open_session(settings)
    bad = _echo_check(session.track)
    if strict and bad:
        raise typer.Exit(code=1)


@app.command()
@_reports_errors
def active(
    seconds: str = typer.Argument(..., help="Playback position in seconds or HH:MM:SS.mmm."),
    store: str = typer.Option(None, help=STORE_HELP),
    key: str = typer.Option(None, help=KEY_HELP),
    log_level: str = typer.Option(None, help=LOG_HELP),
) -> None:
    """Print the cue active at a playback position."""
    settings = _build_settings(store, key, log_level)
    session = _open_session(settings)
    position = _parse_position(seconds)
    index = session.active_index(position)
    if index < 0:
        typer.echo("-1")
        return
    typer.echo(f"{index}\t{_one_line(session.track[index].text)}")


def _parse_position(value: str) -> float:
    if ":" in value:
        return timestamp_to_seconds(value)
    try:
        return float(value)
    except ValueError as exc:
        raise InputError(f"Invalid playback position {value!r}") from exc


@app.command()
@_reports_errors
def add(
    start: str = typer.Argument(..., help="Start timestamp (HH:MM:SS.mmm)."),
    end: str = typer.Argument(..., help="End timestamp (HH:MM:SS.mmm)."),
    text: str = typer.Argument(..., help="Cue text."),
    index: int = typer.Option(None, help="Insert position (default: end of track)."),
    store: str = typer.Option(None, help=STORE_HELP),
    key: str = typer.Option(None, help=KEY_HELP),
    log_level: str = typer.Option(None, help=LOG_HELP),
) -> None:
    """Insert a cue."""
    settings = _build_settings(store, key, log_level)
    session = _open_session(settings)
    position = len(session.track) if index is None else index
    _echo_result("add", _do_add(session, settings, position, start, end, text))


@app.command()
@_reports_errors
def remove(
    index: int = typer.Argument(..., help="Cue index."),
    store: str = typer.Option(None, help=STORE_HELP),
    key: str = typer.Option(None, help=KEY_HELP),
    log_level: str = typer.Option(None, help=LOG_HELP),
) -> None:
    """Remove a cue."""
    settings = _build_settings(store, key, log_level)
    session = _open_session(settings)
    _echo_result("remove", session.remove(_cue_at(session.track, index)))


@app.command()
@_reports_errors
def update(
    index: int = typer.Argument(..., help="Cue index."),
    start: str = typer.Option(None, help="New start timestamp."),
    end: str = typer.Option(None, help="New end timestamp."),
    text: str = typer.Option(None, help="New text."),
    store: str = typer.Option(None, help=STORE_HELP),
    key: str = typer.Option(None, help=KEY_HELP),
    log_level: str = typer.Option(None, help=LOG_HELP),
) -> None:
    """Replace fields of a cue (rejected edits leave the track unchanged)."""
    settings = _build_settings(store, key, log_level)
    session = _open_session(settings)
    result = _do_update(session, settings, index, start=start, end=end, text=text)
    _echo_result("update", result)


@app.command()
@_reports_errors
def merge(
    index: int = typer.Argument(..., help="Cue index; merged with the following cue."),
    store: str = typer.Option(None, help=STORE_HELP),
    key: str = typer.Option(None, help=KEY_HELP),
    log_level: str = typer.Option(None, help=LOG_HELP),
) -> None:
    """Merge a cue with the next one."""
    settings = _build_settings(store, key, log_level)
    session = _open_session(settings)
    _echo_result("merge", session.merge(_cue_at(session.track, index)))


@app.command()
@_reports_errors
def split(
    index: int = typer.Argument(..., help="Cue index."),
    offset: int = typer.Argument(..., help="Character offset in the cue text."),
    store: str = typer.Option(None, help=STORE_HELP),
    key: str = typer.Option(None, help=KEY_HELP),
    log_level: str = typer.Option(None, help=LOG_HELP),
) -> None:
    """Split a cue in two at a character offset."""
    settings = _build_settings(store, key, log_level)
    session = _open_session(settings)
    _echo_result("split", session.split(_cue_at(session.track, index), offset))


@app.command()
@_reports_errors
def clear(
    store: str = typer.Option(None, help=STORE_HELP),
    key: str = typer.Option(None, help=KEY_HELP),
    log_level: str = typer.Option(None, help=LOG_HELP),
) -> None:
    """Remove every cue."""
    settings = _build_settings(store, key, log_level)
    session = _open_session(settings)
    _echo_result("clear", session.clear())


@app.command()
@_reports_errors
def export(
    fmt: str = typer.Option("srt", "--format", help="Output format: srt, vtt, json."),
    output: Path = typer.Option(None, help="Write to this file instead of stdout."),
    store: str = typer.Option(None, help=STORE_HELP),
    key: str = typer.Option(None, help=KEY_HELP),
    log_level: str = typer.Option(None, help=LOG_HELP),
) -> None:
    """Render the current track as SRT, WebVTT or JSON records."""
    settings = _build_settings(store, key, log_level)
    session = _open_session(settings)
    renderers = {
        "srt": formats.to_srt,
        "vtt": formats.to_vtt,
        "json": dump_track,
    }
    fmt_key = fmt.strip().lower()
    if fmt_key not in renderers:
        raise typer.BadParameter(f"Unknown format '{fmt}'. Use one of: srt, vtt, json.")
    rendered = renderers[fmt_key](session.track)
    if output is None:
        typer.echo(rendered, nl=False)
        return
    try:
        output.write_text(rendered, encoding="utf-8")
    except OSError as exc:
        raise StorageError(f"Cannot write {output}: {exc}") from exc
    typer.echo(f"Wrote {len(session.track)} cue(s) to {output}")


@app.command("import")
@_reports_errors
def import_(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="SRT, VTT or JSON file."),
    store: str = typer.Option(None, help=STORE_HELP),
    key: str = typer.Option(None, help=KEY_HELP),
    log_level: str = typer.Option(None, help=LOG_HELP),
) -> None:
    """Replace the current track with the cues of a subtitle file."""
    settings = _build_settings(store, key, log_level)
    parsers = {
        "srt": formats.from_srt,
        "vtt": formats.from_vtt,
        "json": parse_track,
    }
    parse = parsers[formats.detect_format(path)]
    try:
        payload = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise InputError(f"{path} is not UTF-8 text: {exc.reason}") from exc
    except OSError as exc:
        raise StorageError(f"Cannot read {path}: {exc}") from exc
    track = parse(payload)
    log.info("Parsed %d cue(s) from %s", len(track), path)
    session = _open_session(settings)
    _echo_result("import", session.commit(track))


# ----------------------------------------------------------------------
# Interactive session
# ----------------------------------------------------------------------
SESSION_HELP = """\
Commands:
  show | check | active SECONDS
  add INDEX START END TEXT
  remove INDEX | merge INDEX | split INDEX OFFSET
  update INDEX [start=..] [end=..] [text=..]
  undo | clear | help | quit"""


def _session_line(session: EditorSession, settings: Settings, words: list[str]) -> bool:
    """Run one session command; return False when the session should end."""
    command, args = words[0].lower(), words[1:]
    if command in {"quit", "exit"}:
        return False
    if command == "help":
        typer.echo(SESSION_HELP)
    elif command == "show":
        _echo_track(session.track)
    elif command == "check":
        _echo_check(session.track)
    elif command == "active":
        index = session.active_index(_parse_position(_arg(args, 0)))
        typer.echo(str(index))
    elif command == "add":
        text = " ".join(args[3:])
        start, end = _arg(args, 1), _arg(args, 2)
        _echo_result("add", _do_add(session, settings, _int_arg(args, 0), start, end, text))
    elif command == "remove":
        _echo_result("remove", session.remove(_cue_at(session.track, _int_arg(args, 0))))
    elif command == "merge":
        _echo_result("merge", session.merge(_cue_at(session.track, _int_arg(args, 0))))
    elif command == "split":
        cue = _cue_at(session.track, _int_arg(args, 0))
        _echo_result("split", session.split(cue, _int_arg(args, 1)))
    elif command == "update":
        fields = {}
        for pair in args[1:]:
            name, sep, value = pair.partition("=")
            if not sep or name not in {"start", "end", "text"}:
                raise typer.BadParameter(f"Expected start=, end= or text=, got {pair!r}")
            fields[name] = value
        _echo_result("update", _do_update(session, settings, _int_arg(args, 0), **fields))
    elif command == "undo":
        _echo_result("undo", session.undo())
    elif command == "clear":
        _echo_result("clear", session.clear())
    else:
        raise typer.BadParameter(f"Unknown command {command!r}; type 'help'.")
    return True


def _arg(args: list[str], position: int) -> str:
    if position >= len(args):
        raise typer.BadParameter("Missing argument; type 'help'.")
    return args[position]


def _int_arg(args: list[str], position: int) -> int:
    value = _arg(args, position)
    try:
        return int(value)
    except ValueError as exc:
        raise typer.BadParameter(f"Expected an integer, got {value!r}") from exc


@app.command()
@_reports_errors
def session(
    store: str = typer.Option(None, help=STORE_HELP),
    key: str = typer.Option(None, help=KEY_HELP),
    log_level: str = typer.Option(None, help=LOG_HELP),
) -> None:
    """Edit interactively, one command per line on stdin (supports undo)."""
    settings = _build_settings(store, key, log_level)
    editor = _open_session(settings)
    typer.echo(f"{len(editor.track)} cue(s) loaded. Type 'help' for commands.")
    for raw in sys.stdin:
        try:
            words = shlex.split(raw)
        except ValueError as exc:
            typer.echo(f"Input error: {exc}", err=True)
            continue
        if not words:
            continue
        try:
            if not _session_line(editor, settings, words):
                break
        except typer.BadParameter as exc:
            typer.echo(f"Error: {exc.message}", err=True)
        except InputError as err:
            # Bad input for one command never ends the session.
            typer.echo(f"{err.label()}: {err.message}", err=True)
    typer.echo(f"{len(editor.track)} cue(s), {len(editor.history)} undo step(s) left.")


def _main() -> None:
    app()


if __name__ == "__main__":
    _main()
