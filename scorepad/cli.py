"""
ScorePad CLI - Command-line interface over a file-backed store.

Usage:
    scorepad games                              List games in the catalog
    scorepad start <game_id> [PSEUDO ...]       Start a session
    scorepad round <session_id> KEY=SCORE ...   Add and validate a round
    scorepad undo <session_id>                  Remove the last round
    scorepad end|reopen|pin|duplicate|delete <session_id>
    scorepad show [<session_id>]                Show a session (default: active)
    scorepad history                            List stored sessions
    scorepad sweep                              Evict expired sessions
    scorepad export <session_id> ... [--rounds] [--out DIR]

Round keys are player ids (p1, p2, ...) or pseudonyms.
"""

import argparse
import logging
import sys

from .config import data_dir, load_game_catalog, load_site_config
from .errors import InvalidState, ScorePadError
from .log import setup_logger
from .session import Session, SessionManager, compute_totals
from .storage import FileStorage, RetentionStore


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="ScorePad - local scorekeeping",
        prog="scorepad",
    )
    parser.add_argument("--site-config", help="Path to site.config.json")
    parser.add_argument("--games-config", help="Path to games.config.json")
    parser.add_argument("--data-dir", help="Storage directory (default: SCOREPAD_DATA_DIR or ~/.scorepad)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log debug output")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    subparsers.add_parser("games", help="List games in the catalog")

    start_parser = subparsers.add_parser("start", help="Start a session")
    start_parser.add_argument("game_id", help="Game id from the catalog")
    start_parser.add_argument("pseudonyms", nargs="*", help="Player names by seat")
    start_parser.add_argument("--players", "-n", type=int, help="Number of players")
    start_parser.add_argument("--label", default="", help="Free-text label")

    round_parser = subparsers.add_parser("round", help="Add and validate a round")
    round_parser.add_argument("session_id")
    round_parser.add_argument("scores", nargs="*", help="KEY=SCORE pairs")

    for name, help_text in [
        ("undo", "Remove the last round"),
        ("end", "End a session"),
        ("reopen", "Reopen an ended session"),
        ("pin", "Toggle the pinned flag"),
        ("duplicate", "Start a new session with the same players"),
        ("delete", "Delete a session"),
    ]:
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("session_id")

    show_parser = subparsers.add_parser("show", help="Show a session")
    show_parser.add_argument("session_id", nargs="?", help="Defaults to the active session")

    subparsers.add_parser("history", help="List stored sessions")
    subparsers.add_parser("sweep", help="Evict expired sessions")

    export_parser = subparsers.add_parser("export", help="Export sessions to PDF")
    export_parser.add_argument("session_ids", nargs="+")
    export_parser.add_argument("--rounds", action="store_true", help="Include round detail")
    export_parser.add_argument("--out", default=".", help="Output directory")

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    setup_logger("scorepad", logging.DEBUG if args.verbose else logging.WARNING)

    handlers = {
        "games": cmd_games,
        "start": cmd_start,
        "round": cmd_round,
        "undo": cmd_undo,
        "end": cmd_end,
        "reopen": cmd_reopen,
        "pin": cmd_pin,
        "duplicate": cmd_duplicate,
        "delete": cmd_delete,
        "show": cmd_show,
        "history": cmd_history,
        "sweep": cmd_sweep,
        "export": cmd_export,
    }

    try:
        manager = build_manager(args)
        handlers[args.command](manager, args)
    except ScorePadError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


def build_manager(args) -> SessionManager:
    site = load_site_config(args.site_config)
    catalog = load_game_catalog(args.games_config)
    storage = FileStorage(args.data_dir or data_dir())
    store = RetentionStore(storage, ttl=site.ttl)
    return SessionManager(store, catalog)


def cmd_games(manager, args):
    """List games in the catalog."""
    if not len(manager.catalog):
        print("No games configured (use --games-config or SCOREPAD_GAMES_CONFIG)")
        return
    for game in manager.catalog:
        print(f"{game.id:<16} {game.name}  ({game.min_players}-{game.max_players} players)")


def cmd_start(manager, args):
    """Start a session."""
    session = manager.start(
        args.game_id,
        player_count=args.players,
        pseudonyms=args.pseudonyms,
        label=args.label,
    )
    print(f"Session started: {session.session_id}")
    print_session(session)


def cmd_round(manager, args):
    """Add and validate a round in one step."""
    session = manager.get_session(args.session_id)
    scores = parse_scores(session, args.scores)
    session = manager.add_round(session, scores)
    session = manager.validate_round(session)
    print_session(session)


def cmd_undo(manager, args):
    print_session(manager.undo_last_round(args.session_id))


def cmd_end(manager, args):
    print_session(manager.end_session(args.session_id))


def cmd_reopen(manager, args):
    print_session(manager.reopen_session(args.session_id))


def cmd_pin(manager, args):
    session = manager.toggle_pin(args.session_id)
    print(f"{session.session_id}: {'pinned' if session.pinned else 'unpinned'}")


def cmd_duplicate(manager, args):
    session = manager.duplicate_session(args.session_id)
    print(f"Session started: {session.session_id}")
    print_session(session)


def cmd_delete(manager, args):
    removed = manager.delete_session(args.session_id)
    print(f"{args.session_id}: {'deleted' if removed else 'not found'}")


def cmd_show(manager, args):
    """Show a session, or the active one."""
    if args.session_id:
        session = manager.open_session(args.session_id)
    else:
        session = manager.active_session()
        if session is None:
            print("No active session")
            return
    print_session(session)


def cmd_history(manager, args):
    """List stored sessions, most recent first."""
    sessions = manager.history()
    if not sessions:
        print("No sessions stored (or they have expired)")
        return
    active_id = manager.store.get_active_id()
    for s in sessions:
        marks = ("*" if s.pinned else " ") + (">" if s.session_id == active_id else " ")
        status = "ended" if s.ended_at else "in progress"
        players = ", ".join(p.pseudo for p in s.players)
        title = f"{s.game_name} - {s.label}" if s.label else s.game_name
        print(f"{marks} {s.session_id}  {title}  [{status}, {len(s.rounds)} round(s)]  {players}")


def cmd_sweep(manager, args):
    evicted = manager.store.sweep()
    print(f"Evicted {len(evicted)} session(s)")


def cmd_export(manager, args):
    """Export sessions to PDF."""
    from .export import generate_export_pdf

    snapshots = manager.export(args.session_ids, include_rounds=args.rounds)
    try:
        path, pages = generate_export_pdf(snapshots, args.out, site=load_site_config(args.site_config))
    except RuntimeError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    print(f"Wrote {path} ({pages} page(s), {len(snapshots)} session(s))")


def parse_scores(session: Session, pairs: list[str]) -> dict[str, str]:
    """
    Parse KEY=SCORE pairs.

    KEY is a player id or a pseudonym (case-insensitive).
    """
    by_pseudo = {p.pseudo.lower(): p.player_id for p in session.players}
    scores = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep:
            raise InvalidState(f"Expected KEY=SCORE, got {pair!r}")
        key = key.strip()
        player_id = key if session.get_player(key) else by_pseudo.get(key.lower())
        if player_id is None:
            raise InvalidState(f"Unknown player: {key}")
        scores[player_id] = value
    return scores


def print_session(session: Session):
    totals = compute_totals(session)
    status = "ended" if session.ended_at else "in progress"
    title = f"{session.game_name} - {session.label}" if session.label else session.game_name
    print(f"{title}  [{status}{', pinned' if session.pinned else ''}]")
    header = ["Round"] + [p.pseudo for p in session.players]
    widths = [max(6, len(h)) for h in header]
    print("  ".join(h.ljust(w) for h, w in zip(header, widths)))
    for i, round_ in enumerate(session.rounds, start=1):
        row = [f"#{i}"] + [str(round_.score_for(p.player_id)) for p in session.players]
        print("  ".join(c.ljust(w) for c, w in zip(row, widths)))
    row = ["Total"] + [str(totals[p.player_id]) for p in session.players]
    print("  ".join(c.ljust(w) for c, w in zip(row, widths)))


if __name__ == "__main__":
    sys.exit(main())
