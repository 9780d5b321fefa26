from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from sunball.app import (
    add_field,
    check_in_player,
    check_out_player,
    create_player,
    refresh_fields,
    watch_player,
)
from sunball.config import configure_logging
from sunball.domain.model import SurfaceType

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from sunball.domain.presence import PresenceChange

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Football field presence and catalog sync")
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    fields = subparsers.add_parser("fields", help="Refresh the field catalog around a point")
    fields.add_argument("--lat", type=float, required=True, help="Latitude of the centre")
    fields.add_argument("--lng", type=float, required=True, help="Longitude of the centre")
    fields.add_argument(
        "--radius",
        type=int,
        default=None,
        help="Search radius in meters (defaults to config)",
    )

    check_in = subparsers.add_parser("check-in", help="Check a player in to a field")
    check_in.add_argument("--player", type=str, required=True, help="Player id")
    check_in.add_argument("--field", type=str, required=True, help="Field id")

    check_out = subparsers.add_parser("check-out", help="Check a player out")
    check_out.add_argument("--player", type=str, required=True, help="Player id")
    check_out.add_argument(
        "--field",
        type=str,
        help="Field id to leave (defaults to the player's current field)",
    )

    player = subparsers.add_parser("player", help="Player management commands")
    player_sub = player.add_subparsers(dest="player_command", required=True)
    player_create = player_sub.add_parser("create", help="Create a player")
    player_create.add_argument("--id", type=str, required=True, help="Player id")
    player_create.add_argument("--name", type=str, help="Display name")
    player_create.add_argument("--email", type=str, default="", help="Email address")

    field = subparsers.add_parser("field", help="Field management commands")
    field_sub = field.add_subparsers(dest="field_command", required=True)
    field_add = field_sub.add_parser("add", help="Add a field by hand")
    field_add.add_argument("--name", type=str, required=True, help="Field name")
    field_add.add_argument("--lat", type=float, required=True, help="Latitude")
    field_add.add_argument("--lng", type=float, required=True, help="Longitude")
    field_add.add_argument(
        "--surface",
        type=str,
        choices=[surface.value for surface in SurfaceType],
        default=SurfaceType.RUBBER.value,
        help="Playing surface (default: %(default)s)",
    )
    field_add.add_argument("--lighting", action="store_true", help="Field has floodlights")

    watch = subparsers.add_parser("watch", help="Run the auto check-out monitor for a player")
    watch.add_argument("--player", type=str, required=True, help="Player id")
    watch.add_argument(
        "--duration",
        type=float,
        help="Stop after this many seconds (runs until interrupted otherwise)",
    )

    return parser.parse_args(list(argv))


def _validate(args: argparse.Namespace) -> None:
    if args.command in {"fields", "field"}:
        if not -90.0 <= args.lat <= 90.0:
            raise ValueError(f"Latitude out of range: {args.lat}")
        if not -180.0 <= args.lng <= 180.0:
            raise ValueError(f"Longitude out of range: {args.lng}")
    if args.command == "fields" and args.radius is not None and args.radius <= 0:
        raise ValueError("Radius must be positive")
    if args.command == "watch" and args.duration is not None and args.duration < 0:
        raise ValueError("Duration must be non-negative")


def _log_change(change: PresenceChange) -> None:
    if not change.changed:
        log.info("Nothing to do for player %s", change.player.id)
        return
    log.info(
        "Player %s: left=%s joined=%s visit_recorded=%s",
        change.player.id,
        [entry.id for entry in change.left],
        change.joined.id if change.joined is not None else None,
        change.visit_recorded,
    )
    for reference in change.stale_references:
        log.warning("Skipped missing %s/%s", reference.collection, reference.document_id)


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    parsed_args: argparse.Namespace
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        _validate(parsed_args)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    if parsed_args.verbose:
        configure_logging(level=logging.DEBUG, force=True)

    try:
        if parsed_args.command == "fields":
            fields = refresh_fields(parsed_args.lat, parsed_args.lng, parsed_args.radius)
            for entry in fields:
                log.info(
                    "%s  %s  (%.5f, %.5f) %s rating=%s players=%s",
                    entry.id,
                    entry.name,
                    entry.position.lat,
                    entry.position.lng,
                    entry.surface,
                    entry.rating,
                    len(entry.players),
                )
        elif parsed_args.command == "check-in":
            _log_change(check_in_player(parsed_args.player, parsed_args.field))
        elif parsed_args.command == "check-out":
            _log_change(check_out_player(parsed_args.player, parsed_args.field))
        elif parsed_args.command == "player" and parsed_args.player_command == "create":
            player = create_player(
                player_id=parsed_args.id,
                name=parsed_args.name,
                email=parsed_args.email,
            )
            log.info("Player %s ready (%s)", player.id, player.name)
        elif parsed_args.command == "field" and parsed_args.field_command == "add":
            created = add_field(
                name=parsed_args.name,
                lat=parsed_args.lat,
                lng=parsed_args.lng,
                surface=SurfaceType(parsed_args.surface),
                lighting=parsed_args.lighting,
            )
            log.info("Created field %s", created.id)
        elif parsed_args.command == "watch":
            asyncio.run(watch_player(parsed_args.player, duration_seconds=parsed_args.duration))
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except Exception:
        log.exception("Fatal error")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
