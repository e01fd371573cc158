"""Command-line options for the booking tool."""

from __future__ import annotations

import argparse
from collections.abc import Callable, Sequence
from dataclasses import dataclass

VERSION = "1.0.0"

_DESCRIPTION = (
    "A CLI tool for booking Taiwan High Speed Rail tickets. "
    "Run the program without flags will guide you through the booking process."
)


@dataclass
class Args:
    """Parsed command-line options; ``None`` means the user will be asked."""

    personal_id: str | None = None
    date: str | None = None
    time: int | None = None
    from_: int | None = None
    to: int | None = None
    adult_cnt: int | None = None
    student_cnt: int | None = None
    seat_prefer: int | None = None
    class_type: int | None = None
    use_membership: bool | None = None
    list_station: bool = False
    list_time_table: bool = False


def _unsigned(max_value: int | None = None) -> Callable[[str], int]:
    def convert(text: str) -> int:
        try:
            value = int(text)
        except ValueError:
            raise argparse.ArgumentTypeError(f"invalid digit found in {text!r}") from None
        if value < 0 or (max_value is not None and value > max_value):
            raise argparse.ArgumentTypeError(f"{text!r} is out of range")
        return value

    return convert


def _choice(*allowed: str) -> Callable[[str], int]:
    def convert(text: str) -> int:
        if text not in allowed:
            raise argparse.ArgumentTypeError(
                f"{text!r} is not one of {', '.join(allowed)}"
            )
        return int(text)

    return convert


def _boolean(text: str) -> bool:
    if text == "true":
        return True
    if text == "false":
        return False
    raise argparse.ArgumentTypeError(f"{text!r} is not one of true, false")


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the booking command."""
    parser = argparse.ArgumentParser(prog="thsrbook", description=_DESCRIPTION)
    parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {VERSION}")
    parser.add_argument("-i", "--personal-id", metavar="ID", help="Personal ID")
    parser.add_argument("-d", "--date", metavar="DATE", help="Departure date")
    parser.add_argument(
        "-T", "--time", metavar="TIME_ID", type=_unsigned(),
        help="Time ID of the departure time. "
        "To see available times, use the --list-time-table option.",
    )
    parser.add_argument(
        "-f", "--from", dest="from_", metavar="STATION_ID", type=_unsigned(),
        help="Departure station ID. To see available stations, use the --list-station option.",
    )
    parser.add_argument(
        "-t", "--to", metavar="STATION_ID", type=_unsigned(),
        help="Arrival station ID. To see available stations, use the --list-station option.",
    )
    parser.add_argument(
        "-a", "--adult-cnt", metavar="NUMBER", type=_unsigned(255), help="Number of adults"
    )
    parser.add_argument(
        "-s", "--student-cnt", metavar="NUMBER", type=_unsigned(255), help="Number of students"
    )
    parser.add_argument(
        "-p", "--seat-prefer", metavar="NUMBER", type=_choice("0", "1", "2"),
        help="Seat preference. 0: None, 1: Window, 2: Aisle",
    )
    parser.add_argument(
        "-c", "--class-type", metavar="NUMBER", type=_choice("0", "1"),
        help="Class type. 0: Standard, 1: Business",
    )
    parser.add_argument(
        "-m", "--use-membership", metavar="TO_USE_MEMBERSHIP", type=_boolean,
        help="Whether to use personal ID as membership",
    )
    parser.add_argument("--list-station", action="store_true", help="List available stations")
    parser.add_argument("--list-time-table", action="store_true", help="List available times")
    return parser


def parse_args(argv: Sequence[str] | None = None) -> Args:
    """Parse ``argv`` (or ``sys.argv``) into an :class:`Args`."""
    namespace = build_parser().parse_args(argv)
    return Args(**vars(namespace))