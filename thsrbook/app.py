"""Entry point: runs the three booking steps and prints the booking result."""

from __future__ import annotations

from collections.abc import Sequence

from bs4 import BeautifulSoup

from thsrbook import booking, confirm_ticket, confirm_train
from thsrbook.cli import Args, parse_args
from thsrbook.common import BookingError, create_session
from thsrbook.schema import station_lines, time_table_lines


def _first_text(page: BeautifulSoup, selector: str) -> str:
    element = page.select_one(selector)
    if element is None:
        raise BookingError(f"result page has no element matching {selector!r}")
    text = next(iter(element.strings), None)
    if text is None:
        raise BookingError(f"result element {selector!r} has no text")
    return text


def format_result(page: BeautifulSoup) -> str:
    """Render the booking result page as the text shown to the user."""
    pnr_code = _first_text(page, "p.pnr-code span")
    price = _first_text(page, "#setTrainTotalPriceValue")
    payment_exp_date = _first_text(page, "span.status-unpaid span:nth-child(3)")
    depart_date = _first_text(page, "span.date span")
    depart_time = _first_text(page, "#setTrainDeparture0")
    arrive_time = _first_text(page, "#setTrainArrival0")
    depart_from = _first_text(page, "p.departure-stn span")
    arrive_to = _first_text(page, "p.arrival-stn span")
    seats = [
        text
        for text in (next(iter(tag.strings), None) for tag in page.select("div.seat-label span"))
        if text is not None
    ]
    passenger_count = _first_text(page, "div.uk-accordion-content span")
    seat_type = _first_text(page, "p.info-data span")

    lines = [
        "",
        "Please use the following PNR code for payment and picking up the ticket:",
        f"PNR Code: {pnr_code}",
        f"Price: {price}. Please pay before {payment_exp_date}",
        "-------(Ticket Information)-------",
        f"{'Date: ':>7}{depart_date}",
        f"{'Time: ':>7}{depart_time}~{arrive_time}",
        f"{'From: ':>7}{depart_from}",
        f"{'To: ':>7}{arrive_to}",
        f"Class: {seat_type}{passenger_count}",
        f"Seats: {', '.join(seats)}",
    ]
    return "\n".join(lines)


def show_result(page: BeautifulSoup) -> None:
    """Print the booking result."""
    print(format_result(page))


def show_station() -> None:
    """Print the numbered list of stations."""
    print("\n".join(station_lines()))


def show_time_table() -> None:
    """Print the numbered list of departure times."""
    print("\n".join(time_table_lines()))


def run(args: Args) -> None:
    """Go through the whole booking, printing any error the site reports."""
    session = create_session()
    try:
        page = booking.run_flow(session, args)
        page = confirm_train.run_flow(page, session)
        page = confirm_ticket.run_flow(page, session, args)
    except BookingError as error:
        print(f"Error: {error}")
        return
    show_result(page)


def main(argv: Sequence[str] | None = None) -> int:
    """Command entry point."""
    args = parse_args(argv)
    if args.list_time_table:
        show_time_table()
        return 0
    if args.list_station:
        show_station()
        return 0
    run(args)
    return 0