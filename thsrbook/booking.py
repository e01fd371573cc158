"""First booking step: choose stations, date, time and tickets, then submit the search form."""

from __future__ import annotations

import subprocess
import sys
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlencode

import requests
from bs4 import BeautifulSoup

from thsrbook.cli import Args
from thsrbook.common import (
    BASE_URL,
    BOOKING_PAGE_URL,
    FORM_CONTENT_TYPE,
    REQUEST_TIMEOUT,
    SUBMIT_FORM_URL,
    BookingError,
    check_page,
    parse_html,
    prompt,
)
from thsrbook.schema import STATION_MAP, TIME_TABLE, TicketType, station_lines, time_table_lines

IMAGE_FILE_NAME = "tmp_code.jpg"
DEFAULT_START_STATION = 1
DEFAULT_DEST_STATION = 12
DEFAULT_TIME_OPTION = 10
MAX_TICKETS = 10

_TICKET_FIELDS = {
    TicketType.ADULT: "adult_ticket_num",
    TicketType.CHILD: "child_ticket_num",
    TicketType.DISABLED: "disabled_ticket_num",
    TicketType.ELDER: "elder_ticket_num",
    TicketType.COLLEGE: "college_ticket_num",
}


def _unsigned(bits: int) -> Callable[[str], int]:
    """A converter accepting only non-negative decimal integers that fit in ``bits`` bits."""
    limit = (1 << bits) - 1

    def convert(text: str) -> int:
        digits = text[1:] if text.startswith("+") else text
        if not digits or not digits.isascii() or not digits.isdigit():
            raise ValueError(f"invalid unsigned integer: {text!r}")
        value = int(digits)
        if value > limit:
            raise ValueError(f"number too large: {text!r}")
        return value

    return convert


_parse_u8 = _unsigned(8)
_parse_u16 = _unsigned(16)
_parse_usize = _unsigned(64)


@dataclass
class BookingPayload:
    """The search form submitted on the first booking page."""

    start_station: int = DEFAULT_START_STATION
    dest_station: int = DEFAULT_DEST_STATION
    search_by: str = "1"
    types_of_trip: int = 0
    outbound_date: str = "2023/10/01"
    outbound_time: str = "08:00"
    security_code: str = "1234"
    seat_prefer: int = 0
    form_mark: str = ""
    class_type: int = 0
    inbound_date: str | None = None
    inbound_time: str | None = None
    to_train_id: int | None = None
    back_train_id: int | None = None
    adult_ticket_num: str = "1F"
    child_ticket_num: str = "0H"
    disabled_ticket_num: str = "0W"
    elder_ticket_num: str = "0E"
    college_ticket_num: str = "0P"

    def select_start_station(self, value: int | None) -> None:
        """Use ``value`` as the departure station, or ask for one."""
        if value is not None:
            self.start_station = value & 0xFF
            return
        print("\n".join(station_lines()))
        choice = prompt(
            "Please select start station (default: 1):", DEFAULT_START_STATION, _parse_usize
        )
        if 0 < choice <= len(STATION_MAP):
            self.start_station = choice
        else:
            print("Invalid input, defaulting to Nangang.")
            self.start_station = DEFAULT_START_STATION

    def select_dest_station(self, value: int | None) -> None:
        """Use ``value`` as the arrival station, or ask for one."""
        if value is not None:
            self.dest_station = value & 0xFF
            return
        print("\n".join(station_lines()))
        choice = prompt(
            "Please select destination station (default: 12):", DEFAULT_DEST_STATION, _parse_usize
        )
        if 0 < choice <= len(STATION_MAP):
            self.dest_station = choice
        else:
            print("Invalid input, defaulting to Zuouing.")
            self.dest_station = DEFAULT_DEST_STATION

    def input_security_code(self, img_data: bytes) -> None:
        """Show the captcha image and read the code the user types."""
        print("Input security code:")
        show_image(img_data)
        self.security_code = sys.stdin.readline().strip()

    def select_date(self, start_date: str, end_date: str, date: str | None) -> None:
        """Use ``date`` (or ask for one) if it lies within the bookable range."""
        if date is None:
            date = prompt(
                f"Please select a date between {start_date} and {end_date} "
                f"(default to {start_date}):",
                start_date,
                str,
            )
        normalized = normalize_date(date)
        if normalized is None:
            print(f"Invalid date format, defaulting to {start_date}")
            normalized = start_date
        if not normalized:
            self.outbound_date = start_date
            return
        if start_date <= normalized <= end_date:
            self.outbound_date = normalized
        else:
            print(f"Invalid date, defaulting to {start_date}")
            self.outbound_date = start_date

    def select_time(self, time: int | None) -> None:
        """Use time option ``time`` (1-based), or ask for one."""
        if time is None:
            print("\n".join(time_table_lines()))
            time = prompt(
                "Select departure time (default: 10):", DEFAULT_TIME_OPTION, _parse_usize
            )
        if time > len(TIME_TABLE):
            print("Invalid input, defaulting to 10.")
            self.outbound_time = TIME_TABLE[DEFAULT_TIME_OPTION - 1]
            return
        if time < 1:
            raise ValueError(f"time option must be at least 1, got {time}")
        self.outbound_time = TIME_TABLE[time - 1]

    def select_ticket_num(self, ticket_type: TicketType, value: int | None) -> None:
        """Set how many tickets of ``ticket_type`` to book, asking if ``value`` is ``None``."""
        if value is None:
            value = prompt(
                f"Please select the number (0~10) of tickets for {ticket_type!s} (default: 1)",
                1,
                _parse_u8,
            )
        if value > MAX_TICKETS:
            print("Invalid input, defaulting to 1.")
            value = 1
        setattr(self, _TICKET_FIELDS[ticket_type], f"{value}{ticket_type.code}")

    def select_seat_prefer(self, prefer: int | None) -> None:
        """Set the seat preference (0: any, 1: window, 2: aisle)."""
        if prefer is None:
            prefer = prompt(
                "Please select seat preference (0: any, 1: window, 2: aisle) (default: 0):",
                0,
                _parse_usize,
            )
        if prefer > 2:
            print("Invalid input, defaulting to any.")
            self.seat_prefer = 0
        else:
            self.seat_prefer = prefer

    def select_class_type(self, class_type: int | None) -> None:
        """Set the class (0: standard, 1: business)."""
        if class_type is None:
            class_type = prompt(
                "Please select class type (0: standard, 1: business) (default: 0):",
                0,
                _parse_usize,
            )
        if class_type > 1:
            print("Invalid input, defaulting to standard.")
            self.class_type = 0
        else:
            self.class_type = class_type

    def to_form(self) -> list[tuple[str, str]]:
        """Form fields in submission order; unset optional fields are left out."""
        fields = [
            ("selectStartStation", self.start_station),
            ("selectDestinationStation", self.dest_station),
            ("bookingMethod", self.search_by),
            ("tripCon:typesoftrip", self.types_of_trip),
            ("toTimeInputField", self.outbound_date),
            ("toTimeTable", self.outbound_time),
            ("homeCaptcha:securityCode", self.security_code),
            ("seatCon:seatRadioGroup", self.seat_prefer),
            ("BookingS1Form:hf:0", self.form_mark),
            ("trainCon:trainRadioGroup", self.class_type),
            ("backTimeInputField", self.inbound_date),
            ("backTimeTable", self.inbound_time),
            ("toTrainIDInputField", self.to_train_id),
            ("backTrainIDInputField", self.back_train_id),
            ("ticketPanel:rows:0:ticketAmount", self.adult_ticket_num),
            ("ticketPanel:rows:1:ticketAmount", self.child_ticket_num),
            ("ticketPanel:rows:2:ticketAmount", self.disabled_ticket_num),
            ("ticketPanel:rows:3:ticketAmount", self.elder_ticket_num),
            ("ticketPanel:rows:4:ticketAmount", self.college_ticket_num),
        ]
        return [(key, str(value)) for key, value in fields if value is not None]


def normalize_date(text: str) -> str | None:
    """Turn ``Y/M/D`` into zero-padded ``YYYY/MM/DD``, or ``None`` if it is not a valid date."""
    parts = text.split("/")
    if len(parts) != 3:
        return None
    try:
        year = _parse_u16(parts[0])
        month = _parse_u8(parts[1])
        day = _parse_u8(parts[2])
    except ValueError:
        return None
    if year >= 1000 and 1 <= month <= 12 and 1 <= day <= 31:
        return f"{year:04d}/{month:02d}/{day:02d}"
    return None


def _select(page: BeautifulSoup, selector: str):
    element = page.select_one(selector)
    if element is None:
        raise BookingError(f"booking page has no element matching {selector!r}")
    return element


def _attr(element, name: str) -> str:
    value = element.get(name)
    if value is None:
        raise BookingError(f"element <{element.name}> has no {name!r} attribute")
    return value


def parse_avail_start_end_date(page: BeautifulSoup) -> tuple[str, str]:
    """The first and last bookable dates shown on the booking page."""
    element = _select(page, "#toTimeInputField")
    end_date = _attr(element, "limit")
    start_date = _attr(element, "date")
    return start_date, end_date


def parse_types_of_trip_value(page: BeautifulSoup) -> int:
    """The preselected trip type (0: one way, 1: round trip)."""
    element = _select(page, "#BookingS1Form_tripCon_typesoftrip")
    selected = _select(element, "[selected='selected']")
    return int(_attr(selected, "value"))


def parse_search_by(page: BeautifulSoup) -> str:
    """The value of the checked booking-method radio button."""
    for candidate in page.select("input[name='bookingMethod']"):
        if candidate.get("checked") is not None:
            return _attr(candidate, "value")
    raise BookingError("booking page has no checked booking method")


def parse_security_code_img_url(page: BeautifulSoup) -> str:
    """Absolute URL of the captcha image."""
    element = _select(page, "#BookingS1Form_homeCaptcha_passCode")
    return f"{BASE_URL}{_attr(element, 'src')}"


def show_image(img_data: bytes) -> None:
    """Save the captcha image and open it in the system's default viewer."""
    path = Path(IMAGE_FILE_NAME)
    path.write_bytes(img_data)
    if sys.platform == "win32":
        subprocess.Popen(["cmd", "/C", IMAGE_FILE_NAME])
    elif sys.platform == "darwin":
        subprocess.Popen(["open", IMAGE_FILE_NAME])
    elif sys.platform.startswith("linux"):
        subprocess.Popen(["xdg-open", IMAGE_FILE_NAME])
    else:
        print(f"Please open the image manually: {IMAGE_FILE_NAME}")


def run_flow(session: requests.Session, args: Args) -> BeautifulSoup:
    """Fill in and submit the search form; return the train selection page."""
    print("Requesting booking page...")
    response = session.get(BOOKING_PAGE_URL, timeout=REQUEST_TIMEOUT)
    jsession_id = response.cookies.get("JSESSIONID") or session.cookies.get("JSESSIONID")
    if not jsession_id:
        raise BookingError("booking page did not set a JSESSIONID cookie")

    document = parse_html(response.text)
    image_url = parse_security_code_img_url(document)
    image_response = session.get(image_url, timeout=REQUEST_TIMEOUT)

    payload = BookingPayload()
    payload.search_by = parse_search_by(document)
    payload.types_of_trip = parse_types_of_trip_value(document)
    payload.select_start_station(args.from_)
    payload.select_dest_station(args.to)
    start_date, end_date = parse_avail_start_end_date(document)
    payload.select_date(start_date, end_date, args.date)
    payload.select_time(args.time)
    if args.adult_cnt is None and args.student_cnt is None:
        payload.select_ticket_num(TicketType.ADULT, None)
    if args.adult_cnt is not None:
        payload.select_ticket_num(TicketType.ADULT, args.adult_cnt)
    if args.student_cnt is not None:
        payload.select_ticket_num(TicketType.COLLEGE, args.student_cnt)
    payload.select_seat_prefer(args.seat_prefer)
    payload.select_class_type(args.class_type)
    payload.input_security_code(image_response.content)

    result = session.post(
        SUBMIT_FORM_URL.format(jsession_id),
        data=urlencode(payload.to_form()),
        headers=FORM_CONTENT_TYPE,
        timeout=REQUEST_TIMEOUT,
    )
    return check_page(result.text)