"""Second booking step: pick one of the trains offered and submit the choice."""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlencode

import requests
from bs4 import BeautifulSoup, Tag

from thsrbook.common import (
    CONFIRM_TRAIN_URL,
    FORM_CONTENT_TYPE,
    REQUEST_TIMEOUT,
    BookingError,
    check_page,
    prompt,
)

DEFAULT_TRAIN_OPTION = 1


def _parse_index(text: str) -> int:
    digits = text[1:] if text.startswith("+") else text
    if not digits or not digits.isascii() or not digits.isdigit():
        raise ValueError(f"invalid unsigned integer: {text!r}")
    return int(digits)


def _attr(element: Tag, name: str) -> str:
    value = element.get(name)
    if value is None:
        raise BookingError(f"element <{element.name}> has no {name!r} attribute")
    return value


def _first_text(element: Tag) -> str:
    text = next(iter(element.strings), None)
    if text is None:
        raise BookingError(f"element <{element.name}> has no text")
    return text


@dataclass
class Train:
    """A train offered on the selection page."""

    id: int
    depart: str
    arrive: str
    travel_time: str
    discount_info: str
    form_value: str


def _train_line(number: int, train: Train) -> str:
    return (
        f"{number:>2}. {train.id:>4} {train.depart:>3}~{train.arrive} "
        f"{train.travel_time:>3} {train.discount_info}"
    )


@dataclass
class ConfirmTrainPayload:
    """The train selection form."""

    selected_train: str = ""
    form_mark: str = ""

    def select_available_trains(self, trains: list[Train]) -> None:
        """List ``trains`` and store the form value of the one the user picks."""
        for number, train in enumerate(trains, start=1):
            print(_train_line(number, train))
        selection = prompt("Select a train (default: 1):", DEFAULT_TRAIN_OPTION, _parse_index)
        if not 1 <= selection <= len(trains):
            raise ValueError(
                f"train selection {selection} is out of range (1~{len(trains)})"
            )
        self.selected_train = trains[selection - 1].form_value

    def to_form(self) -> list[tuple[str, str]]:
        """Form fields in submission order."""
        return [
            ("TrainQueryDataViewPanel:TrainGroup", self.selected_train),
            ("BookingS2Form:hf:0", self.form_mark),
        ]


def parse_alert_body(page: BeautifulSoup) -> list[str]:
    """The notices listed at the top of the train selection page."""
    return [item.get_text().strip() for item in page.select("ul.alert-body > li")]


def parse_discount(item: Tag) -> str:
    """Early-bird and student discounts of a train, in parentheses, or an empty string."""
    discounts = []
    for selector in ("p.early-bird span", "p.student span"):
        tag = item.select_one(selector)
        if tag is not None:
            discounts.append(_first_text(tag))
    return f"({', '.join(discounts)})" if discounts else ""


def parse_trains(page: BeautifulSoup) -> list[Train]:
    """Every train offered on the selection page, in page order."""
    trains = []
    for item in page.select("label.result-item"):
        element = item.select_one("input")
        if element is None:
            raise BookingError("train entry has no input element")
        code = _attr(element, "querycode")
        try:
            train_id = int(code)
        except ValueError:
            raise BookingError(f"invalid train code {code!r}") from None
        trains.append(
            Train(
                id=train_id,
                depart=_attr(element, "querydeparture"),
                arrive=_attr(element, "queryarrival"),
                travel_time=_attr(element, "queryestimatedtime"),
                discount_info=parse_discount(item),
                form_value=_attr(element, "value"),
            )
        )
    return trains


def run_flow(page: BeautifulSoup, session: requests.Session) -> BeautifulSoup:
    """Let the user pick a train and submit it; return the ticket confirmation page."""
    print("\n".join(parse_alert_body(page)))
    payload = ConfirmTrainPayload()
    payload.select_available_trains(parse_trains(page))
    response = session.post(
        CONFIRM_TRAIN_URL,
        data=urlencode(payload.to_form()),
        headers=FORM_CONTENT_TYPE,
        timeout=REQUEST_TIMEOUT,
    )
    return check_page(response.text)