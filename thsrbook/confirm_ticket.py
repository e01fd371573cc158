"""Final booking step: passenger identification, membership and ticket confirmation."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from urllib.parse import urlencode

import requests
from bs4 import BeautifulSoup

from thsrbook.cli import Args
from thsrbook.common import (
    CONFIRM_TICKET_URL,
    FORM_CONTENT_TYPE,
    REQUEST_TIMEOUT,
    BookingError,
    check_page,
    prompt,
)

_MEMBER_GROUP = "TicketMemberSystemInputPanel:TakerMemberSystemDataView:memberSystemRadioGroup"
_PASSENGER_PREFIX = "TicketPassengerInfoInputPanel:passengerDataView"
_EARLY_TYPE_FIELD = f"{_PASSENGER_PREFIX}:0:passengerDataView2:passengerDataTypeName"


@dataclass
class ConfirmTicketPayload:
    """The passenger and confirmation form."""

    personal_id: str = ""
    phone_num: str = ""
    member_radio: str = "0"
    form_mark: str = ""
    id_input_radio: int = 0
    diff_over: int = 1
    email: str = ""
    agree: str = "on"
    go_back_m: str = ""
    back_home: str = ""
    tgo_error: int = 1

    def input_personal_id(self, personal_id: str | None) -> str:
        """Use ``personal_id`` or read one from the user; store and return it trimmed."""
        if personal_id is None:
            print("Input personal ID:")
            personal_id = sys.stdin.readline()
        self.personal_id = personal_id.strip()
        return self.personal_id

    def to_form(self) -> list[tuple[str, str]]:
        """Form fields in submission order."""
        fields = [
            ("dummyId", self.personal_id),
            ("dummyPhone", self.phone_num),
            (_MEMBER_GROUP, self.member_radio),
            ("BookingS3FormSP:hf:0", self.form_mark),
            ("idInputRadio", self.id_input_radio),
            ("diffOver", self.diff_over),
            ("email", self.email),
            ("agree", self.agree),
            ("isGoBackM", self.go_back_m),
            ("backHome", self.back_home),
            ("TgoError", self.tgo_error),
        ]
        return [(key, str(value)) for key, value in fields]


def process_membership(
    page: BeautifulSoup, membership_id: str, use_membership: bool | None
) -> tuple[str, str | None]:
    """The membership radio value and, when membership is used, extra encoded form fields."""
    if use_membership is None:
        use_membership = prompt("Use membership (y/n, default: n):", "n", str) == "y"
    selector = "#memberSystemRadio1" if use_membership else "#memberSystemRadio3"
    element = page.select_one(selector)
    if element is None:
        raise BookingError(f"confirmation page has no element matching {selector!r}")
    radio_value = element.get("value")
    if radio_value is None:
        raise BookingError(f"membership radio {selector!r} has no value")
    if not use_membership:
        return radio_value, None
    extra = urlencode(
        [
            (f"{_MEMBER_GROUP}:memberShipNumber", membership_id),
            (f"{_MEMBER_GROUP}:memberSystemShipCheckBox", "on"),
        ]
    )
    return radio_value, extra


def _passenger_fields(index: int, early_type: str, id_number: str) -> dict[str, str]:
    prefix = f"{_PASSENGER_PREFIX}:{index}:passengerDataView2"
    return {
        f"{prefix}:passengerDataLastName": "",
        f"{prefix}:passengerDataFirstName": "",
        f"{prefix}:passengerDataTypeName": early_type,
        f"{prefix}:passengerDataIdNumber": id_number,
        # 0 for ID, 1 for passport
        f"{prefix}:passengerDataInputChoice": "0",
    }


def process_early_bird(page: BeautifulSoup, personal_id: str) -> dict[str, str] | None:
    """Passenger fields required for super-early-bird tickets, or ``None`` if there are none."""
    tickets = [
        tag for tag in page.select(".superEarlyBird") if next(iter(tag.strings), None) is not None
    ]
    if not tickets:
        return None

    first_id = prompt(f"Passenger's ID number (default: {personal_id}):", personal_id, str)
    type_element = page.select_one(f"input[name='{_EARLY_TYPE_FIELD}']")
    if type_element is None or type_element.get("value") is None:
        raise BookingError("confirmation page has no early-bird passenger type")
    early_type = type_element["value"]

    fields = _passenger_fields(0, early_type, first_id)
    for index in range(1, len(tickets)):
        while True:
            passenger_id = prompt(
                f"Input passenger's ID for passenger {index + 1}\n"
                "(ID change is not allowed after input!):",
                "",
                str,
            )
            if passenger_id:
                break
            print("ID should not be empty!")
        fields.update(_passenger_fields(index, early_type, passenger_id.strip()))
    return fields


def run_flow(page: BeautifulSoup, session: requests.Session, args: Args) -> BeautifulSoup:
    """Fill in passenger details and confirm; return the booking result page."""
    payload = ConfirmTicketPayload()
    personal_id = payload.input_personal_id(args.personal_id)
    radio_value, membership_fields = process_membership(
        page, personal_id, args.use_membership
    )
    payload.member_radio = radio_value

    body = urlencode(payload.to_form())
    early_bird_fields = process_early_bird(page, personal_id)
    if early_bird_fields is not None:
        body = f"{body}&{urlencode(early_bird_fields)}"
    if membership_fields is not None:
        body = f"{body}&{membership_fields}"

    print("Booking...")
    response = session.post(
        CONFIRM_TICKET_URL,
        data=body,
        headers=FORM_CONTENT_TYPE,
        timeout=REQUEST_TIMEOUT,
    )
    return check_page(response.text)