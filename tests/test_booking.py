import io
import subprocess
import sys
from urllib.parse import parse_qs, urlencode

import pytest

from thsrbook import booking
from thsrbook.booking import (
    BookingPayload,
    normalize_date,
    parse_avail_start_end_date,
    parse_search_by,
    parse_security_code_img_url,
    parse_types_of_trip_value,
    run_flow,
    show_image,
)
from thsrbook.cli import Args
from thsrbook.common import (
    BASE_URL,
    BOOKING_PAGE_URL,
    SUBMIT_FORM_URL,
    BookingError,
    parse_html,
)
from thsrbook.schema import STATION_MAP, TIME_TABLE, TicketType

BOOKING_HTML = """
<html><body><form>
<input type="radio" name="bookingMethod" value="radio17">
<input type="radio" name="bookingMethod" value="radio31" checked="checked">
<select id="BookingS1Form_tripCon_typesoftrip">
  <option value="0" selected="selected">One way</option>
  <option value="1">Round trip</option>
</select>
<input id="toTimeInputField" date="2025/06/01" limit="2025/06/29">
<img id="BookingS1Form_homeCaptcha_passCode" src="/IMINT/captcha.jpg">
</form></body></html>
"""

IMAGE_BYTES = b"\xff\xd8fake-jpeg"


def set_stdin(monkeypatch, text):
    monkeypatch.setattr(sys, "stdin", io.StringIO(text))


@pytest.fixture
def fake_viewer(monkeypatch, tmp_path):
    calls = []
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(sys, "platform", "linux")
    monkeypatch.setattr(subprocess, "Popen", lambda cmd: calls.append(cmd))
    return calls


class FakeResponse:
    def __init__(self, text="", content=b"", cookies=None):
        self.text = text
        self.content = content
        self.cookies = cookies or {}


class FakeSession:
    def __init__(self, result_html):
        self.cookies = {}
        self.result_html = result_html
        self.gets = []
        self.posts = []

    def get(self, url, timeout=None):
        self.gets.append(url)
        if url == BOOKING_PAGE_URL:
            return FakeResponse(text=BOOKING_HTML, cookies={"JSESSIONID": "abc123"})
        return FakeResponse(content=IMAGE_BYTES)

    def post(self, url, data=None, headers=None, timeout=None):
        self.posts.append((url, data, headers))
        return FakeResponse(text=self.result_html)


# normalize_date


def test_normalize_date_pads_fields():
    assert normalize_date("2025/6/5") == "2025/06/05"


def test_normalize_date_keeps_already_normalized():
    assert normalize_date("2023/10/01") == "2023/10/01"


@pytest.mark.parametrize(
    "text",
    ["2025-06-05", "2025/06", "999/06/05", "2025/13/01", "2025/00/10",
     "2025/06/32", "2025/06/0", "abcd/06/05", "2025/-1/05", "", "2025/06/05/01"],
)
def test_normalize_date_rejects_invalid(text):
    assert normalize_date(text) is None


# payload defaults and form


def test_default_form_order_and_ticket_defaults():
    form = BookingPayload().to_form()
    keys = [key for key, _ in form]
    assert keys[0] == "selectStartStation"
    assert keys[1] == "selectDestinationStation"
    values = dict(form)
    assert values["ticketPanel:rows:0:ticketAmount"] == "1F"
    assert values["ticketPanel:rows:1:ticketAmount"] == "0H"
    assert values["ticketPanel:rows:2:ticketAmount"] == "0W"
    assert values["ticketPanel:rows:3:ticketAmount"] == "0E"
    assert values["ticketPanel:rows:4:ticketAmount"] == "0P"


def test_form_omits_unset_optional_fields():
    keys = dict(BookingPayload().to_form())
    for optional in ("backTimeInputField", "backTimeTable",
                     "toTrainIDInputField", "backTrainIDInputField"):
        assert optional not in keys


def test_form_includes_optional_fields_when_set():
    payload = BookingPayload(inbound_date="2023/10/02", to_train_id=5)
    values = dict(payload.to_form())
    assert values["backTimeInputField"] == "2023/10/02"
    assert values["toTrainIDInputField"] == "5"


def test_form_encoding_round_trip():
    payload = BookingPayload(outbound_date="2023/10/05")
    encoded = urlencode(payload.to_form())
    assert "tripCon%3Atypesoftrip=0" in encoded
    decoded = {k: v[0] for k, v in parse_qs(encoded, keep_blank_values=True).items()}
    assert decoded == dict(payload.to_form())


# stations


def test_select_start_station_explicit():
    payload = BookingPayload()
    payload.select_start_station(5)
    assert payload.start_station == 5


def test_select_start_station_prompt(monkeypatch, capsys):
    set_stdin(monkeypatch, "3\n")
    payload = BookingPayload()
    payload.select_start_station(None)
    assert payload.start_station == 3
    assert '1: "Nangang"' in capsys.readouterr().out


def test_select_start_station_invalid_defaults(monkeypatch, capsys):
    set_stdin(monkeypatch, f"{len(STATION_MAP) + 1}\n")
    payload = BookingPayload(start_station=7)
    payload.select_start_station(None)
    assert payload.start_station == 1
    assert "Invalid input, defaulting to Nangang." in capsys.readouterr().out


def test_select_dest_station_empty_uses_default(monkeypatch):
    set_stdin(monkeypatch, "\n")
    payload = BookingPayload(dest_station=2)
    payload.select_dest_station(None)
    assert payload.dest_station == 12


def test_select_dest_station_invalid_defaults(monkeypatch, capsys):
    set_stdin(monkeypatch, "0\n")
    payload = BookingPayload(dest_station=2)
    payload.select_dest_station(None)
    assert payload.dest_station == 12
    assert "Invalid input, defaulting to Zuouing." in capsys.readouterr().out


# date


def test_select_date_explicit_in_range():
    payload = BookingPayload()
    payload.select_date("2025/06/01", "2025/06/29", "2025/6/10")
    assert payload.outbound_date == "2025/06/10"


def test_select_date_out_of_range_uses_start():
    payload = BookingPayload()
    payload.select_date("2025/06/01", "2025/06/29", "2025/07/01")
    assert payload.outbound_date == "2025/06/01"


def test_select_date_bad_format_uses_start(capsys):
    payload = BookingPayload()
    payload.select_date("2025/06/01", "2025/06/29", "tomorrow")
    assert payload.outbound_date == "2025/06/01"
    assert "Invalid date format" in capsys.readouterr().out


def test_select_date_prompt_empty_uses_start(monkeypatch):
    set_stdin(monkeypatch, "\n")
    payload = BookingPayload()
    payload.select_date("2025/06/01", "2025/06/29", None)
    assert payload.outbound_date == "2025/06/01"


def test_select_date_bounds_are_inclusive():
    payload = BookingPayload()
    payload.select_date("2025/06/01", "2025/06/29", "2025/06/29")
    assert payload.outbound_date == "2025/06/29"


# time


def test_select_time_explicit():
    payload = BookingPayload()
    payload.select_time(1)
    assert payload.outbound_time == TIME_TABLE[0]
    payload.select_time(len(TIME_TABLE))
    assert payload.outbound_time == TIME_TABLE[-1]


def test_select_time_too_large_defaults():
    payload = BookingPayload()
    payload.select_time(len(TIME_TABLE) + 1)
    assert payload.outbound_time == TIME_TABLE[9]


def test_select_time_zero_raises():
    with pytest.raises(ValueError):
        BookingPayload().select_time(0)


def test_select_time_prompt_default(monkeypatch, capsys):
    set_stdin(monkeypatch, "\n")
    payload = BookingPayload()
    payload.select_time(None)
    assert payload.outbound_time == TIME_TABLE[9]
    assert "Select departure time (default: 10):" in capsys.readouterr().out


def test_select_time_prompt_negative_uses_default(monkeypatch):
    set_stdin(monkeypatch, "-3\n")
    payload = BookingPayload()
    payload.select_time(None)
    assert payload.outbound_time == TIME_TABLE[9]


# tickets


def test_select_ticket_num_college():
    payload = BookingPayload()
    payload.select_ticket_num(TicketType.COLLEGE, 2)
    assert payload.college_ticket_num == "2P"


@pytest.mark.parametrize("ticket_type, field, letter", [
    (TicketType.ADULT, "adult_ticket_num", "F"),
    (TicketType.CHILD, "child_ticket_num", "H"),
    (TicketType.DISABLED, "disabled_ticket_num", "W"),
    (TicketType.ELDER, "elder_ticket_num", "E"),
    (TicketType.COLLEGE, "college_ticket_num", "P"),
])
def test_select_ticket_num_sets_matching_field(ticket_type, field, letter):
    payload = BookingPayload()
    payload.select_ticket_num(ticket_type, 4)
    assert getattr(payload, field) == f"4{letter}"


def test_select_ticket_num_too_many_defaults_to_one(capsys):
    payload = BookingPayload()
    payload.select_ticket_num(TicketType.ADULT, 11)
    assert payload.adult_ticket_num == "1F"
    assert "Invalid input, defaulting to 1." in capsys.readouterr().out


def test_select_ticket_num_prompt_names_type(monkeypatch, capsys):
    set_stdin(monkeypatch, "3\n")
    payload = BookingPayload()
    payload.select_ticket_num(TicketType.ELDER, None)
    assert payload.elder_ticket_num == "3E"
    assert "tickets for Elder" in capsys.readouterr().out


def test_select_ticket_num_prompt_overflow_uses_default(monkeypatch):
    set_stdin(monkeypatch, "300\n")
    payload = BookingPayload()
    payload.select_ticket_num(TicketType.CHILD, None)
    assert payload.child_ticket_num == "1H"


# seat and class


@pytest.mark.parametrize("value", [0, 1, 2])
def test_select_seat_prefer_valid(value):
    payload = BookingPayload()
    payload.select_seat_prefer(value)
    assert payload.seat_prefer == value


def test_select_seat_prefer_invalid(monkeypatch):
    set_stdin(monkeypatch, "5\n")
    payload = BookingPayload(seat_prefer=1)
    payload.select_seat_prefer(None)
    assert payload.seat_prefer == 0


def test_select_class_type_valid_and_invalid():
    payload = BookingPayload()
    payload.select_class_type(1)
    assert payload.class_type == 1
    payload.select_class_type(2)
    assert payload.class_type == 0


# page parsing


def test_parse_avail_start_end_date():
    assert parse_avail_start_end_date(parse_html(BOOKING_HTML)) == ("2025/06/01", "2025/06/29")


def test_parse_types_of_trip_value():
    assert parse_types_of_trip_value(parse_html(BOOKING_HTML)) == 0


def test_parse_search_by_picks_checked():
    assert parse_search_by(parse_html(BOOKING_HTML)) == "radio31"


def test_parse_security_code_img_url():
    url = parse_security_code_img_url(parse_html(BOOKING_HTML))
    assert url == BASE_URL + "/IMINT/captcha.jpg"


def test_parse_missing_elements_raise():
    empty = parse_html("<html><body></body></html>")
    with pytest.raises(BookingError):
        parse_avail_start_end_date(empty)
    with pytest.raises(BookingError):
        parse_search_by(empty)
    with pytest.raises(BookingError):
        parse_security_code_img_url(empty)


# image and security code


def test_show_image_writes_file_and_opens(fake_viewer, tmp_path):
    show_image(IMAGE_BYTES)
    assert (tmp_path / booking.IMAGE_FILE_NAME).read_bytes() == IMAGE_BYTES
    assert fake_viewer == [["xdg-open", booking.IMAGE_FILE_NAME]]


def test_input_security_code(fake_viewer, monkeypatch):
    set_stdin(monkeypatch, "  K7Q2 \n")
    payload = BookingPayload()
    payload.input_security_code(IMAGE_BYTES)
    assert payload.security_code == "K7Q2"
    assert len(fake_viewer) == 1


# whole step


def full_args():
    return Args(date="2025/6/10", time=1, from_=2, to=11, adult_cnt=2,
                student_cnt=1, seat_prefer=1, class_type=1)


def test_run_flow_submits_form(fake_viewer, monkeypatch):
    set_stdin(monkeypatch, "K7Q2\n")
    session = FakeSession("<html><body><p>trains</p></body></html>")
    page = run_flow(session, full_args())
    assert page.find("p").get_text() == "trains"
    assert session.gets == [BOOKING_PAGE_URL, BASE_URL + "/IMINT/captcha.jpg"]

    url, data, headers = session.posts[0]
    assert url == SUBMIT_FORM_URL.format("abc123")
    assert headers["Content-Type"] == "application/x-www-form-urlencoded"
    form = {k: v[0] for k, v in parse_qs(data, keep_blank_values=True).items()}
    assert form["bookingMethod"] == "radio31"
    assert form["selectStartStation"] == "2"
    assert form["selectDestinationStation"] == "11"
    assert form["toTimeInputField"] == "2025/06/10"
    assert form["toTimeTable"] == TIME_TABLE[0]
    assert form["homeCaptcha:securityCode"] == "K7Q2"
    assert form["ticketPanel:rows:0:ticketAmount"] == "2F"
    assert form["ticketPanel:rows:4:ticketAmount"] == "1P"
    assert form["seatCon:seatRadioGroup"] == "1"
    assert form["trainCon:trainRadioGroup"] == "1"


def test_run_flow_reports_site_error(fake_viewer, monkeypatch):
    set_stdin(monkeypatch, "0000\n")
    session = FakeSession(
        "<html><body><span class='feedbackPanelERROR'> Wrong code </span></body></html>"
    )
    with pytest.raises(BookingError, match="Wrong code"):
        run_flow(session, full_args())


def test_run_flow_without_session_cookie_raises(monkeypatch):
    session = FakeSession("")
    session.get = lambda url, timeout=None: FakeResponse(text=BOOKING_HTML)
    with pytest.raises(BookingError):
        run_flow(session, full_args())
    assert session.posts == []