"""HTTP session setup, console prompts and page helpers shared by the booking steps."""

from __future__ import annotations

import sys
from collections.abc import Callable
from typing import TypeVar

import requests
from bs4 import BeautifulSoup

T = TypeVar("T")

BASE_URL = "https://irs.thsrc.com.tw"
BOOKING_PAGE_URL = "https://irs.thsrc.com.tw/IMINT/?locale=tw"
SUBMIT_FORM_URL = (
    "https://irs.thsrc.com.tw/IMINT/;jsessionid={}"
    "?wicket:interface=:0:BookingS1Form::IFormSubmitListener"
)
CONFIRM_TRAIN_URL = (
    "https://irs.thsrc.com.tw/IMINT/?wicket:interface=:1:BookingS2Form::IFormSubmitListener"
)
CONFIRM_TICKET_URL = (
    "https://irs.thsrc.com.tw/IMINT/?wicket:interface=:2:BookingS3Form::IFormSubmitListener"
)
FORM_CONTENT_TYPE = {"Content-Type": "application/x-www-form-urlencoded"}
REQUEST_TIMEOUT = 60
MAX_REDIRECTS = 20


class BookingError(Exception):
    """The booking site rejected a submitted form."""


def default_headers() -> dict[str, str]:
    """Browser-like headers sent with every request."""
    return {
        "Host": "irs.thsrc.com.tw",
        "User-Agent": (
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:137.0) "
            "Gecko/20100101 Firefox/137.0"
        ),
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
        "Accept-Language": "zh-TW,zh;q=0.8,en-US;q=0.5,en;q=0.3",
        "Accept-Encoding": "deflate, br",
        "Connection": "keep-alive",
        "Upgrade-Insecure-Requests": "1",
        "Referer": "https://irs.thsrc.com.tw/IMINT/",
        "Sec-Fetch-Site": "same-origin",
        "Sec-Fetch-Mode": "no-cors",
    }


def create_session() -> requests.Session:
    """A cookie-keeping session with the default headers and redirect limit."""
    session = requests.Session()
    session.headers.clear()
    session.headers.update(default_headers())
    session.max_redirects = MAX_REDIRECTS
    return session


def prompt(hint: str, default: T, convert: Callable[[str], T] | None = None) -> T:
    """Print ``hint`` and read a line; fall back to ``default`` if empty or unparsable."""
    print(hint)
    line = sys.stdin.readline().strip()
    if not line:
        return default
    converter = convert if convert is not None else type(default)
    try:
        return converter(line)
    except (ValueError, TypeError):
        return default


def parse_html(text: str) -> BeautifulSoup:
    """Parse an HTML document."""
    return BeautifulSoup(text, "html.parser")


def parse_error(page: BeautifulSoup) -> str | None:
    """Collect the error messages shown on a page, one per line, or ``None``."""
    errors = []
    for element in page.select("span.feedbackPanelERROR"):
        first = next(iter(element.strings), None)
        if first is not None:
            errors.append(first.strip())
    return "\n".join(errors) if errors else None


def check_page(text: str) -> BeautifulSoup:
    """Parse a response page and raise :class:`BookingError` if it reports errors."""
    page = parse_html(text)
    message = parse_error(page)
    if message is not None:
        raise BookingError(message)
    return page