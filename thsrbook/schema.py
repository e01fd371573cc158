"""Station names, departure time slots and ticket types used by the booking form."""

from __future__ import annotations

from enum import IntEnum

STATION_MAP: tuple[str, ...] = (
    "Nangang",
    "Taipei",
    "Banqiao",
    "Taoyuan",
    "Hsinchu",
    "Miaoli",
    "Taichung",
    "Changhua",
    "Yunlin",
    "Chiayi",
    "Tainan",
    "Zuouing",
)

TIME_TABLE: tuple[str, ...] = (
    "1201A", "1230A", "600A", "630A", "700A", "730A", "800A", "830A", "900A",
    "930A", "1000A", "1030A", "1100A", "1130A", "1200N", "1230P", "100P",
    "130P", "200P", "230P", "300P", "330P", "400P", "430P", "500P", "530P",
    "600P", "630P", "700P", "730P", "800P", "830P", "900P", "930P", "1000P",
    "1030P", "1100P", "1130P",
)


class TicketType(IntEnum):
    """Ticket categories; each value is the character code the form expects."""

    ADULT = 70
    CHILD = 72
    DISABLED = 87
    ELDER = 69
    COLLEGE = 80

    @property
    def code(self) -> str:
        """The single-letter suffix sent with the ticket amount."""
        return chr(self.value)

    def __str__(self) -> str:
        return self.name.capitalize()


def format_time(t_str: str) -> str:
    """Turn a time slot such as ``"130P"`` into 24-hour ``"HH:MM"`` form."""
    suffix = t_str[-1]
    value = int(t_str[:-1])
    if suffix == "A" and value // 100 == 12:
        value %= 1200
    elif value != 1230 and suffix == "P":
        value += 1200
    digits = f"{value:04d}"
    return f"{digits[:-2]}:{digits[-2:]}"


def station_lines() -> list[str]:
    """Numbered lines listing every station, starting at 1."""
    return [f'{number}: "{name}"' for number, name in enumerate(STATION_MAP, start=1)]


def time_table_lines() -> list[str]:
    """Numbered lines listing every departure time slot, starting at 1."""
    return [
        f"{number}. {format_time(slot)}"
        for number, slot in enumerate(TIME_TABLE, start=1)
    ]