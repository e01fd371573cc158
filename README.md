# thsrbook

A command-line tool for booking Taiwan High Speed Rail tickets.

Running it with no options walks you through the booking step by step:
departure and arrival stations, date, time, number of tickets, seat and
class preference, the security code, the train, and your personal ID.
Most steps can be answered ahead of time with an option, so a booking
can be made with only a few prompts (the security code and the train
are always asked for).

## Installation

```
pip install .
```

## Usage

Start an interactive booking:

```
thsrbook
```

List the station IDs:

```
thsrbook --list-station
```

List the departure time IDs:

```
thsrbook --list-time-table
```

Book with most choices given up front:

```
thsrbook -i YOUR_ID -d 2025/06/01 -T 10 -f 2 -t 12 -a 1 -p 1 -c 0 -m false
```

### Options

| Option | Meaning |
| --- | --- |
| `-i`, `--personal-id ID` | Personal ID |
| `-d`, `--date DATE` | Departure date, `Y/M/D` (for example `2025/6/1`) |
| `-T`, `--time TIME_ID` | Departure time ID (see `--list-time-table`) |
| `-f`, `--from STATION_ID` | Departure station ID (see `--list-station`) |
| `-t`, `--to STATION_ID` | Arrival station ID (see `--list-station`) |
| `-a`, `--adult-cnt NUMBER` | Number of adult tickets |
| `-s`, `--student-cnt NUMBER` | Number of student (college) tickets |
| `-p`, `--seat-prefer NUMBER` | Seat preference: 0 none, 1 window, 2 aisle |
| `-c`, `--class-type NUMBER` | Class: 0 standard, 1 business |
| `-m`, `--use-membership true\|false` | Use the personal ID as membership number |
| `--list-station` | List available stations and exit |
| `--list-time-table` | List available times and exit |
| `-V`, `--version` | Show the version and exit |

### Defaults and fallbacks

- An empty answer to a prompt takes the default shown in the prompt.
- Without `-a` or `-s`, you are asked for the number of adult tickets.
  A ticket count above 10 falls back to 1.
- A date that is malformed or outside the bookable range shown on the
  site falls back to the first bookable date.
- A time ID above the last one in the list falls back to time ID 10.
- A station chosen at the prompt outside 1–12 falls back to Nangang
  (departure) or Zuouing (arrival).

The security code image is saved as `tmp_code.jpg` in the current
directory and opened with the system's default image viewer (`open` on
macOS, `xdg-open` on Linux, `cmd /C` on Windows). Type the code you see
when prompted.

For super-early-bird tickets you are asked for each passenger's ID.

When the booking succeeds, the PNR code, price, payment deadline and
ticket details are printed. Use the PNR code to pay for and pick up the
ticket. If the site rejects a step, its error message is printed as
`Error: ...` and the booking stops.

## Modules

- `thsrbook.app` – the `main` entry point, `run` for a whole booking,
  and `format_result` for the result page.
- `thsrbook.booking`, `thsrbook.confirm_train`, `thsrbook.confirm_ticket`
  – the three booking steps, each with a `run_flow` function.
- `thsrbook.cli` – `Args` and `parse_args`.
- `thsrbook.schema` – `STATION_MAP`, `TIME_TABLE` and `TicketType`.
- `thsrbook.common` – `create_session`, `check_page` and `BookingError`.

## What it does not do

- It books one-way trips only; there is no way to choose a return trip.
- Passengers are identified by ID number only, not by passport.
- It does not read the security code itself, and it does not pay for
  the ticket.

## Development

```
pip install -e .[test]
pytest
```