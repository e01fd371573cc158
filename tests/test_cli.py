import pytest

from thsrbook.cli import Args, build_parser, parse_args


def test_no_arguments_gives_defaults():
    assert parse_args([]) == Args()


def test_station_options():
    args = parse_args(["-f", "3", "-t", "7"])
    assert args.from_ == 3
    assert args.to == 7


def test_long_options():
    args = parse_args(
        ["--personal-id", "A000000000", "--date", "2024/01/02", "--time", "5",
         "--adult-cnt", "2", "--student-cnt", "1"]
    )
    assert args.personal_id == "A000000000"
    assert args.date == "2024/01/02"
    assert args.time == 5
    assert args.adult_cnt == 2
    assert args.student_cnt == 1


def test_seat_and_class_choices():
    args = parse_args(["-p", "2", "-c", "1"])
    assert args.seat_prefer == 2
    assert args.class_type == 1


@pytest.mark.parametrize("argv", [["-p", "3"], ["-c", "2"], ["-p", "01"]])
def test_invalid_choices_rejected(argv):
    with pytest.raises(SystemExit):
        parse_args(argv)


@pytest.mark.parametrize("argv", [["-a", "256"], ["-s", "-1"], ["-T", "x"], ["-f", "-2"]])
def test_invalid_numbers_rejected(argv):
    with pytest.raises(SystemExit):
        parse_args(argv)


def test_use_membership_values():
    assert parse_args(["-m", "true"]).use_membership is True
    assert parse_args(["-m", "false"]).use_membership is False
    with pytest.raises(SystemExit):
        parse_args(["-m", "yes"])


def test_list_flags():
    args = parse_args(["--list-station", "--list-time-table"])
    assert args.list_station is True
    assert args.list_time_table is True


def test_version_exits(capsys):
    with pytest.raises(SystemExit) as excinfo:
        build_parser().parse_args(["--version"])
    assert excinfo.value.code == 0
    assert "1.0.0" in capsys.readouterr().out