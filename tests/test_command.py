from unittest.mock import AsyncMock, Mock

import pytest

from yabaictl.command import get_parser, main, parse_space_arg
from yabaictl.config import Configuration
from yabaictl.models import Direction, ExitCode, SpaceKeyword
from yabaictl.version import VERSION


@pytest.fixture
def no_daemon_calls(mocker):
    "Fails if anything tries to reach yabai"
    connect = mocker.patch("asyncio.open_unix_connection", side_effect=AssertionError("no daemon call expected"))
    run = mocker.patch("yabaictl.command.run_command")
    return connect, run


@pytest.fixture
def cli_env(mocker):
    "Default configuration without version check"
    config = Configuration({"check_version": False}, logger=Mock())
    mocker.patch("yabaictl.command.load_config", new_callable=AsyncMock, return_value=config)
    return config


def run_main(argv):
    with pytest.raises(SystemExit) as exc:
        main(argv)
    return exc.value.code


def test_parser_arguments():
    parser = get_parser()

    args = parser.parse_args(["focus-window", "EAST"])
    assert args.direction == Direction.EAST

    args = parser.parse_args(["--config", "/tmp/yabaictl.toml", "focus-space", "next"])
    assert args.config == "/tmp/yabaictl.toml"
    assert args.space == SpaceKeyword.NEXT


def test_parse_space_arg():
    assert parse_space_arg("prev") == SpaceKeyword.PREV
    assert parse_space_arg("Recent") == SpaceKeyword.RECENT
    assert parse_space_arg("7") == 7


@pytest.mark.parametrize(
    "argv",
    [
        [],
        ["focus-window"],
        ["focus-window", "up"],
        ["swap-window", "east", "west"],
        ["focus-space", "0"],
        ["focus-space", "later"],
        ["move-window-to-monitor"],
    ],
)
def test_invalid_arguments_make_no_daemon_call(no_daemon_calls, argv):
    connect, run = no_daemon_calls

    assert run_main(argv) == ExitCode.USAGE_ERROR

    connect.assert_not_called()
    run.assert_not_called()


def test_version(no_daemon_calls, capsys):
    assert run_main(["version"]) == ExitCode.SUCCESS
    assert capsys.readouterr().out.strip() == VERSION
    no_daemon_calls[1].assert_not_called()


def test_completions(no_daemon_calls, capsys):
    assert run_main(["completions", "bash"]) == ExitCode.SUCCESS
    assert "yabaictl" in capsys.readouterr().out


def test_daemon_unreachable(mocker, cli_env, capsys):
    connect = mocker.patch("asyncio.open_unix_connection", side_effect=FileNotFoundError)

    assert run_main(["focus-display"]) == ExitCode.CONNECTION_ERROR

    assert "Error: cannot connect to yabai" in capsys.readouterr().err
    # the first query failed, nothing else was sent
    assert connect.call_count == 1


@pytest.mark.parametrize("command", ["focus-display", "move-window-to-display", "restore-spaces", "states"])
def test_every_command_fails_without_daemon(mocker, cli_env, command):
    mocker.patch("asyncio.open_unix_connection", side_effect=ConnectionRefusedError)

    assert run_main([command]) == ExitCode.CONNECTION_ERROR


def test_precondition_failure(mocker, cli_env, one_display, capsys):
    mocker.patch("yabaictl.ipc.query_states", new_callable=AsyncMock, return_value=one_display)
    message = mocker.patch("yabaictl.ipc.yabai_message", new_callable=AsyncMock)

    assert run_main(["move-window-to-display"]) == ExitCode.PRECONDITION_ERROR

    assert "expected exactly 2 displays" in capsys.readouterr().err
    message.assert_not_called()


def test_version_mismatch(mocker, cli_env, capsys):
    cli_env["check_version"] = True
    proc = Mock()
    proc.communicate = AsyncMock(return_value=(b"yabai-v3.3.10\n", b""))
    mocker.patch("asyncio.create_subprocess_exec", return_value=proc)
    connect = mocker.patch("asyncio.open_unix_connection")

    assert run_main(["focus-display"]) == ExitCode.VERSION_ERROR

    assert "upgrade" in capsys.readouterr().err
    connect.assert_not_called()


def test_success(mocker, cli_env, two_displays):
    mocker.patch("yabaictl.ipc.query_states", new_callable=AsyncMock, return_value=two_displays)
    message = mocker.patch("yabaictl.ipc.yabai_message", new_callable=AsyncMock, return_value="")

    assert run_main(["focus-display"]) == ExitCode.SUCCESS

    message.assert_awaited_once()
    assert message.call_args.args == ("display", "--focus", 2)


def test_states_output(mocker, cli_env, two_displays, capsys):
    mocker.patch("yabaictl.ipc.query_states", new_callable=AsyncMock, return_value=two_displays)

    assert run_main(["states"]) == ExitCode.SUCCESS

    assert '"label": "s2"' in capsys.readouterr().out


def test_daemon_error_exit_code(mocker, cli_env, two_displays, capsys):
    from yabaictl.models import DaemonError

    mocker.patch("yabaictl.ipc.query_states", new_callable=AsyncMock, return_value=two_displays)
    mocker.patch("yabaictl.ipc.yabai_message", new_callable=AsyncMock, side_effect=DaemonError("could not locate the selected display."))

    assert run_main(["focus-display"]) == ExitCode.COMMAND_ERROR

    assert "could not locate the selected display." in capsys.readouterr().err
