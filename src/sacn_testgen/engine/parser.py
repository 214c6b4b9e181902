"""
Command Parser: one text line to one Action.

Commands are a short action token followed by whitespace separated
arguments. A sync universe argument of 0 means "no synchronization".
Lines that are blank or start with ``#`` parse to ``Ignore``.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Optional, Tuple

from sacn_testgen.core.actions import (
    Action,
    Ignore,
    Preview,
    Register,
    RunTestPreset,
    SendAllData,
    SendData,
    SendDataOverTime,
    SendFullData,
    Sleep,
    Sync,
    Terminate,
    Unicast,
    UnicastSync,
)
from sacn_testgen.core.exceptions import ParseError

ACTION_DATA = "d"
ACTION_ALL_DATA = "a"
ACTION_FULL_DATA = "f"
ACTION_DATA_OVER_TIME = "x"
ACTION_UNICAST = "u"
ACTION_UNICAST_SYNC = "us"
ACTION_SYNC = "s"
ACTION_REGISTER = "r"
ACTION_PREVIEW = "p"
ACTION_SLEEP = "w"
ACTION_TERMINATE = "q"
ACTION_TEST_PRESET = "t"
ACTION_IGNORE = "#"

USAGE = """\
Commands (one per line, sync universe 0 = none):
  d <universe> <sync_universe> <value>...                 send data
  a <universe> <sync_universe> <value>                    send a full universe of one value
  f <universe> <sync_universe> <value>...                 send data padded to a full universe
  x <universe> <sync_universe> <duration_ms>              send varying data for a while
  u <destination> <universe> <sync_universe> <value>...   send data by unicast
  us <destination> <sync_universe>                        send a sync packet by unicast
  s <sync_universe>                                       send a sync packet
  r <universe>                                            register a universe for sending
  p <true|false>                                          mark sent data as preview data
  w <milliseconds>                                        wait
  q [universe]                                            terminate a universe, or quit
  t <preset> [destination] [duration_s]                   run a test preset
  # ...                                                   comment
"""

_TRUE_WORDS = ("true", "t", "yes", "y", "1", "on")
_FALSE_WORDS = ("false", "f", "no", "n", "0", "off")


def _int(line: str, token: str, name: str) -> int:
    try:
        return int(token, 10)
    except ValueError:
        raise ParseError(line, f"{name} must be an integer, got '{token}'") from None


def _float(line: str, token: str, name: str) -> float:
    try:
        return float(token)
    except ValueError:
        raise ParseError(line, f"{name} must be a number, got '{token}'") from None


def _is_number(token: str) -> bool:
    try:
        float(token)
    except ValueError:
        return False
    return True


def _sync(line: str, token: str) -> Optional[int]:
    value = _int(line, token, "sync universe")
    return value if value != 0 else None


def _values(line: str, tokens: List[str]) -> Tuple[int, ...]:
    return tuple(_int(line, t, "value") for t in tokens)


def _expect(line: str, args: List[str], minimum: int, maximum: Optional[int], usage: str) -> None:
    if len(args) < minimum or (maximum is not None and len(args) > maximum):
        raise ParseError(line, f"expected: {usage}")


def _parse_data(line: str, args: List[str]) -> Action:
    _expect(line, args, 3, None, f"{ACTION_DATA} <universe> <sync_universe> <value>...")
    return SendData(_int(line, args[0], "universe"), _values(line, args[2:]), _sync(line, args[1]))


def _parse_all_data(line: str, args: List[str]) -> Action:
    _expect(line, args, 3, 3, f"{ACTION_ALL_DATA} <universe> <sync_universe> <value>")
    return SendAllData(
        _int(line, args[0], "universe"), _int(line, args[2], "value"), _sync(line, args[1])
    )


def _parse_full_data(line: str, args: List[str]) -> Action:
    _expect(line, args, 2, None, f"{ACTION_FULL_DATA} <universe> <sync_universe> <value>...")
    return SendFullData(
        _int(line, args[0], "universe"), _values(line, args[2:]), _sync(line, args[1])
    )


def _parse_data_over_time(line: str, args: List[str]) -> Action:
    _expect(line, args, 3, 3, f"{ACTION_DATA_OVER_TIME} <universe> <sync_universe> <duration_ms>")
    return SendDataOverTime(
        _int(line, args[0], "universe"),
        _int(line, args[2], "duration"),
        _sync(line, args[1]),
    )


def _parse_unicast(line: str, args: List[str]) -> Action:
    _expect(line, args, 4, None, f"{ACTION_UNICAST} <destination> <universe> <sync_universe> <value>...")
    return Unicast(
        args[0],
        _int(line, args[1], "universe"),
        _values(line, args[3:]),
        _sync(line, args[2]),
    )


def _parse_unicast_sync(line: str, args: List[str]) -> Action:
    _expect(line, args, 2, 2, f"{ACTION_UNICAST_SYNC} <destination> <sync_universe>")
    return UnicastSync(args[0], _int(line, args[1], "sync universe"))


def _parse_sync(line: str, args: List[str]) -> Action:
    _expect(line, args, 1, 1, f"{ACTION_SYNC} <sync_universe>")
    return Sync(_int(line, args[0], "sync universe"))


def _parse_register(line: str, args: List[str]) -> Action:
    _expect(line, args, 1, 1, f"{ACTION_REGISTER} <universe>")
    return Register(_int(line, args[0], "universe"))


def _parse_preview(line: str, args: List[str]) -> Action:
    _expect(line, args, 1, 1, f"{ACTION_PREVIEW} <true|false>")
    word = args[0].lower()
    if word in _TRUE_WORDS:
        return Preview(True)
    if word in _FALSE_WORDS:
        return Preview(False)
    raise ParseError(line, f"preview flag must be true or false, got '{args[0]}'")


def _parse_sleep(line: str, args: List[str]) -> Action:
    _expect(line, args, 1, 1, f"{ACTION_SLEEP} <milliseconds>")
    return Sleep(_int(line, args[0], "duration"))


def _parse_terminate(line: str, args: List[str]) -> Action:
    _expect(line, args, 0, 1, f"{ACTION_TERMINATE} [universe]")
    if not args:
        return Terminate()
    return Terminate(_int(line, args[0], "universe"))


def _parse_test_preset(line: str, args: List[str]) -> Action:
    """
    ``t <preset> [duration_s]`` or ``t <preset> <destination> [duration_s]``.

    A first extra argument that is not a number is the unicast destination.
    """
    _expect(line, args, 1, 3, f"{ACTION_TEST_PRESET} <preset> [destination] [duration_s]")
    preset_id = _int(line, args[0], "preset")
    extra = list(args[1:])

    destination: Optional[str] = None
    if extra and not _is_number(extra[0]):
        destination = extra.pop(0)
    if len(extra) > 1:
        raise ParseError(line, "duration must be the last argument")
    duration_s = _float(line, extra[0], "duration") if extra else None

    return RunTestPreset(preset_id, destination=destination, duration_s=duration_s)


_PARSERS: Dict[str, Callable[[str, List[str]], Action]] = {
    ACTION_DATA: _parse_data,
    ACTION_ALL_DATA: _parse_all_data,
    ACTION_FULL_DATA: _parse_full_data,
    ACTION_DATA_OVER_TIME: _parse_data_over_time,
    ACTION_UNICAST: _parse_unicast,
    ACTION_UNICAST_SYNC: _parse_unicast_sync,
    ACTION_SYNC: _parse_sync,
    ACTION_REGISTER: _parse_register,
    ACTION_PREVIEW: _parse_preview,
    ACTION_SLEEP: _parse_sleep,
    ACTION_TERMINATE: _parse_terminate,
    ACTION_TEST_PRESET: _parse_test_preset,
}


def parse_command(line: str) -> Action:
    """
    Parse one command line.

    Raises ParseError for unknown tokens or malformed arguments and
    RangeError for well-formed numbers outside the protocol limits.
    """
    tokens = line.split()
    if not tokens or tokens[0].startswith(ACTION_IGNORE):
        return Ignore(line)

    token, args = tokens[0].lower(), tokens[1:]
    parser = _PARSERS.get(token)
    if parser is None:
        raise ParseError(line, f"unknown action '{tokens[0]}'")
    return parser(line, args)
