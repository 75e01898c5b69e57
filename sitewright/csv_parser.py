"""
CSV parser for the site structure files.

A line is tokenized by a small finite-state machine. The transition table is a
plain dict so it can be inspected and tested on its own; the field buffer lives
in a short-lived parser context created for every line.

Rules:
- blank lines and lines starting with "#" produce no record
- whitespace around a field is insignificant
- a field may be wrapped in double quotes; inside quotes the separator is an
  ordinary character and a doubled quote stands for one literal quote
- a trailing separator yields a trailing empty field
"""

from enum import Enum
from typing import Dict, List, Tuple, Union

SEPARATOR = ','
QUOTE = '"'
END_OF_INPUT = '\n'

Record = List[str]


class State(Enum):
    """Tokenizer states."""
    NORMAL = 'normal'
    IN_QUOTES = 'in_quotes'
    QUOTE_ESCAPE = 'quote_escape'


class Event(Enum):
    """Character classes fed to the state machine."""
    SEPARATOR = 'separator'
    QUOTE = 'quote'
    END = 'end'
    OTHER = 'other'


class Action(Enum):
    """Side effect applied to the field buffer on a transition."""
    NONE = 'none'
    APPEND = 'append'
    APPEND_QUOTE = 'append_quote'
    CLOSE_FIELD = 'close_field'
    FINISH = 'finish'


# (state, event) -> (next state, action). A next state of None terminates.
TRANSITIONS: Dict[Tuple[State, Event], Tuple[Union[State, None], Action]] = {
    (State.NORMAL, Event.SEPARATOR): (State.NORMAL, Action.CLOSE_FIELD),
    (State.NORMAL, Event.QUOTE): (State.IN_QUOTES, Action.NONE),
    (State.NORMAL, Event.END): (None, Action.FINISH),
    (State.NORMAL, Event.OTHER): (State.NORMAL, Action.APPEND),

    (State.IN_QUOTES, Event.SEPARATOR): (State.IN_QUOTES, Action.APPEND),
    (State.IN_QUOTES, Event.QUOTE): (State.QUOTE_ESCAPE, Action.NONE),
    (State.IN_QUOTES, Event.END): (None, Action.FINISH),
    (State.IN_QUOTES, Event.OTHER): (State.IN_QUOTES, Action.APPEND),

    (State.QUOTE_ESCAPE, Event.SEPARATOR): (State.NORMAL, Action.CLOSE_FIELD),
    (State.QUOTE_ESCAPE, Event.QUOTE): (State.IN_QUOTES, Action.APPEND_QUOTE),
    (State.QUOTE_ESCAPE, Event.END): (None, Action.FINISH),
    (State.QUOTE_ESCAPE, Event.OTHER): (State.NORMAL, Action.APPEND),
}


def classify(ch: str) -> Event:
    """Map one input character to its event."""
    if ch == SEPARATOR:
        return Event.SEPARATOR
    if ch == QUOTE:
        return Event.QUOTE
    # A bare carriage return ends the line just like the end marker.
    if ch == END_OF_INPUT or ch == '\r':
        return Event.END
    return Event.OTHER


def transition(state: State, event: Event) -> Tuple[Union[State, None], Action]:
    """Return the next state and the action for a (state, event) pair."""
    return TRANSITIONS[(state, event)]


class _LineContext:
    """Field buffer for a single line."""

    def __init__(self):
        self.fields: Record = []
        self.current: List[str] = []

    def apply(self, action: Action, ch: str) -> None:
        if action is Action.APPEND:
            self.current.append(ch)
        elif action is Action.APPEND_QUOTE:
            self.current.append(QUOTE)
        elif action in (Action.CLOSE_FIELD, Action.FINISH):
            self.fields.append(''.join(self.current))
            self.current = []

    def record(self) -> Record:
        return [field.strip() for field in self.fields]


def parse_line(line: str) -> Record:
    """
    Tokenize one logical line into a list of trimmed fields.

    Never raises on malformed quoting: an unterminated quoted field is flushed
    with whatever was collected when the line ends.
    """
    context = _LineContext()
    state = State.NORMAL
    for ch in line + END_OF_INPUT:
        next_state, action = transition(state, classify(ch))
        context.apply(action, ch)
        if next_state is None:
            break
        state = next_state
    return context.record()


def parse(text: str) -> Union[Record, List[Record]]:
    """
    Parse CSV text.

    Returns a single record when the text holds exactly one data line, a list
    of records when it holds two or more, and an empty list when it holds none.
    """
    line_break = '\r\n' if '\r\n' in text else '\n'
    records = []
    for line in text.split(line_break):
        line = line.strip()
        if not line or line.startswith('#'):
            continue
        records.append(parse_line(line + END_OF_INPUT))

    if len(records) == 1:
        return records[0]
    return records


def as_records(parsed: Union[Record, List[Record]]) -> List[Record]:
    """Undo the single-record flattening of parse()."""
    if parsed and isinstance(parsed[0], str):
        return [parsed]
    return list(parsed)
