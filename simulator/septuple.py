import json
from dataclasses import dataclass, field
from enum import Enum
from functools import cached_property
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

import numpy as np

# === Move codes used by the interned transition table ===
MOVE_NONE = 0
MOVE_LEFT = -1
MOVE_RIGHT = 1


class Movement(Enum):
    L = "L"
    R = "R"

    @property
    def opposite(self):
        return Movement.R if self is Movement.L else Movement.L

    @property
    def code(self):
        return MOVE_LEFT if self is Movement.L else MOVE_RIGHT


@dataclass(frozen=True)
class Transition:
    """Action taken for a (state, symbol) pair."""

    write_symbol: str
    next_state: str
    move_to: Optional[Movement] = None


class Violation(Enum):
    """Structural problems a seven-tuple can have, in the order they are checked."""

    BLANK_NOT_IN_ALPHABET = "blank symbol is not in the alphabet"
    INPUT_NOT_SUBSET_OF_ALPHABET = "input symbols are not a subset of the alphabet"
    INITIAL_NOT_IN_STATES = "initial state is not in the set of states"
    FINAL_NOT_SUBSET_OF_STATES = "final states are not a subset of the set of states"
    TRANSITION_STATE_NOT_IN_STATES = "a transition state is not in the set of states"
    TRANSITION_SYMBOL_NOT_IN_ALPHABET = "a transition symbol is not in the alphabet"


class DefinitionError(ValueError):
    """Raised when a seven-tuple breaks one of its structural invariants."""

    def __init__(self, violation):
        super().__init__(violation.value)
        self.violation = violation


class DefinitionFormatError(ValueError):
    """Raised when a definition source cannot be turned into a seven-tuple."""


TransitionKey = Tuple[str, str]


@dataclass(frozen=True, eq=False)
class Septuple:
    """
    The formal seven-tuple of a single-tape Turing machine.
    https://en.wikipedia.org/wiki/Turing_machine#Formal_definition

    Instances are never mutated; any number of machines may share one.
    """

    alphabet: frozenset
    blank_symbol: str
    input_symbols: frozenset
    states: frozenset
    initial_state: str
    final_states: frozenset
    transitions: Mapping[TransitionKey, Transition] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "alphabet", frozenset(self.alphabet))
        object.__setattr__(self, "input_symbols", frozenset(self.input_symbols))
        object.__setattr__(self, "states", frozenset(self.states))
        object.__setattr__(self, "final_states", frozenset(self.final_states))
        object.__setattr__(self, "transitions", MappingProxyType(dict(self.transitions)))

    # === Construction from the JSON source format ===
    @classmethod
    def from_dict(cls, data):
        """Build a seven-tuple from the decoded JSON object."""
        if not isinstance(data, dict):
            raise DefinitionFormatError("definition must be a JSON object")

        transitions = {}
        for entry in _require(data, "transitions", list):
            if not isinstance(entry, dict):
                raise DefinitionFormatError("each transition must be a JSON object")
            key = (
                _require_state(entry, "from_state"),
                _require_symbol(entry, "read_symbol"),
            )
            transition = Transition(
                write_symbol=_require_symbol(entry, "write_symbol"),
                next_state=_require_state(entry, "next_state"),
                move_to=_parse_movement(entry.get("move_to")),
            )
            if key in transitions and transitions[key] != transition:
                raise DefinitionFormatError(
                    f"conflicting transitions for state '{key[0]}' reading '{key[1]}'"
                )
            transitions[key] = transition

        return cls(
            alphabet=_symbol_set(data, "alphabet"),
            blank_symbol=_require_symbol(data, "blank_symbol"),
            input_symbols=_symbol_set(data, "input_symbols"),
            states=_state_set(data, "states"),
            initial_state=_require_state(data, "initial_state"),
            final_states=_state_set(data, "final_states"),
            transitions=transitions,
        )

    @classmethod
    def from_json(cls, text):
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise DefinitionFormatError(f"invalid JSON: {e}") from e
        return cls.from_dict(data)

    # === Queries ===
    def transition_for(self, state, symbol):
        return self.transitions.get((state, symbol))

    def is_final(self, state):
        return state in self.final_states

    def accepts_input(self, tape):
        """True when every symbol of `tape` is an input symbol."""
        return all(symbol in self.input_symbols for symbol in tape)

    def describe(self):
        """Human-readable lines describing the seven-tuple."""
        lines = [
            f"Alphabet: {_fmt_set(self.alphabet)}",
            f"Blank symbol: {self.blank_symbol}",
            f"Input symbols: {_fmt_set(self.input_symbols)}",
            f"States: {_fmt_set(self.states)}",
            f"Initial state: {self.initial_state}",
            f"Final states: {_fmt_set(self.final_states)}",
            "Transitions:",
        ]
        for (state, symbol), transition in self.transitions.items():
            move = transition.move_to.value if transition.move_to else "-"
            lines.append(
                f"  δ({state}, {symbol}) = ({transition.next_state}, {transition.write_symbol}, {move})"
            )
        return lines

    # === Interning ===
    # States and symbols are mapped to small integers so that the transition
    # function can be stored as a dense numpy table.
    @cached_property
    def state_ids(self):
        return {state: i for i, state in enumerate(sorted(self.states))}

    @cached_property
    def symbol_ids(self):
        return {symbol: i for i, symbol in enumerate(sorted(self.alphabet))}

    @cached_property
    def transition_table(self):
        """
        int32 array of shape (states, symbols, 3) holding
        (write symbol id, move code, next state id); next state id is -1
        where the transition function is undefined.
        Only meaningful for a validated seven-tuple.
        """
        table = np.full((len(self.state_ids), len(self.symbol_ids), 3), -1, dtype=np.int32)
        table[:, :, 1] = MOVE_NONE
        for (state, symbol), transition in self.transitions.items():
            move = transition.move_to.code if transition.move_to else MOVE_NONE
            table[self.state_ids[state], self.symbol_ids[symbol]] = (
                self.symbol_ids[transition.write_symbol],
                move,
                self.state_ids[transition.next_state],
            )
        table.setflags(write=False)
        return table

    @cached_property
    def final_mask(self):
        mask = np.zeros(len(self.state_ids), dtype=np.bool_)
        for state in self.final_states:
            mask[self.state_ids[state]] = True
        mask.setflags(write=False)
        return mask

    def encode_tape(self, tape):
        return [self.symbol_ids[symbol] for symbol in tape]


# === Validation ===
def find_violation(septuple):
    """Return the first broken invariant of `septuple`, or None when it is valid."""
    if septuple.blank_symbol not in septuple.alphabet:
        return Violation.BLANK_NOT_IN_ALPHABET
    if not septuple.input_symbols <= septuple.alphabet:
        return Violation.INPUT_NOT_SUBSET_OF_ALPHABET
    if septuple.initial_state not in septuple.states:
        return Violation.INITIAL_NOT_IN_STATES
    if not septuple.final_states <= septuple.states:
        return Violation.FINAL_NOT_SUBSET_OF_STATES

    for (state, symbol), transition in septuple.transitions.items():
        if state not in septuple.states:
            return Violation.TRANSITION_STATE_NOT_IN_STATES
        if symbol not in septuple.alphabet:
            return Violation.TRANSITION_SYMBOL_NOT_IN_ALPHABET
        if transition.next_state not in septuple.states:
            return Violation.TRANSITION_STATE_NOT_IN_STATES
        if transition.write_symbol not in septuple.alphabet:
            return Violation.TRANSITION_SYMBOL_NOT_IN_ALPHABET

    return None


def validate(septuple):
    violation = find_violation(septuple)
    if violation is not None:
        raise DefinitionError(violation)
    return septuple


def load_definition(path):
    """Read, parse and validate a definition file."""
    with open(path, "r", encoding="utf-8") as f:
        text = f.read()
    return validate(Septuple.from_json(text))


# === Parsing helpers ===
def _require(data, key, expected_type):
    if key not in data:
        raise DefinitionFormatError(f"missing required field '{key}'")
    value = data[key]
    if not isinstance(value, expected_type):
        raise DefinitionFormatError(
            f"field '{key}' expected {expected_type.__name__}, got {type(value).__name__}"
        )
    return value


def _check_symbol(key, value):
    if not isinstance(value, str) or len(value) != 1:
        raise DefinitionFormatError(f"field '{key}' must hold one-character symbols, got {value!r}")
    return value


def _require_symbol(data, key):
    return _check_symbol(key, _require(data, key, str))


def _require_state(data, key):
    return _require(data, key, str)


def _symbol_set(data, key):
    return frozenset(_check_symbol(key, value) for value in _require(data, key, list))


def _state_set(data, key):
    values = _require(data, key, list)
    if not all(isinstance(value, str) for value in values):
        raise DefinitionFormatError(f"field '{key}' must hold state names")
    return frozenset(values)


def _parse_movement(value):
    if value is None:
        return None
    try:
        return Movement(value)
    except ValueError:
        raise DefinitionFormatError(f"move_to must be 'L', 'R' or absent, got {value!r}") from None


def _fmt_set(values):
    return "{" + ", ".join(sorted(values)) + "}"
