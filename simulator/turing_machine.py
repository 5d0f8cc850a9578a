from dataclasses import dataclass
from enum import Enum
from typing import Optional

from simulator.septuple import Movement


class Acceptance(Enum):
    RUNNING = "running"
    ACCEPTED = "accepted"
    REJECTED = "rejected"

    @property
    def is_terminal(self):
        return self is not Acceptance.RUNNING


class MachineError(Exception):
    pass


class InvalidSymbolError(MachineError, ValueError):
    """The initial tape holds symbols outside the input symbols."""

    def __init__(self, symbols):
        self.symbols = sorted(set(symbols))
        super().__init__(f"tape contains invalid symbols: {', '.join(self.symbols)}")


class NoUndoError(MachineError, IndexError):
    def __init__(self):
        super().__init__("nothing to undo")


@dataclass(frozen=True)
class Reversal:
    """What it takes to undo one applied step."""

    grew: bool                   # a blank cell was appended by the step
    movement: Optional[Movement] # opposite of the step's head movement
    symbol: str                  # symbol to restore after moving back
    state: str                   # state before the step


class TuringMachine:
    """
    A single-tape Turing machine, bounded on the left.

    The seven-tuple is assumed to be validated already and is never mutated.
    """

    def __init__(self, septuple, tape=()):
        tape = list(tape)
        invalid = [symbol for symbol in tape if symbol not in septuple.input_symbols]
        if invalid:
            raise InvalidSymbolError(invalid)
        if not tape:
            tape.append(septuple.blank_symbol)

        self._septuple = septuple
        self._tape = tape
        self._head = 0
        self._state = septuple.initial_state
        self._undos = []

    # === Accessors ===
    @property
    def septuple(self):
        return self._septuple

    @property
    def tape(self):
        return tuple(self._tape)

    @property
    def head(self):
        return self._head

    @property
    def current_state(self):
        return self._state

    @property
    def history_size(self):
        return len(self._undos)

    # === Execution ===
    def acceptance(self):
        """Report the verdict for the current configuration without changing it."""
        if self._septuple.is_final(self._state):
            return Acceptance.ACCEPTED
        transition = self._current_transition()
        if transition is None:
            return Acceptance.REJECTED
        if self._limited_left(transition):
            return Acceptance.REJECTED
        return Acceptance.RUNNING

    def step(self):
        """
        Apply the transition for the current configuration.

        Returns RUNNING when a step was applied. In a terminal configuration
        nothing changes and the verdict is returned again.
        """
        verdict = self.acceptance()
        if verdict.is_terminal:
            return verdict
        self._undos.append(self._apply(self._current_transition()))
        return Acceptance.RUNNING

    def undo(self):
        """Reverse the most recent step. Raises NoUndoError when there is none."""
        if not self._undos:
            raise NoUndoError()
        undo = self._undos.pop()

        if undo.grew:
            self._tape.pop()
        if undo.movement is Movement.R:
            self._head += 1
        elif undo.movement is Movement.L:
            self._head -= 1
        self._tape[self._head] = undo.symbol
        self._state = undo.state

    def run(self, max_steps=10_000):
        """Step until a verdict is reached or `max_steps` steps were applied."""
        steps = 0
        while steps < max_steps:
            verdict = self.step()
            if verdict.is_terminal:
                return verdict, steps
            steps += 1
        return self.acceptance(), steps

    def rewind(self):
        """Undo every recorded step. Returns the number of steps undone."""
        count = len(self._undos)
        for _ in range(count):
            self.undo()
        return count

    # === Internals ===
    def _current_transition(self):
        return self._septuple.transition_for(self._state, self._tape[self._head])

    def _limited_left(self, transition):
        # The head sits on the first cell and the transition moves left.
        return self._head == 0 and transition.move_to is Movement.L

    def _apply(self, transition):
        # Must not be called when _limited_left(transition) holds.
        grew = False
        movement = None
        old_symbol = self._tape[self._head]
        old_state = self._state

        self._tape[self._head] = transition.write_symbol
        self._state = transition.next_state

        if transition.move_to is Movement.R:
            if self._head == len(self._tape) - 1:
                self._tape.append(self._septuple.blank_symbol)
                grew = True
            self._head += 1
        elif transition.move_to is Movement.L:
            self._head -= 1
        if transition.move_to is not None:
            movement = transition.move_to.opposite

        return Reversal(grew=grew, movement=movement, symbol=old_symbol, state=old_state)

    def __repr__(self):
        return (
            f"TuringMachine(state={self._state!r}, head={self._head}, "
            f"tape={''.join(self._tape)!r}, history={len(self._undos)})"
        )
