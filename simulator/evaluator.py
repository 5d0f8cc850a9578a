import numpy as np
from numba import njit

from simulator.septuple import MOVE_LEFT, MOVE_RIGHT
from simulator.turing_machine import Acceptance, InvalidSymbolError

ACCEPTED = 1
REJECTED = 0
UNDECIDED = -1

VERDICTS = {
    ACCEPTED: Acceptance.ACCEPTED,
    REJECTED: Acceptance.REJECTED,
    UNDECIDED: Acceptance.RUNNING,
}


@njit(cache=False)
def simulate_batch(table, final_mask, tapes, initial_state, max_steps, verdicts, steps_taken):
    """
    Run every tape (one per row of `tapes`) against the same transition table.
    Mirrors TuringMachine.step: final state first, then a missing transition,
    then a left move off the first cell.
    """
    capacity = tapes.shape[1]

    for idx in range(tapes.shape[0]):
        head = 0
        state = initial_state
        steps = 0
        verdict = UNDECIDED

        while True:
            if final_mask[state]:
                verdict = ACCEPTED
                break

            symbol = tapes[idx, head]
            new_symbol = table[state, symbol, 0]
            move_dir = table[state, symbol, 1]
            new_state = table[state, symbol, 2]

            if new_state < 0:
                verdict = REJECTED
                break
            if head == 0 and move_dir == MOVE_LEFT:
                verdict = REJECTED
                break
            if steps >= max_steps:
                break
            # Out of allocated tape
            if move_dir == MOVE_RIGHT and head + 1 >= capacity:
                break

            tapes[idx, head] = new_symbol
            head += move_dir
            state = new_state
            steps += 1

        verdicts[idx] = verdict
        steps_taken[idx] = steps


def evaluate_batch(septuple, tapes, max_steps=10_000, tape_capacity=512):
    """
    Host-side entry point for the batch kernel.
    septuple: a validated seven-tuple shared by every tape
    tapes: sequence of tapes, each a sequence of input symbols

    Returns (verdicts, steps) as numpy arrays; see VERDICTS for the codes.
    """
    for tape in tapes:
        invalid = [symbol for symbol in tape if symbol not in septuple.input_symbols]
        if invalid:
            raise InvalidSymbolError(invalid)

    num_tapes = len(tapes)
    longest = max((len(tape) for tape in tapes), default=0)
    capacity = max(tape_capacity, longest + 1)

    blank = septuple.symbol_ids[septuple.blank_symbol]
    encoded = np.full((num_tapes, capacity), blank, dtype=np.int32)
    for idx, tape in enumerate(tapes):
        if tape:
            encoded[idx, :len(tape)] = septuple.encode_tape(tape)

    verdicts = np.full(num_tapes, UNDECIDED, dtype=np.int32)
    steps = np.zeros(num_tapes, dtype=np.int64)

    if num_tapes:
        simulate_batch(
            septuple.transition_table,
            septuple.final_mask,
            encoded,
            septuple.state_ids[septuple.initial_state],
            max_steps,
            verdicts,
            steps,
        )

    return verdicts, steps
