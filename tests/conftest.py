from pathlib import Path

import pytest

from simulator.septuple import Movement, Septuple, Transition, load_definition

ROOT = Path(__file__).resolve().parent.parent
ZERO_N_ONE_N = ROOT / "machines" / "zero_n_one_n.json"


@pytest.fixture
def definition_path():
    return ZERO_N_ONE_N


@pytest.fixture
def zero_n_one_n():
    """Accepts n zeros followed by n ones."""
    return load_definition(ZERO_N_ONE_N)


@pytest.fixture
def bounce_left():
    """Moves right once, then left until it falls off the first cell."""
    return Septuple(
        alphabet={"a", "B"},
        blank_symbol="B",
        input_symbols={"a"},
        states={"s", "t"},
        initial_state="s",
        final_states=set(),
        transitions={
            ("s", "a"): Transition("a", "t", Movement.R),
            ("t", "a"): Transition("a", "t", Movement.L),
        },
    )


@pytest.fixture
def rewrite_in_place():
    """Rewrites the first cell without moving and accepts."""
    return Septuple(
        alphabet={"a", "b", "B"},
        blank_symbol="B",
        input_symbols={"a"},
        states={"s", "f"},
        initial_state="s",
        final_states={"f"},
        transitions={("s", "a"): Transition("b", "f")},
    )


@pytest.fixture
def runaway():
    """Never halts: walks right forever."""
    return Septuple(
        alphabet={"a", "B"},
        blank_symbol="B",
        input_symbols={"a"},
        states={"s"},
        initial_state="s",
        final_states=set(),
        transitions={
            ("s", "a"): Transition("a", "s", Movement.R),
            ("s", "B"): Transition("B", "s", Movement.R),
        },
    )
