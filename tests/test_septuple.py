# tests/test_septuple.py

import json

import numpy as np
import pytest

from simulator.septuple import (
    MOVE_LEFT,
    MOVE_NONE,
    MOVE_RIGHT,
    DefinitionError,
    DefinitionFormatError,
    Movement,
    Septuple,
    Transition,
    Violation,
    find_violation,
    load_definition,
    validate,
)


def make_septuple(**overrides):
    fields = dict(
        alphabet={"0", "1", "B"},
        blank_symbol="B",
        input_symbols={"0", "1"},
        states={"q0", "q1"},
        initial_state="q0",
        final_states={"q1"},
        transitions={("q0", "0"): Transition("1", "q1", Movement.R)},
    )
    fields.update(overrides)
    return Septuple(**fields)


def source(**overrides):
    data = {
        "alphabet": ["0", "1", "B"],
        "blank_symbol": "B",
        "input_symbols": ["0", "1"],
        "states": ["q0", "q1"],
        "initial_state": "q0",
        "final_states": ["q1"],
        "transitions": [
            {"from_state": "q0", "read_symbol": "0", "write_symbol": "1", "move_to": "R", "next_state": "q1"},
        ],
    }
    data.update(overrides)
    return data


class TestParsing:
    def test_loads_zero_n_one_n(self, zero_n_one_n):
        assert zero_n_one_n.alphabet == frozenset("01XYB")
        assert zero_n_one_n.blank_symbol == "B"
        assert zero_n_one_n.input_symbols == frozenset("01")
        assert zero_n_one_n.initial_state == "q0"
        assert zero_n_one_n.final_states == frozenset({"q3"})
        assert len(zero_n_one_n.transitions) == 11
        assert zero_n_one_n.transition_for("q1", "1") == Transition("Y", "q2", Movement.L)

    def test_missing_move_means_no_movement(self):
        data = source()
        del data["transitions"][0]["move_to"]
        septuple = Septuple.from_dict(data)
        assert septuple.transition_for("q0", "0").move_to is None

    def test_null_move_means_no_movement(self):
        data = source()
        data["transitions"][0]["move_to"] = None
        assert Septuple.from_dict(data).transition_for("q0", "0").move_to is None

    def test_rejects_unknown_move(self):
        data = source()
        data["transitions"][0]["move_to"] = "U"
        with pytest.raises(DefinitionFormatError, match="move_to"):
            Septuple.from_dict(data)

    def test_rejects_missing_field(self):
        data = source()
        del data["states"]
        with pytest.raises(DefinitionFormatError, match="'states'"):
            Septuple.from_dict(data)

    def test_rejects_multi_character_symbol(self):
        with pytest.raises(DefinitionFormatError, match="one-character"):
            Septuple.from_dict(source(alphabet=["0", "10", "B"]))

    def test_rejects_wrong_type(self):
        with pytest.raises(DefinitionFormatError, match="expected list"):
            Septuple.from_dict(source(final_states="q1"))

    def test_rejects_non_object(self):
        with pytest.raises(DefinitionFormatError):
            Septuple.from_json("[1, 2, 3]")

    def test_rejects_invalid_json(self):
        with pytest.raises(DefinitionFormatError, match="invalid JSON"):
            Septuple.from_json("{not json")

    def test_conflicting_transitions(self):
        data = source()
        data["transitions"].append(
            {"from_state": "q0", "read_symbol": "0", "write_symbol": "0", "move_to": "L", "next_state": "q0"}
        )
        with pytest.raises(DefinitionFormatError, match="conflicting"):
            Septuple.from_dict(data)

    def test_identical_duplicate_transitions_collapse(self):
        data = source()
        data["transitions"].append(dict(data["transitions"][0]))
        assert len(Septuple.from_dict(data).transitions) == 1

    def test_load_definition_validates(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps(source(blank_symbol="_")), encoding="utf-8")
        with pytest.raises(DefinitionError) as excinfo:
            load_definition(path)
        assert excinfo.value.violation is Violation.BLANK_NOT_IN_ALPHABET

    def test_load_definition_missing_file(self, tmp_path):
        with pytest.raises(OSError):
            load_definition(tmp_path / "missing.json")


class TestImmutability:
    def test_fields_are_frozen(self, zero_n_one_n):
        with pytest.raises(AttributeError):
            zero_n_one_n.blank_symbol = "X"

    def test_transitions_are_read_only(self, zero_n_one_n):
        with pytest.raises(TypeError):
            zero_n_one_n.transitions[("q0", "1")] = Transition("1", "q0")

    def test_sets_are_frozen(self):
        septuple = make_septuple(alphabet=["0", "1", "B"])
        assert isinstance(septuple.alphabet, frozenset)

    def test_hashable_by_identity(self, zero_n_one_n):
        machines = {zero_n_one_n: "zero n one n"}
        assert machines[zero_n_one_n] == "zero n one n"
        assert hash(zero_n_one_n) == hash(zero_n_one_n)
        assert make_septuple() != make_septuple()


class TestValidation:
    def test_valid_definition(self):
        septuple = make_septuple()
        assert find_violation(septuple) is None
        assert validate(septuple) is septuple

    def test_validation_is_repeatable(self, zero_n_one_n):
        assert find_violation(zero_n_one_n) is None
        assert find_violation(zero_n_one_n) is None

    @pytest.mark.parametrize(
        "overrides, violation",
        [
            ({"blank_symbol": "_"}, Violation.BLANK_NOT_IN_ALPHABET),
            ({"input_symbols": {"0", "2"}}, Violation.INPUT_NOT_SUBSET_OF_ALPHABET),
            ({"initial_state": "q9"}, Violation.INITIAL_NOT_IN_STATES),
            ({"final_states": {"q1", "q9"}}, Violation.FINAL_NOT_SUBSET_OF_STATES),
            (
                {"transitions": {("q9", "0"): Transition("1", "q1")}},
                Violation.TRANSITION_STATE_NOT_IN_STATES,
            ),
            (
                {"transitions": {("q0", "2"): Transition("1", "q1")}},
                Violation.TRANSITION_SYMBOL_NOT_IN_ALPHABET,
            ),
            (
                {"transitions": {("q0", "0"): Transition("1", "q9")}},
                Violation.TRANSITION_STATE_NOT_IN_STATES,
            ),
            (
                {"transitions": {("q0", "0"): Transition("2", "q1")}},
                Violation.TRANSITION_SYMBOL_NOT_IN_ALPHABET,
            ),
        ],
    )
    def test_each_violation(self, overrides, violation):
        septuple = make_septuple(**overrides)
        assert find_violation(septuple) is violation
        with pytest.raises(DefinitionError, match=violation.value) as excinfo:
            validate(septuple)
        assert excinfo.value.violation is violation

    def test_first_violation_wins(self):
        septuple = make_septuple(blank_symbol="_", initial_state="q9", final_states={"q7"})
        assert find_violation(septuple) is Violation.BLANK_NOT_IN_ALPHABET

    def test_initial_checked_before_final(self):
        septuple = make_septuple(initial_state="q9", final_states={"q7"})
        assert find_violation(septuple) is Violation.INITIAL_NOT_IN_STATES

    def test_input_checked_before_transitions(self):
        septuple = make_septuple(
            input_symbols={"Z"},
            transitions={("q9", "0"): Transition("1", "q1")},
        )
        assert find_violation(septuple) is Violation.INPUT_NOT_SUBSET_OF_ALPHABET


class TestInterning:
    def test_ids_are_dense(self, zero_n_one_n):
        assert sorted(zero_n_one_n.state_ids.values()) == list(range(5))
        assert sorted(zero_n_one_n.symbol_ids.values()) == list(range(5))

    def test_transition_table(self, zero_n_one_n):
        table = zero_n_one_n.transition_table
        assert table.shape == (5, 5, 3)
        assert table.dtype == np.int32

        q0, q1, q2 = (zero_n_one_n.state_ids[s] for s in ("q0", "q1", "q2"))
        sym = zero_n_one_n.symbol_ids
        assert tuple(table[q0, sym["0"]]) == (sym["X"], MOVE_RIGHT, q1)
        assert tuple(table[q1, sym["1"]]) == (sym["Y"], MOVE_LEFT, q2)
        # undefined transition
        assert table[q0, sym["1"], 2] == -1
        assert table[q0, sym["1"], 1] == MOVE_NONE

    def test_table_is_read_only(self, zero_n_one_n):
        with pytest.raises(ValueError):
            zero_n_one_n.transition_table[0, 0, 0] = 3

    def test_no_move_code(self, rewrite_in_place):
        table = rewrite_in_place.transition_table
        s = rewrite_in_place.state_ids["s"]
        a = rewrite_in_place.symbol_ids["a"]
        assert table[s, a, 1] == MOVE_NONE

    def test_final_mask(self, zero_n_one_n):
        mask = zero_n_one_n.final_mask
        assert mask[zero_n_one_n.state_ids["q3"]]
        assert mask.sum() == 1

    def test_encode_tape(self, zero_n_one_n):
        ids = zero_n_one_n.encode_tape("0XB")
        assert ids == [zero_n_one_n.symbol_ids[s] for s in "0XB"]


class TestDescribe:
    def test_lists_transitions(self, zero_n_one_n):
        lines = zero_n_one_n.describe()
        assert "Blank symbol: B" in lines
        assert "Initial state: q0" in lines
        assert "  δ(q0, 0) = (q1, X, R)" in lines

    def test_no_movement_dash(self, rewrite_in_place):
        assert "  δ(s, a) = (f, b, -)" in rewrite_in_place.describe()

    def test_movement_opposite(self):
        assert Movement.L.opposite is Movement.R
        assert Movement.R.opposite is Movement.L
