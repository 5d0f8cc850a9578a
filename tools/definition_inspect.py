import argparse
import sys

from simulator.septuple import DefinitionError, DefinitionFormatError, load_definition


def format_action(transition):
    if transition is None:
        return "HALT"
    move_dir = transition.move_to.value if transition.move_to else "-"
    return f"{transition.write_symbol}{move_dir}{transition.next_state}"


def transition_rows(septuple):
    """One row per state (initial state first), one action per alphabet symbol."""
    symbols = sorted(septuple.alphabet)
    states = [septuple.initial_state] + sorted(septuple.states - {septuple.initial_state})
    rows = []
    for state in states:
        marker = "*" if septuple.is_final(state) else ""
        actions = [format_action(septuple.transition_for(state, symbol)) for symbol in symbols]
        rows.append([f"{state}{marker}"] + actions)
    return symbols, rows


def pretty_print_definition(septuple, latex=False):
    """Pretty print the transition function as a state x symbol table."""
    symbols, rows = transition_rows(septuple)

    # === Terminal Human-Readable Table ===
    print("\n=== Transition Table ===")
    print("\t".join(["State"] + symbols))
    for row in rows:
        print("\t".join(row))
    print("(* final state, HALT undefined transition, - no head movement)")

    if not latex:
        return

    # === LaTeX Table Output ===
    print("\n=== LaTeX Table ===")
    print(r"\begin{array}{c|" + "c" * len(symbols) + "}")
    print("State/Symbol & " + " & ".join([f"\\text{{{s}}}" for s in symbols]) + r" \\ \hline")
    for row in rows:
        print(" & ".join(row) + r" \\")
    print(r"\end{array}")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Turing Machine Definition Inspector")
    parser.add_argument("definition", help="Path to a definition JSON file")
    parser.add_argument("--latex", action="store_true", help="Also print a LaTeX array")
    args = parser.parse_args(argv)

    try:
        septuple = load_definition(args.definition)
    except (OSError, DefinitionFormatError, DefinitionError) as e:
        print(f"[ERROR] {args.definition}: {e}", file=sys.stderr)
        return 1

    print(f"[INFO] Definition {args.definition}")
    for line in septuple.describe():
        print(f"  {line}")
    pretty_print_definition(septuple, latex=args.latex)
    return 0


if __name__ == "__main__":
    sys.exit(main())
