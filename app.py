# app.py

import argparse
import sys
from datetime import datetime

from rich.console import Console, Group
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table
from rich.text import Text

from config.config_loader import KEY_ACTIONS, load_runtime_config
from logger.logger import JSONLogger
from simulator.septuple import DefinitionError, DefinitionFormatError, load_definition
from simulator.turing_machine import Acceptance, NoUndoError, TuringMachine

console = Console()
err_console = Console(stderr=True)

ACTION_LABELS = {
    "step": "apply transition",
    "undo": "undo transition",
    "run": "run to completion",
    "rewind": "rewind",
    "back": "back to tape input",
}


# === Utilities ===
class ArgumentParser(argparse.ArgumentParser):
    """argparse exits with 2 on usage errors; this program exits with 1."""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def log_session(logger, definition_path, original_tape, machine, verdict):
    if logger is None:
        return
    logger.log({
        "event": "session",
        "definition": str(definition_path),
        "tape": "".join(original_tape),
        "final_tape": "".join(machine.tape),
        "final_state": machine.current_state,
        "verdict": verdict.value,
        "steps": machine.history_size,
        "timestamp": datetime.now().isoformat()
    })


# === Rendering ===
def tape_text(tape, head=None):
    """Alternate cell colours; the cell under the head is bracketed."""
    text = Text()
    for i, symbol in enumerate(tape):
        style = "white" if i % 2 == 0 else "grey62"
        if i == head:
            text.append(f"[{symbol}]", style=f"bold {style}")
        else:
            text.append(symbol, style=style)
    return text


def definition_panel(septuple):
    return Panel(Text("\n".join(septuple.describe())), title="Definition", title_align="left")


def help_text(bindings):
    text = Text()
    for action in KEY_ACTIONS:
        text.append(f"<{bindings[action]}> ", style="rgb(255,140,0)")
        text.append(f"{ACTION_LABELS[action]} ")
    return text


def render_machine(machine, acceptance, original_tape, config):
    title = Text(f"Tape @ {machine.current_state}")
    if acceptance is Acceptance.ACCEPTED:
        title.append(" accepted", style="bold bright_blue")
    elif acceptance is Acceptance.REJECTED:
        title.append(" rejected", style="bold red")

    parts = [
        Panel(tape_text(machine.tape, machine.head), title=title, title_align="left"),
        Panel(tape_text(original_tape), title="Original tape", title_align="left"),
    ]
    if config.get("show_definition", True):
        parts.append(definition_panel(machine.septuple))
    parts.append(Panel(help_text(config["key_bindings"])))
    return Panel(Group(*parts), title="[bold cyan]Turing Machine[/bold cyan]")


# === Interactive Mode ===
def show_main_menu():
    console.print("\n[bold cyan]Turing Machine Stepper[/bold cyan]")
    console.print("[1] Enter Tape")
    console.print("[2] Show Definition")
    console.print("[3] Exit")


def read_valid_tape(septuple):
    """Prompt until the entered tape only holds input symbols."""
    symbols = ", ".join(sorted(septuple.input_symbols))
    while True:
        console.print(f"Input symbols: {{{escape(symbols)}}}")
        tape = Prompt.ask("Tape (empty for a blank tape)", default="", show_default=False)
        if septuple.accepts_input(tape):
            return list(tape)
        console.print("[bold red]The tape holds invalid symbols.[/bold red]")


def process_machine(machine, config):
    """Drive one machine from user actions until the user goes back. Returns the last verdict."""
    original_tape = machine.tape
    bindings = config["key_bindings"]
    actions = {bindings[action]: action for action in KEY_ACTIONS}

    while True:
        acceptance = machine.acceptance()
        console.print(render_machine(machine, acceptance, original_tape, config))

        key = Prompt.ask("Action", choices=list(actions), default=bindings["step"])
        action = actions[key]

        if action == "step":
            machine.step()
        elif action == "undo":
            try:
                machine.undo()
            except NoUndoError:
                pass
        elif action == "run":
            verdict, steps = machine.run(config["max_steps"])
            if not verdict.is_terminal:
                console.print(f"[yellow]No verdict after {steps:,} steps.[/yellow]")
        elif action == "rewind":
            machine.rewind()
        elif action == "back":
            return acceptance


def interactive_main(septuple, config, logger=None, definition_path=""):
    while True:
        show_main_menu()
        choice = Prompt.ask("\nChoose an option", choices=["1", "2", "3"], default="1")

        if choice == "1":
            tape = read_valid_tape(septuple)
            machine = TuringMachine(septuple, tape)
            original_tape = machine.tape
            verdict = process_machine(machine, config)
            log_session(logger, definition_path, original_tape, machine, verdict)
        elif choice == "2":
            console.print(definition_panel(septuple))
        elif choice == "3":
            console.print("[bold green]Goodbye![/bold green]")
            break


# === CLI Mode for Automation ===
def run_tapes(septuple, tapes, config, logger=None, definition_path=""):
    """Run every tape to completion and print a verdict table. Returns the exit code."""
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Tape", justify="left")
    table.add_column("Verdict", justify="center")
    table.add_column("Steps", justify="right")
    table.add_column("Final Tape", justify="left")

    exit_code = 0
    for tape in tapes:
        shown = escape(tape) if tape else "[dim](empty)[/dim]"
        if not septuple.accepts_input(tape):
            table.add_row(shown, "[red]invalid symbols[/red]", "-", "-")
            exit_code = 1
            continue

        machine = TuringMachine(septuple, tape)
        original_tape = machine.tape
        verdict, steps = machine.run(config["max_steps"])
        color = {
            Acceptance.ACCEPTED: "green",
            Acceptance.REJECTED: "red",
            Acceptance.RUNNING: "yellow"
        }[verdict]
        table.add_row(shown, f"[{color}]{verdict.value}[/{color}]", f"{steps:,}", escape("".join(machine.tape)))
        log_session(logger, definition_path, original_tape, machine, verdict)

    console.print(table)
    return exit_code


def main(argv=None):
    parser = ArgumentParser(description="Step through a single-tape Turing machine")
    parser.add_argument("definition", help="Path to the seven-tuple definition JSON file")
    parser.add_argument("--config", help="Path to a runtime config JSON file")
    parser.add_argument("--tape", action="append", help="Run this tape to completion instead of the interactive console (repeatable)")
    args = parser.parse_args(argv)

    try:
        config = load_runtime_config(args.config)
    except (OSError, ValueError, TypeError) as e:
        err_console.print(f"[red]Error loading configuration: {escape(str(e))}[/red]")
        return 1

    try:
        septuple = load_definition(args.definition)
    except OSError as e:
        err_console.print(f"[red]Could not read definition file: {escape(str(e))}[/red]")
        return 1
    except DefinitionFormatError as e:
        err_console.print(f"[red]Malformed definition: {escape(str(e))}[/red]")
        return 1
    except DefinitionError as e:
        err_console.print(f"[red]Definition error: {escape(str(e))}[/red]")
        return 1

    logger = JSONLogger.from_config(config)

    try:
        if args.tape is not None:
            return run_tapes(septuple, args.tape, config, logger, args.definition)
        interactive_main(septuple, config, logger, args.definition)
    except KeyboardInterrupt:
        console.print("\n[bold green]Goodbye![/bold green]")
    except Exception as e:
        err_console.print(f"[red]An error occurred: {escape(str(e))}[/red]")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
