# tools/simulate_tapes.py

import argparse
import json
import os
import sys
from pathlib import Path

from rich.progress import Progress, SpinnerColumn, BarColumn, TextColumn, TimeElapsedColumn

from config.config_loader import load_runtime_config
from logger.logger import JSONLogger
from simulator.evaluator import VERDICTS, evaluate_batch
from simulator.septuple import load_definition
from simulator.turing_machine import Acceptance, InvalidSymbolError, TuringMachine


# === Simulation backends ===
def simulate_jit(septuple, tapes, max_steps=10_000, tape_capacity=512):
    verdicts, steps = evaluate_batch(septuple, tapes, max_steps=max_steps, tape_capacity=tape_capacity)
    return [(VERDICTS[int(v)], int(s)) for v, s in zip(verdicts, steps)]


# === Utility Loaders ===
def load_tapes(tapes_file):
    """One tape per line; whitespace is ignored and '-' stands for the empty tape."""
    with open(tapes_file, "r", encoding="utf-8") as f:
        tapes = []
        for line in f:
            line = line.strip()
            if not line:
                continue
            tapes.append("" if line == "-" else line)
    return tapes


def console_message(msg):
    print(f"[{Path(os.getcwd()).name}] {msg}")


# === Main Simulation Runner ===
def simulate_tapes(definition_file, tapes_file, output_file, batch_size=4096, max_steps=10_000,
                   tape_capacity=512, use_jit=True, logger=None):
    septuple = load_definition(definition_file)
    all_tapes = load_tapes(tapes_file)
    Path(output_file).parent.mkdir(parents=True, exist_ok=True)

    valid = [t for t in all_tapes if septuple.accepts_input(t)]
    invalid = [t for t in all_tapes if not septuple.accepts_input(t)]
    console_message(f"Loaded {len(all_tapes):,} tapes. {len(invalid):,} hold invalid symbols.")

    summary = {verdict.value: 0 for verdict in Acceptance}

    with open(output_file, "w", encoding="utf-8") as results_fh:
        for tape in invalid:
            error = InvalidSymbolError([s for s in tape if s not in septuple.input_symbols])
            results_fh.write(json.dumps({"tape": tape, "error": str(error)}) + "\n")

        for batch_start in range(0, len(valid), batch_size):
            batch = valid[batch_start:batch_start + batch_size]
            console_message(f"Processing batch {batch_start // batch_size + 1} with {len(batch):,} tapes...")

            with Progress(
                    SpinnerColumn(),
                    BarColumn(),
                    "[progress.percentage]{task.percentage:>3.0f}%",
                    TextColumn("{task.completed}/{task.total} Tapes"),
                    TimeElapsedColumn()
            ) as progress:
                task = progress.add_task("[cyan]Simulating...", total=len(batch))

                # The compiled kernel decides the whole batch in one call
                if use_jit:
                    outcomes = iter(simulate_jit(septuple, batch, max_steps=max_steps, tape_capacity=tape_capacity))

                batch_results = []
                for tape in batch:
                    if use_jit:
                        verdict, steps = next(outcomes)
                    else:
                        verdict, steps = TuringMachine(septuple, tape).run(max_steps)
                    batch_results.append({"tape": tape, "verdict": verdict.value, "steps": steps})
                    summary[verdict.value] += 1
                    progress.update(task, advance=1)

            # === BULK WRITE once per batch ===
            for entry in batch_results:
                results_fh.write(json.dumps(entry) + "\n")
            results_fh.flush()

            if logger is not None:
                logger.rotate()
                logger.log_accepted([e for e in batch_results if e["verdict"] == Acceptance.ACCEPTED.value])
                logger.log_rejected([e for e in batch_results if e["verdict"] == Acceptance.REJECTED.value])

    console_message(f"[SUCCESS] {summary['accepted']:,} accepted, {summary['rejected']:,} rejected, "
                    f"{summary['running']:,} undecided. Results saved to {output_file}.")
    return summary


# === CLI ===
def main(argv=None):
    # --config is read first so that its values become the defaults of the other options
    config_parser = argparse.ArgumentParser(add_help=False)
    config_parser.add_argument("--config", help="Path to a runtime config JSON file")
    config_args, _ = config_parser.parse_known_args(argv)
    config = load_runtime_config(config_args.config)

    parser = argparse.ArgumentParser(description="Run a file of tapes against one Turing machine definition.",
                                     parents=[config_parser])
    parser.add_argument("--definition", required=True, help="Path to the definition JSON file")
    parser.add_argument("--tapes", required=True, help="Path to tapes file (one tape per line, '-' for empty)")
    parser.add_argument("--output", default="results/results.jsonl", help="Output results file")
    parser.add_argument("--batch_size", type=int, default=config["batch_size"], help="Tapes per batch")
    parser.add_argument("--max_steps", type=int, default=config["max_steps"], help="Maximum steps before giving up")
    parser.add_argument("--tape_capacity", type=int, default=config["tape_capacity"], help="Tape cells allocated per tape")
    parser.add_argument("--no-jit", dest="use_jit", action="store_false", help="Use the step engine instead of the compiled kernel")
    parser.add_argument("--log_dir", help="Log accepted/rejected tapes under this directory (default: config logging settings)")
    args = parser.parse_args(argv)

    logger = JSONLogger(args.log_dir) if args.log_dir else JSONLogger.from_config(config)
    simulate_tapes(
        args.definition,
        args.tapes,
        args.output,
        batch_size=args.batch_size,
        max_steps=args.max_steps,
        tape_capacity=args.tape_capacity,
        use_jit=args.use_jit,
        logger=logger
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
