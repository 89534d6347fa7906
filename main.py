import os
import random
import sys

from b93_errors import B93Error
from b93_loader import from_file, from_stream


def load_program(argv, stdin):
    """Zero arguments reads the program from stdin, one names a source file."""
    if len(argv) == 0:
        return from_stream(stdin)
    if len(argv) == 1:
        return from_file(argv[0])
    raise B93Error("too many source files provided")


def run_pipeline(argv, stdin=None, stdout=None, rng=None):
    stdin = stdin if stdin is not None else sys.stdin.buffer
    stdout = stdout if stdout is not None else sys.stdout.buffer
    rng = rng if rng is not None else random.Random()

    vm = None
    status = 0
    try:
        vm = load_program(argv, stdin)
        vm.run(stdin, stdout, rng)
    except B93Error as e:
        print(f"error: {e}", file=sys.stderr)
        status = 1

    # partial output and the dump are still wanted after a fault
    try:
        stdout.flush()
        dump_file = os.environ.get("B93_DUMP")
        if dump_file and vm is not None:
            vm.dump_playfield(dump_file)
    except OSError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    if status == 0 and os.environ.get("B93_VERBOSE"):
        print(f"[VM] Halted after {vm.steps} steps.", file=sys.stderr)
    return status


if __name__ == "__main__":
    sys.exit(run_pipeline(sys.argv[1:]))
