import re
import sys
from enum import Enum

from b93_errors import (
    ArithmeticOverflow,
    B93IOError,
    DivisionByZero,
    InvalidCharacter,
    InvalidInstruction,
    InvalidNumeric,
)

HEIGHT = 25
WIDTH = 80
SPACE = 0x20

I64_MIN = -(1 << 63)
I64_MAX = (1 << 63) - 1

NUMERIC_RE = re.compile(r"[+-]?[0-9]+")


class Direction(Enum):
    UP = 0
    DOWN = 1
    LEFT = 2
    RIGHT = 3


# order matters: '?' picks by index
RANDOM_DIRECTIONS = (Direction.UP, Direction.DOWN, Direction.LEFT, Direction.RIGHT)


def blank_playfield():
    return [bytearray(b" " * WIDTH) for _ in range(HEIGHT)]


def wrap64(v):
    v &= 0xFFFFFFFFFFFFFFFF
    return v - (1 << 64) if v > I64_MAX else v


def trunc_div(x, y):
    if y == 0: raise DivisionByZero("/")
    if x == I64_MIN and y == -1: raise ArithmeticOverflow("/")
    q = abs(x) // abs(y)
    return q if (x < 0) == (y < 0) else -q


def trunc_rem(x, y):
    if y == 0: raise DivisionByZero("%")
    if x == I64_MIN and y == -1: raise ArithmeticOverflow("%")
    return x - y * trunc_div(x, y)


def parse_numeric(raw):
    text = raw.strip()
    if not NUMERIC_RE.fullmatch(text):
        raise InvalidNumeric(raw)
    val = int(text)
    if val < I64_MIN or val > I64_MAX:
        raise InvalidNumeric(raw)
    return val


class BVM:
    def __init__(self, playfield=None):
        self.playfield = playfield if playfield is not None else blank_playfield()
        self.stack = []
        self.i = 0  # row
        self.j = 0  # column
        self.dir = Direction.RIGHT
        self.bridge = False
        self.string = False
        self.steps = 0
        self.running = True

    def push(self, val):
        self.stack.append(val)

    def pop(self):
        return self.stack.pop() if self.stack else 0

    def peek(self):
        # ':' copies the bottom of the stack, not the top
        return self.stack[0] if self.stack else 0

    def next_instruction(self):
        return self.playfield[self.i][self.j]

    def advance_pc(self):
        if self.dir is Direction.UP: self.i = (self.i - 1) % HEIGHT
        elif self.dir is Direction.DOWN: self.i = (self.i + 1) % HEIGHT
        elif self.dir is Direction.LEFT: self.j = (self.j - 1) % WIDTH
        else: self.j = (self.j + 1) % WIDTH

    def _write(self, wtr, data):
        try:
            wtr.write(data)
        except OSError as e:
            raise B93IOError(e) from e

    def dump_playfield(self, filename="playfield_debug.log"):
        print(f"[VM] Saving playfield dump to {filename}...", file=sys.stderr)
        with open(filename, "w", encoding="latin-1") as f:
            f.write("--- BVM PLAYFIELD DUMP ---\n")
            f.write(f"IP: ({self.i}, {self.j}) | DIR: {self.dir.name} | STEPS: {self.steps}\n")
            f.write(f"STACK: {self.stack}\n")
            f.write("-" * WIDTH + "\n")
            for row in self.playfield:
                f.write(row.decode("latin-1").rstrip() + "\n")

    def step(self, rdr, wtr, rng):
        """Execute one cell. Returns False once '@' is reached, True otherwise."""
        self.steps += 1

        if self.bridge:
            self.bridge = False
            self.advance_pc()
            return True

        if self.string:
            c = self.next_instruction()
            if c == 0x22: self.string = False
            else: self.push(c)
            self.advance_pc()
            return True

        op = self.next_instruction()

        # --- Flow ---
        if op == SPACE: pass
        elif op == 0x40:  # @
            self.running = False
            return False
        elif op == 0x5E: self.dir = Direction.UP  # ^
        elif op == 0x76: self.dir = Direction.DOWN  # v
        elif op == 0x3C: self.dir = Direction.LEFT  # <
        elif op == 0x3E: self.dir = Direction.RIGHT  # >
        elif op == 0x3F:  # ?
            self.dir = RANDOM_DIRECTIONS[rng.randrange(4)]
        elif op == 0x22: self.string = True  # "
        elif op == 0x23: self.bridge = True  # #
        elif op == 0x5F:  # _
            self.dir = Direction.LEFT if self.pop() != 0 else Direction.RIGHT
        elif op == 0x7C:  # |
            self.dir = Direction.UP if self.pop() != 0 else Direction.DOWN

        # --- Arithmetic: x is the first value popped ---
        elif op == 0x2B:  # +
            x, y = self.pop(), self.pop()
            self.push(wrap64(x + y))
        elif op == 0x2D:  # -
            x, y = self.pop(), self.pop()
            self.push(wrap64(x - y))
        elif op == 0x2A:  # *
            x, y = self.pop(), self.pop()
            self.push(wrap64(x * y))
        elif op == 0x2F:  # /
            x, y = self.pop(), self.pop()
            self.push(trunc_div(x, y))
        elif op == 0x25:  # %
            x, y = self.pop(), self.pop()
            self.push(trunc_rem(x, y))
        elif op == 0x21:  # !
            self.push(1 if self.pop() == 0 else 0)
        elif op == 0x60:  # `
            x, y = self.pop(), self.pop()
            self.push(1 if x > y else 0)

        # --- Stack ---
        elif op == 0x3A: self.push(self.peek())  # :
        elif op == 0x24: self.pop()  # $
        elif op == 0x5C:  # \
            x, y = self.pop(), self.pop()
            self.push(x)
            self.push(y)

        # --- I/O ---
        elif op == 0x26:  # &
            try:
                line = rdr.readline().decode("utf-8")
            except (OSError, UnicodeDecodeError) as e:
                raise B93IOError(e) from e
            self.push(parse_numeric(line))
        elif op == 0x7E:  # ~
            try:
                data = rdr.read(1)
            except OSError as e:
                raise B93IOError(e) from e
            if not data:
                raise B93IOError("failed to fill whole buffer")
            self.push(data[0])
        elif op == 0x2E:  # .
            self._write(wtr, f"{self.pop()} ".encode("ascii"))
        elif op == 0x2C:  # ,
            val = self.pop()
            if val < 0 or val > 127:
                raise InvalidCharacter(val)
            self._write(wtr, bytes([val]))

        # --- Playfield ---
        elif op == 0x67:  # g
            y, x = self.pop(), self.pop()
            if 0 <= x < HEIGHT and 0 <= y < WIDTH:
                self.push(self.playfield[x][y])
            else:
                self.push(SPACE)
        elif op == 0x70:  # p
            y, x, val = self.pop(), self.pop(), self.pop()
            if 0 <= x < HEIGHT and 0 <= y < WIDTH:
                self.playfield[x][y] = val & 0xFF

        else:
            raise InvalidInstruction(op)

        self.advance_pc()
        return True

    def run(self, rdr, wtr, rng, max_steps=None):
        """Step until '@'. Returns False if max_steps ran out first."""
        while self.running:
            if max_steps is not None and self.steps >= max_steps:
                return False
            self.step(rdr, wtr, rng)
        return True
