import os
import sys

from b93_errors import B93IOError, PlayfieldTooTall, PlayfieldTooWide
from bvm import BVM, HEIGHT, WIDTH, blank_playfield

CR, LF = 0x0D, 0x0A

VERBOSE = bool(os.environ.get("B93_VERBOSE"))


def load_playfield(data):
    """Lays the source bytes out row by row. CRLF, LF and a bare CR all end a line."""
    playfield = blank_playfield()
    i, j = 0, 0
    after_cr = False
    for b in data:
        if after_cr and b == LF:
            after_cr = False
            continue
        after_cr = b == CR

        if b == CR or b == LF:
            i, j = i + 1, 0
            continue

        if i >= HEIGHT: raise PlayfieldTooTall()
        if j >= WIDTH: raise PlayfieldTooWide()

        playfield[i][j] = b
        j += 1
    return playfield


def from_stream(stream):
    try:
        data = stream.read()
    except OSError as e:
        raise B93IOError(e) from e
    if VERBOSE:
        print(f"[Loader] Read {len(data)} bytes of source.", file=sys.stderr)
    return BVM(load_playfield(data))


def from_file(filename):
    if VERBOSE:
        print(f"[Loader] Loading: {filename}...", file=sys.stderr)
    try:
        f = open(filename, "rb")
    except OSError as e:
        raise B93IOError(e) from e
    with f:
        return from_stream(f)
