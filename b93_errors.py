class B93Error(Exception):
    """Base class for every fault that ends a run."""


def escape_byte(b):
    # same escaping the reference interpreter uses for bad opcodes
    if b == 0x09: return "\\t"
    if b == 0x0A: return "\\n"
    if b == 0x0D: return "\\r"
    if b in (0x22, 0x27, 0x5C): return "\\" + chr(b)
    if 0x20 <= b <= 0x7E: return chr(b)
    return f"\\x{b:02x}"


class InvalidCharacter(B93Error):
    def __init__(self, value):
        self.value = value
        super().__init__(f"attempt to output {value} as character")


class InvalidInstruction(B93Error):
    def __init__(self, opcode):
        self.opcode = opcode
        super().__init__(f"invalid instruction: '{escape_byte(opcode)}'")


class InvalidNumeric(B93Error):
    def __init__(self, text):
        self.text = text
        super().__init__(f"attempt to input '{text}' as number")


class B93IOError(B93Error):
    def __init__(self, cause):
        self.cause = cause
        super().__init__(f"IO error: '{cause}'")


class PlayfieldTooWide(B93Error):
    def __init__(self):
        super().__init__("playfield too wide")


class PlayfieldTooTall(B93Error):
    def __init__(self):
        super().__init__("playfield too tall")


class ArithmeticFault(B93Error):
    pass


class DivisionByZero(ArithmeticFault):
    def __init__(self, op="/"):
        self.op = op
        if op == "%":
            super().__init__("attempt to calculate the remainder with a divisor of zero")
        else:
            super().__init__("attempt to divide by zero")


class ArithmeticOverflow(ArithmeticFault):
    def __init__(self, op="/"):
        self.op = op
        if op == "%":
            super().__init__("attempt to calculate the remainder with overflow")
        else:
            super().__init__("attempt to divide with overflow")
