"""
Memory tape for the interpreter: a row of fixed-width unsigned cells that is
bounded on the left and grows on demand to the right.
"""


class TapeError(Exception):
    pass


class TapeConfigError(TapeError, ValueError):
    pass


class TapeBoundsError(TapeError, IndexError):
    pass


class TapeRangeError(TapeError, ValueError):
    pass


class Tape(object):
    """
    Cells wrap modulo 2**width. The cursor always points at an allocated cell.
    """

    def __init__(self, width=8):
        # bool is an int subclass, but True is not a width
        if not isinstance(width, int) or isinstance(width, bool) or width < 1:
            raise TapeConfigError(f"invalid cell width {width!r}: must be a positive integer")

        self.width = width
        self.modulus = 1 << width
        self.cells = [0]
        self.cursor = 0

    def __len__(self):
        return len(self.cells)

    def move_left(self, n=1):
        if n > self.cursor:
            raise TapeBoundsError(
                f"cannot move left {n} from cell {self.cursor}: out of bounds"
            )
        self.cursor -= n

    def move_right(self, n=1):
        self.cursor += n
        missing = self.cursor + 1 - len(self.cells)
        if missing > 0:
            self.cells.extend([0] * missing)

    def add(self, n=1):
        self.cells[self.cursor] = (self.cells[self.cursor] + n) % self.modulus

    def subtract(self, n=1):
        self.cells[self.cursor] = (self.cells[self.cursor] - n) % self.modulus

    def set_cell(self, value):
        if value < 0 or value >= self.modulus:
            raise TapeRangeError(
                f"value {value} is outside cell range 0..{self.modulus - 1}"
            )
        self.cells[self.cursor] = value

    def get_cell(self):
        return self.cells[self.cursor]

    def reset(self):
        """Truncate back to a single zeroed cell and rewind the cursor."""
        self.cells = [0]
        self.cursor = 0

    def dump(self):
        return "\t".join(str(v) for v in self.cells)
