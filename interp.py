import sys

from tape import Tape, TapeError

"""
Translations of native BF instructions -> tokens
+----+-------+---------------------+
| BF |  IR   |          C          |
+----+-------+---------------------+
| +  | Add   | mem[p] += n;        |
| -  | Sub   | mem[p] -= n;        |
| >  | Right | p += n;             |
| <  | Left  | p -= n;             |
| .  | Out   | putchar(mem[p]);    |
| ,  | In    | mem[p] = getchar(); |
| [  | Open  | while(mem[p]) {     |
| ]  | Close | }                   |
+----+-------+---------------------+
Only Add/Sub/Right/Left carry a repeat count n > 1.
"""


# Define constants at beginning so we can use them elsewhere
OP_ADD = 0
OP_SUB = 1
OP_RIGHT = 2
OP_LEFT = 3
OP_OUT = 4
OP_IN = 5
OP_OPEN_JMP = 6
OP_CLOSE_JMP = 7

# Used to naively go from BF -> IR type
instruction_opcode_map = {
    "+": OP_ADD,
    "-": OP_SUB,
    ">": OP_RIGHT,
    "<": OP_LEFT,
    ".": OP_OUT,
    ",": OP_IN,
    "[": OP_OPEN_JMP,
    "]": OP_CLOSE_JMP,
}

opcode_instruction_map = {v: k for k, v in instruction_opcode_map.items()}

# Used to lookup IR code for the opcode
opcode_name_map = {
    OP_ADD: "add",
    OP_SUB: "sub",
    OP_RIGHT: "right",
    OP_LEFT: "left",
    OP_OUT: "out",
    OP_IN: "in",
    OP_OPEN_JMP: "openjmp",
    OP_CLOSE_JMP: "closejmp",
}

# Runs of these collapse into one token
RUN_OPCODES = (OP_ADD, OP_SUB, OP_RIGHT, OP_LEFT)


class BFError(RuntimeError):
    """
    Base for everything the interpreter raises. `position` is an index into
    the token list, `op` the instruction character at that position.
    """

    def __init__(self, message, position=None, op=None, output=""):
        super().__init__(message)
        self.position = position
        self.op = op
        self.output = output


class LoopError(BFError):
    pass


class UnmatchedOpenError(LoopError):
    pass


class UnmatchedCloseError(LoopError):
    pass


class ExecutionError(BFError):
    pass


class StepLimitError(BFError):
    pass


def instr_to_opcode(instr_char):
    return instruction_opcode_map[instr_char]


def opcode_to_string(opcode_num):
    return opcode_name_map[opcode_num]


def _get_repeated_count(source, start):
    repeats = 0
    match = source[start]
    for char in source[start + 1 :]:
        if match == char:
            repeats += 1
        else:
            break

    return repeats


class Opcode(object):
    """
    One compacted instruction: the operation, how many times it repeats and
    where it started in the cleaned source
    """

    def __init__(self, op, count=1, offset=0):
        self.op = op
        self.count = count
        self.offset = offset

    @property
    def symbol(self):
        return opcode_instruction_map[self.op]

    def __eq__(self, other):
        if not isinstance(other, Opcode):
            return NotImplemented
        return (self.op, self.count, self.offset) == (other.op, other.count, other.offset)

    def __hash__(self):
        return hash((self.op, self.count, self.offset))

    def __str__(self):
        name = opcode_to_string(self.op)
        return f"{name} {self.count}"

    def __repr__(self):
        name = opcode_to_string(self.op)
        return f" * op={name}\n * count={self.count}\n * offset={self.offset}"


def cleanup(source):
    return "".join(filter(lambda x: x in instruction_opcode_map, source))


def parse(code):
    """
    Turn cleaned source into tokens, coalescing runs of +, -, > and <
    """
    opcodes = []
    size = len(code)

    pc = 0
    while pc < size:
        opcode = instr_to_opcode(code[pc])

        if opcode in RUN_OPCODES:
            repeats = _get_repeated_count(code, pc)
            opcodes.append(Opcode(opcode, repeats + 1, offset=pc))
            pc += repeats
        else:
            opcodes.append(Opcode(opcode, offset=pc))

        pc += 1

    return opcodes


def expand(opcodes):
    return "".join(op.symbol * op.count for op in opcodes)


def build_loop_map(opcodes):
    loop_starts = []
    loops = {}

    for pos, op in enumerate(opcodes):
        if op.op == OP_OPEN_JMP:
            loop_starts.append(pos)

        elif op.op == OP_CLOSE_JMP:
            if not loop_starts:
                raise UnmatchedCloseError(
                    f"pos {pos} op ]: close loop without matching open",
                    position=pos,
                    op="]",
                )
            start = loop_starts.pop()
            loops[pos] = start
            loops[start] = pos

    if loop_starts:
        pos = loop_starts.pop()
        raise UnmatchedOpenError(
            f"pos {pos} op [: open loop without matching close",
            position=pos,
            op="[",
        )

    return loops


def _cell_to_char(value):
    # Wide cells may hold values that are not printable code points
    if value > sys.maxunicode or 0xD800 <= value <= 0xDFFF:
        value &= 0xFF
    return chr(value)


class Interpreter(object):
    """
    Runs BF source against a tape it owns. Each call to `execute` starts
    from a freshly reset tape.
    """

    def __init__(self, width=8, debug=False):
        self.tape = Tape(width)
        self.debug = debug

    @property
    def width(self):
        return self.tape.width

    def reset(self):
        self.tape.reset()

    def dump(self):
        return self.tape.dump()

    def execute(self, source, data_input="", buffer_output=True, max_steps=None):
        """
        Run `source` with `data_input` as the input stream. A str is fed to
        `,` as its UTF-8 bytes.

        Returns the output, trailing line break included, when
        `buffer_output` is set; otherwise streams it to stdout and returns
        None. `max_steps` bounds the number of tokens executed.
        """
        self.reset()
        opcodes = parse(cleanup(source))
        loops = build_loop_map(opcodes)

        if data_input is None:
            data_input = b""
        elif isinstance(data_input, str):
            # `,` reads bytes, so text goes in as its UTF-8 encoding
            data_input = data_input.encode("utf-8")
        tape = self.tape
        size = len(opcodes)
        out_buffer = []

        pc, inp = 0, 0
        steps = 0

        syswrite = sys.stdout.write
        sysflush = sys.stdout.flush

        def write_stdout(c):
            syswrite(c)
            sysflush()

        def write_buffer(c):
            out_buffer.append(c)

        def fail(exc_type, message, cause=None):
            sym = opcodes[pc].symbol
            err = exc_type(
                f"pos {pc} op {sym} (source offset {opcodes[pc].offset}): {message}",
                position=pc,
                op=sym,
                output="".join(out_buffer),
            )
            if cause is not None:
                raise err from cause
            raise err

        do_write = write_buffer if buffer_output else write_stdout

        while pc < size:
            if max_steps is not None and steps >= max_steps:
                fail(StepLimitError, f"step limit of {max_steps} reached")
            steps += 1

            op = opcodes[pc]

            if op.op == OP_ADD:
                tape.add(op.count)

            elif op.op == OP_SUB:
                tape.subtract(op.count)

            elif op.op == OP_RIGHT:
                tape.move_right(op.count)

            elif op.op == OP_LEFT:
                try:
                    tape.move_left(op.count)
                except TapeError as err:
                    fail(ExecutionError, err, cause=err)

            elif op.op == OP_OUT:
                do_write(_cell_to_char(tape.get_cell()))

            elif op.op == OP_IN:
                if inp < len(data_input):
                    value = data_input[inp]
                    inp += 1
                    try:
                        tape.set_cell(value)
                    except TapeError as err:
                        fail(ExecutionError, err, cause=err)

            elif op.op == OP_OPEN_JMP:
                if tape.get_cell() == 0:
                    pc = loops[pc]

            elif op.op == OP_CLOSE_JMP:
                if tape.get_cell() != 0:
                    pc = loops[pc]

            if self.debug:
                print(
                    f"*op={op}\n* pc={pc}\n* dataptr={tape.cursor}\n* Memory locations:",
                    file=sys.stderr,
                )

                for k, v in enumerate(tape.cells):
                    print(f"\t\t*{k}: {v}", file=sys.stderr)

                print("\n", file=sys.stderr)
            pc += 1

        do_write("\n")

        return "".join(out_buffer) if buffer_output else None
