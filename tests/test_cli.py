import io

import pytest

import bfinterp


@pytest.fixture
def program(tmp_path):
    def write(source):
        path = tmp_path / "prog.bf"
        path.write_text(source)
        return str(path)

    return write


def test_runs_file(program, capsys):
    status = bfinterp.main([program("++>+++++[<+>-]<.")])
    assert status == 0
    assert capsys.readouterr().out == chr(7) + "\n"


def test_reads_input_line_only_when_needed(program, capsys, monkeypatch):
    monkeypatch.setattr("sys.stdin", io.StringIO("Hi\nignored\n"))
    assert bfinterp.main([program(",.,.,.")]) == 0
    # third read finds the input exhausted and leaves the cell alone
    assert capsys.readouterr().out == "Hii\n"


def test_no_input_read_without_comma(program, capsys, monkeypatch):
    stdin = io.StringIO("untouched\n")
    monkeypatch.setattr("sys.stdin", stdin)
    assert bfinterp.main([program("+.")]) == 0
    assert stdin.tell() == 0


def test_cell_width_flag(program, capsys):
    assert bfinterp.main(["-b", "16", "--dump", program("-")]) == 0
    assert capsys.readouterr().out == "\n65535\n"


def test_ops_listing(program, capsys):
    assert bfinterp.main(["--ops", program("+++>.")]) == 0
    out = capsys.readouterr().out
    assert out.startswith("add 3\nright 1\nout 1\n")


def test_unbalanced_loop_exits_with_error(program, capsys):
    assert bfinterp.main([program("+[")]) == 1
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "open loop without matching close" in captured.err


def test_bounds_error_keeps_partial_output(program, capsys):
    assert bfinterp.main([program("+.<")]) == 1
    captured = capsys.readouterr()
    assert captured.out == chr(1)
    assert "op <" in captured.err


def test_step_limit(program, capsys):
    assert bfinterp.main(["--max-steps", "50", program("+[]")]) == 1
    assert "step limit" in capsys.readouterr().err


def test_bad_width(program, capsys):
    assert bfinterp.main(["-b", "0", program("+")]) == 1
    assert "invalid cell width" in capsys.readouterr().err


def test_missing_file(tmp_path, capsys):
    assert bfinterp.main([str(tmp_path / "nope.bf")]) == 1
    assert "could not read file" in capsys.readouterr().err


def test_non_ascii_input_fills_one_cell_per_byte(program, capsys, monkeypatch):
    monkeypatch.setattr("sys.stdin", io.StringIO("€\n"))
    assert bfinterp.main([program(",>,>,<<.>.>.")]) == 0
    assert capsys.readouterr().out == chr(0xE2) + chr(0x82) + chr(0xAC) + "\n"


@pytest.mark.parametrize("steps", ["0", "-5", "many"])
def test_max_steps_must_be_positive(program, capsys, steps):
    with pytest.raises(SystemExit) as exc:
        bfinterp.main(["--max-steps", steps, program("+")])
    assert exc.value.code == 2
    assert "--max-steps" in capsys.readouterr().err
