from __future__ import annotations

import io

from main import run_pipeline


class FixedRng:
    def randrange(self, n: int) -> int:
        return 3


class BrokenPipeStdout:
    def write(self, data: bytes) -> int:
        raise BrokenPipeError(32, "Broken pipe")

    def flush(self) -> None:
        raise BrokenPipeError(32, "Broken pipe")


def test_runs_program_from_file(tmp_path) -> None:
    src = tmp_path / "add.bf"
    src.write_bytes(b"&&+.@\n")
    out = io.BytesIO()
    code = run_pipeline([str(src)], stdin=io.BytesIO(b"2\n5\n"), stdout=out, rng=FixedRng())
    assert code == 0
    assert out.getvalue() == b"7 "


def test_reads_program_from_stdin_when_no_argument() -> None:
    out = io.BytesIO()
    code = run_pipeline([], stdin=io.BytesIO(b'"A",@'), stdout=out, rng=FixedRng())
    assert code == 0
    assert out.getvalue() == b"A"


def test_too_many_arguments(capsys) -> None:
    code = run_pipeline(["a.bf", "b.bf"], stdin=io.BytesIO(), stdout=io.BytesIO(), rng=FixedRng())
    assert code == 1
    assert "error: too many source files provided" in capsys.readouterr().err


def test_fault_exits_non_zero_and_keeps_partial_output(tmp_path, capsys) -> None:
    src = tmp_path / "bad.bf"
    src.write_bytes(b"&.x")
    out = io.BytesIO()
    code = run_pipeline([str(src)], stdin=io.BytesIO(b"1\n"), stdout=out, rng=FixedRng())
    assert code == 1
    assert out.getvalue() == b"1 "
    assert "error: invalid instruction: 'x'" in capsys.readouterr().err


def test_load_fault_exits_non_zero(capsys) -> None:
    code = run_pipeline([], stdin=io.BytesIO(b"@\n" * 26), stdout=io.BytesIO(), rng=FixedRng())
    assert code == 1
    assert "playfield too tall" in capsys.readouterr().err


def test_missing_file(capsys) -> None:
    code = run_pipeline(["/nonexistent/prog.bf"], stdin=io.BytesIO(), stdout=io.BytesIO(), rng=FixedRng())
    assert code == 1
    assert "error: IO error:" in capsys.readouterr().err


def test_broken_stdout_exits_non_zero(capsys) -> None:
    code = run_pipeline([], stdin=io.BytesIO(b'"A",@'), stdout=BrokenPipeStdout(), rng=FixedRng())
    assert code == 1
    assert "error:" in capsys.readouterr().err


def test_broken_stdout_on_flush_only_exits_non_zero(capsys) -> None:
    code = run_pipeline([], stdin=io.BytesIO(b"@"), stdout=BrokenPipeStdout(), rng=FixedRng())
    assert code == 1
    assert "error:" in capsys.readouterr().err


def test_dump_written_when_requested(tmp_path, monkeypatch) -> None:
    dump = tmp_path / "dump.log"
    monkeypatch.setenv("B93_DUMP", str(dump))
    code = run_pipeline([], stdin=io.BytesIO(b'"A"@'), stdout=io.BytesIO(), rng=FixedRng())
    assert code == 0
    assert "STACK: [65]" in dump.read_text(encoding="latin-1")


def test_unwritable_dump_exits_non_zero(tmp_path, monkeypatch, capsys) -> None:
    monkeypatch.setenv("B93_DUMP", str(tmp_path / "missing" / "dump.log"))
    code = run_pipeline([], stdin=io.BytesIO(b"@"), stdout=io.BytesIO(), rng=FixedRng())
    assert code == 1
    assert "error:" in capsys.readouterr().err
