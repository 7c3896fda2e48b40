from vcs2600.demo import main, run_demo


def test_run_demo_traces_each_instruction():
    text = run_demo(10)
    lines = text.splitlines()
    cycle_lines = [line for line in lines if line.startswith("Cycle ")]
    assert cycle_lines[0] == "Cycle 0"
    assert len(cycle_lines) == 5
    assert lines[-4:] == ["  PC: 34a7", "  A: ff", "  X: 12", "  Y: 34"]


def test_run_demo_zero_cycles_is_empty():
    assert run_demo(0) == ""


def test_run_demo_is_prefix_stable():
    short = run_demo(4)
    longer = run_demo(10)
    assert longer.startswith(short)


def test_main_prints_trace(capsys):
    assert main([]) == 0
    out = capsys.readouterr().out
    assert out == run_demo(10)