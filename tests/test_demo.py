"""
test_demo.py - Smoke test for the tutorial script
"""

import demo


def test_demo_runs_in_quick_mode(monkeypatch, capsys):
    monkeypatch.setattr(demo, "QUICK_MODE", True)
    demo.main()
    out = capsys.readouterr().out
    assert "TUTORIAL COMPLETE!" in out
    assert "Balance seen inside the callback: 0" in out
    assert "Valid:         True" in out
