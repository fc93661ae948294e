from __future__ import annotations

import json

from app_cli import play
from assess_core.codec import encode, to_wire
from assess_core.session import QuizSession
from tools import validate_payload

from tests.conftest import build_demo_payload, build_quiz


def test_terminal_player_runs_to_results(capsys):
    sess = QuizSession(build_quiz(2), mode="practice")
    keys = iter(["2", "", "1", ""])
    play.run(sess, read=lambda _prompt: next(keys))
    out = capsys.readouterr().out
    assert "50%  1 out of 2 points" in out
    assert "'unanswered': 0" in out


def test_player_loads_json_file_and_token(tmp_path):
    payload = build_demo_payload()
    path = tmp_path / "quiz.json"
    path.write_text(json.dumps(to_wire(payload)), encoding="utf-8")
    assert play.load_payload(str(path)) == payload
    assert play.load_payload("https://entermedschool.org/embed/questions#" + encode(payload)) == payload
    assert play.load_payload("garbage!!").reason == "malformed_encoding"


def test_validate_tool(capsys):
    assert validate_payload.main([encode(build_demo_payload())]) == 0
    assert "Ready to embed" in capsys.readouterr().out
    assert validate_payload.main(["not-valid-base64!!"]) == 1
    assert "malformed_encoding" in capsys.readouterr().out


def test_smoke_run(caplog):
    from assess_core import smoke

    caplog.set_level("INFO")
    smoke.main()
    assert "Encoded 20 items" in caplog.text
    assert "Review:" in caplog.text
