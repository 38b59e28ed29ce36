from __future__ import annotations

import base64
import importlib
from pathlib import Path

import httpx
import pytest

from fakes import FakeMicrophone
from interview_client.errors import DeviceUnsupportedError
from interview_client.exchange import TurnExchanger


def test_console_entrypoint_exposes_app() -> None:
    pytest.importorskip("typer")

    module = importlib.import_module("interview_client.main")

    assert hasattr(module, "app")
    assert module.app is not None


def test_run_exits_with_error_when_recording_is_unsupported(monkeypatch) -> None:
    typer_testing = pytest.importorskip("typer.testing")
    from interview_client import main

    monkeypatch.setattr(main, "_build_backend", lambda: FakeMicrophone(error=DeviceUnsupportedError("no microphone")))

    result = typer_testing.CliRunner().invoke(main.app, ["run", "--session-id", "s-1", "--no-playback"])

    assert result.exit_code == 1
    assert "not supported" in result.stdout


def test_submit_file_writes_reply_audio(monkeypatch, tmp_path: Path) -> None:
    typer_testing = pytest.importorskip("typer.testing")
    from interview_client import main

    answer = tmp_path / "answer.webm"
    answer.write_bytes(b"webm-bytes")
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["body"] = request.content
        return httpx.Response(
            200,
            json={"audio_output": base64.b64encode(b"reply-wav").decode("ascii"), "text_output": "Go on."},
        )

    def _build_exchanger() -> TurnExchanger:
        return TurnExchanger(
            "http://interview.test/interview_loop",
            client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )

    monkeypatch.setattr(main, "_build_exchanger", _build_exchanger)
    out = tmp_path / "reply.wav"

    result = typer_testing.CliRunner().invoke(
        main.app,
        ["submit-file", str(answer), "--session-id", "s-1", "--out", str(out)],
        catch_exceptions=False,
    )

    assert result.exit_code == 0
    assert "Go on." in result.stdout
    assert out.read_bytes() == b"reply-wav"
    assert base64.b64encode(b"webm-bytes") in seen["body"]


def test_submit_file_requires_session_id(monkeypatch, tmp_path: Path) -> None:
    typer_testing = pytest.importorskip("typer.testing")
    from interview_client import main

    monkeypatch.setattr(main.settings, "session_id", None)
    answer = tmp_path / "answer.wav"
    answer.write_bytes(b"x")

    result = typer_testing.CliRunner().invoke(main.app, ["submit-file", str(answer)])

    assert result.exit_code != 0


def test_submit_file_rejects_empty_answer(monkeypatch, tmp_path: Path) -> None:
    typer_testing = pytest.importorskip("typer.testing")
    from interview_client import main

    built: list[TurnExchanger] = []

    def _build_exchanger() -> TurnExchanger:
        exchanger = TurnExchanger("http://interview.test/interview_loop")
        built.append(exchanger)
        return exchanger

    monkeypatch.setattr(main, "_build_exchanger", _build_exchanger)
    answer = tmp_path / "answer.wav"
    answer.write_bytes(b"")

    result = typer_testing.CliRunner().invoke(main.app, ["submit-file", str(answer), "--session-id", "s-1"])

    assert result.exit_code != 0
    assert built == []
