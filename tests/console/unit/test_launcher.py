import json
from urllib import error

from wcefp.console import launcher


def _write_catalog(tmp_path):
    path = tmp_path / "experiences.json"
    path.write_text(
        json.dumps(
            [
                {"id": 1, "title": "Degustazione Chianti", "category": "wine", "price": 45, "date": "2025-06-14"},
                {"id": 2, "title": "Corso di pasta", "category": "food", "price": 65, "date": "2025-06-08"},
                {"id": 3, "title": "Wine & Bike", "category": "wine", "price": 89, "date": "2025-05-30"},
            ]
        ),
        encoding="utf-8",
    )
    return path


def test_parse_args_watch_defaults() -> None:
    args = launcher.parse_args(["watch"])

    assert args.command == "watch"
    assert args.server == "http://127.0.0.1:8000"
    assert args.nonce is None
    assert args.start_sandbox is False


def test_catalog_filters_and_sorts(tmp_path, capsys, monkeypatch) -> None:
    monkeypatch.setattr(launcher, "setup_logging", lambda level: None)
    path = _write_catalog(tmp_path)

    code = launcher.main(["catalog", str(path), "--category", "wine", "--sort", "price-desc"])

    lines = capsys.readouterr().out.splitlines()
    assert code == 0
    assert lines[-3:] == ["2 esperienze trovate", "Wine & Bike", "Degustazione Chianti"]


def test_catalog_prints_empty_message(tmp_path, capsys, monkeypatch) -> None:
    monkeypatch.setattr(launcher, "setup_logging", lambda level: None)
    path = _write_catalog(tmp_path)

    code = launcher.main(["catalog", str(path), "--search", "kayak"])

    out = capsys.readouterr().out
    assert code == 0
    assert "Nessuna esperienza trovata" in out


def test_catalog_rejects_non_list_file(tmp_path, capsys, monkeypatch) -> None:
    monkeypatch.setattr(launcher, "setup_logging", lambda level: None)
    path = tmp_path / "bad.json"
    path.write_text('{"id": 1}', encoding="utf-8")

    assert launcher.main(["catalog", str(path)]) == 1
    assert "lista" in capsys.readouterr().err


def test_wait_for_server_accepts_client_errors(monkeypatch) -> None:
    def fake_urlopen(url, timeout):
        raise error.HTTPError(url, 400, "Bad Request", hdrs=None, fp=None)

    monkeypatch.setattr(launcher.request, "urlopen", fake_urlopen)

    assert launcher.wait_for_server("http://127.0.0.1:8000", timeout_s=1.0)


def test_wait_for_server_gives_up(monkeypatch) -> None:
    def fake_urlopen(url, timeout):
        raise error.URLError("refused")

    monkeypatch.setattr(launcher.request, "urlopen", fake_urlopen)
    monkeypatch.setattr(launcher.time, "sleep", lambda seconds: None)

    assert not launcher.wait_for_server("http://127.0.0.1:8000", timeout_s=0.05)


def test_maybe_start_sandbox_runs_uvicorn(monkeypatch) -> None:
    started = {}

    class FakeProcess:
        terminated = False

        def terminate(self) -> None:
            self.terminated = True

    def fake_popen(command, cwd, env):
        started["command"] = command
        return FakeProcess()

    monkeypatch.setattr(launcher.subprocess, "Popen", fake_popen)
    monkeypatch.setattr(launcher, "wait_for_server", lambda url: True)

    process = launcher.maybe_start_sandbox("http://127.0.0.1:8123")

    assert isinstance(process, FakeProcess)
    assert "wcefp.sandbox.api:app" in started["command"]
    assert started["command"][-2:] == ["--port", "8123"]


def test_maybe_start_sandbox_terminates_when_unreachable(monkeypatch) -> None:
    processes = []

    class FakeProcess:
        terminated = False

        def terminate(self) -> None:
            self.terminated = True

    def fake_popen(command, cwd, env):
        processes.append(FakeProcess())
        return processes[-1]

    monkeypatch.setattr(launcher.subprocess, "Popen", fake_popen)
    monkeypatch.setattr(launcher, "wait_for_server", lambda url: False)

    assert launcher.maybe_start_sandbox("http://127.0.0.1:8123") is None
    assert processes[0].terminated


def test_json_line_dumps_models() -> None:
    from wcefp.client.actions import RealtimeUpdate

    line = launcher._json_line("notification", RealtimeUpdate(type="notification", message="Ciao"))

    assert json.loads(line) == {"event": "notification", "data": {"type": "notification", "message": "Ciao"}}


def test_catalog_reports_invalid_item(tmp_path, capsys, monkeypatch) -> None:
    monkeypatch.setattr(launcher, "setup_logging", lambda level: None)
    path = tmp_path / "experiences.json"
    path.write_text(
        json.dumps([{"id": 1, "title": "Ok", "date": "2025-06-14"}, {"id": 2, "title": "Rotta", "date": "14/06/2025"}]),
        encoding="utf-8",
    )

    code = launcher.main(["catalog", str(path)])

    err = capsys.readouterr().err
    assert code == 1
    assert "posizione 1" in err
    assert "Rotta" in err


def test_catalog_reports_non_numeric_rating(tmp_path, capsys, monkeypatch) -> None:
    monkeypatch.setattr(launcher, "setup_logging", lambda level: None)
    path = tmp_path / "experiences.json"
    path.write_text(json.dumps([{"id": 1, "title": "Tour", "rating": "ottimo"}]), encoding="utf-8")

    assert launcher.main(["catalog", str(path)]) == 1
    assert "posizione 0" in capsys.readouterr().err
