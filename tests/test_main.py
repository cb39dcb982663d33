import pytest

import main
from src.auth import npsso as npsso_module
from src.server import mcp_server

NPSSO = "Zq9xK2mN7pL4vR8sT1wY5bC3dF6gH0jA2eI4oU7yE9rW1tQ3uP5aS8dF0gH2jK4l"


class RecordingLogger:
    def __init__(self):
        self.records = []

    def _record(self, level, msg, *args):
        self.records.append((level, msg % args if args else msg))

    def info(self, msg, *args):
        self._record("info", msg, *args)

    def warning(self, msg, *args):
        self._record("warning", msg, *args)

    def error(self, msg, *args):
        self._record("error", msg, *args)


class FakeServer:
    def __init__(self):
        self.run_kwargs = None

    def run(self, **kwargs):
        self.run_kwargs = kwargs


@pytest.fixture
def startup(monkeypatch):
    log = RecordingLogger()
    server = FakeServer()
    monkeypatch.setattr(main, "logger", log)
    monkeypatch.setattr(main, "load_dotenv", lambda path: None)
    monkeypatch.setattr(mcp_server, "create_mcp_server", lambda: server)
    monkeypatch.setenv("NPSSO", "")
    monkeypatch.setenv("MCP_PORT", "8123")
    return log, server


def test_fetched_npsso_is_never_logged(monkeypatch, startup):
    log, server = startup
    monkeypatch.setattr(npsso_module, "fetch_npsso", lambda: NPSSO)

    main.main()

    messages = [message for _, message in log.records]
    assert f"NPSSO fetched automatically (length: {len(NPSSO)})" in messages
    for message in messages:
        assert NPSSO[:4] not in message
    assert main.os.environ["NPSSO"] == NPSSO
    assert server.run_kwargs == {"transport": "http", "host": "0.0.0.0", "port": 8123}


def test_missing_npsso_logs_warning_and_starts(monkeypatch, startup):
    log, server = startup
    monkeypatch.setattr(npsso_module, "fetch_npsso", lambda: None)

    main.main()

    assert any(level == "warning" for level, _ in log.records)
    assert server.run_kwargs["port"] == 8123
