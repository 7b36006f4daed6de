from __future__ import annotations

from pathlib import Path

import pytest

import pricing_import.cli.__main__ as cli_module
import pricing_import.db.batch_upsert as bu
from pricing_import.cli.__main__ import main as cli_main
from pricing_import.excel.template import write_template

"""Exit code contract: 0 success, 2 partial (invalid rows / failed chunks), 1 fatal."""


class FakeCursor:
    def __init__(self) -> None:
        self.statements: list[str] = []

    def execute(self, sql):
        self.statements.append(sql)


class FakeConnection:
    def __init__(self) -> None:
        self.cur = FakeCursor()
        self.closed = False

    def cursor(self):
        return self.cur

    def close(self):
        self.closed = True


@pytest.fixture()
def upserted(monkeypatch) -> list[list[tuple]]:
    batches: list[list[tuple]] = []

    def fake_execute_values(cursor, sql, rows, page_size=1000, template=None):
        batches.append(list(rows))

    monkeypatch.setattr(bu, "execute_values", fake_execute_values)
    return batches


@pytest.fixture()
def template_file(temp_workdir: Path) -> Path:
    return write_template(temp_workdir / "data" / "template.xlsx")


def test_template_command(temp_workdir: Path, capsys):
    target = temp_workdir / "prices-template.xlsx"
    code = cli_main(["template", str(target)])
    assert code == 0
    assert target.exists()
    assert "INFO template written:" in capsys.readouterr().out


def test_parse_all_valid(temp_workdir: Path, template_file: Path, capsys):
    code = cli_main(["parse", str(template_file)])
    out = capsys.readouterr().out
    assert code == 0
    assert "SUMMARY file=template.xlsx rows=6 valid=4 invalid=0 sections=2 errors=0" in out


def test_parse_invalid_rows_is_partial(temp_workdir: Path, write_xlsx, price_sheet_rows, capsys):
    path = write_xlsx("klawer.xlsx", price_sheet_rows)
    code = cli_main(["parse", str(path)])
    out = capsys.readouterr().out
    assert code == 2
    assert "WARN row=11 product='Chenin Blanc' error=packed_case:" in out
    assert "SUMMARY file=klawer.xlsx rows=8 valid=6 invalid=1 sections=1 errors=1 warnings=3" in out


def test_parse_unreadable_file_is_fatal(temp_workdir: Path, capsys):
    code = cli_main(["parse", str(temp_workdir / "data" / "missing.xlsx")])
    out = capsys.readouterr().out
    assert code == 1
    assert "ERROR Failed to parse file:" in out


def test_explicit_missing_config_is_fatal(temp_workdir: Path, template_file: Path, capsys):
    code = cli_main(["--config", "config/nope.yml", "parse", str(template_file)])
    assert code == 1
    assert "ERROR config: config file not found" in capsys.readouterr().out


def test_invalid_config_is_fatal(temp_workdir: Path, write_config: Path, template_file: Path, capsys):
    write_config.write_text("chunk_size: 0\n", encoding="utf-8")
    code = cli_main(["parse", str(template_file)])
    assert code == 1
    assert "ERROR config: config validation failed" in capsys.readouterr().out


def test_import_offline_queues_batch(temp_workdir: Path, write_config, template_file: Path, capsys, monkeypatch):
    def no_connect(cfg):  # pragma: no cover - must not be called
        raise AssertionError("--offline must not connect")

    monkeypatch.setattr(cli_module, "_connect", no_connect)
    code = cli_main(["import", str(template_file), "--offline"])
    out = capsys.readouterr().out
    assert code == 0
    assert "SUMMARY status=queued imported=0 skipped=2 failed=0 chunks=0 queue_id=pricing_import_" in out
    assert len(list((temp_workdir / "queue").glob("pricing_import_*.json"))) == 1


def test_import_connection_failure_queues_batch(temp_workdir: Path, write_config, template_file: Path, capsys, monkeypatch):
    def refused(cfg):
        raise OSError("connection refused")

    monkeypatch.setattr(cli_module, "_connect", refused)
    code = cli_main(["import", str(template_file)])
    out = capsys.readouterr().out
    assert code == 0
    assert "INFO DB connection failed -> queueing batch: connection refused" in out
    assert "SUMMARY status=queued" in out


def test_import_online_success(temp_workdir: Path, write_config, template_file: Path, upserted, capsys, monkeypatch):
    conn = FakeConnection()
    monkeypatch.setattr(cli_module, "_connect", lambda cfg: conn)
    code = cli_main(["import", str(template_file)])
    out = capsys.readouterr().out
    assert code == 0
    # chunk_size: 2 in the sample config
    assert [len(b) for b in upserted] == [2, 2]
    assert conn.cur.statements == ["BEGIN", "COMMIT", "BEGIN", "COMMIT"]
    assert conn.closed is True
    assert "SUMMARY status=complete imported=4 skipped=2 failed=0 chunks=2" in out


def test_import_failed_chunk_is_partial(temp_workdir: Path, write_config, template_file: Path, capsys, monkeypatch):
    calls: list[int] = []

    def flaky_execute_values(cursor, sql, rows, page_size=1000, template=None):
        calls.append(len(rows))
        if len(calls) == 2:
            raise RuntimeError("deadlock detected")

    monkeypatch.setattr(bu, "execute_values", flaky_execute_values)
    monkeypatch.setattr(cli_module, "_connect", lambda cfg: FakeConnection())
    code = cli_main(["import", str(template_file)])
    out = capsys.readouterr().out
    assert code == 2
    assert "SUMMARY status=complete imported=2 skipped=2 failed=2 chunks=2" in out
    logs = list((temp_workdir / "logs").glob("import-errors-*.log"))
    assert len(logs) == 1
    assert len(logs[0].read_text(encoding="utf-8").splitlines()) == 2


def test_queue_list_replay_clear(temp_workdir: Path, write_config, template_file: Path, upserted, capsys, monkeypatch):
    cli_main(["import", str(template_file), "--offline"])
    capsys.readouterr()

    assert cli_main(["queue", "list"]) == 0
    listing = capsys.readouterr().out
    assert "file=template.xlsx rows=4" in listing

    monkeypatch.setattr(cli_module, "_connect", lambda cfg: FakeConnection())
    assert cli_main(["queue", "replay"]) == 0
    out = capsys.readouterr().out
    assert "status=complete imported=4" in out
    assert [len(b) for b in upserted] == [2, 2]
    assert not list((temp_workdir / "queue").glob("pricing_import_*.json"))

    cli_main(["import", str(template_file), "--offline"])
    capsys.readouterr()
    assert cli_main(["queue", "clear"]) == 0
    assert "INFO removed 1 queued imports" in capsys.readouterr().out


def test_queue_replay_without_database_is_fatal(temp_workdir: Path, write_config, capsys, monkeypatch):
    def refused(cfg):
        raise OSError("connection refused")

    monkeypatch.setattr(cli_module, "_connect", refused)
    assert cli_main(["queue", "replay"]) == 1
    assert "ERROR queue replay: DB connection failed" in capsys.readouterr().out


def test_inspect(temp_workdir: Path, template_file: Path, capsys):
    code = cli_main(["inspect", str(template_file), "--limit", "2"])
    out = capsys.readouterr().out
    assert code == 0
    assert "FILE: template.xlsx header_row=1" in out
    assert "row=2 section label='KLAWER CELLARS'" in out
    assert "row=3 product brand='Klawer Cellars' name='Chardonnay' color=WHITE" in out
