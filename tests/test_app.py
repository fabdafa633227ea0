"""Tests for the headless command-line mode."""

import json

import pytest

from covmap import app
from covmap.ingest import FeedError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("COVMAP_FEED_URL", raising=False)
    monkeypatch.delenv("COVMAP_REFRESH_S", raising=False)


class TestOnceMode:
    def test_snapshot_summary(self, snapshot_file, sample_records, capsys):
        rc = app.main(["--once", "--snapshot", str(snapshot_file)])
        assert rc == 0
        summary = json.loads(capsys.readouterr().out)
        assert summary["status"] == "ready"
        assert summary["points"] == len(sample_records)
        assert summary["scale"]["max"] == 400000

    def test_empty_snapshot_exit_1(self, tmp_path, capsys):
        path = tmp_path / "empty.json"
        path.write_text("[]", encoding="utf-8")
        assert app.main(["--once", "--snapshot", str(path)]) == 1
        assert json.loads(capsys.readouterr().out)["status"] == "no_data"

    def test_missing_snapshot_exit_1(self, tmp_path, capsys):
        assert app.main(["--once", "--snapshot", str(tmp_path / "x.json")]) == 1
        assert json.loads(capsys.readouterr().out)["status"] == "no_data"

    def test_feed_url_flag(self, monkeypatch, sample_records, capsys):
        seen = {}

        def fake_fetch(url, timeout, retries):
            seen["url"] = url
            return sample_records

        monkeypatch.setattr(app, "fetch_jhu_records", fake_fetch)
        assert app.main(["--once", "--feed-url", "http://mirror/feed"]) == 0
        assert seen["url"] == "http://mirror/feed"
        capsys.readouterr()

    def test_fetch_failure(self, monkeypatch, capsys):
        def failing(url, timeout, retries):
            raise FeedError("feed fetch failed: down")

        monkeypatch.setattr(app, "fetch_jhu_records", failing)
        assert app.main(["--once"]) == 1
        assert json.loads(capsys.readouterr().out)["status"] == "no_data"

    def test_bad_config_exit_2(self, tmp_path):
        path = tmp_path / "covmap.json"
        path.write_text('{"bogus": 1}', encoding="utf-8")
        assert app.main(["--once", "--config", str(path)]) == 2

    def test_bad_refresh_flag(self):
        assert app.main(["--once", "--refresh", "-5"]) == 2
