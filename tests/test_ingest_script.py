"""Tests for the ingestion CLI."""

import logging
from pathlib import Path

import pytest

from grounded_rag.config import Settings, VectorBackend
from scripts import ingest


@pytest.fixture(autouse=True)
def script_settings(monkeypatch: pytest.MonkeyPatch, settings: Settings) -> None:
    """Run the script against offline settings without reconfiguring logging."""
    monkeypatch.setattr(ingest, "get_settings", lambda: settings)
    monkeypatch.setattr(ingest, "setup_logging", lambda level: None)


class TestRunIngestion:
    """Tests for run_ingestion."""

    async def test_memory_backend_is_a_dry_run(
        self, knowledge_file: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        """The in-memory backend succeeds but warns that nothing persists."""
        with caplog.at_level(logging.WARNING):
            succeeded = await ingest.run_ingestion(knowledge_file, backend=VectorBackend.MEMORY)

        assert succeeded
        assert "dry run" in caplog.text

    async def test_missing_file_fails(self, tmp_path: Path) -> None:
        """Loader errors are reported as a failed run."""
        assert not await ingest.run_ingestion(tmp_path / "missing.json")

    def test_help_mentions_dry_run(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """The backend option documents that memory does not persist."""
        monkeypatch.setattr("sys.argv", ["ingest", "--help"])
        monkeypatch.setenv("COLUMNS", "200")

        with pytest.raises(SystemExit):
            ingest.main()

        assert "dry run" in capsys.readouterr().out
