"""
TextCollector — Command Line Tests
===================================

The CLI runs each command with asyncio.run(), so these tests are plain
synchronous functions.
"""

import json
import os
import subprocess
import sys
from pathlib import Path
from unittest.mock import patch

import textcollector
from textcollector.cli import EXIT_FAILED, EXIT_OK, EXIT_STORE_UNAVAILABLE, main
from textcollector.config import Settings


class TestAddCommand:

    def test_add_prints_confirmation(self, settings, capsys):
        code = main(["add", "Buy milk", "--tags", "errand, home", "--favorite"], settings=settings)

        assert code == EXIT_OK
        assert "Snippet saved successfully!" in capsys.readouterr().out

        main(["stats"], settings=settings)
        out = capsys.readouterr().out
        assert "Total Snippets:    1" in out
        assert "Favorite Snippets: 1" in out
        assert "Tags:              2" in out

    def test_add_empty_text_fails(self, settings, capsys):
        assert main(["add", ""], settings=settings) == EXIT_FAILED
        assert "cannot be empty" in capsys.readouterr().err

    def test_unopenable_store(self, tmp_path, capsys):
        blocker = tmp_path / "not-a-directory"
        blocker.write_text("x")
        broken = Settings(data_dir=blocker / "data", log_level="WARNING")

        assert main(["add", "text"], settings=broken) == EXIT_STORE_UNAVAILABLE
        assert "Unable to open the snippet store" in capsys.readouterr().err


class TestDataCommands:

    def test_seed_export_import(self, settings, tmp_path, capsys):
        assert main(["seed"], settings=settings) == EXIT_OK

        export_file = tmp_path / "export.json"
        assert main(["export", "-o", str(export_file)], settings=settings) == EXIT_OK
        document = json.loads(export_file.read_text(encoding="utf-8"))
        assert len(document["snippets"]) == 5

        other = Settings(data_dir=tmp_path / "other", log_level="WARNING")
        capsys.readouterr()
        assert main(["import", str(export_file)], settings=other) == EXIT_OK
        assert "Imported 5 snippet(s)" in capsys.readouterr().out

    def test_import_invalid_file(self, settings, tmp_path, capsys):
        bad = tmp_path / "bad.json"
        bad.write_text("{not json")

        assert main(["import", str(bad)], settings=settings) == EXIT_FAILED
        assert "not a valid TextCollector export" in capsys.readouterr().err

    def test_import_missing_file(self, settings, tmp_path, capsys):
        assert main(["import", str(tmp_path / "missing.json")], settings=settings) == EXIT_FAILED
        assert "Error:" in capsys.readouterr().err


class TestServeCommand:

    def test_serve_uses_given_settings(self, tmp_path):
        custom = Settings(
            data_dir=tmp_path / "served",
            log_level="WARNING",
            default_category="Inbox",
            port=9123,
        )

        with patch("uvicorn.run") as run:
            assert main(["serve", "--host", "127.0.0.1"], settings=custom) == EXIT_OK

        app = run.call_args.args[0]
        assert app.state.settings is custom
        assert app.state.database.url == custom.resolved_database_url
        assert run.call_args.kwargs["host"] == "127.0.0.1"
        assert run.call_args.kwargs["port"] == 9123

    def test_importing_cli_does_not_build_the_app(self):
        env = dict(os.environ, PYTHONPATH=str(Path(textcollector.__file__).parents[1]))
        result = subprocess.run(
            [
                sys.executable,
                "-c",
                "import sys, textcollector.cli; print('textcollector.main' in sys.modules)",
            ],
            capture_output=True,
            text=True,
            env=env,
            check=True,
        )
        assert result.stdout.strip() == "False"
