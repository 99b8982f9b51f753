import pytest


class TestParser:

    def test_run_now_sets_run_on_start(self, tmp_path):
        from main import build_config, create_parser

        args = create_parser().parse_args(
            ["--targets", str(tmp_path / "none.json"), "run", "--now", "--interval-days", "7"]
        )
        config = build_config(args)

        assert config.run_on_start is True
        assert config.crank_interval_s == 7 * 24 * 3600

    def test_rpc_override(self, tmp_path):
        from main import build_config, create_parser

        args = create_parser().parse_args(
            ["--rpc", "http://localhost:8899", "--targets", str(tmp_path / "none.json"), "derive"]
        )
        assert build_config(args).rpc_url == "http://localhost:8899"

    def test_no_command_prints_help(self, capsys):
        from main import main

        assert main([]) == 1
        assert "usage" in capsys.readouterr().out.lower()

    def test_derive_lists_vault_accounts(self, tmp_path, capsys, monkeypatch):
        from main import main

        monkeypatch.setenv("COLUMNS", "200")
        assert main(["--targets", str(tmp_path / "none.json"), "derive"]) == 0
        out = capsys.readouterr().out
        assert "savings_vault" in out
        assert "interest_depositor_treasury" in out

    def test_crank_without_key_fails_cleanly(self, tmp_path, monkeypatch):
        from config.settings import Settings
        from main import main

        monkeypatch.setattr(Settings, "PRIVATE_KEY", "")
        monkeypatch.setattr(Settings, "KEYPAIR_PATH", str(tmp_path / "missing.json"))

        assert main(["--targets", str(tmp_path / "none.json"), "crank"]) == 1

    def test_zero_interval_days_rejected(self, tmp_path):
        from main import build_config, create_parser

        args = create_parser().parse_args(
            ["--targets", str(tmp_path / "none.json"), "run", "--interval-days", "0"]
        )
        with pytest.raises(ValueError, match="intervals must be positive"):
            build_config(args)

    def test_zero_interval_days_exits_with_usage_error(self, tmp_path, capsys):
        from main import main

        with pytest.raises(SystemExit) as exc_info:
            main(["--targets", str(tmp_path / "none.json"), "run", "--interval-days", "0"])

        assert exc_info.value.code == 2
        assert "intervals must be positive" in capsys.readouterr().err
