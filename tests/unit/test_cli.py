from typer.testing import CliRunner

import mockgpt.cli as cli


def test_models_lists_registry(models_config):
    runner = CliRunner()
    result = runner.invoke(cli.app, ["models", "--config", models_config])
    assert result.exit_code == 0
    lines = result.output.strip().splitlines()
    assert "chat\tgpt-4o\t16384" in lines
    assert "embeddings\ttext-embedding-3-small\t10" in lines
    assert "images\tdall-e-2\t3" in lines
    assert "speech\ttts-1\t2" in lines


def test_models_missing_config(tmp_path):
    runner = CliRunner()
    result = runner.invoke(cli.app, ["models", "--config", str(tmp_path / "none.yaml")])
    assert result.exit_code == 1


def test_serve_runs_uvicorn(monkeypatch, models_config):
    called = {}

    def fake_run(application, host, port, log_config):
        called["app"] = application
        called["host"] = host
        called["port"] = port

    monkeypatch.setattr(cli.uvicorn, "run", fake_run)
    monkeypatch.setattr(cli, "create_app", lambda settings_override: settings_override)

    runner = CliRunner()
    result = runner.invoke(cli.app, ["serve", "--port", "9999", "--config", models_config])
    assert result.exit_code == 0
    assert called["port"] == 9999
    assert called["app"] == {"models_config_path": models_config}
