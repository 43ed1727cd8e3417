from __future__ import annotations

import json

from cpuscale.core.config import Config, config_dir, config_file_path


def test_defaults_without_files(isolated_config) -> None:
    cfg = Config()

    assert cfg.default_profile == "Balanced"
    assert cfg.apply_profile_on_start is False
    assert cfg.all_cpus_default is True
    assert cfg.notify_on_apply is True
    assert cfg.refresh_interval_s == 2
    assert not cfg.CONFIG_FILE.exists()


def test_setters_persist_to_user_file(isolated_config) -> None:
    cfg = Config()
    cfg.default_profile = "  Quiet  "
    cfg.apply_profile_on_start = True

    data = json.loads((isolated_config / "config.json").read_text(encoding="utf-8"))
    assert data["default_profile"] == "Quiet"
    assert data["apply_profile_on_start"] is True

    assert Config().default_profile == "Quiet"


def test_system_file_is_layered_under_user_file(isolated_config, tmp_path) -> None:
    system = tmp_path / "etc" / "config.json"
    system.parent.mkdir(parents=True)
    system.write_text(json.dumps({"default_profile": "Server", "notify_on_apply": False}), encoding="utf-8")
    isolated_config.mkdir(parents=True)
    (isolated_config / "config.json").write_text(json.dumps({"notify_on_apply": True}), encoding="utf-8")

    cfg = Config()

    assert cfg.default_profile == "Server"
    assert cfg.notify_on_apply is True


def test_refresh_interval_is_clamped(isolated_config) -> None:
    cfg = Config()
    cfg.refresh_interval_s = 500
    assert cfg.refresh_interval_s == 60
    cfg.refresh_interval_s = 0
    assert cfg.refresh_interval_s == 1


def test_corrupt_user_file_keeps_defaults(isolated_config) -> None:
    isolated_config.mkdir(parents=True)
    (isolated_config / "config.json").write_text("{not json", encoding="utf-8")

    cfg = Config()

    assert cfg.default_profile == "Balanced"


def test_paths_follow_environment(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("CPUSCALE_CONFIG_DIR", str(tmp_path / "a"))
    monkeypatch.delenv("CPUSCALE_CONFIG_PATH", raising=False)
    assert config_dir() == tmp_path / "a"
    assert config_file_path() == tmp_path / "a" / "config.json"

    monkeypatch.setenv("CPUSCALE_CONFIG_PATH", str(tmp_path / "b.json"))
    assert config_file_path() == tmp_path / "b.json"

    monkeypatch.delenv("CPUSCALE_CONFIG_DIR")
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    assert config_dir() == tmp_path / "xdg" / "cpuscale"
