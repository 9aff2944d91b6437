"""Config load/save, validation fallbacks and the env override."""

import json
import os

from ascii_video.config import DEFAULT_CONFIG, Config, _default_config_path


def test_load_creates_file(tmp_path):
    path = tmp_path / "sub" / "cfg.json"
    cfg = Config.load(str(path))
    assert path.exists()
    assert cfg["render"]["video_rows"] == 80
    on_disk = json.loads(path.read_text())
    assert on_disk["record"]["out_dir"] is None
    assert on_disk["cache"]["dir"] is None


def test_invalid_values_fall_back(tmp_path):
    path = tmp_path / "cfg.json"
    path.write_text(json.dumps({
        "render": {"video_rows": "abc", "ramp": "emoji", "color": "off"},
        "record": {"fps": 1000, "fourcc": "toolong"},
        "logging": {"level": "LOUD"},
    }))
    cfg = Config.load(str(path))
    assert cfg["render"]["video_rows"] == 80
    assert cfg["render"]["ramp"] == "ascii_dense"
    assert cfg["render"]["color"] is False
    assert cfg["record"]["fps"] == 120
    assert cfg["record"]["fourcc"] == "mp4v"
    assert cfg["logging"]["level"] == "INFO"


def test_corrupt_file_is_backed_up(tmp_path):
    path = tmp_path / "cfg.json"
    path.write_text("{ not json")
    cfg = Config.load(str(path))
    assert cfg["app"]["fps_limit"] == DEFAULT_CONFIG["app"]["fps_limit"]
    assert (tmp_path / "cfg.json.corrupt.bak").read_text() == "{ not json"


def test_save_writes_only_changes(tmp_path):
    path = tmp_path / "cfg.json"
    cfg = Config.load(str(path))
    cfg.update({"render": {"image_rows": 42}})
    cfg.save()
    assert json.loads(path.read_text()) == {"render": {"image_rows": 42}}
    assert Config.load(str(path))["render"]["image_rows"] == 42


def test_paths_resolved(tmp_path):
    path = tmp_path / "cfg.json"
    path.write_text(json.dumps({"record": {"out_dir": str(tmp_path / "out")}}))
    cfg = Config.load(str(path))
    assert cfg.out_dir == str(tmp_path / "out")
    assert cfg.cache_dir


def test_defaults_not_mutated(tmp_path):
    Config.load(str(tmp_path / "cfg.json"))
    assert DEFAULT_CONFIG["record"]["out_dir"] is None
    assert DEFAULT_CONFIG["cache"]["dir"] is None


def test_env_override(tmp_path, monkeypatch):
    target = tmp_path / "env.json"
    monkeypatch.setenv("ASCII_VIDEO_CONFIG", str(target))
    assert _default_config_path() == str(target)
    Config.load()
    assert target.exists()


def test_env_unset(monkeypatch):
    monkeypatch.delenv("ASCII_VIDEO_CONFIG", raising=False)
    assert os.path.basename(_default_config_path()) == "ascii_video.json"
