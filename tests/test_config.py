from __future__ import annotations

from pathlib import Path

import pytest

from command_vault import config


@pytest.fixture
def tmp_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    home = tmp_path / "home"
    home.mkdir(parents=True, exist_ok=True)
    monkeypatch.setenv("HOME", str(home))
    return home


@pytest.fixture
def vault_data_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    data = tmp_path / "vault_data_home"
    data.mkdir(parents=True, exist_ok=True)
    monkeypatch.setenv("COMMAND_VAULT_DATA_HOME", str(data))
    return data


# ----------------------------------------------------------------
# Data root + paths
# ----------------------------------------------------------------


def test_get_data_root_prefers_env(vault_data_home: Path) -> None:
    assert config.get_data_root() == vault_data_home


def test_get_data_root_defaults_to_local_share(
    tmp_home: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.delenv("COMMAND_VAULT_DATA_HOME", raising=False)

    root = config.get_data_root()

    assert root == tmp_home / ".local" / "share"
    assert root.is_dir()


def test_paths_are_under_app_dir(tmp_path: Path) -> None:
    assert config.db_path(tmp_path) == tmp_path / "command-vault" / "commands.db"
    assert config.logs_dir(tmp_path) == tmp_path / "command-vault" / "logs"
    assert config.user_config_path(tmp_path) == tmp_path / "command-vault" / "config.yaml"


@pytest.mark.parametrize(
    ("value", "expected"),
    [("", False), ("0", False), ("false", False), ("1", True), ("yes", True)],
)
def test_debug_enabled(monkeypatch: pytest.MonkeyPatch, value: str, expected: bool) -> None:
    monkeypatch.setenv("COMMAND_VAULT_DEBUG", value)

    assert config.debug_enabled() is expected


def test_tag_colors_and_plain():
    assert config.tag("ERR", color=False) == "[ERR]"
    colored = config.tag("ERR")
    assert colored.startswith(config.ANSI_COLORS["red"])
    assert colored.endswith(config.ANSI_COLORS["reset"])


# ----------------------------------------------------------------
# YAML loading
# ----------------------------------------------------------------


def test_load_system_config_reads_packaged_defaults(vault_data_home: Path) -> None:
    cfg = config.load_system_config(vault_data_home)

    assert cfg.get_path("execution.shell") == "/bin/sh"
    assert cfg.get_path("execution.record") is True
    assert cfg.get_path("templates.quote_values") is False
    assert cfg.get_path("list.limit") == 10
    assert "vault.toolbar" in cfg.get_path("ui.style")


def test_user_config_is_merged_over_defaults(vault_data_home: Path) -> None:
    user = config.user_config_path(vault_data_home)
    user.parent.mkdir(parents=True, exist_ok=True)
    user.write_text(
        "execution:\n  shell: /bin/bash\ntemplates:\n  confirm: true\n",
        encoding="utf-8",
    )

    cfg = config.load_system_config(vault_data_home)

    assert cfg.get_path("execution.shell") == "/bin/bash"
    assert cfg.get_path("execution.record") is True
    assert cfg.get_path("templates.confirm") is True
    assert cfg.get_path("templates.quote_values") is False


def test_user_config_must_be_a_mapping(vault_data_home: Path) -> None:
    user = config.user_config_path(vault_data_home)
    user.parent.mkdir(parents=True, exist_ok=True)
    user.write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(ValueError):
        config.load_system_config(vault_data_home)


def test_load_defaults_yaml_missing_file() -> None:
    with pytest.raises(FileNotFoundError):
        config.load_defaults_yaml("does-not-exist.yaml")


def test_merge_config_is_deep_and_non_destructive() -> None:
    base = {"a": {"x": 1, "y": 2}, "b": 1}

    merged = config.merge_config(base, {"a": {"y": 3}, "c": 4})

    assert merged == {"a": {"x": 1, "y": 3}, "b": 1, "c": 4}
    assert base == {"a": {"x": 1, "y": 2}, "b": 1}


# ----------------------------------------------------------------
# YAMLConfig
# ----------------------------------------------------------------


def test_yaml_config_sections():
    cfg = config.YAMLConfig({"execution": {"shell": "/bin/sh"}, "ui": "bad"})

    assert cfg.execution == {"shell": "/bin/sh"}
    assert cfg.ui == {}
    assert cfg.templates == {}


def test_yaml_config_get_path_method():
    cfg = config.YAMLConfig({"a": {"b": {"c": 5}}, "d": 1})

    assert cfg.get_path("a.b.c") == 5
    assert cfg.get_path("a.x", "dflt") == "dflt"
    assert cfg.get_path("d.e", "dflt") == "dflt"
    assert cfg.get_path("", "dflt") == "dflt"
    assert cfg.get("d") == 1
