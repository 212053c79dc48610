import pytest

from idiomlint.config import EngineConfig, load_config, parse_config
from idiomlint.errors import ConfigError


def test_parse_config_from_yaml():
    config = parse_config(
        """
rules:
  min_else_if_branches: 3
  trivial_size_threshold: 32
exclude:
  - r02
  - R15
max_workers: 4
"""
    )

    assert config == EngineConfig(
        min_else_if_branches=3,
        trivial_size_threshold=32,
        excluded_rules=frozenset({"R02", "R15"}),
        max_workers=4,
    )


def test_empty_config_uses_defaults():
    assert parse_config("") == EngineConfig()
    assert parse_config({"exclude": "R01"}).excluded_rules == frozenset({"R01"})


@pytest.mark.parametrize(
    "content",
    [
        "- just\n- a list\n",
        {"rules": ["min_else_if_branches"]},
        {"rules": {"min_else_if_branches": 1}},
        {"rules": {"trivial_size_threshold": "big"}},
        {"rules": {"trivial_size_threshold": -1}},
        {"exclude": {"R01": True}},
        {"max_workers": 0},
        {"max_workers": True},
    ],
)
def test_invalid_config_is_rejected(content):
    with pytest.raises(ConfigError):
        parse_config(content)


def test_load_config_from_directory(tmp_path):
    (tmp_path / ".idiomlint.yml").write_text("exclude: [R03]\n", encoding="utf-8")

    assert load_config(tmp_path).excluded_rules == frozenset({"R03"})


def test_load_config_from_file(tmp_path):
    config_file = tmp_path / "custom.yml"
    config_file.write_text("rules:\n  min_else_if_branches: 6\n", encoding="utf-8")

    assert load_config(config_file).min_else_if_branches == 6


def test_load_config_without_file(tmp_path):
    assert load_config(tmp_path) == EngineConfig()
