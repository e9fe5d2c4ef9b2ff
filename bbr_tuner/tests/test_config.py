import argparse

import pytest

from bbr_tuner.config import Config, create_example_config
from bbr_tuner.protocol.errors import ConfigError
from bbr_tuner.tuning.tiers import CONGESTION_KEY, QDISC_KEY


def _args(**overrides):
    defaults = dict(conf_file=None, retain=None, skip_checks=False, quiet=False, verbose=0)
    defaults.update(overrides)
    return argparse.Namespace(**defaults)


def test_defaults_are_valid():
    config = Config()

    assert config.validate() == []
    assert config.paths.conf_file == "/etc/sysctl.d/99-bbr.conf"
    assert config.backup.retain == 1
    assert config.min_kernel_version() == (4, 9)
    assert config.verify.expected() == {CONGESTION_KEY: "bbr", QDISC_KEY: "fq"}


def test_load_from_toml(tmp_path):
    path = tmp_path / "bbr-tuner.toml"
    path.write_text("""
[paths]
conf_file = "/etc/sysctl.d/90-net.conf"

[backup]
retain = 4

[preflight]
enabled = false
min_kernel = "5.4"
""")

    config = Config.load(str(path), environ={})

    assert config.config_file == path
    assert config.paths.conf_file == "/etc/sysctl.d/90-net.conf"
    assert config.backup.retain == 4
    assert not config.preflight.enabled
    assert config.min_kernel_version() == (5, 4)
    assert config.verify.qdisc == "fq"


def test_missing_explicit_file_is_an_error(tmp_path):
    with pytest.raises(ConfigError, match="not found"):
        Config.load(str(tmp_path / "absent.toml"), environ={})


def test_invalid_toml_is_an_error(tmp_path):
    path = tmp_path / "broken.toml"
    path.write_text("[backup\nretain = ")

    with pytest.raises(ConfigError, match="Invalid TOML"):
        Config.load(str(path), environ={})


def test_directory_as_config_file_is_an_error(tmp_path):
    with pytest.raises(ConfigError, match="Cannot read"):
        Config.load(str(tmp_path), environ={})


@pytest.mark.parametrize("toml, message", [
    ('paths = "x"\n', r"\[paths\] must be a table"),
    ("backup = 3\n", r"\[backup\] must be a table"),
    ("[paths]\nconf_file = 5\n", "paths.conf_file must be str"),
    ("[backup]\nretain = true\n", "backup.retain must be int"),
    ('[backup]\nretain = "3"\n', "backup.retain must be int"),
    ("[preflight]\nmin_kernel = 5.4\n", "preflight.min_kernel must be str"),
    ('[output]\nquiet = "yes"\n', "output.quiet must be bool"),
])
def test_wrongly_typed_values_are_errors(tmp_path, toml, message):
    path = tmp_path / "bbr-tuner.toml"
    path.write_text(toml)

    with pytest.raises(ConfigError, match=message):
        Config.load(str(path), environ={})


def test_bool_retain_fails_validation():
    config = Config()
    config.backup.retain = True

    assert any("backup.retain" in e for e in config.validate())


def test_non_string_conf_file_fails_validation():
    config = Config()
    config.paths.conf_file = 5

    assert any("paths.conf_file" in e for e in config.validate())


def test_search_path_used_when_no_file_given(tmp_path, monkeypatch):
    path = tmp_path / "bbr-tuner.toml"
    path.write_text("[backup]\nretain = 7\n")
    monkeypatch.setattr("bbr_tuner.config.CONFIG_SEARCH_PATHS", [tmp_path / "nope.toml", path])

    config = Config.load(environ={})

    assert config.config_file == path
    assert config.backup.retain == 7


def test_environment_overrides_file(tmp_path):
    path = tmp_path / "bbr-tuner.toml"
    path.write_text("[backup]\nretain = 4\n")

    config = Config.load(str(path), environ={
        "BBR_TUNER_RETAIN": "9",
        "BBR_TUNER_CONF_FILE": "/tmp/test.conf",
    })

    assert config.backup.retain == 9
    assert config.paths.conf_file == "/tmp/test.conf"


def test_non_integer_retain_env_is_an_error(monkeypatch):
    monkeypatch.setattr("bbr_tuner.config.CONFIG_SEARCH_PATHS", [])
    with pytest.raises(ConfigError, match="BBR_TUNER_RETAIN"):
        Config.load(environ={"BBR_TUNER_RETAIN": "lots"})


def test_arguments_override_environment(monkeypatch):
    monkeypatch.setattr("bbr_tuner.config.CONFIG_SEARCH_PATHS", [])
    config = Config.load(environ={"BBR_TUNER_RETAIN": "9"})

    config.override_from_args(_args(retain=2, conf_file="/etc/sysctl.d/50-x.conf", skip_checks=True))

    assert config.backup.retain == 2
    assert config.paths.conf_file == "/etc/sysctl.d/50-x.conf"
    assert not config.preflight.enabled


def test_unset_arguments_keep_config_values():
    config = Config()
    config.backup.retain = 5

    config.override_from_args(_args())

    assert config.backup.retain == 5
    assert config.preflight.enabled


@pytest.mark.parametrize("mutate, message", [
    (lambda c: setattr(c.backup, "retain", 0), "backup.retain"),
    (lambda c: setattr(c.paths, "conf_file", "/etc/sysctl.d/99-bbr"), ".conf"),
    (lambda c: setattr(c.preflight, "min_kernel", "new"), "min_kernel"),
    (lambda c: setattr(c.verify, "qdisc", ""), "verify.qdisc"),
])
def test_validate_reports_problems(mutate, message):
    config = Config()
    mutate(config)

    errors = config.validate()

    assert len(errors) == 1
    assert message in errors[0]


def test_quiet_and_verbose_conflict():
    config = Config().override_from_args(_args(quiet=True, verbose=1))
    assert any("mutually exclusive" in e for e in config.validate())


def test_summary_mentions_defaults():
    summary = Config().summary()
    assert "Config: (defaults)" in summary
    assert "Backups kept: 1" in summary


def test_example_config_round_trips(tmp_path):
    path = create_example_config(str(tmp_path / "example.toml"))

    config = Config.load(str(path), environ={})

    assert config.validate() == []
    assert config.backup.retain == 1

    with pytest.raises(FileExistsError):
        create_example_config(str(path))
