from __future__ import annotations

from pathlib import Path

import pytest

from vatcheck.config import (
    ENV_HMRC_BASEURL,
    ENV_PROXY,
    ENV_TIMEOUT,
    ENV_VIES_BASEURL,
    ValidatorConfig,
    load_config,
    parse_proxy,
    parse_timeout,
)


def test_defaults_from_empty_environment() -> None:
    config = ValidatorConfig.from_env({})
    assert config == ValidatorConfig()
    assert config.proxy is None
    assert config.timeout == (5.0, 30.0)


def test_from_env_overrides() -> None:
    config = ValidatorConfig.from_env(
        {
            ENV_VIES_BASEURL: "http://localhost:9000/vies",
            ENV_HMRC_BASEURL: "http://localhost:9000/hmrc/",
            ENV_PROXY: "http=http://proxy.local:8001/",
            ENV_TIMEOUT: "3,12",
        }
    )
    assert config.baseurl == "http://localhost:9000/vies"
    assert config.hmrc_baseurl == "http://localhost:9000/hmrc/"
    assert config.proxy == ("http", "http://proxy.local:8001/")
    assert config.timeout == (3.0, 12.0)


@pytest.mark.parametrize(
    "value, expected",
    [
        ("http=http://proxy:8001/", ("http", "http://proxy:8001/")),
        ("http://proxy:8001/", ("https", "http://proxy:8001/")),
        ("http://proxy:8001/?a=b", ("https", "http://proxy:8001/?a=b")),
    ],
)
def test_parse_proxy(value: str, expected: tuple[str, str]) -> None:
    assert parse_proxy(value) == expected


def test_parse_proxy_rejects_empty_parts() -> None:
    with pytest.raises(ValueError):
        parse_proxy("http=")
    with pytest.raises(ValueError):
        parse_proxy("   ")


def test_parse_timeout() -> None:
    assert parse_timeout("7") == (7.0, 30.0)
    assert parse_timeout("7, 20") == (7.0, 20.0)
    with pytest.raises(ValueError):
        parse_timeout("soon")


def test_load_config_yaml(tmp_path: Path) -> None:
    path = tmp_path / "vatcheck.yaml"
    path.write_text(
        "baseurl: http://localhost/vies\n"
        "proxy:\n"
        "  scheme: https\n"
        "  url: http://proxy.local:3128\n"
        "timeout: [2, 8]\n",
        encoding="utf-8",
    )
    config = load_config(path, environ={ENV_HMRC_BASEURL: "http://localhost/hmrc/"})
    assert config.baseurl == "http://localhost/vies"
    assert config.hmrc_baseurl == "http://localhost/hmrc/"
    assert config.proxy == ("https", "http://proxy.local:3128")
    assert config.timeout == (2.0, 8.0)


def test_load_config_proxy_list(tmp_path: Path) -> None:
    path = tmp_path / "vatcheck.yaml"
    path.write_text("proxy: [http, 'http://proxy.local:8001/']\ntimeout: 4\n", encoding="utf-8")
    config = load_config(path, environ={})
    assert config.proxy == ("http", "http://proxy.local:8001/")
    assert config.timeout == (4.0, 30.0)


def test_load_config_empty_file(tmp_path: Path) -> None:
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")
    assert load_config(path, environ={}) == ValidatorConfig()


def test_load_config_rejects_unknown_keys(tmp_path: Path) -> None:
    path = tmp_path / "bad.yaml"
    path.write_text("base_url: http://typo\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(path, environ={})


def test_load_config_requires_mapping(tmp_path: Path) -> None:
    path = tmp_path / "list.yaml"
    path.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(path, environ={})


def test_load_config_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.yaml")
