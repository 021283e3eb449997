"""Command line adapter tests."""

import json

import pytest

from modelproxy.api.cli import main, parse_params
from modelproxy.core.proxy_factory import set_default_factory


@pytest.fixture
def config_path(tmp_path):
    rules = tmp_path / "interfaceRules"
    rules.mkdir()
    (rules / "Cart.getCart.rule.json").write_text(
        json.dumps({"response": {"items": ["a"]}, "responseError": {"error": "boom"}}),
        encoding="utf-8",
    )
    (tmp_path / "interface.json").write_text(json.dumps({
        "status": "online",
        "interfaces": [
            {"id": "Cart.getCart", "urls": {"online": "http://c.test/cart"}, "isRuleStatic": True},
            {"id": "User.info", "urls": {"online": "http://u.test/info"}, "isCookieNeeded": True, "status": "mock"},
        ],
    }), encoding="utf-8")
    yield str(tmp_path / "interface.json")
    set_default_factory(None)


def test_parse_params():
    assert parse_params(["a=1", "b=x=y"]) == {"a": "1", "b": "x=y"}
    with pytest.raises(ValueError):
        parse_params(["novalue"])


def test_list_command(config_path, capsys):
    assert main(["--config", config_path, "--status", "mock", "list", "Cart."]) == 0
    assert capsys.readouterr().out.strip() == "Cart.getCart\tmock"


def test_call_mock_interface(config_path, capsys):
    assert main(["--config", config_path, "--status", "mock", "call", "Cart.getCart"]) == 0
    assert json.loads(capsys.readouterr().out) == {"items": ["a"]}


def test_call_mockerr_interface(config_path, capsys):
    assert main(["--config", config_path, "--status", "mockerr", "call", "Cart.getCart"]) == 0
    assert json.loads(capsys.readouterr().out) == {"error": "boom"}


def test_missing_cookie_fails(config_path, capsys):
    assert main(["--config", config_path, "call", "User.info"]) == 1
    assert "cookie" in capsys.readouterr().err


def test_missing_config_fails(tmp_path, capsys):
    assert main(["--config", str(tmp_path / "nope.json"), "list"]) == 1
    assert "error:" in capsys.readouterr().err
