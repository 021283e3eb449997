"""Shared fakes for registry, transport and mock engine collaborators."""

import asyncio
import json

import pytest

from modelproxy.core.errors import ConfigurationError
from modelproxy.core.proxy_factory import ProxyFactory, set_default_factory
from modelproxy.mock.engines import register_engine, unregister_engine
from modelproxy.registry.profile import InterfaceProfile
from modelproxy.transport.client import TransportResponse


def make_profile(interface_id, status="prod", **overrides):
    fields = {
        "id": interface_id,
        "urls": {"prod": f"http://api.test/{interface_id}"},
        "status": status,
    }
    fields.update(overrides)
    return InterfaceProfile(**fields)


class FakeRegistry:
    def __init__(self, engine="fake"):
        self.profiles = {}
        self.rules = {}
        self.engine = engine
        self.rule_calls = []

    def add(self, profile, rule=None):
        self.profiles[profile.id] = profile
        if rule is not None:
            self.rules[profile.id] = rule
        return profile

    def get_profile(self, interface_id):
        return self.profiles.get(interface_id)

    def get_rule(self, interface_id):
        self.rule_calls.append(interface_id)
        if interface_id not in self.rules:
            raise ConfigurationError(f"The rule file is not existed. id = {interface_id}")
        return self.rules[interface_id]

    def get_engine(self):
        return self.engine

    def get_status(self):
        return "prod"

    def get_interface_ids(self):
        return list(self.profiles)

    def get_interface_ids_by_prefix(self, prefix):
        if not prefix:
            return []
        return [i for i in self.profiles if i.startswith(prefix)]

    def is_profile_existed(self, interface_id):
        return interface_id in self.profiles


class FakeTransport:
    """Routes requests by URL; records every request and start/finish order."""

    def __init__(self):
        self.routes = {}
        self.requests = []
        self.events = []

    def add(self, url, body=None, *, json_body=None, set_cookie=None, error=None, delay=0.0):
        if json_body is not None:
            body = json.dumps(json_body).encode("utf-8")
        self.routes[url] = {
            "body": body if body is not None else b"",
            "set_cookie": set_cookie,
            "error": error,
            "delay": delay,
        }

    async def send(self, request):
        self.requests.append(request)
        self.events.append(("start", request.url))
        route = self.routes[request.url]
        if route["delay"]:
            await asyncio.sleep(route["delay"])
        self.events.append(("end", request.url))
        if route["error"] is not None:
            raise route["error"]
        return TransportResponse(body=route["body"], set_cookie=route["set_cookie"])


class FakeEngine:
    def __init__(self):
        self.calls = []

    def generate(self, spec):
        self.calls.append(("generate", spec))
        return {"generated": spec}

    def spec_to_mock(self, rule):
        self.calls.append(("spec_to_mock", rule))
        return {"river": rule}


@pytest.fixture
def registry():
    return FakeRegistry()


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def factory(registry, transport):
    proxy_factory = ProxyFactory(registry, transport=transport)
    set_default_factory(proxy_factory)
    yield proxy_factory
    set_default_factory(None)


@pytest.fixture
def fake_engine():
    engine = FakeEngine()
    register_engine("fake", engine)
    yield engine
    unregister_engine("fake")
