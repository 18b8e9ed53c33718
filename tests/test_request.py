from __future__ import annotations

import re

from postageapp.config import Configuration, configure
from postageapp.request import Request, generate_uid

UID_RE = re.compile(r"^[0-9a-f]{40}$")

MESSAGE_ARGUMENTS = {
    "headers": {"from": "sender@test.test", "subject": "Test Message"},
    "recipients": "test@test.test",
    "content": {"text/plain": "text content", "text/html": "html content"},
}


def test_uid_is_stable_until_regenerated(config: Configuration) -> None:
    request = Request("test_method", config=config)

    uid = request.uid()

    assert UID_RE.match(uid)
    assert request.uid() == uid
    regenerated = request.uid(regenerate=True)
    assert UID_RE.match(regenerated)
    assert regenerated != uid
    assert request.uid() == regenerated


def test_uids_differ_between_requests(config: Configuration) -> None:
    uids = {Request("send_message", config=config).uid() for _ in range(50)}

    assert len(uids) == 50
    assert generate_uid("send_message") != generate_uid("send_message")


def test_url(config: Configuration) -> None:
    request = Request("test_method", config=config)

    assert request.endpoint_path() == "/v.1.1/test_method.json"
    assert request.url() == "https://api.postageapp.com/v.1.1/test_method.json"

    config.set("secure", False)
    config.set("host", "api.example.test")

    assert request.url() == "http://api.example.test/v.1.1/test_method.json"


def test_wire_arguments(config: Configuration) -> None:
    request = Request("send_message", MESSAGE_ARGUMENTS, config=config)

    args = request.to_wire_arguments()

    assert set(args) == {"api_key", "uid", "arguments"}
    assert args["api_key"] == "test-api-key"
    assert UID_RE.match(args["uid"])
    payload = args["arguments"]
    assert payload["headers"]["from"] == "sender@test.test"
    assert payload["headers"]["subject"] == "Test Message"
    assert payload["recipients"] == "test@test.test"
    assert payload["content"]["text/plain"] == "text content"
    assert payload["content"]["text/html"] == "html content"

    uid = request.uid()
    request.arguments = {"data": "content"}

    args = request.to_wire_arguments()

    assert args["api_key"] == "test-api-key"
    assert args["uid"] == uid
    assert args["arguments"] == {"data": "content"}


def test_uid_is_enforceable(config: Configuration) -> None:
    request = Request("test_method", config=config)

    assert UID_RE.match(request.to_wire_arguments()["uid"])

    request.set_uid("my_uid")

    assert request.to_wire_arguments()["uid"] == "my_uid"

    request = Request("test_method", {"uid": "new_uid", "data": "value"}, config=config)

    assert request.uid() == "new_uid"
    assert request.arguments == {"data": "value"}
    assert "uid" not in request.to_wire_arguments()["arguments"]


def test_api_key() -> None:
    configure(api_key="configured-key")

    assert Request("test_method").api_key == "configured-key"

    request = Request("test_method", {"api_key": "custom_api_key", "data": 1})

    assert request.api_key == "custom_api_key"
    assert request.to_wire_arguments() == {
        "api_key": "custom_api_key",
        "uid": request.uid(),
        "arguments": {"data": 1},
    }


def test_caller_arguments_are_copied(config: Configuration) -> None:
    arguments = {"uid": "abc", "api_key": "k", "data": "value"}

    Request("test_method", arguments, config=config)

    assert arguments == {"uid": "abc", "api_key": "k", "data": "value"}


def test_recipient_override_applies_to_send_message_only(config: Configuration) -> None:
    config.set("recipient_override", "qa@test.test")
    request = Request("send_message", {"recipients": "someone@test.test"}, config=config)

    assert request.to_wire_arguments()["arguments"]["recipient_override"] == "qa@test.test"
    assert "recipient_override" not in request.arguments
    assert "recipient_override" not in Request("get_project_info", config=config).to_wire_arguments()["arguments"]


def test_retryable_follows_configuration(config: Configuration) -> None:
    assert Request("send_message", config=config).retryable
    assert not Request("get_method_list", config=config).retryable

    config.set("retry_methods", "get_method_list")

    assert Request("get_method_list", config=config).retryable
    assert not Request("send_message", config=config).retryable
