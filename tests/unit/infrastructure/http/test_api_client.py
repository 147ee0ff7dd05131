import json
import logging
from unittest.mock import MagicMock

import pytest
import requests

from bookstore_api.domain.interfaces.reporting import ExchangeReporter
from bookstore_api.domain.models.resources import Book
from bookstore_api.infrastructure.config.settings import Configuration, ConfigurationError
from bookstore_api.infrastructure.http.api_client import USER_AGENT, ApiClient, RequestBuilder
from bookstore_api.infrastructure.http.request_logging import log_exchange

from conftest import FAKE_BASE_URL, FakeBookstoreAdapter


def test_template_carries_base_path_and_default_headers(api_client):
    template = api_client.template

    assert template.base_uri == f"{FAKE_BASE_URL}/api/v1"
    assert template.headers["User-Agent"] == USER_AGENT
    assert template.headers["Content-Type"] == "application/json"
    assert template.headers["Accept"] == "application/json"
    assert template.content_type == "application/json"
    assert template.accept == "application/json"


def test_timeouts_come_from_configuration(api_client, fake_bookstore):
    """connection.timeout is the connect timeout, timeout the read timeout."""
    assert api_client.template.timeout == (2.0, 5.0)

    api_client.get_request_spec().get("/Books")

    assert fake_bookstore.timeouts[-1] == (2.0, 5.0)


def test_template_headers_are_read_only(api_client):
    with pytest.raises(TypeError):
        api_client.template.headers["X-Extra"] = "1"


def test_each_request_spec_is_independent(api_client, fake_bookstore):
    """Headers set on one builder never leak into the next."""
    first = api_client.get_request_spec().header("X-Trace", "abc")
    second = api_client.get_request_spec()

    assert isinstance(first, RequestBuilder)
    assert first is not second
    assert "X-Trace" not in second.headers

    first.get("/Books")
    second.get("/Books")

    assert fake_bookstore.sent[0].headers["X-Trace"] == "abc"
    assert "X-Trace" not in fake_bookstore.sent[1].headers


def test_default_headers_are_sent(api_client, fake_bookstore):
    api_client.get_request_spec().get("/Books")

    sent = fake_bookstore.last_request
    assert sent.headers["User-Agent"] == USER_AGENT
    assert sent.headers["Accept"] == "application/json"


def test_bearer_token_sets_authorization_header(api_client, fake_bookstore):
    api_client.get_request_spec().bearer_token("s3cret").get("/Books")

    assert fake_bookstore.last_request.headers["Authorization"] == "Bearer s3cret"


def test_path_params_are_expanded_and_quoted(api_client, fake_bookstore):
    api_client.get_request_spec().path_param("id", "a b/c").get("/Books/{id}")

    assert fake_bookstore.last_request.url == f"{FAKE_BASE_URL}/api/v1/Books/a%20b%2Fc"


def test_missing_path_param_is_rejected(api_client):
    with pytest.raises(ValueError, match="Missing path parameter"):
        api_client.get_request_spec().get("/Books/{id}")


def test_query_params_are_encoded(api_client, fake_bookstore):
    api_client.get_request_spec().query_param("page", 2).get("/Books")

    assert fake_bookstore.last_request.url.endswith("/Books?page=2")


def test_without_header_drops_a_template_default(api_client, fake_bookstore):
    builder = api_client.get_request_spec().without_header("Content-Type")

    response = builder.body(Book.minimal()).post("/Books")

    assert "Content-Type" not in builder.headers
    assert "Content-Type" not in fake_bookstore.last_request.headers
    assert response.status_code == 415
    assert "Content-Type" in api_client.get_request_spec().headers


def test_resource_body_is_serialized_with_wire_names(api_client, fake_bookstore):
    book = Book(id=7, title="T", page_count=12, publish_date="2020-01-01T00:00:00")

    response = api_client.get_request_spec().body(book).post("/Books")

    sent = json.loads(fake_bookstore.last_request.body)
    assert sent["pageCount"] == 12
    assert sent["publishDate"] == "2020-01-01T00:00:00"
    assert sent["description"] is None
    assert response.request.json() == sent


def test_raw_body_and_content_type_override(api_client):
    response = (
        api_client.get_request_spec()
        .content_type("text/plain")
        .raw_body("not json")
        .post("/Books")
    )

    assert response.status_code == 415
    assert response.request.body == b"not json"


def test_malformed_json_is_sent_verbatim(api_client):
    response = api_client.get_request_spec().raw_body('{"title": ').post("/Books")

    assert response.status_code == 400


def test_response_is_captured(api_client, fake_bookstore):
    fake_bookstore.seed("Books", {"id": 3, "title": "Three"})

    response = api_client.get_request_spec().path_param("id", 3).get("/Books/{id}")

    assert response.status_code == 200
    assert response.is_success
    assert response.is_json()
    assert response.json()["title"] == "Three"
    assert response.elapsed_ms >= 0
    assert response.request.method == "GET"
    assert response.request.url.endswith("/Books/3")


def test_transport_failure_propagates_without_retry(api_client, fake_bookstore):
    fake_bookstore.raise_on_send = requests.ConnectionError("connection refused")

    with pytest.raises(requests.ConnectionError):
        api_client.get_request_spec().get("/Books")

    assert len(fake_bookstore.sent) == 1


def test_timeout_propagates(api_client, fake_bookstore):
    fake_bookstore.raise_on_send = requests.Timeout("read timed out")

    with pytest.raises(requests.Timeout):
        api_client.get_request_spec().get("/Books")


def test_reporters_receive_every_exchange(test_config, fake_bookstore):
    reporter = MagicMock(spec=ExchangeReporter)
    client = ApiClient(test_config, reporters=[reporter], adapters={FAKE_BASE_URL: fake_bookstore})

    first = client.get_request_spec().get("/Books")
    second = client.get_request_spec().path_param("id", 1).get("/Books/{id}")
    client.close()

    assert reporter.record_exchange.call_count == 2
    assert reporter.record_exchange.call_args_list[0].args[0] is first
    assert reporter.record_exchange.call_args_list[1].args[0] is second


@pytest.mark.parametrize("key", ["base.url", "api.version"])
def test_blank_required_setting_is_fatal(key):
    config = Configuration.from_mapping({key: "  "})

    with pytest.raises(ConfigurationError, match=key):
        ApiClient(config)


def test_reset_is_idempotent(api_client, fake_bookstore):
    before = api_client.template

    first = api_client.reset()
    second = api_client.reset()

    assert first == before
    assert second == before
    assert api_client.get_request_spec().get("/Books").status_code == 200


def test_reset_discards_the_old_session(api_client, mocker):
    old_session = api_client._session
    close = mocker.spy(old_session, "close")

    api_client.reset()

    close.assert_called_once()
    assert api_client._session is not old_session


def test_initialize_closes_the_previous_session(api_client, fake_bookstore, mocker):
    old_session = api_client._session
    close = mocker.spy(old_session, "close")

    api_client.initialize()
    api_client.initialize()

    close.assert_called_once()
    assert api_client._session is not old_session
    assert api_client.get_request_spec().get("/Books").status_code == 200
    assert fake_bookstore.last_request.path_url == "/api/v1/Books"


def test_closed_client_refuses_new_requests(api_client):
    api_client.close()

    with pytest.raises(RuntimeError, match="not initialized"):
        api_client.get_request_spec()


def test_context_manager_closes_client(test_config, fake_bookstore):
    with ApiClient(test_config, adapters={FAKE_BASE_URL: fake_bookstore}) as client:
        client.get_request_spec().get("/Books")

    with pytest.raises(RuntimeError):
        client.get_request_spec()


def test_request_logging_hook_follows_setting(make_client, test_config):
    quiet, _ = make_client()
    verbose_config = Configuration.from_mapping({**test_config.as_dict(), "log.requests": True})
    verbose, _ = make_client(verbose_config)

    assert quiet.template.response_hooks == ()
    assert verbose.template.response_hooks == (log_exchange,)


def test_request_logging_masks_credentials(make_client, test_config, caplog):
    config = Configuration.from_mapping({**test_config.as_dict(), "log.requests": True})
    client, _ = make_client(config)

    with caplog.at_level(logging.INFO, logger="bookstore_api.http"):
        client.get_request_spec().bearer_token("s3cret").get("/Books")

    assert "Request method: GET" in caplog.text
    assert "Authorization=****" in caplog.text
    assert "s3cret" not in caplog.text
    assert "Response:       200" in caplog.text


def test_custom_adapter_is_used_instead_of_network(test_config):
    adapter = FakeBookstoreAdapter(api_prefix="/api/v1")
    with ApiClient(test_config, adapters={FAKE_BASE_URL: adapter}) as client:
        client.get_request_spec().get("/Authors")

    assert len(adapter.sent) == 1
