import logging

import pytest
import requests

from certificados.app import db
from certificados.errors import ConfigurationError, UpstreamError
from certificados.models import Settings
from certificados.services.crm_client import FluentCRMClient, FluentCRMConfig, load_crm_config

from conftest import FakeResponse, FakeSession

API = "https://crm.example.com/wp-json/fluent-crm/v2/"


def make_client(session):
    return FluentCRMClient(FluentCRMConfig(API, "user", "secret"), session=session)


def test_config_strips_trailing_slash():
    assert FluentCRMConfig(API, "u", "p").base_url.endswith("/v2")


def test_basic_auth_is_set_on_session():
    session = FakeSession()
    make_client(session)
    assert session.auth == ("user", "secret")


def test_subscriber_requests_custom_values():
    payload = {"subscriber": {"id": 7, "first_name": "Ana"}}
    session = FakeSession({"/subscribers/7": FakeResponse(200, payload)})
    assert make_client(session).subscriber(7) == {"id": 7, "first_name": "Ana"}
    call = session.calls[0]
    assert call["url"] == "https://crm.example.com/wp-json/fluent-crm/v2/subscribers/7"
    assert call["params"] == {"with[]": "subscriber.custom_values"}
    assert call["timeout"] == 30


def test_non_200_is_upstream_error(caplog):
    session = FakeSession({"/subscribers/7": FakeResponse(500, text="boom body")})
    with caplog.at_level(logging.WARNING, logger="gcp.crm"):
        with pytest.raises(UpstreamError) as excinfo:
            make_client(session).subscriber(7)
    assert excinfo.value.status_code == 502
    assert "boom body" in caplog.text
    assert "boom body" not in excinfo.value.message


def test_invalid_json_is_upstream_error():
    session = FakeSession({"/subscribers/7": FakeResponse(200, None, text="<html>")})
    with pytest.raises(UpstreamError):
        make_client(session).subscriber(7)


def test_missing_subscriber_is_upstream_error():
    session = FakeSession({"/subscribers/7": FakeResponse(200, {"message": "ok"})})
    with pytest.raises(UpstreamError):
        make_client(session).subscriber(7)


def test_transport_failure_is_upstream_error():
    session = FakeSession(error=requests.ConnectionError("refused"))
    with pytest.raises(UpstreamError) as excinfo:
        make_client(session).subscriber(7)
    assert excinfo.value.detail == "refused"


def test_custom_field_slugs_are_sanitized():
    payload = {"fields": [{"slug": "cedula"}, {"slug": "Nombre_Del_Curso"}, {"label": "x"}]}
    session = FakeSession({"/custom-fields/contacts": FakeResponse(200, payload)})
    assert make_client(session).custom_field_slugs() == ["cedula", "nombre_del_curso"]
    assert session.calls[0]["timeout"] == 20


def test_custom_field_slugs_require_fields_list():
    session = FakeSession({"/custom-fields/contacts": FakeResponse(200, {"fields": None})})
    with pytest.raises(UpstreamError):
        make_client(session).custom_field_slugs()


def test_iter_subscribers_walks_pages():
    pages = {
        1: {"subscribers": {"data": [{"id": 1}, {"id": 2}], "last_page": 2}},
        2: {"subscribers": {"data": [{"id": 3}], "last_page": 2}},
    }
    session = FakeSession({"/subscribers": lambda params: FakeResponse(200, pages[params["page"]])})
    ids = [record["id"] for record in make_client(session).iter_subscribers(per_page=2)]
    assert ids == [1, 2, 3]
    assert [call["params"]["page"] for call in session.calls] == [1, 2]


def test_iter_subscribers_rejects_bad_last_page():
    session = FakeSession(
        {"/subscribers": FakeResponse(200, {"subscribers": {"data": [{"id": 1}], "last_page": "many"}})}
    )
    records = make_client(session).iter_subscribers()
    assert next(records)["id"] == 1
    with pytest.raises(UpstreamError):
        next(records)


def test_load_config_prefers_settings_row(app):
    app.config["FLUENTCRM_API_URL"] = "https://env.example.com/v2"
    app.config["FLUENTCRM_API_USERNAME"] = "env-user"
    app.config["FLUENTCRM_API_PASSWORD"] = "env-pass"
    settings = Settings(id=1, crm_api_url="https://db.example.com/v2/", crm_api_username="db-user")
    settings.set_crm_pass("db-pass")
    db.session.add(settings)
    db.session.commit()
    config = load_crm_config()
    assert config.base_url == "https://db.example.com/v2"
    assert config.username == "db-user"
    assert config.password == "db-pass"


def test_load_config_falls_back_to_environment(app):
    app.config["FLUENTCRM_API_URL"] = "https://env.example.com/v2"
    app.config["FLUENTCRM_API_USERNAME"] = "env-user"
    app.config["FLUENTCRM_API_PASSWORD"] = "env-pass"
    config = load_crm_config()
    assert (config.base_url, config.username, config.password) == (
        "https://env.example.com/v2",
        "env-user",
        "env-pass",
    )


def test_load_config_incomplete_raises(app):
    app.config["FLUENTCRM_API_URL"] = "https://env.example.com/v2"
    with pytest.raises(ConfigurationError):
        load_crm_config()
