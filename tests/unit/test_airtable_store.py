import pytest
import requests

from evquote.core.errors import NotFoundError, StoreError, UpstreamUnavailableError
from evquote.repositories.airtable import AirtableStore, RateLimitedError, build_formula, rate_limit_delay


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload if payload is not None else {}
        self.text = text

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeSession:
    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    def request(self, method, url, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def _store(responses, **kwargs):
    session = FakeSession(responses)
    store = AirtableStore(
        "patTEST",
        "appBASE",
        session=session,
        sleep=lambda s: None,
        table_names=["PROJECTS", "QUOTES"],
        **kwargs,
    )
    return store, session


def test_build_formula():
    assert build_formula() is None
    assert build_formula(where={"Quote ID": "EV-1-AAAAA"}) == "{Quote ID} = 'EV-1-AAAAA'"
    assert build_formula(where={"Name": "O'Neil"}) == "{Name} = 'O\\'Neil'"
    assert (
        build_formula(where={"Version": 2}, linked={"Project": "recP"})
        == "AND({Version} = 2, FIND('recP', ARRAYJOIN({Project})))"
    )


def test_list_follows_offset_pages():
    store, session = _store(
        [
            FakeResponse(payload={"records": [{"id": "rec1", "fields": {}}], "offset": "itr2"}),
            FakeResponse(payload={"records": [{"id": "rec2", "fields": {}}]}),
        ]
    )

    records = store.list("QUOTES", where={"Quote ID": "EV-1-AAAAA"}, sort=[("Version", "desc")])

    assert [r["id"] for r in records] == ["rec1", "rec2"]
    first, second = session.calls
    assert first["url"] == "https://api.airtable.com/v0/appBASE/QUOTES"
    assert first["params"]["filterByFormula"] == "{Quote ID} = 'EV-1-AAAAA'"
    assert first["params"]["sort[0][field]"] == "Version"
    assert first["params"]["sort[0][direction]"] == "desc"
    assert "offset" not in first["params"]
    assert second["params"]["offset"] == "itr2"
    assert first["headers"]["Authorization"] == "Bearer patTEST"


def test_table_names_are_url_quoted():
    store, session = _store([FakeResponse(payload={"id": "rec1", "fields": {}})])

    store.get("EV CHARGING SPECS", "rec1")

    assert session.calls[0]["url"].endswith("/appBASE/EV%20CHARGING%20SPECS/rec1")


def test_create_and_update_wrap_fields():
    store, session = _store(
        [
            FakeResponse(payload={"id": "rec1", "fields": {"Status": "draft"}}),
            FakeResponse(payload={"id": "rec1", "fields": {"Status": "sent"}}),
        ]
    )

    store.create("QUOTES", {"Status": "draft"})
    updated = store.update("QUOTES", "rec1", {"Status": "sent"})

    assert session.calls[0]["method"] == "POST"
    assert session.calls[0]["json"] == {"fields": {"Status": "draft"}}
    assert session.calls[1]["method"] == "PATCH"
    assert updated["fields"]["Status"] == "sent"


def test_missing_credentials_fail_before_any_request():
    session = FakeSession([])
    store = AirtableStore(None, "appBASE", session=session)

    with pytest.raises(UpstreamUnavailableError):
        store.get("PROJECTS", "rec1")
    assert session.calls == []


def test_auth_failure_names_base_and_tables():
    store, _ = _store([FakeResponse(status_code=401, text="AUTHENTICATION_REQUIRED")])

    with pytest.raises(UpstreamUnavailableError) as exc_info:
        store.get("PROJECTS", "rec1")

    assert "appBASE" in exc_info.value.message
    assert "PROJECTS, QUOTES" in exc_info.value.message


def test_not_found():
    store, _ = _store([FakeResponse(status_code=404)])

    with pytest.raises(NotFoundError):
        store.get("PROJECTS", "recMissing")


def test_rate_limit_is_retried():
    store, session = _store(
        [FakeResponse(status_code=429), FakeResponse(payload={"id": "rec1", "fields": {}})]
    )

    assert store.get("PROJECTS", "rec1")["id"] == "rec1"
    assert len(session.calls) == 2


def test_rate_limit_gives_up_after_retries():
    store, session = _store([FakeResponse(status_code=429)] * 3, rate_limit_retries=3)

    with pytest.raises(RateLimitedError):
        store.get("PROJECTS", "rec1")
    assert len(session.calls) == 3


def test_server_error_is_not_retried():
    store, session = _store([FakeResponse(status_code=503)])

    with pytest.raises(UpstreamUnavailableError):
        store.list("PROJECTS")
    assert len(session.calls) == 1


def test_connection_error_is_upstream_unavailable():
    store, _ = _store([requests.ConnectionError("refused")])

    with pytest.raises(UpstreamUnavailableError):
        store.list("PROJECTS")


def test_unprocessable_request_is_store_error():
    store, _ = _store([FakeResponse(status_code=422, payload={"error": {"type": "INVALID_FILTER"}})])

    with pytest.raises(StoreError) as exc_info:
        store.list("PROJECTS", where={"Nope": 1})
    assert exc_info.value.status_code == 502


def test_unparseable_success_body_is_store_error():
    store, _ = _store([FakeResponse(payload=ValueError("Expecting value"), text="<html>gateway</html>")])

    with pytest.raises(StoreError) as exc_info:
        store.get("PROJECTS", "rec1")
    assert "airtable_invalid_json" in exc_info.value.message


def test_rate_limit_delay_is_capped():
    for attempt in range(10):
        assert 0 < rate_limit_delay(attempt) <= 2.5
