from dataclasses import dataclass
from typing import Any, Dict, Optional

import pytest

from typed_http.clients.errors import (
    DecodingError,
    ErrorKind,
    HTTPStatusError,
    InvalidResponseError,
    InvalidURLError,
    NoDataError,
    RequestError,
)
from typed_http.clients.http import TypedHttpClient, build_request, parse_url
from typed_http.clients.types import HttpMethod, HttpService, ResponseEnvelope, TransportError

from tests.fakes import FakeTransport, SpyDecoder, respond


@dataclass
class User:
    id: int
    name: str


class TestParseUrl:
    @pytest.mark.parametrize(
        "url",
        [
            "",
            "not a url",
            "/users/1",
            "api.example.com/users",
            "ftp://example.com/file",
            "https://",
            "http://exa mple.com",
            "https://example.com:notaport/",
            "http://[::1",
        ],
    )
    def test_rejects_malformed(self, url):
        with pytest.raises(InvalidURLError) as exc:
            parse_url(url)
        assert exc.value.kind is ErrorKind.INVALID_URL

    @pytest.mark.parametrize(
        "url",
        [
            "https://api.example.com/users/1",
            "http://localhost:8080/health?verbose=1",
            "HTTPS://Example.com",
        ],
    )
    def test_accepts_absolute_http_urls(self, url):
        assert parse_url(url) == url

    def test_malformed_url_sends_nothing(self, client, transport):
        with pytest.raises(InvalidURLError):
            client.request("not a url")
        assert transport.calls == []


class TestBuildRequest:
    def test_defaults_to_get(self):
        spec = build_request("https://api.example.com/users/1")
        assert spec.method is HttpMethod.GET
        assert spec.body is None
        assert dict(spec.headers) == {}

    def test_method_accepts_lowercase_name(self):
        assert build_request("https://api.example.com", "patch").method is HttpMethod.PATCH

    def test_unknown_method_rejected(self):
        with pytest.raises(ValueError):
            build_request("https://api.example.com", "TRACE")

    @pytest.mark.parametrize("method", ["POST", "PUT", "PATCH"])
    def test_body_methods_get_default_content_type(self, method):
        spec = build_request("https://api.example.com/users", method, body=b'{"name":"Grace"}')
        assert spec.body == b'{"name":"Grace"}'
        assert spec.headers["Content-Type"] == "application/json"
        assert [k for k in spec.headers if k.lower() == "content-type"] == ["Content-Type"]

    @pytest.mark.parametrize("method", ["POST", "PUT", "PATCH"])
    def test_explicit_content_type_kept(self, method):
        spec = build_request(
            "https://api.example.com/users",
            method,
            headers={"content-type": "text/plain"},
            body=b"hello",
        )
        assert spec.headers["Content-Type"] == "text/plain"
        assert len([k for k in spec.headers if k.lower() == "content-type"]) == 1

    @pytest.mark.parametrize("method", ["GET", "DELETE"])
    def test_body_dropped_for_get_and_delete(self, method):
        spec = build_request("https://api.example.com/users/1", method, body=b'{"x":1}')
        assert spec.body is None
        assert "Content-Type" not in spec.headers

    def test_caller_headers_override_defaults(self):
        spec = build_request(
            "https://api.example.com",
            headers={"accept": "text/csv", "X-Trace": "abc"},
            default_headers={"Accept": "application/json", "User-Agent": "typed-http"},
        )
        assert spec.headers["Accept"] == "text/csv"
        assert spec.headers["User-Agent"] == "typed-http"
        assert spec.headers["X-Trace"] == "abc"


class TestRequest:
    def test_decodes_user(self, client, transport):
        respond(transport, 200, b'{"id":1,"name":"Ada"}')
        user = client.request("https://api.example.com/users/1", headers={}, target=User)
        assert user == User(id=1, name="Ada")
        assert transport.calls[0].method is HttpMethod.GET

    def test_untyped_result_equals_parsed_json(self, client, transport):
        respond(transport, 200, b'{"id":1,"name":"Ada","tags":["x",null]}')
        assert client.request("https://api.example.com/users/1") == {
            "id": 1,
            "name": "Ada",
            "tags": ["x", None],
        }

    def test_dict_target(self, client, transport):
        respond(transport, 200, b'{"a":1,"b":2}')
        assert client.request("https://api.example.com", target=Dict[str, int]) == {"a": 1, "b": 2}

    @pytest.mark.parametrize("status", [199, 300, 304, 404, 500])
    def test_non_2xx_is_http_error(self, transport, status):
        respond(transport, status, b'{"id":1,"name":"Ada"}')
        decoder = SpyDecoder()
        client = TypedHttpClient(transport=transport, decoder=decoder)
        with pytest.raises(HTTPStatusError) as exc:
            client.request("https://api.example.com/users/1")
        assert exc.value.status_code == status
        assert exc.value.kind is ErrorKind.HTTP_ERROR
        assert decoder.calls == []

    def test_service_unavailable(self, client, transport):
        respond(transport, 503, b'"service unavailable"')
        with pytest.raises(HTTPStatusError) as exc:
            client.request("https://api.example.com/users/1")
        assert exc.value.status_code == 503
        assert exc.value.body == b'"service unavailable"'

    @pytest.mark.parametrize("status", [200, 201, 204, 299])
    def test_2xx_range_is_success(self, client, transport, status):
        respond(transport, status, b"[1, 2]")
        assert client.request("https://api.example.com") == [1, 2]

    def test_empty_body_fails_to_decode(self, client, transport):
        respond(transport, 200, b"")
        with pytest.raises(DecodingError) as exc:
            client.request("https://api.example.com/users/1", target=User)
        assert exc.value.kind is ErrorKind.DECODING_ERROR
        assert exc.value.inner is not None

    def test_missing_body_is_no_data(self, client, transport):
        transport.response = ResponseEnvelope(status=200, body=None)
        with pytest.raises(NoDataError):
            client.request("https://api.example.com/users/1")

    def test_malformed_json_is_decoding_error(self, client, transport):
        respond(transport, 200, b"{not json")
        with pytest.raises(DecodingError):
            client.request("https://api.example.com/users/1")

    def test_shape_mismatch_is_decoding_error(self, client, transport):
        respond(transport, 200, b'{"id":"one","name":"Ada"}')
        with pytest.raises(DecodingError):
            client.request("https://api.example.com/users/1", target=User)

    def test_numeric_string_not_coerced(self, client, transport):
        respond(transport, 200, b'{"id":"1","name":"Ada"}')
        with pytest.raises(DecodingError):
            client.request("https://api.example.com/users/1", target=User)

    def test_transport_failure_is_request_error(self, client, transport):
        cause = ConnectionRefusedError("connection refused")
        transport.error = TransportError(cause)
        with pytest.raises(RequestError) as exc:
            client.request("https://api.example.com/users/1")
        assert exc.value.inner is cause
        assert exc.value.kind is ErrorKind.REQUEST_ERROR

    @pytest.mark.parametrize(
        "response",
        [
            None,
            {"status": 200, "body": b"{}"},
            ResponseEnvelope(status="200", body=b"{}"),
            ResponseEnvelope(status=True, body=b"{}"),
            ResponseEnvelope(status=42, body=b"{}"),
        ],
    )
    def test_unclassifiable_response(self, client, transport, response):
        transport.response = response
        with pytest.raises(InvalidResponseError):
            client.request("https://api.example.com")

    def test_per_call_decoder_wins(self, client, transport):
        respond(transport, 200, b"anything")
        decoder = SpyDecoder(value="decoded")
        assert client.request("https://api.example.com", target=str, decoder=decoder) == "decoded"
        assert decoder.calls == [(b"anything", str)]

    def test_decoder_exception_wrapped(self, transport):
        class Exploding:
            def decode(self, data, target=None):
                raise KeyError("boom")

        respond(transport, 200, b"{}")
        client = TypedHttpClient(transport=transport, decoder=Exploding())
        with pytest.raises(DecodingError) as exc:
            client.request("https://api.example.com")
        assert isinstance(exc.value.inner, KeyError)
        assert exc.value.__cause__ is exc.value.inner

    def test_json_body_is_serialized(self, client, transport):
        respond(transport, 201, b'{"id":2,"name":"Grace"}')
        client.request("https://api.example.com/users", "POST", json_body={"name": "Grace"})
        spec = transport.calls[0]
        assert spec.body == b'{"name": "Grace"}'
        assert spec.headers["Content-Type"] == "application/json"

    def test_json_body_none_sends_null(self, client, transport):
        client.request("https://api.example.com/settings", "PUT", json_body=None)
        spec = transport.calls[0]
        assert spec.body == b"null"
        assert spec.headers["Content-Type"] == "application/json"

    def test_no_body_by_default(self, client, transport):
        client.request("https://api.example.com/settings", "PUT")
        assert transport.calls[0].body is None

    def test_str_body_is_utf8(self, client, transport):
        client.request("https://api.example.com/users", "PUT", body="café")
        assert transport.calls[0].body == "café".encode("utf-8")

    def test_body_and_json_body_conflict(self, client, transport):
        with pytest.raises(ValueError):
            client.request("https://api.example.com", "POST", body=b"{}", json_body={})
        assert transport.calls == []

    def test_exactly_one_call_per_request(self, client, transport):
        respond(transport, 500)
        with pytest.raises(HTTPStatusError):
            client.request("https://api.example.com")
        assert len(transport.calls) == 1


class TestRequestOptional:
    def test_created_with_empty_body(self, client, transport):
        respond(transport, 201, b"")
        result = client.request_optional(
            "https://api.example.com/users", HttpMethod.POST, body=b'{"name":"Grace"}', target=User
        )
        assert result is None
        assert transport.calls[0].body == b'{"name":"Grace"}'

    def test_missing_body_is_absent(self, client, transport):
        transport.response = ResponseEnvelope(status=204, body=None)
        assert client.request_optional("https://api.example.com/users/1") is None

    def test_body_still_decoded(self, client, transport):
        respond(transport, 200, b'{"id":1,"name":"Ada"}')
        result: Optional[User] = client.request_optional("https://api.example.com/users/1", target=User)
        assert result == User(id=1, name="Ada")

    def test_errors_still_raised(self, client, transport):
        respond(transport, 404, b"")
        with pytest.raises(HTTPStatusError):
            client.request_optional("https://api.example.com/users/9")


class TestClientSetup:
    def test_default_headers_sent(self, transport):
        client = TypedHttpClient(transport=transport, default_headers={"User-Agent": "typed-http/0.1"})
        client.request("https://api.example.com")
        assert transport.calls[0].headers["user-agent"] == "typed-http/0.1"

    def test_satisfies_http_service(self, client):
        assert isinstance(client, HttpService)

    def test_service_double_can_stand_in(self):
        class CannedService:
            def request(self, url, method="GET", headers=None, body=None, **kwargs):
                return {"id": 1, "name": "Ada"}

            def request_optional(self, url, method="GET", headers=None, body=None, **kwargs):
                return None

            async def arequest(self, url, method="GET", headers=None, body=None, **kwargs):
                return self.request(url)

            async def arequest_optional(self, url, method="GET", headers=None, body=None, **kwargs):
                return None

        def load_user_name(service: HttpService) -> str:
            return service.request("https://api.example.com/users/1")["name"]

        service = CannedService()
        assert isinstance(service, HttpService)
        assert load_user_name(service) == "Ada"

    def test_close_closes_transport(self):
        class Closable(FakeTransport):
            closed = False

            def close(self):
                self.closed = True

        transport = Closable(ResponseEnvelope(status=200, body=b"{}"))
        with TypedHttpClient(transport=transport) as client:
            client.request("https://api.example.com")
        assert transport.closed

    def test_injected_logger_receives_diagnostics(self, transport, caplog):
        import logging

        respond(transport, 500, b"oops")
        client = TypedHttpClient(transport=transport, logger=logging.getLogger("custom"))
        with caplog.at_level(logging.ERROR, logger="custom"):
            with pytest.raises(HTTPStatusError):
                client.request("https://api.example.com")
        assert any(r.name == "custom" and "500" in r.getMessage() for r in caplog.records)


class TestDescribe:
    @pytest.mark.parametrize(
        "error, expected",
        [
            (InvalidURLError("x"), "The URL is invalid."),
            (InvalidResponseError(None), "The server returned an invalid response."),
            (HTTPStatusError(418), "The server responded with HTTP status 418."),
            (DecodingError(ValueError("bad")), "The response could not be decoded."),
            (NoDataError(), "The server returned no data."),
        ],
    )
    def test_messages(self, error, expected):
        assert error.describe() == expected

    def test_all_kinds_covered(self):
        kinds = {
            InvalidURLError.kind,
            InvalidResponseError.kind,
            HTTPStatusError.kind,
            DecodingError.kind,
            NoDataError.kind,
            RequestError.kind,
        }
        assert kinds == set(ErrorKind)


def test_any_target_returns_parsed(client, transport):
    respond(transport, 200, b'{"nested":{"x":[1,2.5,true]}}')
    assert client.request("https://api.example.com", target=Any) == {"nested": {"x": [1, 2.5, True]}}
