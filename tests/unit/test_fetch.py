"""
Unit tests for the website fetch boundary.
"""

from unittest.mock import MagicMock

import pytest
import requests

from prospect_profile.errors import FetchError, FetchErrorKind
from prospect_profile.sources.fetch import fetch_page


def make_session(body=b"<html><title>Acme</title></html>", headers=None, encoding="utf-8"):
    response = MagicMock()
    response.headers = headers if headers is not None else {"Content-Type": "text/html; charset=utf-8"}
    response.encoding = encoding
    response.iter_content.return_value = [body[i : i + 10] for i in range(0, len(body), 10)]
    session = MagicMock()
    session.get.return_value = response
    return session


class TestFetchPage:
    def test_returns_markup(self):
        session = make_session()

        html = fetch_page("acme.com", session=session, timeout=3)

        assert html == "<html><title>Acme</title></html>"
        url = session.get.call_args.args[0]
        assert url == "https://acme.com"
        assert session.get.call_args.kwargs["timeout"] == 3
        assert session.get.call_args.kwargs["stream"] is True

    def test_absolute_url_kept(self):
        session = make_session()
        fetch_page("http://acme.com/contact", session=session)
        assert session.get.call_args.args[0] == "http://acme.com/contact"

    def test_connection_error(self):
        session = MagicMock()
        session.get.side_effect = requests.exceptions.ConnectionError("refused")

        with pytest.raises(FetchError) as excinfo:
            fetch_page("acme.com", session=session)
        assert excinfo.value.kind is FetchErrorKind.UNREACHABLE

    def test_http_error_status(self):
        session = make_session()
        session.get.return_value.raise_for_status.side_effect = requests.exceptions.HTTPError("404")

        with pytest.raises(FetchError) as excinfo:
            fetch_page("acme.com", session=session)
        assert excinfo.value.kind is FetchErrorKind.UNREACHABLE
        session.get.return_value.close.assert_called_once()

    def test_non_html(self):
        session = make_session(headers={"Content-Type": "application/pdf"})

        with pytest.raises(FetchError) as excinfo:
            fetch_page("acme.com", session=session)
        assert excinfo.value.kind is FetchErrorKind.NON_HTML
        session.get.return_value.close.assert_called_once()

    def test_xhtml_accepted(self):
        session = make_session(headers={"Content-Type": "application/xhtml+xml"})
        assert "Acme" in fetch_page("acme.com", session=session)

    def test_declared_length_too_large(self):
        session = make_session(headers={"Content-Type": "text/html", "Content-Length": "5000"})

        with pytest.raises(FetchError) as excinfo:
            fetch_page("acme.com", session=session, max_bytes=1000)
        assert excinfo.value.kind is FetchErrorKind.TOO_LARGE

    def test_streamed_body_too_large(self):
        session = make_session(body=b"x" * 100)

        with pytest.raises(FetchError) as excinfo:
            fetch_page("acme.com", session=session, max_bytes=50)
        assert excinfo.value.kind is FetchErrorKind.TOO_LARGE

    def test_missing_encoding_defaults_to_utf8(self):
        session = make_session(body="Café".encode(), encoding=None)
        assert fetch_page("acme.com", session=session) == "Café"
