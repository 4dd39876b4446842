"""
Tests for URL reachability checking with a mocked requests session.
"""

from unittest.mock import MagicMock

import pytest
import requests

from bookmark_agent.core.data_models import Bookmark, UrlStatus
from bookmark_agent.core.url_checker import URLChecker, status_patch


def response(status_code):
    mock_response = MagicMock()
    mock_response.status_code = status_code
    return mock_response


@pytest.fixture
def session():
    return MagicMock(spec=requests.Session)


class TestURLChecker:
    """Tests for URLChecker.check and check_all."""

    def test_success_and_redirect_are_valid(self, session):
        checker = URLChecker(session=session)
        session.head.return_value = response(200)
        assert checker.check("https://ok.example") == UrlStatus.VALID
        session.head.return_value = response(301)
        assert checker.check("https://moved.example") == UrlStatus.VALID

    def test_client_error_is_invalid(self, session):
        session.head.return_value = response(404)
        assert URLChecker(session=session).check("https://gone.example") == UrlStatus.INVALID

    def test_head_rejected_falls_back_to_get(self, session):
        session.head.return_value = response(405)
        session.get.return_value = response(200)

        status = URLChecker(session=session, timeout=3).check("https://nohead.example")

        assert status == UrlStatus.VALID
        session.get.assert_called_once_with(
            "https://nohead.example", timeout=3, allow_redirects=True, stream=True
        )

    def test_network_error_is_invalid(self, session):
        session.head.side_effect = requests.exceptions.ConnectionError("refused")
        assert URLChecker(session=session).check("https://down.example") == UrlStatus.INVALID

    def test_empty_url_is_valid(self, session):
        assert URLChecker(session=session).check("  ") == UrlStatus.VALID
        session.head.assert_not_called()

    def test_check_all_skips_ignored(self, session):
        session.head.return_value = response(500)
        bookmarks = [
            Bookmark(id="1", url="https://a.example"),
            Bookmark(id="2", url="https://b.example", url_status="ignored"),
            Bookmark(url="https://no-id.example"),
        ]

        results = URLChecker(session=session).check_all(bookmarks)

        assert results == {"1": UrlStatus.INVALID}

    def test_context_manager_closes_session(self, session):
        with URLChecker(session=session):
            pass
        session.close.assert_called_once()


def test_status_patch():
    assert status_patch(UrlStatus.INVALID) == {"urlStatus": "invalid", "unreachable": True}
    assert status_patch(UrlStatus.VALID) == {"urlStatus": "valid", "unreachable": False}
