"""Shared fixtures for the rememberthemilk tests."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import requests

from rememberthemilk.client import RTMClient


@pytest.fixture
def mock_session():
    """Return a mock Session whose .request() can be configured per test."""
    return MagicMock(spec=requests.Session)


@pytest.fixture
def client(mock_session):
    """Client with no user token."""
    return RTMClient("key", "secret", session=mock_session)


@pytest.fixture
def authed_client(mock_session):
    """Client restored with a token of unknown permission level."""
    return RTMClient("key", "secret", session=mock_session, token="tok")
