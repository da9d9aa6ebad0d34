"""Fixtures for the client-side tests."""

import pytest
from fakes import FakeRequest


@pytest.fixture
def fake_request() -> FakeRequest:
    return FakeRequest()
