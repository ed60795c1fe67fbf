"""Pytest fixtures and configuration for test suite

This module provides:
1. A fake Prowl server wired into httpx.MockTransport
2. A factory for ProwlClient instances talking to the fake server

Valid keys and XML envelope factories live in tests.mocks.
"""
import logging

import httpx
import pytest

from prowl_notify.client import ProwlClient
from prowl_notify.constants import PROWL_BASE_URL
from prowl_notify.models import ClientConfig
from tests.mocks import ProwlMockServer


@pytest.fixture
def mock_server():
    """Fake Prowl server answering success with remaining=992."""
    return ProwlMockServer()


@pytest.fixture
def http_client(mock_server):
    """httpx AsyncClient routed to the fake Prowl server."""
    return httpx.AsyncClient(transport=mock_server.transport())


@pytest.fixture
def sink_logger():
    """Logger passed to clients as the log() sink."""
    logger = logging.getLogger("tests.prowl.sink")
    logger.setLevel(logging.INFO)
    return logger


@pytest.fixture
def make_client(http_client, sink_logger):
    """
    Factory for clients talking to the fake Prowl server.

    Usage:
        client = make_client(api_keys=[API_KEY], application="X")
    """
    def _make(log_timeout=None, **config):
        config.setdefault("logger", sink_logger)
        return ProwlClient(
            ClientConfig(**config),
            base_url=PROWL_BASE_URL,
            http_client=http_client,
            log_timeout=log_timeout,
        )

    return _make
