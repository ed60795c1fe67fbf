"""
Mock Factories Package

Provides valid keys, Prowl XML envelopes and a fake Prowl server for
httpx.MockTransport.
"""
from tests.mocks.xml_mocks import (
    API_KEY,
    APPROVE_URL,
    NEW_API_KEY,
    OTHER_API_KEY,
    PROVIDER_KEY,
    TOKEN,
    ProwlMockServer,
    create_error_xml,
    create_success_xml,
)

__all__ = [
    # Keys
    "API_KEY",
    "OTHER_API_KEY",
    "PROVIDER_KEY",
    "TOKEN",
    "NEW_API_KEY",
    "APPROVE_URL",
    # Server and envelopes
    "ProwlMockServer",
    "create_error_xml",
    "create_success_xml",
]
