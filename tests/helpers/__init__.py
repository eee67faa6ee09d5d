"""
Test helpers for Signaleur.
"""

from tests.helpers.fake_connection import FakeConnection
from tests.helpers.ws_client import join, recv_json, send_json, wait_until

__all__ = ["FakeConnection", "join", "recv_json", "send_json", "wait_until"]
