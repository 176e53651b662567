"""
statsdgram - process wide client handle

A host application that wants one shared client registers it once at
startup, either explicitly or by constructing it with globalize=True, and
other code fetches it with get_global_client().

Copyright (c) 2024 Aiven, Helsinki, Finland. https://aiven.io/
See LICENSE for details
"""
import logging
import threading

from statsdgram.errors import GlobalClientError

LOG = logging.getLogger(__name__)

_lock = threading.Lock()
_global_client = None


def register_global_client(client, *, replace=False):
    global _global_client  # pylint: disable=global-statement
    with _lock:
        if _global_client is not None and _global_client is not client and not replace:
            raise GlobalClientError("A global statsd client is already registered")
        _global_client = client
    LOG.debug("Registered global statsd client %r", client)
    return client


def get_global_client():
    with _lock:
        client = _global_client
    if client is None:
        raise GlobalClientError("No global statsd client has been registered")
    return client


def clear_global_client():
    global _global_client  # pylint: disable=global-statement
    with _lock:
        client, _global_client = _global_client, None
    return client
