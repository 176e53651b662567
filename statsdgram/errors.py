"""
statsdgram - exception classes

Copyright (c) 2024 Aiven, Helsinki, Finland. https://aiven.io/
See LICENSE for details
"""


class Error(Exception):
    """Generic statsdgram exception"""


class InvalidConfigurationError(Error):
    """Invalid configuration"""


class ClientClosedError(Error):
    """Metric was submitted to a client that has already been closed"""


class GlobalClientError(Error):
    """Process wide client is already registered, or missing"""
