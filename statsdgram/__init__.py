from .client import StatsClient
from .config import ClientConfig, load_config
from .errors import ClientClosedError, Error, GlobalClientError, InvalidConfigurationError
from .instance import clear_global_client, get_global_client, register_global_client
from .protocol import MetricType
from .version import __version__

StatsD = StatsClient

__all__ = [
    "ClientClosedError",
    "ClientConfig",
    "Error",
    "GlobalClientError",
    "InvalidConfigurationError",
    "MetricType",
    "StatsClient",
    "StatsD",
    "__version__",
    "clear_global_client",
    "get_global_client",
    "load_config",
    "register_global_client",
]
