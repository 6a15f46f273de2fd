__all__ = [
    "BootConfiguration",
    "di",
    "EduConnectContainer",
    "LoggingProvider",
    "Settings",
    "Secrets",
    "TimestampProvider",
]


from . import di
from .config import Secrets, Settings
from .container import BootConfiguration, EduConnectContainer
from .provider import LoggingProvider, TimestampProvider
