__all__ = ["BootConfiguration", "EduConnectContainer"]

from .educonnect import BootConfiguration, EduConnectContainer
