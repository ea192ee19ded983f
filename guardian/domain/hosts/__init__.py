from .service import HostService, authorize_key_commands

__all__ = ["HostService", "authorize_key_commands"]
