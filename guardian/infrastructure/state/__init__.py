from .host_store import HostRegistry

__all__ = ["HostRegistry"]
