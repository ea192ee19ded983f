from .service import DeployService

__all__ = ["DeployService"]
