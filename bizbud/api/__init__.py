"""Clients for external platform APIs"""

from .deploy_client import DeployPlatform, VercelClient

__all__ = ["DeployPlatform", "VercelClient"]
