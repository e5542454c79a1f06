"""
routingdb - Provision a PostGIS/pgRouting database from an OpenStreetMap extract
"""

__version__ = "0.1.0"

from .core import Provisioner
from .errors import ProvisionError

__all__ = ["Provisioner", "ProvisionError"]
