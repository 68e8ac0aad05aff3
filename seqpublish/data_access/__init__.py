"""Data access repositories."""

from .registry_data_access import RegistryDataAccess, RunRegistry

__all__ = [
    'RegistryDataAccess',
    'RunRegistry',
]
