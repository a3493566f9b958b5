"""Register map of the supported meter."""

from .catalog import RegisterCatalog, PXR_REGISTERS

__all__ = ['RegisterCatalog', 'PXR_REGISTERS']
