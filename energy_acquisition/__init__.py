"""Three-phase power meter acquisition engine - Main Package"""

__version__ = '1.0.0'
__description__ = 'Modbus TCP/RTU polling of three-phase power meters'

# Core patterns - most fundamental
from .core import ConnectionStateMachine, ConnectionState, AcquisitionError

# Models - domain objects
from .models import Encoding, ByteOrderMode, RegisterDescriptor, Measurement

# Register map
from .registers import RegisterCatalog

# Protocols
from .protocols import FrameCodec, TransportFactory

# Services
from .services import ConnectionManager, MeterReader, MockGenerator

# Orchestration
from .orchestration import AcquisitionScheduler, AcquisitionEngine

__all__ = [
    # Core
    'ConnectionStateMachine',
    'ConnectionState',
    'AcquisitionError',

    # Models
    'Encoding',
    'ByteOrderMode',
    'RegisterDescriptor',
    'Measurement',

    # Services
    'RegisterCatalog',
    'ConnectionManager',
    'MeterReader',
    'MockGenerator',
    'AcquisitionScheduler',
    'AcquisitionEngine',

    # Factories
    'FrameCodec',
    'TransportFactory'
]
