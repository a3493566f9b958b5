import logging

from energy_acquisition.protocols.base_transport import BaseTransport, TransportConfig, TransportType
from energy_acquisition.protocols.modbus_transport import ModbusRtuTransport, ModbusTcpTransport


class TransportFactory:

    _registry = {
        TransportType.TCP : ModbusTcpTransport,
        TransportType.RTU : ModbusRtuTransport,
    }

    @classmethod
    def register(cls, transport_type, transport_class):
        """Register an additional transport implementation."""
        cls._registry[transport_type] = transport_class

    @classmethod
    def create(cls, config: TransportConfig) -> BaseTransport:
        """
        Create a transport.

        Args:
            config (TransportConfig): transport type and connection parameters

        Returns:
            BaseTransport: unopened transport instance
        """
        logging.getLogger(cls.__name__).debug(
            "creating %s transport with %s", config.transport_type.value, config.connection_params
        )

        handler = cls._registry.get(config.transport_type)
        if not handler:
            raise ValueError(f"No handler registered for transport: {config.transport_type}")

        return handler(config)
