"""Service port derivation for workloads."""
from __future__ import annotations

from typing import List

from .constants import DEFAULT_PROTOCOL, PRIMARY_PORT_NAME
from .models import MultiContainerSource, WorkloadConfig, container_source
from .types import ServicePort


def derive_service_ports(config: WorkloadConfig) -> List[ServicePort]:
    """
    Compute the ports exposed by a workload's Service.

    The primary ``http`` port maps ``port`` to ``targetPort``. Every container
    whose own port is set and differs from ``targetPort`` gets an extra entry
    named after the container (or its index when unnamed).

    Args:
        config: Deployment or DaemonSet configuration

    Returns:
        Service port entries in output order
    """
    source = container_source(config)
    if not isinstance(source, MultiContainerSource):
        return [
            ServicePort(port=config.port, targetPort=config.target_port, protocol=DEFAULT_PROTOCOL)
        ]

    ports: List[ServicePort] = [
        ServicePort(
            port=config.port,
            targetPort=config.target_port,
            protocol=DEFAULT_PROTOCOL,
            name=PRIMARY_PORT_NAME,
        )
    ]
    for index, container in enumerate(source.containers):
        if container.port and container.port != config.target_port:
            port_name = container.name or f"container-{index}"
            ports.append(
                ServicePort(
                    port=container.port,
                    targetPort=container.port,
                    protocol=DEFAULT_PROTOCOL,
                    name=f"{port_name}-port",
                )
            )
    return ports
