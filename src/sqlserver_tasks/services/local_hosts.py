"""Decides whether a configured database host counts as local."""

import ipaddress
import socket
from typing import Optional

from sqlserver_tasks.constants import LOCAL_HOSTS, LOCAL_NETWORKS
from sqlserver_tasks.errors import TasksError
from sqlserver_tasks.errors_catalog import actionable_error

PRIVATE_NETWORKS = tuple(ipaddress.ip_network(network) for network in LOCAL_NETWORKS)


def is_local_host(config) -> bool:
    return not config.host or config.host in LOCAL_HOSTS


def configuration_host_ip(config) -> Optional[str]:
    if not config.host:
        return None

    try:
        addresses = socket.getaddrinfo(config.host, None, socket.AF_INET)
    except socket.gaierror as exc:
        raise TasksError(actionable_error("host_unresolvable", host=config.host)) from exc

    return addresses[0][4][0]


def local_ipaddr(host_ip: Optional[str]) -> bool:
    if not host_ip:
        return False

    address = ipaddress.ip_address(host_ip)
    return any(address in network for network in PRIVATE_NETWORKS)


def is_private_host(config) -> bool:
    return local_ipaddr(configuration_host_ip(config))
