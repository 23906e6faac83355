"""Docker integration for host name substitution."""

from collectd_proxy.docker.names import DockerNameRefresher

__all__ = ["DockerNameRefresher"]
