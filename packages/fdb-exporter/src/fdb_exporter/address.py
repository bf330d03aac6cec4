"""
Network address parsing for FoundationDB process and machine addresses.

FoundationDB reports addresses as "host:port" with an optional ":tls" suffix.
The host can be:
- IPv4: "10.0.0.1:4500"
- IPv6 in brackets: "[::1]:4500" or "[2001:db8::1]:4500"
- DNS hostname: "fdb-storage-1.fdb.svc.cluster.local:4501"

DNS names show up in Kubernetes deployments that put hostnames in the
cluster file.
"""

import ipaddress
import re
from dataclasses import dataclass
from typing import Any

TLS_SUFFIX = ":tls"

# One RFC 1123 label
_HOSTNAME_LABEL = re.compile(r"^(?!-)[A-Za-z0-9-]{1,63}(?<!-)$")


@dataclass(frozen=True)
class NetworkAddress:
    """
    Parsed process or machine address.

    Attributes:
        host: IP address or hostname, without IPv6 brackets
        port: TCP port, None for machine addresses that carry only a host
        tls: True when the address ended with ":tls"
        kind: "ipv4", "ipv6" or "dns"
    """

    host: str
    port: int | None
    tls: bool = False
    kind: str = "ipv4"

    @classmethod
    def parse(cls, text: str) -> "NetworkAddress":
        """
        Parse an address string.

        Args:
            text: Address as reported in the status document.

        Returns:
            NetworkAddress for the given text.

        Raises:
            ValueError: If the text is not host[:port][:tls].
        """
        if not text:
            raise ValueError("empty network address")

        tls = text.endswith(TLS_SUFFIX)
        rest = text[: -len(TLS_SUFFIX)] if tls else text

        if rest.startswith("["):
            closing = rest.find("]")
            if closing < 0:
                raise ValueError(f"unterminated IPv6 address in '{text}'")
            host = rest[1:closing]
            tail = rest[closing + 1 :]
            if tail and not tail.startswith(":"):
                raise ValueError(f"unexpected text after IPv6 address in '{text}'")
            port = _parse_port(tail[1:], text) if tail else None
            _require_ip(host, 6, text)
            return cls(host=host, port=port, tls=tls, kind="ipv6")

        if rest.count(":") > 1:
            # Bare IPv6 host without brackets (machine addresses)
            _require_ip(rest, 6, text)
            return cls(host=rest, port=None, tls=tls, kind="ipv6")

        host, sep, port_text = rest.partition(":")
        if not host:
            raise ValueError(f"empty hostname in '{text}'")
        port = _parse_port(port_text, text) if sep else None

        try:
            ip = ipaddress.ip_address(host)
        except ValueError:
            _require_hostname(host, text)
            return cls(host=host, port=port, tls=tls, kind="dns")
        return cls(host=host, port=port, tls=tls, kind=f"ipv{ip.version}")

    @classmethod
    def coerce(cls, value: Any) -> Any:
        """Pydantic validator: parse strings, pass parsed addresses through."""
        if value is None or isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ValueError(f"expected address string, got {type(value).__name__}")
        return cls.parse(value)

    @classmethod
    def coerce_endpoint(cls, value: Any) -> Any:
        """Like coerce, but the address must name a port (process addresses)."""
        address = cls.coerce(value)
        if address is not None and address.port is None:
            raise ValueError(f"missing port in network address '{value}'")
        return address

    def __str__(self) -> str:
        host = f"[{self.host}]" if self.kind == "ipv6" and self.port is not None else self.host
        text = host if self.port is None else f"{host}:{self.port}"
        return f"{text}{TLS_SUFFIX}" if self.tls else text


def _parse_port(port_text: str, original: str) -> int:
    if not port_text.isdigit():
        raise ValueError(f"invalid port in network address '{original}'")
    port = int(port_text)
    if port > 65535:
        raise ValueError(f"port out of range in network address '{original}'")
    return port


def _require_ip(host: str, version: int, original: str) -> None:
    try:
        ip = ipaddress.ip_address(host)
    except ValueError as e:
        raise ValueError(f"invalid IPv{version} address in '{original}'") from e
    if ip.version != version:
        raise ValueError(f"invalid IPv{version} address in '{original}'")


def _require_hostname(host: str, original: str) -> None:
    labels = host.rstrip(".").split(".")
    if len(host) > 253 or not all(_HOSTNAME_LABEL.match(label) for label in labels):
        raise ValueError(f"invalid hostname in '{original}'")
