"""Network interface byte counters from /proc/net/dev."""

from __future__ import annotations

from pathlib import Path

from procprobe.errors import ParseError
from procprobe.models import NetworkInterfaceSnapshot
from procprobe.procfs import parse_int, read_text

NET_DEV_FILE = "net/dev"

HEADER_LINES = 2
FIELD_COUNT = 16
RX_BYTES_FIELD = 0
TX_BYTES_FIELD = 8


def parse_net_dev(text: str, source: str = "/proc/net/dev") -> list[NetworkInterfaceSnapshot]:
    """
    Parse /proc/net/dev.

    Two header lines are followed by one `name: <16 counters>` line per
    interface. The first counter is received bytes, the ninth transmitted
    bytes.
    """
    lines = text.splitlines()
    if len(lines) < HEADER_LINES:
        raise ParseError(source, "header", "is not found")

    interfaces: list[NetworkInterfaceSnapshot] = []
    for line in lines[HEADER_LINES:]:
        if not line.strip():
            continue
        name, sep, counters = line.partition(":")
        name = name.strip()
        if not sep or not name:
            raise ParseError(source, name or line.strip(), "has no colon")
        fields = counters.split()
        if len(fields) < FIELD_COUNT:
            raise ParseError(source, name)
        interfaces.append(
            NetworkInterfaceSnapshot(
                name=name,
                rx_bytes=parse_int(fields[RX_BYTES_FIELD], source, name),
                tx_bytes=parse_int(fields[TX_BYTES_FIELD], source, name),
            )
        )
    return interfaces


def read_network_snapshots(proc_root: Path) -> list[NetworkInterfaceSnapshot]:
    path = proc_root / NET_DEV_FILE
    return parse_net_dev(read_text(path), str(path))
