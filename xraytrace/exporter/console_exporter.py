"""Console exporter for developer visibility."""

from __future__ import annotations

import sys
from typing import Any

from xraytrace.exporter.udp_exporter import encode_packet


class ConsoleExporter:
    """Writes the framed daemon packet to stdout (or provided stream)."""

    def __init__(self, stream=None) -> None:
        self.stream = stream or sys.stdout

    def send(self, document: Any) -> bool:
        print(encode_packet(document).decode("utf-8"), file=self.stream)
        return True

    def shutdown(self) -> None:
        return None
