"""Exporters for delivering documents to the daemon."""

from xraytrace.exporter.console_exporter import ConsoleExporter
from xraytrace.exporter.udp_exporter import PROTOCOL_HEADER, UDPExporter, encode_packet

__all__ = ["ConsoleExporter", "UDPExporter", "PROTOCOL_HEADER", "encode_packet"]
