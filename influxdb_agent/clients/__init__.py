"""Outbound clients: InfluxDB writer and the agent log."""
