"""InfluxDB write-data agent."""
