"""
Prometheus metrics collection.
"""

from prometheus_client import Counter, Gauge

# ============================================================
# Connection Metrics
# ============================================================

connections_total = Counter(
    "signaleur_connections_total",
    "Total WebSocket connections accepted",
)

connections_active = Gauge(
    "signaleur_connections_active",
    "WebSocket connections currently open",
)

connections_closed_total = Counter(
    "signaleur_connections_closed_total",
    "Total connections closed",
    ["state"],
)

# ============================================================
# Message Metrics
# ============================================================

messages_received_total = Counter(
    "signaleur_messages_received_total",
    "Total inbound messages by command",
    ["command"],
)

messages_relayed_total = Counter(
    "signaleur_messages_relayed_total",
    "Total per-recipient deliveries queued by broadcast",
)

send_failures_total = Counter(
    "signaleur_send_failures_total",
    "Total per-recipient send failures",
)

protocol_errors_total = Counter(
    "signaleur_protocol_errors_total",
    "Total connections terminated for protocol errors",
    ["error_type"],
)

# ============================================================
# Channel Metrics
# ============================================================

channels_active = Gauge(
    "signaleur_channels_active",
    "Channels currently registered",
)

channel_ids_allocated_total = Counter(
    "signaleur_channel_ids_allocated_total",
    "Total channel codes handed out",
)

channel_id_exhausted_total = Counter(
    "signaleur_channel_id_exhausted_total",
    "Total channel code requests that ran out of attempts",
)

channels_reclaimed_total = Counter(
    "signaleur_channels_reclaimed_total",
    "Total unclaimed channels removed by the sweep",
)
