"""
Kindroid Bots - Prometheus Metrics
Provides Prometheus-compatible metrics for monitoring and observability.
"""

from prometheus_client import Counter, Histogram, Gauge, start_http_server
import logger as log


# --- Message Metrics ---

messages_received = Counter(
    'kindroid_bots_messages_received_total',
    'Total number of messages seen by a bot',
    ['bot_name', 'channel_type']  # channel_type: dm, server
)

responses_sent = Counter(
    'kindroid_bots_responses_sent_total',
    'Total number of responses delivered',
    ['bot_name', 'mode']  # mode: reply, send
)


# --- Admission Metrics ---

loop_guard_denials = Counter(
    'kindroid_bots_loop_guard_denials_total',
    'Bot messages ignored because the bot-to-bot chain limit was reached',
    ['bot_name']
)

permission_denials = Counter(
    'kindroid_bots_permission_denials_total',
    'Messages ignored because the bot cannot post in the channel',
    ['bot_name']
)

rate_limited_drops = Counter(
    'kindroid_bots_rate_limited_drops_total',
    'Responses silently dropped because the backend rate limited them',
    ['bot_name']
)


# --- API Metrics ---

api_requests = Counter(
    'kindroid_bots_api_requests_total',
    'Total number of Kindroid API requests made',
    ['status']  # status: success, rate_limited, error, timeout
)

api_request_duration = Histogram(
    'kindroid_bots_api_request_duration_seconds',
    'Kindroid API request duration in seconds',
    buckets=[0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0]
)


# --- Error Metrics ---

errors_total = Counter(
    'kindroid_bots_errors_total',
    'Total number of errors',
    ['bot_name', 'error_type']  # error_type: delivery, startup, shutdown, gateway
)


# --- Bot Status Metrics ---

active_bots = Gauge(
    'kindroid_bots_active_bots',
    'Number of bot identities currently logged in'
)


# --- Metrics Manager ---

class MetricsManager:
    """Centralized metrics management for Kindroid Bots."""

    def __init__(self, metrics_port: int = 8000):
        self.metrics_port = metrics_port
        self._started = False

    def start_metrics_server(self, port: int = None):
        """Start the Prometheus metrics HTTP server."""
        if self._started:
            return
        if port is not None:
            self.metrics_port = port

        try:
            start_http_server(self.metrics_port)
            self._started = True
            log.info(f"Prometheus metrics server started on port {self.metrics_port}")
        except Exception as e:
            log.error(f"Failed to start metrics server: {e}")

    def record_message(self, bot_name: str, channel_type: str = 'server'):
        """Record a message seen by a bot."""
        messages_received.labels(bot_name=bot_name, channel_type=channel_type).inc()

    def record_response(self, bot_name: str, mode: str):
        """Record a delivered response."""
        responses_sent.labels(bot_name=bot_name, mode=mode).inc()

    def record_loop_guard_denial(self, bot_name: str):
        loop_guard_denials.labels(bot_name=bot_name).inc()

    def record_permission_denial(self, bot_name: str):
        permission_denials.labels(bot_name=bot_name).inc()

    def record_rate_limited(self, bot_name: str):
        rate_limited_drops.labels(bot_name=bot_name).inc()

    def record_api_request(self, status: str, duration_seconds: float):
        """Record a Kindroid API request."""
        api_requests.labels(status=status).inc()
        api_request_duration.observe(duration_seconds)

    def record_error(self, bot_name: str, error_type: str):
        """Record an error."""
        errors_total.labels(bot_name=bot_name, error_type=error_type).inc()

    def set_active_bots(self, count: int):
        """Update the active bots gauge."""
        active_bots.set(count)


# Global metrics manager instance
metrics_manager = MetricsManager()
