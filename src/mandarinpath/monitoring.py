"""Monitoring configuration for the client."""
from prometheus_client import Counter, Gauge, Histogram, start_http_server

# API metrics
api_requests = Counter(
    "mandarinpath_api_requests_total",
    "Total number of requests sent to the backend API",
    ["method", "status"],
)

api_errors = Counter(
    "mandarinpath_api_errors_total",
    "Total number of failed backend API requests",
    ["error_type"],
)

request_duration = Histogram(
    "mandarinpath_request_duration_seconds",
    "Duration of backend API requests in seconds",
    ["method"],
    buckets=[0.1, 0.5, 1.0, 2.0, 5.0],
)

# Auth metrics
token_refreshes = Counter(
    "mandarinpath_token_refreshes_total",
    "Total number of access token refresh attempts",
    ["result"],
)

authenticated_users = Gauge(
    "mandarinpath_authenticated",
    "Whether a user is currently signed in",
)

# Learning metrics
word_reviews = Counter(
    "mandarinpath_word_reviews_total",
    "Total number of word strength updates",
    ["task_type", "correct"],
)

task_sessions = Counter(
    "mandarinpath_task_sessions_total",
    "Total number of practice sessions started",
    ["task_type"],
)

session_duration = Histogram(
    "mandarinpath_session_duration_seconds",
    "Duration of practice sessions in seconds",
    ["task_type"],
    buckets=[60, 300, 600, 1800, 3600],  # 1min, 5min, 10min, 30min, 1hour
)

# Speech metrics
speech_evaluations = Counter(
    "mandarinpath_speech_evaluations_total",
    "Total number of speech evaluations",
    ["outcome"],
)


def start_monitoring(port: int = 9090) -> None:
    """Start the Prometheus metrics server."""
    start_http_server(port)
