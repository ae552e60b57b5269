"""Prometheus metrics for the vegetable price tracker."""

import time

from prometheus_client import Counter, Gauge, Histogram, Info

# Application info
app_info = Info("vegetable_price_tracker", "Vegetable price tracker application info")
app_info.info({"version": "0.1.0", "name": "vegetable-price-tracker"})

# Upstream fetch metrics
market_fetches_total = Counter(
    "market_fetches_total",
    "Total number of upstream day fetches",
    ["city", "status"],
)

market_fetch_duration_seconds = Histogram(
    "market_fetch_duration_seconds",
    "Time spent fetching a day of prices from upstream",
    ["city"],
    buckets=[0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0],
)

# Scrape metrics
price_records_stored_total = Counter(
    "price_records_stored_total",
    "Total number of price observations written by scrapes",
    ["city"],
)

# Alert / report metrics
alert_matches_total = Counter(
    "alert_matches_total",
    "Total number of vegetables matching an alert criterion",
    ["criterion"],
)

emails_queued_total = Counter(
    "emails_queued_total",
    "Total number of emails appended to the outbound queue",
    ["kind"],
)

# Scheduler metrics
scheduler_runs_total = Counter(
    "scheduler_runs_total",
    "Total number of scheduler runs",
    ["job_type", "status"],
)

scheduler_last_run_timestamp = Gauge(
    "scheduler_last_run_timestamp",
    "Timestamp of last scheduler run",
    ["job_type"],
)


def record_fetch(city: str, status: str, duration: float):
    """Record one upstream day fetch and its outcome."""
    market_fetches_total.labels(city=city, status=status).inc()
    market_fetch_duration_seconds.labels(city=city).observe(duration)


def record_records_stored(city: str, count: int):
    """Record price observations written for a city."""
    if count:
        price_records_stored_total.labels(city=city).inc(count)


def record_alert_match(criterion: str):
    """Record a vegetable matching an alert criterion."""
    alert_matches_total.labels(criterion=criterion).inc()


def record_email_queued(kind: str):
    """Record an email being queued."""
    emails_queued_total.labels(kind=kind).inc()


def record_scheduler_run(job_type: str, success: bool):
    """Record a scheduler job run."""
    status = "success" if success else "error"
    scheduler_runs_total.labels(job_type=job_type, status=status).inc()
    scheduler_last_run_timestamp.labels(job_type=job_type).set(time.time())
