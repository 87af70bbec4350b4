"""Gunicorn configuration for the StockDesk service."""
import os

# Network binding configuration. Defaults are suitable for containerized deployments.
bind = os.getenv("GUNICORN_BIND", "0.0.0.0:5000")

# The store is an in-memory database owned by one process; extra workers would
# each see their own copy. Requests share one SQLite connection, so a rollback
# in one thread would discard another thread's pending writes; serve one
# request at a time.
workers = int(os.getenv("GUNICORN_WORKERS", "1"))
threads = int(os.getenv("GUNICORN_THREADS", "1"))

# Log to stdout/stderr by default so container orchestrators can capture logs.
accesslog = os.getenv("GUNICORN_ACCESS_LOGFILE", "-")
errorlog = os.getenv("GUNICORN_ERROR_LOGFILE", "-")

# Optionally allow applications to request graceful handling of forwarded headers.
forwarded_allow_ips = os.getenv("GUNICORN_FORWARDED_ALLOW_IPS", "*")
