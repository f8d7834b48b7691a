"""
Gunicorn configuration for the Sadhana Score API.

Run with:  gunicorn -c gunicorn.conf.py sadhana.main:app

Env vars that override defaults:
  PORT     — TCP port to bind (Railway sets this automatically)
  WORKERS  — number of worker processes (default: 2)
"""
import os

bind = f"0.0.0.0:{os.environ.get('PORT', '8000')}"

# Scoring is CPU-light and every request reloads a snapshot; 2 workers fit
# a 512 MB container.
workers = int(os.environ.get("WORKERS", "2"))

worker_class = "uvicorn.workers.UvicornWorker"

keepalive = 5

timeout = 120

# stdout only; application logs go through structlog (sadhana/core/logging.py).
loglevel = "info"
accesslog = "-"
errorlog = "-"
access_log_format = '%(h)s "%(r)s" %(s)s %(b)sB %(D)sµs'

graceful_timeout = 30
