"""Gunicorn configuration shared by both services.

Usage:
    gunicorn -c gunicorn.conf.py calendar_poc.calendar_app:app    # PORT=9090
    gunicorn -c gunicorn.conf.py calendar_poc.frontend_app:app    # PORT=5000

Secrets are read by the settings loaders from /run/secrets (Docker secrets)
with environment variables as fallback; nothing is fetched here.
"""
import multiprocessing
import os

bind = f"0.0.0.0:{os.environ.get('PORT', '8000')}"
workers = int(os.environ.get("GUNICORN_WORKERS", min(4, multiprocessing.cpu_count() * 2 + 1)))
timeout = int(os.environ.get("GUNICORN_TIMEOUT", "30"))
accesslog = "-"
errorlog = "-"
loglevel = os.environ.get("LOG_LEVEL", "info").lower()


def post_fork(server, worker):
    """
    Called just after a worker has been forked.

    Reports which secrets are mounted so a missing Docker secret shows up in
    the worker log rather than as a settings error later.
    """
    from pathlib import Path

    demo_mode = os.environ.get("DEMO_MODE", "false").lower() == "true"
    if demo_mode:
        worker.log.warning("DEMO_MODE=true - demo defaults in use, do not expose this worker")

    secrets_dir = Path("/run/secrets")
    if secrets_dir.exists() and secrets_dir.is_dir():
        secret_names = sorted(p.name for p in secrets_dir.iterdir() if p.is_file())
        worker.log.info(f"Found {len(secret_names)} secrets in /run/secrets: {', '.join(secret_names)}")
    else:
        worker.log.info("No /run/secrets mount; settings fall back to environment variables")
