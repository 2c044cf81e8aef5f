# gunicorn.conf.py
# gunicorn -c gunicorn.conf.py evquote.main:app
import os

bind = f"0.0.0.0:{os.getenv('PORT', '8000')}"
# 1 worker by default: share links zonder SHARE_LINK_SECRET en de per-quote locks leven per proces
workers = int(os.getenv("WEB_CONCURRENCY", "1"))
threads = int(os.getenv("WEB_THREADS", "4"))
worker_class = "uvicorn.workers.UvicornWorker"
# Airtable calls hebben zelf een timeout van 30s; ruim daarboven
timeout = int(os.getenv("WEB_TIMEOUT", "90"))
graceful_timeout = 30
keepalive = 5
max_requests = 1000
max_requests_jitter = 100
accesslog = "-"
errorlog = "-"
loglevel = os.getenv("LOG_LEVEL", "info").lower()
