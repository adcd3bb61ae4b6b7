# Run with: gunicorn -c gunicorn.conf.py sessionguard.wsgi:app
bind = "0.0.0.0:8000"
workers = 2
threads = 1
timeout = 60
graceful_timeout = 30
keepalive = 5

# Logs to stdout/stderr
accesslog = "-"
errorlog = "-"
loglevel = "info"

# Proxy headers are handled by ProxyFix inside the app
forwarded_allow_ips = "*"
proxy_protocol = False
