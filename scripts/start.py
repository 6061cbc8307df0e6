#!/usr/bin/env python
"""Deployment entry point.

Routes to the correct process based on SERVICE_TYPE environment variable:
  - "worker"  -> Celery worker (+ minimal health server on $PORT)
  - "beat"    -> register periodic tasks, then Celery beat (+ health server)
  - "job"     -> run one management command named by $JOB_COMMAND and exit
                 (release_expired_numbers or purchase_upcoming_numbers)
  - (default) -> Django migrate + Gunicorn web server
"""
import http.server
import os
import subprocess
import sys
import threading

JOB_COMMANDS = ("release_expired_numbers", "purchase_upcoming_numbers")


class _HealthHandler(http.server.BaseHTTPRequestHandler):
    """Minimal HTTP handler, returns 200 OK for any GET request."""

    def do_GET(self):
        self.send_response(200)
        self.end_headers()
        self.wfile.write(b"OK")

    def log_message(self, fmt, *args):  # suppress access logs
        pass


def _start_health_server(port: int) -> None:
    """Bind to PORT in a daemon thread so the platform's TCP probe succeeds."""
    server = http.server.HTTPServer(("0.0.0.0", port), _HealthHandler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()


def _manage(*args, check=True):
    return subprocess.run([sys.executable, "manage.py", *args], check=check)


def _celery(*args):
    result = subprocess.run(["celery", "-A", "ringring", *args, "--loglevel=info"])
    sys.exit(result.returncode)


def main():
    service_type = os.environ.get("SERVICE_TYPE", "")
    port = int(os.environ.get("PORT", "8000"))

    if service_type == "worker":
        print("Starting Celery worker...", flush=True)
        _start_health_server(port)
        _celery("worker", "--concurrency=2")

    elif service_type == "beat":
        print("Registering periodic tasks...", flush=True)
        _manage("setup_periodic_tasks")
        print("Starting Celery beat...", flush=True)
        _start_health_server(port)
        _celery("beat", "--scheduler", "django_celery_beat.schedulers:DatabaseScheduler")

    elif service_type == "job":
        command = os.environ.get("JOB_COMMAND", "")
        if command not in JOB_COMMANDS:
            print(f"Unknown JOB_COMMAND {command!r}; expected one of {JOB_COMMANDS}", flush=True)
            sys.exit(2)
        print(f"Running {command}...", flush=True)
        sys.exit(_manage(command, check=False).returncode)

    else:
        print("Starting web server...", flush=True)
        _manage("migrate", "--noinput")
        os.execvp(
            "gunicorn",
            [
                "gunicorn",
                "ringring.wsgi:application",
                "--bind", f"0.0.0.0:{port}",
                "--workers", "2",
                "--timeout", "30",
                "--log-file", "-",
            ],
        )


if __name__ == "__main__":
    main()
