"""Central configuration constants for the HTMX SSR server."""


class Config:
    """Server defaults and environment variable names."""
    HOST = "127.0.0.1"
    PORT = 9000

    # Environment
    BASE_URL_ENV = "HTMX_SSR_BASE_URL"
    LISTEN_FDS_ENV = "LISTEN_FDS"
    LISTEN_PID_ENV = "LISTEN_PID"

    # Socket activation hands sockets over starting at this descriptor
    LISTEN_FDS_START = 3

    # Accept loop
    POLL_INTERVAL = 0.5
    LISTEN_BACKLOG = 128

    # Background runner
    STOP_TIMEOUT = 5
