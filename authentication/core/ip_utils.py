"""Client address lookup for auth audit logging."""

# Checked in order; proxies put the originating client first.
FORWARDED_HEADERS = ('HTTP_X_FORWARDED_FOR', 'HTTP_X_REAL_IP')


def get_client_ip(request_meta):
    """Best-effort client address from ``request.META``; empty string if unknown."""
    for header in FORWARDED_HEADERS:
        value = (request_meta.get(header) or '').split(',')[0].strip()
        if value:
            return value
    return (request_meta.get('REMOTE_ADDR') or '').strip()


def describe_client(request_meta):
    """Short ``ip=... agent=...`` tag used in login and registration logs."""
    agent = request_meta.get('HTTP_USER_AGENT') or 'unknown'
    return f"ip={get_client_ip(request_meta) or 'unknown'} agent={agent}"
