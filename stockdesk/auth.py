from stockdesk.permissions import ensure_page_access


def blueprint_page_guard(page_name: str):
    """Return a ``before_request`` handler that enforces page access."""

    def handler():
        return ensure_page_access(page_name)

    return handler
