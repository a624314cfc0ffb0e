from typing import NoReturn

from ...core.exceptions import DomainException


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Re-raise a domain exception as the HTTP error the handlers render."""
    raise exc.to_http_exception()
