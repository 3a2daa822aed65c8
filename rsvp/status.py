"""
Status accessors for Body.

Each accessor returns a new Body; a Body is never mutated after construction.
"""

import dataclasses
from http import HTTPStatus

from .exceptions import InvalidStatusError


class StatusMixin:
    """Convenience accessors that set the status (and location) of a Body."""

    def _with_status(self, status: HTTPStatus, location: str = ""):
        return dataclasses.replace(self, status_code=int(status), redirect_location=location)

    def _redirect(self, status: HTTPStatus, location: str):
        if not location:
            raise InvalidStatusError(f"{int(status)} {status.phrase} requires a location")
        return self._with_status(status, location)

    # Success (2xx)

    def status_created(self, location: str = ""):
        """201 Created. The Location header is set when a location is given."""
        return self._with_status(HTTPStatus.CREATED, location)

    def status_accepted(self):
        """202 Accepted: processing has not been completed."""
        return self._with_status(HTTPStatus.ACCEPTED)

    def status_no_content(self):
        """204 No Content. Usually paired with ``blank()``."""
        return self._with_status(HTTPStatus.NO_CONTENT)

    # Redirection (3xx)

    def status_moved_permanently(self, location: str):
        """301 Moved Permanently, intended for GET requests."""
        return self._redirect(HTTPStatus.MOVED_PERMANENTLY, location)

    def status_found(self, location: str):
        """302 Found: the resource has temporarily moved to ``location``."""
        return self._redirect(HTTPStatus.FOUND, location)

    def status_see_other(self, location: str):
        """303 See Other, used to redirect after a POST."""
        return self._redirect(HTTPStatus.SEE_OTHER, location)

    def status_not_modified(self):
        """304 Not Modified. Carries no location."""
        return self._with_status(HTTPStatus.NOT_MODIFIED)

    def status_temporary_redirect(self, location: str):
        """307 Temporary Redirect: like 302 but the method must not change."""
        return self._redirect(HTTPStatus.TEMPORARY_REDIRECT, location)

    def status_permanent_redirect(self, location: str):
        """308 Permanent Redirect, intended for non-GET requests."""
        return self._redirect(HTTPStatus.PERMANENT_REDIRECT, location)

    # Client errors (4xx)

    def status_bad_request(self):
        return self._with_status(HTTPStatus.BAD_REQUEST)

    def status_unauthorized(self):
        return self._with_status(HTTPStatus.UNAUTHORIZED)

    def status_forbidden(self):
        return self._with_status(HTTPStatus.FORBIDDEN)

    def status_not_found(self):
        return self._with_status(HTTPStatus.NOT_FOUND)

    def status_method_not_allowed(self):
        return self._with_status(HTTPStatus.METHOD_NOT_ALLOWED)

    def status_not_acceptable(self):
        return self._with_status(HTTPStatus.NOT_ACCEPTABLE)

    def status_conflict(self):
        return self._with_status(HTTPStatus.CONFLICT)

    def status_gone(self):
        return self._with_status(HTTPStatus.GONE)

    def status_unprocessable_entity(self):
        """422 Unprocessable Entity, e.g. for validation failures."""
        return self._with_status(HTTPStatus.UNPROCESSABLE_ENTITY)

    def status_too_many_requests(self):
        return self._with_status(HTTPStatus.TOO_MANY_REQUESTS)

    # Server errors (5xx)

    def status_internal_server_error(self):
        return self._with_status(HTTPStatus.INTERNAL_SERVER_ERROR)

    def status_not_implemented(self):
        return self._with_status(HTTPStatus.NOT_IMPLEMENTED)

    def status_service_unavailable(self):
        return self._with_status(HTTPStatus.SERVICE_UNAVAILABLE)
