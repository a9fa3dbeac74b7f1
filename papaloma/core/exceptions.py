"""
Normalized gateway errors.

Every failure coming out of the gateway is one of these, produced once at the
HTTP boundary and consumed uniformly by the stores: a `kind` plus a single
human-readable `message`.
"""

DEFAULT_ERROR_MESSAGE = 'Terjadi kesalahan'

KIND_NETWORK = 'network'
KIND_AUTH = 'auth'
KIND_API = 'api'


class GatewayError(Exception):
    kind = KIND_API

    def __init__(self, message=None, status_code=None):
        self.message = message or DEFAULT_ERROR_MESSAGE
        self.status_code = status_code
        super().__init__(self.message)

    def __repr__(self):
        return f'{self.__class__.__name__}(kind={self.kind!r}, message={self.message!r}, status_code={self.status_code!r})'


class NetworkError(GatewayError):
    """Server unreachable, connection dropped or request timed out"""
    kind = KIND_NETWORK


class AuthError(GatewayError):
    """401 from the server; the session has already been torn down"""
    kind = KIND_AUTH


class ApiError(GatewayError):
    """Any other non-success response (validation and business-rule failures)"""
    kind = KIND_API
