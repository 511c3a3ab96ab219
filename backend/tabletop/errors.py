"""Error kinds surfaced by the map subsystem.

Routes and socket handlers translate these into HTTP responses or
`error` socket events; callers can tell "no map yet" (NotFound) apart from
"try again later" (UpstreamFailure).
"""


class MapError(Exception):
    status_code = 500
    kind = 'error'

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self):
        return {'error': self.message, 'kind': self.kind}


class NotFound(MapError):
    status_code = 404
    kind = 'not_found'


class ValidationError(MapError):
    status_code = 400
    kind = 'validation'


class Unauthorized(MapError):
    # 401 when nobody is signed in, 403 when the caller lacks the role
    status_code = 403
    kind = 'unauthorized'


class UpstreamFailure(MapError):
    # 502 for the asset host, 503 for the database
    status_code = 502
    kind = 'upstream'
