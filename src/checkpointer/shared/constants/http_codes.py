"""HTTP constants used when talking to the Checkpointer API."""


class HTTPStatusCodes:
    """Statuses the Checkpointer routes answer with."""

    OK = 200
    CREATED = 201
    NO_CONTENT = 204

    BAD_REQUEST = 400
    UNAUTHORIZED = 401
    FORBIDDEN = 403  # admin routes for non-admins, other users' private data
    NOT_FOUND = 404
    CONFLICT = 409  # duplicate review

    INTERNAL_SERVER_ERROR = 500

    @staticmethod
    def is_success(code: int) -> bool:
        return 200 <= code < 300


class HTTPHeaders:
    """Request headers the client sets."""

    ACCEPT = "Accept"
    COOKIE = "Cookie"
    USER_AGENT = "User-Agent"


class ContentTypes:
    JSON = "application/json"
