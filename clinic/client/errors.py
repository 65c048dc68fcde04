class ClientError(Exception):
    """Base class for everything the API client raises."""


class ResponseError(ClientError):
    """The server answered with a non-2xx status."""

    def __init__(self, response):
        self.response = response
        self.status_code = response.status_code
        super().__init__(f'{response.status_code} {response.reason or ""}'.strip())

    def payload(self) -> dict:
        try:
            data = self.response.json()
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}


class Unauthorized(ResponseError):
    """401: stored credentials were cleared."""


class NetworkError(ClientError):
    """The request was sent but no response came back."""


class RequestSetupError(ClientError):
    """The request could not be built (bad URL, bad header ...)."""


class ServiceError(ClientError):
    """A service call failed; ``str(err)`` is the message to show."""

    def __init__(self, message: str, *, status_code=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
