from __future__ import annotations


class ClientRequestError(Exception):
    status_code = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class RequestValidationFailed(ClientRequestError):
    status_code = 400


class RequestNotFound(ClientRequestError):
    status_code = 404


class LawyerNotFound(RequestNotFound):
    def __init__(self, reference: str):
        super().__init__(f"Lawyer {reference} not found in users or lawyer profiles")
        self.reference = reference


class RequestConflict(ClientRequestError):
    status_code = 409


class RequestForbidden(ClientRequestError):
    status_code = 403
