"""
LEO-CAD — Client-visible request errors.

Each error is an HTTPException whose detail is a translatable message key,
so FastAPI's default handler renders {"detail": "<key>"}.
"""
from fastapi import HTTPException


class CADRequestError(HTTPException):
    """Base class: fixed status code + message key."""
    status_code = 400
    message = "badRequest"

    def __init__(self, message: str = None):
        super().__init__(status_code=self.status_code, detail=message or self.message)


class NotLoggedIn(CADRequestError):
    status_code = 401
    message = "notLoggedIn"


class MissingPermission(CADRequestError):
    status_code = 403
    message = "missingPermissions"


class UserNotFound(CADRequestError):
    status_code = 404
    message = "userNotFound"


class OfficerNotFound(CADRequestError):
    message = "officerNotFound"


class MustBeOnDuty(CADRequestError):
    message = "mustBeOnDuty"


class MessageNotFound(CADRequestError):
    status_code = 404
    message = "messageNotFound"


class CannotDeleteMessage(CADRequestError):
    message = "cannotDeleteMessage"


class CanOnlyDeleteOwnMessages(CADRequestError):
    message = "canOnlyDeleteOwnMessages"
