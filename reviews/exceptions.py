"""
Errors raised by the public review-link flow.

Each carries a stable machine-readable code and the HTTP status the public
views answer with. Messages are safe to show to the recipient.
"""


class ReviewLinkError(Exception):
    code = 'SERVER_ERROR'
    status = 500
    message = 'Something went wrong.'

    def __init__(self, message=None):
        if message is not None:
            self.message = message
        super().__init__(self.message)

    def as_dict(self):
        return {'error': self.code, 'message': self.message}


class InvalidLinkToken(ReviewLinkError):
    """
    Token failed verification.

    The reason (MALFORMED_TOKEN, BAD_SIGNATURE, ...) is kept for logging only;
    every reason produces the same public response.
    """
    code = 'INVALID_TOKEN'
    status = 403
    message = "This link didn't work. It may have expired."

    def __init__(self, reason, message=None):
        self.reason = reason
        super().__init__(message)


class EmailNotSent(ReviewLinkError):
    code = 'EMAIL_NOT_SENT'
    status = 403
    message = 'This review link is not active for you (no invite email recorded).'


class ReviewAlreadySubmitted(ReviewLinkError):
    code = 'REVIEW_ALREADY_SUBMITTED'
    status = 403
    message = "You've already submitted a review. Thanks for telling us!"


class ClientNotFound(ReviewLinkError):
    code = 'NOT_FOUND'
    status = 404
    message = 'Client not found for this business.'
