"""Error taxonomy shared by the socket handlers, HTTP routes and services."""


class QuizRoomError(Exception):
    code = 'error'

    def __init__(self, message=None):
        super().__init__(message or self.code)
        self.message = message or self.code

    def to_dict(self):
        return {'code': self.code, 'message': self.message}


class AuthenticationFailed(QuizRoomError):
    code = 'authentication_failed'


class Unauthorized(QuizRoomError):
    code = 'unauthorized'


class SessionNotFound(QuizRoomError):
    code = 'session_not_found'


class QuestionBankError(QuizRoomError):
    code = 'question_bank_error'


class SubmissionRejected(QuizRoomError):
    """An answer was refused. Only the submitter is told about it."""
    code = 'rejected'


class NoActiveRound(SubmissionRejected):
    code = 'no_active_round'


class DuplicateAnswer(SubmissionRejected):
    code = 'duplicate_answer'


class RoundAlreadyResolving(SubmissionRejected):
    code = 'round_already_resolving'


class NotParticipant(SubmissionRejected):
    code = 'not_a_participant'


class InvalidAnswer(SubmissionRejected):
    code = 'invalid_answer'
