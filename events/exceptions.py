# events/exceptions.py
"""
Typed registration errors.

Every error is a DRF APIException so views can let it propagate and
core.exceptions.custom_exception_handler renders it. Each class belongs to
one category, which decides the HTTP status:

- not_found            404, surfaced as-is
- precondition_failed  400, carries the specific reason
- conflict             409, only raised for cross-path conflicts; same-path
                       duplicates are resolved by returning the existing entity
- unauthorized         403
"""
from rest_framework import status
from rest_framework.exceptions import APIException

CATEGORY_NOT_FOUND = "not_found"
CATEGORY_PRECONDITION_FAILED = "precondition_failed"
CATEGORY_CONFLICT = "conflict"
CATEGORY_UNAUTHORIZED = "unauthorized"


class RegistrationError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Registration request failed."
    default_code = "registration_error"
    category = CATEGORY_PRECONDITION_FAILED

    def __init__(self, detail=None, **extra):
        message = detail or self.default_detail
        payload = {
            "detail": message,
            "code": self.default_code,
            "category": self.category,
        }
        payload.update(extra)
        self.message = message
        self.extra = extra
        super().__init__(detail=payload, code=self.default_code)

    def __str__(self):
        return str(self.message)


# ---- Not found -----------------------------------------------------------


class NotFoundError(RegistrationError):
    status_code = status.HTTP_404_NOT_FOUND
    category = CATEGORY_NOT_FOUND


class EventNotFound(NotFoundError):
    default_detail = "Event not found."
    default_code = "event_not_found"


class TeamNotFound(NotFoundError):
    default_detail = "Team not found."
    default_code = "team_not_found"


class RegistrationNotFound(NotFoundError):
    default_detail = "You are not registered for this event."
    default_code = "registration_not_found"


class TicketNotFound(NotFoundError):
    default_detail = "Invalid ticket. Ticket not found for this event."
    default_code = "ticket_not_found"


class InvalidInviteCode(NotFoundError):
    default_detail = "Invalid invite code."
    default_code = "invalid_invite_code"


class NotATeamMember(NotFoundError):
    default_detail = "Participant is not a member of this team."
    default_code = "not_a_team_member"


# ---- Precondition failed -------------------------------------------------


class PreconditionFailed(RegistrationError):
    status_code = status.HTTP_400_BAD_REQUEST
    category = CATEGORY_PRECONDITION_FAILED


class RegistrationClosed(PreconditionFailed):
    default_detail = "Registration is not open for this event."
    default_code = "registration_closed"


class DeadlinePassed(PreconditionFailed):
    default_detail = "Registration deadline passed."
    default_code = "deadline_passed"


class CapacityExceeded(PreconditionFailed):
    default_detail = "Registration limit reached."
    default_code = "capacity_exceeded"


class TeamFull(PreconditionFailed):
    default_detail = "Team is full."
    default_code = "team_full"


class TeamNotFull(PreconditionFailed):
    default_detail = "Team needs more members to complete registration."
    default_code = "team_not_full"


class TeamAlreadyComplete(PreconditionFailed):
    default_detail = "Team can no longer be changed."
    default_code = "team_already_complete"


class InvalidTeamSize(PreconditionFailed):
    default_detail = "Invalid team size."
    default_code = "invalid_team_size"


class WrongRegistrationPath(PreconditionFailed):
    default_detail = "This event does not accept this kind of registration."
    default_code = "wrong_registration_path"


class PaymentNotApproved(PreconditionFailed):
    default_detail = "Payment has not been approved for this registration."
    default_code = "payment_not_approved"


class CannotRemoveLeader(PreconditionFailed):
    default_detail = "Team leaders cannot leave or be removed. Cancel the team instead."
    default_code = "cannot_remove_leader"


class AlreadyCheckedIn(PreconditionFailed):
    default_detail = "Duplicate scan! Ticket already scanned."
    default_code = "already_checked_in"


class InvalidTransition(PreconditionFailed):
    default_detail = "Invalid status transition."
    default_code = "invalid_transition"


# ---- Conflict ------------------------------------------------------------


class ConflictError(RegistrationError):
    status_code = status.HTTP_409_CONFLICT
    category = CATEGORY_CONFLICT


class AlreadyRegistered(ConflictError):
    default_detail = "Already registered for this event."
    default_code = "already_registered"


class AlreadyOnTeam(ConflictError):
    default_detail = "You already belong to a team in this event."
    default_code = "already_on_team"


# ---- Unauthorized --------------------------------------------------------


class UnauthorizedError(RegistrationError):
    status_code = status.HTTP_403_FORBIDDEN
    category = CATEGORY_UNAUTHORIZED


class NotTeamLeader(UnauthorizedError):
    default_detail = "Only the team leader can perform this action."
    default_code = "not_team_leader"


class NotEligible(UnauthorizedError):
    default_detail = "You are not eligible to register for this event."
    default_code = "not_eligible"


class NotEventManager(UnauthorizedError):
    default_detail = "You do not have permission to manage this event."
    default_code = "not_event_manager"
