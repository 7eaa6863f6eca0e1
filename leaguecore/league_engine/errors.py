"""Typed errors raised by the league transaction engine.

Every error carries a stable machine-readable ``code`` so callers (CLI, an
HTTP layer) can map failures without parsing messages.
"""

from __future__ import annotations

from typing import Any, Optional


class LeagueError(Exception):
    code: str = "LEAGUE_ERROR"
    default_message: str = "League operation failed."

    def __init__(self, message: Optional[str] = None, *, details: Optional[Any] = None) -> None:
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details is not None:
            payload["details"] = self.details
        return payload


# Kinds


class AuthorizationError(LeagueError):
    code = "AUTHORIZATION"
    default_message = "Not allowed."


class StateConflict(LeagueError):
    code = "STATE_CONFLICT"
    default_message = "Operation conflicts with current state."


class ValidationError(LeagueError):
    code = "VALIDATION"
    default_message = "Invalid request."


class NotFoundError(LeagueError):
    code = "NOT_FOUND"
    default_message = "Not found."

    def __init__(self, entity: str, key: Any = None) -> None:
        self.entity = entity
        self.key = key
        message = f"{entity} not found." if key is None else f"{entity} {key!r} not found."
        super().__init__(message, details={"entity": entity, "key": key})


class ExhaustionError(LeagueError):
    code = "EXHAUSTED"
    default_message = "Nothing left to choose from."


# Authorization


class Unauthenticated(AuthorizationError):
    code = "UNAUTHENTICATED"
    default_message = "You must be logged in."


class NotAMember(AuthorizationError):
    code = "NOT_A_MEMBER"
    default_message = "You are not a member of this league."


class NotCommissioner(AuthorizationError):
    code = "NOT_COMMISSIONER"
    default_message = "Only the commissioner can do that."


class NotYourTurn(AuthorizationError):
    code = "NOT_YOUR_TURN"
    default_message = "It is not your turn to pick."


class NotProposer(AuthorizationError):
    code = "NOT_PROPOSER"
    default_message = "Only the proposer can cancel this trade."


class NotAParticipant(AuthorizationError):
    code = "NOT_A_PARTICIPANT"
    default_message = "You are not a recipient of this trade."


# State conflicts


class DraftNotActive(StateConflict):
    code = "DRAFT_NOT_ACTIVE"
    default_message = "Draft is not in progress."


class DraftAlreadyExists(StateConflict):
    code = "DRAFT_ALREADY_EXISTS"
    default_message = "A draft already exists for this league."


class LeagueNotFull(StateConflict):
    code = "LEAGUE_NOT_FULL"
    default_message = "League must be full before drafting."


class PlayerAlreadyDrafted(StateConflict):
    code = "PLAYER_ALREADY_DRAFTED"
    default_message = "Player has already been drafted."


class PlayerAlreadyOwned(StateConflict):
    code = "PLAYER_ALREADY_OWNED"
    default_message = "Player is already on a roster in this league."


class SlotOccupied(StateConflict):
    code = "SLOT_OCCUPIED"
    default_message = "Slot is already occupied."


class NotPending(StateConflict):
    code = "NOT_PENDING"
    default_message = "Trade is no longer pending."


class TradesClosed(StateConflict):
    code = "TRADES_CLOSED"
    default_message = "Trades are closed for this league."


# Validation


class IneligiblePosition(ValidationError):
    code = "INELIGIBLE_POSITION"
    default_message = "Player is not eligible for that slot."


class IneligibleSwap(ValidationError):
    code = "INELIGIBLE_SWAP"
    default_message = "Occupant is not eligible for the vacated slot."


class InsufficientRosterSpace(ValidationError):
    code = "INSUFFICIENT_ROSTER_SPACE"
    default_message = "Not enough open bench slots."


class NotOwner(ValidationError):
    code = "NOT_OWNER"
    default_message = "Member does not own that player."


class InvalidTrade(ValidationError):
    code = "INVALID_TRADE"
    default_message = "Trade proposal is malformed."


class InvalidSlot(ValidationError):
    code = "INVALID_SLOT"
    default_message = "Unknown roster slot."


class RosterTooSmall(ValidationError):
    code = "ROSTER_TOO_SMALL"
    default_message = "Draft rounds exceed available starter and bench slots."


class NotABot(ValidationError):
    code = "NOT_A_BOT"
    default_message = "Only bot-managed teams can be managed automatically."


# Exhaustion


class NoAvailablePlayers(ExhaustionError):
    code = "NO_AVAILABLE_PLAYERS"
    default_message = "No available players remain."
