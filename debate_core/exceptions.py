"""Exceptions for the debate board"""


class DebateError(Exception):
    """Base exception for board errors"""
    pass


class LookupMiss(DebateError, LookupError):
    """Raised by a profile store when no record matches an id"""

    def __init__(self, user_id: str):
        super().__init__(f"No profile for id {user_id!r}")
        self.user_id = user_id


class SelfMatchError(DebateError):
    """Raised when matchmaking keeps seating the session owner"""

    def __init__(self, self_id: str):
        super().__init__(f"Self-match detected for {self_id!r}")
        self.self_id = self_id


class DebateStateError(DebateError):
    """Raised when a controller step is called out of order"""
    pass


class InsufficientChipsError(DebateError):
    """Raised when a paid action costs more than the remaining balance"""

    def __init__(self, action: str, cost: int, balance: int):
        super().__init__(f"{action} costs {cost} chips, only {balance} left")
        self.action = action
        self.cost = cost
        self.balance = balance
