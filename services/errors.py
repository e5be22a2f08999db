from services.access_decision import HTTP_STATUS, Decision, DenyReason


class AccessError(Exception):
    """Denied or failed sharing operation, rendered as a JSON error by the app"""
    def __init__(self, message: str, status_code: int = 403, code: str = DenyReason.FORBIDDEN.value):
        self.message = message
        self.status_code = status_code
        self.code = code
        super().__init__(self.message)

    @classmethod
    def from_decision(cls, decision: Decision) -> "AccessError":
        return cls(decision.message, decision.status_code, decision.reason.value)

    @classmethod
    def for_reason(cls, reason: DenyReason, message: str) -> "AccessError":
        return cls(message, HTTP_STATUS[reason], reason.value)

    def to_dict(self):
        return {"msg": self.message, "code": self.code}
