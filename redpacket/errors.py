class RedPacketError(Exception):
    code = "RedPacketError"


class InvalidAmountError(RedPacketError):
    code = "InvalidAmount"


class InsufficientBalanceError(RedPacketError):
    code = "InsufficientBalance"


class PacketNotFoundError(RedPacketError):
    code = "NotFound"


class AlreadyDistributedError(RedPacketError):
    code = "AlreadyDistributed"


class PacketExpiredError(RedPacketError):
    code = "Expired"


class ClaimLimitReachedError(RedPacketError):
    code = "ClaimLimitReached"


class AlreadyClaimedError(RedPacketError):
    code = "AlreadyClaimed"


class PacketExhaustedError(RedPacketError):
    code = "Exhausted"


class NotOwnerError(RedPacketError):
    code = "NotOwner"


class NotDistributableError(RedPacketError):
    code = "NotDistributable"
