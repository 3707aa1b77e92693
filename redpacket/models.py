from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, Field, ConfigDict


AccountId = Any
Balance = int
PacketId = int
BlockNumber = int

MAX_CLAIM_COUNT = 2**32 - 1


class PacketStatus(str, Enum):
    OPEN = "OPEN"
    EXHAUSTED = "EXHAUSTED"
    EXPIRED = "EXPIRED"
    CLOSED = "CLOSED"


class EventType(str, Enum):
    CREATED = "Created"
    CLAIMED = "Claimed"
    DISTRIBUTED = "Distributed"


class Packet(BaseModel):
    id: PacketId
    owner: AccountId
    total: Balance = Field(..., ge=0)
    unclaimed: Balance = Field(..., ge=0)
    count: int = Field(..., gt=0, le=MAX_CLAIM_COUNT)
    claims_made: int = Field(default=0, ge=0)
    created_at: BlockNumber
    expires_at: BlockNumber
    distributed: bool = False
    distributed_at: Optional[BlockNumber] = None
    released: Balance = 0

    model_config = ConfigDict(from_attributes=True)

    def is_expired(self, now: BlockNumber) -> bool:
        return now >= self.expires_at

    def is_exhausted(self) -> bool:
        return self.claims_made >= self.count or self.unclaimed == 0

    def can_distribute(self, now: BlockNumber) -> bool:
        return not self.distributed and (self.is_exhausted() or self.is_expired(now))

    def status(self, now: BlockNumber) -> PacketStatus:
        if self.distributed:
            return PacketStatus.CLOSED
        if self.is_exhausted():
            return PacketStatus.EXHAUSTED
        if self.is_expired(now):
            return PacketStatus.EXPIRED
        return PacketStatus.OPEN


class ClaimRecord(BaseModel):
    packet_id: PacketId
    account: AccountId
    amount: Balance
    claimed_at: BlockNumber


class ClaimDecision(BaseModel):
    """Outcome of a successful claim validation, applied by the commit step."""

    packet_id: PacketId
    owner: AccountId
    claimant: AccountId
    amount: Balance
    block: BlockNumber

    model_config = ConfigDict(frozen=True)


class DistributeDecision(BaseModel):
    packet_id: PacketId
    owner: AccountId
    amount: Balance
    block: BlockNumber

    model_config = ConfigDict(frozen=True)


class PacketEvent(BaseModel):
    event_type: EventType
    packet_id: PacketId
    account: AccountId
    amount: Balance
    block: BlockNumber
    count: Optional[int] = None

    model_config = ConfigDict(frozen=True)


# HTTP request/response shapes


class CreatePacketRequest(BaseModel):
    caller: str = Field(..., description="Account creating and funding the packet")
    quota: int = Field(..., description="Amount each claimant receives")
    count: int = Field(..., description="Maximum number of claims")
    expires_delta: int = Field(..., description="Blocks until the packet expires")

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "caller": "alice",
            "quota": 10,
            "count": 5,
            "expires_delta": 100
        }
    })


class ClaimRequest(BaseModel):
    caller: str


class DistributeRequest(BaseModel):
    caller: str


class AdvanceBlocksRequest(BaseModel):
    blocks: int = Field(default=1, ge=0)


class PacketView(BaseModel):
    packet: Packet
    status: PacketStatus
    claims: list[ClaimRecord]
    current_block: BlockNumber


class PacketResponse(BaseModel):
    packet: Packet
    message: str


class ClaimResponse(BaseModel):
    packet: Packet
    amount: Balance
    message: str


class DistributeResponse(BaseModel):
    packet: Packet
    released: Balance
    message: str


class AccountBalance(BaseModel):
    account: str
    free: Balance
    reserved: Balance


class BlockResponse(BaseModel):
    block: BlockNumber
