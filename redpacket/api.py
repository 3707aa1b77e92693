from typing import Optional
from fastapi import FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware

from .clock import BlockClock
from .config import Settings, configure_logging, load_settings
from .errors import (
    AlreadyClaimedError,
    AlreadyDistributedError,
    NotOwnerError,
    PacketNotFoundError,
    RedPacketError,
)
from .ledger import InMemoryLedger
from .models import (
    AccountBalance,
    AdvanceBlocksRequest,
    BlockResponse,
    ClaimRequest,
    ClaimResponse,
    CreatePacketRequest,
    DistributeRequest,
    DistributeResponse,
    Packet,
    PacketEvent,
    PacketResponse,
    PacketView,
)
from .service import RedPacketService


def build_service(settings: Settings) -> RedPacketService:
    return RedPacketService(
        ledger=InMemoryLedger(settings.genesis_balances, max_balance=settings.max_balance),
        clock=BlockClock(),
        max_balance=settings.max_balance,
    )


def _http_error(e: RedPacketError) -> HTTPException:
    if isinstance(e, PacketNotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(e, NotOwnerError):
        code = status.HTTP_403_FORBIDDEN
    elif isinstance(e, (AlreadyClaimedError, AlreadyDistributedError)):
        code = status.HTTP_409_CONFLICT
    else:
        code = status.HTTP_400_BAD_REQUEST
    return HTTPException(status_code=code, detail={"message": str(e), "code": e.code})


def create_app(service: Optional[RedPacketService] = None) -> FastAPI:
    if service is None:
        settings = load_settings()
        configure_logging(settings.log_level)
        service = build_service(settings)

    app = FastAPI(
        title="RedPacket API",
        description="Airdrop packets with reserved funds, per-account claims and owner settlement",
        version="1.0.0",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.service = service

    @app.get("/health", tags=["System"])
    def health_check():
        return {"status": "healthy", "service": "redpacket", "block": service.clock.now()}

    @app.post("/packets", response_model=PacketResponse, status_code=status.HTTP_201_CREATED, tags=["Packets"])
    def create_packet(request: CreatePacketRequest) -> PacketResponse:
        try:
            packet_id = service.create(request.caller, request.quota, request.count, request.expires_delta)
        except RedPacketError as e:
            raise _http_error(e)
        return PacketResponse(packet=service.get_packet(packet_id), message="Packet created successfully")

    @app.get("/packets", response_model=list[Packet], tags=["Packets"])
    def list_packets(owner: Optional[str] = None) -> list[Packet]:
        return service.list_packets(owner)

    @app.get("/packets/{packet_id}", response_model=PacketView, tags=["Packets"])
    def get_packet(packet_id: int) -> PacketView:
        try:
            packet = service.get_packet(packet_id)
        except RedPacketError as e:
            raise _http_error(e)
        now = service.clock.now()
        return PacketView(
            packet=packet,
            status=packet.status(now),
            claims=service.get_claims(packet_id),
            current_block=now,
        )

    @app.post("/packets/{packet_id}/claim", response_model=ClaimResponse, tags=["Packets"])
    def claim_packet(packet_id: int, request: ClaimRequest) -> ClaimResponse:
        try:
            amount = service.claim(request.caller, packet_id)
        except RedPacketError as e:
            raise _http_error(e)
        return ClaimResponse(packet=service.get_packet(packet_id), amount=amount, message="Claimed successfully")

    @app.post("/packets/{packet_id}/distribute", response_model=DistributeResponse, tags=["Packets"])
    def distribute_packet(packet_id: int, request: DistributeRequest) -> DistributeResponse:
        try:
            released = service.distribute(request.caller, packet_id)
        except RedPacketError as e:
            raise _http_error(e)
        return DistributeResponse(
            packet=service.get_packet(packet_id), released=released, message="Packet distributed successfully"
        )

    @app.get("/accounts/{account}/balance", response_model=AccountBalance, tags=["Accounts"])
    def get_account_balance(account: str) -> AccountBalance:
        ledger = service.ledger
        reserved = ledger.reserved_of(account) if isinstance(ledger, InMemoryLedger) else 0
        return AccountBalance(account=account, free=ledger.balance_of(account), reserved=reserved)

    @app.get("/events", response_model=list[PacketEvent], tags=["Events"])
    def list_events() -> list[PacketEvent]:
        return service.events.history()

    @app.post("/blocks/advance", response_model=BlockResponse, tags=["System"])
    def advance_blocks(request: AdvanceBlocksRequest) -> BlockResponse:
        if not isinstance(service.clock, BlockClock):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Block height is externally driven")
        return BlockResponse(block=service.clock.advance(request.blocks))

    return app


app = create_app()
