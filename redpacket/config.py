import logging
import os
from dataclasses import dataclass, field
from typing import Optional


DEFAULT_MAX_BALANCE = 2**128 - 1
DEFAULT_GENESIS = "alice=1000,bob=1000,carol=1000"


def parse_genesis(raw: str) -> dict[str, int]:
    balances: dict[str, int] = {}
    for pair in raw.split(","):
        pair = pair.strip()
        if not pair:
            continue
        name, _, amount = pair.partition("=")
        if not name or not amount:
            raise ValueError(f"Malformed genesis entry: {pair!r}")
        balances[name.strip()] = int(amount)
    return balances


@dataclass
class Settings:
    max_balance: int = DEFAULT_MAX_BALANCE
    log_level: str = "INFO"
    genesis_balances: dict[str, int] = field(default_factory=dict)


def load_settings(environ: Optional[dict] = None) -> Settings:
    env = os.environ if environ is None else environ
    max_balance = int(env.get("REDPACKET_MAX_BALANCE", DEFAULT_MAX_BALANCE))
    if max_balance <= 0:
        raise ValueError("REDPACKET_MAX_BALANCE must be positive")
    return Settings(
        max_balance=max_balance,
        log_level=env.get("REDPACKET_LOG_LEVEL", "INFO").upper(),
        genesis_balances=parse_genesis(env.get("REDPACKET_GENESIS_BALANCES", DEFAULT_GENESIS)),
    )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
