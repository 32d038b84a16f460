"""Configuration management for wallet-ledger."""

from dataclasses import dataclass, field
from typing import Any

from wallet_ledger.exceptions import ConfigurationError

SWIFT_POLICIES = ("strict", "non_empty")
NOTIFICATION_CHANNELS = ("none", "log", "kafka")


@dataclass
class OtpConfig:
    """One-time passcode issuance and expiry settings."""

    ttl_seconds: int = 300
    code_length: int = 4
    sweep_interval_seconds: float = 60.0
    # Demo posture: the code is echoed back to the caller as well as delivered
    return_code_to_caller: bool = True
    delivery_timeout_seconds: float = 5.0

    def __post_init__(self) -> None:
        if self.ttl_seconds <= 0:
            raise ConfigurationError("OTP TTL must be positive")
        if not 4 <= self.code_length <= 10:
            raise ConfigurationError("OTP code length must be between 4 and 10")
        if self.sweep_interval_seconds <= 0:
            raise ConfigurationError("OTP sweep interval must be positive")
        if self.delivery_timeout_seconds <= 0:
            raise ConfigurationError("OTP delivery timeout must be positive")


@dataclass
class TransferConfig:
    """Settlement and validation policy for transfers."""

    settlement_days: int = 2
    swift_policy: str = "strict"

    def __post_init__(self) -> None:
        if self.swift_policy not in SWIFT_POLICIES:
            raise ConfigurationError(
                f"Unknown SWIFT policy {self.swift_policy!r}, expected one of {SWIFT_POLICIES}"
            )
        if self.settlement_days < 0:
            raise ConfigurationError("Settlement days cannot be negative")


@dataclass
class KafkaConfig:
    """Kafka producer configuration for OTP delivery events."""

    bootstrap_servers: str = "localhost:9092"
    acks: str = "all"
    linger_ms: int = 5
    retries: int = 3
    otp_topic: str = "wallet.otp-delivery"

    def to_dict(self) -> dict[str, Any]:
        """Convert to confluent-kafka config dict."""
        return {
            "bootstrap.servers": self.bootstrap_servers,
            "acks": self.acks,
            "linger.ms": self.linger_ms,
            "retries": self.retries,
        }


@dataclass
class NotificationConfig:
    """Which notifier delivers OTP codes.

    ``"log"`` writes codes to the application log and is for demos only.
    """

    channel: str = "none"

    def __post_init__(self) -> None:
        if self.channel not in NOTIFICATION_CHANNELS:
            raise ConfigurationError(
                f"Unknown notification channel {self.channel!r}, expected one of {NOTIFICATION_CHANNELS}"
            )


@dataclass
class LedgerConfig:
    """Main configuration for wallet-ledger."""

    otp: OtpConfig = field(default_factory=OtpConfig)
    transfer: TransferConfig = field(default_factory=TransferConfig)
    kafka: KafkaConfig = field(default_factory=KafkaConfig)
    notification: NotificationConfig = field(default_factory=NotificationConfig)
    log_level: str = "INFO"
    log_format: str = "standard"

    @classmethod
    def from_env(cls) -> "LedgerConfig":
        """Create config from environment variables."""
        import os

        try:
            otp = OtpConfig(
                ttl_seconds=int(os.getenv("OTP_TTL_SECONDS", "300")),
                code_length=int(os.getenv("OTP_CODE_LENGTH", "4")),
                sweep_interval_seconds=float(os.getenv("OTP_SWEEP_INTERVAL", "60")),
                return_code_to_caller=os.getenv("OTP_RETURN_CODE", "true").lower() == "true",
                delivery_timeout_seconds=float(os.getenv("OTP_DELIVERY_TIMEOUT", "5")),
            )
            transfer = TransferConfig(
                settlement_days=int(os.getenv("SETTLEMENT_DAYS", "2")),
                swift_policy=os.getenv("SWIFT_POLICY", "strict"),
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid numeric setting: {e}") from e

        kafka = KafkaConfig(
            bootstrap_servers=os.getenv("KAFKA_BOOTSTRAP_SERVERS", "localhost:9092"),
            acks=os.getenv("KAFKA_ACKS", "all"),
            otp_topic=os.getenv("OTP_TOPIC", "wallet.otp-delivery"),
        )

        notification = NotificationConfig(
            channel=os.getenv("NOTIFICATION_CHANNEL", "none"),
        )

        return cls(
            otp=otp,
            transfer=transfer,
            kafka=kafka,
            notification=notification,
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "standard"),
        )
