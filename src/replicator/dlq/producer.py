"""Dead-letter producer for operations the search engine rejected."""

import logging
import ssl

from aiokafka import AIOKafkaProducer

from config.config import DeadLetterConfig
from core.errors.exceptions import TransientError
from replicator.schemas.envelope import DeadLetterEnvelope

logger = logging.getLogger(__name__)


class DeadLetterError(TransientError):
    """The envelope could not be durably enqueued."""


def build_kafka_security_config(config: DeadLetterConfig) -> dict:
    """Build aiokafka security kwargs from DeadLetterConfig.

    Returns an empty dict for PLAINTEXT connections.
    """
    if config.security_protocol == "PLAINTEXT":
        return {}

    security_config = {"security_protocol": config.security_protocol}

    if "SSL" in config.security_protocol:
        security_config["ssl_context"] = ssl.create_default_context()

    if config.security_protocol.startswith("SASL"):
        security_config["sasl_mechanism"] = config.sasl_mechanism
        security_config["sasl_plain_username"] = config.sasl_plain_username
        security_config["sasl_plain_password"] = config.sasl_plain_password

    return security_config


class DeadLetterProducer:
    """Lazy-initialized Kafka producer for dead-letter routing.

    Only connects on first send, so a batch without rejected operations
    never opens a connection to the sink.
    """

    def __init__(self, config: DeadLetterConfig, log: logging.Logger | None = None):
        self._config = config
        self._log = log or logger
        self._producer: AIOKafkaProducer | None = None

    @property
    def topic(self) -> str:
        return self._config.topic

    async def _ensure_started(self) -> None:
        if self._producer is not None:
            return

        self._log.info(
            "Initializing dead-letter producer",
            extra={"dlq_topic": self._config.topic},
        )

        producer_config = {
            "bootstrap_servers": self._config.bootstrap_servers,
            "request_timeout_ms": self._config.request_timeout_ms,
            "acks": "all",
            "enable_idempotence": True,
            "retry_backoff_ms": 1000,
        }
        producer_config.update(build_kafka_security_config(self._config))

        producer = AIOKafkaProducer(**producer_config)
        try:
            await producer.start()
        except Exception:
            # Release the partially opened client
            await producer.stop()
            raise
        self._producer = producer

        self._log.info(
            "Dead-letter producer started successfully",
            extra={"dlq_topic": self._config.topic},
        )

    async def send(self, envelope: DeadLetterEnvelope) -> None:
        """
        Durably enqueue one envelope; returns once the broker acknowledged it.

        Raises:
            DeadLetterError: the producer could not start or the send failed
        """
        try:
            await self._ensure_started()
            metadata = await self._producer.send_and_wait(
                self._config.topic,
                key=envelope.id.encode("utf-8"),
                value=envelope.to_json().encode("utf-8"),
                headers=[
                    ("dlq_op_kind", str(envelope.op_kind).encode("utf-8")),
                    ("dlq_index", envelope.index.encode("utf-8")),
                ],
            )
        except Exception as e:
            raise DeadLetterError(
                f"Failed to enqueue dead-letter envelope for id={envelope.id}",
                cause=e,
                context={"document_id": envelope.id, "dlq_topic": self._config.topic},
            ) from e

        self._log.info(
            "Envelope sent to dead-letter topic",
            extra={
                "dlq_topic": self._config.topic,
                "dlq_partition": metadata.partition,
                "dlq_offset": metadata.offset,
                "document_id": envelope.id,
                "op_kind": str(envelope.op_kind),
            },
        )

    async def stop(self) -> None:
        if self._producer is None:
            return

        try:
            await self._producer.flush()
            await self._producer.stop()
            self._log.info("Dead-letter producer stopped successfully")
        except Exception:
            self._log.error("Error stopping dead-letter producer", exc_info=True)
        finally:
            self._producer = None
