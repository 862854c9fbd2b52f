"""Structured logging configuration using structlog."""

import logging
import re
import sys
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, override

import structlog

# ANSI escape code pattern for stripping colors
ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;]*m")

# PII patterns masked in interaction logs
PII_PATTERNS = {
    "email": r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Z|a-z]{2,}\b",
    "phone": r"\b\d{3}[-.]?\d{3}[-.]?\d{4}\b",
    "api_key": r"\b(sk-|AKIA|ghp_)[A-Za-z0-9_-]{20,}\b",
    "ip_address": r"\b\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}\b",
}

URL_WITH_CREDENTIALS_PATTERN = re.compile(r"https?://[^\s]+:[^\s]+@[^\s]+", re.IGNORECASE)

INTERACTION_LOGGER = "interaction"
MAX_LOGGED_TEXT = 500


def strip_ansi(text: str) -> str:
    """Remove ANSI escape codes from text."""
    return ANSI_ESCAPE.sub("", text)


def mask_pii_in_message(message: str) -> tuple[str, list[str]]:
    """Mask PII in a log message.

    Args:
        message: Original message

    Returns:
        (masked_message, detected_types)
    """
    detected: list[str] = []
    masked = message

    for pii_type, pattern in PII_PATTERNS.items():
        for match in re.finditer(pattern, message, re.IGNORECASE):
            original = match.group()
            detected.append(pii_type)

            if pii_type == "api_key":
                replacement = "***"
            elif pii_type == "email":
                replacement = f"***@{original.split('@')[1]}"
            elif pii_type == "ip_address":
                replacement = "***.***.***.***"
            else:
                replacement = f"***{original[-4:]}"

            masked = masked.replace(original, replacement, 1)

    for match in URL_WITH_CREDENTIALS_PATTERN.finditer(message):
        detected.append("url_with_credentials")
        masked = masked.replace(match.group(), "https://***:***@***", 1)

    return masked, detected


class CleanFileHandler(logging.Handler):
    """File handler that writes plain logs without ANSI codes and rotates by size."""

    def __init__(self, filepath: Path, max_size_mb: int = 10, max_days: int = 30):
        super().__init__()
        self.filepath = filepath
        self.max_size = max_size_mb * 1024 * 1024
        self.max_days = max_days

    @override
    def emit(self, record: Any) -> None:
        try:
            msg = strip_ansi(self.format(record))

            with open(self.filepath, "a", encoding="utf-8") as f:
                f.write(msg + "\n")

            if self.filepath.stat().st_size > self.max_size:
                self._rotate()

        except Exception:
            self.handleError(record)

    def _rotate(self) -> None:
        """Rotate log file with timestamp and drop expired rotations."""
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        if self.filepath.exists():
            self.filepath.rename(self.filepath.with_suffix(f".{timestamp}.log"))

        cutoff = datetime.now() - timedelta(days=self.max_days)
        for log_file in self.filepath.parent.glob(f"{self.filepath.stem}.*.log"):
            try:
                file_time = datetime.strptime(log_file.stem.split(".")[-1], "%Y%m%d_%H%M%S")
                if file_time < cutoff:
                    log_file.unlink()
            except (ValueError, OSError):
                continue


def setup_logging(
    log_level: str = "INFO",
    json_format: bool = False,
    log_dir: str | Path | None = None,
) -> None:
    """Configure structured logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        json_format: If True, output JSON format; otherwise, console-friendly format
        log_dir: If set, also write app, error and interaction logs to files there
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper()))

    # Remove existing handlers to avoid duplicates
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger.addHandler(console_handler)

    if log_dir:
        directory = Path(log_dir)
        directory.mkdir(parents=True, exist_ok=True)

        app_handler = CleanFileHandler(directory / "app.log", max_size_mb=10, max_days=30)
        app_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        app_handler.setLevel(logging.DEBUG)
        root_logger.addHandler(app_handler)

        error_handler = CleanFileHandler(directory / "error.log", max_size_mb=5, max_days=60)
        error_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s\n%(exc_info)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        error_handler.setLevel(logging.ERROR)
        root_logger.addHandler(error_handler)

        interaction_handler = CleanFileHandler(
            directory / "interaction.log", max_size_mb=20, max_days=7
        )
        interaction_handler.setFormatter(
            logging.Formatter("%(asctime)s | %(message)s", datefmt="%Y-%m-%d %H:%M:%S")
        )
        interaction_logger = logging.getLogger(INTERACTION_LOGGER)
        interaction_logger.addHandler(interaction_handler)
        interaction_logger.setLevel(logging.INFO)
        interaction_logger.propagate = False

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_format:
        processors_list = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors_list = shared_processors + [
            structlog.dev.ConsoleRenderer(colors=True),
        ]

    structlog.configure(
        processors=processors_list,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> Any:
    """Get a configured logger instance."""
    return structlog.get_logger(name)


def _truncate(text: str | None) -> str | None:
    if text is None:
        return None
    return text[:MAX_LOGGED_TEXT] + "..." if len(text) > MAX_LOGGED_TEXT else text


def log_interaction(
    session_key: str,
    outcome: str,
    question: str | None = None,
    answer: str | None = None,
    confidence: float | None = None,
    tenant_id: str | None = None,
    channel_id: str | None = None,
    duration_ms: float | None = None,
) -> None:
    """Log one handled inbound message in a readable, PII-masked line.

    Args:
        session_key: Session the message belongs to
        outcome: Outcome kind produced for the message
        question: User's message text
        answer: Text sent back (truncated if too long)
        confidence: Confidence reported by the AI capability
        tenant_id: Tenant of the originating channel
        channel_id: Originating channel
        duration_ms: Handling duration in milliseconds
    """
    logger = logging.getLogger(INTERACTION_LOGGER)

    question = _truncate(question)
    answer = _truncate(answer)
    if question:
        question, _ = mask_pii_in_message(question)
    if answer:
        answer, _ = mask_pii_in_message(answer)

    parts = [f"[{outcome.upper()}] session={session_key}"]

    if tenant_id or channel_id:
        parts.append(f"channel={tenant_id}/{channel_id}")

    if question:
        parts.append(f"| Q: {question}")

    if answer:
        parts.append(f"| A: {answer}")

    if confidence is not None:
        parts.append(f"| confidence={confidence:.2f}")

    if duration_ms:
        parts.append(f"| {duration_ms:.0f}ms")

    logger.info(" ".join(parts))
