"""JSON Lines log of chat request outcomes."""
import json
import logging
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)


class ChatEventLogger:
    """Appends one JSON object per chat outcome to a log file."""

    def __init__(self, log_file_path: Optional[str] = "logs/chat_events.jsonl"):
        """
        Args:
            log_file_path: Target file; None or "" keeps events in the app log only
        """
        self.log_file_path = log_file_path or None
        self._lock = threading.Lock()
        self._file = None

        if self.log_file_path:
            path = Path(self.log_file_path)
            path.parent.mkdir(parents=True, exist_ok=True)
            self._file = open(path, "a", encoding="utf-8")
            logger.info(f"Chat events logged to {path}")

    def log_chat_event(
        self,
        client_key: str,
        outcome: str,
        message_length: int,
        history_length: int,
        intents: List[str],
        latency_ms: int,
        sentiment: Optional[str] = None,
        error_code: Optional[str] = None,
        tokens_input: Optional[int] = None,
        tokens_output: Optional[int] = None
    ) -> dict:
        """
        Record one chat outcome.

        Args:
            client_key: Rate-limit key of the caller (usually the IP)
            outcome: responded, fallback_responded, rate_limited or rejected
            message_length: Characters in the user message
            history_length: Turns sent to the model after normalization
            intents: Detected intent labels
            latency_ms: End-to-end handling time
            sentiment: Coarse sentiment label
            error_code: Validation reason or upstream error code
            tokens_input: Prompt tokens reported by the model
            tokens_output: Completion tokens reported by the model

        Returns:
            The event as written
        """
        event = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "client": client_key,
            "outcome": outcome,
            "message_length": message_length,
            "history_length": history_length,
            "intents": list(intents),
            "sentiment": sentiment,
            "error_code": error_code,
            "latency_ms": latency_ms,
            "tokens_input": tokens_input,
            "tokens_output": tokens_output,
        }

        logger.info(f"Chat {outcome}", extra={"event": event})

        if self._file is not None:
            line = json.dumps(event, ensure_ascii=False)
            with self._lock:
                self._file.write(line + "\n")
                self._file.flush()

        return event

    def close(self) -> None:
        with self._lock:
            if self._file is not None:
                self._file.close()
                self._file = None
