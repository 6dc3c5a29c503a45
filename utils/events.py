"""Structured calculation events on top of the Powertools logger"""
from typing import Any

from aws_lambda_powertools import Logger


def emit_event(logger: Logger, event: str, calculation_id: str, level: str = "info", **fields: Any) -> None:
    """
    Log a named pricing event with its calculation id as structured keys.

    Keys land at the top level of the JSON log line, so failures and anomalies
    can be filtered by `event` and `calculation_id` instead of parsed from text.
    """
    log = getattr(logger, level)
    log(event, extra={"event": event, "calculation_id": calculation_id, **fields})
