"""Operator notifications."""

from crossarb.notify.telegram import TelegramNotifier, format_message


__all__ = [
    "TelegramNotifier",
    "format_message",
]
