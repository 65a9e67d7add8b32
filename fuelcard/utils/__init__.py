"""Mini README: Utility helpers for the fuel card tracker.

Currently exports the display formatting used by both interfaces.
"""

from .display import confirmation_prompt, describe_record, format_money, record_view

__all__ = ["confirmation_prompt", "describe_record", "format_money", "record_view"]
