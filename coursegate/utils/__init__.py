"""Utility modules for coursegate."""

from coursegate.utils.numbers import clamp, round_half_up


__all__ = ["clamp", "round_half_up"]
