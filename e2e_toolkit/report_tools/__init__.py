"""Allure reporting helpers."""

from .allure_utils import attach_file, attach_json, attach_png, attach_text

__all__ = [
    "attach_file",
    "attach_json",
    "attach_png",
    "attach_text",
]
