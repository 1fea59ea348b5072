"""
================================================================================
Allure Report Utilities
================================================================================

Attachment helpers used by page objects, the scenario runner and the
failure-screenshot hook.

================================================================================
"""

import json
from pathlib import Path
from typing import Any, Union

import allure
from loguru import logger


def attach_json(data: Any, name: str = "Data"):
    """
    Attach JSON data to Allure report.

    Args:
        data: Data to attach (will be JSON serialized)
        name: Attachment name
    """
    json_str = json.dumps(data, indent=2, default=str)
    allure.attach(
        json_str,
        name=name,
        attachment_type=allure.attachment_type.JSON
    )


def attach_text(text: str, name: str = "Text"):
    """
    Attach text content to Allure report.

    Args:
        text: Text to attach
        name: Attachment name
    """
    allure.attach(
        text,
        name=name,
        attachment_type=allure.attachment_type.TEXT
    )


def attach_png(image: bytes, name: str = "Screenshot"):
    """
    Attach PNG bytes (e.g. a Playwright screenshot) to Allure report.

    Args:
        image: PNG image bytes
        name: Attachment name
    """
    allure.attach(
        image,
        name=name,
        attachment_type=allure.attachment_type.PNG
    )


def attach_file(path: Union[str, Path], name: str = None):
    """
    Attach an existing PNG file to Allure report.

    Missing files are logged and skipped.
    """
    path = Path(path)
    if not path.exists():
        logger.warning(f"Attachment file not found, skipping: {path}")
        return
    allure.attach.file(
        str(path),
        name=name or path.name,
        attachment_type=allure.attachment_type.PNG
    )
