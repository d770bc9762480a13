"""
Validators module - Inspect visited states and report issues.
"""

from eva_qa.validators.accessibility import AccessibilityValidator
from eva_qa.validators.pipeline import ValidationPipeline
from eva_qa.validators.responsive import ResponsiveValidator

__all__ = [
    "ValidationPipeline",
    "ResponsiveValidator",
    "AccessibilityValidator",
]
