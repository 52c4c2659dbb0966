"""
Classification and duty provider adapters

- OpenAIReasoningClassifier: free-form image/text classifier with value estimation
- ZonosClassifier: structured classifier requiring text or an image URL
- ZonosDutyCalculator: landed cost calculation with domestic shipment handling
"""

from .base import (
    ClassificationProvider,
    DutyProvider,
    MissingCredentialError,
    MalformedResponseError,
)
from .openai_reasoning import OpenAIReasoningClassifier
from .zonos import ZonosClient, ZonosClassifier, ZonosDutyCalculator
from .countries import is_domestic_shipment

__all__ = [
    'ClassificationProvider',
    'DutyProvider',
    'MissingCredentialError',
    'MalformedResponseError',
    'OpenAIReasoningClassifier',
    'ZonosClient',
    'ZonosClassifier',
    'ZonosDutyCalculator',
    'is_domestic_shipment',
]
