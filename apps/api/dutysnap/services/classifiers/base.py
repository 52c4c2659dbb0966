"""
Uniform contracts for classification and duty providers
"""
import time
from abc import ABC, abstractmethod
from typing import Optional

from ...schemas.classification import ClassificationInput, ClassificationResult, DutyResult, Provider


class MissingCredentialError(Exception):
    """Raised inside an adapter when its backend has no configured access"""


class MalformedResponseError(Exception):
    """Raised inside an adapter when a backend payload does not have the expected shape"""


class ClassificationProvider(ABC):
    """
    One adapter per classification backend.

    Implementations must never raise from classify(): every failure is returned
    as a ClassificationResult carrying an error and zero confidence.
    """

    provider: Provider

    @abstractmethod
    async def classify(self, classification_input: ClassificationInput) -> ClassificationResult:
        ...


class DutyProvider(ABC):
    """Duty/tax calculation backend, failures returned as error-carrying DutyResults"""

    @abstractmethod
    async def calculate_duty(
        self,
        hs_code: str,
        product_value: float,
        currency: str,
        origin_country: str,
        ship_to_country: str,
        provider: Provider = Provider.STRUCTURED,
        code_source: Optional[Provider] = None
    ) -> DutyResult:
        ...


def elapsed_ms(start_time: float) -> float:
    """Milliseconds elapsed since a time.time() reading"""
    return max((time.time() - start_time) * 1000, 0.0)
