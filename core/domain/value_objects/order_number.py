"""Human-readable references for orders and payments."""
import random
import re
import time
from dataclasses import dataclass

_REFERENCE_PATTERN = re.compile(r"^[A-Z]{2,8}-\d{13,}-\d{3}$")


@dataclass(frozen=True)
class _Reference:
    """
    Base for ``PREFIX-<epoch millis>-<3 random digits>`` identifiers.

    The timestamp keeps references roughly sortable by creation time; the
    random suffix only makes collisions unlikely, so callers must still
    treat a duplicate as a retryable creation failure.
    """
    value: str

    default_prefix = "REF"

    def __post_init__(self):
        if not self.value:
            raise ValueError(f"{type(self).__name__} cannot be empty")
        if not _REFERENCE_PATTERN.match(self.value):
            raise ValueError(
                f"Invalid {type(self).__name__} format "
                f"(expected PREFIX-<millis>-<NNN>): {self.value}"
            )

    @classmethod
    def generate(cls, prefix: str = None):
        prefix = (prefix or cls.default_prefix).upper()
        timestamp = int(time.time() * 1000)
        suffix = f"{random.randint(0, 999):03d}"
        return cls(f"{prefix}-{timestamp}-{suffix}")

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class OrderNumber(_Reference):
    """
    Order number.

    Examples:
    - ORD-1718203124555-042
    """
    default_prefix = "ORD"


@dataclass(frozen=True)
class PaymentReference(_Reference):
    """
    Payment reference, unique across all payments.

    Examples:
    - PAY-1718203124987-731
    """
    default_prefix = "PAY"
