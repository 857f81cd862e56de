"""Reader interface for statement files."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Sequence

from draftledger.domain.entities import StatementMovement
from draftledger.domain.errors import ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StatementHeader:
    """Account information found at the top of a statement."""

    account_iban: Optional[str] = None
    account_number: Optional[str] = None
    description: Optional[str] = None

    @property
    def account_reference(self) -> Optional[str]:
        return self.account_number or self.account_iban


@dataclass(frozen=True)
class StatementParseResult:
    header: StatementHeader
    movements: tuple[StatementMovement, ...]


class StatementReader(ABC):
    """Parses one statement file format."""

    @abstractmethod
    def parse(self, file_name: str, data: bytes) -> Optional[StatementParseResult]:
        """Parse a file. Returns None if the file is not in this reader's format."""
        pass


def parse_statement(
    readers: Sequence[StatementReader], file_name: str, data: bytes
) -> StatementParseResult:
    """Parse with the first reader that yields movements.

    Raises:
        ValidationError: If no reader understands the file
    """
    for reader in readers:
        result = reader.parse(file_name, data)
        if result is not None and result.movements:
            logger.debug(
                "%s parsed %d movements from %s",
                type(reader).__name__,
                len(result.movements),
                file_name,
            )
            return result
    raise ValidationError(f"No statement reader could parse '{file_name}'")
