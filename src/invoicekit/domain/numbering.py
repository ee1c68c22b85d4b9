"""Document number allocation service."""

import logging
import time
from typing import Callable, Iterable, Optional

from invoicekit.database.base import Database
from invoicekit.domain.cache import WriteHook, notify_write
from invoicekit.domain.entities import DocumentType
from invoicekit.domain.permissions import INVOICES, QUOTES, Capability, require
from invoicekit.domain.retry import StaleWrite, retry_on_conflict
from invoicekit.domain.settings import CoreSettings

logger = logging.getLogger(__name__)

PREFIXES = {
    DocumentType.INVOICE: "INV",
    DocumentType.QUOTE: "QT",
}


def format_document_number(doc_type: DocumentType, number: int, padding: int = 4) -> str:
    """Format a running number, e.g. ``INV-0001`` or ``QT-0042``."""
    return f"{PREFIXES[doc_type]}-{number:0{padding}d}"


class DocumentNumberService:
    """Issues sequential, tenant-scoped document numbers."""

    def __init__(
        self,
        db: Database,
        settings: Optional[CoreSettings] = None,
        on_write: Optional[Iterable[WriteHook]] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize document number service.

        Args:
            db: Database instance
            settings: Retry and formatting settings
            on_write: Hooks fired after the counter changes
            sleep: Sleep function used between retries
        """
        self.db = db
        self.settings = settings or CoreSettings()
        self.on_write = tuple(on_write or ())
        self._sleep = sleep

    def allocate(
        self, tenant_id: str, doc_type: DocumentType, capability: Optional[Capability] = None
    ) -> str:
        """Allocate the next number for ``doc_type``.

        The counter is advanced with compare-and-set, so two concurrent callers
        can never receive the same number; the loser re-reads and tries again.

        Args:
            tenant_id: Tenant ID
            doc_type: Invoice or quote
            capability: Optional capability to enforce

        Returns:
            Formatted document number

        Raises:
            PermissionDenied: If the capability does not cover the document type
            ConcurrentModificationConflict: If every attempt lost its race
        """
        require(capability, INVOICES if doc_type == DocumentType.INVOICE else QUOTES)

        def attempt() -> int:
            current = self.db.get_counter(tenant_id).last_for(doc_type)
            if not self.db.compare_and_set_counter(tenant_id, doc_type, current, current + 1):
                raise StaleWrite()
            return current + 1

        number = retry_on_conflict(
            attempt,
            what=f"{doc_type.value} counter of tenant '{tenant_id}'",
            settings=self.settings,
            sleep=self._sleep,
        )
        notify_write(self.on_write, tenant_id, "counters")
        formatted = format_document_number(doc_type, number, self.settings.number_padding)
        logger.debug("Allocated %s for tenant %s", formatted, tenant_id)
        return formatted

    def peek(self, tenant_id: str, doc_type: DocumentType) -> str:
        """Return the number the next ``allocate`` call would issue, without reserving it."""
        current = self.db.get_counter(tenant_id).last_for(doc_type)
        return format_document_number(doc_type, current + 1, self.settings.number_padding)
