"""Recurring invoice templates and scheduled generation."""

import logging
from dataclasses import replace
from datetime import date, timedelta
from typing import Iterable, Optional

from dateutil.relativedelta import relativedelta

from invoicekit.database.base import Database
from invoicekit.domain.cache import WriteHook, notify_write
from invoicekit.domain.entities import (
    Frequency,
    Invoice,
    RecurringFailure,
    RecurringRunResult,
    RecurringTemplate,
)
from invoicekit.domain.errors import ConflictError, NotFoundError, ValidationError, template_not_found
from invoicekit.domain.invoice import InvoiceService
from invoicekit.domain.permissions import INVOICES, RECURRING, Capability, require
from invoicekit.domain.pricing import validate_items

logger = logging.getLogger(__name__)


def next_due_after(template: RecurringTemplate, current: date) -> date:
    """Advance ``current`` by one period of the template's frequency.

    Monthly and yearly steps are anchored on the start date, so a template
    starting on the 31st bills on the last day of shorter months and returns
    to the 31st afterwards.
    """
    if template.frequency == Frequency.WEEKLY:
        return current + timedelta(days=7)
    if template.frequency == Frequency.MONTHLY:
        return current + relativedelta(months=1, day=template.start_date.day)
    if template.frequency == Frequency.YEARLY:
        return current + relativedelta(years=1, month=template.start_date.month, day=template.start_date.day)
    raise ValidationError(f"Unsupported frequency '{template.frequency}'")


def is_due(template: RecurringTemplate, as_of: date) -> bool:
    """True if the template should produce an invoice on ``as_of``."""
    if template.next_due_date is None or template.next_due_date > as_of:
        return False
    return template.end_date is None or template.end_date >= as_of


class RecurringService:
    """Service for recurring templates and due-invoice generation."""

    def __init__(
        self,
        db: Database,
        invoices: Optional[InvoiceService] = None,
        on_write: Optional[Iterable[WriteHook]] = None,
    ):
        """Initialize recurring service.

        Args:
            db: Database instance
            invoices: Invoice service used to create generated invoices
            on_write: Hooks fired after templates change
        """
        self.db = db
        self.invoices = invoices or InvoiceService(db)
        self.on_write = tuple(on_write or ())

    # Template management
    def save_template(
        self, tenant_id: str, template: RecurringTemplate, capability: Optional[Capability] = None
    ) -> RecurringTemplate:
        """Create or update a recurring template.

        ``next_due_date`` defaults to ``start_date``.

        Raises:
            ValidationError: If items, tax rate or dates are invalid
            NotFoundError: If updating a template that does not exist
        """
        require(capability, RECURRING)
        validate_items(template.items)
        if template.tax_rate < 0:
            raise ValidationError("Tax rate cannot be negative")
        if template.end_date is not None and template.end_date < template.start_date:
            raise ValidationError("End date cannot be before start date")

        to_save = replace(
            template,
            items=tuple(template.items),
            next_due_date=template.next_due_date or template.start_date,
        )
        if to_save.next_due_date < to_save.start_date:
            raise ValidationError("Next due date cannot be before start date")

        if to_save.id is None:
            to_save = replace(to_save, id=self.db.create_template(tenant_id, to_save))
        else:
            self.require_template(tenant_id, to_save.id)
            self.db.update_template(tenant_id, to_save)

        notify_write(self.on_write, tenant_id, "recurring_templates")
        return self.db.get_template(tenant_id, to_save.id) or to_save

    def get_template(self, tenant_id: str, template_id: int) -> Optional[RecurringTemplate]:
        return self.db.get_template(tenant_id, template_id)

    def require_template(self, tenant_id: str, template_id: int) -> RecurringTemplate:
        """Get template by ID or raise NotFoundError."""
        template = self.db.get_template(tenant_id, template_id)
        if template is None:
            raise NotFoundError(template_not_found(template_id))
        return template

    def list_templates(self, tenant_id: str) -> list[RecurringTemplate]:
        return self.db.list_templates(tenant_id)

    def delete_template(self, tenant_id: str, template_id: int, capability: Optional[Capability] = None) -> bool:
        """Delete a template. Invoices it already produced are kept.

        Raises:
            NotFoundError: If the template does not exist
        """
        require(capability, RECURRING)
        if not self.db.delete_template(tenant_id, template_id):
            raise NotFoundError(template_not_found(template_id))
        notify_write(self.on_write, tenant_id, "recurring_templates")
        return True

    # Generation
    def build_invoice(self, template: RecurringTemplate, as_of: date) -> Invoice:
        """Build the unsaved invoice a template produces for its current period."""
        return Invoice(
            customer_id=template.customer_id,
            customer_name=template.customer_name,
            issue_date=as_of,
            due_date=as_of,
            items=template.items,
            tax_rate=template.tax_rate,
            source_template_id=template.id,
            source_period=template.next_due_date,
        )

    def generate_due(
        self, tenant_id: str, as_of: date, capability: Optional[Capability] = None
    ) -> RecurringRunResult:
        """Generate one invoice per due template and advance each schedule one period.

        Only a single period is generated per template per call, even if more
        have elapsed; use ``catch_up`` to loop until nothing is due. A template
        that fails is logged and reported in ``failures`` and the remaining
        templates are still processed.

        Args:
            tenant_id: Tenant ID
            as_of: Reference date
            capability: Optional capability to enforce

        Returns:
            RecurringRunResult with created invoices, failures and advanced templates
        """
        require(capability, RECURRING)
        require(capability, INVOICES)

        invoices: list[Invoice] = []
        failures: list[RecurringFailure] = []
        advanced: list[int] = []

        for template in self.db.list_templates(tenant_id, due_on_or_before=as_of):
            if not is_due(template, as_of):
                continue
            try:
                invoice, created = self._generate_period(tenant_id, template, as_of)
            except Exception as e:
                logger.exception("Recurring template %s failed for tenant %s", template.id, tenant_id)
                failures.append(RecurringFailure(template_id=template.id, error=str(e)))
                continue
            if created:
                invoices.append(invoice)
            advanced.append(template.id)

        if advanced:
            notify_write(self.on_write, tenant_id, "recurring_templates")
        return RecurringRunResult(
            invoices=tuple(invoices), failures=tuple(failures), advanced_template_ids=tuple(advanced)
        )

    def catch_up(
        self, tenant_id: str, as_of: date, max_rounds: int = 120, capability: Optional[Capability] = None
    ) -> RecurringRunResult:
        """Call ``generate_due`` repeatedly until no template advances."""
        invoices: list[Invoice] = []
        failures: list[RecurringFailure] = []
        advanced: list[int] = []
        for _ in range(max_rounds):
            result = self.generate_due(tenant_id, as_of, capability=capability)
            invoices.extend(result.invoices)
            failures.extend(result.failures)
            advanced.extend(result.advanced_template_ids)
            if not result.advanced_template_ids:
                break
        return RecurringRunResult(
            invoices=tuple(invoices), failures=tuple(failures), advanced_template_ids=tuple(advanced)
        )

    def _generate_period(self, tenant_id: str, template: RecurringTemplate, as_of: date) -> tuple[Invoice, bool]:
        """Create the invoice for the template's current period, then advance it.

        The invoice carries (template id, period) as its generation marker, so
        a run that crashed after creating the invoice but before advancing the
        schedule only redoes the advance.

        Returns:
            Tuple of (invoice for the period, whether it was created by this call)
        """
        period = template.next_due_date
        invoice = self.db.find_invoice_by_source(tenant_id, template.id, period)
        created = False

        if invoice is None:
            try:
                invoice = self.invoices.save(tenant_id, self.build_invoice(template, as_of))
                created = True
            except ConflictError:
                # A concurrent run may have created this period first
                invoice = self.db.find_invoice_by_source(tenant_id, template.id, period)
                if invoice is None:
                    raise
        else:
            logger.info(
                "Template %s already generated invoice %s for %s; advancing schedule only",
                template.id, invoice.number, period,
            )

        next_due = next_due_after(template, period)
        if not self.db.advance_template(tenant_id, template.id, period, next_due):
            logger.info("Template %s was already advanced past %s", template.id, period)
        return invoice, created
