"""Cash-flow statement built from ledger entries.

Every ledger entry with a line on a cash-like account is a cash movement.
Its amount is ``credit - debit`` on that line (credit is an inflow, debit an
outflow). The entry is placed in a bucket by an ordered rule table that looks
at the other lines' accounts, the reference type and the description; the
first matching rule wins and entries no rule matches are only counted.
"""

import logging
import re
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Mapping, Optional

from invoicekit.database.base import Database
from invoicekit.domain.entities import CashFlowBucket, CashFlowReport, LedgerEntry
from invoicekit.domain.errors import ValidationError
from invoicekit.domain.pricing import quantize_money

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


@dataclass(frozen=True)
class ClassificationRule:
    """Maps a pattern of counter-accounts or references to a bucket.

    Attributes:
        bucket: Bucket assigned when the rule matches
        account_pattern: Regex searched (case-insensitively) in the account IDs
            of the entry's non-cash lines
        reference_types: Reference types (lowercase) that match on their own
        description_pattern: Regex searched in the entry description
    """

    bucket: CashFlowBucket
    account_pattern: Optional[str] = None
    reference_types: frozenset[str] = frozenset()
    description_pattern: Optional[str] = None

    def matches(self, other_accounts: str, reference_type: str, description: str) -> bool:
        if self.account_pattern and re.search(self.account_pattern, other_accounts, re.IGNORECASE):
            return True
        if reference_type and reference_type in self.reference_types:
            return True
        if self.description_pattern and re.search(self.description_pattern, description, re.IGNORECASE):
            return True
        return False


DEFAULT_RULES = (
    ClassificationRule(
        CashFlowBucket.OPERATING,
        account_pattern=r"customer|receivable|sales|revenue|income|payment",
        reference_types=frozenset({"invoice", "payment"}),
    ),
    ClassificationRule(
        CashFlowBucket.OPERATING,
        account_pattern=r"supplier|payable|purchase|vendor",
        reference_types=frozenset({"purchase"}),
    ),
    ClassificationRule(
        CashFlowBucket.INVESTING,
        account_pattern=r"asset|equipment",
        reference_types=frozenset({"asset"}),
        description_pattern=r"asset",
    ),
    ClassificationRule(
        CashFlowBucket.FINANCING,
        account_pattern=r"owner|capital|equity|contribution|investment",
        reference_types=frozenset({"owner"}),
        description_pattern=r"owner|capital",
    ),
    ClassificationRule(
        CashFlowBucket.FINANCING,
        account_pattern=r"loan|liability",
        reference_types=frozenset({"loan"}),
    ),
)

DEFAULT_CASH_KEYWORDS = ("cash", "bank", "wallet", "كاش")


@dataclass(frozen=True)
class CashFlowRuleSet:
    """Cash-account keywords plus the ordered classification rules."""

    rules: tuple[ClassificationRule, ...] = DEFAULT_RULES
    cash_keywords: tuple[str, ...] = DEFAULT_CASH_KEYWORDS

    def is_cash_account(self, account_id: str) -> bool:
        if not account_id:
            return False
        lowered = account_id.lower()
        return any(keyword.lower() in lowered for keyword in self.cash_keywords)

    def cash_line_index(self, entry: LedgerEntry) -> Optional[int]:
        """Index of the first cash line of an entry, or None."""
        for index, line in enumerate(entry.lines):
            if self.is_cash_account(line.account_id):
                return index
        return None

    def cash_movement(self, entry: LedgerEntry) -> Optional[Decimal]:
        """Signed cash amount of an entry (None if it has no cash line)."""
        index = self.cash_line_index(entry)
        if index is None:
            return None
        line = entry.lines[index]
        return (line.credit or ZERO) - (line.debit or ZERO)

    def classify(self, entry: LedgerEntry, cash_index: int) -> Optional[CashFlowBucket]:
        """Bucket of a cash entry, or None if no rule matches."""
        other_accounts = " ".join(
            line.account_id or "" for i, line in enumerate(entry.lines) if i != cash_index
        )
        reference_type = (entry.reference_type or "").lower()
        description = entry.description or ""
        for rule in self.rules:
            if rule.matches(other_accounts, reference_type, description):
                return rule.bucket
        return None


class CashFlowService:
    """Read-only cash-flow reporting over ledger entries and payments."""

    def __init__(
        self,
        db: Database,
        rule_set: Optional[CashFlowRuleSet] = None,
        tenant_rule_sets: Optional[Mapping[str, CashFlowRuleSet]] = None,
    ):
        """Initialize cash-flow service.

        Args:
            db: Database instance
            rule_set: Default rule set
            tenant_rule_sets: Per-tenant overrides of the default rule set
        """
        self.db = db
        self.rule_set = rule_set or CashFlowRuleSet()
        self.tenant_rule_sets = dict(tenant_rule_sets or {})

    def rule_set_for(self, tenant_id: str) -> CashFlowRuleSet:
        return self.tenant_rule_sets.get(tenant_id, self.rule_set)

    def opening_cash(self, tenant_id: str, start: date) -> Decimal:
        """Net cash movement of all entries strictly before ``start``.

        This scans the full ledger history of the tenant.
        """
        opening, _ = self._scan_history(tenant_id, self.rule_set_for(tenant_id), start)
        return opening

    def get_report(self, tenant_id: str, start: date, end: date) -> CashFlowReport:
        """Build the cash-flow report for the closed range ``start``..``end``.

        Payments dated in the range are added to operating inflow only when no
        ledger entry references them (reference type ``payment`` with the
        payment ID), so a journaled payment is never counted twice. The
        journaling entry may be dated anywhere in the ledger.

        Raises:
            ValidationError: If start is after end
        """
        if start > end:
            raise ValidationError(f"Start date {start} is after end date {end}")

        rules = self.rule_set_for(tenant_id)
        opening, journaled_payments = self._scan_history(tenant_id, rules, start)

        inflow = {bucket: ZERO for bucket in CashFlowBucket}
        outflow = {bucket: ZERO for bucket in CashFlowBucket}
        unclassified = 0

        for entry in self.db.list_ledger_entries(tenant_id, start_date=start, end_date=end):
            cash_index = rules.cash_line_index(entry)
            if cash_index is None:
                continue
            line = entry.lines[cash_index]
            amount = (line.credit or ZERO) - (line.debit or ZERO)
            bucket = rules.classify(entry, cash_index)
            if bucket is None:
                unclassified += 1
                logger.debug("Unclassified cash entry %s on %s", entry.id, entry.date)
                continue
            if amount >= 0:
                inflow[bucket] += amount
            else:
                outflow[bucket] += -amount

        fallback_count = 0
        for payment in self.db.list_payments(tenant_id, start_date=start, end_date=end):
            if str(payment.id) in journaled_payments:
                continue
            inflow[CashFlowBucket.OPERATING] += payment.amount
            fallback_count += 1

        net = sum(inflow.values(), ZERO) - sum(outflow.values(), ZERO)
        return CashFlowReport(
            start_date=start,
            end_date=end,
            opening_cash=quantize_money(opening),
            operating_in=quantize_money(inflow[CashFlowBucket.OPERATING]),
            operating_out=quantize_money(outflow[CashFlowBucket.OPERATING]),
            investing_in=quantize_money(inflow[CashFlowBucket.INVESTING]),
            investing_out=quantize_money(outflow[CashFlowBucket.INVESTING]),
            financing_in=quantize_money(inflow[CashFlowBucket.FINANCING]),
            financing_out=quantize_money(outflow[CashFlowBucket.FINANCING]),
            net_cash_flow=quantize_money(net),
            closing_cash=quantize_money(opening + net),
            unclassified_count=unclassified,
            fallback_payment_count=fallback_count,
        )

    def _scan_history(self, tenant_id: str, rules: CashFlowRuleSet, start: date) -> tuple[Decimal, set[str]]:
        """Return opening cash before ``start`` and every payment ID the ledger journals."""
        opening = ZERO
        journaled: set[str] = set()
        for entry in self.db.list_ledger_entries(tenant_id):
            if (entry.reference_type or "").lower() == "payment" and entry.reference_id:
                journaled.add(str(entry.reference_id))
            if entry.date < start:
                movement = rules.cash_movement(entry)
                if movement is not None:
                    opening += movement
        return opening, journaled
