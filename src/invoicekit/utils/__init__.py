"""Parsing helpers for the invoicekit command line."""

from invoicekit.utils.date_parser import parse_date, get_period_range
from invoicekit.utils.money_parser import parse_money, parse_tax_rate
from invoicekit.utils.item_parser import parse_item_arg

__all__ = ["parse_date", "get_period_range", "parse_money", "parse_tax_rate", "parse_item_arg"]
