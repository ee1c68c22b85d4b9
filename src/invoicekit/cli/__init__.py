"""Command line interface for invoicekit."""
