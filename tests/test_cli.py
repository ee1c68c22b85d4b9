"""Tests for CLI commands."""

import re

from invoicekit.cli.main import cli


def run(cli_runner, temp_db, *args, tenant="acme"):
    return cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "--tenant", tenant, *args])


def add_product(cli_runner, temp_db, name="Widget", price="10.00", stock="10"):
    result = run(cli_runner, temp_db, "product", "add", name, "--price", price, "--stock", stock)
    assert result.exit_code == 0, result.output
    return re.search(r"\(ID: (\d+)\)", result.output).group(1)


def add_invoice(cli_runner, temp_db, product_id, qty, *extra):
    result = run(
        cli_runner, temp_db, "invoice", "add", "--customer", "C1", "--item", f"{product_id}:{qty}",
        "--date", "2024-01-15", *extra,
    )
    assert result.exit_code == 0, result.output
    return re.search(r"\(ID: (\d+)\)", result.output).group(1)


def test_help_does_not_need_database(cli_runner):
    result = cli_runner.invoke(cli, ["--help"])
    assert result.exit_code == 0
    assert "invoice" in result.output


def test_product_add_and_list(cli_runner, temp_db):
    add_product(cli_runner, temp_db)
    result = run(cli_runner, temp_db, "product", "list")

    assert result.exit_code == 0
    assert "Widget" in result.output
    assert "Stock: 10" in result.output


def test_product_add_invalid_price(cli_runner, temp_db):
    result = run(cli_runner, temp_db, "product", "add", "Widget", "--price", "abc")
    assert result.exit_code == 1
    assert "Invalid price" in result.output


def test_invoice_add_takes_stock(cli_runner, temp_db):
    product_id = add_product(cli_runner, temp_db)
    result = run(
        cli_runner, temp_db, "invoice", "add", "--customer", "C1", "--item", f"{product_id}:3",
        "--date", "2024-01-15", "--tax-rate", "10",
    )

    assert result.exit_code == 0, result.output
    assert "Created invoice INV-0001" in result.output
    assert "Total: 33.00" in result.output
    assert "Stock: 7" in run(cli_runner, temp_db, "product", "list").output


def test_invoice_add_insufficient_stock(cli_runner, temp_db):
    product_id = add_product(cli_runner, temp_db, stock="2")
    result = run(cli_runner, temp_db, "invoice", "add", "--customer", "C1", "--item", f"{product_id}:3")

    assert result.exit_code == 1
    assert "Error: Insufficient stock" in result.output


def test_invoice_add_unknown_product(cli_runner, temp_db):
    result = run(cli_runner, temp_db, "invoice", "add", "--customer", "C1", "--item", "99:1")
    assert result.exit_code == 1
    assert "Product 99 not found" in result.output


def test_invoice_show_and_list(cli_runner, temp_db):
    product_id = add_product(cli_runner, temp_db)
    invoice_id = add_invoice(cli_runner, temp_db, product_id, 2)

    shown = run(cli_runner, temp_db, "invoice", "show", invoice_id)
    assert shown.exit_code == 0
    assert "Invoice INV-0001" in shown.output
    assert "Outstanding: 20.00" in shown.output

    listed = run(cli_runner, temp_db, "invoice", "list", "--status", "due")
    assert "INV-0001" in listed.output


def test_invoice_delete_returns_stock(cli_runner, temp_db):
    product_id = add_product(cli_runner, temp_db)
    invoice_id = add_invoice(cli_runner, temp_db, product_id, 4)

    result = run(cli_runner, temp_db, "invoice", "delete", invoice_id, "--yes")

    assert result.exit_code == 0
    assert "Deleted invoice INV-0001" in result.output
    assert "Stock: 10" in run(cli_runner, temp_db, "product", "list").output


def test_invoice_show_missing(cli_runner, temp_db):
    result = run(cli_runner, temp_db, "invoice", "show", "5")
    assert result.exit_code == 1
    assert "Error: Invoice 5 not found" in result.output


def test_payment_settles_invoice(cli_runner, temp_db):
    product_id = add_product(cli_runner, temp_db)
    invoice_id = add_invoice(cli_runner, temp_db, product_id, 10)

    first = run(cli_runner, temp_db, "payment", "record", "--customer", "C1", "--amount", "60", "--invoice", invoice_id)
    assert first.exit_code == 0
    assert "Outstanding on invoice" in first.output
    assert "Due" in run(cli_runner, temp_db, "invoice", "show", invoice_id).output

    run(cli_runner, temp_db, "payment", "record", "--customer", "C1", "--amount", "40", "--invoice", invoice_id)
    assert "Status: Paid" in run(cli_runner, temp_db, "invoice", "show", invoice_id).output


def test_payment_rejects_non_positive(cli_runner, temp_db):
    result = run(cli_runner, temp_db, "payment", "record", "--customer", "C1", "--amount", "0")
    assert result.exit_code == 1
    assert "greater than 0" in result.output


def test_recurring_add_and_generate(cli_runner, temp_db):
    product_id = add_product(cli_runner, temp_db)
    added = run(
        cli_runner, temp_db, "recurring", "add", "--customer", "C1", "--item", f"{product_id}:1",
        "--frequency", "weekly", "--start", "2024-01-01",
    )
    assert added.exit_code == 0, added.output
    assert "next due 2024-01-01" in added.output

    generated = run(cli_runner, temp_db, "recurring", "generate", "--as-of", "2024-01-08")
    assert generated.exit_code == 0
    assert "1 invoice(s) generated" in generated.output
    assert "next due 2024-01-08" in run(cli_runner, temp_db, "recurring", "list").output


def test_recurring_generate_catch_up(cli_runner, temp_db):
    product_id = add_product(cli_runner, temp_db)
    run(
        cli_runner, temp_db, "recurring", "add", "--customer", "C1", "--item", f"{product_id}:1",
        "--frequency", "Weekly", "--start", "2024-01-01",
    )
    result = run(cli_runner, temp_db, "recurring", "generate", "--as-of", "2024-01-15", "--catch-up")
    assert "3 invoice(s) generated" in result.output


def test_report_cashflow_uses_payments(cli_runner, temp_db):
    run(cli_runner, temp_db, "payment", "record", "--customer", "C1", "--amount", "75", "--date", "2024-01-10")
    result = run(cli_runner, temp_db, "report", "cashflow", "--start", "2024-01-01", "--end", "2024-01-31")

    assert result.exit_code == 0
    assert re.search(r"Operating in\s+75\.00", result.output)
    assert "1 payment(s) without ledger entries" in result.output


def test_report_cashflow_requires_range(cli_runner, temp_db):
    result = run(cli_runner, temp_db, "report", "cashflow", "--start", "2024-01-01")
    assert result.exit_code == 1


def test_report_cashflow_start_after_end(cli_runner, temp_db):
    result = run(cli_runner, temp_db, "report", "cashflow", "--start", "2024-02-01", "--end", "2024-01-01")
    assert result.exit_code == 1
    assert "after end date" in result.output


def test_number_next(cli_runner, temp_db):
    assert run(cli_runner, temp_db, "number", "next", "quote", "--peek").output.strip() == "QT-0001"
    assert run(cli_runner, temp_db, "number", "next", "quote").output.strip() == "QT-0001"
    assert run(cli_runner, temp_db, "number", "next", "quote").output.strip() == "QT-0002"
    assert run(cli_runner, temp_db, "number", "next", "invoice").output.strip() == "INV-0001"


def test_tenant_option_isolates_data(cli_runner, temp_db):
    add_product(cli_runner, temp_db)
    result = run(cli_runner, temp_db, "product", "list", tenant="globex")
    assert "No products found." in result.output


def test_tenant_from_environment(cli_runner, temp_db, monkeypatch):
    monkeypatch.setenv("INVOICEKIT_TENANT", "env-tenant")
    cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "product", "add", "Thing", "--price", "1"])
    assert "Thing" in run(cli_runner, temp_db, "product", "list", tenant="env-tenant").output
