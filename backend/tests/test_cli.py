from autoshop.services import stock_ledger


def test_inventory_list(app, make_product):
    make_product(part_name="Transponder chip", stock_quantity=1)
    make_product(part_name="Wiper blade", stock_quantity=9)
    runner = app.test_cli_runner()

    result = runner.invoke(args=["inventory", "list"])
    assert result.exit_code == 0
    assert "Transponder chip" in result.output
    assert "Wiper blade" in result.output

    result = runner.invoke(args=["inventory", "list", "--low-stock"])
    assert result.exit_code == 0
    assert "Transponder chip" in result.output
    assert "Wiper blade" not in result.output


def test_inventory_adjust(app, product):
    runner = app.test_cli_runner()

    result = runner.invoke(args=["inventory", "adjust", str(product.id), "11"])
    assert result.exit_code == 0
    assert "stock is now 11" in result.output
    assert stock_ledger.get_stock(product.id) == 11

    result = runner.invoke(args=["inventory", "movements", str(product.id)])
    assert "ADJUSTMENT" in result.output


def test_inventory_adjust_unknown_product(app, db_session):
    result = app.test_cli_runner().invoke(args=["inventory", "adjust", "555555", "1"])
    assert result.exit_code != 0
    assert "Product not found" in result.output


def test_init_db_is_idempotent(app, db_session):
    result = app.test_cli_runner().invoke(args=["system", "init-db"])
    assert result.exit_code == 0
