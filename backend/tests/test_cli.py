"""
CLI command tests (flask system / access / maintenance).
"""

from counterpos.models import AccessCredential, Product, SessionToken
from counterpos.services import auth_service, products_service


def test_system_init_seeds_once(app, db_session):
    runner = app.test_cli_runner()

    result = runner.invoke(args=["system", "init"])
    assert result.exit_code == 0, result.output
    assert f"Inserted {len(products_service.SEED_PRODUCTS)} starter products" in result.output
    assert "No operator PIN yet" in result.output
    assert "No admin login yet" in result.output
    assert db_session.query(AccessCredential).count() == 0

    result = runner.invoke(args=["system", "init"])
    assert "catalogue not seeded" in result.output
    assert db_session.query(Product).count() == len(products_service.SEED_PRODUCTS)


def test_init_without_seed(app, db_session):
    result = app.test_cli_runner().invoke(args=["system", "init", "--no-seed"])
    assert result.exit_code == 0
    assert db_session.query(Product).count() == 0


def test_access_commands(app, db_session):
    runner = app.test_cli_runner()

    result = runner.invoke(args=["access", "set-pin", "--pin", "2468"])
    assert result.exit_code == 0, result.output
    assert auth_service.verify_operator_pin("2468")

    result = runner.invoke(args=["access", "set-admin", "--username", "owner", "--password", "Shop#Admin1"])
    assert result.exit_code == 0, result.output
    assert auth_service.verify_admin("owner", "Shop#Admin1")

    result = runner.invoke(args=["access", "status"])
    assert "OPERATOR   set" in result.output
    assert "ADMIN      set" in result.output


def test_bad_pin_is_reported(app, db_session):
    result = app.test_cli_runner().invoke(args=["access", "set-pin", "--pin", "12"])
    assert result.exit_code != 0
    assert "PIN must be 4-8 digits" in result.output


def test_wipe_keeps_secrets(app, db_session, make_product):
    auth_service.set_operator_pin("2468")
    make_product()

    result = app.test_cli_runner().invoke(args=["system", "wipe", "--yes"])
    assert result.exit_code == 0, result.output
    assert "products: 1" in result.output

    db_session.expire_all()
    assert db_session.query(Product).count() == 0
    assert auth_service.verify_operator_pin("2468")


def test_cleanup_sessions(app, db_session):
    result = app.test_cli_runner().invoke(args=["maintenance", "cleanup-sessions"])
    assert result.exit_code == 0
    assert "Deleted 0 sessions older than 30 days." in result.output
    assert db_session.query(SessionToken).count() == 0
