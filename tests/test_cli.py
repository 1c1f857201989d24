from typer.testing import CliRunner

from rauvfilm import cli

runner = CliRunner()


def test_balance_command(bookings, make_reservation, monkeypatch):
    reservation = make_reservation(confirm=True)
    monkeypatch.setattr(cli, "booking_service", bookings)

    result = runner.invoke(cli.app, ["balance", str(reservation.id)])

    assert result.exit_code == 0, result.output
    assert "500,000원" in result.output


def test_balance_unknown_reservation(bookings, monkeypatch):
    monkeypatch.setattr(cli, "booking_service", bookings)

    result = runner.invoke(cli.app, ["balance", "999"])

    assert result.exit_code == 1
    assert "not found" in result.output


def test_reconcile_command(synchronizer, make_reservation, monkeypatch):
    make_reservation(confirm=True, create_booking=True)
    monkeypatch.setattr(cli, "dual_record_sync", synchronizer)

    result = runner.invoke(cli.app, ["reconcile"])

    assert result.exit_code == 0, result.output
    assert "No drift found" in result.output


def test_verify_url_for_instagram_skips_fetch():
    result = runner.invoke(cli.app, ["verify-url", "https://www.instagram.com/p/AbC123/?igsh=1"])

    assert result.exit_code == 0, result.output
    assert "instagram.com/p/AbC123" in result.output
    assert "MANUAL_REVIEW" in result.output
