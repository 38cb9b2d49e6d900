"""Tests for the command-line interface."""

import json

import pytest

from givepool import cli


@pytest.fixture(autouse=True)
def no_store(monkeypatch):
    for name in ("SUPABASE_URL", "SUPABASE_KEY", "SUPABASE_ACCESS_TOKEN",
                 "GIVEPOOL_MIN_VALID_YEAR", "GIVEPOOL_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("givepool.config.load_dotenv", lambda *a, **k: None)


@pytest.fixture
def orgs_file(tmp_path):
    path = tmp_path / "orgs.json"
    path.write_text(json.dumps([
        {"organization_name": "Education First", "category": "Education"},
        {"organization_name": "Clean Water Initiative", "category": "Health"},
        {"organization_name": "Forest Protection Fund", "category": "Environment"},
    ]))
    return path


@pytest.fixture
def orders_file(tmp_path):
    path = tmp_path / "orders.csv"
    path.write_text(
        "order_id,amount_total,currency,order_date,order_status\n"
        "1,5000,usd,2024-01-10,completed\n"
        "2,5000,usd,1970-01-01,completed\n"
        "3,3000,usd,2024-01-20,completed\n"
    )
    return path


def run(argv):
    with pytest.raises(SystemExit) as exc:
        cli.main(argv)
    return exc.value.code


class TestLoadRows:
    def test_json_rows_key(self, tmp_path):
        path = tmp_path / "data.json"
        path.write_text('{"rows": [{"a": 1}]}')
        assert cli.load_rows(path) == [{"a": 1}]

    def test_csv(self, orders_file):
        rows = cli.load_rows(orders_file)
        assert len(rows) == 3
        assert rows[0]["amount_total"] == "5000"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            cli.load_rows(tmp_path / "nope.json")


class TestDistribute:
    def test_prints_table(self, orgs_file, capsys):
        assert run(["-q", "distribute", "--orgs", str(orgs_file), "--amount", "120000",
                    "--interval", "year"]) == 0
        out = capsys.readouterr().out
        assert "$100.00 across 3 organization(s)" in out
        assert "$33.34" in out

    def test_writes_json(self, orgs_file, tmp_path):
        output = tmp_path / "dist.json"
        assert run(["-q", "distribute", "--orgs", str(orgs_file), "--price-id",
                    "price_1RcolnRnYW51Zw7fMaZfU3R4", "-o", str(output), "--format", "json"]) == 0
        data = json.loads(output.read_text())
        assert [d["amount"] for d in data] == [500, 500, 500]

    def test_negative_amount(self, orgs_file, capsys):
        assert run(["-q", "distribute", "--orgs", str(orgs_file), "--amount", "-5"]) == 1
        assert "positive" in capsys.readouterr().err

    def test_requires_amount(self, orgs_file):
        assert run(["-q", "distribute", "--orgs", str(orgs_file)]) == 1


class TestSummary:
    def test_month_totals(self, orders_file, capsys):
        assert run(["-q", "summary", "--orders", str(orders_file), "--month", "2024-01"]) == 0
        out = capsys.readouterr().out
        assert "1 excluded" in out
        assert "January 2024" in out
        assert "$80.00" in out


class TestInvoice:
    def test_no_payments_for_period(self, orders_file, capsys):
        assert run(["-q", "invoice", "--orders", str(orders_file)]) == 1
        assert "January 2024" in capsys.readouterr().err


class TestFunding:
    def test_counts_only_parsed_subscriptions(self, orgs_file, monkeypatch, capsys):
        class FakeAPI:
            def __init__(self, settings):
                pass

            def get_active_subscriptions(self):
                return [
                    {"price_id": "price_1RcoopRnYW51Zw7f2D5HGmIM", "subscription_status": "active"},
                    {},
                ]

        monkeypatch.setattr(cli, "SupabaseAPI", FakeAPI)
        assert run(["-q", "funding", "--orgs", str(orgs_file)]) == 0
        out = capsys.readouterr().out
        assert "Active donors: 1" in out
        assert "$33.34" in out
