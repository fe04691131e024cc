from typer.testing import CliRunner

from dynamic_pager.binder import PagerBinder
from dynamic_pager.cmd import cli

runner = CliRunner()


def test_run_delete_next():
    result = runner.invoke(cli, ["run", "del-next"])
    assert result.exit_code == 0, result.output
    assert result.output.splitlines() == [
        "> 1. Sample Item 2",
        "  2. Sample Item 3",
    ]


def test_run_add_next_then_add_previous():
    result = runner.invoke(cli, ["run", "--items", "2", "add-next", "add-prev"])
    assert result.exit_code == 0, result.output
    # "Previous Item 4" is inserted before "Next Item 3" and shown
    assert result.output.splitlines() == [
        "  1. Sample Item 1",
        "> 2. Previous Item 4",
        "  3. Next Item 3",
        "  4. Sample Item 2",
    ]


def test_run_reads_item_count_from_environment():
    result = runner.invoke(
        cli, ["run", "del-prev"], env={"DYNAMIC_PAGER_ITEMS": "1"}
    )
    assert result.exit_code == 0, result.output
    assert result.output.strip() == "(no pages)"


def test_run_on_empty_pager():
    result = runner.invoke(cli, ["run", "--items", "0", "del-next", "add-next"])
    assert result.exit_code == 0, result.output
    assert "Nothing to delete" in result.output
    assert "> 1. Next Item 1" in result.output


def test_run_rejects_unknown_actions():
    result = runner.invoke(cli, ["run", "jump"])
    assert result.exit_code == 1
    assert "Unknown action(s): jump" in result.output


def test_unknown_log_level():
    result = runner.invoke(cli, ["--log-level", "LOUD", "run", "add-next"])
    assert result.exit_code == 1
    assert "Unknown log level" in result.output


def test_demo_session():
    result = runner.invoke(cli, ["demo", "--items", "2"], input="add-next\nwhat\nquit\n")
    assert result.exit_code == 0, result.output
    assert "> 2. Next Item 3" in result.output
    assert "Unknown action: what" in result.output
    assert "Bye" in result.output


def test_run_reports_a_pager_that_does_not_settle(monkeypatch):
    async def never_idle(self, timeout=1.0):
        return False

    monkeypatch.setattr(PagerBinder, "wait_until_idle", never_idle)
    result = runner.invoke(cli, ["run", "add-next"])
    assert result.exit_code == 1
    assert "The pager did not settle" in result.output
